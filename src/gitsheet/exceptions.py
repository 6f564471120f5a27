"""Exceptions raised by gitsheet."""


class GitsheetError(Exception):
    """Base class for all gitsheet errors."""


class InvalidInputError(GitsheetError, ValueError):
    """Raised when caller-supplied input cannot be processed.

    Examples are a date range whose end precedes its start, or a path that
    is not a Git repository.
    """


class RepositoryAccessError(GitsheetError):
    """Raised when reading from a Git repository fails."""
