"""gitsheet: synthetic timesheets estimated from Git commit history."""

__version__ = "0.1.0"
