"""Commit collection from Git repositories."""

from gitsheet.extraction.git_extractor import GitExtractor
from gitsheet.extraction.issues import (
    build_commit_record,
    detect_prefix,
    extract_issue_ids,
    issue_pattern,
)

__all__ = [
    "GitExtractor",
    "build_commit_record",
    "detect_prefix",
    "extract_issue_ids",
    "issue_pattern",
]
