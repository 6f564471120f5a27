"""Shared fixtures for gitsheet tests."""

from datetime import datetime
from itertools import count
from typing import Optional

import pytest

from gitsheet.models import CommitRecord


@pytest.fixture
def make_commit():
    """Factory for CommitRecord objects with sensible defaults."""
    counter = count(1)

    def _make(
        timestamp: datetime,
        message: str = "Add feature",
        issue_id: Optional[str] = None,
        lines_added: int = 10,
        lines_deleted: int = 0,
        files_changed: int = 1,
        **kwargs,
    ) -> CommitRecord:
        sha = kwargs.pop("sha", None) or f"{next(counter):040x}"
        return CommitRecord(
            sha=sha,
            timestamp=timestamp,
            message=message,
            issue_id=issue_id,
            lines_added=lines_added,
            lines_deleted=lines_deleted,
            files_changed=files_changed,
            **kwargs,
        )

    return _make
