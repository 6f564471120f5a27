"""Data model for a single collected commit."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_TITLE_LENGTH = 72


def make_title(message: str, length: int = DEFAULT_TITLE_LENGTH) -> str:
    """Return the first non-empty line of a commit message, truncated."""
    for line in message.strip().splitlines():
        line = line.strip()
        if line:
            return line[:length].rstrip()
    return ""


class CommitRecord(BaseModel):
    """A commit as seen by the estimation pipeline.

    Records are immutable once collected. Reconciliation produces modified
    copies through ``model_copy(update=...)``.
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "sha": "abc123def456",
                "timestamp": "2024-03-04T10:30:00",
                "message": "ABC-42 Fix login redirect\n\nToken was dropped on refresh",
                "title": "ABC-42 Fix login redirect",
                "task_id": "ABC-42",
                "issue_id": "ABC-42",
                "has_issue": True,
                "is_merge": False,
                "is_duplicate": False,
                "files_changed": 2,
                "lines_added": 14,
                "lines_deleted": 3,
            }
        },
    )

    sha: str = Field(..., description="Commit SHA hash")
    timestamp: datetime = Field(..., description="Author timestamp in local time")
    message: str = Field("", description="Full commit message")
    title: str = Field("", description="First line of the message, truncated")
    task_id: str = Field("", description="Issue id, or the title when no issue was detected")
    issue_id: Optional[str] = Field(None, description="Detected issue identifier")
    has_issue: bool = Field(False, description="Whether a tracked issue id was detected")
    is_merge: bool = Field(False, description="Whether this is a merge commit")
    is_duplicate: bool = Field(False, description="Suppressed because reconciled into another commit")
    files_changed: int = Field(0, ge=0, description="Number of files changed")
    lines_added: int = Field(0, ge=0, description="Number of lines added")
    lines_deleted: int = Field(0, ge=0, description="Number of lines deleted")

    @model_validator(mode="before")
    @classmethod
    def _fill_derived_fields(cls, data):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if not data.get("title"):
            data["title"] = make_title(data.get("message") or "") or str(data.get("sha", ""))[:7]
        if data.get("has_issue") is None:
            data["has_issue"] = bool(data.get("issue_id"))
        if not data.get("task_id"):
            data["task_id"] = data.get("issue_id") or data["title"]
        return data

    @model_validator(mode="after")
    def _check_task_id(self) -> "CommitRecord":
        if not self.task_id:
            raise ValueError("task_id must not be empty")
        return self

    @property
    def date(self) -> date:
        """Calendar day of the commit."""
        return self.timestamp.date()

    @property
    def total_lines(self) -> int:
        """Lines added plus lines deleted."""
        return self.lines_added + self.lines_deleted
