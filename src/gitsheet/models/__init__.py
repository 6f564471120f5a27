"""Data models for commit records, timesheets and configuration."""

from gitsheet.models.commit import CommitRecord
from gitsheet.models.config import EstimationConfig, RepositoryConfig, Settings
from gitsheet.models.timesheet import TaskWork, Timesheet, TimesheetDay

__all__ = [
    "CommitRecord",
    "TaskWork",
    "TimesheetDay",
    "Timesheet",
    "EstimationConfig",
    "RepositoryConfig",
    "Settings",
]
