"""Data models for the generated timesheet."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class TaskWork(BaseModel):
    """Hours attributed to one task on one day."""

    title: str = Field(..., description="Task title")
    task_id: str = Field(..., description="Task identifier")
    issue_id: Optional[str] = Field(None, description="Issue identifier for tracked tasks")
    hours: float = Field(..., ge=0, description="Estimated hours, a multiple of 0.5")
    start_time: datetime = Field(..., description="Time of the first commit, or 09:00 for backfilled work")
    commits: int = Field(0, ge=0, description="Number of commits attributed to this entry")

    class Config:
        """Pydantic config."""
        json_schema_extra = {
            "example": {
                "title": "ABC-42 Fix login redirect",
                "task_id": "ABC-42",
                "issue_id": "ABC-42",
                "hours": 1.5,
                "start_time": "2024-03-04T10:30:00",
                "commits": 2,
            }
        }


class TimesheetDay(BaseModel):
    """One calendar day of the timesheet."""

    date: date
    tracked_tasks: List[TaskWork] = Field(default_factory=list)
    untracked_tasks: List[TaskWork] = Field(default_factory=list)

    @property
    def tracked_hours(self) -> float:
        return sum(task.hours for task in self.tracked_tasks)

    @property
    def untracked_hours(self) -> float:
        return sum(task.hours for task in self.untracked_tasks)

    @property
    def total_hours(self) -> float:
        return self.tracked_hours + self.untracked_hours

    @property
    def has_work(self) -> bool:
        return bool(self.tracked_tasks or self.untracked_tasks)


class Timesheet(BaseModel):
    """Estimated timesheet for a date range."""

    start_date: date
    end_date: date
    days: List[TimesheetDay] = Field(default_factory=list)
    total_commits: int = Field(0, description="Commits inside the requested range")
    tracked_commits: int = Field(0, description="Commits carrying an issue id")
    task_count: int = Field(0, description="Distinct issue ids among tracked commits")

    @property
    def total_tracked_hours(self) -> float:
        return sum(day.tracked_hours for day in self.days)

    @property
    def work_days(self) -> int:
        """Number of days with at least one tracked task."""
        return sum(1 for day in self.days if day.tracked_tasks)
