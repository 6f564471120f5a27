"""Hour estimation pipeline.

Turns commit records into per-day task estimates and assembles them into a
timesheet.
"""

from gitsheet.estimation.classifier import TaskType, detect_task_type, type_multiplier
from gitsheet.estimation.daily import TaskEstimate
from gitsheet.estimation.pipeline import TimesheetGenerator, build_timesheet, estimate_hours

__all__ = [
    "TaskType",
    "TaskEstimate",
    "TimesheetGenerator",
    "build_timesheet",
    "detect_task_type",
    "estimate_hours",
    "type_multiplier",
]
