"""Per-day ceiling and assembly of the final timesheet days."""

from dataclasses import replace
from datetime import date, timedelta
from typing import Dict, Iterable, List, Tuple

import structlog

from gitsheet.estimation.daily import TaskEstimate, round_half
from gitsheet.models.commit import CommitRecord
from gitsheet.models.config import EstimationConfig
from gitsheet.models.timesheet import TaskWork, TimesheetDay

logger = structlog.get_logger(__name__)


def date_range(start: date, end: date) -> List[date]:
    """Every calendar day from start to end, inclusive."""
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


def cap_day(estimates: List[TaskEstimate], config: EstimationConfig) -> List[TaskEstimate]:
    """Scale one day down to the daily ceiling.

    Each estimate is scaled proportionally, rounded and floored at the task
    minimum. Rounding can leave the day slightly over the ceiling, so the
    largest estimates then give up 0.5h at a time. A day with more tasks
    than ceiling / minimum can still exceed the ceiling.
    """
    total = sum(e.hours for e in estimates)
    if total <= config.max_hours_per_day or total <= 0:
        return list(estimates)

    factor = config.max_hours_per_day / total
    capped = [
        replace(e, hours=max(config.min_hours_per_task, round_half(e.hours * factor)))
        for e in estimates
    ]

    excess = sum(e.hours for e in capped) - config.max_hours_per_day
    while excess > 0:
        reducible = [i for i, e in enumerate(capped) if e.hours - 0.5 >= config.min_hours_per_task]
        if not reducible:
            break
        largest = max(reducible, key=lambda i: (capped[i].hours, -i))
        capped[largest] = replace(capped[largest], hours=capped[largest].hours - 0.5)
        excess -= 0.5

    return capped


def cap_daily_hours(
    estimates_by_day: Dict[date, List[TaskEstimate]],
    config: EstimationConfig,
) -> Dict[date, List[TaskEstimate]]:
    """Apply the daily ceiling to every day.

    Args:
        estimates_by_day: Daily estimates
        config: Estimation configuration

    Returns:
        New mapping of date to estimates
    """
    result = {}
    for day, estimates in estimates_by_day.items():
        capped = cap_day(estimates, config)
        if capped != estimates:
            logger.debug(
                "day_capped",
                date=day.isoformat(),
                hours_before=sum(e.hours for e in estimates),
                hours_after=sum(e.hours for e in capped),
            )
        result[day] = capped
    return result


def to_task_work(estimate: TaskEstimate) -> TaskWork:
    return TaskWork(
        title=estimate.title,
        task_id=estimate.task_id,
        issue_id=estimate.issue_id if estimate.has_issue else None,
        hours=estimate.hours,
        start_time=estimate.start_time,
        commits=estimate.commit_count,
    )


def assemble_day(day: date, estimates: Iterable[TaskEstimate]) -> TimesheetDay:
    """Build a TimesheetDay, tasks ordered by start time."""
    ordered = sorted(estimates, key=lambda e: e.start_time)
    return TimesheetDay(
        date=day,
        tracked_tasks=[to_task_work(e) for e in ordered if e.has_issue],
        untracked_tasks=[to_task_work(e) for e in ordered if not e.has_issue],
    )


def assemble(
    days: Iterable[date],
    estimates_by_day: Dict[date, List[TaskEstimate]],
    config: EstimationConfig,
) -> List[TimesheetDay]:
    """Build one TimesheetDay per requested date.

    The daily ceiling is enforced once more, since weekly scaling may have
    pushed a day back over it.

    Args:
        days: Dates to emit, in order
        estimates_by_day: Final daily estimates
        config: Estimation configuration

    Returns:
        List of TimesheetDay
    """
    capped = cap_daily_hours(estimates_by_day, config)
    return [assemble_day(day, capped.get(day, [])) for day in days]


def summarize(commits: Iterable[CommitRecord]) -> Tuple[int, int, int]:
    """Count commits, tracked commits and distinct tracked issues.

    Args:
        commits: Active commits of the requested range

    Returns:
        Tuple of (total, tracked, distinct tracked issue ids)
    """
    commits = list(commits)
    tracked = [c for c in commits if c.has_issue]
    return len(commits), len(tracked), len({c.issue_id or c.task_id for c in tracked})
