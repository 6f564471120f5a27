"""Timesheet estimation pipeline.

The pipeline is a fixed chain of pure stages over a ``date -> estimates``
mapping:

    group commits -> estimate days -> backfill -> daily ceiling
        -> weekly scaling -> assemble

It runs over a lookback window that starts before the requested range so
that tasks begun earlier are recognized as follow-up work and weeks that
straddle the start date are scaled as a whole. Only the requested days are
returned.
"""

from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

import structlog

from gitsheet.estimation.assembler import assemble, cap_daily_hours, date_range, summarize
from gitsheet.estimation.backfill import backfill
from gitsheet.estimation.daily import TaskEstimate, estimate_clusters
from gitsheet.estimation.grouping import active_commits, build_task_lifecycles, group_commits
from gitsheet.estimation.scaling import scale_to_weekly_target
from gitsheet.exceptions import InvalidInputError
from gitsheet.models.commit import CommitRecord
from gitsheet.models.config import EstimationConfig
from gitsheet.models.timesheet import Timesheet

logger = structlog.get_logger(__name__)


def _validate_range(start_date: date, end_date: date) -> None:
    if end_date < start_date:
        raise InvalidInputError(f"End date {end_date} is before start date {start_date}")


def estimate_hours(
    commits: Iterable[CommitRecord],
    config: Optional[EstimationConfig] = None,
    start_date: Optional[date] = None,
) -> Dict[date, List[TaskEstimate]]:
    """Run every estimation stage on a set of commits.

    Args:
        commits: Commit records; duplicates are ignored
        config: Estimation configuration (defaults apply when None)
        start_date: First reported day; earlier commits only give context
            and never receive backfilled hours

    Returns:
        Mapping of date to final estimates for every day with commits or
        backfilled work
    """
    config = config or EstimationConfig()
    active = active_commits(commits)

    lifecycles = build_task_lifecycles(active)
    clusters = group_commits(active, lifecycles)
    estimates = estimate_clusters(clusters, lifecycles, config)
    estimates = backfill(estimates, lifecycles, config, start_date)
    estimates = cap_daily_hours(estimates, config)
    estimates = scale_to_weekly_target(estimates, config)
    return estimates


def build_timesheet(
    commits: Sequence[CommitRecord],
    start_date: date,
    end_date: date,
    config: Optional[EstimationConfig] = None,
) -> Timesheet:
    """Estimate a timesheet for an inclusive date range.

    Args:
        commits: Commit records covering at least the lookback window
        start_date: First day of the requested range
        end_date: Last day of the requested range
        config: Estimation configuration (defaults apply when None)

    Returns:
        Timesheet with one day per requested date

    Raises:
        InvalidInputError: If end_date is before start_date
    """
    _validate_range(start_date, end_date)
    config = config or EstimationConfig()

    window_start = start_date - timedelta(days=config.lookback_days)
    window_commits = [c for c in commits if window_start <= c.date <= end_date]
    estimates = estimate_hours(window_commits, config, start_date)

    days = assemble(date_range(start_date, end_date), estimates, config)

    in_range = [c for c in active_commits(window_commits) if c.date >= start_date]
    total, tracked, task_count = summarize(in_range)

    timesheet = Timesheet(
        start_date=start_date,
        end_date=end_date,
        days=days,
        total_commits=total,
        tracked_commits=tracked,
        task_count=task_count,
    )
    logger.info(
        "timesheet_built",
        start_date=start_date.isoformat(),
        end_date=end_date.isoformat(),
        commits=total,
        tracked_hours=timesheet.total_tracked_hours,
        work_days=timesheet.work_days,
    )
    return timesheet


class TimesheetGenerator:
    """Builds timesheets from a fixed list of commits."""

    def __init__(
        self,
        commits: Sequence[CommitRecord],
        config: Optional[EstimationConfig] = None,
    ) -> None:
        """Initialize the generator.

        Args:
            commits: Commit records to estimate from
            config: Estimation configuration (defaults apply when None)
        """
        self.commits = list(commits)
        self.config = config or EstimationConfig()

    def timesheet_for(self, start_date: date, end_date: date) -> Timesheet:
        """Estimate the timesheet for an inclusive date range."""
        return build_timesheet(self.commits, start_date, end_date, self.config)
