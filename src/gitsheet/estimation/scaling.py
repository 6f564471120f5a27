"""Proportional scaling of each ISO week toward the weekly target."""

from collections import defaultdict
from dataclasses import replace
from datetime import date
from typing import Dict, List, Optional, Tuple

import structlog

from gitsheet.estimation.daily import TaskEstimate, clamp_hours
from gitsheet.models.config import EstimationConfig

logger = structlog.get_logger(__name__)

IsoWeek = Tuple[int, int]


def iso_week(day: date) -> IsoWeek:
    """ISO-8601 (year, week) of a date; weeks start on Monday."""
    year, week, _ = day.isocalendar()
    return year, week


def group_by_week(days) -> Dict[IsoWeek, List[date]]:
    weeks: Dict[IsoWeek, List[date]] = defaultdict(list)
    for day in sorted(days):
        weeks[iso_week(day)].append(day)
    return dict(weeks)


def week_target(days_with_work: int, config: EstimationConfig) -> float:
    """Weekly target prorated for weeks with fewer working days."""
    if days_with_work < config.full_week_days:
        return config.target_weekly_hours * days_with_work / config.full_week_days
    return config.target_weekly_hours


def week_scale_factor(
    current_hours: float, days_with_work: int, config: EstimationConfig
) -> Optional[float]:
    """Factor to apply to a week, or None when the week is left alone.

    Args:
        current_hours: Tracked hours in the week
        days_with_work: Days in the week with tracked work
        config: Estimation configuration

    Returns:
        Clamped scale factor, or None for empty weeks and weeks inside the
        dead-band
    """
    if current_hours <= 0 or days_with_work == 0:
        return None

    factor = week_target(days_with_work, config) / current_hours
    factor = max(config.min_scale_factor, min(factor, config.max_scale_factor))
    if abs(factor - 1.0) < config.scale_threshold:
        return None
    return factor


def scale_to_weekly_target(
    estimates_by_day: Dict[date, List[TaskEstimate]],
    config: EstimationConfig,
) -> Dict[date, List[TaskEstimate]]:
    """Scale every week's hours toward the weekly target.

    Tracked hours decide the factor; tracked and untracked estimates are
    both scaled, rounded and clamped to the per-task bounds.

    Args:
        estimates_by_day: Daily estimates
        config: Estimation configuration

    Returns:
        New mapping of date to estimates
    """
    result = {day: list(estimates) for day, estimates in estimates_by_day.items()}

    for week, days in group_by_week(result).items():
        current_hours = sum(e.hours for day in days for e in result[day] if e.has_issue)
        days_with_work = sum(1 for day in days if any(e.has_issue for e in result[day]))

        factor = week_scale_factor(current_hours, days_with_work, config)
        if factor is None:
            continue

        for day in days:
            result[day] = [replace(e, hours=clamp_hours(e.hours * factor, config)) for e in result[day]]

        logger.info(
            "week_scaled",
            year=week[0],
            week=week[1],
            hours_before=current_hours,
            hours_after=sum(e.hours for day in days for e in result[day] if e.has_issue),
            factor=round(factor, 3),
        )

    return result
