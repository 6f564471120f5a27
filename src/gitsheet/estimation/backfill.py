"""Backfilling of large first-day tasks into the preceding light day."""

from dataclasses import replace
from datetime import date, datetime, time
from typing import Dict, List, Optional, Set

import structlog

from gitsheet.estimation.daily import TaskEstimate, round_half
from gitsheet.estimation.grouping import TaskLifecycle
from gitsheet.models.config import EstimationConfig

logger = structlog.get_logger(__name__)


def tracked_hours(estimates: List[TaskEstimate]) -> float:
    return sum(e.hours for e in estimates if e.has_issue)


def backfill_percentage(total_lines: int, config: EstimationConfig) -> float:
    """Share of a task's first-day hours moved to the day before."""
    if total_lines >= config.large_task_lines:
        return config.large_task_backfill_pct
    if total_lines >= config.medium_task_lines:
        return config.medium_task_backfill_pct
    return config.small_task_backfill_pct


def backfill(
    estimates_by_day: Dict[date, List[TaskEstimate]],
    lifecycles: Dict[str, TaskLifecycle],
    config: EstimationConfig,
    start_date: Optional[date] = None,
) -> Dict[date, List[TaskEstimate]]:
    """Move part of heavy first days onto the light day before them.

    The first commit of a task rarely marks the start of its work. When a
    light day is directly followed (within the allowed gap) by a heavy day,
    tasks that started on the heavy day give a share of their hours to the
    light day. Tracked hours are conserved up to 0.5h rounding.

    Args:
        estimates_by_day: Daily estimates
        lifecycles: Task lifecycles over the same commits
        config: Estimation configuration
        start_date: First day that may receive backfilled hours

    Returns:
        New mapping of date to estimates
    """
    result: Dict[date, List[TaskEstimate]] = {day: list(estimates) for day, estimates in estimates_by_day.items()}
    used_sources: Set[str] = set()
    dates = sorted(result)

    for current_day, next_day in zip(dates, dates[1:]):
        if start_date is not None and current_day < start_date:
            continue
        if (next_day - current_day).days > config.max_backfill_day_gap:
            continue

        current_hours = tracked_hours(result[current_day])
        if current_hours >= config.light_day_threshold:
            continue

        next_estimates = result[next_day]
        next_hours = tracked_hours(next_estimates)
        if next_hours <= config.heavy_day_threshold:
            continue

        candidates = [
            (index, estimate)
            for index, estimate in enumerate(next_estimates)
            if estimate.has_issue
            and not estimate.is_backfill
            and estimate.task_id not in used_sources
            and estimate.hours >= config.backfill_candidate_min_hours
            and estimate.task_id in lifecycles
            and lifecycles[estimate.task_id].first_commit_date == next_day
        ]
        if not candidates:
            continue
        candidates.sort(key=lambda item: item[1].hours, reverse=True)

        hours_needed = max(
            0.0,
            min(
                config.max_hours_per_task - current_hours,
                next_hours - config.heavy_day_threshold,
            ),
        )
        if hours_needed < config.backfill_min_amount:
            continue

        backfilled = 0.0
        for index, candidate in candidates:
            if backfilled >= hours_needed:
                break
            used_sources.add(candidate.task_id)

            pct = backfill_percentage(lifecycles[candidate.task_id].total_lines, config)
            hours_to_move = round_half(min(candidate.hours * pct, hours_needed - backfilled))
            if hours_to_move < config.backfill_min_amount:
                continue

            remaining = max(config.min_hours_per_task, candidate.hours - hours_to_move)
            moved = candidate.hours - remaining
            if moved <= 0:
                continue

            result[current_day].append(
                replace(
                    candidate,
                    hours=moved,
                    start_time=datetime.combine(current_day, time(hour=config.backfill_start_hour)),
                    commit_count=0,
                    is_first_day=False,
                    is_backfill=True,
                )
            )
            next_estimates[index] = replace(candidate, hours=remaining)
            backfilled += moved

            logger.debug(
                "hours_backfilled",
                task_id=candidate.task_id,
                from_date=next_day.isoformat(),
                to_date=current_day.isoformat(),
                hours=moved,
            )

        if backfilled:
            logger.info(
                "day_backfilled",
                date=current_day.isoformat(),
                source_date=next_day.isoformat(),
                hours=backfilled,
            )

    return result
