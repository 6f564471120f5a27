"""Per-day hour estimates for task clusters."""

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence

import structlog

from gitsheet.estimation.classifier import TaskType, detect_task_type, type_multiplier
from gitsheet.estimation.grouping import TaskCluster, TaskLifecycle
from gitsheet.models.config import EstimationConfig, Tier

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class TaskEstimate:
    """Hours estimated for one task on one day.

    Estimates are immutable; later stages derive new ones with
    ``dataclasses.replace``.
    """

    title: str
    task_id: str
    issue_id: Optional[str]
    has_issue: bool
    hours: float
    start_time: datetime
    commit_count: int = 0
    task_type: TaskType = TaskType.FEATURE
    is_first_day: bool = True
    is_backfill: bool = False


def round_half(hours: float) -> float:
    """Round to the nearest 0.5h, ties to even."""
    return round(hours * 2) / 2


def clamp_hours(hours: float, config: EstimationConfig) -> float:
    """Round to 0.5h and keep within the per-task bounds."""
    return max(config.min_hours_per_task, min(round_half(hours), config.max_hours_per_task))


def tier_hours(lines: int, tiers: Sequence[Tier], above: float) -> float:
    """Hours of the first tier whose bound is not below ``lines``."""
    for bound, hours in tiers:
        if lines <= bound:
            return hours
    return above


def size_estimate(cluster: TaskCluster, multiplier: float, config: EstimationConfig) -> float:
    """Size-tiered estimate for a tracked cluster, before clamping."""
    total_lines = cluster.total_lines
    total_files = cluster.files_changed

    if cluster.is_first_day:
        hours = tier_hours(total_lines, config.first_day_tiers, config.first_day_max_hours)
        hours *= multiplier
        if total_files > config.file_count_bonus_threshold1:
            hours += config.file_count_bonus
        if total_files > config.file_count_bonus_threshold2:
            hours += config.file_count_bonus
        return hours

    # Follow-up days are fixes and polish on an already started task
    hours = config.follow_up_base_hours
    for bound, step_hours in config.follow_up_steps:
        if total_lines > bound:
            hours = step_hours
    return hours * min(multiplier, 1.0)


def untracked_estimate(cluster: TaskCluster, multiplier: float, config: EstimationConfig) -> float:
    """Size-only estimate for work without an issue id, before clamping."""
    hours = tier_hours(cluster.total_lines, config.untracked_tiers, config.untracked_max_hours)
    return hours * multiplier


def sleep_adjusted_gap(gap_hours: float, config: EstimationConfig) -> float:
    """Working hours in a gap between two commits.

    Gaps longer than the sleep threshold lose the sleep allowance once per
    started day, and no gap counts for more than one session.
    """
    if gap_hours <= 0:
        return 0.0
    if gap_hours > config.sleep_gap_threshold_hours:
        blocks = max(1, math.ceil(gap_hours / 24))
        gap_hours -= blocks * config.sleep_hours_per_day
    return max(0.0, min(gap_hours, config.max_session_hours))


def time_delta_estimate(
    cluster: TaskCluster,
    lifecycle: Optional[TaskLifecycle],
    size_hours: float,
    config: EstimationConfig,
) -> float:
    """Wall-clock estimate cross-checked against the size estimate.

    Args:
        cluster: Cluster to estimate
        lifecycle: Lifecycle of the cluster's task, if tracked
        size_hours: Size-tiered estimate of the same cluster
        config: Estimation configuration

    Returns:
        Hours before final clamping
    """
    if lifecycle is None:
        return size_hours

    hours = 0.0
    for commit in cluster.commits:
        previous = lifecycle.previous_commit(commit)
        if previous is None:
            # Nothing to measure from; the task's first commit is sized instead
            hours += size_hours
            continue
        gap = (commit.timestamp - previous.timestamp).total_seconds() / 3600
        hours += sleep_adjusted_gap(gap, config)
    hours = min(hours, config.max_session_hours)

    if size_hours <= 0:
        return hours
    if hours > size_hours * config.time_over_size_ratio:
        hours = math.sqrt(hours * size_hours)
    elif hours < size_hours * config.time_under_size_ratio and size_hours > config.pull_up_min_size_hours:
        hours = math.sqrt(max(hours, config.min_hours_per_task) * size_hours)
    return hours


def estimate_cluster(
    cluster: TaskCluster,
    lifecycle: Optional[TaskLifecycle],
    config: EstimationConfig,
) -> TaskEstimate:
    """Estimate the hours of one cluster.

    Args:
        cluster: Cluster to estimate
        lifecycle: Lifecycle of the cluster's task (None for untracked work)
        config: Estimation configuration

    Returns:
        TaskEstimate with hours rounded and clamped
    """
    task_type = detect_task_type(cluster.title, cluster.message, cluster.lines_deleted, cluster.lines_added)
    multiplier = type_multiplier(task_type, config)

    if not cluster.has_issue:
        hours = untracked_estimate(cluster, multiplier, config)
    else:
        hours = size_estimate(cluster, multiplier, config)
        if config.strategy == "time_delta":
            hours = time_delta_estimate(cluster, lifecycle, round_half(hours), config)

    return TaskEstimate(
        title=cluster.title,
        task_id=cluster.task_id,
        issue_id=cluster.issue_id if cluster.has_issue else None,
        has_issue=cluster.has_issue,
        hours=clamp_hours(hours, config),
        start_time=cluster.start_time,
        commit_count=len(cluster.commits),
        task_type=task_type,
        is_first_day=cluster.is_first_day,
    )


def estimate_clusters(
    clusters_by_day: Dict[date, List[TaskCluster]],
    lifecycles: Dict[str, TaskLifecycle],
    config: EstimationConfig,
) -> Dict[date, List[TaskEstimate]]:
    """Estimate every cluster of every day.

    Args:
        clusters_by_day: Output of group_commits
        lifecycles: Output of build_task_lifecycles
        config: Estimation configuration

    Returns:
        Mapping of date to estimates, in the same order as the clusters
    """
    estimates: Dict[date, List[TaskEstimate]] = {}
    for day in sorted(clusters_by_day):
        estimates[day] = [
            estimate_cluster(cluster, lifecycles.get(cluster.task_id) if cluster.has_issue else None, config)
            for cluster in clusters_by_day[day]
        ]
        logger.debug(
            "day_estimated",
            date=day.isoformat(),
            tasks=len(estimates[day]),
            hours=sum(e.hours for e in estimates[day]),
        )
    return estimates
