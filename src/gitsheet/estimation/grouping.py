"""Grouping of commits into per-day, per-task clusters."""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Tuple

from gitsheet.models.commit import CommitRecord


@dataclass(frozen=True)
class TaskLifecycle:
    """All active commits of one tracked task across the whole window."""

    task_id: str
    first_commit_date: date
    commits: Tuple[CommitRecord, ...] = field(default_factory=tuple)
    commit_dates: Tuple[date, ...] = field(default_factory=tuple)

    @property
    def total_lines(self) -> int:
        return sum(c.total_lines for c in self.commits)

    @property
    def day_count(self) -> int:
        return len(self.commit_dates)

    def previous_commit(self, commit: CommitRecord) -> Optional[CommitRecord]:
        """The task's commit immediately before the given one, if any."""
        previous = None
        for candidate in self.commits:
            if candidate.sha == commit.sha and candidate.timestamp == commit.timestamp:
                return previous
            previous = candidate
        return None


@dataclass(frozen=True)
class TaskCluster:
    """Commits sharing a task id within one calendar day."""

    date: date
    task_id: str
    commits: Tuple[CommitRecord, ...]
    is_first_day: bool = True

    @property
    def first_commit(self) -> CommitRecord:
        return self.commits[0]

    @property
    def title(self) -> str:
        return self.first_commit.title

    @property
    def message(self) -> str:
        return self.first_commit.message

    @property
    def issue_id(self) -> Optional[str]:
        return self.first_commit.issue_id

    @property
    def has_issue(self) -> bool:
        return self.first_commit.has_issue

    @property
    def start_time(self) -> datetime:
        return self.first_commit.timestamp

    @property
    def lines_added(self) -> int:
        return sum(c.lines_added for c in self.commits)

    @property
    def lines_deleted(self) -> int:
        return sum(c.lines_deleted for c in self.commits)

    @property
    def total_lines(self) -> int:
        return self.lines_added + self.lines_deleted

    @property
    def files_changed(self) -> int:
        return sum(c.files_changed for c in self.commits)


def active_commits(commits: Iterable[CommitRecord]) -> List[CommitRecord]:
    """Non-duplicate commits in chronological order."""
    return sorted((c for c in commits if not c.is_duplicate), key=lambda c: (c.timestamp, c.sha))


def build_task_lifecycles(commits: Iterable[CommitRecord]) -> Dict[str, TaskLifecycle]:
    """Index tracked commits by task id.

    Args:
        commits: Active commits of the whole estimation window

    Returns:
        Mapping of task id to its lifecycle
    """
    by_task: Dict[str, List[CommitRecord]] = defaultdict(list)
    for commit in active_commits(commits):
        if commit.has_issue:
            by_task[commit.task_id].append(commit)

    lifecycles = {}
    for task_id, task_commits in by_task.items():
        commit_dates = tuple(sorted({c.date for c in task_commits}))
        lifecycles[task_id] = TaskLifecycle(
            task_id=task_id,
            first_commit_date=task_commits[0].date,
            commits=tuple(task_commits),
            commit_dates=commit_dates,
        )
    return lifecycles


def group_commits(
    commits: Iterable[CommitRecord],
    lifecycles: Dict[str, TaskLifecycle],
) -> Dict[date, List[TaskCluster]]:
    """Group active commits by day and then by task.

    Tracked clusters come before untracked ones; within each kind clusters
    keep the order in which their task first appears that day.

    Args:
        commits: Commits to group; duplicates are ignored
        lifecycles: Task lifecycles built over the same commits

    Returns:
        Mapping of date to clusters, in date order
    """
    by_day: Dict[date, Dict[Tuple[bool, str], List[CommitRecord]]] = defaultdict(dict)
    for commit in active_commits(commits):
        key = (commit.has_issue, commit.task_id)
        by_day[commit.date].setdefault(key, []).append(commit)

    grouped: Dict[date, List[TaskCluster]] = {}
    for day in sorted(by_day):
        groups = by_day[day]
        clusters = []
        for tracked in (True, False):
            for (has_issue, task_id), day_commits in groups.items():
                if has_issue != tracked:
                    continue
                lifecycle = lifecycles.get(task_id) if has_issue else None
                clusters.append(
                    TaskCluster(
                        date=day,
                        task_id=task_id,
                        commits=tuple(day_commits),
                        is_first_day=lifecycle is None or lifecycle.first_commit_date == day,
                    )
                )
        grouped[day] = clusters
    return grouped
