"""Plain-text rendering of a timesheet."""

from typing import List, Optional

from gitsheet.models.config import EstimationConfig
from gitsheet.models.timesheet import TaskWork, Timesheet

SEPARATOR = "-" * 50


def _task_label(task: TaskWork) -> str:
    if task.issue_id:
        return f"[{task.issue_id}] {task.title}"
    return task.title


def render_lines(timesheet: Timesheet, config: Optional[EstimationConfig] = None) -> List[str]:
    """Render a timesheet as indented plain-text lines.

    Only days with work are listed. Tasks are ordered by start time. With a
    config, the footer also shows the weekly target and its accepted band.
    """
    lines = [
        f"Found {timesheet.total_commits} commits ({timesheet.tracked_commits} tracked) "
        f"across {timesheet.task_count} tasks",
        "",
    ]

    for day in sorted(timesheet.days, key=lambda d: d.date):
        if not day.has_work:
            continue

        lines.append(f"{day.date:%Y-%m-%d} ({day.date:%a})")
        for task in sorted(day.tracked_tasks, key=lambda t: t.start_time):
            lines.append(f"  {task.hours:.1f}h - {_task_label(task)}")
        lines.append(f"  Total: {day.tracked_hours:.1f}h")

        if day.untracked_tasks:
            lines.append("  Untracked (no issue):")
            for task in sorted(day.untracked_tasks, key=lambda t: t.start_time):
                lines.append(f"    {task.hours:.1f}h - {task.title}")
        lines.append("")

    total_hours = timesheet.total_tracked_hours
    lines.append(SEPARATOR)
    lines.append(f"Total tracked hours: {total_hours:.1f}h")
    if timesheet.work_days:
        lines.append(f"Average hours/day: {total_hours / timesheet.work_days:.1f}h")
    if config is not None:
        lines.append(
            f"Weekly target: {config.target_weekly_hours:.1f}h "
            f"(accepted {config.min_weekly_hours:.1f}-{config.max_weekly_hours:.1f}h)"
        )
    return lines


def render_text(timesheet: Timesheet, config: Optional[EstimationConfig] = None) -> str:
    return "\n".join(render_lines(timesheet, config))
