"""Tests for the daily ceiling and timesheet assembly."""

from datetime import date, datetime, time

from gitsheet.estimation.assembler import assemble, cap_day, date_range, summarize
from gitsheet.estimation.daily import TaskEstimate
from gitsheet.models import EstimationConfig

DAY = date(2024, 3, 4)


def _estimate(hours, issue_id="ABC-1", hour=10, commits=1):
    return TaskEstimate(
        title=f"{issue_id or 'Untracked'} work",
        task_id=issue_id or "Untracked work",
        issue_id=issue_id,
        has_issue=issue_id is not None,
        hours=hours,
        start_time=datetime.combine(DAY, time(hour=hour)),
        commit_count=commits,
    )


class TestDateRange:
    """Tests for date_range."""

    def test_inclusive(self):
        assert date_range(date(2024, 3, 4), date(2024, 3, 6)) == [
            date(2024, 3, 4),
            date(2024, 3, 5),
            date(2024, 3, 6),
        ]

    def test_single_day(self):
        assert date_range(DAY, DAY) == [DAY]


class TestCapDay:
    """Tests for the per-day ceiling."""

    def test_day_under_ceiling_is_unchanged(self):
        estimates = [_estimate(8.0), _estimate(6.0, "ABC-2")]

        assert cap_day(estimates, EstimationConfig()) == estimates

    def test_proportional_scaling(self):
        estimates = [_estimate(8.0), _estimate(8.0, "ABC-2"), _estimate(4.0, "ABC-3")]

        capped = cap_day(estimates, EstimationConfig())

        # factor 0.8: 6.4h -> 6.5h, 3.2h -> 3.0h
        assert [e.hours for e in capped] == [6.5, 6.5, 3.0]
        assert sum(e.hours for e in capped) <= 16.0

    def test_rounding_overshoot_is_trimmed_from_largest(self):
        estimates = [_estimate(7.5), _estimate(7.5, "ABC-2"), _estimate(1.5, "ABC-3")]

        capped = cap_day(estimates, EstimationConfig())

        # Rounding gives 7.5 + 7.5 + 1.5 again; the first of the largest gives up 0.5h
        assert [e.hours for e in capped] == [7.0, 7.5, 1.5]

    def test_minimum_is_kept(self):
        estimates = [_estimate(8.0)] * 2 + [_estimate(0.5, "ABC-2")]

        capped = cap_day(estimates, EstimationConfig())

        assert capped[-1].hours == 0.5
        assert sum(e.hours for e in capped) <= 16.0

    def test_untracked_counts_toward_ceiling(self):
        estimates = [_estimate(8.0), _estimate(8.0, "ABC-2"), _estimate(4.0, None)]

        capped = cap_day(estimates, EstimationConfig())

        assert sum(e.hours for e in capped) <= 16.0


class TestAssemble:
    """Tests for assemble and summarize."""

    def test_every_requested_day_is_emitted(self):
        days = date_range(date(2024, 3, 3), date(2024, 3, 5))

        result = assemble(days, {DAY: [_estimate(2.0)]}, EstimationConfig())

        assert [d.date for d in result] == days
        assert not result[0].has_work
        assert result[1].tracked_hours == 2.0
        assert not result[2].has_work

    def test_tasks_split_and_ordered_by_start(self):
        estimates = [
            _estimate(1.0, "ABC-2", hour=14),
            _estimate(0.5, None, hour=8),
            _estimate(2.0, "ABC-1", hour=9),
        ]

        day = assemble([DAY], {DAY: estimates}, EstimationConfig())[0]

        assert [t.issue_id for t in day.tracked_tasks] == ["ABC-1", "ABC-2"]
        assert day.untracked_tasks[0].issue_id is None
        assert day.untracked_tasks[0].task_id == "Untracked work"
        assert day.tracked_tasks[0].commits == 1

    def test_ceiling_is_applied(self):
        estimates = [_estimate(8.0), _estimate(8.0, "ABC-2"), _estimate(4.0, "ABC-3")]

        day = assemble([DAY], {DAY: estimates}, EstimationConfig())[0]

        assert day.total_hours <= 16.0

    def test_summarize(self, make_commit):
        commits = [
            make_commit(datetime(2024, 3, 4, 9), issue_id="ABC-1", message="ABC-1 a"),
            make_commit(datetime(2024, 3, 4, 10), issue_id="ABC-1", message="ABC-1 b"),
            make_commit(datetime(2024, 3, 4, 11), issue_id="ABC-2", message="ABC-2 c"),
            make_commit(datetime(2024, 3, 4, 12), message="Untracked"),
        ]

        assert summarize(commits) == (4, 3, 2)
        assert summarize([]) == (0, 0, 0)
