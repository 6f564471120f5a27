"""Tests for weekly scaling."""

from datetime import date, datetime, time, timedelta

from gitsheet.estimation.daily import TaskEstimate
from gitsheet.estimation.scaling import (
    group_by_week,
    iso_week,
    scale_to_weekly_target,
    week_scale_factor,
    week_target,
)
from gitsheet.models import EstimationConfig

MONDAY = date(2024, 3, 4)


def _estimate(day, hours, issue_id="ABC-1", hour=10):
    return TaskEstimate(
        title=f"{issue_id or 'Untracked'} work",
        task_id=issue_id or "Untracked work",
        issue_id=issue_id,
        has_issue=issue_id is not None,
        hours=hours,
        start_time=datetime.combine(day, time(hour=hour)),
    )


def _week(hours_per_day):
    """One estimate per weekday starting on MONDAY."""
    return {
        MONDAY + timedelta(days=offset): [_estimate(MONDAY + timedelta(days=offset), hours)]
        for offset, hours in enumerate(hours_per_day)
    }


def test_iso_week_crosses_year_boundary():
    assert iso_week(date(2024, 12, 30)) == (2025, 1)
    assert iso_week(date(2025, 1, 1)) == (2025, 1)
    assert iso_week(date(2024, 12, 29)) == (2024, 52)


def test_group_by_week():
    days = [date(2024, 3, 11), date(2024, 3, 4), date(2024, 3, 10)]

    assert group_by_week(days) == {
        (2024, 10): [date(2024, 3, 4), date(2024, 3, 10)],
        (2024, 11): [date(2024, 3, 11)],
    }


def test_week_target_is_prorated():
    config = EstimationConfig()

    assert week_target(5, config) == 85.0
    assert week_target(6, config) == 85.0
    assert week_target(2, config) == 34.0


def test_week_scale_factor():
    config = EstimationConfig()

    assert week_scale_factor(0.0, 0, config) is None
    assert week_scale_factor(6.0, 5, config) == 1.5
    assert week_scale_factor(200.0, 5, config) == 0.7
    # 85 / 80 is inside the dead-band
    assert week_scale_factor(80.0, 5, config) is None
    assert week_scale_factor(4.0, 2, EstimationConfig(max_scale_factor=20.0)) == 8.5


def test_low_week_is_scaled_up_to_ceiling():
    """A 6h week is far below target, so the factor stops at 1.5."""
    config = EstimationConfig()

    result = scale_to_weekly_target(_week([2.0, 1.0, 1.0, 1.0, 1.0]), config)

    assert [result[day][0].hours for day in sorted(result)] == [3.0, 1.5, 1.5, 1.5, 1.5]


def test_heavy_week_is_scaled_down_to_floor():
    config = EstimationConfig()
    estimates = {}
    for offset in range(5):
        day = MONDAY + timedelta(days=offset)
        estimates[day] = [
            _estimate(day, 8.0, "ABC-1"),
            _estimate(day, 8.0, "ABC-2"),
            _estimate(day, 8.0, "ABC-3"),
            _estimate(day, 2.0, "ABC-4"),
        ]

    result = scale_to_weekly_target(estimates, config)

    # 130h against 85h: factor 0.7, 5.6h rounds to 5.5h and 1.4h to 1.5h
    assert [e.hours for e in result[MONDAY]] == [5.5, 5.5, 5.5, 1.5]


def test_week_near_target_is_untouched():
    config = EstimationConfig()
    estimates = {}
    for offset in range(5):
        day = MONDAY + timedelta(days=offset)
        estimates[day] = [_estimate(day, 8.0, "ABC-1"), _estimate(day, 8.0, "ABC-2")]

    assert scale_to_weekly_target(estimates, config) == estimates


def test_untracked_hours_scale_with_the_week():
    config = EstimationConfig()
    estimates = _week([2.0, 1.0, 1.0, 1.0, 1.0])
    estimates[MONDAY].append(_estimate(MONDAY, 1.0, issue_id=None, hour=15))

    result = scale_to_weekly_target(estimates, config)

    assert result[MONDAY][1].hours == 1.5


def test_week_without_tracked_work_is_skipped():
    config = EstimationConfig()
    estimates = {MONDAY: [_estimate(MONDAY, 1.0, issue_id=None)]}

    assert scale_to_weekly_target(estimates, config) == estimates


def test_weeks_are_scaled_independently():
    config = EstimationConfig()
    estimates = _week([2.0, 1.0, 1.0, 1.0, 1.0])
    next_monday = MONDAY + timedelta(days=7)
    estimates[next_monday] = [_estimate(next_monday, 8.0), _estimate(next_monday, 8.0, "ABC-2")]

    result = scale_to_weekly_target(estimates, config)

    # One day of 16h against a prorated 17h target stays inside the dead-band
    assert [e.hours for e in result[next_monday]] == [8.0, 8.0]
    assert result[MONDAY][0].hours == 3.0


def test_scaled_hours_stay_within_task_bounds():
    config = EstimationConfig()
    estimates = _week([8.0, 0.5, 0.5, 0.5, 0.5])

    result = scale_to_weekly_target(estimates, config)

    assert result[MONDAY][0].hours == 8.0
    assert all(
        config.min_hours_per_task <= e.hours <= config.max_hours_per_task
        for items in result.values()
        for e in items
    )
