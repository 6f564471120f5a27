"""Tests for backfilling heavy first days into light days."""

from datetime import date, datetime

from gitsheet.estimation.backfill import backfill, backfill_percentage
from gitsheet.estimation.daily import estimate_clusters
from gitsheet.estimation.grouping import build_task_lifecycles, group_commits
from gitsheet.models import EstimationConfig

LIGHT_DAY = date(2024, 3, 4)
HEAVY_DAY = date(2024, 3, 5)


def _estimates(commits, config):
    lifecycles = build_task_lifecycles(commits)
    return estimate_clusters(group_commits(commits, lifecycles), lifecycles, config), lifecycles


def _tracked(estimates):
    return sum(e.hours for e in estimates if e.has_issue)


def _light_then_heavy(make_commit, light_day=LIGHT_DAY):
    return [
        make_commit(datetime.combine(light_day, datetime.min.time()).replace(hour=10),
                    message="ABC-1 Add sidebar", issue_id="ABC-1", lines_added=25),
        make_commit(datetime(2024, 3, 5, 10), message="ABC-2 Add report page", issue_id="ABC-2", lines_added=600),
        make_commit(datetime(2024, 3, 5, 14), message="ABC-3 Add export", issue_id="ABC-3", lines_added=300),
    ]


def test_backfill_percentage():
    config = EstimationConfig()

    assert backfill_percentage(800, config) == 0.40
    assert backfill_percentage(500, config) == 0.40
    assert backfill_percentage(300, config) == 0.35
    assert backfill_percentage(299, config) == 0.30


def test_light_day_followed_by_heavy_day(make_commit):
    """Part of the largest new task moves to the light day."""
    config = EstimationConfig()
    estimates, lifecycles = _estimates(_light_then_heavy(make_commit), config)
    assert _tracked(estimates[LIGHT_DAY]) == 1.0
    assert _tracked(estimates[HEAVY_DAY]) == 9.5

    result = backfill(estimates, lifecycles, config)

    light = result[LIGHT_DAY]
    assert _tracked(light) == 3.5
    moved = [e for e in light if e.is_backfill]
    assert len(moved) == 1
    assert moved[0].task_id == "ABC-2"
    # 40% of 6.0h, limited to the 2.5h the heavy day can spare
    assert moved[0].hours == 2.5
    assert moved[0].commit_count == 0
    assert moved[0].start_time == datetime(2024, 3, 4, 9, 0)

    heavy = {e.task_id: e.hours for e in result[HEAVY_DAY]}
    assert heavy == {"ABC-2": 3.5, "ABC-3": 3.5}
    assert _tracked(result[HEAVY_DAY]) >= config.heavy_day_threshold


def test_backfill_conserves_tracked_hours(make_commit):
    config = EstimationConfig()
    estimates, lifecycles = _estimates(_light_then_heavy(make_commit), config)

    result = backfill(estimates, lifecycles, config)

    before = sum(_tracked(day) for day in estimates.values())
    after = sum(_tracked(day) for day in result.values())
    assert abs(before - after) <= 0.5


def test_input_is_not_modified(make_commit):
    config = EstimationConfig()
    estimates, lifecycles = _estimates(_light_then_heavy(make_commit), config)
    snapshot = {day: list(items) for day, items in estimates.items()}

    backfill(estimates, lifecycles, config)

    assert estimates == snapshot


def test_gap_too_large(make_commit):
    """Days more than two calendar days apart are not paired."""
    config = EstimationConfig()
    estimates, lifecycles = _estimates(_light_then_heavy(make_commit, light_day=date(2024, 3, 1)), config)

    result = backfill(estimates, lifecycles, config)

    assert not any(e.is_backfill for items in result.values() for e in items)


def test_light_day_must_be_light(make_commit):
    config = EstimationConfig(light_day_threshold=1.0)
    estimates, lifecycles = _estimates(_light_then_heavy(make_commit), config)

    result = backfill(estimates, lifecycles, config)

    assert result == estimates


def test_only_first_day_tasks_are_candidates(make_commit):
    """A task that already started earlier is follow-up work, not backfilled."""
    config = EstimationConfig()
    commits = _light_then_heavy(make_commit) + [
        make_commit(datetime(2024, 3, 1, 10), message="ABC-2 Add report page", issue_id="ABC-2", lines_added=5),
        make_commit(datetime(2024, 3, 1, 11), message="ABC-3 Add export", issue_id="ABC-3", lines_added=5),
    ]
    estimates, lifecycles = _estimates(commits, config)

    result = backfill(estimates, lifecycles, config)

    assert not any(e.is_backfill for items in result.values() for e in items)


def test_small_surplus_is_not_moved(make_commit):
    """A heavy day barely over the threshold has nothing worth moving."""
    config = EstimationConfig(heavy_day_threshold=9.0)
    estimates, lifecycles = _estimates(_light_then_heavy(make_commit), config)

    result = backfill(estimates, lifecycles, config)

    # Only 0.5h above the threshold, below the 1.5h minimum
    assert result == estimates


def test_empty_input():
    assert backfill({}, {}, EstimationConfig()) == {}


def test_days_before_start_are_not_filled(make_commit):
    """Context days ahead of the reported range never receive hours."""
    config = EstimationConfig()
    estimates, lifecycles = _estimates(_light_then_heavy(make_commit), config)

    result = backfill(estimates, lifecycles, config, start_date=HEAVY_DAY)

    assert result == estimates


def test_start_date_allows_backfill_inside_range(make_commit):
    config = EstimationConfig()
    estimates, lifecycles = _estimates(_light_then_heavy(make_commit), config)

    result = backfill(estimates, lifecycles, config, start_date=LIGHT_DAY)

    assert _tracked(result[LIGHT_DAY]) == 3.5
