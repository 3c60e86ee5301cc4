import pytest

from cadence.completions import (
    delete_task_completions,
    get_all_completions,
    get_completion,
    get_completions,
    get_completions_for_date,
    get_task_completions,
    is_completed,
    mark_complete,
    mark_incomplete,
    toggle_completion,
)
from cadence.core.errors import NotFoundError, ValidationError
from cadence.stats import load_snapshot, task_streak_stats
from cadence.tasks import add_task
from tests.conftest import TODAY, d


def test_mark_complete_is_idempotent(tmp_cadence_dir):
    task_id = add_task("run", "mon")
    first = mark_complete(task_id, TODAY)
    second = mark_complete(task_id, "2024-01-15")
    assert first.id == second.id
    assert first.completion_date == TODAY
    assert first.created_at is not None
    assert len(get_task_completions(task_id)) == 1


def test_mark_complete_unknown_task(tmp_cadence_dir):
    with pytest.raises(NotFoundError):
        mark_complete("nope", TODAY)


def test_mark_incomplete(tmp_cadence_dir):
    task_id = add_task("run", "mon")
    mark_complete(task_id, TODAY)
    assert mark_incomplete(task_id, TODAY)
    assert not mark_incomplete(task_id, TODAY)
    assert get_completion(task_id, TODAY) is None


def test_toggle_completion(tmp_cadence_dir):
    task_id = add_task("run", "mon")
    assert toggle_completion(task_id, TODAY)
    assert is_completed(task_id, TODAY)
    assert not toggle_completion(task_id, TODAY)
    assert not is_completed(task_id, TODAY)


def test_get_completions_groups_by_date(tmp_cadence_dir):
    run = add_task("run", "daily", created_on=d(1))
    gym = add_task("gym", "daily", created_on=d(1))
    mark_complete(run, d(14))
    mark_complete(gym, d(14))
    mark_complete(run, d(15))
    mark_complete(run, d(1))

    by_date = get_completions(days=2)
    assert set(by_date) == {d(14), d(15)}
    assert sorted(by_date[d(14)]) == sorted([run, gym])
    assert by_date[d(15)] == [run]
    assert d(1) in get_completions(days=30, today=TODAY)


def test_get_completions_rejects_empty_window(tmp_cadence_dir):
    with pytest.raises(ValidationError):
        get_completions(days=0)


def test_get_task_completions_newest_first_and_bounded(tmp_cadence_dir):
    task_id = add_task("run", "daily", created_on=d(1))
    for day in (d(3), d(1), d(10)):
        mark_complete(task_id, day)
    assert [c.completion_date for c in get_task_completions(task_id)] == [d(10), d(3), d(1)]
    bounded = get_task_completions(task_id, start=d(2), end="2024-01-09")
    assert [c.completion_date for c in bounded] == [d(3)]


def test_get_completions_for_date(tmp_cadence_dir):
    run = add_task("run", "daily")
    add_task("gym", "daily")
    mark_complete(run, TODAY)
    assert [c.task_id for c in get_completions_for_date(TODAY)] == [run]
    assert get_completions_for_date(d(14)) == []


def test_get_all_completions_since(tmp_cadence_dir):
    task_id = add_task("run", "daily", created_on=d(1))
    for day in (d(5), d(1), d(12)):
        mark_complete(task_id, day)
    assert [c.completion_date for c in get_all_completions()] == [d(1), d(5), d(12)]
    assert [c.completion_date for c in get_all_completions(since=d(5))] == [d(5), d(12)]


def test_delete_task_completions(tmp_cadence_dir):
    task_id = add_task("run", "daily", created_on=d(1))
    mark_complete(task_id, d(1))
    mark_complete(task_id, d(2))
    assert delete_task_completions(task_id) == 2
    assert get_task_completions(task_id) == []


def test_snapshot_feeds_stats(tmp_cadence_dir):
    task_id = add_task("run", "mon,wed,fri", created_on=d(1))
    for day in (d(8), d(10), d(12), d(15)):
        mark_complete(task_id, day)

    tasks, index = load_snapshot(TODAY)
    assert [t.id for t in tasks] == [task_id]
    assert len(index) == 4

    stats = task_streak_stats(tasks[0], index, TODAY)
    assert stats.current_streak == 4
    assert stats.previous_streak == 0
    assert stats.longest_streak == 4
    assert stats.completion_count == 4
    assert not stats.is_streak_broken_today
