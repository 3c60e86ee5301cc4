"""Streak engine.

Pure functions deriving streak state from a task's schedule and its
completion evidence. Every function takes ``today`` (or the day under
inspection) explicitly; nothing here reads the clock or touches the store.

Only *due* dates take part in streak logic: a date is due for a task when its
weekday is scheduled and it falls on or after the task's creation date.
"""

from collections import defaultdict
from collections.abc import Iterable, Iterator, Mapping
from datetime import date, datetime, timedelta
from typing import Any

from .core.errors import ValidationError
from .core.models import Completion, Task
from .lib.dates import as_date, last_n_days, weekday_name

__all__ = [
    "DEFAULT_LONGEST_WINDOW_DAYS",
    "DEFAULT_WINDOW_DAYS",
    "CompletionIndex",
    "as_index",
    "completion_count",
    "consistency_percentage",
    "current_streak",
    "due_dates",
    "is_due",
    "is_streak_broken_on_day",
    "is_task_missed_on_day",
    "longest_streak",
    "previous_streak",
]

DEFAULT_WINDOW_DAYS = 30
DEFAULT_LONGEST_WINDOW_DAYS = 365

DateLike = date | datetime | str
CompletionRecord = Completion | Mapping[str, Any] | tuple[Any, DateLike]
CompletionsByDate = Mapping[DateLike, Iterable[Any]]

_ONE_DAY = timedelta(days=1)


class CompletionIndex:
    """Per-task set of completed dates, built once from either input shape.

    Task ids are compared by their string form so integer ids from the store
    match string ids from a date-keyed mapping.
    """

    def __init__(self, by_task: Mapping[Any, Iterable[DateLike]] | None = None):
        self._by_task: dict[str, frozenset[date]] = {
            str(task_id): frozenset(as_date(d) for d in days)
            for task_id, days in (by_task or {}).items()
        }

    @classmethod
    def from_mapping(cls, by_date: CompletionsByDate) -> "CompletionIndex":
        by_task: dict[str, set[date]] = defaultdict(set)
        for day, task_ids in by_date.items():
            parsed = as_date(day)
            for task_id in task_ids:
                by_task[str(task_id)].add(parsed)
        return cls(by_task)

    @classmethod
    def from_records(cls, records: Iterable[CompletionRecord]) -> "CompletionIndex":
        by_task: dict[str, set[date]] = defaultdict(set)
        for record in records:
            task_id, day = _unpack_record(record)
            by_task[str(task_id)].add(as_date(day))
        return cls(by_task)

    def is_completed(self, task_id: Any, day: date) -> bool:
        return day in self._by_task.get(str(task_id), frozenset())

    def dates_for(self, task_id: Any) -> frozenset[date]:
        return self._by_task.get(str(task_id), frozenset())

    def records(self) -> Iterator[tuple[str, date]]:
        for task_id, days in self._by_task.items():
            for day in sorted(days):
                yield task_id, day

    def __len__(self) -> int:
        return sum(len(days) for days in self._by_task.values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CompletionIndex):
            return NotImplemented
        return self._by_task == other._by_task

    def __repr__(self) -> str:
        return f"CompletionIndex(tasks={len(self._by_task)}, completions={len(self)})"


def _unpack_record(record: CompletionRecord) -> tuple[Any, DateLike]:
    if isinstance(record, Completion):
        return record.task_id, record.completion_date
    if isinstance(record, Mapping):
        try:
            return record["task_id"], record["completion_date"]
        except KeyError as e:
            raise ValidationError(f"completion record missing {e.args[0]!r}") from e
    if isinstance(record, tuple) and len(record) == 2:
        return record
    raise ValidationError(f"unrecognised completion record: {record!r}")


def as_index(
    completions: "CompletionIndex | CompletionsByDate | Iterable[CompletionRecord]",
) -> CompletionIndex:
    if isinstance(completions, CompletionIndex):
        return completions
    if isinstance(completions, Mapping):
        return CompletionIndex.from_mapping(completions)
    return CompletionIndex.from_records(completions)


def _check_window(window_days: int) -> None:
    if window_days < 1:
        raise ValidationError(f"window must cover at least one day, got {window_days}")


def is_due(task: Task, day: DateLike) -> bool:
    day = as_date(day)
    return day >= task.created_on and weekday_name(day) in task.days


def _iter_due(task: Task, start: date, end: date) -> Iterator[date]:
    day = max(start, task.created_on)
    while day <= end:
        if weekday_name(day) in task.days:
            yield day
        day += _ONE_DAY


def _iter_due_backward(task: Task, end: date) -> Iterator[date]:
    day = end
    while day >= task.created_on:
        if weekday_name(day) in task.days:
            yield day
        day -= _ONE_DAY


def due_dates(
    task: Task, window_start: DateLike, window_end: DateLike, require_schedule: bool = False
) -> list[date]:
    start, end = as_date(window_start), as_date(window_end)
    if end < start:
        raise ValidationError(f"window end {end} is before window start {start}")
    if require_schedule and not task.days:
        raise ValidationError(f"task '{task.name}' has no scheduled weekdays")
    return list(_iter_due(task, start, end))


def current_streak(task: Task, completions, today: DateLike) -> int:
    index = as_index(completions)
    streak = 0
    for day in _iter_due_backward(task, as_date(today)):
        if not index.is_completed(task.id, day):
            break
        streak += 1
    return streak


def previous_streak(task: Task, completions, today: DateLike) -> int:
    """Length of the completed run just before the current streak's gap.

    Walking back from today: first consume the current streak and the gap
    that ends it, then count the run that follows until the next gap. With no
    gap at all there is no previous streak.
    """
    index = as_index(completions)
    past_gap = False
    streak = 0
    for day in _iter_due_backward(task, as_date(today)):
        completed = index.is_completed(task.id, day)
        if not past_gap:
            past_gap = not completed
            continue
        if not completed:
            break
        streak += 1
    return streak


def longest_streak(
    task: Task,
    completions,
    today: DateLike,
    window_days: int = DEFAULT_LONGEST_WINDOW_DAYS,
) -> int:
    _check_window(window_days)
    index = as_index(completions)
    end = as_date(today)
    longest = run = 0
    for day in _iter_due(task, end - timedelta(days=window_days - 1), end):
        if index.is_completed(task.id, day):
            run += 1
            longest = max(longest, run)
        else:
            run = 0
    return longest


def completion_count(
    task: Task,
    completions,
    today: DateLike,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> int:
    """Completion records inside the window, scheduled weekday or not."""
    _check_window(window_days)
    index = as_index(completions)
    end = as_date(today)
    start = max(end - timedelta(days=window_days - 1), task.created_on)
    return sum(1 for day in index.dates_for(task.id) if start <= day <= end)


def is_streak_broken_on_day(task: Task, day: DateLike, completions) -> bool:
    index = as_index(completions)
    day = as_date(day)
    if not is_due(task, day) or index.is_completed(task.id, day):
        return False
    run = 0
    for prev in _iter_due_backward(task, day - _ONE_DAY):
        if not index.is_completed(task.id, prev):
            break
        run += 1
    return run >= 2


def is_task_missed_on_day(task: Task, day: DateLike, completions) -> bool:
    index = as_index(completions)
    day = as_date(day)
    if not is_due(task, day) or index.is_completed(task.id, day):
        return False
    return not is_streak_broken_on_day(task, day, index)


def _percent(part: int, whole: int) -> int:
    # half-up, integer only
    return (200 * part + whole) // (2 * whole)


def consistency_percentage(
    tasks: Iterable[Task],
    completions,
    today: DateLike,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> int:
    _check_window(window_days)
    index = as_index(completions)
    tasks = list(tasks)
    total_due = total_completed = 0
    for day in last_n_days(as_date(today), window_days):
        for task in tasks:
            if not is_due(task, day):
                continue
            total_due += 1
            if index.is_completed(task.id, day):
                total_completed += 1
    if total_due == 0:
        return 100
    return _percent(total_completed, total_due)
