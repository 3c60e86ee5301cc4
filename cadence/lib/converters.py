from datetime import date, datetime
from typing import cast

from cadence.core.models import Completion, Task

from .dates import WEEKDAYS

TaskRow = tuple[object, ...]
CompletionRow = tuple[object, ...]


def _parse_date(val) -> date | None:
    """Parse a date value that may be str or numeric timestamp."""
    if isinstance(val, str) and val:
        return date.fromisoformat(val.split("T")[0])
    if isinstance(val, (int, float)):
        return datetime.fromtimestamp(val).date()
    return None


def _parse_datetime_optional(val) -> datetime | None:
    """Parse an optional datetime value that may be str or numeric timestamp."""
    if isinstance(val, str) and val:
        try:
            return datetime.fromisoformat(val)
        except ValueError:
            return datetime.combine(date.fromisoformat(val), datetime.min.time())
    elif isinstance(val, (int, float)):
        return datetime.fromtimestamp(val)
    return None


def days_to_column(days: frozenset[str]) -> str:
    return ",".join(d for d in WEEKDAYS if d in days)


def _parse_days(val) -> frozenset[str]:
    if not isinstance(val, str) or not val:
        return frozenset()
    return frozenset(d.strip() for d in val.split(",") if d.strip())


def row_to_task(row: TaskRow) -> Task:
    """
    Converts a raw database row from tasks table into a Task object.
    Expected row format: (id, name, color, time, days, created_on, updated_at)
    """
    created_on = _parse_date(row[5])
    if created_on is None:
        raise ValueError(f"task {row[0]} has no created_on")
    return Task(
        id=cast(str, row[0]),
        name=cast(str, row[1]),
        color=cast(str, row[2]) if row[2] else "blue",
        time=cast(str, row[3]) if row[3] is not None else None,
        days=_parse_days(row[4]),
        created_on=created_on,
        updated_at=_parse_datetime_optional(row[6]) if len(row) > 6 else None,
    )


def row_to_completion(row: CompletionRow) -> Completion:
    """
    Converts a raw database row from task_completions into a Completion.
    Expected row format: (id, task_id, completion_date, created_at)
    """
    completion_date = _parse_date(row[2])
    if completion_date is None:
        raise ValueError(f"completion {row[0]} has no completion_date")
    return Completion(
        id=cast(int, row[0]),
        task_id=cast(str, row[1]),
        completion_date=completion_date,
        created_at=_parse_datetime_optional(row[3]) if len(row) > 3 else None,
    )
