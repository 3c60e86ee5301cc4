import sqlite3
from collections import defaultdict
from datetime import date, timedelta

from fncli import UsageError, cli

from . import db
from .core.errors import NotFoundError, ValidationError
from .core.models import Completion
from .lib import ansi, clock
from .lib.converters import row_to_completion
from .lib.dates import as_date, parse_day
from .lib.errors import echo
from .lib.format import format_status

__all__ = [
    "delete_task_completions",
    "get_all_completions",
    "get_completion",
    "get_completions",
    "get_completions_for_date",
    "get_task_completions",
    "is_completed",
    "mark_complete",
    "mark_incomplete",
    "toggle_completion",
]


# ── domain ───────────────────────────────────────────────────────────────────

_COMPLETION_COLS = "id, task_id, completion_date, created_at"


def _fetch_completions(
    conn: sqlite3.Connection, where: str, params: tuple[object, ...] = ()
) -> list[Completion]:
    cursor = conn.execute(
        f"SELECT {_COMPLETION_COLS} FROM task_completions WHERE {where}",  # noqa: S608
        params,
    )
    return [row_to_completion(row) for row in cursor.fetchall()]


def _fetch_one(conn: sqlite3.Connection, task_id: str, day: date) -> Completion | None:
    found = _fetch_completions(
        conn, "task_id = ? AND completion_date = ?", (task_id, day.isoformat())
    )
    return found[0] if found else None


def get_completion(task_id: str, day: date | str) -> Completion | None:
    with db.get_db() as conn:
        return _fetch_one(conn, task_id, as_date(day))


def is_completed(task_id: str, day: date | str) -> bool:
    return get_completion(task_id, day) is not None


def mark_complete(task_id: str, day: date | str) -> Completion:
    """Record a completion. Completing twice returns the existing record."""
    day = as_date(day)
    with db.get_db() as conn:
        try:
            conn.execute(
                "INSERT INTO task_completions (task_id, completion_date, created_at) VALUES (?, ?, ?)",
                (task_id, day.isoformat(), clock.now().isoformat()),
            )
        except sqlite3.IntegrityError as e:
            existing = _fetch_one(conn, task_id, day)
            if existing:
                return existing
            raise NotFoundError(f"no task '{task_id}'") from e
        completion = _fetch_one(conn, task_id, day)
    if completion is None:
        raise NotFoundError(f"completion for '{task_id}' on {day} vanished")
    return completion


def mark_incomplete(task_id: str, day: date | str) -> bool:
    with db.get_db() as conn:
        cursor = conn.execute(
            "DELETE FROM task_completions WHERE task_id = ? AND completion_date = ?",
            (task_id, as_date(day).isoformat()),
        )
        return cursor.rowcount > 0


def toggle_completion(task_id: str, day: date | str) -> bool:
    """Flip completion for a day. Returns True when the task is now complete."""
    if is_completed(task_id, day):
        mark_incomplete(task_id, day)
        return False
    mark_complete(task_id, day)
    return True


def get_completions(days: int = 30, today: date | None = None) -> dict[date, list[str]]:
    """Completed task ids per date over the last ``days`` days."""
    if days < 1:
        raise ValidationError(f"window must cover at least one day, got {days}")
    end = today or clock.today()
    start = end - timedelta(days=days - 1)
    with db.get_db() as conn:
        found = _fetch_completions(
            conn,
            "completion_date >= ? AND completion_date <= ? ORDER BY completion_date DESC, id ASC",
            (start.isoformat(), end.isoformat()),
        )
    by_date: dict[date, list[str]] = defaultdict(list)
    for completion in found:
        by_date[completion.completion_date].append(completion.task_id)
    return dict(by_date)


def get_task_completions(
    task_id: str, start: date | str | None = None, end: date | str | None = None
) -> list[Completion]:
    """Completions for one task, newest first, optionally bounded."""
    where = ["task_id = ?"]
    params: list[object] = [task_id]
    if start is not None:
        where.append("completion_date >= ?")
        params.append(as_date(start).isoformat())
    if end is not None:
        where.append("completion_date <= ?")
        params.append(as_date(end).isoformat())
    with db.get_db() as conn:
        return _fetch_completions(
            conn, f"{' AND '.join(where)} ORDER BY completion_date DESC", tuple(params)
        )


def get_completions_for_date(day: date | str) -> list[Completion]:
    with db.get_db() as conn:
        return _fetch_completions(
            conn, "completion_date = ? ORDER BY created_at ASC, id ASC", (as_date(day).isoformat(),)
        )


def get_all_completions(since: date | None = None) -> list[Completion]:
    with db.get_db() as conn:
        if since is None:
            return _fetch_completions(conn, "1 = 1 ORDER BY completion_date ASC, id ASC")
        return _fetch_completions(
            conn, "completion_date >= ? ORDER BY completion_date ASC, id ASC", (since.isoformat(),)
        )


def delete_task_completions(task_id: str) -> int:
    with db.get_db() as conn:
        cursor = conn.execute("DELETE FROM task_completions WHERE task_id = ?", (task_id,))
        return cursor.rowcount


# ── cli ──────────────────────────────────────────────────────────────────────


def _resolve_day(on: str | None) -> date:
    today = clock.today()
    if on is None:
        return today
    try:
        day = parse_day(on, today)
    except ValidationError as e:
        raise UsageError(str(e)) from e
    if day > today:
        raise UsageError(f"cannot check off {day.isoformat()}, it is in the future")
    return day


@cli("cadence", flags={"on": ["--on"]})
def done(ref: str, on: str | None = None) -> None:
    """Mark a task complete (today, or --on yesterday|mon|YYYY-MM-DD)"""
    from .lib.resolve import resolve_task

    task = resolve_task(ref)
    day = _resolve_day(on)
    mark_complete(task.id, day)
    echo(format_status(ansi.green("✓"), f"{task.name} {ansi.muted(day.isoformat())}", task.id))


@cli("cadence", flags={"on": ["--on"]})
def undo(ref: str, on: str | None = None) -> None:
    """Remove a task's completion (today, or --on DAY)"""
    from .lib.resolve import resolve_task

    task = resolve_task(ref)
    day = _resolve_day(on)
    if mark_incomplete(task.id, day):
        echo(format_status("□", f"{task.name} {ansi.muted(day.isoformat())}", task.id))
    else:
        echo(f"{task.name} was not completed on {day.isoformat()}")
