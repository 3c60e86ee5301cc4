import re
import sqlite3
import uuid
from collections.abc import Iterable
from datetime import date

from fncli import UsageError, cli

from . import db
from .core.errors import ConflictError, ValidationError
from .core.models import Task
from .lib import ansi, clock
from .lib.converters import days_to_column, row_to_task
from .lib.dates import WEEKDAYS, parse_weekdays, weekday_name
from .lib.errors import echo
from .lib.format import format_status, format_task
from .lib.fuzzy import find_in_pool, find_in_pool_exact

__all__ = [
    "add_task",
    "delete_task",
    "find_task",
    "find_task_exact",
    "get_task",
    "get_tasks",
    "get_tasks_for_day",
    "search_tasks",
    "update_task",
]


# ── domain ───────────────────────────────────────────────────────────────────

_TASK_COLS = "id, name, color, time, days, created_on, updated_at"
_TIME_RE = re.compile(r"^([01]?\d|2[0-3]):[0-5]\d$")


def _fetch_tasks(
    conn: sqlite3.Connection, where: str, params: tuple[object, ...] = ()
) -> list[Task]:
    cursor = conn.execute(f"SELECT {_TASK_COLS} FROM tasks WHERE {where}", params)  # noqa: S608
    return [row_to_task(row) for row in cursor.fetchall()]


def _clean_name(name: str) -> str:
    cleaned = name.strip()
    if not cleaned:
        raise ValidationError("task name cannot be empty")
    return cleaned


def _clean_time(time: str | None) -> str | None:
    if time is None or not time.strip():
        return None
    time = time.strip()
    if not _TIME_RE.match(time):
        raise ValidationError(f"invalid time '{time}', use HH:MM")
    hours, minutes = time.split(":")
    return f"{int(hours):02d}:{minutes}"


def _clean_color(color: str) -> str:
    color = color.strip().lower()
    if color not in ansi.TASK_COLORS:
        raise ValidationError(f"unknown color '{color}', pick one of {', '.join(ansi.TASK_COLORS)}")
    return color


def add_task(
    name: str,
    days: str | Iterable[str],
    time: str | None = None,
    color: str = "blue",
    created_on: date | None = None,
) -> str:
    task_id = str(uuid.uuid4())
    created = created_on or clock.today()
    with db.get_db() as conn:
        try:
            conn.execute(
                "INSERT INTO tasks (id, name, color, time, days, created_on) VALUES (?, ?, ?, ?, ?, ?)",
                (
                    task_id,
                    _clean_name(name),
                    _clean_color(color),
                    _clean_time(time),
                    days_to_column(parse_weekdays(days)),
                    created.isoformat(),
                ),
            )
        except sqlite3.IntegrityError as e:
            raise ConflictError(f"Failed to add task: {e}") from e
    return task_id


def get_task(task_id: str) -> Task | None:
    with db.get_db() as conn:
        tasks = _fetch_tasks(conn, "id = ?", (task_id,))
    return tasks[0] if tasks else None


def get_tasks() -> list[Task]:
    with db.get_db() as conn:
        return _fetch_tasks(conn, "1 = 1 ORDER BY created_on ASC, rowid ASC")


def update_task(
    task_id: str,
    name: str | None = None,
    days: str | Iterable[str] | None = None,
    time: str | None = None,
    color: str | None = None,
) -> Task | None:
    updates: dict[str, object] = {}
    if name is not None:
        updates["name"] = _clean_name(name)
    if days is not None:
        updates["days"] = days_to_column(parse_weekdays(days))
    if time is not None:
        updates["time"] = _clean_time(time)
    if color is not None:
        updates["color"] = _clean_color(color)

    if not updates:
        return get_task(task_id)

    updates["updated_at"] = clock.now().isoformat()
    assignments = ", ".join(f"{col} = ?" for col in updates)
    with db.get_db() as conn:
        cursor = conn.execute(
            f"UPDATE tasks SET {assignments} WHERE id = ?",  # noqa: S608
            (*updates.values(), task_id),
        )
        if cursor.rowcount == 0:
            return None
    return get_task(task_id)


def delete_task(task_id: str) -> bool:
    with db.get_db() as conn:
        cursor = conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
        return cursor.rowcount > 0


def get_tasks_for_day(day: date | str) -> list[Task]:
    """Tasks scheduled on a weekday, ordered by time of day (untimed last)."""
    name = weekday_name(day) if isinstance(day, date) else day.strip().lower()
    if name not in WEEKDAYS:
        raise ValidationError(f"unknown weekday '{day}'")
    with db.get_db() as conn:
        return _fetch_tasks(
            conn,
            "',' || days || ',' LIKE ? ORDER BY time IS NULL, time ASC, created_on ASC",
            (f"%,{name},%",),
        )


def search_tasks(query: str) -> list[Task]:
    pattern = f"%{query.strip()}%"
    with db.get_db() as conn:
        return _fetch_tasks(
            conn, "name LIKE ? COLLATE NOCASE ORDER BY created_on ASC, rowid ASC", (pattern,)
        )


def find_task(ref: str) -> Task | None:
    return find_in_pool(ref, get_tasks())


def find_task_exact(ref: str) -> Task | None:
    return find_in_pool_exact(ref, get_tasks())


# ── cli ──────────────────────────────────────────────────────────────────────


@cli("cadence", flags={"time": ["-t", "--time"], "color": ["-c", "--color"]})
def add(name: str, days: str, time: str | None = None, color: str = "blue") -> None:
    """Add a recurring task (days: mon,wed,fri | daily | weekdays | weekends)"""
    try:
        task_id = add_task(name, days, time=time, color=color)
    except ValidationError as e:
        raise UsageError(str(e)) from e
    task = get_task(task_id)
    if task:
        echo(format_status("+", format_task(task), task.id))


@cli("cadence", name="ls")
def list_tasks() -> None:
    """List tasks"""
    items = get_tasks()
    if not items:
        echo("no tasks")
        return
    for task in items:
        echo(format_task(task, show_id=True))


@cli("cadence", flags={"time": ["-t", "--time"], "color": ["-c", "--color"]})
def edit(
    ref: str,
    name: str | None = None,
    days: str | None = None,
    time: str | None = None,
    color: str | None = None,
) -> None:
    """Edit a task's name, days, time or color"""
    from .lib.resolve import resolve_task

    task = resolve_task(ref)
    try:
        updated = update_task(task.id, name=name, days=days, time=time, color=color)
    except ValidationError as e:
        raise UsageError(str(e)) from e
    if updated:
        echo(format_status("~", format_task(updated), updated.id))


@cli("cadence")
def rm(ref: str) -> None:
    """Delete a task and its completions"""
    from .lib.resolve import resolve_task

    task = resolve_task(ref)
    delete_task(task.id)
    echo(format_status("x", ansi.muted(task.name), task.id))


@cli("cadence")
def today() -> None:
    """Show tasks due today"""
    from .completions import get_completions_for_date

    day = clock.today()
    due = [t for t in get_tasks_for_day(day) if t.created_on <= day]
    if not due:
        echo("nothing due today")
        return
    done = {c.task_id for c in get_completions_for_date(day)}
    echo(ansi.bold(day.strftime("%a · %-d %b %Y").lower()))
    for task in due:
        echo("  " + format_task(task, checked=task.id in done, show_days=False))
