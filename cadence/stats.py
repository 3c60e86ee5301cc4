"""Statistics built on the streak engine.

This is the call site for the engine: it defaults ``today`` to the clock and
window sizes to config, builds the completion index once and fans it out to
every engine function.
"""

from collections.abc import Callable, Iterable
from datetime import date, timedelta

from fncli import UsageError, cli

from . import config, streaks
from .core.models import CompletionSummary, DailyHistoryEntry, StreakStats, Task, UserStats
from .lib import clock
from .lib.dates import as_date, last_n_days
from .lib.errors import echo
from .streaks import CompletionIndex, as_index

__all__ = [
    "completion_summary",
    "daily_history",
    "load_snapshot",
    "task_streak_stats",
    "user_stats",
]


def _today(today: date | str | None) -> date:
    return as_date(today) if today is not None else clock.today()


def _window(days: int | None, default: Callable[[], int]) -> int:
    return days if days is not None else default()


def task_streak_stats(
    task: Task,
    completions,
    today: date | str | None = None,
    window_days: int | None = None,
    longest_window_days: int | None = None,
) -> StreakStats:
    day = _today(today)
    index = as_index(completions)
    return StreakStats(
        current_streak=streaks.current_streak(task, index, day),
        previous_streak=streaks.previous_streak(task, index, day),
        longest_streak=streaks.longest_streak(
            task, index, day, _window(longest_window_days, config.get_longest_window)
        ),
        completion_count=streaks.completion_count(
            task, index, day, _window(window_days, config.get_stats_window)
        ),
        is_streak_broken_today=streaks.is_streak_broken_on_day(task, day, index),
    )


def daily_history(
    tasks: Iterable[Task],
    completions,
    today: date | str | None = None,
    days: int | None = None,
) -> list[DailyHistoryEntry]:
    """One entry per day in the window, newest first.

    Each due task lands in exactly one bucket: completed, streak broken or missed.
    """
    index = as_index(completions)
    tasks = list(tasks)
    history = []
    for day in last_n_days(_today(today), _window(days, config.get_stats_window)):
        completed, missed, broken = [], [], []
        for task in tasks:
            if not streaks.is_due(task, day):
                continue
            if index.is_completed(task.id, day):
                completed.append(task)
            elif streaks.is_streak_broken_on_day(task, day, index):
                broken.append(task)
            else:
                missed.append(task)
        history.append(
            DailyHistoryEntry(
                date=day, completed_tasks=completed, missed_tasks=missed, streak_broken_tasks=broken
            )
        )
    history.reverse()
    return history


def completion_summary(
    completions, today: date | str | None = None, days: int | None = None
) -> CompletionSummary:
    index = as_index(completions)
    window = last_n_days(_today(today), _window(days, config.get_stats_window))
    start, end = window[0], window[-1]
    in_window = [day for _task_id, day in index.records() if start <= day <= end]
    active = set(in_window)
    average = round(len(in_window) / len(active), 2) if active else 0.0
    return CompletionSummary(
        total_completions=len(in_window), unique_days=len(active), average_per_day=average
    )


def user_stats(
    tasks: Iterable[Task],
    completions,
    today: date | str | None = None,
) -> UserStats:
    day = _today(today)
    index = as_index(completions)
    tasks = list(tasks)
    window_days = config.get_stats_window()
    summary = completion_summary(index, day, window_days)
    return UserStats(
        total_tasks=len(tasks),
        active_days=summary.unique_days,
        total_completions=summary.total_completions,
        consistency_percentage=streaks.consistency_percentage(tasks, index, day, window_days),
        task_streaks={t.id: task_streak_stats(t, index, day, window_days) for t in tasks},
    )


def load_snapshot(today: date | None = None) -> tuple[list[Task], CompletionIndex]:
    """Fetch every task and the completions the longest window can see."""
    from .completions import get_all_completions
    from .tasks import get_tasks

    day = today or clock.today()
    lookback = max(config.get_longest_window(), config.get_stats_window())
    since = day - timedelta(days=lookback - 1)
    tasks = get_tasks()
    earliest = min((t.created_on for t in tasks), default=since)
    return tasks, CompletionIndex.from_records(get_all_completions(since=min(since, earliest)))


# ── cli ──────────────────────────────────────────────────────────────────────


@cli("cadence", name="stats")
def stats_cmd() -> None:
    """Show streaks per task"""
    from .lib.render import render_stats

    today = clock.today()
    tasks, index = load_snapshot(today)
    echo(render_stats(tasks, user_stats(tasks, index, today), config.get_stats_window()))


@cli("cadence", flags={"days": ["-d", "--days"]})
def history(days: int = 7) -> None:
    """Show what was done, missed and broken day by day"""
    from .lib.render import render_history

    if days < 1:
        raise UsageError("--days must be at least 1")
    today = clock.today()
    tasks, index = load_snapshot(today)
    echo(render_history(daily_history(tasks, index, today, days)))


@cli("cadence")
def summary() -> None:
    """Show totals and consistency"""
    from .lib.render import render_summary

    today = clock.today()
    tasks, index = load_snapshot(today)
    window = config.get_stats_window()
    totals = completion_summary(index, today, window)
    echo(render_summary(user_stats(tasks, index, today), totals, window))
