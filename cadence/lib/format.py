from cadence.core.models import StreakStats, Task

from . import ansi
from .dates import format_days

__all__ = [
    "format_percent",
    "format_stats",
    "format_status",
    "format_task",
]


def format_task(
    task: Task, checked: bool | None = None, show_days: bool = True, show_id: bool = False
) -> str:
    """Format a task for display. Returns: [✓|□] [time] name [days] [id]"""
    parts = []

    if checked is not None:
        parts.append(ansi.muted("✓") if checked else "□")

    if task.time:
        parts.append(ansi.muted(task.time))

    parts.append(ansi.paint(task.color, task.name))

    if show_days:
        parts.append(ansi.muted(format_days(task.days)))

    if show_id:
        parts.append(ansi.muted(f"[{task.id[:8]}]"))

    return " ".join(parts)


def format_stats(stats: StreakStats) -> str:
    parts = [
        f"current {ansi.bold(str(stats.current_streak))}",
        f"previous {stats.previous_streak}",
        f"longest {stats.longest_streak}",
        f"done {stats.completion_count}",
    ]
    line = ansi.muted(" · ").join(parts)
    if stats.is_streak_broken_today:
        line += " " + ansi.red("streak broken")
    return line


def format_percent(value: int) -> str:
    text = f"{value}%"
    if value >= 80:
        return ansi.green(text)
    if value >= 50:
        return ansi.gold(text)
    return ansi.red(text)


def format_status(symbol: str, content: str, item_id: str | None = None) -> str:
    """Format status message for action confirmations."""
    if item_id:
        return f"{symbol} {content} {ansi.muted(f'[{item_id[:8]}]')}"
    return f"{symbol} {content}"
