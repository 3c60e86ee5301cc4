from collections.abc import Sequence

from cadence.core.models import CompletionSummary, DailyHistoryEntry, Task, UserStats

from . import ansi
from .dates import format_days
from .format import format_percent, format_stats

__all__ = [
    "render_history",
    "render_stats",
    "render_summary",
]


def _name_width(tasks: Sequence[Task]) -> int:
    return max((len(t.name) for t in tasks), default=0)


def render_stats(tasks: Sequence[Task], stats: UserStats, window_days: int) -> str:
    if not tasks:
        return "no tasks"
    width = _name_width(tasks)
    lines = [ansi.bold(f"STREAKS ({window_days}d):")]
    for task in tasks:
        task_stats = stats.task_streaks.get(task.id)
        if task_stats is None:
            continue
        name = ansi.paint(task.color, task.name.ljust(width))
        days = ansi.muted(format_days(task.days).ljust(15))
        lines.append(f"  {name}  {days} {format_stats(task_stats)}")
    lines.append(f"consistency: {format_percent(stats.consistency_percentage)}")
    return "\n".join(lines)


def _names(tasks: Sequence[Task]) -> str:
    return ", ".join(t.name for t in tasks)


def render_history(history: Sequence[DailyHistoryEntry]) -> str:
    lines = []
    for entry in history:
        label = entry.date.strftime("%a %d %b").lower()
        if not (entry.completed_tasks or entry.missed_tasks or entry.streak_broken_tasks):
            lines.append(f"{ansi.muted(label)}  {ansi.muted('rest')}")
            continue
        parts = []
        if entry.completed_tasks:
            parts.append(ansi.green(f"✓ {_names(entry.completed_tasks)}"))
        if entry.streak_broken_tasks:
            parts.append(ansi.red(f"! {_names(entry.streak_broken_tasks)}"))
        if entry.missed_tasks:
            parts.append(ansi.gray(f"✗ {_names(entry.missed_tasks)}"))
        lines.append(f"{label}  {'  '.join(parts)}")
    return "\n".join(lines)


def render_summary(stats: UserStats, totals: CompletionSummary, window_days: int) -> str:
    lines = [
        ansi.bold(f"SUMMARY ({window_days}d):"),
        f"  tasks:        {stats.total_tasks}",
        f"  completions:  {totals.total_completions}",
        f"  active days:  {totals.unique_days}",
        f"  per day:      {totals.average_per_day:.2f}",
        f"  consistency:  {format_percent(stats.consistency_percentage)}",
    ]
    if stats.task_streaks:
        best = max(s.longest_streak for s in stats.task_streaks.values())
        broken = sum(1 for s in stats.task_streaks.values() if s.is_streak_broken_today)
        lines.append(f"  best streak:  {best}")
        if broken:
            lines.append(f"  {ansi.red(f'{broken} streak(s) broken today')}")
    return "\n".join(lines)
