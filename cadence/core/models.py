import dataclasses
from datetime import date, datetime


@dataclasses.dataclass(frozen=True)
class Task:
    id: str
    name: str
    days: frozenset[str]
    created_on: date
    time: str | None = None
    color: str = "blue"
    updated_at: datetime | None = None


@dataclasses.dataclass(frozen=True)
class Completion:
    task_id: str
    completion_date: date
    id: int | None = None
    created_at: datetime | None = None


@dataclasses.dataclass(frozen=True)
class StreakStats:
    current_streak: int = 0
    previous_streak: int = 0
    longest_streak: int = 0
    completion_count: int = 0
    is_streak_broken_today: bool = False


@dataclasses.dataclass(frozen=True)
class DailyHistoryEntry:
    date: date
    completed_tasks: list[Task] = dataclasses.field(default_factory=list, hash=False)
    missed_tasks: list[Task] = dataclasses.field(default_factory=list, hash=False)
    streak_broken_tasks: list[Task] = dataclasses.field(default_factory=list, hash=False)


@dataclasses.dataclass(frozen=True)
class CompletionSummary:
    total_completions: int = 0
    unique_days: int = 0
    average_per_day: float = 0.0


@dataclasses.dataclass(frozen=True)
class UserStats:
    total_tasks: int = 0
    active_days: int = 0
    total_completions: int = 0
    consistency_percentage: int = 100
    task_streaks: dict[str, StreakStats] = dataclasses.field(default_factory=dict, hash=False)
