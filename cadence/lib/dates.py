import re
from collections.abc import Iterable
from datetime import date, datetime, timedelta

from dateutil import parser as dateutil_parser
from dateutil.parser import ParserError

from cadence.core.errors import ValidationError

__all__ = [
    "WEEKDAYS",
    "as_date",
    "format_days",
    "last_n_days",
    "parse_day",
    "parse_weekdays",
    "weekday_name",
]

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

_DAY_ALIASES = {name[:3]: name for name in WEEKDAYS} | {
    "tues": "tuesday",
    "thur": "thursday",
    "thurs": "thursday",
}

_DAY_GROUPS = {
    "daily": WEEKDAYS,
    "everyday": WEEKDAYS,
    "weekdays": WEEKDAYS[:5],
    "weekends": WEEKDAYS[5:],
}

_SPLIT_RE = re.compile(r"[\s,]+")
_DATETIME_SEP_RE = re.compile(r"[T ]")


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]


def as_date(value: date | datetime | str) -> date:
    """Coerce an engine input into a calendar date.

    Accepts date, datetime (time dropped) and ISO strings (``2024-01-15``, ``2024-01-15T08:00:00``, ``2024-01-15 08:00:00``).
    Anything else is rejected rather than guessed.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        try:
            return date.fromisoformat(_DATETIME_SEP_RE.split(value.strip(), maxsplit=1)[0])
        except ValueError:
            pass
    raise ValidationError(f"invalid date: {value!r}")


def parse_weekdays(value: str | Iterable[str]) -> frozenset[str]:
    tokens = _SPLIT_RE.split(value.strip()) if isinstance(value, str) else list(value)
    days: set[str] = set()
    for token in tokens:
        key = token.strip().lower()
        if not key:
            continue
        if key in _DAY_GROUPS:
            days.update(_DAY_GROUPS[key])
        elif key in WEEKDAYS:
            days.add(key)
        elif key in _DAY_ALIASES:
            days.add(_DAY_ALIASES[key])
        else:
            raise ValidationError(f"unknown weekday '{token}'")
    return frozenset(days)


def format_days(days: Iterable[str]) -> str:
    ordered = [d for d in WEEKDAYS if d in set(days)]
    if not ordered:
        return "never"
    if len(ordered) == len(WEEKDAYS):
        return "daily"
    if tuple(ordered) == WEEKDAYS[:5]:
        return "weekdays"
    if tuple(ordered) == WEEKDAYS[5:]:
        return "weekends"
    return "·".join(d[:3] for d in ordered)


def last_n_days(today: date, days: int) -> list[date]:
    """Oldest-first dates of the ``days``-long window ending on ``today``."""
    if days < 1:
        raise ValidationError(f"window must cover at least one day, got {days}")
    start = today - timedelta(days=days - 1)
    return [start + timedelta(days=i) for i in range(days)]


def parse_day(text: str, today: date) -> date:
    """Parses a check-off day ('today', 'yesterday', 'mon', 'YYYY-MM-DD', ...).

    Weekday names resolve to the most recent occurrence, never the future.
    """
    lowered = text.strip().lower()
    if lowered == "today":
        return today
    if lowered == "yesterday":
        return today - timedelta(days=1)
    name = _DAY_ALIASES.get(lowered, lowered)
    if name in WEEKDAYS:
        days_back = (today.weekday() - WEEKDAYS.index(name)) % 7
        return today - timedelta(days=days_back)
    try:
        return dateutil_parser.parse(
            text, default=datetime(today.year, today.month, today.day)
        ).date()
    except (ParserError, ValueError, OverflowError) as e:
        raise ValidationError(f"invalid date '{text}'") from e
