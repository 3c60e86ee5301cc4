from datetime import date, datetime

__all__ = ["now", "today"]


def today() -> date:
    return date.today()


def now() -> datetime:
    return datetime.now()
