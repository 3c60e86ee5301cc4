import re
from collections.abc import Callable
from dataclasses import dataclass, fields

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


def _fg(code: int) -> str:
    return f"\033[38;5;{code}m"


@dataclass(frozen=True)
class Theme:
    red: str = _fg(203)
    green: str = _fg(114)
    yellow: str = _fg(221)
    blue: str = _fg(111)
    purple: str = _fg(141)
    orange: str = _fg(208)
    pink: str = _fg(212)
    indigo: str = _fg(69)
    teal: str = _fg(80)
    gold: str = _fg(220)
    gray: str = _fg(245)
    muted: str = "\033[90m"
    bold: str = "\033[1m"
    dim: str = "\033[2m"
    reset: str = "\033[0m"


DEFAULT = Theme()
_active: Theme = DEFAULT

_STYLES = {"bold", "dim", "reset"}
_COLORS = {f.name for f in fields(Theme)} - _STYLES

# colors a task can be given; the rest are reserved for status output
TASK_COLORS = ("blue", "green", "purple", "orange", "red", "yellow", "pink", "indigo", "teal")


def use(theme: Theme) -> None:
    global _active
    _active = theme


def __getattr__(name: str) -> Callable[[str], str]:
    if name in _COLORS:

        def _wrap(text: str) -> str:
            return f"{getattr(_active, name)}{text}{_active.reset}"

        _wrap.__name__ = name
        return _wrap
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def paint(color: str, text: str) -> str:
    """Wrap text in a task's color. Unknown names fall back to blue."""
    code = getattr(_active, color if color in TASK_COLORS else "blue")
    return f"{code}{text}{_active.reset}"


def bold(text: str) -> str:
    return f"{_active.bold}{text}{_active.reset}"


def dim(text: str) -> str:
    return f"{_active.dim}{text}{_active.reset}"


def strip(text: str) -> str:
    return _ANSI_RE.sub("", text)
