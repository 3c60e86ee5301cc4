from pathlib import Path

import yaml
from fncli import UsageError, cli

from .lib.errors import echo

CADENCE_DIR = Path.home() / ".cadence"
DB_PATH = CADENCE_DIR / "cadence.db"
CONFIG_PATH = CADENCE_DIR / "config.yaml"
BACKUP_DIR = Path.home() / ".cadence_backups"

DEFAULT_STATS_WINDOW_DAYS = 30
DEFAULT_LONGEST_WINDOW_DAYS = 365


class Config:
    """Single-instance config manager. Load once, cache in memory."""

    _instance: "Config | None" = None
    _data: dict[str, object]

    def __new__(cls) -> "Config":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._data = {}
            cls._instance._load()
        return cls._instance

    def _load(self) -> None:
        """Load config from disk."""
        if not CONFIG_PATH.exists():
            self._data = {}
            return
        try:
            with CONFIG_PATH.open() as f:
                loaded = yaml.safe_load(f)
        except (OSError, yaml.YAMLError):
            loaded = None
        self._data = loaded if isinstance(loaded, dict) else {}

    def _save(self) -> None:
        """Persist config to disk."""
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        with CONFIG_PATH.open("w") as f:
            yaml.dump(self._data, f, default_flow_style=False, allow_unicode=True)

    def reload(self) -> None:
        self._load()

    def get(self, key: str, default: object = None) -> object:
        """Get config value."""
        return self._data.get(key, default)

    def set(self, key: str, value: object) -> None:
        """Set config value and persist."""
        self._data[key] = value
        self._save()


_config = Config()


def _positive_int(key: str, default: int) -> int:
    val = _config.get(key)
    if isinstance(val, bool):
        return default
    try:
        n = int(val)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return n if n > 0 else default


def get_stats_window() -> int:
    """Days covered by completion counts, consistency and history."""
    return _positive_int("stats_window_days", DEFAULT_STATS_WINDOW_DAYS)


def get_longest_window() -> int:
    """Days scanned when looking for the longest streak."""
    return _positive_int("longest_window_days", DEFAULT_LONGEST_WINDOW_DAYS)


def set_stats_window(days: int) -> None:
    _config.set("stats_window_days", days)


# ── cli ──────────────────────────────────────────────────────────────────────


@cli("cadence config", name="window", flags={"days": ["-d", "--days"]})
def config_window(days: int | None = None) -> None:
    """Show or set the stats window in days"""
    if days is not None:
        if days < 1:
            raise UsageError("--days must be at least 1")
        set_stats_window(days)
    echo(f"stats window: {get_stats_window()}d")
