from datetime import date

import fncli
import pytest

from cadence import completions, config, db, stats, tasks  # noqa: F401  registers cli commands
from cadence.core.models import Task
from cadence.lib import ansi, clock

TODAY = date(2024, 1, 15)  # a Monday


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    monkeypatch.setattr(config._config, "_data", {})


@pytest.fixture
def tmp_cadence_dir(tmp_path, monkeypatch):
    cadence_dir = tmp_path / ".cadence"
    monkeypatch.setattr(config, "CADENCE_DIR", cadence_dir)
    monkeypatch.setattr(config, "DB_PATH", cadence_dir / "cadence.db")
    monkeypatch.setattr(config, "CONFIG_PATH", cadence_dir / "config.yaml")
    monkeypatch.setattr(config, "BACKUP_DIR", tmp_path / ".cadence_backups")
    monkeypatch.setattr(clock, "today", lambda: TODAY)
    db.init()
    return cadence_dir


class CLIRunner:
    def invoke(self, args: list[str]) -> fncli.Result:
        result = fncli.invoke(["cadence", *args])
        result.stdout = ansi.strip(result.stdout)
        return result


@pytest.fixture
def runner(tmp_cadence_dir):
    return CLIRunner()


def make_task(
    days=("monday", "wednesday", "friday"),
    created_on: date = date(2024, 1, 1),
    task_id: str = "t1",
    name: str = "run",
) -> Task:
    return Task(id=task_id, name=name, days=frozenset(days), created_on=created_on)


def d(day: int, month: int = 1, year: int = 2024) -> date:
    return date(year, month, day)
