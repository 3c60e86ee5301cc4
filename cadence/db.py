import shutil
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from fncli import cli

from . import config
from .lib.errors import echo

MIGRATIONS_TABLE = "_migrations"
MIGRATIONS_DIR = Path(__file__).parent / "migrations"

Migration = tuple[str, str]


def _connect(db_path: Path) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


@contextmanager
def get_db(db_path: Path | None = None):
    conn = _connect(db_path or config.DB_PATH)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


# ── migrations ───────────────────────────────────────────────────────────────


def load_migrations(migrations_dir: Path | None = None) -> list[Migration]:
    """Ordered (name, sql) pairs, one per ``NNN_name.sql`` file."""
    migrations_dir = migrations_dir or MIGRATIONS_DIR
    if not migrations_dir.exists():
        return []
    return [(path.stem, path.read_text()) for path in sorted(migrations_dir.glob("*.sql"))]


def _snapshot(db_path: Path) -> Path:
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    target_dir = config.BACKUP_DIR / "migrations"
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / f"cadence.{stamp}.backup"
    src = sqlite3.connect(db_path, timeout=30)
    dst = sqlite3.connect(target)
    try:
        src.backup(dst)
    except sqlite3.Error:
        target.unlink(missing_ok=True)
        raise
    finally:
        dst.close()
        src.close()
    return target


def _row_counts(conn: sqlite3.Connection) -> dict[str, int]:
    names = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name != ? AND name NOT LIKE 'sqlite_%'",
        (MIGRATIONS_TABLE,),
    ).fetchall()
    return {name: conn.execute(f'SELECT COUNT(*) FROM "{name}"').fetchone()[0] for (name,) in names}  # noqa: S608


def _guard_data_loss(conn: sqlite3.Connection, before: dict[str, int]) -> None:
    after = _row_counts(conn)
    for table, count in before.items():
        if after.get(table, 0) < count:
            raise ValueError(f"migration data loss: {table} had {count} rows, now {after.get(table, 0)}")


def _pending(conn: sqlite3.Connection) -> list[Migration]:
    conn.execute(
        f"CREATE TABLE IF NOT EXISTS {MIGRATIONS_TABLE} "
        "(id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL UNIQUE, applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP)"
    )
    conn.commit()
    applied = {row[0] for row in conn.execute(f"SELECT name FROM {MIGRATIONS_TABLE}")}  # noqa: S608
    return [m for m in load_migrations() if m[0] not in applied]


def _apply_migrations(conn: sqlite3.Connection, db_path: Path) -> list[str]:
    """Run pending migrations, restoring the pre-migration snapshot on failure."""
    pending = _pending(conn)
    if not pending:
        return []

    snapshot = _snapshot(db_path) if db_path.exists() else None
    applied: list[str] = []
    for name, script in pending:
        before = _row_counts(conn)
        try:
            conn.executescript(script)
            _guard_data_loss(conn, before)
            conn.execute(f"INSERT OR IGNORE INTO {MIGRATIONS_TABLE} (name) VALUES (?)", (name,))  # noqa: S608
            conn.commit()
        except Exception:
            conn.rollback()
            if snapshot:
                shutil.copy2(snapshot, db_path)
            raise
        applied.append(name)

    if snapshot:
        snapshot.unlink(missing_ok=True)
    return applied


def init(db_path: Path | None = None) -> None:
    db_path = db_path or config.DB_PATH
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = _connect(db_path)
    try:
        _apply_migrations(conn, db_path)
    finally:
        conn.close()


def migrate(db_path: Path | None = None) -> list[str]:
    db_path = db_path or config.DB_PATH
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with get_db(db_path) as conn:
        return _apply_migrations(conn, db_path)


@cli("cadence db", name="migrate")
def db_migrate():
    """Run pending database migrations"""
    applied = migrate()
    echo(f"applied: {', '.join(applied)}" if applied else "up to date")
