"""SQLite store: connections and the migration runner.

Migrations are the numbered ``.sql`` files in ``taskflow/migrations``; each is
applied once and recorded by file stem in ``_migrations``.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path

from fncli import cli

from . import config
from .core.errors import MigrationError
from .lib.errors import echo

MIGRATIONS_DIR = Path(__file__).parent / "migrations"
MIGRATIONS_TABLE = "_migrations"

Migration = tuple[str, str]


def _connect(db_path: Path) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


@contextmanager
def get_db(db_path: Path | None = None):
    """One short transaction: commit when the block finishes, roll back if it raises."""
    conn = _connect(db_path or config.DB_PATH)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def load_migrations() -> list[Migration]:
    if not MIGRATIONS_DIR.is_dir():
        return []
    return [(path.stem, path.read_text()) for path in sorted(MIGRATIONS_DIR.glob("*.sql"))]


def _row_counts(conn: sqlite3.Connection) -> dict[str, int]:
    names = conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%' AND name != ?",
        (MIGRATIONS_TABLE,),
    ).fetchall()
    return {
        name: conn.execute(f'SELECT COUNT(*) FROM "{name}"').fetchone()[0]  # noqa: S608
        for (name,) in names
    }


def _applied(conn: sqlite3.Connection) -> set[str]:
    conn.execute(
        f"CREATE TABLE IF NOT EXISTS {MIGRATIONS_TABLE} ("
        "name TEXT PRIMARY KEY, applied_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP)"
    )
    conn.commit()
    return {row[0] for row in conn.execute(f"SELECT name FROM {MIGRATIONS_TABLE}")}  # noqa: S608


def _run(conn: sqlite3.Connection, name: str, script: str) -> None:
    """Apply one migration; a migration that drops rows is undone and reported."""
    before = _row_counts(conn)
    try:
        conn.executescript(f"BEGIN;\n{script}")
        after = _row_counts(conn)
        lost = {t: (n, after.get(t, 0)) for t, n in before.items() if after.get(t, 0) < n}
        if lost:
            detail = ", ".join(f"{t} {n} -> {m}" for t, (n, m) in lost.items())
            raise MigrationError(f"{name} would lose rows: {detail}")
        conn.execute(f"INSERT INTO {MIGRATIONS_TABLE} (name) VALUES (?)", (name,))  # noqa: S608
        conn.commit()
    except Exception:
        conn.rollback()
        raise


def init(db_path: Path | None = None) -> list[str]:
    """Create the store if needed and apply pending migrations. Returns their names."""
    db_path = db_path or config.DB_PATH
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = _connect(db_path)
    try:
        done = _applied(conn)
        pending = [(name, script) for name, script in load_migrations() if name not in done]
        for name, script in pending:
            _run(conn, name, script)
        return [name for name, _ in pending]
    finally:
        conn.close()


@cli("taskflow db", name="migrate")
def db_migrate():
    """Run pending database migrations"""
    applied = init()
    echo(f"applied: {', '.join(applied)}" if applied else "migrations up to date")
