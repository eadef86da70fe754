from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

_LOGGER = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


class Database:
    """Local sqlite file holding the same tables as the hosted project.

    Schema changes live in ``migrations/*.sql`` and are applied in file name
    order; each one is recorded in ``schema_migrations`` and never rerun.
    """

    def __init__(self, db_path: Path, migrations_dir: Path = MIGRATIONS_DIR) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._migrations_dir = Path(migrations_dir)

    @property
    def path(self) -> Path:
        return self._db_path

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        connection = sqlite3.connect(self._db_path)
        connection.row_factory = sqlite3.Row
        try:
            yield connection
            connection.commit()
        except Exception:
            connection.rollback()
            raise
        finally:
            connection.close()

    def initialize(self) -> list[str]:
        """Apply pending migrations and return their names, oldest first."""

        pending: list[str] = []
        with self.connect() as connection:
            _ensure_migrations_table(connection)
            applied = _applied_names(connection)

            for migration in sorted(self._migrations_dir.glob("*.sql")):
                if migration.name in applied:
                    continue
                connection.executescript(migration.read_text(encoding="utf-8"))
                connection.execute("INSERT INTO schema_migrations(name) VALUES (?)", (migration.name,))
                pending.append(migration.name)

        if pending:
            _LOGGER.info("Applied %d migration(s) to %s: %s", len(pending), self._db_path, ", ".join(pending))
        return pending

    def applied_migrations(self) -> list[str]:
        with self.connect() as connection:
            _ensure_migrations_table(connection)
            return sorted(_applied_names(connection))

    def table_names(self) -> set[str]:
        with self.connect() as connection:
            rows = connection.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
            return {row["name"] for row in rows}


def _applied_names(connection: sqlite3.Connection) -> set[str]:
    return {row["name"] for row in connection.execute("SELECT name FROM schema_migrations")}


def _ensure_migrations_table(connection: sqlite3.Connection) -> None:
    connection.execute(
        "CREATE TABLE IF NOT EXISTS schema_migrations ("
        " name TEXT PRIMARY KEY,"
        " applied_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))"
        ")"
    )
