"""Database engine setup for the workspace SQLite file.

The DB is stored at {root}/.allocctl/allocctl.db. SQLAlchemy Core (not ORM)
is used because allocctl is a short-lived CLI process.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from allocctl.infrastructure.database.schema import metadata

DB_FILENAME = "allocctl.db"


def create_db_engine(db_path: Path) -> Engine:
    """Create a SQLite engine with WAL mode enabled."""
    engine = create_engine(f"sqlite:///{db_path}", echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    return engine


def init_database(workspace_dir: Path) -> Engine:
    """Create ``workspace_dir`` and all tables. Idempotent."""
    workspace_dir.mkdir(parents=True, exist_ok=True)
    (workspace_dir / "plugins").mkdir(exist_ok=True)
    engine = create_db_engine(workspace_dir / DB_FILENAME)
    metadata.create_all(engine)
    return engine
