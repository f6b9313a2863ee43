"""Tests for database engine setup and initialization."""

from pathlib import Path

from sqlalchemy import inspect, text

from allocctl.infrastructure.database.engine import (
    DB_FILENAME,
    create_db_engine,
    init_database,
)


class TestCreateDbEngine:
    def test_wal_mode_enabled(self, tmp_path: Path) -> None:
        engine = create_db_engine(tmp_path / "test.db")
        with engine.connect() as conn:
            result = conn.execute(text("PRAGMA journal_mode")).scalar()
            assert result == "wal"


class TestInitDatabase:
    def test_creates_workspace_directory(self, tmp_path: Path) -> None:
        ws_dir = tmp_path / ".allocctl"
        init_database(ws_dir)
        assert ws_dir.is_dir()
        assert (ws_dir / "plugins").is_dir()
        assert (ws_dir / DB_FILENAME).exists()

    def test_creates_all_tables(self, tmp_path: Path) -> None:
        engine = init_database(tmp_path / ".allocctl")
        tables = set(inspect(engine).get_table_names())
        assert {"record_cache", "cache_fetches", "drafts", "allocation_runs"} <= tables

    def test_idempotent(self, tmp_path: Path) -> None:
        """Calling init twice must not fail."""
        init_database(tmp_path / ".allocctl").dispose()
        engine = init_database(tmp_path / ".allocctl")
        assert "drafts" in inspect(engine).get_table_names()
