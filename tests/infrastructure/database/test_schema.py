"""Tests for database schema definitions."""

from sqlalchemy import create_engine, insert, inspect, select
from sqlalchemy.engine import Engine

from allocctl.infrastructure.database.schema import allocation_runs, metadata


def _in_memory_engine() -> Engine:
    engine = create_engine("sqlite:///:memory:")
    metadata.create_all(engine)
    return engine


class TestSchemaCreation:
    def test_create_all_is_idempotent(self) -> None:
        engine = _in_memory_engine()
        metadata.create_all(engine)

    def test_record_cache_key(self) -> None:
        pk = inspect(_in_memory_engine()).get_pk_constraint("record_cache")
        assert pk["constrained_columns"] == ["kind", "record_id"]

    def test_runs_period_index(self) -> None:
        indexes = inspect(_in_memory_engine()).get_indexes("allocation_runs")
        assert any(ix["column_names"] == ["period_id"] for ix in indexes)

    def test_reused_defaults_to_zero(self) -> None:
        engine = _in_memory_engine()
        with engine.begin() as conn:
            conn.execute(
                insert(allocation_runs).values(
                    id="run-1",
                    rule_id="r1",
                    period_id="P1",
                    status="computed",
                    recorded="2026-01-01T00:00:00+00:00",
                )
            )
            row = conn.execute(select(allocation_runs.c.reused)).one()
        assert row.reused == 0
