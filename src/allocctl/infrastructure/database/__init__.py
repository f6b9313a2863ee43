"""SQLite workspace database via SQLAlchemy Core."""

from allocctl.infrastructure.database.engine import create_db_engine, init_database
from allocctl.infrastructure.database.schema import (
    allocation_runs,
    cache_fetches,
    drafts,
    metadata,
    record_cache,
)

__all__ = [
    "allocation_runs",
    "cache_fetches",
    "create_db_engine",
    "drafts",
    "init_database",
    "metadata",
    "record_cache",
]
