"""SQLAlchemy Core table definitions for the workspace database.

The remote ledger owns every record; these tables only hold the last
fetched snapshot, in-progress drafts, and the runs this workspace computed.
"""

from __future__ import annotations

from sqlalchemy import Column, Index, Integer, MetaData, Table, Text

metadata = MetaData()

# Last list() snapshot per record kind. Replaced wholesale on refresh.
record_cache = Table(
    "record_cache",
    metadata,
    Column("kind", Text, primary_key=True),  # base | rule
    Column("record_id", Text, primary_key=True),
    Column("status", Text, nullable=False),
    Column("payload", Text, nullable=False),  # JSON record as received
    Column("fetched_at", Text, nullable=False),
)

drafts = Table(
    "drafts",
    metadata,
    Column("draft_id", Text, primary_key=True),
    Column("kind", Text, nullable=False),
    Column("record_id", Text),  # set when editing an existing record
    Column("payload", Text, nullable=False),  # JSON draft
    Column("created", Text, nullable=False),
    Column("modified", Text, nullable=False),
)

allocation_runs = Table(
    "allocation_runs",
    metadata,
    Column("id", Text, primary_key=True),
    Column("rule_id", Text, nullable=False),
    Column("period_id", Text, nullable=False),
    Column("status", Text, nullable=False),
    Column("journal_entry_id", Text),
    Column("reused", Integer, default=0, server_default="0"),
    Column("recorded", Text, nullable=False),
)

Index("ix_allocation_runs_period", allocation_runs.c.period_id)

# One row per kind once a list() snapshot exists; absent = never fetched
# or invalidated.
cache_fetches = Table(
    "cache_fetches",
    metadata,
    Column("kind", Text, primary_key=True),
    Column("fetched_at", Text, nullable=False),
)
