"""Workspace — the single dependency injected into every service.

The Workspace owns the local SQLite database, the remote API client, and the
plugin manager. Local state is limited to:

- **Record cache**: the last ``list()`` snapshot of bases and rules. It is
  invalidated after every successful mutation and re-fetched, so the remote
  ledger stays the source of truth.
- **Drafts**: in-progress base/rule edits, addressed by ``draft_id``.
- **Run log**: runs returned by compute, updated when posted.

All local reads and writes go through :meth:`transaction`.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, select, update

from allocctl.infrastructure.api import AllocationsApi
from allocctl.infrastructure.database.engine import init_database
from allocctl.infrastructure.database.schema import (
    allocation_runs,
    cache_fetches,
    drafts,
    record_cache,
)
from allocctl.infrastructure.http import LedgerHttpClient

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    import httpx
    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from allocctl.config.settings import AllocSettings
    from allocctl.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


@dataclass
class WorkspaceTransaction:
    """Active transaction over the workspace database."""

    conn: Connection

    # ------------------------------------------------------------------
    # Record cache
    # ------------------------------------------------------------------

    def cached_records(self, kind: str) -> list[dict[str, Any]] | None:
        """Cached snapshot for *kind*, or None if it was never fetched or is invalidated."""
        fetched = self.conn.execute(
            select(cache_fetches.c.kind).where(cache_fetches.c.kind == kind)
        ).first()
        if fetched is None:
            return None
        rows = self.conn.execute(
            select(record_cache.c.payload).where(record_cache.c.kind == kind)
        ).fetchall()
        return [json.loads(r.payload) for r in rows]

    def cached_record(self, kind: str, record_id: str) -> dict[str, Any] | None:
        row = self.conn.execute(
            select(record_cache.c.payload).where(
                record_cache.c.kind == kind, record_cache.c.record_id == record_id
            )
        ).first()
        return json.loads(row.payload) if row else None

    def replace_cache(self, kind: str, records: list[dict[str, Any]]) -> None:
        """Swap the snapshot for *kind* with *records*."""
        now = _now_iso()
        self.conn.execute(delete(record_cache).where(record_cache.c.kind == kind))
        for record in records:
            record_id = record.get("id")
            if record_id is None:
                continue
            self.conn.execute(
                insert(record_cache).values(
                    kind=kind,
                    record_id=str(record_id),
                    status=str(record.get("status", "")),
                    payload=json.dumps(record),
                    fetched_at=now,
                )
            )
        self.conn.execute(delete(cache_fetches).where(cache_fetches.c.kind == kind))
        self.conn.execute(insert(cache_fetches).values(kind=kind, fetched_at=now))

    def invalidate_cache(self, kind: str) -> None:
        self.conn.execute(delete(cache_fetches).where(cache_fetches.c.kind == kind))
        self.conn.execute(delete(record_cache).where(record_cache.c.kind == kind))

    # ------------------------------------------------------------------
    # Drafts
    # ------------------------------------------------------------------

    def save_draft(
        self,
        draft_id: str,
        kind: str,
        payload: dict[str, Any],
        *,
        record_id: str | None = None,
    ) -> None:
        """Insert or overwrite a draft."""
        now = _now_iso()
        encoded = json.dumps(payload)
        existing = self.conn.execute(
            select(drafts.c.draft_id).where(drafts.c.draft_id == draft_id)
        ).first()
        if existing is None:
            self.conn.execute(
                insert(drafts).values(
                    draft_id=draft_id,
                    kind=kind,
                    record_id=record_id,
                    payload=encoded,
                    created=now,
                    modified=now,
                )
            )
        else:
            self.conn.execute(
                update(drafts)
                .where(drafts.c.draft_id == draft_id)
                .values(payload=encoded, modified=now)
            )

    def load_draft(self, draft_id: str) -> tuple[str, dict[str, Any]] | None:
        """Return ``(kind, payload)`` for an open draft, or None."""
        row = self.conn.execute(
            select(drafts.c.kind, drafts.c.payload).where(drafts.c.draft_id == draft_id)
        ).first()
        if row is None:
            return None
        return row.kind, json.loads(row.payload)

    def close_draft(self, draft_id: str) -> bool:
        """Remove a draft. Returns False if it was already closed."""
        result = self.conn.execute(delete(drafts).where(drafts.c.draft_id == draft_id))
        return result.rowcount > 0

    def list_drafts(self) -> list[dict[str, Any]]:
        rows = self.conn.execute(
            select(
                drafts.c.draft_id,
                drafts.c.kind,
                drafts.c.record_id,
                drafts.c.payload,
                drafts.c.modified,
            ).order_by(drafts.c.created)
        ).fetchall()
        items = []
        for row in rows:
            payload = json.loads(row.payload)
            items.append(
                {
                    "draft_id": row.draft_id,
                    "kind": row.kind,
                    "record_id": row.record_id,
                    "code": payload.get("code", ""),
                    "name": payload.get("name", ""),
                    "modified": row.modified,
                }
            )
        return items

    # ------------------------------------------------------------------
    # Run log
    # ------------------------------------------------------------------

    def record_runs(self, runs: list[dict[str, Any]]) -> None:
        """Upsert runs returned by compute (wire shape)."""
        now = _now_iso()
        for run in runs:
            run_id = run.get("id")
            if not run_id:
                continue
            self.conn.execute(delete(allocation_runs).where(allocation_runs.c.id == run_id))
            self.conn.execute(
                insert(allocation_runs).values(
                    id=str(run_id),
                    rule_id=str(run.get("ruleId", "")),
                    period_id=str(run.get("periodId", "")),
                    status=str(run.get("status", "computed")),
                    journal_entry_id=run.get("journalEntryId"),
                    reused=1 if run.get("reused") else 0,
                    recorded=now,
                )
            )

    def supersede_runs(self, period_id: str, rule_ids: list[str]) -> int:
        """Drop unposted runs a replacing compute has discarded remotely."""
        result = self.conn.execute(
            delete(allocation_runs).where(
                allocation_runs.c.period_id == period_id,
                allocation_runs.c.rule_id.in_(rule_ids),
                allocation_runs.c.status == "computed",
            )
        )
        return result.rowcount

    def get_run(self, run_id: str) -> dict[str, Any] | None:
        row = self.conn.execute(
            select(allocation_runs).where(allocation_runs.c.id == run_id)
        ).first()
        return _run_row(row) if row else None

    def mark_posted(self, run_id: str, journal_entry_id: str | None) -> None:
        self.conn.execute(
            update(allocation_runs)
            .where(allocation_runs.c.id == run_id)
            .values(status="posted", journal_entry_id=journal_entry_id)
        )

    def list_runs(self, period_id: str | None = None) -> list[dict[str, Any]]:
        query = select(allocation_runs).order_by(allocation_runs.c.recorded)
        if period_id is not None:
            query = query.where(allocation_runs.c.period_id == period_id)
        return [_run_row(r) for r in self.conn.execute(query).fetchall()]


def _run_row(row: Any) -> dict[str, Any]:
    return {
        "id": row.id,
        "ruleId": row.rule_id,
        "periodId": row.period_id,
        "status": row.status,
        "journalEntryId": row.journal_entry_id,
        "reused": bool(row.reused),
    }


class Workspace:
    """Local state plus the remote API, shared by all services.

    Usage::

        ws = Workspace(settings)
        with ws.transaction() as txn:
            rules = txn.cached_records("rule")
        ws.api.rules.list()
    """

    def __init__(
        self,
        settings: AllocSettings,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._engine: Engine = init_database(settings.workspace_dir)
        remote = settings.remote
        self.api = AllocationsApi(
            LedgerHttpClient(
                remote.base_url,
                prefix=remote.prefix,
                timeout=remote.timeout,
                retries=remote.retries,
                api_token=remote.api_token,
                transport=transport,
            )
        )
        self._plugin_manager: PluginManager | None = None

    @property
    def root(self) -> Path:
        return self._settings.root

    @property
    def settings(self) -> AllocSettings:
        return self._settings

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def plugin_manager(self) -> PluginManager | None:
        return self._plugin_manager

    def init_plugins(self) -> list[str]:
        """Discover entry-point and local plugins. Returns loaded plugin names."""
        from allocctl.plugins.manager import PluginManager

        pm = PluginManager()
        names = pm.discover_and_load(local_dir=self._settings.workspace_dir / "plugins")
        self._plugin_manager = pm
        return names

    def attach_plugins(self, manager: PluginManager) -> None:
        self._plugin_manager = manager

    @contextmanager
    def transaction(self) -> Iterator[WorkspaceTransaction]:
        """Commit on success, roll back on any exception."""
        with self._engine.begin() as conn:
            yield WorkspaceTransaction(conn=conn)

    def close(self) -> None:
        self.api.close()
        self._engine.dispose()
