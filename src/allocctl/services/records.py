"""RecordService — shared create/edit/archive/activate workflow for bases and rules.

Pipeline for every mutation: GUARD → VALIDATE → TOKEN → SEND → REFRESH → EVENT → RESPOND

- GUARD: the record's current status (from the local cache, fetched if
  absent) must allow the action; otherwise fail without any request.
- TOKEN: one fresh mutation token per call. A failed attempt discards it.
- REFRESH: the cache for the record kind is invalidated and re-fetched.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from allocctl.domain.ids import new_mutation_token
from allocctl.domain.lifecycle import (
    RecordAction,
    allowed_actions,
    initial_status,
    is_valid_transition,
    next_status,
)
from allocctl.infrastructure.http import RemoteError
from allocctl.services.base import BaseService
from allocctl.services.result import ServiceResult, failure

if TYPE_CHECKING:
    from allocctl.infrastructure.api import BasesRoutes, RulesRoutes

logger = logging.getLogger(__name__)


class RecordService(BaseService):
    """Lifecycle operations common to bases and rules.

    Subclasses set :attr:`kind`, :attr:`hook_name` and :attr:`id_field`, and
    implement :meth:`_routes`.
    """

    kind: str = ""
    hook_name: str = ""
    id_field: str = ""

    def _routes(self) -> BasesRoutes | RulesRoutes:
        raise NotImplementedError

    @staticmethod
    def _status_payload(record: dict[str, Any], status: str) -> dict[str, Any]:
        """Full-replace payload: the stored wire fields as-is, with *status* swapped in."""
        payload = {k: v for k, v in record.items() if k != "id"}
        payload["status"] = status
        return payload

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _list(self, op: str, *, refresh: bool) -> ServiceResult:
        if not refresh:
            with self._workspace.transaction() as txn:
                cached = txn.cached_records(self.kind)
            if cached is not None:
                return ServiceResult(
                    ok=True,
                    op=op,
                    data={"count": len(cached), "items": cached},
                    meta={"source": "cache"},
                )
        try:
            items = self.fetch()
        except RemoteError as exc:
            return self._remote_failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"count": len(items), "items": items},
            meta={"source": "remote"},
        )

    def fetch(self) -> list[dict[str, Any]]:
        """List records remotely and replace the cached snapshot.

        Raises:
            RemoteError: if the list call fails.
        """
        items = self._routes().list()
        with self._workspace.transaction() as txn:
            txn.replace_cache(self.kind, items)
        logger.debug("Fetched %d %s records", len(items), self.kind)
        return items

    def records(self) -> list[dict[str, Any]]:
        """Cached records, fetching once if the cache is empty or invalidated."""
        with self._workspace.transaction() as txn:
            cached = txn.cached_records(self.kind)
        return cached if cached is not None else self.fetch()

    def find(self, record_id: str) -> dict[str, Any] | None:
        """Look up one record by id, from the cache first, then via :meth:`records`."""
        with self._workspace.transaction() as txn:
            cached = txn.cached_record(self.kind, record_id)
        if cached is not None:
            return cached
        for record in self.records():
            if str(record.get("id")) == record_id:
                return record
        return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _create(self, op: str, payload: dict[str, Any]) -> ServiceResult:
        payload = {**payload, "status": initial_status()}
        token = new_mutation_token()
        try:
            record = self._routes().create(payload, token)
        except RemoteError as exc:
            return self._remote_failure(op, exc)
        return self._after_mutation(op, RecordAction.CREATE, record, token)

    def _guard(self, op: str, record_id: str, action: str) -> dict[str, Any] | ServiceResult:
        """Return the current record, or a failed result if *action* is not allowed."""
        try:
            record = self.find(record_id)
        except RemoteError as exc:
            return self._remote_failure(op, exc)
        if record is None:
            return failure(op, "NOT_FOUND", f"No {self.kind} found with ID: {record_id}")

        current = str(record.get("status", ""))
        if not is_valid_transition(current, action):
            return failure(
                op,
                "INVALID_TRANSITION",
                f"Cannot {action} a {self.kind} in status '{current}'. "
                f"Allowed: {allowed_actions(current)}",
                detail={"id": record_id, "status": current, "action": action},
            )
        return record

    def _edit(self, op: str, record_id: str, payload: dict[str, Any]) -> ServiceResult:
        guarded = self._guard(op, record_id, RecordAction.EDIT)
        if isinstance(guarded, ServiceResult):
            return guarded
        payload = {**payload, "status": next_status(str(guarded["status"]), RecordAction.EDIT)}
        token = new_mutation_token()
        try:
            record = self._routes().update(record_id, payload, token)
        except RemoteError as exc:
            return self._remote_failure(op, exc)
        return self._after_mutation(op, RecordAction.EDIT, record or {"id": record_id}, token)

    def _set_status(self, op: str, record_id: str, action: str) -> ServiceResult:
        guarded = self._guard(op, record_id, action)
        if isinstance(guarded, ServiceResult):
            return guarded
        status = next_status(str(guarded["status"]), action)
        payload = self._status_payload(guarded, str(status))
        token = new_mutation_token()
        try:
            record = self._routes().update(record_id, payload, token)
        except RemoteError as exc:
            return self._remote_failure(op, exc)
        record = {**payload, "id": record_id, **(record or {})}
        return self._after_mutation(op, action, record, token)

    def _after_mutation(
        self,
        op: str,
        action: str,
        record: dict[str, Any],
        token: str,
        *,
        removed_id: str | None = None,
    ) -> ServiceResult:
        warnings: list[str] = []
        self._refresh_cache(warnings)

        record_id = removed_id or str(record.get("id", ""))
        status = None if removed_id else record.get("status")
        self._dispatch_event(
            self.hook_name,
            {self.id_field: record_id, "action": str(action), "status": status},
            warnings,
        )
        logger.info("%s %s %s", self.kind, action, record_id)

        data: dict[str, Any] = {"id": record_id, "action": str(action)}
        if removed_id is None:
            data["status"] = status
            data["record"] = record
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings, meta={"token": token})

    def _refresh_cache(self, warnings: list[str]) -> None:
        with self._workspace.transaction() as txn:
            txn.invalidate_cache(self.kind)
        try:
            self.fetch()
        except RemoteError as exc:
            warnings.append(f"Could not refresh {self.kind} list: {exc.message}")
