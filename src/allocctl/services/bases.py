"""AllocationBaseService — create, update, archive, and activate bases.

Bases are never hard-deleted. Archive and activate are full-replace
updates that carry the new status.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from allocctl.domain.bases import (
    BaseDraft,
    base_from_existing,
    base_to_payload,
    update_base_draft,
)
from allocctl.domain.lifecycle import RecordAction
from allocctl.domain.types import RecordKind
from allocctl.domain.validation import validate_base
from allocctl.infrastructure.http import RemoteError
from allocctl.services.records import RecordService
from allocctl.services.result import failure

if TYPE_CHECKING:
    from allocctl.infrastructure.api import BasesRoutes
    from allocctl.services.result import ServiceResult


class AllocationBaseService(RecordService):
    """Lifecycle operations for allocation bases."""

    kind = RecordKind.BASE
    hook_name = "post_base_change"
    id_field = "base_id"

    def _routes(self) -> BasesRoutes:
        return self._workspace.api.bases

    def list_bases(self, *, refresh: bool = False) -> ServiceResult:
        """List bases from the cache, or remotely when *refresh* is set or nothing is cached."""
        return self._list("list_bases", refresh=refresh)

    def create_base(self, draft: BaseDraft) -> ServiceResult:
        op = "create_base"
        check = validate_base(draft)
        if not check.valid:
            return self._validation_failure(op, check.errors)
        return self._create(op, base_to_payload(draft))

    def update_base(self, base_id: str, draft: BaseDraft) -> ServiceResult:
        op = "update_base"
        check = validate_base(draft)
        if not check.valid:
            return self._validation_failure(op, check.errors)
        return self._edit(op, base_id, base_to_payload(draft))

    def revise_base(
        self,
        base_id: str,
        *,
        code: str | None = None,
        name: str | None = None,
        unit: str | None = None,
    ) -> ServiceResult:
        """Update selected fields of an existing base, keeping the rest."""
        op = "update_base"
        try:
            record = self.find(base_id)
        except RemoteError as exc:
            return self._remote_failure(op, exc)
        if record is None:
            return failure(op, "NOT_FOUND", f"No base found with ID: {base_id}")
        draft = update_base_draft(base_from_existing(record), code=code, name=name, unit=unit)
        return self.update_base(base_id, draft)

    def archive_base(self, base_id: str) -> ServiceResult:
        return self._set_status("archive_base", base_id, RecordAction.ARCHIVE)

    def activate_base(self, base_id: str) -> ServiceResult:
        return self._set_status("activate_base", base_id, RecordAction.ACTIVATE)
