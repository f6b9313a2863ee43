"""Allocation base model — the unit a rule's weights are measured in.

A base is mutated only by full-replace update and is never hard-deleted;
archiving is an update that sets ``status = archived``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from allocctl.domain.ids import normalize_code
from allocctl.domain.types import BaseUnit, RecordStatus


class AllocationBase(BaseModel):
    """Canonical base record as returned by the remote ledger."""

    model_config = ConfigDict(frozen=True, extra="allow")

    id: str
    code: str
    name: str
    unit: str
    status: str = RecordStatus.ACTIVE


class BaseDraft(BaseModel):
    """Editable base, held as an immutable value.

    ``unit`` is kept as a plain string so an out-of-range value can be
    reported by validation instead of failing construction.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    code: str = ""
    name: str = ""
    unit: str = BaseUnit.HOURS
    status: str = RecordStatus.ACTIVE


def create_base_draft() -> BaseDraft:
    """Fresh draft for a new base."""
    return BaseDraft()


def base_from_existing(record: dict[str, Any] | AllocationBase) -> BaseDraft:
    """Build a draft from a stored base record."""
    if isinstance(record, AllocationBase):
        record = record.model_dump()
    return BaseDraft(
        id=record.get("id"),
        code=str(record.get("code") or ""),
        name=str(record.get("name") or ""),
        unit=str(record.get("unit") or ""),
        status=str(record.get("status") or RecordStatus.ACTIVE),
    )


def update_base_draft(draft: BaseDraft, **changes: Any) -> BaseDraft:
    """Return a copy of *draft* with *changes* applied (None values ignored)."""
    applied = {k: v for k, v in changes.items() if v is not None}
    return draft.model_copy(update=applied)


def base_to_payload(draft: BaseDraft) -> dict[str, Any]:
    """Wire payload for create/update; code is uppercased, name trimmed."""
    return {
        "code": normalize_code(draft.code),
        "name": draft.name.strip(),
        "unit": draft.unit,
        "status": draft.status,
    }
