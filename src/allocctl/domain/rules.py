"""Allocation rule model — a source account spread over weighted targets.

A rule is scoped to one dimension category; every target records the
organizational unit it receives under that category's storage key. Targets
are embedded in the rule and travel in ``payloadJson.targets``.

Drafts are immutable: every editing operation returns a new draft.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from allocctl.domain.dimensions import DimensionCategory
from allocctl.domain.ids import normalize_code
from allocctl.domain.types import RecordStatus


class AllocationTarget(BaseModel):
    """One weighted destination inside a rule.

    Unknown wire keys are kept (``extra="allow"``) and only fields that were
    actually set are serialized, so a stored target round-trips verbatim.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    to_account_id: str = Field(default="", alias="toAccountId")
    weight: float = 0.0
    notes: str | None = None
    dimension_values: dict[str, Any] = Field(default_factory=dict, alias="dimensionValues")

    def unit_id(self, storage_key: str) -> str | None:
        """Organizational unit recorded under *storage_key*, if any."""
        value = self.dimension_values.get(storage_key)
        if value is None or str(value).strip() == "":
            return None
        return str(value)

    def to_wire(self) -> dict[str, Any]:
        data = self.model_dump(by_alias=True, exclude_unset=True)
        data.update(self.model_extra or {})
        return data


class RuleDraft(BaseModel):
    """Editable rule, held as an immutable value."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    code: str = ""
    name: str = ""
    base_id: str = ""
    source_account_id: str = ""
    dimension_category: DimensionCategory = DimensionCategory.COST_CENTER
    status: str = RecordStatus.ACTIVE
    targets: tuple[AllocationTarget, ...] = ()

    @property
    def storage_key(self) -> str:
        """Key the current category stores unit ids under."""
        return self.dimension_category.storage_key


class AllocationRule(BaseModel):
    """Canonical rule record as returned by the remote ledger."""

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    id: str
    code: str | None = None
    name: str
    base_id: str = Field(alias="baseId")
    source_account_id: str = Field(alias="sourceAccountId")
    target_dimension: str = Field(default=DimensionCategory.COST_CENTER, alias="targetDimension")
    status: str = RecordStatus.ACTIVE
    payload_json: dict[str, Any] = Field(default_factory=dict, alias="payloadJson")


def create_rule_draft(
    category: DimensionCategory | str = DimensionCategory.COST_CENTER,
) -> RuleDraft:
    """Fresh draft: cost-center dimension and no targets unless overridden."""
    return RuleDraft(dimension_category=DimensionCategory(category))


def _wire_targets(record: dict[str, Any]) -> list[dict[str, Any]]:
    payload = record.get("payloadJson") or {}
    targets = payload.get("targets") if isinstance(payload, dict) else None
    if targets is None:
        targets = record.get("targets") or []
    return [t for t in targets if isinstance(t, dict)]


def record_category(record: dict[str, Any]) -> DimensionCategory:
    """Dimension category of a stored rule; cost center when the record has none.

    Raises:
        ValueError: if the stored dimension is not a known category.
    """
    category = record.get("targetDimension") or record.get("dimensionCategory")
    return DimensionCategory(category or DimensionCategory.COST_CENTER)


def rule_from_existing(record: dict[str, Any] | AllocationRule) -> RuleDraft:
    """Build a draft from a stored rule record, keeping every target key.

    Raises:
        ValueError: if the stored dimension is not a known category.
    """
    if isinstance(record, AllocationRule):
        record = record.model_dump(by_alias=True)
    return RuleDraft(
        id=record.get("id"),
        code=str(record.get("code") or ""),
        name=str(record.get("name") or ""),
        base_id=str(record.get("baseId") or ""),
        source_account_id=str(record.get("sourceAccountId") or ""),
        dimension_category=record_category(record),
        status=str(record.get("status") or RecordStatus.ACTIVE),
        targets=tuple(AllocationTarget.model_validate(t) for t in _wire_targets(record)),
    )


def update_rule_draft(draft: RuleDraft, **changes: Any) -> RuleDraft:
    """Return a copy of *draft* with header field *changes* (None values ignored).

    Targets and category have dedicated operations and are rejected here.
    """
    blocked = {"targets", "dimension_category"} & changes.keys()
    if blocked:
        msg = f"Use the target editor / set_dimension_category for: {sorted(blocked)}"
        raise ValueError(msg)
    applied = {k: v for k, v in changes.items() if v is not None}
    return draft.model_copy(update=applied)


def set_dimension_category(draft: RuleDraft, category: DimensionCategory | str) -> RuleDraft:
    """Switch the rule's dimension category.

    The active storage key follows the new category. Targets added under a
    previous category keep their old key until individually edited.
    """
    return draft.model_copy(update={"dimension_category": DimensionCategory(category)})


def draft_state(draft: RuleDraft) -> dict[str, Any]:
    """JSON-safe snapshot of a draft; targets are kept in wire form."""
    state = draft.model_dump(mode="json", exclude={"targets"})
    state["targets"] = [t.to_wire() for t in draft.targets]
    return state


def draft_from_state(state: dict[str, Any]) -> RuleDraft:
    """Inverse of :func:`draft_state`."""
    return RuleDraft.model_validate(state)


def rule_to_payload(draft: RuleDraft) -> dict[str, Any]:
    """Wire payload for create/update.

    Code is trimmed and uppercased, name trimmed, targets serialized verbatim.
    """
    return {
        "code": normalize_code(draft.code),
        "name": draft.name.strip(),
        "baseId": draft.base_id,
        "sourceAccountId": draft.source_account_id,
        "targetDimension": str(draft.dimension_category),
        "status": draft.status,
        "payloadJson": {"targets": [t.to_wire() for t in draft.targets]},
    }
