"""DraftService — persisted editing sessions for bases and rules.

A draft is opened (new or from an existing record), edited through the
target list editor, validated, and finally submitted or discarded. Drafts
live in the workspace database under a ``draft_id`` so an edit can span
several CLI invocations.

Submission routes the response back to the draft by identity: if the draft
was closed while the request was in flight, the response is reported with a
warning and not applied to any draft. A failed submission leaves the draft
unchanged.
"""

from __future__ import annotations

import logging
from typing import Any

from allocctl.domain.bases import (
    BaseDraft,
    base_from_existing,
    create_base_draft,
    update_base_draft,
)
from allocctl.domain.dimensions import DimensionCategory
from allocctl.domain.ids import new_draft_id
from allocctl.domain.rules import (
    RuleDraft,
    create_rule_draft,
    draft_from_state,
    draft_state,
    record_category,
    rule_from_existing,
    set_dimension_category,
    update_rule_draft,
)
from allocctl.domain.targets import (
    DraftUpdate,
    TargetInput,
    add_target,
    edit_target,
    remove_target,
    target_input_from,
)
from allocctl.domain.types import RecordKind
from allocctl.domain.validation import ValidationResult, validate_base, validate_rule
from allocctl.infrastructure.http import RemoteError
from allocctl.services.base import BaseService
from allocctl.services.bases import AllocationBaseService
from allocctl.services.result import ServiceResult, failure
from allocctl.services.rules import RuleService

logger = logging.getLogger(__name__)

Draft = BaseDraft | RuleDraft

_RULE_FIELDS = frozenset({"code", "name", "base_id", "source_account_id"})
_BASE_FIELDS = frozenset({"code", "name", "unit"})


def _state(draft: Draft) -> dict[str, Any]:
    if isinstance(draft, RuleDraft):
        return draft_state(draft)
    return draft.model_dump(mode="json")


def _restore(kind: str, state: dict[str, Any]) -> Draft:
    if kind == RecordKind.RULE:
        return draft_from_state(state)
    return BaseDraft.model_validate(state)


def _validate(draft: Draft) -> ValidationResult:
    if isinstance(draft, RuleDraft):
        return validate_rule(draft)
    return validate_base(draft)


class DraftService(BaseService):
    """Open, edit, validate, and submit drafts."""

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------

    def _load(self, op: str, draft_id: str) -> tuple[str, Draft] | ServiceResult:
        with self._workspace.transaction() as txn:
            loaded = txn.load_draft(draft_id)
        if loaded is None:
            return failure(op, "DRAFT_NOT_FOUND", f"No open draft with ID: {draft_id}")
        kind, state = loaded
        return kind, _restore(kind, state)

    def _load_rule(self, op: str, draft_id: str) -> RuleDraft | ServiceResult:
        loaded = self._load(op, draft_id)
        if isinstance(loaded, ServiceResult):
            return loaded
        kind, draft = loaded
        if not isinstance(draft, RuleDraft):
            return failure(
                op,
                "WRONG_DRAFT_KIND",
                f"Draft {draft_id} is a {kind} draft; targets belong to rule drafts",
            )
        return draft

    def _save(self, draft_id: str, kind: str, draft: Draft) -> None:
        with self._workspace.transaction() as txn:
            txn.save_draft(draft_id, kind, _state(draft), record_id=draft.id)

    def _opened(
        self, op: str, draft_id: str, kind: str, draft: Draft, warnings: list[str] | None = None
    ) -> ServiceResult:
        self._save(draft_id, kind, draft)
        logger.debug("Saved %s draft %s", kind, draft_id)
        return ServiceResult(
            ok=True,
            op=op,
            data={"draft_id": draft_id, "kind": str(kind), "draft": _state(draft)},
            warnings=warnings or [],
        )

    # ------------------------------------------------------------------
    # Open
    # ------------------------------------------------------------------

    def new_rule(self, category: DimensionCategory | str | None = None) -> ServiceResult:
        """Start a rule draft; category defaults to ``[rules] default_dimension``."""
        if category is None:
            category = self._workspace.settings.rules.default_dimension
        draft = create_rule_draft(category)
        return self._opened("new_rule_draft", new_draft_id(), RecordKind.RULE, draft)

    def new_base(self) -> ServiceResult:
        return self._opened("new_base_draft", new_draft_id(), RecordKind.BASE, create_base_draft())

    def open_rule(self, rule_id: str) -> ServiceResult:
        """Start a draft from an existing rule, keeping its targets verbatim."""
        op = "open_rule_draft"
        try:
            record = RuleService(self._workspace).find(rule_id)
        except RemoteError as exc:
            return self._remote_failure(op, exc)
        if record is None:
            return failure(op, "NOT_FOUND", f"No rule found with ID: {rule_id}")
        try:
            record_category(record)
        except ValueError:
            dimension = record.get("targetDimension")
            return failure(
                op,
                "UNSUPPORTED_DIMENSION",
                f"Rule {rule_id} targets dimension '{dimension}', which cannot be edited here",
                detail={"id": rule_id, "dimension": dimension},
            )
        return self._opened(op, new_draft_id(), RecordKind.RULE, rule_from_existing(record))

    def open_base(self, base_id: str) -> ServiceResult:
        op = "open_base_draft"
        try:
            record = AllocationBaseService(self._workspace).find(base_id)
        except RemoteError as exc:
            return self._remote_failure(op, exc)
        if record is None:
            return failure(op, "NOT_FOUND", f"No base found with ID: {base_id}")
        return self._opened(op, new_draft_id(), RecordKind.BASE, base_from_existing(record))

    # ------------------------------------------------------------------
    # Inspect
    # ------------------------------------------------------------------

    def list_drafts(self) -> ServiceResult:
        with self._workspace.transaction() as txn:
            items = txn.list_drafts()
        return ServiceResult(
            ok=True, op="list_drafts", data={"count": len(items), "items": items}
        )

    def show(self, draft_id: str) -> ServiceResult:
        op = "show_draft"
        loaded = self._load(op, draft_id)
        if isinstance(loaded, ServiceResult):
            return loaded
        kind, draft = loaded
        data: dict[str, Any] = {"draft_id": draft_id, "kind": kind, "draft": _state(draft)}
        if isinstance(draft, RuleDraft):
            data["storage_key"] = draft.storage_key
            data["dimension_label"] = draft.dimension_category.label
        return ServiceResult(ok=True, op=op, data=data)

    def validate(self, draft_id: str) -> ServiceResult:
        op = "validate_draft"
        loaded = self._load(op, draft_id)
        if isinstance(loaded, ServiceResult):
            return loaded
        _, draft = loaded
        check = _validate(draft)
        if not check.valid:
            return self._validation_failure(op, check.errors)
        return ServiceResult(ok=True, op=op, data={"draft_id": draft_id, "valid": True})

    # ------------------------------------------------------------------
    # Edit
    # ------------------------------------------------------------------

    def set_fields(self, draft_id: str, **changes: Any) -> ServiceResult:
        """Apply header field changes; None values are ignored."""
        op = "set_draft_fields"
        loaded = self._load(op, draft_id)
        if isinstance(loaded, ServiceResult):
            return loaded
        kind, draft = loaded

        allowed = _RULE_FIELDS if isinstance(draft, RuleDraft) else _BASE_FIELDS
        provided = {k: v for k, v in changes.items() if v is not None}
        unknown = sorted(set(provided) - allowed)
        if unknown:
            errors = {name: f"Not a field of a {kind} draft" for name in unknown}
            return self._validation_failure(op, errors)

        if isinstance(draft, RuleDraft):
            draft = update_rule_draft(draft, **provided)
        else:
            draft = update_base_draft(draft, **provided)
        return self._opened(op, draft_id, kind, draft)

    def set_dimension(self, draft_id: str, category: DimensionCategory | str) -> ServiceResult:
        """Switch a rule draft's category.

        Existing targets keep their old key; a warning lists how many of them
        lack the new one. Raises ``ValueError`` for an unknown category.
        """
        op = "set_draft_dimension"
        category = DimensionCategory(category)
        draft = self._load_rule(op, draft_id)
        if isinstance(draft, ServiceResult):
            return draft

        draft = set_dimension_category(draft, category)
        stale = [t for t in draft.targets if t.unit_id(draft.storage_key) is None]
        warnings: list[str] = []
        if stale:
            warnings.append(
                f"{len(stale)} target(s) have no {category.label}; edit them before submitting"
            )
        return self._opened(op, draft_id, RecordKind.RULE, draft, warnings)

    def _apply(self, op: str, draft_id: str, update: DraftUpdate) -> ServiceResult:
        if not update.ok:
            return self._validation_failure(op, update.errors)
        return self._opened(op, draft_id, RecordKind.RULE, update.draft)

    def _bad_index(self, op: str, draft: RuleDraft, index: int) -> ServiceResult | None:
        if 0 <= index < len(draft.targets):
            return None
        return failure(
            op,
            "INVALID_INDEX",
            f"Target index {index} out of range (rule has {len(draft.targets)} targets)",
            detail={"index": index, "count": len(draft.targets)},
        )

    def add_target(self, draft_id: str, target_input: TargetInput) -> ServiceResult:
        op = "add_target"
        draft = self._load_rule(op, draft_id)
        if isinstance(draft, ServiceResult):
            return draft
        return self._apply(op, draft_id, add_target(draft, target_input))

    def edit_target(
        self,
        draft_id: str,
        index: int,
        *,
        to_account_id: str | None = None,
        weight: float | str | None = None,
        unit_id: str | None = None,
        notes: str | None = None,
    ) -> ServiceResult:
        """Replace the target at *index*; omitted fields keep their current value."""
        op = "edit_target"
        draft = self._load_rule(op, draft_id)
        if isinstance(draft, ServiceResult):
            return draft
        bad = self._bad_index(op, draft, index)
        if bad is not None:
            return bad

        current = target_input_from(draft.targets[index], draft.storage_key)
        target_input = TargetInput(
            to_account_id=current.to_account_id if to_account_id is None else to_account_id,
            weight=current.weight if weight is None else weight,
            unit_id=current.unit_id if unit_id is None else unit_id,
            notes=current.notes if notes is None else notes,
            extra_dimensions=current.extra_dimensions,
        )
        return self._apply(op, draft_id, edit_target(draft, index, target_input))

    def remove_target(self, draft_id: str, index: int) -> ServiceResult:
        op = "remove_target"
        draft = self._load_rule(op, draft_id)
        if isinstance(draft, ServiceResult):
            return draft
        bad = self._bad_index(op, draft, index)
        if bad is not None:
            return bad
        return self._apply(op, draft_id, remove_target(draft, index))

    # ------------------------------------------------------------------
    # Close
    # ------------------------------------------------------------------

    def submit(self, draft_id: str) -> ServiceResult:
        """Create or update the record behind a draft.

        On success the draft is closed. On failure it stays open and
        unchanged so it can be fixed and resubmitted.
        """
        op = "submit_draft"
        loaded = self._load(op, draft_id)
        if isinstance(loaded, ServiceResult):
            return loaded
        _, draft = loaded

        if isinstance(draft, RuleDraft):
            rules = RuleService(self._workspace)
            result = rules.update_rule(draft.id, draft) if draft.id else rules.create_rule(draft)
        else:
            bases = AllocationBaseService(self._workspace)
            result = bases.update_base(draft.id, draft) if draft.id else bases.create_base(draft)

        if not result.ok:
            return result.model_copy(update={"op": op})

        warnings = list(result.warnings)
        with self._workspace.transaction() as txn:
            closed = txn.close_draft(draft_id)
        if not closed:
            warnings.append(
                f"Draft {draft_id} was closed while the request was in flight; "
                "the response was not applied to it"
            )
            logger.warning("Discarded response for closed draft %s", draft_id)

        return ServiceResult(
            ok=True,
            op=op,
            data={**result.data, "draft_id": draft_id, "applied": closed},
            warnings=warnings,
            meta=result.meta,
        )

    def discard(self, draft_id: str) -> ServiceResult:
        op = "discard_draft"
        with self._workspace.transaction() as txn:
            closed = txn.close_draft(draft_id)
        if not closed:
            return failure(op, "DRAFT_NOT_FOUND", f"No open draft with ID: {draft_id}")
        return ServiceResult(ok=True, op=op, data={"draft_id": draft_id})
