"""Target list editor — add, edit, and remove targets on a rule draft.

Every operation returns a :class:`DraftUpdate` holding the resulting draft.
On a rejected add/edit the draft is returned unchanged alongside the field
errors. The dimension storage key is injected from the draft's current
category; callers supply only the unit id.

Out-of-range indexes are a caller bug and raise ``IndexError``. The empty
target list is allowed while editing and only rejected at submit time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from allocctl.domain.rules import AllocationTarget, RuleDraft
from allocctl.domain.validation import check_target_input, parse_weight


@dataclass(frozen=True)
class TargetInput:
    """User-supplied fields for one target.

    ``unit_id`` is the organizational unit for the rule's category.
    ``extra_dimensions`` are free-form keys merged under the category key.
    """

    to_account_id: str
    weight: float | str | None
    unit_id: str
    notes: str | None = None
    extra_dimensions: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class DraftUpdate:
    """Result of a target editing operation."""

    draft: RuleDraft
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def build_target(draft: RuleDraft, target_input: TargetInput) -> AllocationTarget:
    """Construct a target whose dimension values carry the draft's storage key."""
    dimension_values: dict[str, Any] = {
        **target_input.extra_dimensions,
        draft.storage_key: target_input.unit_id.strip(),
    }
    fields: dict[str, Any] = {
        "toAccountId": target_input.to_account_id.strip(),
        "weight": parse_weight(target_input.weight),
        "dimensionValues": dimension_values,
    }
    if target_input.notes:
        fields["notes"] = target_input.notes
    return AllocationTarget.model_validate(fields)


def _check(draft: RuleDraft, target_input: TargetInput) -> dict[str, str]:
    spec = draft.dimension_category.spec
    return check_target_input(target_input, spec.storage_key, spec.label)


def _check_index(draft: RuleDraft, index: int) -> None:
    if not 0 <= index < len(draft.targets):
        msg = f"Target index {index} out of range (rule has {len(draft.targets)} targets)"
        raise IndexError(msg)


def add_target(draft: RuleDraft, target_input: TargetInput) -> DraftUpdate:
    """Append a target built from *target_input*."""
    errors = _check(draft, target_input)
    if errors:
        return DraftUpdate(draft=draft, errors=errors)
    target = build_target(draft, target_input)
    return DraftUpdate(draft=draft.model_copy(update={"targets": (*draft.targets, target)}))


def edit_target(draft: RuleDraft, index: int, target_input: TargetInput) -> DraftUpdate:
    """Replace the target at *index*; its dimension key follows the current category."""
    _check_index(draft, index)
    errors = _check(draft, target_input)
    if errors:
        return DraftUpdate(draft=draft, errors=errors)
    targets = list(draft.targets)
    targets[index] = build_target(draft, target_input)
    return DraftUpdate(draft=draft.model_copy(update={"targets": tuple(targets)}))


def remove_target(draft: RuleDraft, index: int) -> DraftUpdate:
    """Drop the target at *index*."""
    _check_index(draft, index)
    targets = draft.targets[:index] + draft.targets[index + 1 :]
    return DraftUpdate(draft=draft.model_copy(update={"targets": targets}))


def target_input_from(target: AllocationTarget, storage_key: str) -> TargetInput:
    """Prefill an edit form from an existing target.

    Keys other than *storage_key* become extra dimensions; the unit id is
    empty when the target was added under another category.
    """
    extras = {k: str(v) for k, v in target.dimension_values.items() if k != storage_key}
    return TargetInput(
        to_account_id=target.to_account_id,
        weight=target.weight,
        unit_id=target.unit_id(storage_key) or "",
        notes=target.notes,
        extra_dimensions=extras,
    )
