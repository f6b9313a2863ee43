"""Validation engine — pure checks gating base and rule submission.

These mirror constraints the remote ledger enforces authoritatively, so a
draft that fails here is never sent. Expected failures are returned as a
field -> message map, never raised.

Nested target errors are fail-fast: rule validation reports only the
first offending target, keyed ``targets[<index>]``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from allocctl.domain.dimensions import dimension_spec
from allocctl.domain.types import BaseUnit

if TYPE_CHECKING:
    from allocctl.domain.bases import BaseDraft
    from allocctl.domain.rules import AllocationTarget, RuleDraft
    from allocctl.domain.targets import TargetInput

MIN_TEXT_LENGTH = 2


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a draft."""

    errors: dict[str, str] = field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return not self.errors

    def first_error(self) -> str | None:
        return next(iter(self.errors.values()), None)


def parse_weight(value: Any) -> float | None:
    """Coerce a weight input to a finite float, or None if it is not one."""
    if value is None or isinstance(value, bool):
        return None
    try:
        weight = float(value)
    except (TypeError, ValueError):
        return None
    return weight if math.isfinite(weight) else None


def _check_text(errors: dict[str, str], key: str, label: str, value: str | None) -> None:
    text = (value or "").strip()
    if not text:
        errors[key] = f"{label} is required"
    elif len(text) < MIN_TEXT_LENGTH:
        errors[key] = f"{label} must be at least {MIN_TEXT_LENGTH} characters"


# ---------------------------------------------------------------------------
# Bases
# ---------------------------------------------------------------------------


def validate_base(draft: BaseDraft) -> ValidationResult:
    """Check code, name, and unit of a base draft."""
    errors: dict[str, str] = {}
    _check_text(errors, "code", "Code", draft.code)
    _check_text(errors, "name", "Name", draft.name)
    if draft.unit not in {u.value for u in BaseUnit}:
        allowed = ", ".join(u.value for u in BaseUnit)
        errors["unit"] = f"Unit must be one of: {allowed}"
    return ValidationResult(errors)


# ---------------------------------------------------------------------------
# Targets
# ---------------------------------------------------------------------------


def check_target_input(target_input: TargetInput, storage_key: str, label: str) -> dict[str, str]:
    """Field errors for a target about to be added or edited."""
    errors: dict[str, str] = {}
    if not (target_input.to_account_id or "").strip():
        errors["toAccountId"] = "Destination account is required"
    weight = parse_weight(target_input.weight)
    if weight is None:
        errors["weight"] = "Weight must be a number"
    elif weight <= 0:
        errors["weight"] = "Weight must be greater than 0"
    if not (target_input.unit_id or "").strip():
        errors[f"dimensionValues.{storage_key}"] = f"{label} is required"
    return errors


def validate_target(target: AllocationTarget, storage_key: str, label: str) -> dict[str, str]:
    """Field errors for an already-built target under the given storage key."""
    errors: dict[str, str] = {}
    if not (target.to_account_id or "").strip():
        errors["toAccountId"] = "Destination account is required"
    if not (math.isfinite(target.weight) and target.weight > 0):
        errors["weight"] = "Weight must be greater than 0"
    if target.unit_id(storage_key) is None:
        errors[f"dimensionValues.{storage_key}"] = f"{label} is required"
    return errors


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def validate_rule(draft: RuleDraft) -> ValidationResult:
    """Check a rule draft's header fields and its targets.

    Stops at the first failing target and reports only that one.
    """
    errors: dict[str, str] = {}
    _check_text(errors, "code", "Code", draft.code)
    _check_text(errors, "name", "Name", draft.name)
    if not draft.base_id.strip():
        errors["baseId"] = "Allocation base is required"
    if not draft.source_account_id.strip():
        errors["sourceAccountId"] = "Source account is required"

    if not draft.targets:
        errors["targets"] = "At least one target is required"
        return ValidationResult(errors)

    spec = dimension_spec(draft.dimension_category)
    for index, target in enumerate(draft.targets):
        target_errors = validate_target(target, spec.storage_key, spec.label)
        if target_errors:
            message = next(iter(target_errors.values()))
            errors[f"targets[{index}]"] = f"Target {index + 1}: {message}"
            break

    return ValidationResult(errors)
