"""Dimension registry — target dimension categories and their storage keys.

Each category names the kind of organizational unit a rule's targets are
tagged with. The storage key is the JSON field inside a target's
``dimensionValues`` that holds the selected unit id.

INVARIANT: Storage keys never change. Renaming one orphans every target
already stored under the old key.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class DimensionCategory(StrEnum):
    """Organizational dimension a rule allocates across.

    Values are the ``targetDimension`` strings sent to the remote ledger.
    """

    COST_CENTER = "costcenter"
    PROFIT_CENTER = "profitcenter"
    INVESTMENT_CENTER = "investmentcenter"
    PROJECT = "project"
    CUSTOM = "custom"

    @property
    def spec(self) -> DimensionSpec:
        return dimension_spec(self)

    @property
    def storage_key(self) -> str:
        return DIMENSION_REGISTRY[self].storage_key

    @property
    def label(self) -> str:
        return DIMENSION_REGISTRY[self].label


@dataclass(frozen=True)
class DimensionSpec:
    """Registry entry for one dimension category."""

    category: DimensionCategory
    storage_key: str
    label: str


DIMENSION_REGISTRY: dict[DimensionCategory, DimensionSpec] = {
    spec.category: spec
    for spec in (
        DimensionSpec(DimensionCategory.COST_CENTER, "costCenterId", "Cost Center"),
        DimensionSpec(DimensionCategory.PROFIT_CENTER, "profitCenterId", "Profit Center"),
        DimensionSpec(
            DimensionCategory.INVESTMENT_CENTER, "investmentCenterId", "Investment Center"
        ),
        DimensionSpec(DimensionCategory.PROJECT, "projectId", "Project"),
        DimensionSpec(DimensionCategory.CUSTOM, "customDimensionId", "Custom Dimension"),
    )
}

assert set(DIMENSION_REGISTRY) == set(DimensionCategory), "registry must cover every category"
assert len({s.storage_key for s in DIMENSION_REGISTRY.values()}) == len(DIMENSION_REGISTRY)


def dimension_spec(category: DimensionCategory | str) -> DimensionSpec:
    """Return the registry entry for *category*.

    Accepts the enum member or its wire value. An unknown value raises
    ``ValueError`` — the category set is closed.
    """
    return DIMENSION_REGISTRY[DimensionCategory(category)]


def storage_key_for(category: DimensionCategory | str) -> str:
    """Storage key used in ``dimensionValues`` for *category*."""
    return dimension_spec(category).storage_key
