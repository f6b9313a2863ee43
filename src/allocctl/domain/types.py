"""Closed enumerations shared by bases, rules, and runs.

Values are the exact strings exchanged with the remote ledger.
"""

from __future__ import annotations

from enum import StrEnum


class RecordStatus(StrEnum):
    """Status of an allocation base or rule."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    ARCHIVED = "archived"


class BaseUnit(StrEnum):
    """Measurement unit a rule's weights are expressed in."""

    HOURS = "hours"
    HEADCOUNT = "headcount"
    SQUARE_FOOTAGE = "square_footage"
    REVENUE = "revenue"
    UNITS = "units"
    PERCENTAGE = "percentage"
    CUSTOM = "custom"


class RunStatus(StrEnum):
    """Status of a computed allocation run."""

    COMPUTED = "computed"
    POSTED = "posted"


class RecordKind(StrEnum):
    """Kinds of records the workspace caches and drafts."""

    BASE = "base"
    RULE = "rule"
