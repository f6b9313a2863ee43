"""Record lifecycle — status transitions for bases and rules.

Both record kinds share one machine::

    (new) --create--> active --archive--> archived --delete--> (removed)
    inactive --activate--> active
    active/inactive --edit--> (unchanged)

``inactive`` is only reachable as an explicit or initial status value;
archive always lands on ``archived``. Delete is a rule-only action.
"""

from __future__ import annotations

from enum import StrEnum

from allocctl.domain.types import RecordStatus


class RecordAction(StrEnum):
    """User actions that drive a record's status."""

    CREATE = "create"
    EDIT = "edit"
    ARCHIVE = "archive"
    ACTIVATE = "activate"
    DELETE = "delete"


# current status -> {action: resulting status (None = removed)}
RECORD_TRANSITIONS: dict[str, dict[str, str | None]] = {
    "active": {"archive": "archived", "edit": "active"},
    "inactive": {"activate": "active", "edit": "inactive"},
    "archived": {"delete": None},
}


def allowed_actions(current: str) -> list[str]:
    """Actions permitted from *current* status (create excluded)."""
    return list(RECORD_TRANSITIONS.get(current, {}))


def is_valid_transition(current: str, action: str) -> bool:
    """Check whether *action* may be applied to a record in *current* status."""
    return action in RECORD_TRANSITIONS.get(current, {})


def next_status(current: str, action: str) -> str | None:
    """Resulting status after *action*, or None when the record is removed.

    Raises ``ValueError`` if the transition is not allowed; callers check
    :func:`is_valid_transition` first.
    """
    if not is_valid_transition(current, action):
        msg = f"Cannot {action} a record in status {current!r}"
        raise ValueError(msg)
    return RECORD_TRANSITIONS[current][action]


def initial_status() -> str:
    """Status every newly created record starts in."""
    return str(RecordStatus.ACTIVE)
