"""Tests for record status transitions."""

import pytest

from allocctl.domain.lifecycle import (
    RECORD_TRANSITIONS,
    RecordAction,
    allowed_actions,
    initial_status,
    is_valid_transition,
    next_status,
)


class TestRecordTransitions:
    def test_initial_status_is_active(self) -> None:
        assert initial_status() == "active"

    def test_archive_from_active(self) -> None:
        assert is_valid_transition("active", RecordAction.ARCHIVE)
        assert next_status("active", "archive") == "archived"

    def test_activate_from_inactive(self) -> None:
        assert next_status("inactive", "activate") == "active"

    def test_delete_only_from_archived(self) -> None:
        assert next_status("archived", "delete") is None
        assert not is_valid_transition("active", "delete")
        assert not is_valid_transition("inactive", "delete")

    def test_edit_keeps_status(self) -> None:
        assert next_status("active", "edit") == "active"
        assert next_status("inactive", "edit") == "inactive"
        assert not is_valid_transition("archived", "edit")

    def test_activate_not_from_archived(self) -> None:
        assert not is_valid_transition("archived", "activate")

    def test_invalid_transition_raises(self) -> None:
        with pytest.raises(ValueError, match="Cannot delete"):
            next_status("active", "delete")

    def test_unknown_status_has_no_actions(self) -> None:
        assert allowed_actions("pending") == []
        assert not is_valid_transition("pending", "archive")

    def test_allowed_actions(self) -> None:
        assert sorted(allowed_actions("active")) == ["archive", "edit"]
        assert allowed_actions("archived") == ["delete"]

    def test_every_target_status_is_known(self) -> None:
        for moves in RECORD_TRANSITIONS.values():
            for target in moves.values():
                assert target is None or target in RECORD_TRANSITIONS
