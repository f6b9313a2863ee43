"""Pluggy hook specifications for allocation lifecycle events.

Hooks fire after the remote ledger has accepted a change, never before.
"""

from __future__ import annotations

import pluggy

PROJECT_NAME = "allocctl"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class AllocctlHookSpec:
    """Hook specifications for the allocctl plugin system."""

    @hookspec
    def post_base_change(self, base_id: str, action: str, status: str | None) -> None:
        """Called after a base is created, edited, archived, or activated."""

    @hookspec
    def post_rule_change(self, rule_id: str, action: str, status: str | None) -> None:
        """Called after a rule changes. ``status`` is None once deleted."""

    @hookspec
    def post_compute(self, period_id: str, run_ids: list[str], replace: bool) -> None:
        """Called after allocation runs are computed for a period."""

    @hookspec
    def post_post(self, run_id: str, journal_entry_id: str | None) -> None:
        """Called after a run is posted. ``journal_entry_id`` is None for zero amounts."""
