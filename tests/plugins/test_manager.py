"""Tests for PluginManager — registration and hook relay."""

from __future__ import annotations

from typing import Any

import pytest

from allocctl.plugins import PluginManager, hookimpl


class _RecordingPlugin:
    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []

    @hookimpl
    def post_compute(self, period_id: str, run_ids: list[str], replace: bool) -> None:
        self.calls.append({"period_id": period_id, "run_ids": run_ids, "replace": replace})


class _BrokenPlugin:
    @hookimpl
    def post_post(self, run_id: str, journal_entry_id: str | None) -> None:
        raise RuntimeError("plugin bug")


class TestPluginManager:
    def test_hook_relay_accessible(self) -> None:
        pm = PluginManager()
        for name in ("post_base_change", "post_rule_change", "post_compute", "post_post"):
            assert hasattr(pm.hook, name)

    def test_register_and_unregister(self) -> None:
        pm = PluginManager()
        plugin = _RecordingPlugin()
        pm.register_plugin(plugin, name="recorder")
        assert "recorder" in pm.list_plugin_names()
        pm.unregister(plugin)
        assert "recorder" not in pm.list_plugin_names()

    def test_default_name_is_class_name(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_RecordingPlugin())
        assert "_RecordingPlugin" in pm.list_plugin_names()

    def test_dispatch_passes_keywords(self) -> None:
        pm = PluginManager()
        plugin = _RecordingPlugin()
        pm.register_plugin(plugin)
        pm.dispatch("post_compute", {"period_id": "P1", "run_ids": ["run-1"], "replace": True})
        assert plugin.calls == [{"period_id": "P1", "run_ids": ["run-1"], "replace": True}]

    def test_dispatch_propagates_plugin_errors(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_BrokenPlugin())
        with pytest.raises(RuntimeError, match="plugin bug"):
            pm.dispatch("post_post", {"run_id": "run-1", "journal_entry_id": None})
