"""Tests for the allocation route groups."""

from __future__ import annotations

import pytest

from allocctl.domain.ids import new_mutation_token
from allocctl.infrastructure.api import AllocationsApi, path_segment, record_from, rows_from
from allocctl.infrastructure.http import LedgerHttpClient, RemoteError
from tests.conftest import PREFIX, FakeLedger


@pytest.fixture
def api(ledger: FakeLedger) -> AllocationsApi:
    client = LedgerHttpClient("http://ledger", prefix=PREFIX, transport=ledger.transport())
    return AllocationsApi(client)


class TestEnvelopes:
    def test_rows_from_shapes(self) -> None:
        assert rows_from([{"id": 1}]) == [{"id": 1}]
        assert rows_from({"data": [{"id": 2}]}) == [{"id": 2}]
        assert rows_from({"items": [{"id": 3}, "junk"]}) == [{"id": 3}]
        assert rows_from({"ok": True}) == []
        assert rows_from(None) == []

    def test_record_from_shapes(self) -> None:
        assert record_from({"data": {"id": "b1"}}) == {"id": "b1"}
        assert record_from({"id": "r1"}) == {"id": "r1"}
        assert record_from(None) == {}


class TestRoutes:
    def test_list_unwraps_both_envelopes(self, api: AllocationsApi, ledger: FakeLedger) -> None:
        ledger.add_base()
        ledger.add_rule()
        assert [b["id"] for b in api.bases.list()] == ["b1"]
        assert [r["id"] for r in api.rules.list()] == ["r1"]

    def test_create_and_update_rule(self, api: AllocationsApi, ledger: FakeLedger) -> None:
        created = api.rules.create({"code": "RENT", "status": "active"}, new_mutation_token())
        assert created["id"] in ledger.rules
        updated = api.rules.update(
            created["id"], {"code": "RENT", "status": "archived"}, new_mutation_token()
        )
        assert updated["status"] == "archived"
        assert ledger.calls("PUT", f"/rules/{created['id']}")

    def test_delete_rule(self, api: AllocationsApi, ledger: FakeLedger) -> None:
        ledger.add_rule(status="archived")
        assert api.rules.delete("r1", new_mutation_token()) is None
        assert "r1" not in ledger.rules

    def test_ids_escaped_as_one_segment(self, api: AllocationsApi, ledger: FakeLedger) -> None:
        ledger.add_rule(rule_id="a/b?c", status="archived")
        api.rules.delete("a/b?c", new_mutation_token())
        assert ledger.requests[-1].url.raw_path == f"{PREFIX}/rules/a%2Fb%3Fc".encode()
        assert "a/b?c" not in ledger.rules

    def test_path_segment(self) -> None:
        assert path_segment("r1") == "r1"
        assert path_segment("../bases") == "..%2Fbases"
        assert path_segment("a b#c") == "a%20b%23c"

    def test_compute_body(self, api: AllocationsApi, ledger: FakeLedger) -> None:
        api.execution.compute("2026-03", ["r1"], "March", True, new_mutation_token())
        body = FakeLedger.body(ledger.calls("POST", "/compute")[0])
        assert body == {"periodId": "2026-03", "ruleIds": ["r1"], "memo": "March", "replace": True}

    def test_post_route(self, api: AllocationsApi, ledger: FakeLedger) -> None:
        runs = api.execution.compute("2026-03", ["r1"], None, True, new_mutation_token())
        run_id = runs[0]["id"]
        body = api.execution.post(run_id, "2026-03-31", None, new_mutation_token())
        assert body["journalEntryId"].startswith("je-")
        sent = FakeLedger.body(ledger.calls("POST", f"/{run_id}/post")[0])
        assert sent == {"entryDate": "2026-03-31", "memo": None}

    def test_preview_has_no_token(self, api: AllocationsApi, ledger: FakeLedger) -> None:
        api.execution.preview("2026-03", ["r1"])
        assert ledger.mutations == []

    def test_remote_rejection_raises(self, api: AllocationsApi, ledger: FakeLedger) -> None:
        ledger.add_rule(status="active")
        with pytest.raises(RemoteError) as exc_info:
            api.rules.delete("r1", new_mutation_token())
        assert exc_info.value.code == "RULE_NOT_ARCHIVED"
        assert exc_info.value.status == 409
