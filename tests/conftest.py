"""Shared pytest fixtures and test helpers for allocctl tests.

Remote calls are served by :class:`FakeLedger`, an in-memory stand-in for
the ledger's allocation routes mounted through ``httpx.MockTransport``.
"""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Generator
from pathlib import Path
from typing import Any
from urllib.parse import unquote

import httpx
import pytest
from click.testing import CliRunner

from allocctl.config.settings import AllocSettings
from allocctl.infrastructure.workspace import Workspace

PREFIX = "/reporting/allocations"


def make_rule(rule_id: str = "r1", status: str = "active", **overrides: Any) -> dict[str, Any]:
    """A stored rule record in the ledger's wire shape."""
    record: dict[str, Any] = {
        "id": rule_id,
        "code": "RENT",
        "name": "Rent split",
        "baseId": "b1",
        "sourceAccountId": "6100",
        "targetDimension": "costcenter",
        "status": status,
        "payloadJson": {
            "targets": [
                {"toAccountId": "A1", "weight": 1.5, "dimensionValues": {"costCenterId": "CC-10"}}
            ]
        },
    }
    record.update(overrides)
    return record


def make_base(base_id: str = "b1", status: str = "active", **overrides: Any) -> dict[str, Any]:
    record: dict[str, Any] = {
        "id": base_id,
        "code": "LH",
        "name": "Labour Hours",
        "unit": "hours",
        "status": status,
    }
    record.update(overrides)
    return record


class FakeLedger:
    """In-memory ledger honouring idempotency keys and compute ``replace``.

    Replies to tokenized requests are remembered per ``Idempotency-Key``; a
    repeated token gets the stored reply and changes nothing.
    """

    def __init__(self) -> None:
        self.bases: dict[str, dict[str, Any]] = {}
        self.rules: dict[str, dict[str, Any]] = {}
        self.runs: dict[str, dict[str, Any]] = {}
        self.requests: list[httpx.Request] = []
        self.replies: dict[str, tuple[int, bytes]] = {}
        self.zero_amount_runs: set[str] = set()
        self.failures: list[httpx.Response] = []
        self.on_request: Any = None
        self._seq = 0

    # -- setup helpers --------------------------------------------------

    def add_base(self, **kwargs: Any) -> dict[str, Any]:
        record = make_base(**kwargs)
        self.bases[record["id"]] = record
        return record

    def add_rule(self, **kwargs: Any) -> dict[str, Any]:
        record = make_rule(**kwargs)
        self.rules[record["id"]] = record
        return record

    def fail_next(self, status: int, body: Any) -> None:
        """Answer the next request with an error response."""
        self.failures.append(httpx.Response(status, json=body))

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    # -- inspection -----------------------------------------------------

    @property
    def mutations(self) -> list[httpx.Request]:
        """Requests that carried an idempotency key."""
        return [r for r in self.requests if "Idempotency-Key" in r.headers]

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            r for r in self.requests if r.method == method and r.url.path == PREFIX + path
        ]

    @staticmethod
    def body(request: httpx.Request) -> Any:
        return json.loads(request.content) if request.content else None

    # -- routing --------------------------------------------------------

    def _next_id(self, prefix: str) -> str:
        self._seq += 1
        return f"{prefix}{self._seq}"

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.on_request is not None:
            self.on_request(request)
        if self.failures:
            return self.failures.pop(0)

        token = request.headers.get("Idempotency-Key")
        if token and token in self.replies:
            status, content = self.replies[token]
            return httpx.Response(status, content=content)

        response = self._route(request)
        if token and not response.is_error:
            self.replies[token] = (response.status_code, response.read())
        return response

    def _route(self, request: httpx.Request) -> httpx.Response:
        path = request.url.raw_path.decode("ascii").partition("?")[0].removeprefix(PREFIX)
        parts = [unquote(p) for p in path.split("/") if p]
        method = request.method
        body = self.body(request)

        if parts == ["bases"] and method == "GET":
            return httpx.Response(200, json={"data": copy.deepcopy(list(self.bases.values()))})
        if parts == ["bases"] and method == "POST":
            record = {**body, "id": self._next_id("b")}
            self.bases[record["id"]] = record
            return httpx.Response(201, json={"data": record})
        if len(parts) == 2 and parts[0] == "bases" and method == "PUT":
            return self._replace(self.bases, parts[1], body)

        if parts == ["rules"] and method == "GET":
            return httpx.Response(200, json=copy.deepcopy(list(self.rules.values())))
        if parts == ["rules"] and method == "POST":
            record = {**body, "id": self._next_id("r")}
            self.rules[record["id"]] = record
            return httpx.Response(201, json=record)
        if len(parts) == 2 and parts[0] == "rules" and method == "PUT":
            return self._replace(self.rules, parts[1], body)
        if len(parts) == 2 and parts[0] == "rules" and method == "DELETE":
            rule = self.rules.get(parts[1])
            if rule is None:
                return _error(404, "NOT_FOUND", "Rule not found")
            if rule["status"] != "archived":
                return _error(409, "RULE_NOT_ARCHIVED", "Only archived rules can be deleted")
            del self.rules[parts[1]]
            return httpx.Response(204)

        if parts == ["preview"] and method == "POST":
            runs = [
                {"ruleId": rid, "periodId": body["periodId"], "status": "computed"}
                for rid in body["ruleIds"]
            ]
            return httpx.Response(200, json={"runs": runs})
        if parts == ["compute"] and method == "POST":
            return self._compute(body)
        if len(parts) == 2 and parts[1] == "post" and method == "POST":
            return self._post(parts[0])

        return _error(404, "NOT_FOUND", f"No route for {method} {path}")

    def _replace(
        self, table: dict[str, dict[str, Any]], record_id: str, body: dict[str, Any]
    ) -> httpx.Response:
        if record_id not in table:
            return _error(404, "NOT_FOUND", "Record not found")
        table[record_id] = {**body, "id": record_id}
        return httpx.Response(200, json=table[record_id])

    def _compute(self, body: dict[str, Any]) -> httpx.Response:
        period = body["periodId"]
        if body.get("replace"):
            for run_id in [
                k
                for k, run in self.runs.items()
                if run["periodId"] == period and run["status"] == "computed"
            ]:
                del self.runs[run_id]
        created = []
        for rule_id in body["ruleIds"]:
            run = {
                "id": self._next_id("run-"),
                "ruleId": rule_id,
                "periodId": period,
                "status": "computed",
                "memo": body.get("memo"),
            }
            self.runs[run["id"]] = run
            created.append(run)
        return httpx.Response(200, json=created)

    def _post(self, run_id: str) -> httpx.Response:
        run = self.runs.get(run_id)
        if run is None:
            return _error(404, "RUN_NOT_FOUND", "Run not found")
        if run["status"] == "posted":
            return _error(409, "ALREADY_POSTED", "Run already posted")
        run["status"] = "posted"
        if run_id in self.zero_amount_runs:
            return httpx.Response(200, json={})
        run["journalEntryId"] = self._next_id("je-")
        return httpx.Response(200, json={"journalEntryId": run["journalEntryId"]})


def _error(status: int, code: str, message: str) -> httpx.Response:
    return httpx.Response(status, json={"error": {"code": code, "message": message}})


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Undo the root handler each CLI invocation installs."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    alloc_level = logging.getLogger("allocctl").level
    yield
    root.handlers = handlers
    root.setLevel(level)
    logging.getLogger("allocctl").setLevel(alloc_level)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def settings(tmp_path: Path) -> AllocSettings:
    return AllocSettings.from_cli(root=tmp_path)


@pytest.fixture
def workspace(settings: AllocSettings, ledger: FakeLedger) -> Generator[Workspace]:
    """Workspace on a temp directory talking to the fake ledger."""
    ws = Workspace(settings, transport=ledger.transport())
    try:
        yield ws
    finally:
        ws.close()


@pytest.fixture
def _isolated_workspace(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, ledger: FakeLedger
) -> None:
    """Run CLI commands in a temp root with the fake ledger behind every client.

    Use via ``@pytest.mark.usefixtures("_isolated_workspace")`` on command test
    classes; request ``ledger`` to seed or inspect remote state.
    """
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(httpx, "HTTPTransport", lambda **_: ledger.transport())
