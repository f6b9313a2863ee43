"""Allocation routes of the ledger back-end.

Mirrors the remote contract one call per route::

    api.bases.list() / create(payload, token) / update(id, payload, token)
    api.rules.list() / create(payload, token) / update(id, payload, token)
              / delete(id, token)
    api.execution.preview(period_id, rule_ids)
              / compute(period_id, rule_ids, memo, replace, token)
              / post(run_id, entry_date, memo, token)

Archive and activate are full-replace updates carrying the new status.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from urllib.parse import quote

if TYPE_CHECKING:
    from allocctl.domain.ids import MutationToken
    from allocctl.infrastructure.http import LedgerHttpClient


def rows_from(body: Any) -> list[dict[str, Any]]:
    """Records from a list response: bare array, or ``data``/``items`` envelope."""
    if isinstance(body, list):
        rows = body
    elif isinstance(body, dict) and isinstance(body.get("data"), list):
        rows = body["data"]
    elif isinstance(body, dict) and isinstance(body.get("items"), list):
        rows = body["items"]
    else:
        rows = []
    return [r for r in rows if isinstance(r, dict)]


def path_segment(value: str) -> str:
    """Escape an id for use as one URL path segment."""
    return quote(str(value), safe="")


def record_from(body: Any) -> dict[str, Any]:
    """Single record from a response, unwrapping a ``data`` envelope."""
    if isinstance(body, dict) and isinstance(body.get("data"), dict):
        return body["data"]
    return body if isinstance(body, dict) else {}


class _Routes:
    def __init__(self, http: LedgerHttpClient) -> None:
        self._http = http


class BasesRoutes(_Routes):
    def list(self) -> list[dict[str, Any]]:
        return rows_from(self._http.request("GET", "/bases"))

    def create(self, payload: dict[str, Any], token: MutationToken) -> dict[str, Any]:
        return record_from(self._http.request("POST", "/bases", json=payload, token=token))

    def update(
        self, base_id: str, payload: dict[str, Any], token: MutationToken
    ) -> dict[str, Any]:
        path = f"/bases/{path_segment(base_id)}"
        body = self._http.request("PUT", path, json=payload, token=token)
        return record_from(body)


class RulesRoutes(_Routes):
    def list(self) -> list[dict[str, Any]]:
        return rows_from(self._http.request("GET", "/rules"))

    def create(self, payload: dict[str, Any], token: MutationToken) -> dict[str, Any]:
        return record_from(self._http.request("POST", "/rules", json=payload, token=token))

    def update(
        self, rule_id: str, payload: dict[str, Any], token: MutationToken
    ) -> dict[str, Any]:
        path = f"/rules/{path_segment(rule_id)}"
        body = self._http.request("PUT", path, json=payload, token=token)
        return record_from(body)

    def delete(self, rule_id: str, token: MutationToken) -> None:
        self._http.request("DELETE", f"/rules/{path_segment(rule_id)}", token=token)


class ExecutionRoutes(_Routes):
    def preview(self, period_id: str, rule_ids: list[str]) -> Any:
        return self._http.request(
            "POST", "/preview", json={"periodId": period_id, "ruleIds": rule_ids}
        )

    def compute(
        self,
        period_id: str,
        rule_ids: list[str],
        memo: str | None,
        replace: bool,
        token: MutationToken,
    ) -> Any:
        body = {"periodId": period_id, "ruleIds": rule_ids, "memo": memo, "replace": replace}
        return self._http.request("POST", "/compute", json=body, token=token)

    def post(
        self,
        run_id: str,
        entry_date: str,
        memo: str | None,
        token: MutationToken,
    ) -> Any:
        body = {"entryDate": entry_date, "memo": memo}
        path = f"/{path_segment(run_id)}/post"
        return self._http.request("POST", path, json=body, token=token)


class AllocationsApi:
    """Route groups for bases, rules, and execution."""

    def __init__(self, http: LedgerHttpClient) -> None:
        self.http = http
        self.bases = BasesRoutes(http)
        self.rules = RulesRoutes(http)
        self.execution = ExecutionRoutes(http)

    def close(self) -> None:
        self.http.close()
