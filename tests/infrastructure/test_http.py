"""Tests for the ledger HTTP client and error normalization."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from allocctl.domain.ids import MutationToken, new_mutation_token
from allocctl.infrastructure.http import (
    FALLBACK_MESSAGE,
    IDEMPOTENCY_HEADER,
    REQUEST_ID_HEADER,
    LedgerHttpClient,
    RemoteError,
)
from tests.conftest import FakeLedger


def _client(
    handler: Callable[[httpx.Request], httpx.Response], **kwargs: Any
) -> LedgerHttpClient:
    return LedgerHttpClient(
        "http://ledger/",
        prefix="/reporting/allocations",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestHeaders:
    def test_request_id_on_every_request(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[])

        client = _client(handler)
        client.request("GET", "/rules")
        client.request("GET", "/rules")
        ids = [r.headers[REQUEST_ID_HEADER] for r in seen]
        assert len(set(ids)) == 2
        assert all(IDEMPOTENCY_HEADER not in r.headers for r in seen)

    def test_token_sent_as_idempotency_key(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"id": "r1"})

        token = new_mutation_token()
        _client(handler).request("POST", "/rules", json={"code": "X"}, token=token)
        assert seen[0].headers[IDEMPOTENCY_HEADER] == token

    def test_bearer_token_and_prefix(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[])

        _client(handler, api_token="s3cret").request("GET", "/bases")
        assert seen[0].headers["Authorization"] == "Bearer s3cret"
        assert seen[0].url.path == "/reporting/allocations/bases"


class TestResponses:
    def test_decodes_json(self) -> None:
        client = _client(lambda r: httpx.Response(200, json={"data": [1]}))
        assert client.request("GET", "/bases") == {"data": [1]}

    def test_empty_body_is_none(self) -> None:
        client = _client(lambda r: httpx.Response(204))
        assert client.request("DELETE", "/rules/r1", token=MutationToken("t")) is None

    def test_non_json_body_is_none(self) -> None:
        client = _client(lambda r: httpx.Response(200, text="ok"))
        assert client.request("GET", "/rules") is None


class TestRemoteError:
    def test_flat_error_body(self) -> None:
        client = _client(
            lambda r: httpx.Response(
                422,
                json={"code": "BAD_WEIGHT", "message": "Weight invalid", "details": {"i": 1}},
            )
        )
        with pytest.raises(RemoteError) as exc_info:
            client.request("POST", "/rules", json={}, token=MutationToken("t"))
        err = exc_info.value
        assert err.status == 422
        assert err.code == "BAD_WEIGHT"
        assert err.message == "Weight invalid"
        assert err.to_detail() == {"status": 422, "details": {"i": 1}}

    def test_nested_error_body(self) -> None:
        body = {"error": {"code": "ALREADY_POSTED", "message": "Run already posted"}}
        client = _client(lambda r: httpx.Response(409, json=body))
        with pytest.raises(RemoteError) as exc_info:
            client.request("POST", "/run-1/post", json={}, token=MutationToken("t"))
        assert exc_info.value.code == "ALREADY_POSTED"
        assert exc_info.value.message == "Run already posted"
        assert exc_info.value.details == body

    def test_unparseable_body_uses_fallback(self) -> None:
        client = _client(lambda r: httpx.Response(500, text="<html>oops</html>"))
        with pytest.raises(RemoteError) as exc_info:
            client.request("GET", "/rules")
        assert exc_info.value.message == FALLBACK_MESSAGE
        assert exc_info.value.code == "REMOTE_ERROR"
        assert exc_info.value.status == 500

    def test_transport_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(RemoteError) as exc_info:
            _client(handler).request("GET", "/rules")
        assert exc_info.value.code == "TRANSPORT_ERROR"
        assert exc_info.value.status == 0
        assert "connection refused" in exc_info.value.message


class TestIdempotentReplay:
    def test_same_token_applies_once(self, ledger: FakeLedger) -> None:
        client = LedgerHttpClient(
            "http://ledger", prefix="/reporting/allocations", transport=ledger.transport()
        )
        token = new_mutation_token()
        payload = {"code": "LH", "name": "Labour", "unit": "hours", "status": "active"}
        first = client.request("POST", "/bases", json=payload, token=token)
        second = client.request("POST", "/bases", json=payload, token=token)
        assert first == second
        assert len(ledger.bases) == 1
