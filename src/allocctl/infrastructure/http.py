"""HTTP transport to the ledger back-end.

Wraps a synchronous ``httpx.Client``. Every request carries a fresh
``x-request-id``; state-changing requests also carry the caller's mutation
token in ``Idempotency-Key``. Connection-level retries are delegated to
``httpx.HTTPTransport(retries=...)``, which resends the identical request,
token included.

Failures surface as :class:`RemoteError` whether the server rejected the
request or it never arrived.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from allocctl.config.logging import request_context
from allocctl.domain.ids import new_request_id

if TYPE_CHECKING:
    from allocctl.domain.ids import MutationToken

logger = logging.getLogger(__name__)

IDEMPOTENCY_HEADER = "Idempotency-Key"
REQUEST_ID_HEADER = "x-request-id"
FALLBACK_MESSAGE = "Something went wrong."


class RemoteError(Exception):
    """A request the ledger rejected or that failed in transit."""

    def __init__(
        self,
        message: str,
        *,
        status: int = 0,
        code: str = "REMOTE_ERROR",
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.details = details

    @classmethod
    def from_response(cls, response: httpx.Response) -> RemoteError:
        """Extract ``code``/``message``/``details`` from an error body.

        Accepts ``{code, message, details}`` or ``{error: {code, message}}``;
        anything else yields the generic fallback message.
        """
        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            return cls(FALLBACK_MESSAGE, status=response.status_code, details=data)

        nested = data.get("error") if isinstance(data.get("error"), dict) else {}
        message = data.get("message") or nested.get("message") or FALLBACK_MESSAGE
        code = data.get("code") or nested.get("code") or "REMOTE_ERROR"
        details = data.get("details") or nested.get("details") or data
        return cls(str(message), status=response.status_code, code=str(code), details=details)

    @classmethod
    def from_transport(cls, exc: httpx.TransportError) -> RemoteError:
        return cls(str(exc) or FALLBACK_MESSAGE, code="TRANSPORT_ERROR")

    def to_detail(self) -> dict[str, Any]:
        detail: dict[str, Any] = {"status": self.status}
        if self.details is not None:
            detail["details"] = self.details
        return detail


class LedgerHttpClient:
    """Thin synchronous client bound to the allocation routes of the ledger."""

    def __init__(
        self,
        base_url: str,
        *,
        prefix: str = "",
        timeout: float = 30.0,
        retries: int = 0,
        api_token: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/") + prefix
        headers = {"Accept": "application/json"}
        if api_token:
            headers["Authorization"] = f"Bearer {api_token}"
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            headers=headers,
            transport=transport or httpx.HTTPTransport(retries=retries),
        )

    def close(self) -> None:
        self._client.close()

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        token: MutationToken | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body (None when empty).

        Raises:
            RemoteError: on a non-2xx response or a transport failure.
        """
        request_id = new_request_id()
        headers = {REQUEST_ID_HEADER: request_id}
        if token is not None:
            headers[IDEMPOTENCY_HEADER] = token

        with request_context(request_id, token):
            try:
                response = self._client.request(method, path, json=json, headers=headers)
            except httpx.TransportError as exc:
                logger.warning("%s %s failed in transit: %s", method, path, exc)
                raise RemoteError.from_transport(exc) from exc
            logger.debug("%s %s -> %s", method, path, response.status_code)

        if response.is_error:
            raise RemoteError.from_response(response)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None
