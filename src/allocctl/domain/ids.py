"""Mutation tokens and identifier helpers.

A mutation token is minted immediately before a state-changing request is
dispatched and travels in the ``Idempotency-Key`` header. The remote ledger
applies each token at most once, so transport-level retries of the same
request reuse it while a new user-initiated attempt gets a new one.

INVARIANT: Tokens are never stored on the entity they mutate.
"""

from __future__ import annotations

import uuid
from typing import NewType

MutationToken = NewType("MutationToken", str)


def new_mutation_token() -> MutationToken:
    """Mint a fresh, globally unique mutation token (UUID4)."""
    return MutationToken(str(uuid.uuid4()))


def new_request_id() -> str:
    """Correlation id sent as ``x-request-id`` on every request."""
    return uuid.uuid4().hex


def new_draft_id() -> str:
    """Local identity for a persisted draft."""
    return f"drf_{uuid.uuid4().hex[:12]}"


def normalize_code(code: str) -> str:
    """Trim and uppercase a record code for submission."""
    return code.strip().upper()
