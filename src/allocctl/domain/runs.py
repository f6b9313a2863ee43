"""Allocation runs — computed results returned by the remote engine.

Runs are consumed, never constructed by the user: compute returns them and
post references one by id. Posting is one-way; reversing a posted run is a
manual action outside this tool.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from allocctl.domain.types import RunStatus


class AllocationRun(BaseModel):
    """One computed application of a rule for a period."""

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    id: str | None = None
    rule_id: str = Field(alias="ruleId")
    period_id: str = Field(alias="periodId")
    status: str = RunStatus.COMPUTED
    journal_entry_id: str | None = Field(default=None, alias="journalEntryId")
    reused: bool = False

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class PostOutcome(BaseModel):
    """Result of posting a run.

    A posting without a journal entry is a successful zero-amount posting.
    """

    model_config = ConfigDict(frozen=True)

    run_id: str
    journal_entry_id: str | None = None

    @property
    def zero_amount(self) -> bool:
        return self.journal_entry_id is None


def runs_from_response(body: Any) -> list[AllocationRun]:
    """Parse compute/preview output: a bare list or a ``runs``/``data``/``items`` envelope."""
    if isinstance(body, dict):
        for key in ("runs", "data", "items"):
            if isinstance(body.get(key), list):
                body = body[key]
                break
        else:
            body = [body] if "ruleId" in body else []
    if not isinstance(body, list):
        return []
    return [AllocationRun.model_validate(item) for item in body if isinstance(item, dict)]


def post_outcome_from_response(run_id: str, body: Any) -> PostOutcome:
    """Parse a post response; missing ``journalEntryId`` means zero amount."""
    if isinstance(body, dict) and isinstance(body.get("data"), dict):
        body = body["data"]
    entry = body.get("journalEntryId") if isinstance(body, dict) else None
    return PostOutcome(run_id=run_id, journal_entry_id=str(entry) if entry else None)
