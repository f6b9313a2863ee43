"""ExecutionService — preview, compute, and post allocation runs.

Preview has no ledger side effects and carries no token. Compute and post
are tokenized; compute resolves rule ids against the cached rules list and
records the returned runs in the local run log.
"""

from __future__ import annotations

import logging
from datetime import date

from allocctl.domain.ids import new_mutation_token
from allocctl.domain.runs import post_outcome_from_response, runs_from_response
from allocctl.domain.types import RunStatus
from allocctl.infrastructure.http import RemoteError
from allocctl.services.base import BaseService
from allocctl.services.result import ServiceResult, failure
from allocctl.services.rules import RuleService

logger = logging.getLogger(__name__)


def _clean_memo(memo: str | None) -> str | None:
    if memo is None or not memo.strip():
        return None
    return memo.strip()


class ExecutionService(BaseService):
    """Run allocation rules against a period and post the results."""

    # ------------------------------------------------------------------
    # Preview
    # ------------------------------------------------------------------

    def preview(self, period_id: str, rule_ids: list[str]) -> ServiceResult:
        """Compute runs without touching the ledger. Safe to repeat."""
        op = "preview"
        if not period_id.strip():
            return failure(op, "MISSING_PERIOD", "A period is required")
        if not rule_ids:
            return failure(
                op,
                "VALIDATION_FAILED",
                "Select at least one rule to preview",
                detail={"errors": {"ruleIds": "Select at least one rule to preview"}},
            )

        try:
            body = self._workspace.api.execution.preview(period_id, rule_ids)
        except RemoteError as exc:
            return self._remote_failure(op, exc)

        runs = [r.to_wire() for r in runs_from_response(body)]
        return ServiceResult(
            ok=True,
            op=op,
            data={"period_id": period_id, "count": len(runs), "runs": runs},
        )

    # ------------------------------------------------------------------
    # Compute
    # ------------------------------------------------------------------

    def compute(
        self,
        period_id: str,
        rule_ids: list[str] | None = None,
        memo: str | None = None,
        replace: bool | None = None,
    ) -> ServiceResult:
        """Compute runs for *period_id*.

        Only ids of cached ``active`` rules are sent; an empty *rule_ids*
        means every active rule. When nothing resolves the call fails
        locally with ``NO_ACTIVE_RULES``. *replace* defaults to
        ``[execution] replace``.
        """
        op = "compute"
        warnings: list[str] = []
        if not period_id.strip():
            return failure(op, "MISSING_PERIOD", "A period is required")
        if replace is None:
            replace = self._workspace.settings.execution.replace

        try:
            active = RuleService(self._workspace).active_rule_ids()
        except RemoteError as exc:
            return self._remote_failure(op, exc)

        if rule_ids:
            resolved = [rid for rid in rule_ids if rid in active]
            skipped = [rid for rid in rule_ids if rid not in active]
            if skipped:
                warnings.append(f"Skipped rules that are not active: {', '.join(skipped)}")
        else:
            resolved = active

        if not resolved:
            return failure(op, "NO_ACTIVE_RULES", "No active rules to compute", warnings=warnings)

        token = new_mutation_token()
        try:
            body = self._workspace.api.execution.compute(
                period_id, resolved, _clean_memo(memo), replace, token
            )
        except RemoteError as exc:
            return self._remote_failure(op, exc, warnings)

        runs = [r.to_wire() for r in runs_from_response(body)]
        with self._workspace.transaction() as txn:
            if replace:
                txn.supersede_runs(period_id, resolved)
            txn.record_runs(runs)
        run_ids = [str(r["id"]) for r in runs if r.get("id")]

        self._dispatch_event(
            "post_compute",
            {"period_id": period_id, "run_ids": run_ids, "replace": replace},
            warnings,
        )
        logger.info("Computed %d runs for period %s", len(runs), period_id)

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "period_id": period_id,
                "rule_ids": resolved,
                "replace": replace,
                "count": len(runs),
                "runs": runs,
            },
            warnings=warnings,
            meta={"token": token},
        )

    # ------------------------------------------------------------------
    # Post
    # ------------------------------------------------------------------

    def post(
        self,
        run_id: str,
        entry_date: str | None = None,
        memo: str | None = None,
    ) -> ServiceResult:
        """Post a computed run to the ledger.

        A response without a journal entry is a successful zero-amount
        posting. *entry_date* is ISO ``YYYY-MM-DD`` and defaults to today.
        """
        op = "post"
        warnings: list[str] = []

        if entry_date is None:
            entry_date = date.today().isoformat()
        try:
            date.fromisoformat(entry_date)
        except ValueError:
            return failure(
                op,
                "VALIDATION_FAILED",
                f"Invalid entry date: {entry_date}",
                detail={"errors": {"entryDate": "Entry date must be YYYY-MM-DD"}},
            )

        with self._workspace.transaction() as txn:
            known = txn.get_run(run_id)
        if known is not None and known["status"] == RunStatus.POSTED:
            return failure(
                op,
                "INVALID_TRANSITION",
                f"Run {run_id} is already posted",
                detail={"id": run_id, "status": known["status"]},
            )

        token = new_mutation_token()
        try:
            body = self._workspace.api.execution.post(run_id, entry_date, _clean_memo(memo), token)
        except RemoteError as exc:
            return self._remote_failure(op, exc)

        outcome = post_outcome_from_response(run_id, body)
        with self._workspace.transaction() as txn:
            txn.mark_posted(run_id, outcome.journal_entry_id)

        if outcome.zero_amount:
            warnings.append(f"Run {run_id} posted with zero amount; no journal entry created")

        self._dispatch_event(
            "post_post",
            {"run_id": run_id, "journal_entry_id": outcome.journal_entry_id},
            warnings,
        )
        logger.info("Posted run %s (journal entry %s)", run_id, outcome.journal_entry_id)

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "run_id": run_id,
                "entry_date": entry_date,
                "journal_entry_id": outcome.journal_entry_id,
                "zero_amount": outcome.zero_amount,
            },
            warnings=warnings,
            meta={"token": token},
        )

    # ------------------------------------------------------------------
    # Run log
    # ------------------------------------------------------------------

    def list_runs(self, period_id: str | None = None) -> ServiceResult:
        """Runs recorded locally by compute, optionally for one period."""
        with self._workspace.transaction() as txn:
            runs = txn.list_runs(period_id)
        return ServiceResult(
            ok=True,
            op="list_runs",
            data={"period_id": period_id, "count": len(runs), "runs": runs},
        )
