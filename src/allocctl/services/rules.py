"""RuleService — create, update, archive, activate, and delete rules.

Delete is allowed only from ``archived``; a delete on an active rule is
rejected from the cached status without any request being sent.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from allocctl.domain.ids import new_mutation_token
from allocctl.domain.lifecycle import RecordAction
from allocctl.domain.rules import RuleDraft, rule_to_payload
from allocctl.domain.types import RecordKind, RecordStatus
from allocctl.domain.validation import validate_rule
from allocctl.infrastructure.http import RemoteError
from allocctl.services.records import RecordService

if TYPE_CHECKING:
    from allocctl.infrastructure.api import RulesRoutes
    from allocctl.services.result import ServiceResult

logger = logging.getLogger(__name__)


class RuleService(RecordService):
    """Lifecycle operations for allocation rules."""

    kind = RecordKind.RULE
    hook_name = "post_rule_change"
    id_field = "rule_id"

    def _routes(self) -> RulesRoutes:
        return self._workspace.api.rules

    def list_rules(self, *, refresh: bool = False) -> ServiceResult:
        return self._list("list_rules", refresh=refresh)

    def active_rule_ids(self) -> list[str]:
        """Ids of cached rules whose status is ``active``.

        Raises:
            RemoteError: if the cache is empty and the list call fails.
        """
        return [
            str(r["id"])
            for r in self.records()
            if r.get("id") is not None and r.get("status") == RecordStatus.ACTIVE
        ]

    def create_rule(self, draft: RuleDraft) -> ServiceResult:
        op = "create_rule"
        check = validate_rule(draft)
        if not check.valid:
            return self._validation_failure(op, check.errors)
        return self._create(op, rule_to_payload(draft))

    def update_rule(self, rule_id: str, draft: RuleDraft) -> ServiceResult:
        op = "update_rule"
        check = validate_rule(draft)
        if not check.valid:
            return self._validation_failure(op, check.errors)
        return self._edit(op, rule_id, rule_to_payload(draft))

    def archive_rule(self, rule_id: str) -> ServiceResult:
        return self._set_status("archive_rule", rule_id, RecordAction.ARCHIVE)

    def activate_rule(self, rule_id: str) -> ServiceResult:
        return self._set_status("activate_rule", rule_id, RecordAction.ACTIVATE)

    def delete_rule(self, rule_id: str) -> ServiceResult:
        op = "delete_rule"
        guarded = self._guard(op, rule_id, RecordAction.DELETE)
        if not isinstance(guarded, dict):
            return guarded
        token = new_mutation_token()
        try:
            self._routes().delete(rule_id, token)
        except RemoteError as exc:
            return self._remote_failure(op, exc)
        return self._after_mutation(op, RecordAction.DELETE, guarded, token, removed_id=rule_id)
