"""BaseService — foundation for all allocctl services.

Every service receives a :class:`Workspace` at construction time. The
workspace provides the remote API, the local cache/draft database, and the
plugin manager.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from allocctl.infrastructure.http import RemoteError
from allocctl.services.result import ServiceResult, failure

if TYPE_CHECKING:
    from allocctl.infrastructure.workspace import Workspace

logger = logging.getLogger(__name__)


class BaseService:
    """Base for all service-layer classes.

    Usage::

        class ExecutionService(BaseService):
            def preview(self, period_id: str, rule_ids: list[str]) -> ServiceResult:
                body = self._workspace.api.execution.preview(period_id, rule_ids)
                ...
    """

    def __init__(self, workspace: Workspace) -> None:
        self._workspace = workspace

    def _dispatch_event(
        self,
        hook_name: str,
        payload: dict[str, Any],
        warnings: list[str],
    ) -> None:
        """Dispatch a lifecycle hook. No-op if plugins are not initialized.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        manager = self._workspace.plugin_manager
        if manager is None:
            return
        try:
            manager.dispatch(hook_name, payload)
        except Exception:
            logger.debug("Plugin hook %s failed", hook_name, exc_info=True)
            warnings.append(f"Plugin hook {hook_name} failed")

    @staticmethod
    def _remote_failure(
        op: str, exc: RemoteError, warnings: list[str] | None = None
    ) -> ServiceResult:
        """Translate a RemoteError into a failed result with one user-facing message."""
        logger.warning("%s rejected: %s (%s)", op, exc.message, exc.code)
        return failure(op, exc.code, exc.message, detail=exc.to_detail(), warnings=warnings)

    @staticmethod
    def _validation_failure(op: str, errors: dict[str, str]) -> ServiceResult:
        first = next(iter(errors.values()), "Validation failed")
        return failure(op, "VALIDATION_FAILED", first, detail={"errors": errors})
