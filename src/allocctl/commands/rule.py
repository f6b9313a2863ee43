"""Command group: allocation rules (list, archive, activate, delete).

Rules are created and edited through drafts; see ``allocctl draft``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from allocctl.commands._base import AllocGroup

if TYPE_CHECKING:
    from allocctl.commands._context import AppContext

_RULE_EXAMPLES = """\
  allocctl rule list
  allocctl rule archive r1
  allocctl rule delete r1
  allocctl draft new rule --dimension project"""


@click.group(cls=AllocGroup, examples=_RULE_EXAMPLES)
@click.pass_obj
def rule(app: AppContext) -> None:
    """Manage allocation rules."""


@rule.command(
    "list",
    examples="""\
  allocctl rule list
  allocctl --json rule list --refresh""",
)
@click.option("--refresh", is_flag=True, help="Re-fetch from the ledger instead of the cache.")
@click.pass_obj
def list_cmd(app: AppContext, refresh: bool) -> None:
    """List allocation rules."""
    from allocctl.services.rules import RuleService

    app.emit(RuleService(app.workspace).list_rules(refresh=refresh))


@rule.command(examples="  allocctl rule archive r1")
@click.argument("rule_id")
@click.pass_obj
def archive(app: AppContext, rule_id: str) -> None:
    """Archive an active rule."""
    from allocctl.services.rules import RuleService

    app.emit(RuleService(app.workspace).archive_rule(rule_id))


@rule.command(examples="  allocctl rule activate r1")
@click.argument("rule_id")
@click.pass_obj
def activate(app: AppContext, rule_id: str) -> None:
    """Activate an inactive rule."""
    from allocctl.services.rules import RuleService

    app.emit(RuleService(app.workspace).activate_rule(rule_id))


@rule.command(
    examples="""\
  allocctl rule archive r1
  allocctl rule delete r1"""
)
@click.argument("rule_id")
@click.pass_obj
def delete(app: AppContext, rule_id: str) -> None:
    """Delete an archived rule."""
    from allocctl.services.rules import RuleService

    app.emit(RuleService(app.workspace).delete_rule(rule_id))
