"""Command group: allocation runs (preview, compute, post, list)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from allocctl.commands._base import AllocGroup

if TYPE_CHECKING:
    from allocctl.commands._context import AppContext

_RUN_EXAMPLES = """\
  allocctl run preview P1 --rule r1 --rule r2
  allocctl run compute P1
  allocctl run compute P1 --rule r1 --append --memo "Jan rerun"
  allocctl run post run-1 --entry-date 2026-01-31
  allocctl run list --period P1"""


@click.group(cls=AllocGroup, examples=_RUN_EXAMPLES)
@click.pass_obj
def run(app: AppContext) -> None:
    """Preview, compute, and post allocation runs."""


@run.command(
    examples="""\
  allocctl run preview P1 --rule r1
  allocctl --json run preview P1 --rule r1 --rule r2"""
)
@click.argument("period_id")
@click.option("--rule", "rule_ids", multiple=True, required=True, help="Rule id (repeatable).")
@click.pass_obj
def preview(app: AppContext, period_id: str, rule_ids: tuple[str, ...]) -> None:
    """Preview runs for a period without touching the ledger."""
    from allocctl.services.execution import ExecutionService

    app.emit(ExecutionService(app.workspace).preview(period_id, list(rule_ids)))


@run.command(
    examples="""\
  allocctl run compute P1
  allocctl run compute P1 --rule r1 --rule r2 --memo "Month end"
  allocctl run compute P1 --append"""
)
@click.argument("period_id")
@click.option(
    "--rule", "rule_ids", multiple=True, help="Rule id (repeatable). Default: all active rules."
)
@click.option("--memo", default=None, help="Memo stored with the runs.")
@click.option(
    "--replace/--append",
    "replace",
    default=None,
    help="Replace earlier runs for the period, or append. Default from [execution] replace.",
)
@click.pass_obj
def compute(
    app: AppContext,
    period_id: str,
    rule_ids: tuple[str, ...],
    memo: str | None,
    replace: bool | None,
) -> None:
    """Compute runs for a period from active rules."""
    from allocctl.services.execution import ExecutionService

    app.emit(
        ExecutionService(app.workspace).compute(period_id, list(rule_ids), memo, replace)
    )


@run.command(
    examples="""\
  allocctl run post run-1
  allocctl run post run-1 --entry-date 2026-01-31 --memo "Jan allocations\""""
)
@click.argument("run_id")
@click.option("--entry-date", default=None, help="Journal entry date (YYYY-MM-DD). Default: today.")
@click.option("--memo", default=None, help="Journal entry memo.")
@click.pass_obj
def post(app: AppContext, run_id: str, entry_date: str | None, memo: str | None) -> None:
    """Post a computed run to the ledger."""
    from allocctl.services.execution import ExecutionService

    app.emit(ExecutionService(app.workspace).post(run_id, entry_date, memo))


@run.command(
    "list",
    examples="""\
  allocctl run list
  allocctl run list --period P1""",
)
@click.option("--period", "period_id", default=None, help="Only runs for this period.")
@click.pass_obj
def list_cmd(app: AppContext, period_id: str | None) -> None:
    """List runs recorded by compute."""
    from allocctl.services.execution import ExecutionService

    app.emit(ExecutionService(app.workspace).list_runs(period_id))
