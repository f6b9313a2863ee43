"""Command group: allocation bases (list, create, update, archive, activate)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from allocctl.commands._base import AllocGroup
from allocctl.domain.types import BaseUnit

if TYPE_CHECKING:
    from allocctl.commands._context import AppContext

_BASE_EXAMPLES = """\
  allocctl base list
  allocctl base create --code LH --name "Labour Hours" --unit hours
  allocctl base update b1 --name "Direct Labour Hours"
  allocctl base archive b1
  allocctl --json base activate b1"""

_UNITS = click.Choice([u.value for u in BaseUnit])


@click.group(cls=AllocGroup, examples=_BASE_EXAMPLES)
@click.pass_obj
def base(app: AppContext) -> None:
    """Manage allocation bases."""


@base.command(
    "list",
    examples="""\
  allocctl base list
  allocctl base list --refresh
  allocctl -q base list""",
)
@click.option("--refresh", is_flag=True, help="Re-fetch from the ledger instead of the cache.")
@click.pass_obj
def list_cmd(app: AppContext, refresh: bool) -> None:
    """List allocation bases."""
    from allocctl.services.bases import AllocationBaseService

    app.emit(AllocationBaseService(app.workspace).list_bases(refresh=refresh))


@base.command(
    examples="""\
  allocctl base create --code LH --name "Labour Hours" --unit hours
  allocctl base create --code SQFT --name "Floor space" --unit square_footage"""
)
@click.option("--code", required=True, help="Short code (uppercased on submit).")
@click.option("--name", required=True, help="Display name.")
@click.option("--unit", type=_UNITS, default=BaseUnit.HOURS.value, show_default=True)
@click.pass_obj
def create(app: AppContext, code: str, name: str, unit: str) -> None:
    """Create an allocation base."""
    from allocctl.domain.bases import BaseDraft
    from allocctl.services.bases import AllocationBaseService

    draft = BaseDraft(code=code, name=name, unit=unit)
    app.emit(AllocationBaseService(app.workspace).create_base(draft))


@base.command(
    examples="""\
  allocctl base update b1 --name "Direct Labour Hours"
  allocctl base update b1 --unit headcount"""
)
@click.argument("base_id")
@click.option("--code", default=None, help="New code.")
@click.option("--name", default=None, help="New name.")
@click.option("--unit", type=_UNITS, default=None, help="New unit.")
@click.pass_obj
def update(
    app: AppContext, base_id: str, code: str | None, name: str | None, unit: str | None
) -> None:
    """Update fields of an existing base (full-replace on the ledger)."""
    from allocctl.services.bases import AllocationBaseService

    app.emit(
        AllocationBaseService(app.workspace).revise_base(base_id, code=code, name=name, unit=unit)
    )


@base.command(examples="  allocctl base archive b1")
@click.argument("base_id")
@click.pass_obj
def archive(app: AppContext, base_id: str) -> None:
    """Archive an active base."""
    from allocctl.services.bases import AllocationBaseService

    app.emit(AllocationBaseService(app.workspace).archive_base(base_id))


@base.command(examples="  allocctl base activate b1")
@click.argument("base_id")
@click.pass_obj
def activate(app: AppContext, base_id: str) -> None:
    """Activate an inactive base."""
    from allocctl.services.bases import AllocationBaseService

    app.emit(AllocationBaseService(app.workspace).activate_base(base_id))
