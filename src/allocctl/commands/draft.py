"""Command group: drafts — edit a base or rule across several invocations.

A draft is opened with ``new`` or ``open``, edited with ``set``,
``dimension`` and the target commands, then closed with ``submit`` or
``discard``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from allocctl.commands._base import AllocGroup
from allocctl.domain.dimensions import DimensionCategory
from allocctl.domain.types import BaseUnit

if TYPE_CHECKING:
    from allocctl.commands._context import AppContext

_DRAFT_EXAMPLES = """\
  allocctl draft new rule --dimension costcenter
  allocctl draft set drf_1a2b3c4d5e6f --code rent --name "Rent split" --base b1 --source 6100
  allocctl draft add-target drf_1a2b3c4d5e6f --account A1 --weight 1.5 --unit-id CC-10
  allocctl draft validate drf_1a2b3c4d5e6f
  allocctl draft submit drf_1a2b3c4d5e6f"""

_KINDS = click.Choice(["rule", "base"])
_CATEGORIES = click.Choice([c.value for c in DimensionCategory])


def _parse_dimensions(values: tuple[str, ...]) -> dict[str, str]:
    """Parse repeated ``--dim key=value`` options."""
    parsed: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"Expected key=value, got {item!r}", param_hint="--dim")
        parsed[key.strip()] = value.strip()
    return parsed


@click.group(cls=AllocGroup, examples=_DRAFT_EXAMPLES)
@click.pass_obj
def draft(app: AppContext) -> None:
    """Edit bases and rules as drafts before submitting them."""


# ── Open / inspect ────────────────────────────────────────────────────


@draft.command(
    examples="""\
  allocctl draft new rule
  allocctl draft new rule --dimension profitcenter
  allocctl draft new base"""
)
@click.argument("kind", type=_KINDS)
@click.option(
    "--dimension",
    type=_CATEGORIES,
    default=None,
    help="Target dimension for a rule (default from [rules] default_dimension).",
)
@click.pass_obj
def new(app: AppContext, kind: str, dimension: str | None) -> None:
    """Start a new rule or base draft."""
    from allocctl.services.drafts import DraftService

    service = DraftService(app.workspace)
    app.emit(service.new_rule(dimension) if kind == "rule" else service.new_base())


@draft.command(
    "open",
    examples="""\
  allocctl draft open rule r1
  allocctl draft open base b1""",
)
@click.argument("kind", type=_KINDS)
@click.argument("record_id")
@click.pass_obj
def open_cmd(app: AppContext, kind: str, record_id: str) -> None:
    """Open an existing rule or base for editing."""
    from allocctl.services.drafts import DraftService

    service = DraftService(app.workspace)
    app.emit(service.open_rule(record_id) if kind == "rule" else service.open_base(record_id))


@draft.command("list", examples="  allocctl draft list")
@click.pass_obj
def list_cmd(app: AppContext) -> None:
    """List open drafts."""
    from allocctl.services.drafts import DraftService

    app.emit(DraftService(app.workspace).list_drafts())


@draft.command(examples="  allocctl -v draft show drf_1a2b3c4d5e6f")
@click.argument("draft_id")
@click.pass_obj
def show(app: AppContext, draft_id: str) -> None:
    """Show a draft and its targets."""
    from allocctl.services.drafts import DraftService

    app.emit(DraftService(app.workspace).show(draft_id))


# ── Edit ──────────────────────────────────────────────────────────────


@draft.command(
    "set",
    examples="""\
  allocctl draft set drf_1a2b3c4d5e6f --code rent --name "Rent split"
  allocctl draft set drf_1a2b3c4d5e6f --base b1 --source 6100
  allocctl draft set drf_0f9e8d7c6b5a --unit headcount""",
)
@click.argument("draft_id")
@click.option("--code", default=None, help="Record code.")
@click.option("--name", default=None, help="Record name.")
@click.option("--base", "base_id", default=None, help="Allocation base id (rules).")
@click.option("--source", "source_account_id", default=None, help="Source account (rules).")
@click.option("--unit", type=click.Choice([u.value for u in BaseUnit]), default=None)
@click.pass_obj
def set_cmd(
    app: AppContext,
    draft_id: str,
    code: str | None,
    name: str | None,
    base_id: str | None,
    source_account_id: str | None,
    unit: str | None,
) -> None:
    """Set header fields of a draft."""
    from allocctl.services.drafts import DraftService

    app.emit(
        DraftService(app.workspace).set_fields(
            draft_id,
            code=code,
            name=name,
            base_id=base_id,
            source_account_id=source_account_id,
            unit=unit,
        )
    )


@draft.command(
    examples="""\
  allocctl draft dimension drf_1a2b3c4d5e6f project"""
)
@click.argument("draft_id")
@click.argument("category", type=_CATEGORIES)
@click.pass_obj
def dimension(app: AppContext, draft_id: str, category: str) -> None:
    """Change a rule draft's target dimension.

    Existing targets keep their old dimension key until edited.
    """
    from allocctl.services.drafts import DraftService

    app.emit(DraftService(app.workspace).set_dimension(draft_id, category))


@draft.command(
    "add-target",
    examples="""\
  allocctl draft add-target drf_1a2b3c4d5e6f --account A1 --weight 1.5 --unit-id CC-10
  allocctl draft add-target drf_1a2b3c4d5e6f --account A2 --weight 2 --unit-id CC-20 \\
      --notes "Warehouse" --dim regionId=EU""",
)
@click.argument("draft_id")
@click.option("--account", "to_account_id", required=True, help="Destination account.")
@click.option("--weight", required=True, help="Positive weight.")
@click.option("--unit-id", required=True, help="Unit id for the rule's dimension.")
@click.option("--notes", default=None, help="Free-form notes.")
@click.option("--dim", "dims", multiple=True, help="Extra dimension value (key=value).")
@click.pass_obj
def add_target(
    app: AppContext,
    draft_id: str,
    to_account_id: str,
    weight: str,
    unit_id: str,
    notes: str | None,
    dims: tuple[str, ...],
) -> None:
    """Append a target to a rule draft."""
    from allocctl.domain.targets import TargetInput
    from allocctl.services.drafts import DraftService

    target_input = TargetInput(
        to_account_id=to_account_id,
        weight=weight,
        unit_id=unit_id,
        notes=notes,
        extra_dimensions=_parse_dimensions(dims),
    )
    app.emit(DraftService(app.workspace).add_target(draft_id, target_input))


@draft.command(
    "edit-target",
    examples="""\
  allocctl draft edit-target drf_1a2b3c4d5e6f 0 --weight 3
  allocctl draft edit-target drf_1a2b3c4d5e6f 1 --unit-id PRJ-7""",
)
@click.argument("draft_id")
@click.argument("index", type=int)
@click.option("--account", "to_account_id", default=None, help="Destination account.")
@click.option("--weight", default=None, help="Positive weight.")
@click.option("--unit-id", default=None, help="Unit id for the rule's dimension.")
@click.option("--notes", default=None, help="Free-form notes.")
@click.pass_obj
def edit_target(
    app: AppContext,
    draft_id: str,
    index: int,
    to_account_id: str | None,
    weight: str | None,
    unit_id: str | None,
    notes: str | None,
) -> None:
    """Edit the target at INDEX (0-based); omitted options keep their value."""
    from allocctl.services.drafts import DraftService

    app.emit(
        DraftService(app.workspace).edit_target(
            draft_id,
            index,
            to_account_id=to_account_id,
            weight=weight,
            unit_id=unit_id,
            notes=notes,
        )
    )


@draft.command("remove-target", examples="  allocctl draft remove-target drf_1a2b3c4d5e6f 0")
@click.argument("draft_id")
@click.argument("index", type=int)
@click.pass_obj
def remove_target(app: AppContext, draft_id: str, index: int) -> None:
    """Remove the target at INDEX (0-based)."""
    from allocctl.services.drafts import DraftService

    app.emit(DraftService(app.workspace).remove_target(draft_id, index))


# ── Close ─────────────────────────────────────────────────────────────


@draft.command(examples="  allocctl draft validate drf_1a2b3c4d5e6f")
@click.argument("draft_id")
@click.pass_obj
def validate(app: AppContext, draft_id: str) -> None:
    """Check a draft without submitting it."""
    from allocctl.services.drafts import DraftService

    app.emit(DraftService(app.workspace).validate(draft_id))


@draft.command(examples="  allocctl --json draft submit drf_1a2b3c4d5e6f")
@click.argument("draft_id")
@click.pass_obj
def submit(app: AppContext, draft_id: str) -> None:
    """Create or update the record behind a draft."""
    from allocctl.services.drafts import DraftService

    app.emit(DraftService(app.workspace).submit(draft_id))


@draft.command(examples="  allocctl draft discard drf_1a2b3c4d5e6f")
@click.argument("draft_id")
@click.pass_obj
def discard(app: AppContext, draft_id: str) -> None:
    """Throw a draft away."""
    from allocctl.services.drafts import DraftService

    app.emit(DraftService(app.workspace).discard(draft_id))
