"""Subcommand modules for allocctl.

Provides register_commands() which uses deferred imports to keep
``allocctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups on the root CLI group."""
    from allocctl.commands.base import base
    from allocctl.commands.draft import draft
    from allocctl.commands.rule import rule
    from allocctl.commands.run import run

    cli.add_command(base)
    cli.add_command(rule)
    cli.add_command(draft)
    cli.add_command(run)
