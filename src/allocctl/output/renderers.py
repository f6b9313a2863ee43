"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from allocctl.output.console import create_console, get_output, style_for_status

if TYPE_CHECKING:
    from rich.console import Console

    from allocctl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    # For list results, return IDs only
    items = result.data.get("items") or result.data.get("runs")
    if items and isinstance(items, list):
        return "\n".join(_extract_id(item) for item in items if _extract_id(item))

    for key in ("journal_entry_id", "id", "draft_id"):
        if result.data.get(key):
            return str(result.data[key])
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _extract_id(item: Any) -> str:
    if isinstance(item, dict):
        for key in ("id", "draft_id"):
            val = item.get(key)
            if val is not None:
                return str(val)
    return ""


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line."""
    label = Text("OK", style="alloc.ok")
    op = Text(f"  {result.op}", style="alloc.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="alloc.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="alloc.id")
    elif key == "status":
        v = Text(str(value), style=style_for_status(str(value)))
    elif key == "code":
        v = Text(str(value), style="alloc.code")
    elif isinstance(value, (dict, list)):
        v = Text(_json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _status_text(status: Any) -> Text:
    return Text(str(status or ""), style=style_for_status(str(status or "")))


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print the meta block (verbose only)."""
    if not result.meta:
        return
    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        console.print(f"    {k}: {v}")


def _new_table() -> Table:
    return Table(show_header=True, show_lines=False, pad_edge=False, expand=False)


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="alloc.error")
    op = Text(f"  {result.op}", style="alloc.op")
    sep = Text(" — ")
    console.print(label, op, sep, msg)

    if err is None:
        return
    # Field errors are always shown; they are what the user has to fix.
    field_errors = err.detail.get("errors")
    if isinstance(field_errors, dict):
        for field, message in field_errors.items():
            console.print(Text(f"  {field}: ", style="alloc.key"), Text(str(message)), end="")
            console.print()

    if verbose and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            if k != "errors":
                console.print(f"    {k}: {v}")


# ── Record renderers ──────────────────────────────────────────────────


def _render_mutation(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render create/update/archive/activate/delete results."""
    _status_line(console, result)
    for key in ("id", "action", "status"):
        if key in result.data:
            _field(console, key, result.data[key])
    record = result.data.get("record") or {}
    for key in ("code", "name"):
        if record.get(key):
            _field(console, key, record[key])
    if "draft_id" in result.data:
        _field(console, "draft_id", result.data["draft_id"])
    if verbose:
        _render_meta(console, result)


def _render_bases(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    table = _new_table()
    table.add_column("ID", style="alloc.id", no_wrap=True)
    table.add_column("Code", style="alloc.code")
    table.add_column("Name")
    table.add_column("Unit")
    table.add_column("Status")
    for item in items:
        table.add_row(
            str(item.get("id", "")),
            str(item.get("code", "")),
            str(item.get("name", "")),
            str(item.get("unit", "")),
            _status_text(item.get("status")),
        )
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} bases")


def _target_count(rule: dict[str, Any]) -> int:
    payload = rule.get("payloadJson") or {}
    targets = payload.get("targets") if isinstance(payload, dict) else None
    return len(targets or rule.get("targets") or [])


def _render_rules(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    table = _new_table()
    table.add_column("ID", style="alloc.id", no_wrap=True)
    table.add_column("Code", style="alloc.code")
    table.add_column("Name")
    table.add_column("Base")
    table.add_column("Source")
    table.add_column("Dimension")
    table.add_column("Targets", justify="right")
    table.add_column("Status")
    for item in items:
        table.add_row(
            str(item.get("id", "")),
            str(item.get("code", "")),
            str(item.get("name", "")),
            str(item.get("baseId", "")),
            str(item.get("sourceAccountId", "")),
            str(item.get("targetDimension", "")),
            str(_target_count(item)),
            _status_text(item.get("status")),
        )
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} rules")


# ── Run renderers ─────────────────────────────────────────────────────


def _render_runs(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render preview/compute/list_runs results."""
    d = result.data
    _status_line(console, result)
    if d.get("period_id"):
        _field(console, "period_id", d["period_id"])
    if "replace" in d:
        _field(console, "replace", d["replace"])

    runs = d.get("runs", [])
    if runs:
        console.print()
        table = _new_table()
        table.add_column("Run", style="alloc.id", no_wrap=True)
        table.add_column("Rule")
        table.add_column("Period")
        table.add_column("Status")
        table.add_column("Journal Entry")
        if verbose:
            table.add_column("Reused")
        for run in runs:
            row: list[Any] = [
                str(run.get("id") or ""),
                str(run.get("ruleId", "")),
                str(run.get("periodId", "")),
                _status_text(run.get("status")),
                str(run.get("journalEntryId") or ""),
            ]
            if verbose:
                row.append("yes" if run.get("reused") else "")
            table.add_row(*row)
        console.print(table)
    console.print(f"\n{d.get('count', len(runs))} runs")
    if verbose:
        _render_meta(console, result)


def _render_post(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    _field(console, "run_id", d.get("run_id", ""))
    _field(console, "entry_date", d.get("entry_date", ""))
    if d.get("zero_amount"):
        console.print(Text("  zero amount: no journal entry created", style="alloc.warning"))
    else:
        _field(console, "journal_entry_id", d.get("journal_entry_id", ""))
    if verbose:
        _render_meta(console, result)


# ── Draft renderers ───────────────────────────────────────────────────


def _render_draft(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a draft header plus, for rules, its target list."""
    d = result.data
    draft = d.get("draft") or {}
    _status_line(console, result)
    _field(console, "draft_id", d.get("draft_id", ""))
    _field(console, "kind", d.get("kind", ""))
    if draft.get("id"):
        _field(console, "record_id", draft["id"])
    for key in ("code", "name", "unit", "base_id", "source_account_id"):
        if key in draft:
            _field(console, key, draft[key] or "-")
    if "dimension_category" in draft:
        _field(console, "dimension", draft["dimension_category"])
    if "status" in draft:
        _field(console, "status", draft["status"])

    targets = draft.get("targets")
    if targets is None:
        return
    if not targets:
        console.print("\n  (no targets)")
        return

    storage_key = d.get("storage_key")
    console.print()
    table = _new_table()
    table.add_column("#", justify="right")
    table.add_column("Account", style="alloc.id")
    table.add_column("Weight", style="alloc.amount", justify="right")
    table.add_column(str(d.get("dimension_label") or "Unit"))
    table.add_column("Notes")
    if verbose:
        table.add_column("Dimension Values", style="dim")
    for index, target in enumerate(targets):
        values = target.get("dimensionValues") or {}
        unit = values.get(storage_key, "") if storage_key else ""
        row: list[Any] = [
            str(index),
            str(target.get("toAccountId", "")),
            f"{target.get('weight', 0):g}",
            Text(str(unit)) if unit else Text("missing", style="alloc.error"),
            str(target.get("notes") or ""),
        ]
        if verbose:
            row.append(_json.dumps(values, separators=(",", ":")))
        table.add_row(*row)
    console.print(table)


def _render_drafts(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    table = _new_table()
    table.add_column("Draft", style="alloc.id", no_wrap=True)
    table.add_column("Kind")
    table.add_column("Record")
    table.add_column("Code", style="alloc.code")
    table.add_column("Name")
    if verbose:
        table.add_column("Modified", style="dim")
    for item in items:
        row = [
            str(item.get("draft_id", "")),
            str(item.get("kind", "")),
            str(item.get("record_id") or "(new)"),
            str(item.get("code", "")),
            str(item.get("name", "")),
        ]
        if verbose:
            row.append(str(item.get("modified", "")))
        table.add_row(*row)
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} drafts")


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Records
    "list_bases": _render_bases,
    "create_base": _render_mutation,
    "update_base": _render_mutation,
    "archive_base": _render_mutation,
    "activate_base": _render_mutation,
    "list_rules": _render_rules,
    "create_rule": _render_mutation,
    "update_rule": _render_mutation,
    "archive_rule": _render_mutation,
    "activate_rule": _render_mutation,
    "delete_rule": _render_mutation,
    # Execution
    "preview": _render_runs,
    "compute": _render_runs,
    "list_runs": _render_runs,
    "post": _render_post,
    # Drafts
    "new_rule_draft": _render_draft,
    "new_base_draft": _render_draft,
    "open_rule_draft": _render_draft,
    "open_base_draft": _render_draft,
    "show_draft": _render_draft,
    "set_draft_fields": _render_draft,
    "set_draft_dimension": _render_draft,
    "add_target": _render_draft,
    "edit_target": _render_draft,
    "remove_target": _render_draft,
    "submit_draft": _render_mutation,
    "list_drafts": _render_drafts,
}
