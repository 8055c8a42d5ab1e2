"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from kgmemory.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from kgmemory.services.result import ServiceResult


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
    """Render minimal output for ``--quiet`` mode: entity names, one per line."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    entities = result.data.get("entities")
    if entities:
        return "\n".join(str(e.get("name", "")) for e in entities)

    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line."""
    console.print(Text("OK", style="kg.ok"), Text(f"  {result.op}", style="kg.op"))


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    console.print(Text(f"  {key}: ", style="kg.key"), Text(str(value)), sep="")


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including the telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = Text(prefix)
    line.append(f"{duration:>8.2f}ms", style=style)
    line.append(f"  {name}")
    attributes = span_data.get("attributes") or {}
    if attributes:
        line.append(f"  ({', '.join(f'{k}={v}' for k, v in attributes.items())})")
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _entity_table(entities: list[dict[str, Any]]) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Name", style="kg.name", no_wrap=True)
    table.add_column("Type", style="kg.type")
    table.add_column("Observations", style="kg.observation")
    for entity in entities:
        table.add_row(
            str(entity.get("name", "")),
            str(entity.get("entityType", "")),
            "\n".join(entity.get("observations", [])),
        )
    return table


def _relation_table(relations: list[dict[str, Any]]) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("From", style="kg.name", no_wrap=True)
    table.add_column("Relation", style="kg.relation")
    table.add_column("To", style="kg.name", no_wrap=True)
    for relation in relations:
        table.add_row(
            str(relation.get("from", "")),
            str(relation.get("relationType", "")),
            str(relation.get("to", "")),
        )
    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    console.print(
        Text("ERROR", style="kg.error"),
        Text(f"  {result.op}", style="kg.op"),
        Text(" — "),
        Text(msg),
        sep="",
    )
    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Mutation renderers ────────────────────────────────────────────────


def _render_created_entities(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    entities = result.data.get("entities", [])
    _status_line(console, result)
    _field(console, "added", len(entities))
    if entities:
        console.print(_entity_table(entities))
    if verbose:
        _render_meta(console, result)


def _render_created_relations(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    relations = result.data.get("relations", [])
    _status_line(console, result)
    _field(console, "added", len(relations))
    if relations:
        console.print(_relation_table(relations))
    if verbose:
        _render_meta(console, result)


def _render_observations(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for entry in result.data.get("results", []):
        added = entry.get("addedObservations", [])
        _field(console, entry.get("entityName", "?"), f"{len(added)} added")
        for observation in added:
            console.print(f"    + {observation}")
    if verbose:
        _render_meta(console, result)


# ── Query renderers ───────────────────────────────────────────────────


def _render_graph(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render read_graph / search_nodes / open_nodes as two tables."""
    entities = result.data.get("entities", [])
    relations = result.data.get("relations", [])
    if entities:
        console.print(_entity_table(entities))
    if relations:
        console.print(_relation_table(relations))
    console.print(f"\n{len(entities)} entities, {len(relations)} relations")
    if verbose:
        _render_meta(console, result)


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs.

    Used as-is for the delete operations, whose payload is just counts.
    """
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            _field(console, key, json.dumps(value, separators=(",", ":"), ensure_ascii=False))
        else:
            _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Mutations
    "create_entities": _render_created_entities,
    "create_relations": _render_created_relations,
    "add_observations": _render_observations,
    # Query
    "read_graph": _render_graph,
    "search_nodes": _render_graph,
    "open_nodes": _render_graph,
}
