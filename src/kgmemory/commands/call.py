"""call — run one MCP tool through the dispatcher without a server."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import click

from kgmemory.commands._base import KgCommand

if TYPE_CHECKING:
    from kgmemory.commands._context import AppContext


@click.command(
    cls=KgCommand,
    examples="""\
  kgmemory call read_graph
  kgmemory call create_entities '{"entities": [{"name": "Alice", "entityType": "person", "observations": []}]}'
  kgmemory call delete_entities '{"entityNames": ["Alice"]}'
  echo '{"query": "coffee"}' | kgmemory call search_nodes -""",
)
@click.argument("tool", required=False)
@click.argument("arguments", default="{}")
@click.option("--list", "list_only", is_flag=True, help="List available tools and exit.")
@click.pass_obj
def call(app: AppContext, tool: str | None, arguments: str, list_only: bool) -> None:
    """Invoke TOOL with a JSON ARGUMENTS object ('-' reads stdin).

    Prints the response text. Exits 1 when the tool reports an error.
    """
    from kgmemory.mcp.tools import dispatch, list_tools

    if list_only:
        for spec in list_tools():
            click.echo(f"{spec['name']}\t{spec['description']}")
        return
    if tool is None:
        raise click.UsageError("Missing argument 'TOOL'.")

    raw = click.get_text_stream("stdin").read() if arguments == "-" else arguments
    try:
        payload: Any = json.loads(raw)
    except json.JSONDecodeError as exc:
        msg = f"ARGUMENTS is not valid JSON: {exc}"
        raise click.BadParameter(msg, param_hint="ARGUMENTS") from exc
    if not isinstance(payload, dict):
        raise click.BadParameter("ARGUMENTS must be a JSON object", param_hint="ARGUMENTS")

    response = dispatch(app.service, tool, payload)
    if app.settings.json_output:
        click.echo(json.dumps(response.to_dict(), indent=2, ensure_ascii=False))
    else:
        click.echo(response.text, err=bool(response.is_error))
    if response.is_error:
        raise SystemExit(1)
