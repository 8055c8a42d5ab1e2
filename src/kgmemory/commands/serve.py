"""serve — start the knowledge graph MCP server (requires kgmemory[mcp] extra)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from kgmemory.commands._base import KgCommand

if TYPE_CHECKING:
    from kgmemory.commands._context import AppContext


@click.command(
    cls=KgCommand,
    examples="""\
  # Start the MCP server (stdio transport, default)
  kgmemory serve

  # Keep the graph somewhere specific
  kgmemory --memory-file ~/.local/share/kgmemory/memory.json serve

  # Streamable HTTP on custom host/port
  kgmemory serve --transport streamable-http --host 0.0.0.0 --port 9000""",
)
@click.option(
    "--transport",
    default=None,
    type=click.Choice(["stdio", "sse", "streamable-http"]),
    help="MCP transport protocol. [default: from config, else stdio]",
)
@click.option("--host", default=None, help="Bind address (HTTP transports only).")
@click.option("--port", default=None, type=int, help="Listen port (HTTP transports only).")
@click.pass_obj
def serve(app: AppContext, transport: str | None, host: str | None, port: int | None) -> None:
    """Start the knowledge graph MCP server."""
    from kgmemory.mcp.server import create_server, mcp_available

    if not mcp_available:
        click.echo("MCP not installed. Install with: pip install kgmemory[mcp]", err=True)
        raise SystemExit(1)

    transport = transport or app.settings.mcp.transport
    server = create_server(app.settings, host=host, port=port)
    if transport == "stdio":
        click.echo("Knowledge Graph MCP Server running on stdio", err=True)
    server.run(transport=transport)
