"""FastMCP server setup.

Optional extra — guarded behind try/except ImportError so the store,
dispatcher, and CLI query commands work without the mcp package.
Transport: stdio default, sse and streamable HTTP optional.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

mcp_available = False
_FastMCP: Any = None

try:
    from mcp.server.fastmcp import FastMCP as _FastMCP  # type: ignore[no-redef,import-not-found]

    mcp_available = True
except ImportError:
    pass

if TYPE_CHECKING:
    from kgmemory.config.settings import KgSettings

__all__ = ["create_server", "mcp_available"]


def create_server(
    settings: KgSettings | None = None,
    *,
    host: str | None = None,
    port: int | None = None,
) -> Any:
    """Create and configure the MCP server.

    Opens the memory file from *settings* (discovered from the CWD when
    None), creating it empty on first use, and registers the knowledge
    graph tools. Returns the FastMCP instance.

    *host* and *port* override ``[mcp]`` settings for HTTP transports
    (sse, streamable-http). They are ignored when using stdio.

    Raises RuntimeError if the mcp extra is not installed.
    """
    if not mcp_available or _FastMCP is None:
        msg = "MCP extra not installed. Install with: pip install kgmemory[mcp]"
        raise RuntimeError(msg)

    import structlog

    from kgmemory.config.settings import KgSettings
    from kgmemory.mcp.tools import register_tools
    from kgmemory.services.memory import MemoryService

    if settings is None:
        settings = KgSettings.from_cli()
    service = MemoryService.from_settings(settings)

    server = _FastMCP(
        settings.mcp.name,
        host=host or settings.mcp.host,
        port=port or settings.mcp.port,
    )
    register_tools(server, service)

    structlog.get_logger(__name__).info(
        "server.created", name=settings.mcp.name, memory_file=service.store.location
    )
    return server
