"""kgmemory — knowledge graph memory store for MCP clients."""

__version__ = "0.3.0"
