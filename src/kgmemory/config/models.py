"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, ``kgmemory.toml`` only contains
overrides. A fresh setup needs no config file at all.
"""

from __future__ import annotations

from pydantic import BaseModel

DEFAULT_MEMORY_FILE = "memory.json"


class StoreConfig(BaseModel):
    """[store] section."""

    model_config = {"frozen": True}

    path: str = DEFAULT_MEMORY_FILE
    atomic_write: bool = True


class McpConfig(BaseModel):
    """[mcp] section."""

    model_config = {"frozen": True}

    name: str = "memory-server"
    transport: str = "stdio"
    host: str = "127.0.0.1"
    port: int = 8000
