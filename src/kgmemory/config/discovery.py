"""Config file and memory file discovery.

Walk-up finder locates kgmemory.toml, similar to how git finds .git/.
Supports KGMEMORY_CONFIG env var and --config CLI flag overrides.
Also resolves the memory file location, honouring the MEMORY_FILE_PATH
env var used by other knowledge graph memory servers.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "kgmemory.toml"
CONFIG_ENV_VAR = "KGMEMORY_CONFIG"
MEMORY_FILE_ENV_VAR = "MEMORY_FILE_PATH"


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for kgmemory.toml.

    Returns the path to the config file, or None if not found.
    Checks KGMEMORY_CONFIG env var first.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        if p.is_file():
            return p
        return None

    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def memory_file_from_env() -> str | None:
    """The ``MEMORY_FILE_PATH`` override, or None when unset or empty."""
    return os.environ.get(MEMORY_FILE_ENV_VAR) or None


def resolve_memory_file(value: str | Path, *, cwd: Path | None = None) -> Path:
    """Absolute memory file path; relative values resolve against *cwd*.

    ``~`` is expanded. *cwd* defaults to the process working directory.
    """
    path = Path(value).expanduser()
    if path.is_absolute():
        return path
    return (cwd or Path.cwd()) / path
