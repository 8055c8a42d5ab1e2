"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``KGMEMORY_*`` prefix (``KGMEMORY_STORE__PATH``)
  3. TOML file    — ``kgmemory.toml`` discovered via walk-up
  4. Code defaults — baked into the section models

The memory file has one extra source: ``MEMORY_FILE_PATH`` is honoured
above everything except ``--memory-file``.
"""

from __future__ import annotations

import threading
import tomllib
from functools import cached_property
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from kgmemory.config.discovery import find_config, memory_file_from_env, resolve_memory_file
from kgmemory.config.models import McpConfig, StoreConfig


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``kgmemory.toml`` file discovered via walk-up."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                import click

                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        """Return the full TOML data dict for Pydantic to merge."""
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class KgSettings(BaseSettings):
    """Unified settings for the kgmemory CLI and MCP server.

    Stored on the CLI's :class:`AppContext` and passed to the server
    factory.

    Attributes:
        config_path: Discovered or explicit ``kgmemory.toml``, if any.
        memory_file: Explicit memory file override (``--memory-file`` or
            ``MEMORY_FILE_PATH``). When None, ``store.path`` is used.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "KGMEMORY_",
        "env_nested_delimiter": "__",
    }

    config_path: Path | None = None
    memory_file: str | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    store: StoreConfig = Field(default_factory=StoreConfig)
    mcp: McpConfig = Field(default_factory=McpConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @cached_property
    def memory_path(self) -> Path:
        """Absolute backing file path, resolved once against the CWD."""
        return resolve_memory_file(self.memory_file or self.store.path)

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        memory_file: str | None = None,
        start: Path | None = None,
        **cli_flags: Any,
    ) -> KgSettings:
        """Construct settings from a CLI invocation.

        Discovers ``kgmemory.toml`` via walk-up from *start* (or uses an
        explicit *config_path*) and merges CLI flags as highest-priority
        overrides.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(start)

        override = memory_file or memory_file_from_env()
        if override:
            cli_flags["memory_file"] = override

        _tls.toml_path = toml_path
        try:
            return cls(config_path=toml_path, **cli_flags)
        finally:
            _tls.toml_path = None
