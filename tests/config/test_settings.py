"""Tests for KgSettings source priority and memory file resolution."""

from __future__ import annotations

from pathlib import Path

import click
import pytest

from kgmemory.config.models import DEFAULT_MEMORY_FILE
from kgmemory.config.settings import KgSettings


def _write_toml(directory: Path, body: str) -> Path:
    path = directory / "kgmemory.toml"
    path.write_text(body)
    return path


class TestDefaults:
    def test_no_config(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        settings = KgSettings.from_cli(start=tmp_path)
        assert settings.config_path is None
        assert settings.memory_file is None
        assert settings.store.path == DEFAULT_MEMORY_FILE
        assert settings.store.atomic_write is True
        assert settings.mcp.name == "memory-server"
        assert settings.mcp.transport == "stdio"
        assert settings.memory_path == tmp_path / DEFAULT_MEMORY_FILE

    def test_cli_flags(self, tmp_path):
        settings = KgSettings.from_cli(start=tmp_path, json_output=True, verbose=True)
        assert settings.json_output
        assert settings.verbose
        assert not settings.quiet


class TestTomlSource:
    def test_walk_up_discovery(self, tmp_path, monkeypatch):
        _write_toml(tmp_path, '[store]\npath = "graph.ndjson"\natomic_write = false\n')
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        settings = KgSettings.from_cli(start=nested)
        assert settings.config_path == tmp_path / "kgmemory.toml"
        assert settings.store.path == "graph.ndjson"
        assert settings.store.atomic_write is False
        assert settings.memory_path == nested / "graph.ndjson"

    def test_mcp_section(self, tmp_path):
        _write_toml(tmp_path, '[mcp]\nname = "kg"\nport = 9001\n')
        settings = KgSettings.from_cli(start=tmp_path)
        assert settings.mcp.name == "kg"
        assert settings.mcp.port == 9001
        assert settings.mcp.host == "127.0.0.1"

    def test_explicit_config_path(self, tmp_path):
        other = tmp_path / "elsewhere"
        other.mkdir()
        toml = _write_toml(other, '[store]\npath = "/data/kg.ndjson"\n')
        settings = KgSettings.from_cli(config_path=str(toml), start=tmp_path)
        assert settings.memory_path == Path("/data/kg.ndjson")

    def test_config_env_var(self, tmp_path, monkeypatch):
        toml = _write_toml(tmp_path, '[mcp]\nname = "from-env"\n')
        monkeypatch.setenv("KGMEMORY_CONFIG", str(toml))
        settings = KgSettings.from_cli(start=Path("/"))
        assert settings.mcp.name == "from-env"

    def test_invalid_toml(self, tmp_path):
        _write_toml(tmp_path, "[store\npath = 1\n")
        with pytest.raises(click.ClickException, match="Invalid TOML"):
            KgSettings.from_cli(start=tmp_path)


class TestMemoryFilePriority:
    def test_env_beats_toml(self, tmp_path, monkeypatch):
        _write_toml(tmp_path, '[store]\npath = "/toml.json"\n')
        monkeypatch.setenv("KGMEMORY_STORE__PATH", "/env.json")
        assert KgSettings.from_cli(start=tmp_path).memory_path == Path("/env.json")

    def test_memory_file_path_env_beats_prefixed_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("KGMEMORY_STORE__PATH", "/env.json")
        monkeypatch.setenv("MEMORY_FILE_PATH", "/legacy.json")
        assert KgSettings.from_cli(start=tmp_path).memory_path == Path("/legacy.json")

    def test_flag_beats_everything(self, tmp_path, monkeypatch):
        _write_toml(tmp_path, '[store]\npath = "/toml.json"\n')
        monkeypatch.setenv("MEMORY_FILE_PATH", "/legacy.json")
        settings = KgSettings.from_cli(memory_file="/flag.json", start=tmp_path)
        assert settings.memory_path == Path("/flag.json")

    def test_empty_memory_file_path_ignored(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MEMORY_FILE_PATH", "")
        monkeypatch.chdir(tmp_path)
        assert KgSettings.from_cli(start=tmp_path).memory_path == tmp_path / DEFAULT_MEMORY_FILE

    def test_relative_override_resolves_against_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("MEMORY_FILE_PATH", "sub/kg.json")
        assert KgSettings.from_cli(start=tmp_path).memory_path == tmp_path / "sub" / "kg.json"
