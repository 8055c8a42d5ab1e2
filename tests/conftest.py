"""Shared pytest fixtures for kgmemory tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from kgmemory.domain.graph import Entity, KnowledgeGraph, Relation
from kgmemory.infrastructure.store import FileGraphStore, InMemoryGraphStore
from kgmemory.services.memory import MemoryService
from kgmemory.services.telemetry import disable_telemetry

_ENV_VARS = (
    "MEMORY_FILE_PATH",
    "KGMEMORY_CONFIG",
    "KGMEMORY_MEMORY_FILE",
    "KGMEMORY_STORE__PATH",
    "KGMEMORY_STORE__ATOMIC_WRITE",
)


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Keep host env vars, logging handlers, and telemetry out of every test."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    kg_level = logging.getLogger("kgmemory").level
    yield
    root.handlers = handlers
    root.setLevel(level)
    logging.getLogger("kgmemory").setLevel(kg_level)
    disable_telemetry()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def memory_file(tmp_path: Path) -> Path:
    """Location of a not-yet-created memory file."""
    return tmp_path / "data" / "memory.json"


@pytest.fixture
def file_store(memory_file: Path) -> FileGraphStore:
    """File-backed store on a temp path (file created empty)."""
    return FileGraphStore(memory_file)


@pytest.fixture
def memory_store() -> InMemoryGraphStore:
    """Empty in-memory store."""
    return InMemoryGraphStore()


@pytest.fixture
def service(memory_store: InMemoryGraphStore) -> MemoryService:
    """MemoryService over the in-memory store."""
    return MemoryService(memory_store)


@pytest.fixture
def people() -> KnowledgeGraph:
    """Alice knows Bob; Bob works at Acme; Carol is unconnected."""
    return KnowledgeGraph(
        entities=(
            Entity(name="Alice", entity_type="person", observations=("likes coffee",)),
            Entity(name="Bob", entity_type="person", observations=("plays chess",)),
            Entity(name="Carol", entity_type="person", observations=()),
            Entity(name="Acme", entity_type="organization", observations=("makes anvils",)),
        ),
        relations=(
            Relation(from_="Alice", to="Bob", relation_type="knows"),
            Relation(from_="Bob", to="Acme", relation_type="works_at"),
        ),
    )


@pytest.fixture
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp directory so the CLI writes ./memory.json there.

    Use via ``@pytest.mark.usefixtures("_isolated_cwd")`` on command test
    classes.
    """
    monkeypatch.chdir(tmp_path)
