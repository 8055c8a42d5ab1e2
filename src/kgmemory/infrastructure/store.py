"""Graph stores — the only code that touches the backing file.

Services depend on the :class:`GraphStore` protocol, never on a concrete
store. :class:`FileGraphStore` persists to disk; :class:`InMemoryGraphStore`
keeps the encoded bytes in memory and is used by tests.

Every mutation runs inside :meth:`GraphStore.transaction`, which serializes
the load → compute → save sequence. Within one process two writers can no
longer interleave and silently drop each other's update. Separate
processes sharing one file are still last-writer-wins.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar, Protocol

from kgmemory.domain.graph import EMPTY_GRAPH, KnowledgeGraph
from kgmemory.errors import PersistenceError
from kgmemory.infrastructure.codec import decode, encode

if TYPE_CHECKING:
    from collections.abc import Iterator
    from contextlib import AbstractContextManager

logger = logging.getLogger(__name__)


class GraphStore(Protocol):
    """Load/save access to one persisted knowledge graph."""

    @property
    def location(self) -> str: ...

    def load(self) -> KnowledgeGraph: ...

    def save(self, graph: KnowledgeGraph) -> None: ...

    def transaction(self) -> AbstractContextManager[None]: ...


# ---------------------------------------------------------------------------
# File-backed store
# ---------------------------------------------------------------------------


class FileGraphStore:
    """Persist the graph as NDJSON at *path*.

    The file (and any missing parent directories) is created empty on
    construction if it does not exist yet.

    Args:
        path: Backing file location. Relative paths resolve against CWD.
        atomic_write: Write to a sibling temp file and ``os.replace`` it
            into place, so readers never observe a half-written file.
    """

    _locks: ClassVar[dict[Path, threading.RLock]] = {}
    _locks_guard: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self, path: Path | str, *, atomic_write: bool = True) -> None:
        self.path = Path(path).absolute()
        self.atomic_write = atomic_write
        self._lock = self._lock_for(self.path)
        self.ensure_exists()

    @classmethod
    def _lock_for(cls, path: Path) -> threading.RLock:
        """One lock per backing file, shared by every store on that path."""
        with cls._locks_guard:
            lock = cls._locks.get(path)
            if lock is None:
                lock = cls._locks[path] = threading.RLock()
            return lock

    @property
    def location(self) -> str:
        return str(self.path)

    def ensure_exists(self) -> None:
        """Create an empty backing file (and parents) if none exists."""
        if self.path.exists():
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.touch(exist_ok=True)
        except OSError as exc:
            msg = f"Cannot create memory file {self.path}: {exc.strerror or exc}"
            raise PersistenceError(msg, path=self.path) from exc
        logger.info("Created empty memory file at %s", self.path)

    def read_bytes(self) -> bytes | None:
        """Raw file contents, or None when the file does not exist."""
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            msg = f"Cannot read memory file {self.path}: {exc.strerror or exc}"
            raise PersistenceError(msg, path=self.path) from exc

    def load(self) -> KnowledgeGraph:
        """Read and decode the backing file. A missing file is an empty graph."""
        data = self.read_bytes()
        if data is None:
            return EMPTY_GRAPH
        graph = decode(data)
        logger.debug(
            "graph.load path=%s entities=%d relations=%d",
            self.path,
            len(graph.entities),
            len(graph.relations),
        )
        return graph

    def save(self, graph: KnowledgeGraph) -> None:
        """Replace the backing file contents with the encoded *graph*."""
        data = encode(graph)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if self.atomic_write:
                self._replace(data)
            else:
                self.path.write_bytes(data)
        except OSError as exc:
            msg = f"Cannot write memory file {self.path}: {exc.strerror or exc}"
            raise PersistenceError(msg, path=self.path) from exc
        logger.debug(
            "graph.save path=%s entities=%d relations=%d bytes=%d",
            self.path,
            len(graph.entities),
            len(graph.relations),
            len(data),
        )

    def _replace(self, data: bytes) -> None:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        tmp = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp, self.path)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Hold the per-file lock across a load → save sequence."""
        with self._lock:
            yield


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------


class InMemoryGraphStore:
    """Store that keeps the encoded graph in memory.

    Goes through the real codec so byte-level assertions hold exactly as
    they would on disk. ``saves`` counts completed writes.
    """

    def __init__(self, graph: KnowledgeGraph | None = None) -> None:
        self.data = encode(graph or EMPTY_GRAPH)
        self.saves = 0
        self._lock = threading.RLock()

    @property
    def location(self) -> str:
        return ":memory:"

    def load(self) -> KnowledgeGraph:
        return decode(self.data)

    def save(self, graph: KnowledgeGraph) -> None:
        self.data = encode(graph)
        self.saves += 1

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            yield
