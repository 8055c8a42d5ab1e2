"""BaseService — foundation for kgmemory services.

Every service receives a :class:`GraphStore` at construction time. The
store is the only path to durable state; services own the
load → compute → save sequence via :meth:`BaseService._mutate`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from kgmemory.errors import KgMemoryError
from kgmemory.services.result import ServiceResult
from kgmemory.services.telemetry import trace_span

if TYPE_CHECKING:
    from kgmemory.domain.graph import KnowledgeGraph
    from kgmemory.infrastructure.store import GraphStore

logger = logging.getLogger(__name__)

type GraphChange = Callable[[KnowledgeGraph], tuple[KnowledgeGraph, dict[str, Any]]]
type GraphView = Callable[[KnowledgeGraph], dict[str, Any]]


class BaseService:
    """Base for service-layer classes.

    Usage::

        class MemoryService(BaseService):
            def create_entities(self, entities) -> ServiceResult:
                return self._mutate("create_entities", lambda g: ...)
    """

    def __init__(self, store: GraphStore) -> None:
        self._store = store

    @property
    def store(self) -> GraphStore:
        return self._store

    def _load(self) -> KnowledgeGraph:
        with trace_span("load") as span:
            graph = self._store.load()
            if span is not None:
                span.annotate("memory_file", self._store.location)
        return graph

    def _mutate(
        self, op: str, change: GraphChange, *, warnings: list[str] | None = None
    ) -> ServiceResult:
        """Run load → *change* → save under the store's transaction.

        If loading or *change* fails nothing is written. *change* returns
        the new graph and the result payload. *warnings* is read after
        *change* runs, so the change may append to it.
        """
        try:
            with self._store.transaction():
                graph = self._load()
                with trace_span("compute"):
                    updated, data = change(graph)
                with trace_span("save"):
                    self._store.save(updated)
        except KgMemoryError as exc:
            logger.warning("%s failed: %s", op, exc)
            return ServiceResult.failure(op, exc)
        return ServiceResult(ok=True, op=op, data=data, warnings=list(warnings or []))

    def _query(self, op: str, view: GraphView) -> ServiceResult:
        """Load the graph and project it through *view*. Never writes."""
        try:
            graph = self._load()
        except KgMemoryError as exc:
            logger.warning("%s failed: %s", op, exc)
            return ServiceResult.failure(op, exc)
        with trace_span("compute"):
            data = view(graph)
        return ServiceResult(ok=True, op=op, data=data)
