"""MemoryService — create, delete, and query operations on the knowledge graph.

Each call reloads the graph from the store; there is no cache between
calls. Mutations run load → compute → save inside the store transaction
and write the full graph back. Queries load and never write.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from kgmemory.domain import graph as kg
from kgmemory.domain.graph import (
    Entity,
    KnowledgeGraph,
    ObservationAddition,
    ObservationDeletion,
    Relation,
)
from kgmemory.infrastructure.store import FileGraphStore
from kgmemory.services.base import BaseService
from kgmemory.services.telemetry import annotate, traced

if TYPE_CHECKING:
    from kgmemory.config.settings import KgSettings
    from kgmemory.services.result import ServiceResult

logger = logging.getLogger(__name__)


def _dump(items: Sequence[Any]) -> list[dict[str, Any]]:
    return [item.model_dump(mode="json", by_alias=True) for item in items]


def _graph_payload(graph: KnowledgeGraph) -> dict[str, Any]:
    return {"entities": _dump(graph.entities), "relations": _dump(graph.relations)}


def _skipped(requested: Sequence[Any], added: Sequence[Any]) -> list[Any]:
    """Requested keys that were not added, in request order."""
    remaining = list(requested)
    for key in added:
        remaining.remove(key)
    return remaining


class MemoryService(BaseService):
    """Knowledge graph operations over an injected :class:`GraphStore`."""

    @classmethod
    def from_settings(cls, settings: KgSettings) -> MemoryService:
        """Open the file store configured in *settings*."""
        store = FileGraphStore(settings.memory_path, atomic_write=settings.store.atomic_write)
        return cls(store)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @traced
    def create_entities(self, entities: Sequence[Entity]) -> ServiceResult:
        """Add entities whose name is new. Existing names are skipped.

        ``data["entities"]`` holds only the entities actually added; each
        skipped candidate leaves a warning.
        """
        annotate(entities=[e.name for e in entities])
        warnings: list[str] = []

        def change(graph: KnowledgeGraph) -> tuple[KnowledgeGraph, dict[str, Any]]:
            updated, added = kg.add_entities(graph, entities)
            for name in _skipped([e.name for e in entities], [e.name for e in added]):
                warnings.append(f"Entity {name} already exists, skipped")
            return updated, {"entities": _dump(added)}

        return self._mutate("create_entities", change, warnings=warnings)

    @traced
    def create_relations(self, relations: Sequence[Relation]) -> ServiceResult:
        """Add relations whose ``(from, to, relationType)`` triple is new.

        Duplicate triples are skipped with a warning.
        """
        annotate(relations=[r.relation_type for r in relations])
        warnings: list[str] = []

        def change(graph: KnowledgeGraph) -> tuple[KnowledgeGraph, dict[str, Any]]:
            updated, added = kg.add_relations(graph, relations)
            for frm, to, kind in _skipped([r.key for r in relations], [r.key for r in added]):
                warnings.append(f"Relation {frm} -[{kind}]-> {to} already exists, skipped")
            return updated, {"relations": _dump(added)}

        return self._mutate("create_relations", change, warnings=warnings)

    @traced
    def add_observations(self, observations: Sequence[ObservationAddition]) -> ServiceResult:
        """Append observations to existing entities.

        If any entry names a missing entity the whole batch fails with
        ``ENTITY_NOT_FOUND`` and nothing is written.
        """
        annotate(observations=[o.entity_name for o in observations])

        def change(graph: KnowledgeGraph) -> tuple[KnowledgeGraph, dict[str, Any]]:
            updated, results = kg.add_observations(graph, observations)
            return updated, {"results": _dump(results)}

        return self._mutate("add_observations", change)

    @traced
    def delete_entities(self, entity_names: Sequence[str]) -> ServiceResult:
        """Delete entities and every relation that touches them."""
        annotate(entity_names=list(entity_names))

        def change(graph: KnowledgeGraph) -> tuple[KnowledgeGraph, dict[str, Any]]:
            updated = kg.remove_entities(graph, entity_names)
            removed = graph.entity_names() - updated.entity_names()
            return updated, {
                "deleted": sorted(removed),
                "relations_removed": len(graph.relations) - len(updated.relations),
            }

        return self._mutate("delete_entities", change)

    @traced
    def delete_observations(self, deletions: Sequence[ObservationDeletion]) -> ServiceResult:
        """Remove observation strings. Unknown entities are skipped."""
        annotate(deletions=[d.entity_name for d in deletions])

        def change(graph: KnowledgeGraph) -> tuple[KnowledgeGraph, dict[str, Any]]:
            updated = kg.remove_observations(graph, deletions)
            before = sum(len(e.observations) for e in graph.entities)
            after = sum(len(e.observations) for e in updated.entities)
            return updated, {"observations_removed": before - after}

        return self._mutate("delete_observations", change)

    @traced
    def delete_relations(self, relations: Sequence[Relation]) -> ServiceResult:
        """Remove relations matching a candidate triple exactly."""
        annotate(relations=[r.relation_type for r in relations])

        def change(graph: KnowledgeGraph) -> tuple[KnowledgeGraph, dict[str, Any]]:
            updated = kg.remove_relations(graph, relations)
            return updated, {"relations_removed": len(graph.relations) - len(updated.relations)}

        return self._mutate("delete_relations", change)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @traced
    def read_graph(self) -> ServiceResult:
        """Return the whole graph as stored."""
        annotate(memory_file=self._store.location)
        return self._query("read_graph", _graph_payload)

    @traced
    def search_nodes(self, query: str) -> ServiceResult:
        """Case-insensitive substring search over names, types, and observations.

        The empty query matches every entity.
        """
        annotate(query=query)
        return self._query("search_nodes", lambda g: _graph_payload(kg.search(g, query)))

    @traced
    def open_nodes(self, names: Sequence[str]) -> ServiceResult:
        """Return the named entities and the relations among them."""
        annotate(names=list(names))
        return self._query("open_nodes", lambda g: _graph_payload(kg.select(g, names)))
