"""Knowledge graph models and the pure functions that transform them.

Every function here takes a :class:`KnowledgeGraph` value and returns a
new one; nothing is mutated in place. A failed computation therefore
leaves the loaded graph untouched, which is what lets the service layer
promise "no partial write".

Wire names (``entityType``, ``from``, ``relationType``, ``entityName``)
are pydantic aliases. Always dump with ``by_alias=True``.
"""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from kgmemory.errors import EntityNotFound

_MODEL_CONFIG = ConfigDict(frozen=True, validate_by_name=True)

type RelationKey = tuple[str, str, str]


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class Entity(BaseModel):
    """A named, typed node carrying free-text observations."""

    model_config = _MODEL_CONFIG

    name: str
    entity_type: str = Field(alias="entityType")
    observations: tuple[str, ...]


class Relation(BaseModel):
    """A directed, typed edge between two entity names.

    Endpoints are not checked against the entity set.
    """

    model_config = _MODEL_CONFIG

    from_: str = Field(alias="from")
    to: str
    relation_type: str = Field(alias="relationType")

    @property
    def key(self) -> RelationKey:
        return (self.from_, self.to, self.relation_type)


class KnowledgeGraph(BaseModel):
    """Entities plus relations. The unit of persistence."""

    model_config = _MODEL_CONFIG

    entities: tuple[Entity, ...] = ()
    relations: tuple[Relation, ...] = ()

    def entity_names(self) -> set[str]:
        return {e.name for e in self.entities}

    def find(self, name: str) -> Entity | None:
        """Return the entity called *name*, or None."""
        for entity in self.entities:
            if entity.name == name:
                return entity
        return None


class ObservationAddition(BaseModel):
    """Observations to append to one entity."""

    model_config = _MODEL_CONFIG

    entity_name: str = Field(alias="entityName")
    contents: tuple[str, ...]


class ObservationDeletion(BaseModel):
    """Observations to remove from one entity."""

    model_config = _MODEL_CONFIG

    entity_name: str = Field(alias="entityName")
    observations: tuple[str, ...]


class AddedObservations(BaseModel):
    """Per-entity summary of what ``add_observations`` actually appended."""

    model_config = _MODEL_CONFIG

    entity_name: str = Field(alias="entityName")
    added_observations: tuple[str, ...] = Field(alias="addedObservations")


EMPTY_GRAPH = KnowledgeGraph()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _unique(values: Iterable[str], *, exclude: Iterable[str] = ()) -> tuple[str, ...]:
    """Order-preserving dedup of *values*, also dropping anything in *exclude*."""
    seen = set(exclude)
    result: list[str] = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        result.append(value)
    return tuple(result)


def induced_relations(relations: Iterable[Relation], names: set[str]) -> tuple[Relation, ...]:
    """Relations whose endpoints are both in *names*.

    Dangling relations drop out naturally when an endpoint is missing.
    """
    return tuple(r for r in relations if r.from_ in names and r.to in names)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


def add_entities(
    graph: KnowledgeGraph, candidates: Iterable[Entity]
) -> tuple[KnowledgeGraph, list[Entity]]:
    """Append candidates whose name is not taken yet.

    Existing names win; candidates are dropped, not merged. Within one
    batch the first candidate for a name wins. A candidate's own duplicate
    observations collapse to their first occurrence.
    """
    taken = graph.entity_names()
    added: list[Entity] = []
    for candidate in candidates:
        if candidate.name in taken:
            continue
        taken.add(candidate.name)
        observations = _unique(candidate.observations)
        if observations != candidate.observations:
            candidate = candidate.model_copy(update={"observations": observations})
        added.append(candidate)
    if not added:
        return graph, added
    return graph.model_copy(update={"entities": (*graph.entities, *added)}), added


def add_relations(
    graph: KnowledgeGraph, candidates: Iterable[Relation]
) -> tuple[KnowledgeGraph, list[Relation]]:
    """Append candidates whose ``(from, to, relationType)`` triple is new."""
    taken = {r.key for r in graph.relations}
    added: list[Relation] = []
    for candidate in candidates:
        if candidate.key in taken:
            continue
        taken.add(candidate.key)
        added.append(candidate)
    if not added:
        return graph, added
    return graph.model_copy(update={"relations": (*graph.relations, *added)}), added


def add_observations(
    graph: KnowledgeGraph, entries: Iterable[ObservationAddition]
) -> tuple[KnowledgeGraph, list[AddedObservations]]:
    """Append new observation strings to existing entities.

    Raises :class:`EntityNotFound` for the first entry naming an unknown
    entity. The input graph is never modified, so the caller can simply
    discard the computation.
    """
    by_name = {e.name: e for e in graph.entities}
    results: list[AddedObservations] = []
    for entry in entries:
        entity = by_name.get(entry.entity_name)
        if entity is None:
            raise EntityNotFound(entry.entity_name)
        new = _unique(entry.contents, exclude=entity.observations)
        if new:
            by_name[entity.name] = entity.model_copy(
                update={"observations": (*entity.observations, *new)}
            )
        results.append(AddedObservations(entity_name=entry.entity_name, added_observations=new))
    entities = tuple(by_name[e.name] for e in graph.entities)
    return graph.model_copy(update={"entities": entities}), results


def remove_entities(graph: KnowledgeGraph, names: Iterable[str]) -> KnowledgeGraph:
    """Drop the named entities and cascade to every relation touching them.

    Unknown names are ignored.
    """
    doomed = set(names)
    return KnowledgeGraph(
        entities=tuple(e for e in graph.entities if e.name not in doomed),
        relations=tuple(
            r for r in graph.relations if r.from_ not in doomed and r.to not in doomed
        ),
    )


def remove_observations(
    graph: KnowledgeGraph, entries: Iterable[ObservationDeletion]
) -> KnowledgeGraph:
    """Remove listed observation strings. Unknown entities are skipped."""
    doomed: dict[str, set[str]] = {}
    for entry in entries:
        doomed.setdefault(entry.entity_name, set()).update(entry.observations)

    entities: list[Entity] = []
    for entity in graph.entities:
        remove = doomed.get(entity.name)
        if remove:
            kept = tuple(o for o in entity.observations if o not in remove)
            if kept != entity.observations:
                entity = entity.model_copy(update={"observations": kept})
        entities.append(entity)
    return graph.model_copy(update={"entities": tuple(entities)})


def remove_relations(graph: KnowledgeGraph, candidates: Iterable[Relation]) -> KnowledgeGraph:
    """Remove relations exactly matching a candidate triple."""
    doomed = {c.key for c in candidates}
    return graph.model_copy(
        update={"relations": tuple(r for r in graph.relations if r.key not in doomed)}
    )


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def entity_matches(entity: Entity, needle: str) -> bool:
    """Case-insensitive substring test against name, type, and observations.

    *needle* must already be casefolded. The empty needle matches everything.
    """
    if needle in entity.name.casefold() or needle in entity.entity_type.casefold():
        return True
    return any(needle in o.casefold() for o in entity.observations)


def search(graph: KnowledgeGraph, query: str) -> KnowledgeGraph:
    """Entities matching *query* plus the induced relation subgraph."""
    needle = query.casefold()
    entities = tuple(e for e in graph.entities if entity_matches(e, needle))
    names = {e.name for e in entities}
    return KnowledgeGraph(entities=entities, relations=induced_relations(graph.relations, names))


def select(graph: KnowledgeGraph, names: Iterable[str]) -> KnowledgeGraph:
    """Entities named in *names* plus the induced relation subgraph."""
    wanted = set(names)
    entities = tuple(e for e in graph.entities if e.name in wanted)
    found = {e.name for e in entities}
    return KnowledgeGraph(entities=entities, relations=induced_relations(graph.relations, found))
