"""Command group: read, query, and edit the knowledge graph."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from kgmemory.commands._base import KgGroup
from kgmemory.domain.graph import Entity, ObservationAddition, ObservationDeletion, Relation

if TYPE_CHECKING:
    from kgmemory.commands._context import AppContext

_GRAPH_EXAMPLES = """\
  kgmemory graph read
  kgmemory graph search coffee
  kgmemory graph open Alice Bob
  kgmemory graph add Alice person -o "likes coffee"
  kgmemory graph relate Alice knows Bob
  kgmemory --json graph search person"""


@click.group(cls=KgGroup, examples=_GRAPH_EXAMPLES)
@click.pass_obj
def graph(app: AppContext) -> None:
    """Read, search, open, and edit knowledge graph nodes."""


# ── Queries ───────────────────────────────────────────────────────────


@graph.command(
    examples="""\
  kgmemory graph read
  kgmemory --json graph read > graph.json"""
)
@click.pass_obj
def read(app: AppContext) -> None:
    """Print every entity and relation."""
    app.emit(app.service.read_graph())


@graph.command(
    examples="""\
  kgmemory graph search coffee
  kgmemory graph search ""          # everything
  kgmemory -q graph search person   # names only"""
)
@click.argument("query_text")
@click.pass_obj
def search(app: AppContext, query_text: str) -> None:
    """Case-insensitive search over names, types, and observations."""
    app.emit(app.service.search_nodes(query_text))


@graph.command(
    "open",
    examples="""\
  kgmemory graph open Alice
  kgmemory graph open Alice Bob""",
)
@click.argument("names", nargs=-1, required=True)
@click.pass_obj
def open_nodes(app: AppContext, names: tuple[str, ...]) -> None:
    """Show the named entities and the relations among them."""
    app.emit(app.service.open_nodes(list(names)))


# ── Mutations ─────────────────────────────────────────────────────────


@graph.command(
    examples="""\
  kgmemory graph add Alice person -o "likes coffee" -o "plays chess"
  kgmemory graph add Acme organization"""
)
@click.argument("name")
@click.argument("entity_type")
@click.option(
    "-o", "--observation", "observations", multiple=True, help="Observation text (repeatable)."
)
@click.pass_obj
def add(app: AppContext, name: str, entity_type: str, observations: tuple[str, ...]) -> None:
    """Create one entity. An existing name is skipped with a warning."""
    entity = Entity(name=name, entity_type=entity_type, observations=observations)
    app.emit(app.service.create_entities([entity]))


@graph.command(
    examples="""\
  kgmemory graph relate Alice knows Bob
  kgmemory graph relate Bob works_at Acme"""
)
@click.argument("source")
@click.argument("relation_type")
@click.argument("target")
@click.pass_obj
def relate(app: AppContext, source: str, relation_type: str, target: str) -> None:
    """Create the relation SOURCE -[RELATION_TYPE]-> TARGET."""
    relation = Relation(from_=source, to=target, relation_type=relation_type)
    app.emit(app.service.create_relations([relation]))


@graph.command(
    examples="""\
  kgmemory graph observe Alice "plays chess" "reads Borges"
  kgmemory graph observe Alice tea"""
)
@click.argument("name")
@click.argument("contents", nargs=-1, required=True)
@click.pass_obj
def observe(app: AppContext, name: str, contents: tuple[str, ...]) -> None:
    """Append observations to an existing entity."""
    addition = ObservationAddition(entity_name=name, contents=contents)
    app.emit(app.service.add_observations([addition]))


@graph.command(
    examples="""\
  kgmemory graph delete Bob
  kgmemory graph delete Bob Acme"""
)
@click.argument("names", nargs=-1, required=True)
@click.pass_obj
def delete(app: AppContext, names: tuple[str, ...]) -> None:
    """Delete entities and every relation that touches them."""
    app.emit(app.service.delete_entities(list(names)))


@graph.command(
    examples="""\
  kgmemory graph forget Alice "likes coffee"
  kgmemory graph forget Alice tea coffee"""
)
@click.argument("name")
@click.argument("observations", nargs=-1, required=True)
@click.pass_obj
def forget(app: AppContext, name: str, observations: tuple[str, ...]) -> None:
    """Remove observations from an entity. Unknown names are ignored."""
    deletion = ObservationDeletion(entity_name=name, observations=observations)
    app.emit(app.service.delete_observations([deletion]))


@graph.command(
    examples="""\
  kgmemory graph unrelate Alice knows Bob"""
)
@click.argument("source")
@click.argument("relation_type")
@click.argument("target")
@click.pass_obj
def unrelate(app: AppContext, source: str, relation_type: str, target: str) -> None:
    """Remove the relation SOURCE -[RELATION_TYPE]-> TARGET."""
    relation = Relation(from_=source, to=target, relation_type=relation_type)
    app.emit(app.service.delete_relations([relation]))
