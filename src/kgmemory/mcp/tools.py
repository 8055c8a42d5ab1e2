"""MCP tool definitions — 9 knowledge graph tools and the dispatcher.

Categories: Creation (3), Deletion (3), Query (3).
:func:`dispatch` takes a tool name plus a loose argument bag, validates it
into the tool's argument contract, runs exactly one MemoryService
operation, and wraps the outcome in a :class:`ToolResponse` envelope. It
needs no mcp package. ``register_tools()`` binds the same tools to a
FastMCP server.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

import structlog
from pydantic import BaseModel, ConfigDict, Field

from kgmemory.domain.graph import Entity, ObservationAddition, ObservationDeletion, Relation
from kgmemory.errors import ValidationError
from kgmemory.services.contracts import (
    AddObservationsArgs,
    CreateEntitiesArgs,
    CreateRelationsArgs,
    DeleteEntitiesArgs,
    DeleteObservationsArgs,
    DeleteRelationsArgs,
    OpenNodesArgs,
    ReadGraphArgs,
    SearchNodesArgs,
    parse_arguments,
)

if TYPE_CHECKING:
    from kgmemory.services.memory import MemoryService
    from kgmemory.services.result import ServiceResult

log = structlog.get_logger(__name__)

INTERRUPTED_MESSAGE = "Tool execution interrupted"


# ---------------------------------------------------------------------------
# Response envelope
# ---------------------------------------------------------------------------


class TextContent(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str


class ToolResponse(BaseModel):
    """A single text content item; ``isError`` is set only on failures."""

    model_config = ConfigDict(frozen=True, validate_by_name=True)

    content: list[TextContent]
    is_error: bool | None = Field(default=None, alias="isError")

    @classmethod
    def success(cls, text: str) -> ToolResponse:
        return cls(content=[TextContent(text=text)])

    @classmethod
    def failure(cls, message: str) -> ToolResponse:
        return cls(content=[TextContent(text=message)], is_error=True)

    @property
    def text(self) -> str:
        return self.content[0].text

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def _pretty(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Tool catalogue
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ToolSpec:
    """One tool: its argument contract, the operation, and the envelope text.

    *render* turns a successful ServiceResult into the envelope text.
    """

    name: str
    description: str
    args_model: type[BaseModel]
    run: Callable[[MemoryService, Any], ServiceResult]
    render: Callable[[ServiceResult], str]


def _payload(key: str) -> Callable[[ServiceResult], str]:
    return lambda result: _pretty(result.data[key])


def _graph(result: ServiceResult) -> str:
    return _pretty({"entities": result.data["entities"], "relations": result.data["relations"]})


def _confirm(text: str) -> Callable[[ServiceResult], str]:
    return lambda _result: text


TOOLS: dict[str, ToolSpec] = {
    spec.name: spec
    for spec in (
        ToolSpec(
            name="create_entities",
            description="Create multiple new entities in the knowledge graph",
            args_model=CreateEntitiesArgs,
            run=lambda svc, args: svc.create_entities(args.entities),
            render=_payload("entities"),
        ),
        ToolSpec(
            name="create_relations",
            description=(
                "Create multiple new relations between entities in the knowledge graph. "
                "Relations should be in active voice"
            ),
            args_model=CreateRelationsArgs,
            run=lambda svc, args: svc.create_relations(args.relations),
            render=_payload("relations"),
        ),
        ToolSpec(
            name="add_observations",
            description="Add new observations to existing entities in the knowledge graph",
            args_model=AddObservationsArgs,
            run=lambda svc, args: svc.add_observations(args.observations),
            render=_payload("results"),
        ),
        ToolSpec(
            name="delete_entities",
            description=(
                "Delete multiple entities and their associated relations from the knowledge graph"
            ),
            args_model=DeleteEntitiesArgs,
            run=lambda svc, args: svc.delete_entities(args.entity_names),
            render=_confirm("Entities deleted successfully"),
        ),
        ToolSpec(
            name="delete_observations",
            description="Delete specific observations from entities in the knowledge graph",
            args_model=DeleteObservationsArgs,
            run=lambda svc, args: svc.delete_observations(args.deletions),
            render=_confirm("Observations deleted successfully"),
        ),
        ToolSpec(
            name="delete_relations",
            description="Delete multiple relations from the knowledge graph",
            args_model=DeleteRelationsArgs,
            run=lambda svc, args: svc.delete_relations(args.relations),
            render=_confirm("Relations deleted successfully"),
        ),
        ToolSpec(
            name="read_graph",
            description="Read the entire knowledge graph",
            args_model=ReadGraphArgs,
            run=lambda svc, _args: svc.read_graph(),
            render=_graph,
        ),
        ToolSpec(
            name="search_nodes",
            description=(
                "Search for nodes in the knowledge graph based on a query "
                "matched against entity names, types, and observation content"
            ),
            args_model=SearchNodesArgs,
            run=lambda svc, args: svc.search_nodes(args.query),
            render=_graph,
        ),
        ToolSpec(
            name="open_nodes",
            description="Open specific nodes in the knowledge graph by their names",
            args_model=OpenNodesArgs,
            run=lambda svc, args: svc.open_nodes(args.names),
            render=_graph,
        ),
    )
}


def list_tools() -> list[dict[str, Any]]:
    """Name, description, and JSON input schema for every tool."""
    return [
        {
            "name": spec.name,
            "description": spec.description,
            "inputSchema": spec.args_model.model_json_schema(by_alias=True),
        }
        for spec in TOOLS.values()
    ]


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


def run_tool(service: MemoryService, spec: ToolSpec, args: BaseModel) -> ToolResponse:
    """Run one validated tool call and wrap the outcome.

    Store failures arrive as failed ServiceResults. Anything else that
    escapes the operation is logged and reported, never re-raised, so one
    bad call cannot take the server down.
    """
    try:
        result = spec.run(service, args)
    except InterruptedError:
        log.info("tool.interrupted", tool=spec.name)
        return ToolResponse.failure(INTERRUPTED_MESSAGE)
    except Exception as exc:
        log.exception("tool.crashed", tool=spec.name)
        return ToolResponse.failure(f"{type(exc).__name__}: {exc}")

    if not result.ok:
        message = result.error.message if result.error else "Unknown error"
        log.warning(
            "tool.failed",
            tool=spec.name,
            code=result.error.code if result.error else None,
            message=message,
        )
        return ToolResponse.failure(message)

    log.debug("tool.ok", tool=spec.name)
    return ToolResponse.success(spec.render(result))


def dispatch(
    service: MemoryService,
    name: str,
    arguments: dict[str, Any] | None,
) -> ToolResponse:
    """Validate *arguments* for tool *name* and run it.

    Unknown tools and malformed arguments produce an error envelope
    without touching the store.
    """
    spec = TOOLS.get(name)
    try:
        if spec is None:
            msg = f"Unknown tool: {name}"
            raise ValidationError(msg)
        args = parse_arguments(name, spec.args_model, arguments)
    except ValidationError as exc:
        log.warning("tool.invalid", tool=name, message=str(exc))
        return ToolResponse.failure(str(exc))
    return run_tool(service, spec, args)


# ---------------------------------------------------------------------------
# Registration — binds the catalogue to FastMCP
# ---------------------------------------------------------------------------


def register_tools(server: Any, service: MemoryService) -> None:
    """Register all 9 tools on the FastMCP server.

    FastMCP validates arguments against the typed signatures; the
    validated values are rebuilt into the same argument contracts the
    dispatcher uses. Error envelopes surface as ``ToolError`` so FastMCP
    sets ``isError`` on the response.
    """
    from mcp.server.fastmcp.exceptions import ToolError

    def call(name: str, args: BaseModel) -> str:
        response = run_tool(service, TOOLS[name], args)
        if response.is_error:
            raise ToolError(response.text)
        return response.text

    def describe(name: str) -> dict[str, str]:
        return {"name": name, "description": TOOLS[name].description}

    @server.tool(**describe("create_entities"))  # type: ignore[untyped-decorator]
    def create_entities(entities: list[Entity]) -> str:
        return call("create_entities", CreateEntitiesArgs(entities=entities))

    @server.tool(**describe("create_relations"))  # type: ignore[untyped-decorator]
    def create_relations(relations: list[Relation]) -> str:
        return call("create_relations", CreateRelationsArgs(relations=relations))

    @server.tool(**describe("add_observations"))  # type: ignore[untyped-decorator]
    def add_observations(observations: list[ObservationAddition]) -> str:
        return call("add_observations", AddObservationsArgs(observations=observations))

    @server.tool(**describe("delete_entities"))  # type: ignore[untyped-decorator]
    def delete_entities(entityNames: list[str]) -> str:  # noqa: N803
        return call("delete_entities", DeleteEntitiesArgs(entity_names=entityNames))

    @server.tool(**describe("delete_observations"))  # type: ignore[untyped-decorator]
    def delete_observations(deletions: list[ObservationDeletion]) -> str:
        return call("delete_observations", DeleteObservationsArgs(deletions=deletions))

    @server.tool(**describe("delete_relations"))  # type: ignore[untyped-decorator]
    def delete_relations(relations: list[Relation]) -> str:
        return call("delete_relations", DeleteRelationsArgs(relations=relations))

    @server.tool(**describe("read_graph"))  # type: ignore[untyped-decorator]
    def read_graph() -> str:
        return call("read_graph", ReadGraphArgs())

    @server.tool(**describe("search_nodes"))  # type: ignore[untyped-decorator]
    def search_nodes(query: str) -> str:
        return call("search_nodes", SearchNodesArgs(query=query))

    @server.tool(**describe("open_nodes"))  # type: ignore[untyped-decorator]
    def open_nodes(names: list[str]) -> str:
        return call("open_nodes", OpenNodesArgs(names=names))
