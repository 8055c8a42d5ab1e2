"""Tests for the tool dispatcher and response envelopes."""

from __future__ import annotations

import json

import pytest

from kgmemory.infrastructure.store import InMemoryGraphStore
from kgmemory.mcp.tools import (
    INTERRUPTED_MESSAGE,
    TOOLS,
    ToolResponse,
    dispatch,
    list_tools,
)
from kgmemory.services.memory import MemoryService


@pytest.fixture
def seeded_service(people) -> MemoryService:
    return MemoryService(InMemoryGraphStore(people))


def _body(response: ToolResponse):
    assert response.is_error is None
    return json.loads(response.text)


class TestToolResponse:
    def test_success_shape(self):
        assert ToolResponse.success("hi").to_dict() == {
            "content": [{"type": "text", "text": "hi"}]
        }

    def test_failure_shape(self):
        assert ToolResponse.failure("bad").to_dict() == {
            "content": [{"type": "text", "text": "bad"}],
            "isError": True,
        }


class TestCatalogue:
    def test_nine_tools(self):
        assert sorted(TOOLS) == [
            "add_observations",
            "create_entities",
            "create_relations",
            "delete_entities",
            "delete_observations",
            "delete_relations",
            "open_nodes",
            "read_graph",
            "search_nodes",
        ]

    def test_list_tools_schemas_use_wire_names(self):
        tools = {t["name"]: t for t in list_tools()}
        assert tools["delete_entities"]["inputSchema"]["required"] == ["entityNames"]
        assert tools["search_nodes"]["inputSchema"]["properties"]["query"]["type"] == "string"
        assert all(t["description"] for t in tools.values())

    def test_entity_schema_requires_observations(self):
        schema = next(t for t in list_tools() if t["name"] == "create_entities")["inputSchema"]
        assert schema["$defs"]["Entity"]["required"] == ["name", "entityType", "observations"]


class TestDispatchSuccess:
    def test_create_entities_returns_added(self, service):
        response = dispatch(
            service,
            "create_entities",
            {"entities": [{"name": "A", "entityType": "t", "observations": []}]},
        )
        assert _body(response) == [{"name": "A", "entityType": "t", "observations": []}]

    def test_create_relations_returns_added(self, seeded_service):
        response = dispatch(
            seeded_service,
            "create_relations",
            {"relations": [{"from": "Carol", "to": "Bob", "relationType": "knows"}]},
        )
        assert _body(response) == [{"from": "Carol", "to": "Bob", "relationType": "knows"}]

    def test_add_observations(self, seeded_service):
        response = dispatch(
            seeded_service,
            "add_observations",
            {"observations": [{"entityName": "Carol", "contents": ["paints"]}]},
        )
        assert _body(response) == [{"entityName": "Carol", "addedObservations": ["paints"]}]

    @pytest.mark.parametrize(
        ("tool", "arguments", "text"),
        [
            ("delete_entities", {"entityNames": ["Bob"]}, "Entities deleted successfully"),
            (
                "delete_observations",
                {"deletions": [{"entityName": "Alice", "observations": ["likes coffee"]}]},
                "Observations deleted successfully",
            ),
            (
                "delete_relations",
                {"relations": [{"from": "Alice", "to": "Bob", "relationType": "knows"}]},
                "Relations deleted successfully",
            ),
        ],
    )
    def test_delete_confirmations(self, seeded_service, tool, arguments, text):
        response = dispatch(seeded_service, tool, arguments)
        assert response.to_dict() == {"content": [{"type": "text", "text": text}]}

    def test_read_graph_accepts_missing_arguments_object(self, seeded_service):
        body = _body(dispatch(seeded_service, "read_graph", {}))
        assert set(body) == {"entities", "relations"}
        assert len(body["entities"]) == 4

    def test_search_and_open(self, seeded_service):
        found = _body(dispatch(seeded_service, "search_nodes", {"query": "person"}))
        assert [e["name"] for e in found["entities"]] == ["Alice", "Bob", "Carol"]
        opened = _body(dispatch(seeded_service, "open_nodes", {"names": ["Alice", "Bob"]}))
        assert opened["relations"] == [{"from": "Alice", "to": "Bob", "relationType": "knows"}]

    def test_text_is_pretty_printed(self, service):
        response = dispatch(service, "read_graph", {})
        assert response.text == json.dumps({"entities": [], "relations": []}, indent=2)


class TestDispatchErrors:
    def test_unknown_tool(self, service, memory_store):
        response = dispatch(service, "drop_database", {})
        assert response.to_dict() == {
            "content": [{"type": "text", "text": "Unknown tool: drop_database"}],
            "isError": True,
        }
        assert memory_store.saves == 0

    def test_missing_arguments(self, service):
        response = dispatch(service, "create_entities", None)
        assert response.is_error
        assert response.text == "No arguments provided for tool: create_entities"

    def test_malformed_arguments_never_write(self, service, memory_store):
        response = dispatch(service, "create_entities", {"entities": [{"name": "A"}]})
        assert response.is_error
        assert "entityType" in response.text
        assert memory_store.saves == 0

    def test_entity_without_observations_rejected(self, service, memory_store):
        response = dispatch(
            service, "create_entities", {"entities": [{"name": "A", "entityType": "t"}]}
        )
        assert response.is_error
        assert "entities.0.observations: Field required" in response.text
        assert memory_store.saves == 0

    def test_entity_not_found(self, seeded_service):
        response = dispatch(
            seeded_service,
            "add_observations",
            {"observations": [{"entityName": "Zed", "contents": ["x"]}]},
        )
        assert response.is_error
        assert response.text == "Entity with name Zed not found"

    def test_interrupted(self, service, monkeypatch):
        def interrupted(*_args, **_kwargs):
            raise InterruptedError

        monkeypatch.setattr(service, "read_graph", interrupted)
        response = dispatch(service, "read_graph", {})
        assert response.is_error
        assert response.text == INTERRUPTED_MESSAGE

    def test_unexpected_exception_reported(self, service, monkeypatch):
        def broken(*_args, **_kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(service, "search_nodes", broken)
        response = dispatch(service, "search_nodes", {"query": "x"})
        assert response.is_error
        assert response.text == "RuntimeError: boom"

    def test_keyboard_interrupt_propagates(self, service, monkeypatch):
        def cancelled(*_args, **_kwargs):
            raise KeyboardInterrupt

        monkeypatch.setattr(service, "read_graph", cancelled)
        with pytest.raises(KeyboardInterrupt):
            dispatch(service, "read_graph", {})
