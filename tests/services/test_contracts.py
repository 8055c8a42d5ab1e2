"""Tests for tool argument contracts."""

from __future__ import annotations

import pytest

from kgmemory.errors import ValidationError
from kgmemory.services.contracts import (
    AddObservationsArgs,
    CreateEntitiesArgs,
    CreateRelationsArgs,
    DeleteEntitiesArgs,
    ReadGraphArgs,
    SearchNodesArgs,
    parse_arguments,
)


class TestParseArguments:
    def test_create_entities(self):
        args = parse_arguments(
            "create_entities",
            CreateEntitiesArgs,
            {"entities": [{"name": "A", "entityType": "t", "observations": ["o"]}]},
        )
        assert args.entities[0].entity_type == "t"
        assert args.entities[0].observations == ("o",)

    def test_relations_use_wire_names(self):
        args = parse_arguments(
            "create_relations",
            CreateRelationsArgs,
            {"relations": [{"from": "A", "to": "B", "relationType": "r"}]},
        )
        assert args.relations[0].key == ("A", "B", "r")

    def test_delete_entities_alias(self):
        args = parse_arguments("delete_entities", DeleteEntitiesArgs, {"entityNames": ["A"]})
        assert args.entity_names == ["A"]

    def test_add_observations(self):
        args = parse_arguments(
            "add_observations",
            AddObservationsArgs,
            {"observations": [{"entityName": "A", "contents": ["x", "y"]}]},
        )
        assert args.observations[0].contents == ("x", "y")

    def test_read_graph_accepts_empty(self):
        assert parse_arguments("read_graph", ReadGraphArgs, {}) == ReadGraphArgs()

    def test_none_arguments(self):
        with pytest.raises(ValidationError, match="No arguments provided for tool: search_nodes"):
            parse_arguments("search_nodes", SearchNodesArgs, None)

    def test_missing_field_named(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_arguments(
                "create_entities", CreateEntitiesArgs, {"entities": [{"name": "A"}]}
            )
        message = str(exc_info.value)
        assert message.startswith("Invalid arguments for tool create_entities: ")
        assert "entities.0.entityType" in message
        assert exc_info.value.code == "VALIDATION_ERROR"

    def test_wrong_type(self):
        with pytest.raises(ValidationError, match="query"):
            parse_arguments("search_nodes", SearchNodesArgs, {"query": 5})
