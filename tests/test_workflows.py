"""End-to-end workflows through the dispatcher against a real file."""

from __future__ import annotations

import json
import threading

from kgmemory.infrastructure.codec import decode
from kgmemory.infrastructure.store import FileGraphStore
from kgmemory.mcp.tools import dispatch
from kgmemory.services.memory import MemoryService


def _call(service: MemoryService, tool: str, arguments: dict):
    response = dispatch(service, tool, arguments)
    assert not response.is_error, response.text
    return response.text


class TestMemoryWorkflow:
    def test_conversation_memory(self, memory_file):
        service = MemoryService(FileGraphStore(memory_file))

        _call(
            service,
            "create_entities",
            {
                "entities": [
                    {
                        "name": "John_Smith",
                        "entityType": "person",
                        "observations": ["Speaks Spanish"],
                    },
                    {"name": "Anthropic", "entityType": "organization", "observations": []},
                ]
            },
        )
        _call(
            service,
            "create_relations",
            {"relations": [{"from": "John_Smith", "to": "Anthropic", "relationType": "works_at"}]},
        )
        _call(
            service,
            "add_observations",
            {"observations": [{"entityName": "John_Smith", "contents": ["Graduated in 2019"]}]},
        )

        found = json.loads(_call(service, "search_nodes", {"query": "spanish"}))
        assert [e["name"] for e in found["entities"]] == ["John_Smith"]
        assert found["relations"] == []

        opened = json.loads(
            _call(service, "open_nodes", {"names": ["John_Smith", "Anthropic"]})
        )
        assert opened["relations"] == [
            {"from": "John_Smith", "to": "Anthropic", "relationType": "works_at"}
        ]

        _call(
            service,
            "delete_observations",
            {"deletions": [{"entityName": "John_Smith", "observations": ["Speaks Spanish"]}]},
        )
        _call(service, "delete_entities", {"entityNames": ["Anthropic"]})

        on_disk = decode(memory_file.read_bytes())
        assert [e.name for e in on_disk.entities] == ["John_Smith"]
        assert on_disk.entities[0].observations == ("Graduated in 2019",)
        assert on_disk.relations == ()

    def test_create_relate_observe_then_delete(self, memory_file):
        service = MemoryService(FileGraphStore(memory_file))
        people = [
            {"name": "Alice", "entityType": "person", "observations": []},
            {"name": "Bob", "entityType": "person", "observations": []},
        ]
        _call(service, "create_entities", {"entities": people})
        _call(
            service,
            "create_relations",
            {"relations": [{"from": "Alice", "to": "Bob", "relationType": "knows"}]},
        )
        _call(
            service,
            "add_observations",
            {"observations": [{"entityName": "Alice", "contents": ["likes coffee"]}]},
        )
        _call(service, "delete_entities", {"entityNames": ["Bob"]})

        assert json.loads(_call(service, "read_graph", {})) == {
            "entities": [
                {"name": "Alice", "entityType": "person", "observations": ["likes coffee"]}
            ],
            "relations": [],
        }

    def test_failed_batch_leaves_file_byte_identical(self, memory_file):
        service = MemoryService(FileGraphStore(memory_file))
        _call(
            service,
            "create_entities",
            {"entities": [{"name": "A", "entityType": "t", "observations": ["one"]}]},
        )
        before = memory_file.read_bytes()

        response = dispatch(
            service,
            "add_observations",
            {
                "observations": [
                    {"entityName": "A", "contents": ["two"]},
                    {"entityName": "Missing", "contents": ["three"]},
                ]
            },
        )
        assert response.is_error
        assert memory_file.read_bytes() == before

    def test_parallel_tool_calls_keep_every_entity(self, memory_file):
        service = MemoryService(FileGraphStore(memory_file))
        errors: list[str] = []

        def worker(index: int) -> None:
            for n in range(5):
                entity = {"name": f"w{index}-{n}", "entityType": "t", "observations": []}
                response = dispatch(service, "create_entities", {"entities": [entity]})
                if response.is_error:
                    errors.append(response.text)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert len(decode(memory_file.read_bytes()).entities) == 20
