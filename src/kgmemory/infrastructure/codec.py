"""Graph codec — newline-delimited JSON records.

Each line is one object with a ``kind`` discriminator::

    {"kind": "entity", "name": "Alice", "entityType": "person", "observations": []}
    {"kind": "relation", "from": "Alice", "to": "Bob", "relationType": "knows"}

Entities are written before relations. Blank lines are skipped on read.
The codec does not enforce key uniqueness; that belongs to the domain layer.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal

from pydantic import ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from kgmemory.domain.graph import Entity, KnowledgeGraph, Relation
from kgmemory.errors import DecodeError

ENCODING = "utf-8"


class EntityRecord(Entity):
    """On-disk entity line. Only wire names are accepted."""

    model_config = ConfigDict(extra="forbid", validate_by_name=False)

    kind: Literal["entity"] = "entity"


class RelationRecord(Relation):
    """On-disk relation line. Only wire names are accepted."""

    model_config = ConfigDict(extra="forbid", validate_by_name=False)

    kind: Literal["relation"] = "relation"


_RECORD: TypeAdapter[EntityRecord | RelationRecord] = TypeAdapter(
    Annotated[EntityRecord | RelationRecord, Field(discriminator="kind")]
)


def _record_line(kind: str, payload: dict[str, Any]) -> str:
    return json.dumps({"kind": kind, **payload}, ensure_ascii=False)


def _first_error(exc: PydanticValidationError) -> str:
    err = exc.errors()[0]
    loc = ".".join(str(part) for part in err["loc"])
    return f"{loc}: {err['msg']}" if loc else err["msg"]


def encode(graph: KnowledgeGraph) -> bytes:
    """Serialize *graph* to its durable byte representation."""
    lines = [
        _record_line("entity", e.model_dump(mode="json", by_alias=True)) for e in graph.entities
    ]
    lines.extend(
        _record_line("relation", r.model_dump(mode="json", by_alias=True))
        for r in graph.relations
    )
    return "".join(f"{line}\n" for line in lines).encode(ENCODING)


def decode(data: bytes) -> KnowledgeGraph:
    """Parse durable bytes into a graph.

    Raises :class:`DecodeError` on the first malformed line; nothing is
    returned for a partially valid file.
    """
    try:
        text = data.decode(ENCODING)
    except UnicodeDecodeError as exc:
        msg = f"Backing file is not valid {ENCODING}: {exc}"
        raise DecodeError(msg) from exc

    entities: list[Entity] = []
    relations: list[Relation] = []
    for lineno, line in enumerate(text.split("\n"), start=1):
        if not line.strip():
            continue
        try:
            record = _RECORD.validate_json(line)
        except PydanticValidationError as exc:
            raise DecodeError(_first_error(exc), line=lineno) from exc

        if isinstance(record, EntityRecord):
            entities.append(Entity.model_validate(record.model_dump(exclude={"kind"})))
        else:
            relations.append(Relation.model_validate(record.model_dump(exclude={"kind"})))
    return KnowledgeGraph(entities=tuple(entities), relations=tuple(relations))
