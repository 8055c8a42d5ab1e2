"""Typed argument contracts for the tool boundary.

Callers hand the dispatcher a loosely-typed argument bag. Each tool has
one model here; :func:`parse_arguments` turns the bag into that model or
raises :class:`kgmemory.errors.ValidationError` before any store access.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from kgmemory.domain.graph import Entity, ObservationAddition, ObservationDeletion, Relation
from kgmemory.errors import ValidationError

_ARGS_CONFIG = ConfigDict(frozen=True, validate_by_name=True)


class CreateEntitiesArgs(BaseModel):
    model_config = _ARGS_CONFIG

    entities: list[Entity]


class CreateRelationsArgs(BaseModel):
    model_config = _ARGS_CONFIG

    relations: list[Relation]


class AddObservationsArgs(BaseModel):
    model_config = _ARGS_CONFIG

    observations: list[ObservationAddition]


class DeleteEntitiesArgs(BaseModel):
    model_config = _ARGS_CONFIG

    entity_names: list[str] = Field(alias="entityNames")


class DeleteObservationsArgs(BaseModel):
    model_config = _ARGS_CONFIG

    deletions: list[ObservationDeletion]


class DeleteRelationsArgs(BaseModel):
    model_config = _ARGS_CONFIG

    relations: list[Relation]


class ReadGraphArgs(BaseModel):
    model_config = _ARGS_CONFIG


class SearchNodesArgs(BaseModel):
    model_config = _ARGS_CONFIG

    query: str


class OpenNodesArgs(BaseModel):
    model_config = _ARGS_CONFIG

    names: list[str]


def _describe(exc: PydanticValidationError) -> str:
    """One line per problem: ``entities.0.entityType: Field required``."""
    problems = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"])
        problems.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(problems)


def parse_arguments[T: BaseModel](
    tool: str, model_cls: type[T], arguments: dict[str, Any] | None
) -> T:
    """Validate *arguments* for *tool* into *model_cls*.

    Raises:
        ValidationError: Arguments are absent or do not match the contract.
    """
    if arguments is None:
        msg = f"No arguments provided for tool: {tool}"
        raise ValidationError(msg)
    try:
        return model_cls.model_validate(arguments)
    except PydanticValidationError as exc:
        msg = f"Invalid arguments for tool {tool}: {_describe(exc)}"
        raise ValidationError(msg) from exc
