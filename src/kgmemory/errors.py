"""Error taxonomy for the knowledge graph store.

Each error carries a stable ``code`` that services copy into
:class:`~kgmemory.services.result.ServiceError` so adapters never need to
pattern-match on exception types.
"""

from __future__ import annotations

from pathlib import Path


class KgMemoryError(Exception):
    """Base class for all store errors."""

    code = "KGMEMORY_ERROR"


class ValidationError(KgMemoryError):
    """Caller payload is missing required arguments or has the wrong shape."""

    code = "VALIDATION_ERROR"


class EntityNotFound(KgMemoryError):
    """An operation referenced an entity that is not in the graph."""

    code = "ENTITY_NOT_FOUND"

    def __init__(self, entity_name: str) -> None:
        self.entity_name = entity_name
        super().__init__(f"Entity with name {entity_name} not found")


class DecodeError(KgMemoryError):
    """Durable data does not parse as the record format."""

    code = "DECODE_ERROR"

    def __init__(self, message: str, *, line: int | None = None) -> None:
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class PersistenceError(KgMemoryError):
    """Reading or writing the backing file failed."""

    code = "PERSISTENCE_ERROR"

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        self.path = path
        super().__init__(message)
