"""ServiceResult and ServiceError — the universal service contract.

INVARIANT: All service-layer methods return ServiceResult.
The CLI, the MCP tool dispatcher, and any future interface consume this
type. Store failures never escape a service as exceptions.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from kgmemory.errors import DecodeError, EntityNotFound, KgMemoryError, PersistenceError


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult.

    ``code`` is one of the :mod:`kgmemory.errors` codes
    (``ENTITY_NOT_FOUND``, ``DECODE_ERROR``, ...).
    """

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Universal return type for all service operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"create_entities"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (telemetry spans, store location).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(cls, op: str, exc: KgMemoryError) -> ServiceResult:
        """Build a failed result from a store error, keeping its code."""
        detail: dict[str, Any] = {}
        if isinstance(exc, EntityNotFound):
            detail["entity_name"] = exc.entity_name
        elif isinstance(exc, DecodeError) and exc.line is not None:
            detail["line"] = exc.line
        elif isinstance(exc, PersistenceError) and exc.path is not None:
            detail["path"] = str(exc.path)
        return cls(
            ok=False,
            op=op,
            error=ServiceError(code=exc.code, message=str(exc), detail=detail),
        )
