"""Domain-level exception primitives with stable machine-readable codes."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(eq=False)
class DomainError(Exception):
    """Use-case level error with stable code and HTTP mapping."""

    code: str
    http_status: int
    message: str
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        return self.message


def not_found(entity: str) -> DomainError:
    """Build the standard 404 error for a missing entity."""
    return DomainError(
        code=f"{entity.upper()}_NOT_FOUND",
        http_status=404,
        message=f"{entity.replace('_', ' ').capitalize()} not found",
    )
