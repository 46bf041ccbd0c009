"""Explicit success/failure results returned by mutating operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from .exceptions import AccessControlError


@dataclass
class OperationResult:
    """Result of an administrative operation.

    Attributes:
        ok: True when the operation completed and is durable.
        value: Operation payload (role, user, count...) on success.
        error: The error that stopped the operation, if any.
        warnings: Human-readable notices the caller should surface.
    """

    ok: bool = True
    value: Any = None
    error: Optional[AccessControlError] = None
    warnings: list[str] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return not self.ok

    @property
    def error_code(self) -> str:
        return self.error.code if self.error else ""

    @classmethod
    def success(cls, value: Any = None, warnings: Optional[list[str]] = None) -> "OperationResult":
        return cls(ok=True, value=value, warnings=list(warnings or []))

    @classmethod
    def failure(cls, error: AccessControlError) -> "OperationResult":
        return cls(ok=False, error=error)

    def unwrap(self) -> Any:
        """Return the value, or raise the stored error."""
        if self.error is not None:
            raise self.error
        return self.value


__all__ = ["OperationResult"]
