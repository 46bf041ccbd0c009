"""Unified exception hierarchy for clinicaccess.

All errors inherit from AccessControlError. This module provides:
- Base exception hierarchy with stable error codes
- ErrorRegistry for mapping codes back to error classes
- Diagnostic warning classes for fail-closed resolution
- ``returns_result`` decorator that turns errors into failure results

Usage:
    from clinicaccess.exceptions import (
        AccessControlError,
        PermissionDeniedError,
        returns_result,
    )
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Awaitable, Callable, TypeVar, cast

__all__ = [
    # Base hierarchy
    "AccessControlError",
    "PermissionDeniedError",
    "NotFoundError",
    "DuplicateRoleError",
    "SelfModificationError",
    "ValidationError",
    "ConfirmationRequiredError",
    "ConfigurationError",
    "AuthenticationError",
    "StorageError",
    "ConflictError",
    # Diagnostics
    "AccessDiagnostic",
    "UnmappedRoleWarning",
    "UnmappedTabWarning",
    # Registry
    "ErrorRegistry",
    "error_registry",
    "register_error",
    # Result helpers
    "returns_result",
]

logger = logging.getLogger(__name__)


# ---- Exception Hierarchy ----------------------------------------------------


class AccessControlError(Exception):
    """Base exception for all clinicaccess operations.

    Attributes:
        code: Stable error code string (e.g. "PERMISSION_DENIED").
        message: Human-readable error description.
        details: Additional context as keyword arguments.
    """

    code: str = "INTERNAL_ERROR"
    message: str = "An internal error occurred"

    def __init__(self, message: str | None = None, code: str | None = None, **kwargs: Any) -> None:
        self.message = message or self.message
        self.code = code or self.code
        self.details = kwargs
        super().__init__(self.message)


class PermissionDeniedError(AccessControlError):
    """Actor lacks the role required for the operation."""

    code: str = "PERMISSION_DENIED"
    message: str = "You do not have permission to perform this operation"


class NotFoundError(AccessControlError):
    """Role or user id does not exist."""

    code: str = "NOT_FOUND"
    message: str = "Record not found"


class DuplicateRoleError(AccessControlError):
    """Derived role id collides with an existing or reserved role."""

    code: str = "DUPLICATE_ROLE"
    message: str = "A role with this id already exists"


class SelfModificationError(AccessControlError):
    """Super-role attempted to edit its own tab overrides."""

    code: str = "SELF_MODIFICATION"
    message: str = "You cannot change your own permissions here"


class ValidationError(AccessControlError):
    """Invalid input (unknown tab, unknown level, empty name...)."""

    code: str = "VALIDATION_ERROR"
    message: str = "Invalid input"


class ConfirmationRequiredError(AccessControlError):
    """Destructive operation affects other records and was not confirmed."""

    code: str = "CONFIRMATION_REQUIRED"
    message: str = "This operation requires explicit confirmation"


class ConfigurationError(AccessControlError):
    """Invalid or missing configuration."""

    code: str = "CONFIGURATION_ERROR"


class AuthenticationError(AccessControlError):
    """Sign-in failed or the session has no profile."""

    code: str = "AUTHENTICATION_ERROR"
    message: str = "Authentication failed"


class StorageError(AccessControlError):
    """Record store failure."""

    code: str = "STORAGE_ERROR"


class ConflictError(StorageError):
    """Concurrent write detected; retry as a fresh read-modify-write."""

    code: str = "CONFLICT"
    message: str = "Record was modified concurrently"


# ---- Diagnostics ------------------------------------------------------------


class AccessDiagnostic(Warning):
    """Non-fatal resolution diagnostic. Logged, never raised."""

    code: str = "ACCESS_DIAGNOSTIC"


class UnmappedRoleWarning(AccessDiagnostic):
    """User role matches neither a built-in nor a custom role."""

    code: str = "UNMAPPED_ROLE"


class UnmappedTabWarning(AccessDiagnostic):
    """Tab id is not part of the tab registry."""

    code: str = "UNMAPPED_TAB"


# ---- Error Registry ---------------------------------------------------------

_E = TypeVar("_E", bound=type[AccessControlError])


class ErrorRegistry:
    """Registry for mapping error codes to error classes."""

    def __init__(self) -> None:
        self._errors: dict[str, type[AccessControlError]] = {}

    def register(self, code: str, error_cls: type[AccessControlError]) -> None:
        self._errors[code] = error_cls

    def get(self, code: str) -> type[AccessControlError] | None:
        return self._errors.get(code)

    def all(self) -> dict[str, type[AccessControlError]]:
        return dict(self._errors)


error_registry = ErrorRegistry()


def register_error(code: str) -> Callable[[_E], _E]:
    """Decorator to register a custom error type.

    Usage:
        @register_error("ROLE_LOCKED")
        class RoleLockedError(AccessControlError):
            code = "ROLE_LOCKED"
    """

    def decorator(cls: _E) -> _E:
        error_registry.register(code, cls)
        return cls

    return cast(Callable[[_E], _E], decorator)


for _cls in (
    AccessControlError,
    PermissionDeniedError,
    NotFoundError,
    DuplicateRoleError,
    SelfModificationError,
    ValidationError,
    ConfirmationRequiredError,
    ConfigurationError,
    AuthenticationError,
    StorageError,
    ConflictError,
):
    error_registry.register(_cls.code, _cls)


# ---- Result conversion ------------------------------------------------------


def returns_result(method: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
    """Decorator for async operations that report errors as failure results.

    The wrapped coroutine returns the value to wrap on success. Any
    AccessControlError is logged and returned as ``OperationResult.failure``.
    Other exceptions propagate.

    Usage:
        @returns_result
        async def create_role(self, actor, name, matrix):
            ...
    """
    from .results import OperationResult

    @functools.wraps(method)
    async def wrapper(*args: Any, **kwargs: Any) -> OperationResult:
        try:
            value = await method(*args, **kwargs)
        except AccessControlError as e:
            logger.error(
                "%s failed: [%s] %s",
                method.__name__,
                e.code,
                e.message,
                extra={
                    "error_code": e.code,
                    "error_details": e.details,
                },
            )
            return OperationResult.failure(e)
        if isinstance(value, OperationResult):
            return value
        return OperationResult.success(value)

    return wrapper
