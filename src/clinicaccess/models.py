"""Core data models for clinicaccess.

These are Pydantic models for the records kept in the external store.
Attributes are snake_case; records are read and written with the camelCase
aliases used by the store (``tabAccess``, ``changeHistory``, ``isCustom``).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .exceptions import StorageError
from .permissions.constants import AccessLevel

logger = logging.getLogger(__name__)


def _normalize_tab_access(value: Any) -> Optional[dict[str, AccessLevel]]:
    """Normalise a stored tab-access map.

    ``{}`` and ``None`` both mean "no overrides". Values that do not parse as
    an access level become ``none`` so a corrupt entry can never widen access.
    """
    if not value:
        return None
    if not isinstance(value, dict):
        raise ValueError(f"tabAccess must be a mapping, got {type(value).__name__}")
    normalized: dict[str, AccessLevel] = {}
    for tab_id, raw_level in value.items():
        level = AccessLevel.parse(raw_level)
        if level is None:
            logger.warning("Unrecognised access level %r for tab '%s'; treating as none", raw_level, tab_id)
            level = AccessLevel.NONE
        normalized[str(tab_id)] = level
    return normalized


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=False, extra="ignore")

    @classmethod
    def from_record(cls, record: dict[str, Any]):
        """Build a model from a stored record; malformed records raise StorageError."""
        try:
            return cls.model_validate(record)
        except PydanticValidationError as e:
            raise StorageError(
                f"Malformed {cls.__name__.lower()} record {record.get('id')!r}: {e.error_count()} invalid field(s)",
                record_id=record.get("id"),
            ) from e

    def to_record(self) -> dict[str, Any]:
        """Serialise for the record store (camelCase, JSON-safe)."""
        return self.model_dump(by_alias=True, mode="json")


class FieldChange(BaseModel):
    """One field edited in a change-history entry."""

    model_config = ConfigDict(populate_by_name=True)

    field: str
    old_value: Any = Field(default=None, alias="oldValue")
    new_value: Any = Field(default=None, alias="newValue")


class ChangeEntry(BaseModel):
    """Append-only audit entry on a user record."""

    model_config = ConfigDict(populate_by_name=True)

    # older entries carry a millisecond timestamp as id
    id: Union[str, int] = Field(default_factory=lambda: uuid4().hex)
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    changed_by: str = Field(default="System", alias="changedBy")
    changed_by_id: Optional[str] = Field(default=None, alias="changedById")
    changes: list[FieldChange] = Field(default_factory=list)


class User(_Record):
    """User profile as seen by the access-control layer."""

    id: str
    name: str = ""
    role: str = ""
    email: Optional[str] = None
    tab_access: Optional[dict[str, AccessLevel]] = Field(default=None, alias="tabAccess")
    change_history: list[ChangeEntry] = Field(default_factory=list, alias="changeHistory")
    version: int = 0

    @field_validator("role", mode="before")
    @classmethod
    def validate_role(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v).strip()

    @field_validator("tab_access", mode="before")
    @classmethod
    def validate_tab_access(cls, v: Any) -> Optional[dict[str, AccessLevel]]:
        return _normalize_tab_access(v)

    def override_for(self, tab_id: str) -> Optional[AccessLevel]:
        """Explicit override for a tab, or None when defaults apply."""
        if not self.tab_access:
            return None
        return self.tab_access.get(tab_id)


class Role(_Record):
    """Custom role with an explicit, persisted tab matrix."""

    id: str
    name: str
    is_custom: bool = Field(default=True, alias="isCustom")
    tab_access: dict[str, AccessLevel] = Field(default_factory=dict, alias="tabAccess")
    version: int = 0

    @field_validator("tab_access", mode="before")
    @classmethod
    def validate_tab_access(cls, v: Any) -> dict[str, AccessLevel]:
        return _normalize_tab_access(v) or {}


__all__ = [
    "ChangeEntry",
    "FieldChange",
    "Role",
    "User",
]
