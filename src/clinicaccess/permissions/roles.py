"""Role catalogue: built-in roles plus custom roles loaded from the store.

Provides:
- ``RoleKind`` / ``RoleRef`` — closed classification of a role id.
- ``RoleRegistry`` — lookup of built-in and custom roles.
- ``slugify_role_name()`` — derive a stable role id from a display name.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Optional

from ..models import Role
from .constants import Roles

if TYPE_CHECKING:
    from ..store import RecordStore

logger = logging.getLogger(__name__)


class RoleKind(str, Enum):
    """How a role id resolved against the registry."""

    BUILTIN = "builtin"
    CUSTOM = "custom"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class RoleRef:
    """A role id tagged with its kind; ``role`` is set for custom roles."""

    id: str
    kind: RoleKind
    role: Optional[Role] = None

    @property
    def known(self) -> bool:
        return self.kind is not RoleKind.UNKNOWN


def slugify_role_name(name: str) -> str:
    """Derive a role id from a display name.

    Lowercases, turns whitespace runs into ``_`` and strips every non-word
    character (ASCII word set)::

        >>> slugify_role_name("Chief Psychologist")
        'chief_psychologist'
        >>> slugify_role_name("  Art-Therapist (PT) ")
        'arttherapist_pt'
    """
    slug = re.sub(r"\s+", "_", name.strip().lower())
    return re.sub(r"\W", "", slug, flags=re.ASCII)


class RoleRegistry:
    """Built-in roles (reserved ids) and custom roles (explicit matrices).

    The registry is a snapshot; :meth:`refresh` reloads custom roles from the
    store after a durable mutation. It holds no permission cache.
    """

    def __init__(self, custom_roles: Iterable[Role] = (), super_role: str = Roles.SUPER_ROLE) -> None:
        self.super_role = super_role
        self._custom: dict[str, Role] = {}
        self.replace(custom_roles)

    def replace(self, custom_roles: Iterable[Role]) -> None:
        custom: dict[str, Role] = {}
        for role in custom_roles:
            if self.is_builtin(role.id):
                logger.warning("Ignoring custom role '%s': id is reserved for a built-in role", role.id)
                continue
            custom[role.id] = role
        self._custom = custom

    async def refresh(self, store: "RecordStore") -> None:
        """Reload custom roles from the record store."""
        from ..store import ROLES

        records = await store.find(ROLES)
        self.replace(Role.from_record(r) for r in records if r.get("isCustom", True))
        logger.debug("Role registry refreshed: %d custom roles", len(self._custom))

    @classmethod
    async def load(cls, store: "RecordStore", super_role: str = Roles.SUPER_ROLE) -> "RoleRegistry":
        registry = cls(super_role=super_role)
        await registry.refresh(store)
        return registry

    # ── Lookups ─────────────────────────────────────────

    @staticmethod
    def is_builtin(role_id: str) -> bool:
        return role_id in Roles.BUILTIN

    def is_reserved(self, role_id: str) -> bool:
        return self.is_builtin(role_id) or role_id == self.super_role

    def is_super_role(self, role_id: Optional[str]) -> bool:
        return bool(role_id) and role_id == self.super_role

    def get_custom(self, role_id: str) -> Optional[Role]:
        return self._custom.get(role_id)

    def custom_roles(self) -> list[Role]:
        return list(self._custom.values())

    def lookup(self, role_id: Optional[str]) -> RoleRef:
        """Classify a role id as built-in, custom or unknown."""
        rid = role_id or ""
        if self.is_reserved(rid):
            return RoleRef(rid, RoleKind.BUILTIN)
        role = self._custom.get(rid)
        if role is not None:
            return RoleRef(rid, RoleKind.CUSTOM, role)
        return RoleRef(rid, RoleKind.UNKNOWN)

    def display_name(self, role_id: str) -> str:
        role = self._custom.get(role_id)
        if role is not None:
            return role.name
        return Roles.LABELS.get(role_id, role_id or "N/A")

    def all_role_ids(self) -> list[str]:
        """Built-in and custom ids, sorted by display name."""
        ids = set(Roles.BUILTIN) | set(self._custom)
        return sorted(ids, key=lambda rid: self.display_name(rid).lower())


__all__ = [
    "RoleKind",
    "RoleRef",
    "RoleRegistry",
    "slugify_role_name",
]
