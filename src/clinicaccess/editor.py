"""Per-user tab override management.

Only the super-role may change overrides, and never its own. Each effective
change appends one change-history entry holding the full old and new
override maps.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from .config import AccessConfig
from .exceptions import (
    NotFoundError,
    PermissionDeniedError,
    SelfModificationError,
    ValidationError,
    returns_result,
)
from .logging import get_access_logger
from .models import ChangeEntry, FieldChange, User
from .permissions.constants import DEFAULT_LEVEL, AccessLevel
from .permissions.roles import RoleRegistry
from .permissions.tabs import is_known_tab
from .results import OperationResult
from .store import PROFILES, RecordStore

logger = logging.getLogger(__name__)

TAB_ACCESS_FIELD = "tabAccess"


def _serialize(overrides: Mapping[str, AccessLevel]) -> Optional[dict[str, str]]:
    # {} and None resolve identically; store the absence as None
    if not overrides:
        return None
    return {tab_id: AccessLevel(level).value for tab_id, level in overrides.items()}


def _parse_level(tab_id: str, level: Any) -> Optional[AccessLevel]:
    """Validated level for a tab, or None for ``"default"``."""
    if not is_known_tab(tab_id):
        raise ValidationError(f"Unknown tab '{tab_id}'", tab=tab_id)
    if level == DEFAULT_LEVEL:
        return None
    parsed = AccessLevel.parse(level)
    if parsed is None:
        raise ValidationError(f"Invalid access level {level!r} for tab '{tab_id}'", tab=tab_id)
    return parsed


class UserPermissionEditor:
    """Director-only editing of per-user tab overrides."""

    def __init__(
        self,
        store: RecordStore,
        registry: Optional[RoleRegistry] = None,
        config: Optional[AccessConfig] = None,
    ) -> None:
        self.store = store
        self.config = config or AccessConfig()
        self.registry = registry or RoleRegistry(super_role=self.config.super_role)

    def _check_actor(self, actor: Optional[User], target_user_id: str) -> None:
        if actor is None or not self.registry.is_super_role(actor.role):
            raise PermissionDeniedError(
                "You do not have permission to change user permissions",
                actor_id=actor.id if actor else None,
            )
        if target_user_id == actor.id:
            raise SelfModificationError(user_id=target_user_id)

    async def _load(self, user_id: str) -> tuple[dict[str, Any], User]:
        record = await self.store.get(PROFILES, user_id)
        if record is None:
            raise NotFoundError(f"User '{user_id}' not found", user_id=user_id)
        return record, User.from_record(record)

    async def _save(
        self,
        actor: User,
        record: dict[str, Any],
        user: User,
        new_overrides: dict[str, AccessLevel],
    ) -> User:
        old = _serialize(user.tab_access or {})
        new = _serialize(new_overrides)
        if old == new:
            return user

        entry = ChangeEntry(
            changed_by=actor.name or "System",
            changed_by_id=actor.id,
            changes=[FieldChange(field=TAB_ACCESS_FIELD, old_value=old, new_value=new)],
        )
        # stored entries are carried over untouched
        history = list(record.get("changeHistory") or [])
        history.append(entry.model_dump(by_alias=True, mode="json"))

        stored = await self.store.update(
            PROFILES,
            user.id,
            {TAB_ACCESS_FIELD: new, "changeHistory": history},
            expected_version=record.get("version"),
        )
        get_access_logger(__name__, actor_id=actor.id).info(
            "Updated tab overrides for %s", user.name or user.id, user_id=user.id
        )
        return User.from_record(stored)

    @returns_result
    async def set_user_override(
        self,
        actor: Optional[User],
        target_user_id: str,
        tab_id: str,
        level: Any,
    ) -> OperationResult:
        """Set one tab override, or clear it with ``level="default"``.

        Returns the updated user. Setting a value equal to the current one is
        a no-op and records no history.
        """
        self._check_actor(actor, target_user_id)
        parsed = _parse_level(tab_id, level)
        record, user = await self._load(target_user_id)

        overrides = dict(user.tab_access or {})
        if parsed is None:
            overrides.pop(tab_id, None)
        else:
            overrides[tab_id] = parsed
        return OperationResult.success(await self._save(actor, record, user, overrides))

    @returns_result
    async def replace_user_overrides(
        self,
        actor: Optional[User],
        target_user_id: str,
        overrides: Mapping[str, Any],
    ) -> OperationResult:
        """Replace the whole override map; ``"default"`` entries are left out."""
        self._check_actor(actor, target_user_id)
        new_overrides: dict[str, AccessLevel] = {}
        for tab_id, level in overrides.items():
            parsed = _parse_level(tab_id, level)
            if parsed is not None:
                new_overrides[tab_id] = parsed
        record, user = await self._load(target_user_id)
        return OperationResult.success(await self._save(actor, record, user, new_overrides))


__all__ = [
    "UserPermissionEditor",
]
