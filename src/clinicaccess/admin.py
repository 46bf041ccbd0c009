"""Custom role administration.

Create, rename/redefine, delete and list custom roles. Every mutating
operation is restricted to the super-role, is async (it awaits the record
store) and returns an :class:`~clinicaccess.results.OperationResult`;
permission and validation problems come back as failure results.

After a durable mutation the role registry is reloaded from the store and
change listeners are notified so that role-derived state can be rebuilt.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from .config import AccessConfig
from .exceptions import (
    ConfirmationRequiredError,
    DuplicateRoleError,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
    ValidationError,
    returns_result,
)
from .logging import get_access_logger
from .models import Role, User
from .permissions.constants import AccessLevel, Roles
from .permissions.roles import RoleRegistry, slugify_role_name
from .permissions.tabs import is_known_tab
from .results import OperationResult
from .store import PROFILES, ROLES, RecordStore

logger = logging.getLogger(__name__)

RoleListener = Callable[["RoleChange"], Union[None, Awaitable[None]]]


@dataclass(frozen=True)
class RoleChange:
    """Notification sent to listeners after a durable role mutation."""

    action: str  # "created" | "updated" | "deleted"
    role_id: str


@dataclass
class RoleDeletion:
    """Outcome of a role deletion."""

    role_id: str
    affected_user_ids: list[str] = field(default_factory=list)

    @property
    def affected_users(self) -> int:
        return len(self.affected_user_ids)


def clean_matrix(matrix: Optional[Mapping[str, Any]]) -> tuple[dict[str, AccessLevel], list[str]]:
    """Validate a role matrix.

    Unknown tab ids are dropped (reported in the returned notices); values
    that are not access levels raise :class:`ValidationError`.
    """
    cleaned: dict[str, AccessLevel] = {}
    notices: list[str] = []
    for tab_id, raw_level in (matrix or {}).items():
        if not is_known_tab(tab_id):
            notices.append(f"Ignored unknown tab '{tab_id}'")
            logger.warning("Dropping unknown tab '%s' from role matrix", tab_id)
            continue
        level = AccessLevel.parse(raw_level)
        if level is None:
            raise ValidationError(f"Invalid access level {raw_level!r} for tab '{tab_id}'", tab=tab_id)
        cleaned[tab_id] = level
    return cleaned, notices


class RoleAdministration:
    """Director-only lifecycle management of custom roles."""

    def __init__(
        self,
        store: RecordStore,
        registry: Optional[RoleRegistry] = None,
        config: Optional[AccessConfig] = None,
    ) -> None:
        self.store = store
        self.config = config or AccessConfig()
        self.registry = registry or RoleRegistry(super_role=self.config.super_role)
        self._listeners: list[RoleListener] = []

    # ── Listeners ───────────────────────────────────────

    def subscribe(self, listener: RoleListener) -> Callable[[], None]:
        """Register a change listener; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _after_mutation(self, change: RoleChange) -> list[str]:
        """Refresh the registry and notify listeners; returns notices for the caller."""
        notices: list[str] = []
        try:
            await self.registry.refresh(self.store)
        except StorageError as e:
            logger.error("Role registry refresh failed after %s %s: %s", change.action, change.role_id, e)
            notices.append(f"Role {change.action}, but the role list could not be reloaded: {e.message}")
        for listener in list(self._listeners):
            try:
                outcome = listener(change)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception:
                logger.exception("Role change listener failed for %s %s", change.action, change.role_id)
        return notices

    # ── Guards ──────────────────────────────────────────

    def _require_super_role(self, actor: Optional[User], operation: str) -> None:
        if actor is None or not self.registry.is_super_role(actor.role):
            raise PermissionDeniedError(
                f"Only the {self.registry.display_name(self.registry.super_role)} can {operation}",
                actor_id=actor.id if actor else None,
            )

    async def _load_custom(self, role_id: str) -> dict[str, Any]:
        record = None if self.registry.is_reserved(role_id) else await self.store.get(ROLES, role_id)
        if record is None or not record.get("isCustom", True):
            raise NotFoundError(f"Custom role '{role_id}' not found", role_id=role_id)
        return record

    # ── Operations ──────────────────────────────────────

    @returns_result
    async def create_role(
        self,
        actor: Optional[User],
        name: str,
        matrix: Optional[Mapping[str, Any]] = None,
    ) -> OperationResult:
        """Create a custom role whose id is the slug of ``name``."""
        self._require_super_role(actor, "create roles")
        display_name = (name or "").strip()
        role_id = slugify_role_name(display_name)
        if not role_id:
            raise ValidationError("Role name must contain at least one letter or digit", name=name)
        if self.registry.is_reserved(role_id):
            raise DuplicateRoleError(f"'{role_id}' is reserved for a built-in role", role_id=role_id)
        if await self.store.get(ROLES, role_id) is not None:
            raise DuplicateRoleError(f"Role '{role_id}' already exists", role_id=role_id)

        tab_access, notices = clean_matrix(matrix)
        role = Role(id=role_id, name=display_name, is_custom=True, tab_access=tab_access)
        stored = await self.store.insert(ROLES, role.to_record())

        get_access_logger(__name__, actor_id=actor.id).info("Created role '%s'", role_id)
        notices.extend(await self._after_mutation(RoleChange("created", role_id)))
        return OperationResult.success(Role.from_record(stored), warnings=notices)

    @returns_result
    async def update_role(
        self,
        actor: Optional[User],
        role_id: str,
        name: Optional[str] = None,
        matrix: Optional[Mapping[str, Any]] = None,
    ) -> OperationResult:
        """Rename and/or redefine a custom role. The id never changes."""
        self._require_super_role(actor, "edit roles")
        record = await self._load_custom(role_id)

        values: dict[str, Any] = {}
        notices: list[str] = []
        if name is not None:
            display_name = name.strip()
            if not display_name:
                raise ValidationError("Role name cannot be empty", role_id=role_id)
            values["name"] = display_name
        if matrix is not None:
            tab_access, notices = clean_matrix(matrix)
            values["tabAccess"] = {tab_id: level.value for tab_id, level in tab_access.items()}

        stored = await self.store.update(ROLES, role_id, values, expected_version=record.get("version"))

        get_access_logger(__name__, actor_id=actor.id).info("Updated role '%s'", role_id)
        notices.extend(await self._after_mutation(RoleChange("updated", role_id)))
        return OperationResult.success(Role.from_record(stored), warnings=notices)

    @returns_result
    async def delete_role(
        self,
        actor: Optional[User],
        role_id: str,
        confirm: bool = False,
    ) -> OperationResult:
        """Delete a custom role.

        Users holding the role are not reassigned; they resolve to ``none``
        everywhere until an administrator gives them another role. When such
        users exist the call must be confirmed, otherwise nothing is deleted.
        """
        self._require_super_role(actor, "delete roles")
        await self._load_custom(role_id)

        holders = await self.store.find(PROFILES, {"role": role_id})
        affected = [str(h["id"]) for h in holders]
        if affected and not confirm:
            raise ConfirmationRequiredError(
                f"{len(affected)} user(s) still hold role '{role_id}'; confirm to delete anyway",
                role_id=role_id,
                affected_users=len(affected),
            )

        await self.store.delete(ROLES, role_id)

        log = get_access_logger(__name__, actor_id=actor.id)
        notices: list[str] = []
        if affected:
            notice = f"{len(affected)} user(s) affected: they keep role '{role_id}' and now have no access"
            notices.append(notice)
            log.warning("Deleted role '%s'; %s", role_id, notice)
        else:
            log.info("Deleted role '%s'", role_id)

        notices.extend(await self._after_mutation(RoleChange("deleted", role_id)))
        return OperationResult.success(RoleDeletion(role_id, affected), warnings=notices)

    def list_roles(self) -> list[Role]:
        """Built-in and custom roles sorted by display name.

        Built-in roles are returned with ``is_custom=False`` and an empty
        matrix; their access comes from the default matrix.
        """
        roles: list[Role] = []
        for role_id in self.registry.all_role_ids():
            custom = self.registry.get_custom(role_id)
            if custom is not None:
                roles.append(custom)
            else:
                roles.append(Role(id=role_id, name=Roles.LABELS.get(role_id, role_id), is_custom=False))
        return roles


__all__ = [
    "RoleAdministration",
    "RoleChange",
    "RoleDeletion",
    "clean_matrix",
]
