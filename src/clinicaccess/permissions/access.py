"""Boolean access checks for calling code.

Provides ``AccessGate`` (``can_view`` / ``can_edit`` / ``check_tab_access``)
on top of :func:`~clinicaccess.permissions.resolver.resolve`, and role-group
helpers for checks that are about the role itself rather than a tab.
The user is always passed explicitly; there is no process-wide current user.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..models import User
from .constants import AccessLevel, Roles
from .resolver import resolve
from .roles import RoleRegistry

logger = logging.getLogger(__name__)


class AccessGate:
    """Tab access checks bound to a role registry.

    Example::

        gate = AccessGate(registry)
        gate.can_view(user, Tabs.FINANCE)
        gate.check_tab_access(user, Tabs.EMPLOYEES, "edit")
    """

    __slots__ = ("registry",)

    def __init__(self, registry: Optional[RoleRegistry] = None) -> None:
        self.registry = registry or RoleRegistry()

    def level(self, user: Optional[User], tab_id: str) -> AccessLevel:
        return resolve(user, tab_id, self.registry)

    def can_view(self, user: Optional[User], tab_id: str) -> bool:
        return self.level(user, tab_id) >= AccessLevel.VIEW

    def can_edit(self, user: Optional[User], tab_id: str) -> bool:
        return self.level(user, tab_id) == AccessLevel.EDIT

    def check_tab_access(self, user: Optional[User], tab_id: str, required: str = "view") -> bool:
        """Check ``required`` ("view" or "edit") on a tab.

        Any other ``required`` value denies; ``"none"`` is not a meaningful
        request and denies as well.
        """
        level = AccessLevel.parse(required)
        if level is None or level is AccessLevel.NONE:
            logger.warning("Unsupported access request %r for tab '%s'; denying", required, tab_id)
            return False
        return self.level(user, tab_id).satisfies(level)

    def visible_tabs(self, user: Optional[User], tab_ids: Iterable[str]) -> list[str]:
        """Subset of ``tab_ids`` the user can view, order preserved."""
        return [tab_id for tab_id in tab_ids if self.can_view(user, tab_id)]

    def __repr__(self) -> str:
        return f"AccessGate(custom_roles={len(self.registry.custom_roles())})"


# ── Role-group helpers ──────────────────────────────────


def has_any_role(user: Optional[User], roles: Iterable[str]) -> bool:
    if user is None or not user.role:
        return False
    return user.role in set(roles)


def is_super_role(user: Optional[User], registry: Optional[RoleRegistry] = None) -> bool:
    if user is None:
        return False
    if registry is not None:
        return registry.is_super_role(user.role)
    return user.role == Roles.SUPER_ROLE


def has_finance_access(user: Optional[User]) -> bool:
    return has_any_role(user, Roles.FINANCE)


def is_coordinator_or_higher(user: Optional[User]) -> bool:
    return has_any_role(user, Roles.COORDINATOR_AND_HIGHER)


def is_professional(user: Optional[User]) -> bool:
    return has_any_role(user, Roles.PROFESSIONALS)


__all__ = [
    "AccessGate",
    "has_any_role",
    "has_finance_access",
    "is_coordinator_or_higher",
    "is_professional",
    "is_super_role",
]
