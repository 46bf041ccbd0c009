"""Effective access-level resolution.

``resolve()`` answers "what level does this user hold on this tab?" from,
in strict precedence order:

1. no user → ``none``
2. super-role → ``edit`` (overrides cannot downgrade it)
3. tab not in the tab registry → ``none`` + ``UnmappedTabWarning``
4. per-user override (an explicit ``none`` included)
5. role defaults: built-in matrix, custom role matrix, or ``none`` +
   ``UnmappedRoleWarning`` for a role the registry does not know

Resolution is pure and never raises; every ambiguity resolves to ``none``.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..exceptions import AccessDiagnostic, UnmappedRoleWarning, UnmappedTabWarning
from ..models import User
from .constants import AccessLevel
from .defaults import default_level
from .roles import RoleKind, RoleRegistry
from .tabs import TAB_IDS, is_known_tab

logger = logging.getLogger(__name__)

_BUILTIN_ONLY = RoleRegistry()


def _emit(
    diagnostic: type[AccessDiagnostic],
    message: str,
    diagnostics: Optional[list[AccessDiagnostic]],
    **extra: object,
) -> None:
    logger.warning(message, extra={"diagnostic": diagnostic.code, **extra})
    if diagnostics is not None:
        diagnostics.append(diagnostic(message))


def role_default_level(
    role_id: str,
    tab_id: str,
    registry: Optional[RoleRegistry] = None,
    diagnostics: Optional[list[AccessDiagnostic]] = None,
) -> AccessLevel:
    """Level a role grants on a tab before any per-user override."""
    registry = registry or _BUILTIN_ONLY
    ref = registry.lookup(role_id)

    if ref.kind is RoleKind.BUILTIN:
        if registry.is_super_role(ref.id):
            return AccessLevel.EDIT
        return default_level(ref.id, tab_id)

    if ref.kind is RoleKind.CUSTOM and ref.role is not None:
        return ref.role.tab_access.get(tab_id, AccessLevel.NONE)

    _emit(
        UnmappedRoleWarning,
        f"Role '{role_id}' is neither built-in nor a known custom role; denying '{tab_id}'",
        diagnostics,
        role=role_id,
        tab=tab_id,
    )
    return AccessLevel.NONE


def resolve(
    user: Optional[User],
    tab_id: str,
    registry: Optional[RoleRegistry] = None,
    diagnostics: Optional[list[AccessDiagnostic]] = None,
) -> AccessLevel:
    """Effective access level of ``user`` on ``tab_id``.

    Args:
        user: The user being checked, or None when nobody is signed in.
        tab_id: Tab identifier from :data:`~clinicaccess.permissions.tabs.TAB_REGISTRY`.
        registry: Role registry holding custom roles. Defaults to built-ins only.
        diagnostics: Optional list that collects emitted diagnostics.

    Example::

        user = User(id="u1", role="financeiro")
        resolve(user, "finance")                     # AccessLevel.EDIT
        user.tab_access = {"finance": AccessLevel.VIEW}
        resolve(user, "finance")                     # AccessLevel.VIEW
    """
    if user is None:
        return AccessLevel.NONE

    registry = registry or _BUILTIN_ONLY

    if registry.is_super_role(user.role):
        return AccessLevel.EDIT

    if not is_known_tab(tab_id):
        _emit(
            UnmappedTabWarning,
            f"Tab '{tab_id}' is not in the tab registry; denying",
            diagnostics,
            tab=str(tab_id),
            user_id=user.id,
        )
        return AccessLevel.NONE

    override = user.override_for(tab_id)
    if override is not None:
        return override

    return role_default_level(user.role, tab_id, registry, diagnostics)


def effective_matrix(
    user: Optional[User],
    registry: Optional[RoleRegistry] = None,
) -> dict[str, AccessLevel]:
    """Resolved level for every registered tab, in registry order."""
    return {tab_id: resolve(user, tab_id, registry) for tab_id in TAB_IDS}


__all__ = [
    "effective_matrix",
    "resolve",
    "role_default_level",
]
