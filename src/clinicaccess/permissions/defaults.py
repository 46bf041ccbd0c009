"""Default tab permissions for built-in roles.

Provides:
- ``DEFAULT_TAB_PERMISSIONS`` — tab → {level → roles granted that level}.
- ``default_level()`` — resolve a built-in role's default level on a tab.
"""

from __future__ import annotations

from .constants import AccessLevel, Roles, Tabs

# ── Default Matrix ──────────────────────────────────────
# A role listed under "edit" gets edit; otherwise under "view" gets view.

_FRONT_DESK_VIEW = (
    Roles.DIRECTOR,
    Roles.COORDINATOR,
    Roles.PROFESSIONAL,
    Roles.STAFF,
    Roles.RECEPTIONIST,
)

DEFAULT_TAB_PERMISSIONS: dict[str, dict[AccessLevel, tuple[str, ...]]] = {
    Tabs.CLIENT_INTAKE: {
        AccessLevel.VIEW: _FRONT_DESK_VIEW,
        AccessLevel.EDIT: (Roles.DIRECTOR, Roles.COORDINATOR, Roles.RECEPTIONIST),
    },
    Tabs.DAILY_SCHEDULE: {
        AccessLevel.VIEW: _FRONT_DESK_VIEW,
        AccessLevel.EDIT: (Roles.DIRECTOR, Roles.COORDINATOR, Roles.PROFESSIONAL, Roles.RECEPTIONIST),
    },
    Tabs.FULL_HISTORY: {
        AccessLevel.VIEW: _FRONT_DESK_VIEW,
        AccessLevel.EDIT: (Roles.DIRECTOR, Roles.COORDINATOR),
    },
    Tabs.MY_PATIENTS: {
        AccessLevel.VIEW: Roles.PROFESSIONALS,
        AccessLevel.EDIT: Roles.PROFESSIONALS,
    },
    Tabs.REPORTS: {
        AccessLevel.VIEW: (Roles.DIRECTOR, Roles.FINANCEIRO, Roles.COORDINATOR),
        AccessLevel.EDIT: (Roles.DIRECTOR,),
    },
    Tabs.FINANCE: {
        AccessLevel.VIEW: (Roles.DIRECTOR, Roles.FINANCEIRO),
        AccessLevel.EDIT: (Roles.DIRECTOR, Roles.FINANCEIRO),
    },
    Tabs.INVENTORY: {
        AccessLevel.VIEW: (Roles.DIRECTOR, Roles.FINANCEIRO, Roles.STAFF, Roles.COORDINATOR),
        AccessLevel.EDIT: (Roles.DIRECTOR, Roles.FINANCEIRO, Roles.COORDINATOR),
    },
    Tabs.EMPLOYEES: {
        AccessLevel.VIEW: (Roles.DIRECTOR, Roles.COORDINATOR),
        AccessLevel.EDIT: (Roles.DIRECTOR,),
    },
    Tabs.COORDINATOR_BOARD: {
        AccessLevel.VIEW: (Roles.DIRECTOR, Roles.COORDINATOR),
        AccessLevel.EDIT: (Roles.DIRECTOR, Roles.COORDINATOR),
    },
}


def default_level(role_id: str, tab_id: str) -> AccessLevel:
    """Default level of a built-in role on a tab.

    Returns ``AccessLevel.NONE`` for tabs without a matrix entry and for
    roles listed under neither level.

    Example::

        >>> default_level("financeiro", "finance")
        <AccessLevel.EDIT: 'edit'>
        >>> default_level("staff", "reports")
        <AccessLevel.NONE: 'none'>
    """
    entry = DEFAULT_TAB_PERMISSIONS.get(tab_id)
    if entry is None:
        return AccessLevel.NONE
    if role_id in entry.get(AccessLevel.EDIT, ()):
        return AccessLevel.EDIT
    if role_id in entry.get(AccessLevel.VIEW, ()):
        return AccessLevel.VIEW
    return AccessLevel.NONE


__all__ = [
    "DEFAULT_TAB_PERMISSIONS",
    "default_level",
]
