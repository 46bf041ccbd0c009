"""Tab permission model for clinicaccess.

Defines:
- AccessLevel: ordered none < view < edit
- Roles / Tabs: reserved built-in role ids and tab ids
- TAB_REGISTRY: ordered tab catalogue
- DEFAULT_TAB_PERMISSIONS: built-in role → default level per tab
- RoleRegistry: built-in + custom role lookup
- resolve(): effective level for (user, tab)
- AccessGate: boolean view/edit checks
"""

from .constants import DEFAULT_LEVEL, AccessLevel, Roles, Tabs
from .defaults import DEFAULT_TAB_PERMISSIONS, default_level
from .tabs import TAB_IDS, TAB_REGISTRY, Tab, get_tab, is_known_tab
from .roles import RoleKind, RoleRef, RoleRegistry, slugify_role_name
from .resolver import effective_matrix, resolve, role_default_level
from .access import (
    AccessGate,
    has_any_role,
    has_finance_access,
    is_coordinator_or_higher,
    is_professional,
    is_super_role,
)

__all__ = [
    "DEFAULT_LEVEL",
    "DEFAULT_TAB_PERMISSIONS",
    "TAB_IDS",
    "TAB_REGISTRY",
    "AccessGate",
    "AccessLevel",
    "RoleKind",
    "RoleRef",
    "RoleRegistry",
    "Roles",
    "Tab",
    "Tabs",
    "default_level",
    "effective_matrix",
    "get_tab",
    "has_any_role",
    "has_finance_access",
    "is_coordinator_or_higher",
    "is_known_tab",
    "is_professional",
    "is_super_role",
    "resolve",
    "role_default_level",
    "slugify_role_name",
]
