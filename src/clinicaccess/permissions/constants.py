"""Access levels, built-in role ids and tab ids.

Provides:
- ``AccessLevel`` — ordered ``none < view < edit``.
- ``Roles`` — reserved built-in role ids and role groups.
- ``Tabs`` — tab id constants.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class AccessLevel(str, Enum):
    """Access level on a tab.

    Ordered ``none < view < edit``; ``edit`` implies ``view``. Comparisons use
    the hierarchy, not string order::

        AccessLevel.EDIT >= AccessLevel.VIEW   # True
        AccessLevel.parse("view")              # AccessLevel.VIEW
        AccessLevel.parse("admin")             # None
    """

    NONE = "none"
    VIEW = "view"
    EDIT = "edit"

    @property
    def rank(self) -> int:
        return _HIERARCHY.index(self.value)

    def satisfies(self, required: "AccessLevel") -> bool:
        """True if this level grants ``required``."""
        return self.rank >= required.rank

    @classmethod
    def parse(cls, value: Any) -> Optional["AccessLevel"]:
        """Parse a level string; returns None for anything unrecognised."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return None
        return None

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, AccessLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, AccessLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, AccessLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, AccessLevel):
            return NotImplemented
        return self.rank >= other.rank

    def __str__(self) -> str:
        return self.value


_HIERARCHY = ("none", "view", "edit")

# Sentinel accepted by the override editor to clear an override
DEFAULT_LEVEL = "default"


class Roles:
    """Reserved built-in role ids.

    Built-in roles are not stored as records; their access comes from the
    default matrix in :mod:`clinicaccess.permissions.defaults`. ``DIRECTOR``
    is the super-role.
    """

    DIRECTOR = "director"
    COORDINATOR = "coordinator"
    COORDINATOR_MADRE = "coordinator_madre"
    COORDINATOR_FLORESTA = "coordinator_floresta"
    PROFESSIONAL = "professional"
    STAFF = "staff"
    INTERN = "intern"
    MUSICTHERAPIST = "musictherapist"
    FINANCEIRO = "financeiro"
    RECEPTIONIST = "receptionist"
    PSYCHOLOGIST = "psychologist"
    PSYCHOPEDAGOGUE = "psychopedagogue"
    SPEECH_THERAPIST = "speech_therapist"
    NUTRITIONIST = "nutritionist"
    PHYSIOTHERAPIST = "physiotherapist"

    SUPER_ROLE = DIRECTOR

    # ── Groups ──────────────────────────────────────────
    PROFESSIONALS = (
        STAFF,
        INTERN,
        MUSICTHERAPIST,
        RECEPTIONIST,
        PSYCHOLOGIST,
        PSYCHOPEDAGOGUE,
        SPEECH_THERAPIST,
        NUTRITIONIST,
        PHYSIOTHERAPIST,
    )
    FINANCE = (DIRECTOR, FINANCEIRO)
    COORDINATOR_AND_HIGHER = (DIRECTOR, COORDINATOR_MADRE, COORDINATOR_FLORESTA)

    BUILTIN = frozenset({
        DIRECTOR,
        COORDINATOR,
        COORDINATOR_MADRE,
        COORDINATOR_FLORESTA,
        PROFESSIONAL,
        STAFF,
        INTERN,
        MUSICTHERAPIST,
        FINANCEIRO,
        RECEPTIONIST,
        PSYCHOLOGIST,
        PSYCHOPEDAGOGUE,
        SPEECH_THERAPIST,
        NUTRITIONIST,
        PHYSIOTHERAPIST,
    })

    LABELS = {
        DIRECTOR: "Director",
        COORDINATOR: "Coordinator",
        COORDINATOR_MADRE: "Coordinator (Madre)",
        COORDINATOR_FLORESTA: "Coordinator (Floresta)",
        PROFESSIONAL: "Professional",
        STAFF: "Staff",
        INTERN: "Intern",
        MUSICTHERAPIST: "Music Therapist",
        FINANCEIRO: "Finance",
        RECEPTIONIST: "Receptionist",
        PSYCHOLOGIST: "Psychologist",
        PSYCHOPEDAGOGUE: "Psychopedagogue",
        SPEECH_THERAPIST: "Speech Therapist",
        NUTRITIONIST: "Nutritionist",
        PHYSIOTHERAPIST: "Physiotherapist",
    }


class Tabs:
    """Tab id constants, in display order."""

    CLIENT_INTAKE = "client-intake"
    DAILY_SCHEDULE = "daily-schedule"
    FULL_HISTORY = "full-history"
    MY_PATIENTS = "my-patients"
    FINANCE = "finance"
    REPORTS = "reports"
    INVENTORY = "inventory"
    EMPLOYEES = "employees"
    COORDINATOR_BOARD = "coordinator-board"


__all__ = [
    "DEFAULT_LEVEL",
    "AccessLevel",
    "Roles",
    "Tabs",
]
