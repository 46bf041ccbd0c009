"""Static catalogue of protected tabs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .constants import Tabs


@dataclass(frozen=True)
class Tab:
    """A protected feature area of the application."""

    id: str
    label: str


TAB_REGISTRY: tuple[Tab, ...] = (
    Tab(Tabs.CLIENT_INTAKE, "Client Intake"),
    Tab(Tabs.DAILY_SCHEDULE, "Daily Schedule"),
    Tab(Tabs.FULL_HISTORY, "All Patients"),
    Tab(Tabs.MY_PATIENTS, "My Patients"),
    Tab(Tabs.FINANCE, "Finance"),
    Tab(Tabs.REPORTS, "Reports"),
    Tab(Tabs.INVENTORY, "Inventory"),
    Tab(Tabs.EMPLOYEES, "Employees"),
    Tab(Tabs.COORDINATOR_BOARD, "Coordinator Board"),
)

_TABS_BY_ID: dict[str, Tab] = {tab.id: tab for tab in TAB_REGISTRY}

TAB_IDS: tuple[str, ...] = tuple(tab.id for tab in TAB_REGISTRY)


def get_tab(tab_id: str) -> Optional[Tab]:
    return _TABS_BY_ID.get(tab_id)


def is_known_tab(tab_id: object) -> bool:
    return isinstance(tab_id, str) and tab_id in _TABS_BY_ID


__all__ = [
    "TAB_IDS",
    "TAB_REGISTRY",
    "Tab",
    "get_tab",
    "is_known_tab",
]
