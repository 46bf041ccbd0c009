"""Shared fixtures: a seeded in-memory store, users and a fake identity provider."""

from __future__ import annotations

from typing import Callable, Optional

import pytest

from clinicaccess import (
    AuthenticationError,
    InMemoryRecordStore,
    Role,
    RoleRegistry,
    User,
)
from clinicaccess.identity import AuthCallback, AuthEvent, IdentityProvider, Session


def make_user(user_id: str, role: str, tab_access: Optional[dict] = None, name: str = "") -> User:
    return User(id=user_id, name=name or user_id, role=role, tab_access=tab_access)


@pytest.fixture
def director() -> User:
    return make_user("dir-1", "director", name="Dr. Ana")


@pytest.fixture
def receptionist() -> User:
    return make_user("rec-1", "receptionist", name="Bia")


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore(
        {
            "profiles": [
                {"id": "dir-1", "name": "Dr. Ana", "role": "director"},
                {"id": "rec-1", "name": "Bia", "role": "receptionist"},
                {"id": "fin-1", "name": "Caio", "role": "financeiro", "tabAccess": {}},
                {"id": "art-1", "name": "Duda", "role": "art_therapist"},
                {"id": "art-2", "name": "Edu", "role": "art_therapist"},
            ],
            "roles": [
                {
                    "id": "art_therapist",
                    "name": "Art Therapist",
                    "isCustom": True,
                    "tabAccess": {"my-patients": "edit", "daily-schedule": "view"},
                },
            ],
        }
    )


@pytest.fixture
def registry() -> RoleRegistry:
    return RoleRegistry(
        [
            Role(
                id="art_therapist",
                name="Art Therapist",
                tab_access={"my-patients": "edit", "daily-schedule": "view"},
            )
        ]
    )


class FakeIdentityProvider(IdentityProvider):
    """In-process identity provider with a fixed credential table."""

    def __init__(self, credentials: Optional[dict[str, tuple[str, str]]] = None) -> None:
        # email -> (password, user_id)
        self.credentials = credentials or {}
        self.session: Optional[Session] = None
        self.sign_out_calls = 0
        self._callbacks: list[AuthCallback] = []

    async def current_session(self) -> Optional[Session]:
        return self.session

    async def sign_in(self, email: str, password: str) -> Session:
        entry = self.credentials.get(email)
        if entry is None or entry[0] != password:
            raise AuthenticationError("Invalid login credentials")
        self.session = Session(user_id=entry[1], email=email, access_token="tok")
        return self.session

    async def sign_out(self) -> None:
        self.sign_out_calls += 1
        self.session = None

    def on_auth_change(self, callback: AuthCallback) -> Callable[[], None]:
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            self._callbacks.remove(callback)

        return unsubscribe

    async def emit(self, event: AuthEvent, session: Optional[Session]) -> None:
        for callback in list(self._callbacks):
            await callback(event, session)


@pytest.fixture
def provider() -> FakeIdentityProvider:
    return FakeIdentityProvider(
        {
            "ana@clinic.example": ("s3cret", "dir-1"),
            "ghost@clinic.example": ("s3cret", "no-profile"),
        }
    )
