"""Identity provider contract and the explicit authentication context.

Sign-in, sign-out and session persistence belong to an external provider
(:class:`IdentityProvider`). :class:`AuthContext` follows its auth events and
keeps the signed-in user's profile as explicit state that callers pass to
the access gate. A session whose profile record does not exist is treated as
unauthenticated and signed out.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Optional

from .config import AccessConfig
from .exceptions import AuthenticationError, StorageError, ValidationError, returns_result
from .models import User
from .permissions.access import AccessGate
from .permissions.roles import RoleRegistry
from .results import OperationResult
from .store import PROFILES, RecordStore

logger = logging.getLogger(__name__)


class AuthEvent(str, Enum):
    """Auth state changes delivered by the identity provider."""

    SIGNED_IN = "SIGNED_IN"
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_OUT = "SIGNED_OUT"


@dataclass
class Session:
    """Provider session. ``access_token`` is opaque and never logged."""

    user_id: str
    email: Optional[str] = None
    access_token: str = field(default="", repr=False)


AuthCallback = Callable[[AuthEvent, Optional[Session]], Awaitable[None]]


class IdentityProvider(ABC):
    """External authentication provider."""

    @abstractmethod
    async def current_session(self) -> Optional[Session]:
        raise NotImplementedError

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> Session:
        """Authenticate; raises :class:`AuthenticationError` on bad credentials."""
        raise NotImplementedError

    @abstractmethod
    async def sign_out(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def on_auth_change(self, callback: AuthCallback) -> Callable[[], None]:
        """Subscribe to auth events; returns an unsubscribe function."""
        raise NotImplementedError


class AuthContext:
    """Signed-in user state built from provider events and profile records.

    Example::

        auth = AuthContext(provider, store, registry=registry)
        auth.start()
        result = await auth.login("ana@clinic.example", "...")
        if result.ok and auth.can_view(Tabs.FINANCE):
            ...
    """

    def __init__(
        self,
        provider: IdentityProvider,
        store: RecordStore,
        registry: Optional[RoleRegistry] = None,
        config: Optional[AccessConfig] = None,
    ) -> None:
        self.provider = provider
        self.store = store
        self.config = config or AccessConfig()
        self.gate = AccessGate(registry or RoleRegistry(super_role=self.config.super_role))
        self._current_user: Optional[User] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def current_user(self) -> Optional[User]:
        return self._current_user

    @property
    def is_authenticated(self) -> bool:
        return self._current_user is not None

    # ── Provider subscription ───────────────────────────

    def start(self) -> None:
        """Subscribe to provider auth events (idempotent)."""
        self.stop()
        self._unsubscribe = self.provider.on_auth_change(self.handle_auth_event)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def handle_auth_event(self, event: AuthEvent, session: Optional[Session]) -> None:
        logger.debug("Auth event %s (session=%s)", event, bool(session))
        if event in (AuthEvent.SIGNED_IN, AuthEvent.INITIAL_SESSION):
            if session is None:
                return
            profile = await self._load_profile(session.user_id)
            if profile is None:
                logger.error("Profile not found for user %s; signing out", session.user_id)
                await self.provider.sign_out()
                self._current_user = None
                return
            self._current_user = profile
        elif event == AuthEvent.SIGNED_OUT:
            self._current_user = None

    async def _load_profile(self, user_id: str) -> Optional[User]:
        try:
            record = await self.store.get(PROFILES, user_id)
            if record is None:
                return None
            user = User.from_record(record)
        except StorageError as e:
            logger.error("Failed to load profile %s: %s", user_id, e)
            return None
        if not user.role and self.config.fallback_role:
            user = user.model_copy(update={"role": self.config.fallback_role})
        return user

    # ── Operations ──────────────────────────────────────

    @returns_result
    async def login(self, email: str, password: str) -> OperationResult:
        """Sign in and load the profile. Fails if the profile is missing."""
        if not email or not password:
            raise ValidationError("Email and password are required")
        session = await self.provider.sign_in(email, password)
        profile = await self._load_profile(session.user_id)
        if profile is None:
            await self.provider.sign_out()
            self._current_user = None
            raise AuthenticationError("User profile not found; access denied", user_id=session.user_id)
        self._current_user = profile
        logger.info("User %s signed in", profile.id)
        return OperationResult.success(profile)

    @returns_result
    async def logout(self) -> OperationResult:
        await self.provider.sign_out()
        self._current_user = None
        return OperationResult.success()

    @returns_result
    async def check_login(self) -> OperationResult:
        """Current user, restoring it from the provider session if needed.

        The value is None when nobody is authenticated.
        """
        if self._current_user is not None:
            return OperationResult.success(self._current_user)
        session = await self.provider.current_session()
        if session is None:
            return OperationResult.success(None)
        profile = await self._load_profile(session.user_id)
        if profile is None:
            logger.error("Profile not found for user %s; signing out", session.user_id)
            await self.provider.sign_out()
            return OperationResult.success(None)
        self._current_user = profile
        return OperationResult.success(profile)

    # ── Gate shortcuts for the signed-in user ───────────

    def can_view(self, tab_id: str) -> bool:
        return self.gate.can_view(self._current_user, tab_id)

    def can_edit(self, tab_id: str) -> bool:
        return self.gate.can_edit(self._current_user, tab_id)


__all__ = [
    "AuthCallback",
    "AuthContext",
    "AuthEvent",
    "IdentityProvider",
    "Session",
]
