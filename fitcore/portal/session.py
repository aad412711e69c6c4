from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Union

from fitcore.db.models import AuthSession, AuthUser, Profile
from fitcore.db.supabase import SupabaseClient, SupabaseError
from fitcore.portal.results import OperationResult

logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


class AuthEvent(str, Enum):
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    USER_UPDATED = "USER_UPDATED"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


@dataclass
class MemberSession:
    """
    Session state of one member, keyed by their Telegram user id.
    """

    key: int
    status: SessionStatus = SessionStatus.LOADING
    auth: AuthSession | None = None
    profile: Profile | None = None

    @property
    def user(self) -> AuthUser | None:
        return self.auth.user if self.auth else None

    @property
    def is_loading(self) -> bool:
        return self.status is SessionStatus.LOADING

    @property
    def is_authenticated(self) -> bool:
        return self.status is SessionStatus.AUTHENTICATED and self.auth is not None

    @property
    def access_token(self) -> str | None:
        return self.auth.access_token if self.auth else None

    def _clear(self) -> None:
        self.auth = None
        self.profile = None
        self.status = SessionStatus.ANONYMOUS


def _is_rejection(exc: SupabaseError) -> bool:
    # 4xx from the auth service; transport errors and 5xx are transient
    return exc.status_code is not None and 400 <= exc.status_code < 500


SessionListener = Callable[[int, AuthEvent, MemberSession], Union[Awaitable[None], None]]


class SessionManager:
    """
    Process-wide holder of member sessions.

    Built once at startup and handed to the bot middleware, which injects the
    caller's ``MemberSession`` into every handler. Listeners registered with
    ``subscribe`` are notified on every sign-in, sign-out, profile update and
    token refresh.

    Only signed-in members are kept between updates: anonymous entries are
    dropped on sign-out, on a rejected refresh and by ``refresh_expiring``.
    """

    def __init__(self, supabase: SupabaseClient) -> None:
        self._supabase = supabase
        self._sessions: dict[int, MemberSession] = {}
        self._listeners: list[SessionListener] = []

    def __contains__(self, key: int) -> bool:
        return key in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    # ------------------------------------------------------------------
    # Subscriptions

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            self.unsubscribe(listener)

        return _unsubscribe

    def unsubscribe(self, listener: SessionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def _emit(self, event: AuthEvent, session: MemberSession) -> None:
        for listener in list(self._listeners):
            try:
                result = listener(session.key, event, session)
                if inspect.isawaitable(result):
                    await result
            except Exception:  # noqa: BLE001
                logger.exception("Session listener failed on %s for %s", event.value, session.key)

    # ------------------------------------------------------------------
    # Resolution

    def get(self, key: int) -> MemberSession:
        session = self._sessions.get(key)
        if session is None:
            session = MemberSession(key=key)
            self._sessions[key] = session
        return session

    def _forget(self, session: MemberSession) -> None:
        if self._sessions.get(session.key) is session:
            del self._sessions[session.key]

    async def resolve(self, key: int) -> MemberSession:
        """
        Return the member's session, resolving it first if still loading.

        A member seen for the first time resolves to anonymous. A held token
        that has already expired is refreshed before the session is handed
        out; if the auth service rejects the refresh token the member is
        signed out locally. When the service cannot be reached the session
        is kept as is and the refresh is retried later.
        """

        session = self.get(key)
        if session.is_loading:
            session.status = SessionStatus.ANONYMOUS
            await self._emit(AuthEvent.INITIAL_SESSION, session)
        elif session.is_authenticated and session.auth is not None and session.auth.expires_within(0):
            await self._refresh(session)
        return session

    async def _refresh(self, session: MemberSession) -> bool:
        if session.auth is None:
            return False
        try:
            session.auth = await self._supabase.refresh_session(session.auth.refresh_token)
        except SupabaseError as exc:
            if not _is_rejection(exc):
                logger.warning("Token refresh for %s postponed: %s", session.key, exc.message)
                return False
            logger.warning("Token refresh rejected for %s: %s", session.key, exc.message)
            session._clear()
            self._forget(session)
            await self._emit(AuthEvent.SIGNED_OUT, session)
            return False
        await self._emit(AuthEvent.TOKEN_REFRESHED, session)
        return True

    async def _load_profile(self, session: MemberSession) -> Profile | None:
        if session.auth is None:
            return None
        try:
            return await self._supabase.get_profile(
                session.auth.user.id,
                access_token=session.auth.access_token,
            )
        except SupabaseError as exc:
            logger.warning("Failed to load profile for %s: %s", session.key, exc.message)
            return None

    # ------------------------------------------------------------------
    # Auth actions

    async def sign_in(self, key: int, email: str, password: str) -> OperationResult:
        session = self.get(key)
        try:
            auth = await self._supabase.sign_in_with_password(email, password)
        except SupabaseError as exc:
            return OperationResult.failure(exc.message)

        session.auth = auth
        session.status = SessionStatus.AUTHENTICATED
        session.profile = await self._load_profile(session)
        await self._emit(AuthEvent.SIGNED_IN, session)
        return OperationResult.success()

    async def sign_up(self, key: int, email: str, password: str, full_name: str) -> OperationResult:
        session = self.get(key)
        try:
            _, auth = await self._supabase.sign_up(email, password, full_name)
        except SupabaseError as exc:
            return OperationResult.failure(exc.message)

        if auth is None:
            return OperationResult.success(
                notice="Check your inbox to confirm your e-mail, then sign in."
            )

        session.auth = auth
        session.status = SessionStatus.AUTHENTICATED
        profile = await self._load_profile(session)
        if profile is None:
            try:
                profile = await self._supabase.create_profile(
                    auth.user,
                    full_name,
                    access_token=auth.access_token,
                )
            except SupabaseError as exc:
                logger.warning("Failed to create profile for %s: %s", key, exc.message)
        session.profile = profile
        await self._emit(AuthEvent.SIGNED_IN, session)
        return OperationResult.success()

    async def sign_out(self, key: int) -> None:
        """
        Sign the member out. Local state is cleared even if the backend call fails.
        """

        session = self.get(key)
        if session.auth is not None:
            try:
                await self._supabase.sign_out(session.auth.access_token)
            except SupabaseError as exc:
                logger.warning("Backend sign out failed for %s: %s", key, exc.message)
        session._clear()
        self._forget(session)
        await self._emit(AuthEvent.SIGNED_OUT, session)

    async def update_profile(self, key: int, fields: dict[str, Any]) -> OperationResult:
        session = self.get(key)
        if not session.is_authenticated or session.auth is None:
            return OperationResult.failure("You need to sign in first.")

        try:
            session.profile = await self._supabase.update_profile(
                session.auth.user.id,
                fields,
                access_token=session.auth.access_token,
            )
        except SupabaseError as exc:
            return OperationResult.failure(exc.message)

        await self._emit(AuthEvent.USER_UPDATED, session)
        return OperationResult.success()

    async def refresh_expiring(self, within_seconds: float = 120) -> int:
        """
        Refresh access tokens expiring within the given window.

        Returns the number of sessions refreshed. A session whose refresh
        token is rejected is signed out locally; one whose refresh cannot
        reach the service is kept for the next run. Anonymous entries are
        dropped along the way.
        """

        refreshed = 0
        for session in list(self._sessions.values()):
            if session.status is SessionStatus.ANONYMOUS:
                self._forget(session)
                continue
            if not session.is_authenticated or session.auth is None:
                continue
            if not session.auth.expires_within(within_seconds):
                continue
            if await self._refresh(session):
                refreshed += 1
        return refreshed
