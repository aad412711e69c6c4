from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import httpx

from fitcore.core import Settings, get_settings
from fitcore.db.models import (
    AuthSession,
    AuthUser,
    Booking,
    BookingStatus,
    ContactSubmission,
    Profile,
    Program,
    Trainer,
)


_ERROR_MESSAGE_KEYS = ("message", "msg", "error_description", "error")


class SupabaseError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None, detail: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.detail = detail


def _error_message(response: httpx.Response, fallback: str) -> str:
    """
    Pull the human-readable message out of a PostgREST or GoTrue error body.
    """

    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        for key in _ERROR_MESSAGE_KEYS:
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return fallback


def _raise_for_error(response: httpx.Response, fallback: str) -> None:
    if response.status_code >= 400:
        raise SupabaseError(
            _error_message(response, fallback),
            status_code=response.status_code,
            detail=response.text,
        )


class SupabaseClient:
    """
    Minimal async Supabase client for the member portal.

    Every request carries the public anon key as ``apikey``. Calls made on
    behalf of a member pass that member's access token, which becomes the
    bearer token so row-level security is evaluated for them.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        base_url = str(self._settings.supabase_url).rstrip("/")
        headers = {
            "apikey": self._settings.supabase_anon_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        self._rest = httpx.AsyncClient(
            base_url=f"{base_url}/rest/v1",
            headers=headers,
            timeout=10.0,
            transport=transport,
        )
        self._auth = httpx.AsyncClient(
            base_url=f"{base_url}/auth/v1",
            headers=headers,
            timeout=10.0,
            transport=transport,
        )

    async def close(self) -> None:
        await self._rest.aclose()
        await self._auth.aclose()

    def _bearer(self, access_token: str | None) -> dict[str, str]:
        return {"Authorization": f"Bearer {access_token or self._settings.supabase_anon_key}"}

    @staticmethod
    async def _request(
        client: httpx.AsyncClient,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        # Transport failures surface as SupabaseError like any backend error
        try:
            return await client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise SupabaseError(
                "Could not reach the FitCore service. Please try again.",
                detail=str(exc),
            ) from exc

    # ------------------------------------------------------------------
    # REST helpers

    async def _select(
        self,
        table: str,
        params: dict[str, Any],
        *,
        access_token: str | None = None,
    ) -> list[dict[str, Any]]:
        response = await self._request(
            self._rest,
            "GET",
            f"/{table}",
            params={"select": "*", **params},
            headers=self._bearer(access_token),
        )
        _raise_for_error(response, f"Supabase REST GET failed for '{table}'")
        items: list[dict[str, Any]] = response.json()
        return items

    async def _insert_row(
        self,
        table: str,
        payload: dict[str, Any],
        *,
        access_token: str | None = None,
        returning: bool = True,
    ) -> dict[str, Any] | None:
        response = await self._request(
            self._rest,
            "POST",
            f"/{table}",
            json=payload,
            headers={
                **self._bearer(access_token),
                "Prefer": "return=representation" if returning else "return=minimal",
            },
        )
        _raise_for_error(response, f"Supabase REST INSERT failed for '{table}'")
        if not returning:
            return None
        items: list[dict[str, Any]] = response.json()
        if not items:
            raise SupabaseError(f"Empty insert response for table '{table}'")
        return items[0]

    async def _update_rows(
        self,
        table: str,
        filters: dict[str, Any],
        payload: dict[str, Any],
        *,
        access_token: str | None = None,
    ) -> list[dict[str, Any]]:
        response = await self._request(
            self._rest,
            "PATCH",
            f"/{table}",
            params=filters,
            json=payload,
            headers={**self._bearer(access_token), "Prefer": "return=representation"},
        )
        _raise_for_error(response, f"Supabase REST UPDATE failed for '{table}'")
        items: list[dict[str, Any]] = response.json()
        return items

    # ------------------------------------------------------------------
    # Auth

    @staticmethod
    def _parse_session(data: dict[str, Any]) -> AuthSession:
        if data.get("expires_at"):
            expires_at = datetime.fromtimestamp(int(data["expires_at"]), tz=timezone.utc)
        else:
            expires_at = datetime.now(timezone.utc) + timedelta(seconds=int(data.get("expires_in", 3600)))
        return AuthSession(
            access_token=data["access_token"],
            refresh_token=data["refresh_token"],
            expires_at=expires_at,
            user=AuthUser.model_validate(data["user"]),
        )

    async def sign_up(
        self,
        email: str,
        password: str,
        full_name: str,
    ) -> tuple[AuthUser, AuthSession | None]:
        """
        Register a new identity.

        When the project requires e-mail confirmation GoTrue answers with the
        bare user and no tokens; the session is None in that case.
        """

        response = await self._request(
            self._auth,
            "POST",
            "/signup",
            json={"email": email, "password": password, "data": {"full_name": full_name}},
        )
        _raise_for_error(response, "Sign up failed")
        data: dict[str, Any] = response.json()
        if "access_token" in data:
            session = self._parse_session(data)
            return session.user, session
        return AuthUser.model_validate(data.get("user") or data), None

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        response = await self._request(
            self._auth,
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        _raise_for_error(response, "Sign in failed")
        return self._parse_session(response.json())

    async def refresh_session(self, refresh_token: str) -> AuthSession:
        response = await self._request(
            self._auth,
            "POST",
            "/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
        )
        _raise_for_error(response, "Session refresh failed")
        return self._parse_session(response.json())

    async def sign_out(self, access_token: str) -> None:
        response = await self._request(self._auth, "POST", "/logout", headers=self._bearer(access_token))
        _raise_for_error(response, "Sign out failed")

    # ------------------------------------------------------------------
    # Profiles

    async def get_profile(self, user_id: str, *, access_token: str) -> Profile | None:
        rows = await self._select(
            "profiles",
            {"id": f"eq.{user_id}", "limit": 1},
            access_token=access_token,
        )
        if not rows:
            return None
        return Profile.model_validate(rows[0])

    async def create_profile(
        self,
        user: AuthUser,
        full_name: str,
        *,
        access_token: str,
    ) -> Profile:
        payload: dict[str, Any] = {
            "id": user.id,
            "email": user.email,
            "full_name": full_name,
        }
        row = await self._insert_row("profiles", payload, access_token=access_token)
        return Profile.model_validate(row)

    async def update_profile(
        self,
        user_id: str,
        fields: dict[str, Any],
        *,
        access_token: str,
    ) -> Profile:
        """
        Update editable profile fields of one identity.
        """

        if not fields:
            raise ValueError("At least one profile field must be provided to update")

        payload = {**fields, "updated_at": datetime.now(timezone.utc).isoformat()}
        rows = await self._update_rows(
            "profiles",
            {"id": f"eq.{user_id}"},
            payload,
            access_token=access_token,
        )
        if not rows:
            raise SupabaseError("Profile not found", status_code=404)
        return Profile.model_validate(rows[0])

    # ------------------------------------------------------------------
    # Catalog

    async def list_programs(self) -> list[Program]:
        """
        Return all programs, oldest first, each with its trainer embedded.
        """

        rows = await self._select(
            "programs",
            {"select": "*,trainer:trainers(*)", "order": "created_at.asc"},
        )
        return [Program.model_validate(row) for row in rows]

    async def list_trainers(self) -> list[Trainer]:
        rows = await self._select("trainers", {"order": "name.asc"})
        return [Trainer.model_validate(row) for row in rows]

    # ------------------------------------------------------------------
    # Bookings

    async def create_booking(
        self,
        *,
        user_id: str,
        program_id: str,
        booking_date: datetime,
        access_token: str,
    ) -> Booking:
        payload: dict[str, Any] = {
            "user_id": user_id,
            "program_id": program_id,
            "booking_date": booking_date.astimezone(timezone.utc).isoformat(),
            "status": BookingStatus.CONFIRMED.value,
        }
        row = await self._insert_row("bookings", payload, access_token=access_token)
        return Booking.model_validate(row)

    async def list_bookings_for_user(self, user_id: str, *, access_token: str) -> list[Booking]:
        """
        Return all bookings of a member ordered by class time, each with its
        program embedded.
        """

        rows = await self._select(
            "bookings",
            {
                "select": "*,program:programs(*)",
                "user_id": f"eq.{user_id}",
                "order": "booking_date.asc",
            },
            access_token=access_token,
        )
        return [Booking.model_validate(row) for row in rows]

    async def update_booking_status(
        self,
        booking_id: str,
        new_status: BookingStatus,
        *,
        access_token: str,
    ) -> Booking:
        rows = await self._update_rows(
            "bookings",
            {"id": f"eq.{booking_id}"},
            {"status": new_status.value},
            access_token=access_token,
        )
        if not rows:
            raise SupabaseError("Booking not found", status_code=404)
        return Booking.model_validate(rows[0])

    # ------------------------------------------------------------------
    # Contact

    async def create_contact_submission(self, submission: ContactSubmission) -> None:
        """
        Store a contact form submission. Anonymous visitors may write but
        not read this table, so nothing is returned.
        """

        await self._insert_row(
            "contact_submissions",
            submission.insert_payload(),
            returning=False,
        )


_supabase_client: SupabaseClient | None = None


def get_supabase_client() -> SupabaseClient:
    """
    Lazy singleton for SupabaseClient.

    The bot entry point closes it on shutdown via ``close_supabase_client``.
    """

    global _supabase_client
    if _supabase_client is None:
        _supabase_client = SupabaseClient()
    return _supabase_client


async def close_supabase_client() -> None:
    global _supabase_client
    if _supabase_client is not None:
        await _supabase_client.close()
        _supabase_client = None
