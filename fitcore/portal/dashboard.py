from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable

from pydantic import BaseModel, field_validator

from fitcore.core.validation import clean_text, normalize_phone
from fitcore.db.models import Booking, BookingStatus, MembershipType
from fitcore.db.supabase import SupabaseClient, SupabaseError
from fitcore.portal.results import OperationResult
from fitcore.portal.session import MemberSession, SessionManager

logger = logging.getLogger(__name__)


OVERVIEW_UPCOMING_LIMIT = 3


class DisplayStatus(str, Enum):
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_upcoming(booking: Booking, now: datetime) -> bool:
    return booking.booking_date > now and booking.status is BookingStatus.CONFIRMED


def display_status(booking: Booking, now: datetime) -> DisplayStatus:
    """
    Status shown to the member. "Completed" is never stored; it is a
    confirmed booking whose class time has passed.
    """

    if booking.status is BookingStatus.CANCELLED:
        return DisplayStatus.CANCELLED
    if booking.booking_date <= now:
        return DisplayStatus.COMPLETED
    return DisplayStatus.CONFIRMED


@dataclass
class BookingPartition:
    upcoming: list[Booking] = field(default_factory=list)
    past: list[Booking] = field(default_factory=list)


def partition_bookings(bookings: Iterable[Booking], now: datetime) -> BookingPartition:
    """
    Split bookings into upcoming (future and confirmed) and past (everything
    else, including cancelled classes that have not happened yet).
    """

    partition = BookingPartition()
    for booking in bookings:
        if is_upcoming(booking, now):
            partition.upcoming.append(booking)
        else:
            partition.past.append(booking)
    return partition


@dataclass(frozen=True)
class DashboardOverview:
    upcoming_count: int
    total_sessions: int
    membership_type: MembershipType | None
    next_classes: list[Booking]


class MemberDashboard:
    """
    The signed-in member's bookings.

    ``refresh`` always re-reads the full list from the backend; cancelling a
    booking is followed by a refresh instead of a local edit.
    """

    def __init__(self, supabase: SupabaseClient, session: MemberSession) -> None:
        self._supabase = supabase
        self._session = session
        self.bookings: list[Booking] = []

    async def refresh(self) -> None:
        auth = self._session.auth
        if auth is None:
            self.bookings = []
            return
        try:
            self.bookings = await self._supabase.list_bookings_for_user(
                auth.user.id,
                access_token=auth.access_token,
            )
        except SupabaseError as exc:
            logger.warning("Error fetching bookings for %s: %s", self._session.key, exc.message)

    def partition(self, now: datetime | None = None) -> BookingPartition:
        return partition_bookings(self.bookings, now or _utcnow())

    def overview(self, now: datetime | None = None) -> DashboardOverview:
        partition = self.partition(now)
        profile = self._session.profile
        return DashboardOverview(
            upcoming_count=len(partition.upcoming),
            total_sessions=len(self.bookings),
            membership_type=profile.membership_type if profile else None,
            next_classes=partition.upcoming[:OVERVIEW_UPCOMING_LIMIT],
        )

    async def cancel(self, booking_id: str) -> OperationResult:
        auth = self._session.auth
        if auth is None:
            return OperationResult.failure("You need to sign in first.")
        try:
            await self._supabase.update_booking_status(
                booking_id,
                BookingStatus.CANCELLED,
                access_token=auth.access_token,
            )
        except SupabaseError as exc:
            logger.warning("Failed to cancel booking %s: %s", booking_id, exc.message)
            return OperationResult.failure(exc.message)

        await self.refresh()
        return OperationResult.success()


class ProfileForm(BaseModel):
    full_name: str
    phone: str = ""
    membership_type: MembershipType = MembershipType.BASIC

    @field_validator("full_name")
    @classmethod
    def _name_required(cls, value: str) -> str:
        value = clean_text(value)
        if not value:
            raise ValueError("Full name is required")
        return value

    @field_validator("phone")
    @classmethod
    def _valid_phone(cls, value: str) -> str:
        value = clean_text(value)
        if value and normalize_phone(value) is None:
            raise ValueError("Phone number looks invalid")
        return value

    def to_fields(self) -> dict[str, str | None]:
        return {
            "full_name": self.full_name,
            "phone": self.phone or None,
            "membership_type": self.membership_type.value,
        }


class ProfileEditor:
    """
    Edit-then-save profile form. Fields are locked until ``enable`` is called
    and lock again after a successful save.
    """

    def __init__(self, sessions: SessionManager, session: MemberSession) -> None:
        self._sessions = sessions
        self._session = session
        self.editing = False
        self.form = self._form_from_profile()

    def _form_from_profile(self) -> ProfileForm | None:
        profile = self._session.profile
        if profile is None:
            return None
        return ProfileForm.model_construct(
            full_name=profile.full_name,
            phone=profile.phone or "",
            membership_type=profile.membership_type,
        )

    def enable(self) -> None:
        self.editing = True

    def discard(self) -> None:
        self.editing = False
        self.form = self._form_from_profile()

    async def save(self, form: ProfileForm) -> OperationResult:
        if not self.editing:
            return OperationResult.failure("Press Edit Profile before changing your details.")

        result = await self._sessions.update_profile(self._session.key, form.to_fields())
        if result.ok:
            self.editing = False
            self.form = self._form_from_profile()
        return result
