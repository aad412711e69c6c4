from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, time, timedelta, tzinfo
from enum import Enum

from pydantic import BaseModel, field_validator

from fitcore.db.models import Booking, Program
from fitcore.db.supabase import SupabaseClient, SupabaseError
from fitcore.portal.results import OperationResult
from fitcore.portal.session import MemberSession

logger = logging.getLogger(__name__)


# Opening hours on the hour, midday excluded
TIME_SLOTS: tuple[str, ...] = (
    "06:00", "07:00", "08:00", "09:00", "10:00", "11:00",
    "14:00", "15:00", "16:00", "17:00", "18:00", "19:00", "20:00",
)
OFFERED_DAYS = 7
CONFIRMATION_CLOSE_SECONDS = 2


def offered_dates(today: date) -> list[date]:
    """
    The bookable days: the next seven calendar days, starting tomorrow.
    """

    return [today + timedelta(days=offset) for offset in range(1, OFFERED_DAYS + 1)]


class BookingState(str, Enum):
    SELECTING = "selecting"
    SUBMITTING = "submitting"
    CONFIRMED = "confirmed"


class BookingSelection(BaseModel):
    class_date: date
    time_slot: str

    @field_validator("time_slot")
    @classmethod
    def _offered_slot(cls, value: str) -> str:
        if value not in TIME_SLOTS:
            raise ValueError(f"{value} is not an offered time slot")
        return value

    def starts_at(self, tz: tzinfo) -> datetime:
        """The class start as an aware instant in the gym's timezone."""
        return datetime.combine(self.class_date, time.fromisoformat(self.time_slot), tzinfo=tz)


class BookingFlow:
    """
    Reservation of one class for one signed-in member.

    The flow starts in ``selecting``; ``submit`` moves through ``submitting``
    to ``confirmed``, or back to ``selecting`` with ``error`` set when the
    backend rejects the insert. Neither existing bookings of the same slot nor
    the program's ``max_participants`` are checked.
    """

    def __init__(
        self,
        supabase: SupabaseClient,
        session: MemberSession,
        program: Program,
        *,
        tz: tzinfo,
        today: date | None = None,
    ) -> None:
        self._supabase = supabase
        self._session = session
        self._tz = tz
        self.program = program
        self.dates = offered_dates(today or datetime.now(tz).date())
        self.state = BookingState.SELECTING
        self.error: str | None = None
        self.selected_date: date | None = None
        self.selected_time: str | None = None
        self.booking: Booking | None = None

    def select_date(self, value: date) -> None:
        if value not in self.dates:
            raise ValueError(f"{value.isoformat()} is outside the booking window")
        self.selected_date = value

    def select_time(self, value: str) -> None:
        if value not in TIME_SLOTS:
            raise ValueError(f"{value} is not an offered time slot")
        self.selected_time = value

    @property
    def can_submit(self) -> bool:
        return (
            self.selected_date is not None
            and self.selected_time is not None
            and self.state is BookingState.SELECTING
        )

    def selection(self) -> BookingSelection:
        if self.selected_date is None or self.selected_time is None:
            raise ValueError("Pick both a date and a time first")
        return BookingSelection(class_date=self.selected_date, time_slot=self.selected_time)

    async def submit(self) -> OperationResult:
        if not self.can_submit:
            raise ValueError("Pick both a date and a time first")
        if not self._session.is_authenticated or self._session.auth is None:
            return OperationResult.failure("You need to sign in first.")

        self.state = BookingState.SUBMITTING
        self.error = None
        starts_at = self.selection().starts_at(self._tz)
        try:
            self.booking = await self._supabase.create_booking(
                user_id=self._session.auth.user.id,
                program_id=self.program.id,
                booking_date=starts_at,
                access_token=self._session.auth.access_token,
            )
        except SupabaseError as exc:
            logger.warning("Booking of %s failed: %s", self.program.id, exc.message)
            self.state = BookingState.SELECTING
            self.error = exc.message
            return OperationResult.failure(exc.message)

        self.state = BookingState.CONFIRMED
        logger.info("Booked %s for %s at %s", self.program.id, self._session.key, starts_at.isoformat())
        return OperationResult.success()

    async def close_after_confirmation(self, delay: float = CONFIRMATION_CLOSE_SECONDS) -> None:
        await asyncio.sleep(delay)
        self.reset()

    def reset(self) -> None:
        self.state = BookingState.SELECTING
        self.error = None
        self.selected_date = None
        self.selected_time = None
        self.booking = None


def begin_booking(
    supabase: SupabaseClient,
    session: MemberSession,
    program: Program,
    *,
    tz: tzinfo,
    today: date | None = None,
) -> BookingFlow | None:
    """
    Open the booking flow, or return None when the member must sign in first.
    """

    if not session.is_authenticated:
        return None
    return BookingFlow(supabase, session, program, tz=tz, today=today)
