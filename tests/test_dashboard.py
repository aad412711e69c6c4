"""Tests for the member dashboard and profile editor."""

import json
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from fitcore.db.models import Booking, BookingStatus, MembershipType
from fitcore.portal.dashboard import (
    OVERVIEW_UPCOMING_LIMIT,
    DisplayStatus,
    MemberDashboard,
    ProfileEditor,
    ProfileForm,
    display_status,
    partition_bookings,
)

NOW = datetime(2030, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_booking(booking_id, hours_from_now, status=BookingStatus.CONFIRMED):
    return Booking(
        id=booking_id,
        user_id="user-1",
        program_id="program-1",
        booking_date=NOW + timedelta(hours=hours_from_now),
        status=status,
        created_at=NOW - timedelta(days=10),
    )


@pytest.fixture
def mixed_bookings():
    return [
        make_booking("past-confirmed", -48),
        make_booking("past-cancelled", -24, BookingStatus.CANCELLED),
        make_booking("future-confirmed", 24),
        make_booking("future-cancelled", 48, BookingStatus.CANCELLED),
        make_booking("right-now", 0),
    ]


def seed_bookings(backend, member, program_id, offsets):
    now = datetime.now(timezone.utc)
    rows = []
    for index, hours in enumerate(offsets):
        rows.append(
            backend.seed(
                "bookings",
                id=f"booking-{index}",
                user_id=member.user.id,
                program_id=program_id,
                booking_date=(now + timedelta(hours=hours)).isoformat(),
                status="confirmed",
            )
        )
    return rows


class TestPartition:
    """Tests for partition_bookings and display_status."""

    def test_disjoint_cover(self, mixed_bookings):
        """Test every booking lands in exactly one list."""
        partition = partition_bookings(mixed_bookings, NOW)

        upcoming_ids = {b.id for b in partition.upcoming}
        past_ids = {b.id for b in partition.past}
        assert upcoming_ids.isdisjoint(past_ids)
        assert upcoming_ids | past_ids == {b.id for b in mixed_bookings}

    def test_cancelled_future_class_is_past(self, mixed_bookings):
        """Test only confirmed future classes are upcoming."""
        partition = partition_bookings(mixed_bookings, NOW)

        assert [b.id for b in partition.upcoming] == ["future-confirmed"]
        assert "future-cancelled" in {b.id for b in partition.past}
        assert "right-now" in {b.id for b in partition.past}

    def test_display_status_derives_completed(self, mixed_bookings):
        """Test completed is derived from confirmed bookings in the past."""
        statuses = {b.id: display_status(b, NOW) for b in mixed_bookings}

        assert statuses == {
            "past-confirmed": DisplayStatus.COMPLETED,
            "past-cancelled": DisplayStatus.CANCELLED,
            "future-confirmed": DisplayStatus.CONFIRMED,
            "future-cancelled": DisplayStatus.CANCELLED,
            "right-now": DisplayStatus.COMPLETED,
        }


class TestMemberDashboard:
    """Tests for MemberDashboard."""

    async def test_overview(self, supabase, backend, member, catalog_data):
        """Test overview counts and the next classes."""
        program_id = catalog_data["programs"][0]["id"]
        seed_bookings(backend, member, program_id, [-72, 24, 48, 72, 96])
        dashboard = MemberDashboard(supabase, member)

        await dashboard.refresh()
        overview = dashboard.overview()

        assert overview.total_sessions == 5
        assert overview.upcoming_count == 4
        assert len(overview.next_classes) == OVERVIEW_UPCOMING_LIMIT
        assert [b.id for b in overview.next_classes] == ["booking-1", "booking-2", "booking-3"]
        assert overview.membership_type is MembershipType.BASIC
        assert overview.next_classes[0].program.title == "Power Lifting"

    async def test_cancel_moves_booking_to_past(self, supabase, backend, member, catalog_data):
        """Test cancelling patches one row and re-reads the list."""
        program_id = catalog_data["programs"][0]["id"]
        seed_bookings(backend, member, program_id, [24, 48])
        dashboard = MemberDashboard(supabase, member)
        await dashboard.refresh()
        reads_before = len(backend.requests_to("GET", "/rest/v1/bookings"))

        result = await dashboard.cancel("booking-0")

        assert result.ok
        patches = backend.requests_to("PATCH", "/rest/v1/bookings")
        assert len(patches) == 1
        assert patches[0].url.params["id"] == "eq.booking-0"
        assert json.loads(patches[0].content) == {"status": "cancelled"}
        assert len(backend.requests_to("GET", "/rest/v1/bookings")) == reads_before + 1

        partition = dashboard.partition()
        assert [b.id for b in partition.upcoming] == ["booking-1"]
        cancelled = partition.past[0]
        assert cancelled.id == "booking-0"
        assert display_status(cancelled, datetime.now(timezone.utc)) is DisplayStatus.CANCELLED

    async def test_cancel_failure(self, supabase, backend, member, catalog_data):
        """Test a rejected cancel leaves the list untouched."""
        program_id = catalog_data["programs"][0]["id"]
        seed_bookings(backend, member, program_id, [24])
        dashboard = MemberDashboard(supabase, member)
        await dashboard.refresh()
        backend.fail("PATCH", "/rest/v1/bookings", status=403, body={"message": "permission denied"})

        result = await dashboard.cancel("booking-0")

        assert result.error == "permission denied"
        assert dashboard.bookings[0].status is BookingStatus.CONFIRMED

    async def test_refresh_error_keeps_bookings(self, supabase, backend, member, catalog_data):
        """Test a failed fetch is logged and keeps the last list."""
        program_id = catalog_data["programs"][0]["id"]
        seed_bookings(backend, member, program_id, [24])
        dashboard = MemberDashboard(supabase, member)
        await dashboard.refresh()

        backend.fail("GET", "/rest/v1/bookings", status=500)
        await dashboard.refresh()

        assert len(dashboard.bookings) == 1


class TestProfileForm:
    """Tests for ProfileForm."""

    def test_name_required(self):
        """Test a blank name is rejected."""
        with pytest.raises(ValidationError):
            ProfileForm(full_name="   ")

    def test_phone_kept_as_typed(self):
        """Test valid phones are stored as entered."""
        form = ProfileForm(full_name="Jane Doe", phone="555-0100", membership_type=MembershipType.PRO)

        assert form.to_fields() == {
            "full_name": "Jane Doe",
            "phone": "555-0100",
            "membership_type": "pro",
        }

    def test_invalid_phone(self):
        """Test phones that are not numbers are rejected."""
        with pytest.raises(ValidationError):
            ProfileForm(full_name="Jane Doe", phone="call me")

    def test_empty_phone_is_null(self):
        """Test an empty phone clears the stored value."""
        assert ProfileForm(full_name="Jane Doe").to_fields()["phone"] is None


class TestProfileEditor:
    """Tests for ProfileEditor."""

    async def test_locked_until_enabled(self, sessions, member, backend):
        """Test saving is refused until editing is enabled."""
        editor = ProfileEditor(sessions, member)

        result = await editor.save(ProfileForm(full_name="Someone Else"))

        assert not result.ok
        assert backend.requests_to("PATCH", "/rest/v1/profiles") == []

    async def test_save_round_trip(self, supabase, sessions, member):
        """Test a saved profile reads back with the new values."""
        original_id, original_email = member.profile.id, member.profile.email
        editor = ProfileEditor(sessions, member)
        editor.enable()

        result = await editor.save(
            ProfileForm(full_name="Jane Doe", phone="555-0100", membership_type=MembershipType.PRO)
        )

        assert result.ok
        assert not editor.editing
        profile = member.profile
        assert profile.full_name == "Jane Doe"
        assert profile.phone == "555-0100"
        assert profile.membership_type is MembershipType.PRO
        assert profile.id == original_id
        assert profile.email == original_email
        assert editor.form.phone == "555-0100"

        fresh = await supabase.get_profile(profile.id, access_token=member.access_token)
        assert fresh == profile

    async def test_discard_restores_profile_values(self, sessions, member):
        """Test discarding returns to the stored values."""
        editor = ProfileEditor(sessions, member)
        editor.enable()
        editor.form = ProfileForm(full_name="Draft Name")

        editor.discard()

        assert not editor.editing
        assert editor.form.full_name == "Jane Doe"

    async def test_failed_save_stays_editable(self, sessions, member, backend):
        """Test backend errors keep the form open."""
        backend.fail("PATCH", "/rest/v1/profiles", status=400, body={"message": "value too long"})
        editor = ProfileEditor(sessions, member)
        editor.enable()

        result = await editor.save(ProfileForm(full_name="Jane Doe"))

        assert result.error == "value too long"
        assert editor.editing
