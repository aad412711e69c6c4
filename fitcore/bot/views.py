"""
Plain-text (Telegram HTML) renderings of portal data.

Kept apart from the handlers so they can be checked without a bot.
"""

from __future__ import annotations

from datetime import date, datetime, tzinfo
from html import escape
from typing import Sequence

from fitcore.bot.keyboards import MessageTemplates
from fitcore.db.models import Profile, Program, Trainer
from fitcore.portal.content import (
    ABOUT_HIGHLIGHTS,
    CONTACT_DETAILS,
    GYM_NAME,
    PRICING_PLANS,
    plan_for,
)
from fitcore.portal.dashboard import (
    BookingPartition,
    DashboardOverview,
    DisplayStatus,
    display_status,
)

_STATUS_LABELS = {
    DisplayStatus.CONFIRMED: "🟢 Confirmed",
    DisplayStatus.COMPLETED: "⚪ Completed",
    DisplayStatus.CANCELLED: "🔴 Cancelled",
}


def format_class_time(instant: datetime, tz: tzinfo) -> str:
    local = instant.astimezone(tz)
    return local.strftime("%a %b %d, %Y at %H:%M")


def render_about() -> str:
    lines = [MessageTemplates.header(f"Why Choose {GYM_NAME}?", "💪")]
    lines.append(
        "We're more than just a gym. We're a community dedicated to helping you achieve your fitness goals."
    )
    for highlight in ABOUT_HIGHLIGHTS:
        lines.append("")
        lines.append(f"<b>{highlight.title}</b>")
        lines.append(highlight.text)
    return "\n".join(lines)


def render_programs(programs: Sequence[Program], category: str) -> str:
    lines = [MessageTemplates.header("Our Programs", "🏋️")]
    if not programs:
        if category == "all":
            lines.append("No programs yet. Check back soon!")
        else:
            lines.append(f"No {escape(category)} programs right now.")
        return "\n".join(lines)

    for program in programs:
        lines.append(f"<b>{escape(program.title)}</b>")
        lines.append(f"⏱ {escape(program.duration)} · {escape(program.level)}")
        if program.trainer:
            lines.append(f"👤 {escape(program.trainer.name)}")
        lines.append(escape(program.description))
        lines.append("")
    return "\n".join(lines).rstrip()


def render_trainers(trainers: Sequence[Trainer]) -> str:
    lines = [MessageTemplates.header("Meet Our Trainers", "👥")]
    if not trainers:
        lines.append("Our team page is being updated.")
        return "\n".join(lines)

    for trainer in trainers:
        lines.append(f"<b>{escape(trainer.name)}</b> — {escape(trainer.specialty)}")
        lines.append(escape(trainer.experience))
        lines.append(MessageTemplates.stars(trainer.rating))
        if trainer.bio:
            lines.append(f"<i>{escape(trainer.bio)}</i>")
        lines.append("")
    return "\n".join(lines).rstrip()


def render_pricing(current: Profile | None = None) -> str:
    lines = [MessageTemplates.header("Choose Your Plan", "💳")]
    for plan in PRICING_PLANS:
        title = f"<b>{plan.name}</b> — ${plan.monthly_price}/month"
        if plan.featured:
            title += " ⭐ Most Popular"
        if current is not None and current.membership_type is plan.tier:
            title += " (your plan)"
        lines.append(title)
        lines.extend(MessageTemplates.item(feature) for feature in plan.features)
        lines.append("")
    return "\n".join(lines).rstrip()


def render_contact_details() -> str:
    lines = [
        MessageTemplates.header("Get In Touch", "✉️"),
        f"📍 {CONTACT_DETAILS.address}",
        f"📞 {CONTACT_DETAILS.phone}",
        f"📧 {CONTACT_DETAILS.email}",
        "🕒 " + "; ".join(CONTACT_DETAILS.hours),
    ]
    return "\n".join(lines)


def render_booking(program: Program, selected_date: date | None, selected_time: str | None, error: str | None) -> str:
    lines = [MessageTemplates.header("Book a Class", "📅"), f"<b>{escape(program.title)}</b>"]
    details = f"⏱ {escape(program.duration)} · {escape(program.level)}"
    if program.trainer:
        details += f" · 👤 {escape(program.trainer.name)}"
    lines.append(details)
    lines.append(escape(program.description))
    lines.append("")
    lines.append(f"Date: <b>{selected_date.strftime('%a %b %d') if selected_date else '—'}</b>")
    lines.append(f"Time: <b>{selected_time or '—'}</b>")
    if error:
        lines.append("")
        lines.append(MessageTemplates.error(error))
    return "\n".join(lines)


def render_booking_confirmed(program: Program, selected_date: date, selected_time: str) -> str:
    return "\n".join(
        [
            "✅ <b>Booking Confirmed!</b>",
            "",
            "Your class has been successfully booked.",
            f"<b>{escape(program.title)}</b>",
            f"{selected_date.strftime('%a %b %d, %Y')} at {selected_time}",
        ]
    )


def render_overview(overview: DashboardOverview, profile: Profile | None, tz: tzinfo) -> str:
    membership = overview.membership_type.value.capitalize() if overview.membership_type else "—"
    plan = membership
    if overview.membership_type is not None:
        tier = plan_for(overview.membership_type)
        plan = f"{tier.name} (${tier.monthly_price}/month)"
    name = escape(profile.full_name) if profile and profile.full_name else "Member"
    lines = [
        MessageTemplates.header("Dashboard Overview", "📖"),
        f"👤 <b>{name}</b> · {membership} Member",
        "",
        MessageTemplates.stat("Upcoming Classes", str(overview.upcoming_count)),
        MessageTemplates.stat("Total Sessions", str(overview.total_sessions)),
        MessageTemplates.stat("Membership", plan),
        "",
        "<b>Upcoming Classes</b>",
    ]
    if not overview.next_classes:
        lines.append("No upcoming classes. Book a session to get started!")
    for booking in overview.next_classes:
        title = escape(booking.program.title) if booking.program else "Class"
        lines.append(MessageTemplates.item(f"{title} — {format_class_time(booking.booking_date, tz)}"))
    return "\n".join(lines)


def render_bookings(partition: BookingPartition, now: datetime, tz: tzinfo) -> str:
    lines = [MessageTemplates.header("My Bookings", "📅"), "<b>Upcoming Classes</b>"]
    if not partition.upcoming:
        lines.append("No upcoming bookings.")
    for booking in partition.upcoming:
        title = escape(booking.program.title) if booking.program else "Class"
        lines.append(MessageTemplates.item(f"{title} — {format_class_time(booking.booking_date, tz)}"))

    lines.append("")
    lines.append("<b>Past Classes</b>")
    if not partition.past:
        lines.append("No past bookings.")
    for booking in partition.past:
        title = escape(booking.program.title) if booking.program else "Class"
        label = _STATUS_LABELS[display_status(booking, now)]
        day = booking.booking_date.astimezone(tz).strftime("%b %d, %Y")
        lines.append(MessageTemplates.item(f"{title} — {day} · {label}"))
    return "\n".join(lines)


def render_profile(profile: Profile | None) -> str:
    if profile is None:
        return MessageTemplates.info("Your profile is not available yet. Try again in a moment.")
    return "\n".join(
        [
            MessageTemplates.header("Profile Settings", "⚙️"),
            MessageTemplates.stat("Full Name", escape(profile.full_name) or "—"),
            MessageTemplates.stat("Email", escape(profile.email)) + " <i>(cannot be changed)</i>",
            MessageTemplates.stat("Phone", escape(profile.phone or "—")),
            MessageTemplates.stat("Membership Type", profile.membership_type.value.capitalize()),
        ]
    )
