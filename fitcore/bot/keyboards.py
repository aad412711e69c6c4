from __future__ import annotations

from datetime import date
from html import escape
from typing import Sequence

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from fitcore.db.models import Booking, MembershipType, Program
from fitcore.portal.booking import TIME_SLOTS
from fitcore.portal.catalog import PROGRAM_CATEGORIES


def _rows(buttons: Sequence[InlineKeyboardButton], width: int) -> list[list[InlineKeyboardButton]]:
    return [list(buttons[i:i + width]) for i in range(0, len(buttons), width)]


class Keyboards:
    """
    Centralized keyboard/button builder for consistent UI.
    """

    @staticmethod
    def main_menu(signed_in: bool = False) -> InlineKeyboardMarkup:
        """Main menu buttons; the last row depends on whether the member is signed in."""
        buttons = [
            [
                InlineKeyboardButton(text="🏋️ Programs", callback_data="menu_programs"),
                InlineKeyboardButton(text="👥 Trainers", callback_data="menu_trainers"),
            ],
            [
                InlineKeyboardButton(text="💳 Pricing", callback_data="menu_pricing"),
                InlineKeyboardButton(text="ℹ️ About", callback_data="menu_about"),
            ],
            [InlineKeyboardButton(text="✉️ Contact us", callback_data="menu_contact")],
        ]
        if signed_in:
            buttons.append(
                [
                    InlineKeyboardButton(text="👤 Dashboard", callback_data="menu_dashboard"),
                    InlineKeyboardButton(text="🚪 Sign Out", callback_data="auth_signout"),
                ]
            )
        else:
            buttons.append(
                [
                    InlineKeyboardButton(text="🔑 Sign In", callback_data="auth_signin"),
                    InlineKeyboardButton(text="📝 Sign Up", callback_data="auth_signup"),
                ]
            )
        return InlineKeyboardMarkup(inline_keyboard=buttons)

    @staticmethod
    def program_filters(active: str) -> list[list[InlineKeyboardButton]]:
        buttons = [
            InlineKeyboardButton(
                text=("• " if category == active else "") + category.capitalize(),
                callback_data=f"programs_filter:{category}",
            )
            for category in PROGRAM_CATEGORIES
        ]
        return [buttons]

    @staticmethod
    def programs(programs: Sequence[Program], active: str, signed_in: bool) -> InlineKeyboardMarkup:
        """Category filter row, one booking button per program, back button."""
        label = "📅 Book" if signed_in else "🔑 Sign in to book"
        buttons = Keyboards.program_filters(active)
        for program in programs:
            buttons.append(
                [InlineKeyboardButton(text=f"{label}: {program.title}", callback_data=f"book:{program.id}")]
            )
        buttons.append([InlineKeyboardButton(text="⬅️ Back", callback_data="menu_main")])
        return InlineKeyboardMarkup(inline_keyboard=buttons)

    @staticmethod
    def sign_in_prompt() -> InlineKeyboardMarkup:
        buttons = [
            [
                InlineKeyboardButton(text="🔑 Sign In", callback_data="auth_signin"),
                InlineKeyboardButton(text="📝 Sign Up", callback_data="auth_signup"),
            ],
            [InlineKeyboardButton(text="⬅️ Back", callback_data="menu_main")],
        ]
        return InlineKeyboardMarkup(inline_keyboard=buttons)

    @staticmethod
    def booking(
        dates: Sequence[date],
        selected_date: date | None,
        selected_time: str | None,
        can_submit: bool,
    ) -> InlineKeyboardMarkup:
        """Date grid, time grid, confirm and cancel."""
        date_buttons = [
            InlineKeyboardButton(
                text=("✅ " if day == selected_date else "") + day.strftime("%a %b %d"),
                callback_data=f"book_date:{day.isoformat()}",
            )
            for day in dates
        ]
        time_buttons = [
            InlineKeyboardButton(
                text=("✅ " if slot == selected_time else "") + slot,
                callback_data=f"book_time:{slot}",
            )
            for slot in TIME_SLOTS
        ]
        confirm_text = "✅ Confirm Booking" if can_submit else "Pick a date and a time"
        buttons = [
            *_rows(date_buttons, 4),
            *_rows(time_buttons, 5),
            [
                InlineKeyboardButton(text=confirm_text, callback_data="book_confirm"),
                InlineKeyboardButton(text="❌ Cancel", callback_data="book_close"),
            ],
        ]
        return InlineKeyboardMarkup(inline_keyboard=buttons)

    @staticmethod
    def dashboard_menu() -> InlineKeyboardMarkup:
        """Dashboard tabs."""
        buttons = [
            [
                InlineKeyboardButton(text="📖 Overview", callback_data="menu_dashboard"),
                InlineKeyboardButton(text="📅 My Bookings", callback_data="dash_bookings"),
            ],
            [InlineKeyboardButton(text="⚙️ Profile Settings", callback_data="dash_profile")],
            [InlineKeyboardButton(text="🚪 Sign Out", callback_data="auth_signout")],
            [InlineKeyboardButton(text="⬅️ Back", callback_data="menu_main")],
        ]
        return InlineKeyboardMarkup(inline_keyboard=buttons)

    @staticmethod
    def upcoming_bookings(bookings: Sequence[Booking]) -> InlineKeyboardMarkup:
        buttons = [
            [
                InlineKeyboardButton(
                    text=f"❌ Cancel {booking.program.title if booking.program else 'class'}",
                    callback_data=f"dash_cancel:{booking.id}",
                )
            ]
            for booking in bookings
        ]
        buttons.append([InlineKeyboardButton(text="⬅️ Back", callback_data="menu_dashboard")])
        return InlineKeyboardMarkup(inline_keyboard=buttons)

    @staticmethod
    def profile_menu(editing: bool) -> InlineKeyboardMarkup:
        if editing:
            buttons = [
                [InlineKeyboardButton(text="❌ Cancel", callback_data="profile_discard")],
            ]
        else:
            buttons = [
                [InlineKeyboardButton(text="✏️ Edit Profile", callback_data="profile_edit")],
                [InlineKeyboardButton(text="⬅️ Back", callback_data="menu_dashboard")],
            ]
        return InlineKeyboardMarkup(inline_keyboard=buttons)

    @staticmethod
    def membership_choice() -> InlineKeyboardMarkup:
        buttons = [
            [
                InlineKeyboardButton(text=tier.value.capitalize(), callback_data=f"profile_tier:{tier.value}")
                for tier in MembershipType
            ],
            [InlineKeyboardButton(text="❌ Cancel", callback_data="profile_discard")],
        ]
        return InlineKeyboardMarkup(inline_keyboard=buttons)

    @staticmethod
    def back_button(callback_data: str = "menu_main") -> InlineKeyboardMarkup:
        """Simple back button."""
        buttons = [
            [InlineKeyboardButton(text="⬅️ Back", callback_data=callback_data)],
        ]
        return InlineKeyboardMarkup(inline_keyboard=buttons)


class MessageTemplates:
    """
    Standardized message templates for consistent formatting.
    """

    @staticmethod
    def header(title: str, emoji: str = "📋") -> str:
        """Format a header."""
        return f"<b>{emoji} {escape(title)}</b>\n"

    @staticmethod
    def item(text: str, indent: int = 1) -> str:
        """Format an item in a list."""
        return "  " * indent + f"• {text}"

    @staticmethod
    def error(message: str) -> str:
        """Format an error message."""
        return f"❌ <b>Error:</b> {escape(message)}"

    @staticmethod
    def success(message: str) -> str:
        """Format a success message."""
        return f"✅ <b>Done!</b> {escape(message)}"

    @staticmethod
    def info(message: str) -> str:
        """Format an info message."""
        return f"ℹ️ {escape(message)}"

    @staticmethod
    def stat(label: str, value: str, unit: str = "") -> str:
        """Format a statistic item."""
        return f"  <b>{label}:</b> {value}{' ' + unit if unit else ''}"

    @staticmethod
    def stars(rating: float) -> str:
        full = max(0, min(5, int(rating)))
        return "★" * full + "☆" * (5 - full) + f" ({rating})"
