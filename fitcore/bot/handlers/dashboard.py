from __future__ import annotations

from datetime import datetime, timezone
from html import escape

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.fsm.state import State, StatesGroup
from aiogram.types import CallbackQuery, InlineKeyboardMarkup, Message
from pydantic import ValidationError

from fitcore.bot.filters import DIALOG_TEXT
from fitcore.bot.keyboards import Keyboards, MessageTemplates
from fitcore.bot.views import render_bookings, render_overview, render_profile
from fitcore.core import get_settings
from fitcore.core.logging import configure_logging
from fitcore.core.validation import clean_text, normalize_phone
from fitcore.db import get_supabase_client
from fitcore.db.models import MembershipType
from fitcore.portal.dashboard import MemberDashboard, ProfileEditor, ProfileForm
from fitcore.portal.session import MemberSession, SessionManager

router = Router(name="dashboard")
logger = configure_logging()

KEEP_VALUE = "-"
CLEAR_VALUE = "none"


class EditProfileStates(StatesGroup):
    waiting_for_name = State()
    waiting_for_phone = State()
    waiting_for_membership = State()


async def _overview_text(session: MemberSession) -> str:
    dashboard = MemberDashboard(get_supabase_client(), session)
    await dashboard.refresh()
    return render_overview(dashboard.overview(), session.profile, get_settings().timezone)


def _bookings_view(dashboard: MemberDashboard) -> tuple[str, InlineKeyboardMarkup]:
    now = datetime.now(timezone.utc)
    partition = dashboard.partition(now)
    text = render_bookings(partition, now, get_settings().timezone)
    return text, Keyboards.upcoming_bookings(partition.upcoming)


@router.message(Command("dashboard"))
async def cmd_dashboard(message: Message, session: MemberSession) -> None:
    """
    Member dashboard overview. Anonymous visitors are asked to sign in.
    """

    if not session.is_authenticated:
        await message.answer("🔑 Sign in to open your dashboard.", reply_markup=Keyboards.sign_in_prompt())
        return

    await message.answer(await _overview_text(session), reply_markup=Keyboards.dashboard_menu())


@router.callback_query(F.data == "menu_dashboard")
async def cb_dashboard(callback: CallbackQuery, state: FSMContext, session: MemberSession) -> None:
    if not session.is_authenticated:
        await callback.message.edit_text(
            "🔑 Sign in to open your dashboard.",
            reply_markup=Keyboards.sign_in_prompt(),
        )
        await callback.answer()
        return

    await state.clear()
    await callback.message.edit_text(await _overview_text(session), reply_markup=Keyboards.dashboard_menu())
    await callback.answer()


@router.callback_query(F.data == "dash_bookings")
async def cb_bookings(callback: CallbackQuery, session: MemberSession) -> None:
    if not session.is_authenticated:
        await callback.answer("Please sign in first.", show_alert=True)
        return

    dashboard = MemberDashboard(get_supabase_client(), session)
    await dashboard.refresh()
    text, keyboard = _bookings_view(dashboard)
    await callback.message.edit_text(text, reply_markup=keyboard)
    await callback.answer()


@router.callback_query(F.data.startswith("dash_cancel:"))
async def cb_cancel_booking(callback: CallbackQuery, session: MemberSession) -> None:
    """
    Cancel one upcoming booking and re-read the whole list.
    """

    if not session.is_authenticated:
        await callback.answer("Please sign in first.", show_alert=True)
        return

    booking_id = callback.data.split(":", 1)[1]
    dashboard = MemberDashboard(get_supabase_client(), session)
    result = await dashboard.cancel(booking_id)
    if not result.ok:
        await callback.answer(result.error or "Could not cancel the booking.", show_alert=True)
        return

    text, keyboard = _bookings_view(dashboard)
    await callback.message.edit_text(text, reply_markup=keyboard)
    await callback.answer("Booking cancelled")


@router.callback_query(F.data == "dash_profile")
async def cb_profile(callback: CallbackQuery, state: FSMContext, session: MemberSession) -> None:
    if not session.is_authenticated:
        await callback.answer("Please sign in first.", show_alert=True)
        return

    await state.clear()
    await callback.message.edit_text(
        render_profile(session.profile),
        reply_markup=Keyboards.profile_menu(editing=False),
    )
    await callback.answer()


@router.callback_query(F.data == "profile_edit")
async def cb_profile_edit(
    callback: CallbackQuery,
    state: FSMContext,
    session: MemberSession,
    sessions: SessionManager,
) -> None:
    if not session.is_authenticated or session.profile is None:
        await callback.answer("Your profile is not available yet.", show_alert=True)
        return

    editor = ProfileEditor(sessions, session)
    editor.enable()
    await state.set_state(EditProfileStates.waiting_for_name)
    await state.update_data(profile_editor=editor)
    await callback.message.answer(
        f"<b>Full Name</b> (now: {escape(session.profile.full_name or '—')})\n\n"
        f"Send the new name or <code>{KEEP_VALUE}</code> to keep it.",
        reply_markup=Keyboards.profile_menu(editing=True),
    )
    await callback.answer()


@router.message(EditProfileStates.waiting_for_name, DIALOG_TEXT)
async def profile_name(message: Message, state: FSMContext, session: MemberSession) -> None:
    text = clean_text(message.text)
    if text == KEEP_VALUE:
        full_name = session.profile.full_name if session.profile else ""
    else:
        full_name = text
    if not full_name:
        await message.answer("Full name is required. Send it again.")
        return

    await state.update_data(full_name=full_name)
    await state.set_state(EditProfileStates.waiting_for_phone)
    current_phone = escape(session.profile.phone or "—") if session.profile else "—"
    await message.answer(
        f"<b>Phone</b> (now: {current_phone})\n\n"
        f"Send the new number, <code>{KEEP_VALUE}</code> to keep it or "
        f"<code>{CLEAR_VALUE}</code> to remove it.",
        reply_markup=Keyboards.profile_menu(editing=True),
    )


@router.message(EditProfileStates.waiting_for_phone, DIALOG_TEXT)
async def profile_phone(message: Message, state: FSMContext, session: MemberSession) -> None:
    text = clean_text(message.text)
    if text == KEEP_VALUE:
        phone = (session.profile.phone or "") if session.profile else ""
    elif text.lower() == CLEAR_VALUE:
        phone = ""
    elif normalize_phone(text) is None:
        await message.answer("That phone number looks invalid. Try again, e.g. 555-0100.")
        return
    else:
        phone = text

    await state.update_data(phone=phone)
    await state.set_state(EditProfileStates.waiting_for_membership)
    await message.answer("<b>Membership Type</b>", reply_markup=Keyboards.membership_choice())


@router.callback_query(EditProfileStates.waiting_for_membership, F.data.startswith("profile_tier:"))
async def cb_profile_membership(callback: CallbackQuery, state: FSMContext, session: MemberSession) -> None:
    data = await state.get_data()
    editor: ProfileEditor | None = data.get("profile_editor")
    if editor is None:
        await state.clear()
        await callback.answer("Editing expired, open your profile again.", show_alert=True)
        return

    try:
        form = ProfileForm(
            full_name=data.get("full_name", ""),
            phone=data.get("phone", ""),
            membership_type=MembershipType(callback.data.split(":", 1)[1]),
        )
    except (ValidationError, ValueError) as exc:
        logger.debug("Rejected profile form: %s", exc)
        await callback.answer("Some of the details are invalid. Start again.", show_alert=True)
        return

    result = await editor.save(form)
    if not result.ok:
        await callback.message.edit_text(
            MessageTemplates.error(result.error or "Could not save your profile."),
            reply_markup=Keyboards.membership_choice(),
        )
        await callback.answer()
        return

    await state.clear()
    await callback.message.edit_text(
        MessageTemplates.success("Profile saved.") + "\n\n" + render_profile(session.profile),
        reply_markup=Keyboards.profile_menu(editing=False),
    )
    await callback.answer()


@router.callback_query(F.data == "profile_discard")
async def cb_profile_discard(callback: CallbackQuery, state: FSMContext, session: MemberSession) -> None:
    editor: ProfileEditor | None = (await state.get_data()).get("profile_editor")
    if editor is not None:
        editor.discard()
    await state.clear()
    await callback.message.edit_text(
        render_profile(session.profile),
        reply_markup=Keyboards.profile_menu(editing=False),
    )
    await callback.answer()
