from __future__ import annotations

from html import escape

from aiogram import F, Router
from aiogram.filters import Command, CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from fitcore.bot.keyboards import Keyboards
from fitcore.core import get_settings
from fitcore.portal.content import GYM_NAME
from fitcore.portal.session import MemberSession

router = Router(name="start")


def _greeting(session: MemberSession) -> str:
    if session.is_authenticated:
        profile_name = session.profile.full_name if session.profile else ""
        name = escape(profile_name or (session.user.email if session.user and session.user.email else ""))
        return (
            f"👋 Welcome back{', <b>' + name + '</b>' if name else ''}!\n\n"
            "Browse programs, book a class or open your dashboard."
        )
    return (
        f"💪 <b>Transform Your Body & Mind</b>\n\n"
        f"Join {GYM_NAME} and unlock your potential with world-class trainers, "
        "cutting-edge equipment, and personalized workout programs.\n\n"
        "Pick a section below or use /help."
    )


@router.message(CommandStart())
async def cmd_start(message: Message, session: MemberSession) -> None:
    """
    Landing screen: short pitch and the main menu.
    """

    settings = get_settings()
    lines = [_greeting(session)]
    if settings.is_debug:
        lines.append("")
        lines.append(f"Mode: <b>DEBUG</b> | session={session.status.value}")

    await message.answer(
        "\n".join(lines),
        reply_markup=Keyboards.main_menu(session.is_authenticated),
    )


@router.message(Command("menu"))
async def cmd_menu(message: Message, session: MemberSession) -> None:
    """
    Show main menu.
    """

    await message.answer(
        f"🏋️ <b>{GYM_NAME}</b>\n\nChoose where to go:",
        reply_markup=Keyboards.main_menu(session.is_authenticated),
    )


@router.callback_query(F.data == "menu_main")
async def cb_main_menu(callback: CallbackQuery, state: FSMContext, session: MemberSession) -> None:
    await state.clear()
    await callback.message.edit_text(
        f"🏋️ <b>{GYM_NAME}</b>\n\nChoose where to go:",
        reply_markup=Keyboards.main_menu(session.is_authenticated),
    )
    await callback.answer()


@router.message(Command("cancel"))
async def cmd_cancel(message: Message, state: FSMContext, session: MemberSession) -> None:
    """
    Cancel any active dialog.
    """

    current_state = await state.get_state()
    if current_state is None:
        await message.answer("Nothing to cancel.")
        return

    await state.clear()
    await message.answer(
        "Cancelled.",
        reply_markup=Keyboards.main_menu(session.is_authenticated),
    )


@router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    """
    Show help with available commands.
    """

    help_text = """
<b>📋 Commands</b>

<b>🏋️ Explore</b>
/programs — class programs
/trainers — meet our trainers
/pricing — membership plans
/about — why FitCore
/contact — get in touch

<b>👤 Members</b>
/signup — create an account
/signin — sign in
/dashboard — bookings and profile
/signout — sign out

<b>❓ Other</b>
/menu — main menu
/help — this help
/cancel — cancel the current dialog
    """.strip()

    await message.answer(help_text)
