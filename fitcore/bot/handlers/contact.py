from __future__ import annotations

import asyncio

from aiogram import F, Router
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.fsm.state import State, StatesGroup
from aiogram.types import CallbackQuery, Message
from pydantic import ValidationError

from fitcore.bot.filters import DIALOG_TEXT
from fitcore.bot.keyboards import Keyboards
from fitcore.bot.views import render_contact_details
from fitcore.core.logging import configure_logging
from fitcore.core.validation import clean_text, normalize_email
from fitcore.db import get_supabase_client
from fitcore.portal.contact import (
    SUCCESS_BANNER_SECONDS,
    SUCCESS_MESSAGE,
    ContactDraft,
    ContactService,
)
from fitcore.portal.session import MemberSession

router = Router(name="contact")
logger = configure_logging()


class ContactStates(StatesGroup):
    waiting_for_name = State()
    waiting_for_email = State()
    waiting_for_message = State()


async def _start_contact(message: Message, state: FSMContext) -> None:
    await state.set_state(ContactStates.waiting_for_name)
    await state.update_data(contact_draft=ContactDraft())
    await message.answer(
        render_contact_details()
        + "\n\nReady to start your fitness journey? Send us a message.\n"
        "First, your <b>name</b>.\n\nTo cancel, send /cancel."
    )


@router.message(Command("contact"))
async def cmd_contact(message: Message, state: FSMContext) -> None:
    """
    Contact details followed by the contact form: name, e-mail, message.
    """

    await _start_contact(message, state)


@router.callback_query(F.data == "menu_contact")
async def cb_contact(callback: CallbackQuery, state: FSMContext) -> None:
    await _start_contact(callback.message, state)
    await callback.answer()


async def _draft(state: FSMContext) -> ContactDraft:
    draft = (await state.get_data()).get("contact_draft")
    if draft is None:
        draft = ContactDraft()
        await state.update_data(contact_draft=draft)
    return draft


@router.message(ContactStates.waiting_for_name, DIALOG_TEXT)
async def contact_name(message: Message, state: FSMContext) -> None:
    name = clean_text(message.text)
    if not name:
        await message.answer("Your name is required.")
        return
    draft = await _draft(state)
    draft.name = name
    await state.set_state(ContactStates.waiting_for_email)
    await message.answer("Your <b>e-mail</b>:")


@router.message(ContactStates.waiting_for_email, DIALOG_TEXT)
async def contact_email(message: Message, state: FSMContext) -> None:
    email = normalize_email(message.text)
    if email is None:
        await message.answer("That e-mail looks invalid. Try again.")
        return
    draft = await _draft(state)
    draft.email = email
    await state.set_state(ContactStates.waiting_for_message)
    await message.answer("Your <b>message</b>:")


@router.message(ContactStates.waiting_for_message, DIALOG_TEXT)
async def contact_message(message: Message, state: FSMContext, session: MemberSession) -> None:
    draft = await _draft(state)
    draft.message = clean_text(message.text)

    try:
        sent = await ContactService(get_supabase_client()).send(draft)
    except ValidationError as exc:
        logger.debug("Rejected contact form: %s", exc)
        await message.answer("Please fill in your name, e-mail and message. Start again with /contact.")
        await state.clear()
        return

    await state.clear()
    if not sent:
        # Failures are only logged; the visitor sees no feedback
        return

    banner = await message.answer(
        "✅ " + SUCCESS_MESSAGE,
        reply_markup=Keyboards.main_menu(session.is_authenticated),
    )
    await asyncio.sleep(SUCCESS_BANNER_SECONDS)
    try:
        await banner.edit_text(
            "🏋️ <b>FitCore</b>\n\nChoose where to go:",
            reply_markup=Keyboards.main_menu(session.is_authenticated),
        )
    except TelegramBadRequest as exc:
        logger.debug("Could not hide contact banner: %s", exc)
