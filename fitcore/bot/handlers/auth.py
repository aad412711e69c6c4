from __future__ import annotations

from aiogram import F, Router
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.fsm.state import State, StatesGroup
from aiogram.types import CallbackQuery, Message

from fitcore.bot.filters import DIALOG_TEXT
from fitcore.bot.keyboards import Keyboards, MessageTemplates
from fitcore.core.logging import configure_logging
from fitcore.core.validation import clean_text, normalize_email
from fitcore.portal.session import MemberSession, SessionManager

router = Router(name="auth")
logger = configure_logging()

MIN_PASSWORD_LENGTH = 6


class SignInStates(StatesGroup):
    waiting_for_email = State()
    waiting_for_password = State()


class SignUpStates(StatesGroup):
    waiting_for_name = State()
    waiting_for_email = State()
    waiting_for_password = State()


async def _forget_password_message(message: Message) -> None:
    try:
        await message.delete()
    except TelegramBadRequest as exc:
        logger.debug("Could not delete password message: %s", exc)


async def _start_sign_in(message: Message, state: FSMContext, session: MemberSession) -> None:
    if session.is_authenticated:
        await message.answer("You are already signed in.", reply_markup=Keyboards.main_menu(True))
        return
    await state.set_state(SignInStates.waiting_for_email)
    await message.answer(
        "🔑 <b>Sign In</b>\n\nSend your <b>e-mail</b>.\n\nTo cancel, send /cancel."
    )


async def _start_sign_up(message: Message, state: FSMContext, session: MemberSession) -> None:
    if session.is_authenticated:
        await message.answer("You are already signed in.", reply_markup=Keyboards.main_menu(True))
        return
    await state.set_state(SignUpStates.waiting_for_name)
    await message.answer(
        "📝 <b>Create your account</b>\n\nSend your <b>full name</b>.\n\nTo cancel, send /cancel."
    )


@router.message(Command("signin"))
async def cmd_sign_in(message: Message, state: FSMContext, session: MemberSession) -> None:
    """
    Start sign-in dialog: ask for e-mail, then password.
    """

    await _start_sign_in(message, state, session)


@router.callback_query(F.data == "auth_signin")
async def cb_sign_in(callback: CallbackQuery, state: FSMContext, session: MemberSession) -> None:
    await _start_sign_in(callback.message, state, session)
    await callback.answer()


@router.message(Command("signup"))
async def cmd_sign_up(message: Message, state: FSMContext, session: MemberSession) -> None:
    """
    Start sign-up dialog: name, e-mail, password.
    """

    await _start_sign_up(message, state, session)


@router.callback_query(F.data == "auth_signup")
async def cb_sign_up(callback: CallbackQuery, state: FSMContext, session: MemberSession) -> None:
    await _start_sign_up(callback.message, state, session)
    await callback.answer()


@router.message(SignInStates.waiting_for_email, DIALOG_TEXT)
async def sign_in_email(message: Message, state: FSMContext) -> None:
    email = normalize_email(message.text)
    if email is None:
        await message.answer("That e-mail looks invalid. Try again.")
        return

    await state.update_data(email=email)
    await state.set_state(SignInStates.waiting_for_password)
    await message.answer("Now send your <b>password</b>. I'll delete the message right after reading it.")


@router.message(SignInStates.waiting_for_password, DIALOG_TEXT)
async def sign_in_password(
    message: Message,
    state: FSMContext,
    sessions: SessionManager,
) -> None:
    password = message.text
    await _forget_password_message(message)

    data = await state.get_data()
    email = data.get("email")
    if not email:
        await state.clear()
        await message.answer("Something went wrong, start again with /signin.")
        return

    result = await sessions.sign_in(message.from_user.id, email, password)
    if not result.ok:
        await state.set_state(SignInStates.waiting_for_email)
        await message.answer(
            MessageTemplates.error(result.error or "Sign in failed")
            + "\n\nSend your e-mail to try again or /cancel."
        )
        return

    await state.clear()
    session = sessions.get(message.from_user.id)
    name = session.profile.full_name if session.profile else email
    await message.answer(
        MessageTemplates.success(f"Signed in as {name}."),
        reply_markup=Keyboards.main_menu(True),
    )


@router.message(SignUpStates.waiting_for_name, DIALOG_TEXT)
async def sign_up_name(message: Message, state: FSMContext) -> None:
    full_name = clean_text(message.text)
    if len(full_name) < 2:
        await message.answer("The name should be at least 2 characters long.")
        return

    await state.update_data(full_name=full_name)
    await state.set_state(SignUpStates.waiting_for_email)
    await message.answer("Send your <b>e-mail</b>.")


@router.message(SignUpStates.waiting_for_email, DIALOG_TEXT)
async def sign_up_email(message: Message, state: FSMContext) -> None:
    email = normalize_email(message.text)
    if email is None:
        await message.answer("That e-mail looks invalid. Try again.")
        return

    await state.update_data(email=email)
    await state.set_state(SignUpStates.waiting_for_password)
    await message.answer(
        f"Choose a <b>password</b> (at least {MIN_PASSWORD_LENGTH} characters). "
        "I'll delete the message right after reading it."
    )


@router.message(SignUpStates.waiting_for_password, DIALOG_TEXT)
async def sign_up_password(
    message: Message,
    state: FSMContext,
    sessions: SessionManager,
) -> None:
    password = message.text
    await _forget_password_message(message)

    if len(password) < MIN_PASSWORD_LENGTH:
        await message.answer(f"The password must be at least {MIN_PASSWORD_LENGTH} characters. Try again.")
        return

    data = await state.get_data()
    email, full_name = data.get("email"), data.get("full_name")
    if not email or not full_name:
        await state.clear()
        await message.answer("Something went wrong, start again with /signup.")
        return

    result = await sessions.sign_up(message.from_user.id, email, password, full_name)
    await state.clear()
    if not result.ok:
        await message.answer(
            MessageTemplates.error(result.error or "Sign up failed"),
            reply_markup=Keyboards.sign_in_prompt(),
        )
        return

    if result.notice:
        await message.answer(MessageTemplates.info(result.notice), reply_markup=Keyboards.sign_in_prompt())
        return

    await message.answer(
        MessageTemplates.success(f"Welcome to FitCore, {full_name}!"),
        reply_markup=Keyboards.main_menu(True),
    )


async def _sign_out(message: Message, state: FSMContext, sessions: SessionManager, user_id: int) -> None:
    await state.clear()
    await sessions.sign_out(user_id)
    await message.answer("👋 You are signed out.", reply_markup=Keyboards.main_menu(False))


@router.message(Command("signout"))
async def cmd_sign_out(message: Message, state: FSMContext, sessions: SessionManager) -> None:
    await _sign_out(message, state, sessions, message.from_user.id)


@router.callback_query(F.data == "auth_signout")
async def cb_sign_out(callback: CallbackQuery, state: FSMContext, sessions: SessionManager) -> None:
    await _sign_out(callback.message, state, sessions, callback.from_user.id)
    await callback.answer()
