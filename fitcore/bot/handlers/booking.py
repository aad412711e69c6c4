from __future__ import annotations

from datetime import date

from aiogram import F, Router
from aiogram.fsm.context import FSMContext
from aiogram.fsm.state import State, StatesGroup
from aiogram.types import CallbackQuery

from fitcore.bot.keyboards import Keyboards
from fitcore.bot.views import render_booking, render_booking_confirmed
from fitcore.core import get_settings
from fitcore.db import get_supabase_client
from fitcore.db.models import Program
from fitcore.portal.booking import BookingFlow, begin_booking
from fitcore.portal.catalog import CatalogService
from fitcore.portal.session import MemberSession

router = Router(name="booking")


class BookingStates(StatesGroup):
    selecting = State()
    submitting = State()
    confirmed = State()


async def _find_program(state: FSMContext, program_id: str) -> Program | None:
    data = await state.get_data()
    for program in data.get("programs") or []:
        if program.id == program_id:
            return program
    catalog = CatalogService(get_supabase_client())
    await catalog.refresh_programs()
    return catalog.find_program(program_id)


async def _render(callback: CallbackQuery, flow: BookingFlow) -> None:
    await callback.message.edit_text(
        render_booking(flow.program, flow.selected_date, flow.selected_time, flow.error),
        reply_markup=Keyboards.booking(flow.dates, flow.selected_date, flow.selected_time, flow.can_submit),
    )


async def _current_flow(callback: CallbackQuery, state: FSMContext) -> BookingFlow | None:
    flow = (await state.get_data()).get("booking_flow")
    if flow is None:
        await callback.answer("This booking has expired. Open the programs again.", show_alert=True)
    return flow


@router.callback_query(F.data.startswith("book:"))
async def cb_book_program(callback: CallbackQuery, state: FSMContext, session: MemberSession) -> None:
    """
    "Book Now" on a program. Anonymous visitors get the sign-in prompt instead.
    """

    program_id = callback.data.split(":", 1)[1]
    program = await _find_program(state, program_id)
    if program is None:
        await callback.answer("This program is no longer available.", show_alert=True)
        return

    flow = begin_booking(get_supabase_client(), session, program, tz=get_settings().timezone)
    if flow is None:
        await callback.message.answer("🔑 Please sign in to book a class.", reply_markup=Keyboards.sign_in_prompt())
        await callback.answer()
        return

    await state.set_state(BookingStates.selecting)
    await state.update_data(booking_flow=flow)
    await _render(callback, flow)
    await callback.answer()


@router.callback_query(BookingStates.selecting, F.data.startswith("book_date:"))
async def cb_book_date(callback: CallbackQuery, state: FSMContext) -> None:
    flow = await _current_flow(callback, state)
    if flow is None:
        return
    try:
        flow.select_date(date.fromisoformat(callback.data.split(":", 1)[1]))
    except ValueError:
        await callback.answer("That day can't be booked.", show_alert=True)
        return
    await _render(callback, flow)
    await callback.answer()


@router.callback_query(BookingStates.selecting, F.data.startswith("book_time:"))
async def cb_book_time(callback: CallbackQuery, state: FSMContext) -> None:
    flow = await _current_flow(callback, state)
    if flow is None:
        return
    try:
        flow.select_time(callback.data.split(":", 1)[1])
    except ValueError:
        await callback.answer("That time can't be booked.", show_alert=True)
        return
    await _render(callback, flow)
    await callback.answer()


@router.callback_query(BookingStates.selecting, F.data == "book_confirm")
async def cb_book_confirm(callback: CallbackQuery, state: FSMContext) -> None:
    flow = await _current_flow(callback, state)
    if flow is None:
        return
    if not flow.can_submit:
        await callback.answer("Pick both a date and a time first.", show_alert=True)
        return

    await state.set_state(BookingStates.submitting)
    await callback.answer("Booking...")
    result = await flow.submit()

    if not result.ok:
        await state.set_state(BookingStates.selecting)
        await _render(callback, flow)
        return

    await state.set_state(BookingStates.confirmed)
    await callback.message.edit_text(
        render_booking_confirmed(flow.program, flow.selected_date, flow.selected_time),
    )

    # The confirmation closes itself and the selections are cleared
    await flow.close_after_confirmation()
    await state.clear()
    await callback.message.edit_reply_markup(reply_markup=Keyboards.main_menu(True))


@router.callback_query(F.data == "book_close")
async def cb_book_close(callback: CallbackQuery, state: FSMContext, session: MemberSession) -> None:
    flow = (await state.get_data()).get("booking_flow")
    if flow is not None:
        flow.reset()
    await state.clear()
    await callback.message.edit_text(
        "Booking cancelled. Nothing was reserved.",
        reply_markup=Keyboards.main_menu(session.is_authenticated),
    )
    await callback.answer()


@router.callback_query(BookingStates.submitting)
async def cb_book_busy(callback: CallbackQuery) -> None:
    await callback.answer("Your booking is being submitted...")
