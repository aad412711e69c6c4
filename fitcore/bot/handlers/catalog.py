from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from fitcore.bot.keyboards import Keyboards
from fitcore.bot.views import render_about, render_pricing, render_programs, render_trainers
from fitcore.db import get_supabase_client
from fitcore.portal.catalog import ALL_CATEGORIES, PROGRAM_CATEGORIES, CatalogService, filter_programs
from fitcore.portal.session import MemberSession

router = Router(name="catalog")


async def _load_programs(state: FSMContext) -> CatalogService:
    # Every opening of the programs screen re-fetches; filter clicks reuse the list
    catalog = CatalogService(get_supabase_client())
    await catalog.refresh_programs()
    await state.update_data(programs=catalog.programs)
    return catalog


@router.message(Command("programs"))
async def cmd_programs(message: Message, state: FSMContext, session: MemberSession) -> None:
    """
    List all programs with the category filter.
    """

    catalog = await _load_programs(state)
    await message.answer(
        render_programs(catalog.programs, ALL_CATEGORIES),
        reply_markup=Keyboards.programs(catalog.programs, ALL_CATEGORIES, session.is_authenticated),
    )


@router.callback_query(F.data == "menu_programs")
async def cb_programs(callback: CallbackQuery, state: FSMContext, session: MemberSession) -> None:
    catalog = await _load_programs(state)
    await callback.message.edit_text(
        render_programs(catalog.programs, ALL_CATEGORIES),
        reply_markup=Keyboards.programs(catalog.programs, ALL_CATEGORIES, session.is_authenticated),
    )
    await callback.answer()


@router.callback_query(F.data.startswith("programs_filter:"))
async def cb_programs_filter(callback: CallbackQuery, state: FSMContext, session: MemberSession) -> None:
    category = callback.data.split(":", 1)[1]
    if category not in PROGRAM_CATEGORIES:
        await callback.answer("Unknown category")
        return

    data = await state.get_data()
    programs = data.get("programs")
    if programs is None:
        programs = (await _load_programs(state)).programs

    shown = filter_programs(programs, category)
    await callback.message.edit_text(
        render_programs(shown, category),
        reply_markup=Keyboards.programs(shown, category, session.is_authenticated),
    )
    await callback.answer()


async def _trainers_text() -> str:
    catalog = CatalogService(get_supabase_client())
    await catalog.refresh_trainers()
    return render_trainers(catalog.trainers)


@router.message(Command("trainers"))
async def cmd_trainers(message: Message) -> None:
    """
    Show trainer profiles.
    """

    await message.answer(await _trainers_text(), reply_markup=Keyboards.back_button())


@router.callback_query(F.data == "menu_trainers")
async def cb_trainers(callback: CallbackQuery) -> None:
    await callback.message.edit_text(await _trainers_text(), reply_markup=Keyboards.back_button())
    await callback.answer()


@router.message(Command("pricing"))
async def cmd_pricing(message: Message, session: MemberSession) -> None:
    """
    Show membership plans; a signed-in member sees their own plan marked.
    """

    await message.answer(render_pricing(session.profile), reply_markup=Keyboards.back_button())


@router.callback_query(F.data == "menu_pricing")
async def cb_pricing(callback: CallbackQuery, session: MemberSession) -> None:
    await callback.message.edit_text(render_pricing(session.profile), reply_markup=Keyboards.back_button())
    await callback.answer()


@router.message(Command("about"))
async def cmd_about(message: Message) -> None:
    await message.answer(render_about(), reply_markup=Keyboards.back_button())


@router.callback_query(F.data == "menu_about")
async def cb_about(callback: CallbackQuery) -> None:
    await callback.message.edit_text(render_about(), reply_markup=Keyboards.back_button())
    await callback.answer()
