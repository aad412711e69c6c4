from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from fitcore.db.models import Program, Trainer
from fitcore.db.supabase import SupabaseClient, SupabaseError

logger = logging.getLogger(__name__)


ALL_CATEGORIES = "all"
PROGRAM_CATEGORIES: tuple[str, ...] = (ALL_CATEGORIES, "strength", "cardio", "yoga")


def filter_programs(programs: Sequence[Program], category: str) -> list[Program]:
    """
    Programs of one category, in their original order; "all" keeps every program.
    """

    if category == ALL_CATEGORIES:
        return list(programs)
    return [program for program in programs if program.category == category]


class CatalogService:
    """
    Programs and trainers shown on the landing screens.

    Each ``refresh`` re-fetches both lists independently. A failed fetch is
    logged and leaves the previously loaded list (possibly empty) in place.
    """

    def __init__(self, supabase: SupabaseClient) -> None:
        self._supabase = supabase
        self.programs: list[Program] = []
        self.trainers: list[Trainer] = []

    async def refresh(self) -> None:
        await asyncio.gather(self.refresh_programs(), self.refresh_trainers())

    async def refresh_programs(self) -> None:
        try:
            self.programs = await self._supabase.list_programs()
        except SupabaseError as exc:
            logger.warning("Error fetching programs: %s", exc.message)

    async def refresh_trainers(self) -> None:
        try:
            self.trainers = await self._supabase.list_trainers()
        except SupabaseError as exc:
            logger.warning("Error fetching trainers: %s", exc.message)

    def filtered(self, category: str) -> list[Program]:
        return filter_programs(self.programs, category)

    def find_program(self, program_id: str) -> Program | None:
        for program in self.programs:
            if program.id == program_id:
                return program
        return None
