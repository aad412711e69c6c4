from __future__ import annotations

from aiogram import F

# Free text typed into a dialog step; commands fall through to their own handlers
DIALOG_TEXT = (F.text.len() > 0) & ~F.text.startswith("/")
