"""
Portal logic shared by every front end: session handling, catalog, booking,
member dashboard and the contact form. Nothing in here knows about Telegram.
"""

from .results import OperationResult

__all__ = ["OperationResult"]
