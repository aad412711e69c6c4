"""Telegram front end of the FitCore portal."""
