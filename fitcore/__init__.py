"""
Application package for the FitCore gym member portal.

This package contains:
- Telegram bot front door and member area (`fitcore.bot`)
- Portal logic shared by every surface (`fitcore.portal`)
- Shared configuration and utilities (`fitcore.core`)
- Supabase integration (`fitcore.db`)
"""
