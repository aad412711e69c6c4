from __future__ import annotations

import os
from functools import lru_cache
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import BaseModel, HttpUrl, ValidationError, field_validator


REQUIRED_KEYS = ("SUPABASE_URL", "SUPABASE_ANON_KEY", "BOT_TOKEN")


class Settings(BaseModel):
    bot_token: str
    supabase_url: HttpUrl
    supabase_anon_key: str
    gym_timezone: str = "UTC"
    environment: Literal["local", "staging", "production"] = "local"

    @field_validator("bot_token", "supabase_anon_key")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("gym_timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone {value!r}") from exc
        return value

    @property
    def is_debug(self) -> bool:
        return self.environment == "local"

    @property
    def timezone(self) -> ZoneInfo:
        return ZoneInfo(self.gym_timezone)


def _build_settings() -> Settings:
    # Load .env file once on first settings build (for local development)
    load_dotenv()

    missing = [key for key in REQUIRED_KEYS if not os.environ.get(key)]
    if missing:
        raise RuntimeError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    try:
        return Settings(
            bot_token=os.environ["BOT_TOKEN"],
            supabase_url=os.environ["SUPABASE_URL"],
            supabase_anon_key=os.environ["SUPABASE_ANON_KEY"],
            gym_timezone=os.getenv("GYM_TIMEZONE", "UTC"),
            environment=os.getenv("ENVIRONMENT", "local"),
        )
    except ValidationError as exc:
        raise RuntimeError(f"Invalid settings: {exc}") from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Cached accessor for application settings.

    Reads environment variables once and validates them with Pydantic.
    Raises RuntimeError when the Supabase URL, the public API key or the
    bot token is absent, so the process never starts half-configured.
    """

    return _build_settings()
