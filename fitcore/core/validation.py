from __future__ import annotations

import re

from pydantic.networks import validate_email
from pydantic_core import PydanticCustomError


_PHONE_REGEX = re.compile(r"^\+?\d{7,15}$")


def normalize_phone(raw: str) -> str | None:
    """
    Basic phone normalization and validation.

    Accepts digits with an optional leading '+'; spaces, dashes, dots and
    parentheses are stripped first, so "(555) 010-0100" is accepted.
    Returns the normalized phone or None if the value looks invalid.
    """

    value = re.sub(r"[\s\-().]", "", raw.strip())
    if not _PHONE_REGEX.match(value):
        return None
    return value


def clean_text(raw: str | None) -> str:
    """Collapse surrounding whitespace; None becomes an empty string."""
    return (raw or "").strip()


def normalize_email(raw: str) -> str | None:
    """
    Validate an e-mail address; returns the normalized address or None.
    """

    try:
        _, email = validate_email(raw.strip())
    except PydanticCustomError:
        return None
    return email
