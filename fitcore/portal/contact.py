from __future__ import annotations

import logging
from dataclasses import dataclass

from pydantic import BaseModel, EmailStr, field_validator

from fitcore.core.validation import clean_text
from fitcore.db.models import ContactSubmission
from fitcore.db.supabase import SupabaseClient, SupabaseError

logger = logging.getLogger(__name__)


SUCCESS_BANNER_SECONDS = 5
SUCCESS_MESSAGE = "Thank you! Your message has been sent successfully."


class ContactForm(BaseModel):
    name: str
    email: EmailStr
    message: str

    @field_validator("name", "message", mode="before")
    @classmethod
    def _required(cls, value: str | None) -> str:
        value = clean_text(value)
        if not value:
            raise ValueError("This field is required")
        return value

    @field_validator("email", mode="before")
    @classmethod
    def _strip_email(cls, value: str | None) -> str:
        return clean_text(value)

    def to_submission(self) -> ContactSubmission:
        return ContactSubmission(name=self.name, email=str(self.email), message=self.message)


@dataclass
class ContactDraft:
    """Fields typed so far; cleared to empty strings after a successful send."""

    name: str = ""
    email: str = ""
    message: str = ""

    def to_form(self) -> ContactForm:
        return ContactForm(name=self.name, email=self.email, message=self.message)

    def clear(self) -> None:
        self.name = ""
        self.email = ""
        self.message = ""


class ContactService:
    """
    Stores contact form submissions. A failed insert is only logged; the
    visitor gets no error message.
    """

    def __init__(self, supabase: SupabaseClient) -> None:
        self._supabase = supabase

    async def submit(self, form: ContactForm) -> bool:
        try:
            await self._supabase.create_contact_submission(form.to_submission())
        except SupabaseError as exc:
            logger.error("Error submitting contact form: %s", exc.message)
            return False
        return True

    async def send(self, draft: ContactDraft) -> bool:
        """
        Validate and submit a draft, clearing it on success.

        Raises pydantic.ValidationError when a field is missing or invalid.
        """

        sent = await self.submit(draft.to_form())
        if sent:
            draft.clear()
        return sent
