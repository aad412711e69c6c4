"""Tests for the contact form."""

import json

import pytest
from pydantic import ValidationError

from fitcore.portal.contact import ContactDraft, ContactForm, ContactService


@pytest.fixture
def draft():
    return ContactDraft(name="  Sam Lee ", email="sam@example.com", message="Do you offer day passes?")


class TestContactForm:
    """Tests for ContactForm validation."""

    def test_strips_fields(self):
        """Test surrounding whitespace is removed."""
        form = ContactForm(name=" Sam ", email=" sam@example.com ", message=" Hi ")

        assert form.name == "Sam"
        assert str(form.email) == "sam@example.com"
        assert form.message == "Hi"

    @pytest.mark.parametrize("field", ["name", "email", "message"])
    def test_required(self, field):
        """Test every field is required."""
        values = {"name": "Sam", "email": "sam@example.com", "message": "Hi"}
        values[field] = "   "

        with pytest.raises(ValidationError):
            ContactForm(**values)

    def test_invalid_email(self):
        """Test malformed addresses are rejected."""
        with pytest.raises(ValidationError):
            ContactForm(name="Sam", email="not-an-email", message="Hi")


class TestContactService:
    """Tests for ContactService."""

    async def test_send_stores_one_submission(self, supabase, backend, draft):
        """Test one record is written and the draft is cleared."""
        sent = await ContactService(supabase).send(draft)

        assert sent
        assert len(backend.tables["contact_submissions"]) == 1
        row = backend.tables["contact_submissions"][0]
        assert row["name"] == "Sam Lee"
        assert row["status"] == "new"
        request = backend.requests_to("POST", "/rest/v1/contact_submissions")[0]
        assert json.loads(request.content) == {
            "name": "Sam Lee",
            "email": "sam@example.com",
            "message": "Do you offer day passes?",
        }
        assert (draft.name, draft.email, draft.message) == ("", "", "")

    async def test_failure_keeps_draft(self, supabase, backend, draft):
        """Test a rejected insert is logged and the draft survives."""
        backend.fail("POST", "/rest/v1/contact_submissions", status=500)

        sent = await ContactService(supabase).send(draft)

        assert not sent
        assert draft.message == "Do you offer day passes?"

    async def test_invalid_draft_sends_nothing(self, supabase, backend):
        """Test validation errors stop before any request."""
        with pytest.raises(ValidationError):
            await ContactService(supabase).send(ContactDraft(name="Sam", email="sam@example.com"))

        assert backend.requests_to("POST", "/rest/v1/contact_submissions") == []
