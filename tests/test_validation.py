"""Tests for input normalization helpers."""

import pytest

from fitcore.core.validation import clean_text, normalize_email, normalize_phone


class TestNormalizePhone:
    """Tests for normalize_phone."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("555-0100", "5550100"),
            ("(555) 010-0100", "5550100100"),
            ("+49 30 1234567", "+49301234567"),
            (" 555.123.4567 ", "5551234567"),
        ],
    )
    def test_accepts_common_formats(self, raw, expected):
        """Test separators are stripped from valid numbers."""
        assert normalize_phone(raw) == expected

    @pytest.mark.parametrize("raw", ["", "12345", "call me", "++123456789"])
    def test_rejects_invalid(self, raw):
        """Test values that are not phone numbers."""
        assert normalize_phone(raw) is None


class TestCleanText:
    """Tests for clean_text."""

    def test_strips(self):
        assert clean_text("  hello  ") == "hello"

    def test_none(self):
        assert clean_text(None) == ""


class TestNormalizeEmail:
    """Tests for normalize_email."""

    def test_valid(self):
        """Test valid addresses pass through."""
        assert normalize_email(" jane@example.com ") == "jane@example.com"

    def test_invalid(self):
        """Test invalid addresses give None."""
        assert normalize_email("jane@") is None
