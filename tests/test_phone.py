"""Tests for phone normalization."""

import pytest

from backend.phone import digits_of, to_e164


class TestToE164:
    """Test the E.164 canonicalization policy."""

    @pytest.mark.parametrize("raw", ["4155551212", "(415) 555-1212", "415.555.1212", " 415 555 1212 "])
    def test_ten_digits_get_us_prefix(self, raw):
        """10-digit runs are treated as US/Canada."""
        assert to_e164(raw) == "+14155551212"

    def test_eleven_digits_leading_one(self):
        assert to_e164("14155551212") == "+14155551212"
        assert to_e164("1-415-555-1212") == "+14155551212"

    def test_plus_prefix_keeps_digits_only(self):
        """International input is stripped to + and digits."""
        assert to_e164("+44 20 7946 0958") == "+442079460958"
        assert to_e164(" +1 (415) 555-1212 ") == "+14155551212"

    def test_plus_prefix_not_reinterpreted(self):
        """A + number is not rewritten even if it looks like a US number."""
        assert to_e164("+4155551212") == "+4155551212"

    def test_loose_international_fallback(self):
        assert to_e164("5551234") == "+5551234"
        assert to_e164("442079460958") == "+442079460958"
        assert to_e164("123456789012345") == "+123456789012345"

    @pytest.mark.parametrize("raw", [None, "", "   ", "abc", "123456", "1234567890123456", "+", "+ ()"])
    def test_no_canonical_form(self, raw):
        assert to_e164(raw) is None

    def test_eleven_digits_not_starting_with_one_falls_back(self):
        assert to_e164("24155551212") == "+24155551212"

    def test_numeric_input(self):
        assert to_e164(4155551212) == "+14155551212"

    def test_non_ascii_digits_dropped(self):
        """Only ASCII 0-9 survive into the key."""
        assert to_e164("+1 415 555 12¹²") == "+141555512"
        assert to_e164("+1 415 555 1212²").isascii()

    def test_arabic_indic_digits_not_canonical(self):
        assert to_e164("٤١٥٥٥٥١٢١٢") is None

    def test_mixed_scripts_do_not_create_new_keys(self):
        """A number padded with other-script digits keys the same as its ASCII digits."""
        assert to_e164("415555121٢") == to_e164("415555121")


class TestDigitsOf:
    def test_strips_plus(self):
        assert digits_of("+14155551212") == "14155551212"

    def test_empty(self):
        assert digits_of("") == ""
        assert digits_of(None) == ""
