"""Tests for text normalization."""

import math

import pytest
import regex

from linkage.normalize import clean_text, normalize_name, truncate_year

SAMPLES = [
    "Acme Corp v. Example, Inc.",
    "Núñez v. Caribbean Int'l News Corp.",
    "Société Générale, LLC",
    "lllcc",
    "LLLLCC and more",
    "\tTabs\nand   newlines ",
    "Ünïcödé — dashes – and “quotes”",
    "Straße 42",
    "",
    "   ",
]


class TestNormalizeName:
    """normalize_name canonicalizes identifying fields."""

    def test_pipeline(self):
        """Lowercases, strips accents and punctuation, drops llc."""
        assert normalize_name("Núñez v. Caribbean Int'l News Corp.") == "nunez v caribbean intl news corp"
        assert normalize_name("Seltzer v. Green Day, Inc.") == "seltzer v green day inc"
        assert normalize_name("Righthaven LLC v. Jama") == "righthaven v jama"

    @pytest.mark.parametrize("text", SAMPLES)
    def test_idempotent(self, text):
        """Applying it twice changes nothing."""
        once = normalize_name(text)
        assert normalize_name(once) == once

    @pytest.mark.parametrize("text", SAMPLES)
    def test_output_alphabet(self, text):
        """Only lowercase letters, digits and single spaces remain."""
        result = normalize_name(text)
        assert regex.fullmatch(r"[a-z0-9 ]*", result)
        assert "llc" not in result

    def test_spliced_llc_removed(self):
        """Removing llc cannot leave a new llc behind."""
        assert normalize_name("llllcc") == ""
        assert normalize_name("lllcc") == "lc"

    @pytest.mark.parametrize("value", [None, "", math.nan, "!!!", "LLC"])
    def test_total_on_missing(self, value):
        """Missing or empty input gives an empty string."""
        assert normalize_name(value) == ""

    def test_non_string_input(self):
        """Numbers are converted to text."""
        assert normalize_name(2015) == "2015"

    def test_custom_strip_tokens(self):
        """Additional organizational suffixes can be stripped."""
        assert normalize_name("Acme Inc v. Beta LLC", strip_tokens=("llc", "inc")) == "acme v beta"


class TestTruncateYear:
    """truncate_year keeps the four-character year."""

    @pytest.mark.parametrize(
        "value, expected",
        [("2015-03-01", "2015"), ("2015", "2015"), (2015, "2015"), (2015.0, "2015"), (None, ""), (" 1994 ", "1994")],
    )
    def test_truncate(self, value, expected):
        assert truncate_year(value) == expected


def test_clean_text_collapses_whitespace():
    assert clean_text("  a \n b ") == "a b"
    assert clean_text(None) == ""
