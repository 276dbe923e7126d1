"""
Unit tests for key canonicalization and cell comparisons.

Includes property-based testing with hypothesis for key normalization.
"""

from datetime import date, datetime

import pytest
from hypothesis import given
from hypothesis import strategies as st

from palletsync.core.schema import (
    canonical_key,
    cells_equal,
    is_blank,
    is_explicit_false,
    is_zero_quantity,
)


class TestCanonicalKey:
    """Tests for canonical_key"""

    @pytest.mark.parametrize("value", [101, 101.0, "101", " 101 ", "101.0"])
    def test_numeric_representations_collapse(self, value):
        """Test every representation of 101 yields the same key"""
        assert canonical_key(value) == "101"

    @pytest.mark.parametrize("text,number", [("042", "42"), ("0101", "101"), ("007", "7"), ("00", "0")])
    def test_leading_zero_text_is_not_a_number(self, text, number):
        """Test zero-padded ids stay distinct from the unpadded id"""
        assert canonical_key(text) == text
        assert canonical_key(f" {text} ") == text
        assert not cells_equal(text, number)

    def test_text_keys_are_stripped_only(self):
        assert canonical_key("  PLT-0042 ") == "PLT-0042"
        assert canonical_key("plt-0042") == "plt-0042"

    def test_non_integral_number(self):
        assert canonical_key(12.5) == "12.5"
        assert canonical_key("12.50") == "12.5"

    def test_blank_values(self):
        assert canonical_key(None) == ""
        assert canonical_key("   ") == ""

    def test_booleans(self):
        assert canonical_key(True) == "TRUE"
        assert canonical_key(False) == "FALSE"

    def test_dates_use_iso_format(self):
        assert canonical_key(date(2026, 5, 1)) == "2026-05-01"
        assert canonical_key(datetime(2025, 11, 17, 8, 30)) == "2025-11-17T08:30:00"

    @given(st.integers(min_value=-10**9, max_value=10**9))
    def test_property_int_float_and_text_agree(self, n):
        """Property test: an integer key compares equal in every representation"""
        expected = canonical_key(n)
        assert canonical_key(float(n)) == expected
        assert canonical_key(str(n)) == expected
        assert canonical_key(f"  {n}  ") == expected

    @given(st.text(alphabet=st.characters(blacklist_categories=("Zs", "Cc")), min_size=1))
    def test_property_idempotent(self, value):
        """Property test: canonicalizing twice changes nothing"""
        once = canonical_key(value)
        assert canonical_key(once) == once


class TestCellHelpers:
    """Tests for cells_equal, is_blank, is_explicit_false, is_zero_quantity"""

    def test_cells_equal_across_types(self):
        assert cells_equal("10", 10)
        assert cells_equal(None, "")
        assert not cells_equal("10", 11)

    def test_is_blank(self):
        assert is_blank(None)
        assert is_blank("  ")
        assert not is_blank(0)
        assert not is_blank(False)

    @pytest.mark.parametrize("value", [False, "FALSE", "false", " False "])
    def test_explicit_false(self, value):
        assert is_explicit_false(value)

    @pytest.mark.parametrize("value", [True, "TRUE", "", None, 0, "0", "no"])
    def test_not_explicit_false(self, value):
        assert not is_explicit_false(value)

    @pytest.mark.parametrize("value", [0, 0.0, "0", "0.0", "00", " -0 ", "", None])
    def test_zero_quantity(self, value):
        assert is_zero_quantity(value)

    @pytest.mark.parametrize("value", [1, "10", -3, "0.5", "10 boxes", "n/a", True])
    def test_non_zero_quantity(self, value):
        assert not is_zero_quantity(value)
