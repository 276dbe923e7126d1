"""
Unit tests for CLI input validation helpers
"""

import pytest

from palletsync.utils.validation import (
    ValidationError,
    sanitize_sql_identifier,
    validate_file_path,
    validate_pallet_id,
)


class TestValidatePalletId:
    """Tests for validate_pallet_id"""

    @pytest.mark.parametrize("value", ["PLT-0042", "1001", "A_1.2", "B/7", "PLT 0042", "P1;DROP", "Palette-\u00e9"])
    def test_valid_ids(self, value):
        assert validate_pallet_id(value) == value

    def test_strips_whitespace(self):
        assert validate_pallet_id("  P1 ") == "P1"

    @pytest.mark.parametrize("value", ["", "   ", "P1\x00", "P\n1", "P1\x7f", "x" * 256])
    def test_invalid_ids(self, value):
        with pytest.raises(ValidationError):
            validate_pallet_id(value)

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            validate_pallet_id("")


class TestSanitizeSqlIdentifier:
    """Tests for sanitize_sql_identifier"""

    def test_valid_identifier(self):
        assert sanitize_sql_identifier("sheet_rows") == "sheet_rows"

    @pytest.mark.parametrize("value", ["1rows", "rows; DROP TABLE x;", "table", "a" * 64, ""])
    def test_invalid_identifiers(self, value):
        with pytest.raises(ValidationError):
            sanitize_sql_identifier(value)


class TestValidateFilePath:
    """Tests for validate_file_path"""

    def test_valid_path(self):
        assert validate_file_path(" data/tables ") == "data/tables"

    @pytest.mark.parametrize("value", ["", "../etc", "data/\x00x"])
    def test_invalid_paths(self, value):
        with pytest.raises(ValidationError):
            validate_file_path(value)
