"""
Canonical key normalization.

Pallet and GRN ids arrive from spreadsheets, CSV files and JSON columns in
mixed representations (101, 101.0, "101", " 101 "). Keys are reduced to one
string form for comparison only; stored cells keep their source value.

Text with leading zeros ("042") is an identifier, not a number, and is kept
verbatim so it never collides with "42".
"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

_NUMERIC_PATTERN = re.compile(r"^[+-]?(0|[1-9]\d*)(\.\d+)?$")


def _canonical_number(number: Decimal) -> str:
    if not number.is_finite():
        return str(number)
    if number == number.to_integral_value():
        return str(int(number))
    return format(number.normalize(), "f")


def canonical_key(value: Any) -> str:
    """
    Reduce a cell value to its canonical key string.

    Args:
        value: Raw cell value

    Returns:
        Canonical string ("" for blank cells)

    Examples:
        >>> canonical_key(101.0)
        '101'
        >>> canonical_key(" P-7 ")
        'P-7'
        >>> canonical_key("042")
        '042'
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (float, Decimal)):
        try:
            return _canonical_number(Decimal(str(value)))
        except InvalidOperation:
            return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()

    text = str(value).strip()
    if _NUMERIC_PATTERN.match(text):
        return _canonical_number(Decimal(text))
    return text


def cells_equal(left: Any, right: Any) -> bool:
    """Compare two cell values by canonical form."""
    return canonical_key(left) == canonical_key(right)


def is_blank(value: Any) -> bool:
    """True for None and whitespace-only strings."""
    return value is None or (isinstance(value, str) and value.strip() == "")


def is_explicit_false(value: Any) -> bool:
    """
    True only for boolean False or the string "FALSE" (any case).

    Blank, "0", "no" and anything else are not an explicit false.
    """
    if value is False:
        return True
    return isinstance(value, str) and value.strip().upper() == "FALSE"


def is_zero_quantity(value: Any) -> bool:
    """True when a quantity cell is blank or numerically zero."""
    if is_blank(value):
        return True
    if isinstance(value, bool):
        return False
    try:
        return Decimal(str(value).strip()) == 0
    except InvalidOperation:
        return False
