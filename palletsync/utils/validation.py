"""
Input validation utilities for the pallet-sync CLI and stores.

Provides reusable validation functions for pallet ids, file paths and SQL
identifiers to ensure data integrity and prevent injection attacks.
"""

import re


class ValidationError(ValueError):
    """Raised when input validation fails."""
    pass


def validate_pallet_id(pallet_id: str, field_name: str = "pallet_id") -> str:
    """
    Validate a pallet id given on the command line.

    Any printable text is accepted; control characters are rejected.

    Args:
        pallet_id: The pallet id to validate
        field_name: Name of the field (for error messages)

    Returns:
        The validated pallet id (stripped of whitespace)

    Raises:
        ValidationError: If validation fails

    Examples:
        >>> validate_pallet_id("PLT-0042")
        'PLT-0042'
        >>> validate_pallet_id("1001")
        '1001'
        >>> validate_pallet_id("PLT 0042")
        'PLT 0042'
        >>> validate_pallet_id("P1\\tX")  # doctest: +SKIP
        ValidationError: pallet_id contains control characters
    """
    if not pallet_id or not isinstance(pallet_id, str):
        raise ValidationError(f"{field_name} must be a non-empty string")

    pallet_id = pallet_id.strip()

    if not pallet_id:
        raise ValidationError(f"{field_name} cannot be empty or whitespace-only")

    if re.search(r'[\x00-\x1f\x7f]', pallet_id):
        raise ValidationError(f"{field_name} contains control characters")

    if len(pallet_id) > 255:
        raise ValidationError(f"{field_name} exceeds maximum length of 255 characters")

    return pallet_id


def sanitize_sql_identifier(identifier: str, field_name: str = "identifier") -> str:
    """
    Sanitize an SQL identifier (table name, column name, etc.).

    Args:
        identifier: The identifier to sanitize
        field_name: Name of the field (for error messages)

    Returns:
        The validated identifier

    Raises:
        ValidationError: If validation fails

    Examples:
        >>> sanitize_sql_identifier("sheet_rows")
        'sheet_rows'
        >>> sanitize_sql_identifier("rows; DROP TABLE x;")  # doctest: +SKIP
        ValidationError: identifier contains invalid characters
    """
    if not identifier or not isinstance(identifier, str):
        raise ValidationError(f"{field_name} must be a non-empty string")

    identifier = identifier.strip()

    # SQL identifiers: alphanumeric and underscores only, must start with letter or underscore
    if not re.match(r'^[a-zA-Z_][a-zA-Z0-9_]*$', identifier):
        raise ValidationError(
            f"{field_name} contains invalid characters. "
            "SQL identifiers must start with a letter or underscore and contain only "
            "alphanumeric characters and underscores."
        )

    if len(identifier) > 63:  # PostgreSQL limit
        raise ValidationError(f"{field_name} exceeds PostgreSQL maximum length of 63 characters")

    reserved_keywords = {
        "select", "insert", "update", "delete", "drop", "create", "alter",
        "table", "database", "index", "view", "user", "grant", "revoke"
    }
    if identifier.lower() in reserved_keywords:
        raise ValidationError(
            f"{field_name} '{identifier}' is a reserved SQL keyword. "
            "Please use a different name."
        )

    return identifier


def validate_file_path(file_path: str, field_name: str = "file_path") -> str:
    """
    Validate a file or directory path for security.

    Args:
        file_path: The path to validate
        field_name: Name of the field (for error messages)

    Returns:
        The validated path (stripped of whitespace)

    Raises:
        ValidationError: If validation fails

    Examples:
        >>> validate_file_path("data/tables")
        'data/tables'
        >>> validate_file_path("../../../etc")  # doctest: +SKIP
        ValidationError: file_path contains path traversal characters
    """
    if not file_path or not isinstance(file_path, str):
        raise ValidationError(f"{field_name} must be a non-empty string")

    file_path = file_path.strip()

    if not file_path:
        raise ValidationError(f"{field_name} cannot be empty or whitespace-only")

    if ".." in file_path:
        raise ValidationError(f"{field_name} contains path traversal characters (..)")

    if "\x00" in file_path:
        raise ValidationError(f"{field_name} contains null bytes")

    if len(file_path) > 4096:  # Linux PATH_MAX
        raise ValidationError(f"{field_name} exceeds maximum length of 4096 characters")

    return file_path
