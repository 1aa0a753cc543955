"""
Validation utilities for request payloads.

All helpers raise `ValidationError` (HTTP 400) with a message naming the field.
"""
import re
from typing import Any, Iterable

from ..config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from .error_handlers import ValidationError

# Largest value an INTEGER column holds on every supported store (Postgres int4).
MAX_DB_INT = 2**31 - 1


def validate_string_field(
    value: Any,
    field_name: str,
    min_length: int = 1,
    max_length: int = 1000,
    required: bool = True,
    pattern: str | None = None,
) -> str | None:
    """Validate a string field with common rules."""
    if value is None:
        if required:
            raise ValidationError(f"{field_name} is required")
        return None

    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")

    value = value.strip()

    if not value:
        if required:
            raise ValidationError(f"{field_name} cannot be empty")
        return None

    if len(value) < min_length:
        raise ValidationError(f"{field_name} must be at least {min_length} characters")

    if len(value) > max_length:
        raise ValidationError(f"{field_name} must not exceed {max_length} characters")

    if pattern and not re.match(pattern, value):
        raise ValidationError(f"{field_name} format is invalid")

    return value


def validate_integer_field(
    value: Any,
    field_name: str,
    min_value: int | None = None,
    max_value: int | None = None,
    required: bool = True,
) -> int | None:
    """Validate an integer field."""
    if value is None:
        if required:
            raise ValidationError(f"{field_name} is required")
        return None

    # bool is an int subclass; "true" is never a valid count.
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a valid integer")

    if not isinstance(value, int):
        try:
            value = int(value)
        except (ValueError, TypeError):
            raise ValidationError(f"{field_name} must be a valid integer")

    if min_value is not None and value < min_value:
        raise ValidationError(f"{field_name} must be at least {min_value}")

    if max_value is not None and value > max_value:
        raise ValidationError(f"{field_name} must not exceed {max_value}")

    if abs(value) > MAX_DB_INT:
        raise ValidationError(f"{field_name} is out of range")

    return value


def validate_choice(value: Any, field_name: str, allowed: Iterable[str], default: str | None = None) -> str:
    """Validate a status-like literal against a closed set."""
    if value is None or (isinstance(value, str) and not value.strip()):
        if default is not None:
            return default
        raise ValidationError(f"{field_name} is required")

    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")

    value = value.strip().lower()
    allowed = list(allowed)
    if value not in allowed:
        raise ValidationError(f"Invalid {field_name}. Must be one of: {', '.join(allowed)}")

    return value


def validate_string_list(value: Any, field_name: str, max_items: int = 50, max_length: int = 100) -> list[str]:
    """Clean a list of short strings: trim, drop blanks, de-duplicate keeping first occurrence."""
    if value is None:
        return []
    if not isinstance(value, (list, tuple, set)):
        raise ValidationError(f"{field_name} must be a list of strings")

    cleaned: list[str] = []
    seen: set[str] = set()
    for item in value:
        if not isinstance(item, str):
            raise ValidationError(f"{field_name} must be a list of strings")
        item = item.strip()
        if not item:
            continue
        if len(item) > max_length:
            raise ValidationError(f"{field_name} entries must not exceed {max_length} characters")
        key = item.lower()
        if key in seen:
            continue
        seen.add(key)
        cleaned.append(item)

    if len(cleaned) > max_items:
        raise ValidationError(f"{field_name} must not have more than {max_items} entries")
    return cleaned


def validate_pagination(page: Any, limit: Any) -> tuple[int, int]:
    page = validate_integer_field(page, "page", min_value=1, max_value=MAX_DB_INT // MAX_PAGE_SIZE, required=False) or 1
    limit = validate_integer_field(limit, "limit", min_value=1, max_value=MAX_PAGE_SIZE, required=False)
    return page, limit or DEFAULT_PAGE_SIZE
