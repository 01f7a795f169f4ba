"""Helpers for turning loosely-typed documents into validated fields.

Every model decodes its stored document through these helpers so that a
malformed document fails at the store boundary with a ``DecodeError`` instead
of leaking ``KeyError``/``TypeError`` further in. The same helpers validate
request payloads when called with ``error=ValidationError``.
"""

from __future__ import annotations

import datetime
from typing import Any

from bandsync.errors import AppError, DecodeError

_MISSING = object()


def require_str(
    data: dict[str, Any],
    key: str,
    *,
    allow_empty: bool = False,
    error: type[AppError] = DecodeError,
) -> str:
    """Return a required string field."""
    value = data.get(key, _MISSING)
    if value is _MISSING or value is None:
        raise error(f"Field '{key}' is required.")
    if not isinstance(value, str):
        raise error(f"Field '{key}' must be a string.")
    if not allow_empty and not value.strip():
        raise error(f"Field '{key}' must not be empty.")
    return value


def optional_str(
    data: dict[str, Any], key: str, *, error: type[AppError] = DecodeError
) -> str | None:
    """Return an optional string field, treating empty strings as None."""
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise error(f"Field '{key}' must be a string.")
    return value or None


def str_list(
    data: dict[str, Any], key: str, *, error: type[AppError] = DecodeError
) -> list[str]:
    """Return a list-of-strings field, defaulting to an empty list."""
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, (list, tuple)) or not all(
        isinstance(item, str) for item in value
    ):
        raise error(f"Field '{key}' must be a list of strings.")
    return list(value)


def as_float(
    data: dict[str, Any],
    key: str,
    *,
    default: Any = _MISSING,
    error: type[AppError] = DecodeError,
) -> Any:
    """Return a numeric field as a float."""
    value = data.get(key)
    if value is None:
        if default is _MISSING:
            raise error(f"Field '{key}' is required.")
        return default
    if isinstance(value, bool):
        raise error(f"Field '{key}' must be a number.")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise error(f"Field '{key}' must be a number.") from e


def as_int(
    data: dict[str, Any],
    key: str,
    *,
    default: Any = _MISSING,
    error: type[AppError] = DecodeError,
) -> Any:
    """Return an integer field."""
    value = data.get(key)
    if value is None:
        if default is _MISSING:
            raise error(f"Field '{key}' is required.")
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise error(f"Field '{key}' must be an integer.")
    try:
        number = float(value)
    except ValueError as e:
        raise error(f"Field '{key}' must be an integer.") from e
    if number != int(number):
        raise error(f"Field '{key}' must be an integer.")
    return int(number)


def as_bool(
    data: dict[str, Any],
    key: str,
    *,
    default: bool = False,
    error: type[AppError] = DecodeError,
) -> bool:
    """Return a boolean field."""
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise error(f"Field '{key}' must be a boolean.")
    return value


def parse_datetime(value: Any) -> datetime.datetime:
    """Parse a datetime, date or ISO-8601 string into an aware datetime.

    Naive values are taken to be UTC.
    """
    if isinstance(value, datetime.datetime):
        parsed = value
    elif isinstance(value, datetime.date):
        parsed = datetime.datetime.combine(value, datetime.time())
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.datetime.fromisoformat(text)
    else:
        raise ValueError(f"Not a datetime: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed


def as_datetime(
    data: dict[str, Any],
    key: str,
    *,
    required: bool = True,
    error: type[AppError] = DecodeError,
) -> datetime.datetime | None:
    """Return a datetime field."""
    value = data.get(key)
    if value is None:
        if required:
            raise error(f"Field '{key}' is required.")
        return None
    try:
        return parse_datetime(value)
    except ValueError as e:
        raise error(f"Field '{key}' must be an ISO-8601 datetime.") from e


def as_choice(
    data: dict[str, Any],
    key: str,
    enum_cls: Any,
    *,
    default: Any = _MISSING,
    error: type[AppError] = DecodeError,
) -> Any:
    """Return an enum member for a field, matching values case-insensitively."""
    value = data.get(key)
    if value is None:
        if default is _MISSING:
            raise error(f"Field '{key}' is required.")
        return default
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        for member in enum_cls:
            if member.value == lowered:
                return member
    allowed = ", ".join(member.value for member in enum_cls)
    raise error(f"Field '{key}' must be one of: {allowed}.")
