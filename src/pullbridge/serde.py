"""Shared validation utilities for payloads decoded from the instrumentation channel."""

from collections.abc import Mapping


def as_str_object_dict(value: object, *, field_name: str) -> dict[str, object]:
    """Validate and normalize a mapping value into ``dict[str, object]``."""
    if not isinstance(value, Mapping):
        msg = f"{field_name} must be a mapping."
        raise TypeError(msg)
    return {str(key): item for key, item in value.items()}


def require_string(value: object, *, field_name: str) -> str:
    """Validate a required non-empty string field."""
    if not isinstance(value, str) or not value:
        msg = f"{field_name} must be a non-empty string."
        raise TypeError(msg)
    return value


def optional_string(value: object, *, field_name: str) -> str | None:
    """Validate an optional string field."""
    if value is None:
        return None
    if not isinstance(value, str):
        msg = f"{field_name} must be a string or None."
        raise TypeError(msg)
    return value


def optional_int(value: object, *, field_name: str) -> int | None:
    """Validate an optional integer field (rejects booleans).

    Integral floats are accepted because JavaScript agents serialize every
    number the same way.
    """
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if not isinstance(value, int) or isinstance(value, bool):
        msg = f"{field_name} must be an int or None."
        raise TypeError(msg)
    return value


def require_int(value: object, *, field_name: str) -> int:
    """Validate a required integer field (rejects booleans)."""
    result = optional_int(value, field_name=field_name)
    if result is None:
        msg = f"{field_name} must be an int."
        raise TypeError(msg)
    return result


def require_non_negative_int(value: object, *, field_name: str) -> int:
    """Validate a required integer field that must be ``>= 0``."""
    result = require_int(value, field_name=field_name)
    if result < 0:
        msg = f"{field_name} must be >= 0."
        raise ValueError(msg)
    return result
