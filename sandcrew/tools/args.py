"""Argument validation helpers for tool handlers."""

from typing import Any, Optional

from sandcrew.errors import ValidationError


def require_str(args: dict[str, Any], key: str) -> str:
    value = args.get(key)
    if not isinstance(value, str):
        raise ValidationError(f"Missing or invalid argument '{key}': expected a string")
    return value


def optional_str(args: dict[str, Any], key: str) -> Optional[str]:
    value = args.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError(f"Invalid argument '{key}': expected a string")
    return value


def optional_bool(args: dict[str, Any], key: str, default: bool = False) -> bool:
    value = args.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValidationError(f"Invalid argument '{key}': expected a boolean")
    return value


def optional_int(args: dict[str, Any], key: str) -> Optional[int]:
    value = args.get(key)
    if value is None:
        return None
    # bool is a subclass of int
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"Invalid argument '{key}': expected an integer")
    return value


def optional_str_list(args: dict[str, Any], key: str) -> list[str]:
    value = args.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValidationError(f"Invalid argument '{key}': expected a list of strings")
    return value
