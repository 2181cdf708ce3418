# docimporter/core/functions/utils.py
"""
Shared helpers for reading handler configuration records.
"""
from typing import Any

from docimporter.core.functions.errors import ConfigurationError

TRUE_STRINGS = ("true", "yes", "on", "1")
FALSE_STRINGS = ("false", "no", "off", "0", "")


def to_bool(value: Any, default: bool = False, option: str = "option") -> bool:
    """
    Read a boolean option that may come from a text configuration.

    Args:
        value: Option value (bool, None, number or string such as "false")
        default: Returned when the value is None
        option: Option name used in the error message

    Returns:
        Boolean value

    Raises:
        ConfigurationError: The string is not a recognized boolean
    """
    if value is None:
        return default
    if isinstance(value, str):
        text = value.strip().lower()
        if text in TRUE_STRINGS:
            return True
        if text in FALSE_STRINGS:
            return False
        raise ConfigurationError(f"Invalid boolean for '{option}': {value!r}")
    return bool(value)


__all__ = ["to_bool"]
