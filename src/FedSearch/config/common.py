from __future__ import annotations

"""Validators shared by the config section loaders.

Each helper receives the dotted key path (``servers[2].timeout``) so that a
bad value in a layered config file is reported where the user wrote it.
"""

from typing import Any, Mapping


def get_section(raw: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    """Return a top-level section such as ``log`` or ``output``.

    Args:
        raw: Merged configuration mapping.
        key: Section name.

    Returns:
        The section, or an empty mapping when the file leaves it out.

    Raises:
        TypeError: If the section is present but is not a mapping.
    """
    section = raw.get(key)
    if section is None:
        return {}
    return expect_mapping(section, key)


def get_required_value(section: Mapping[str, Any], field: str, config_key: str) -> Any:
    """Return ``section[field]``, raising ValueError naming ``config_key`` if absent."""
    if field not in section:
        raise ValueError(f"Missing required config: {config_key}")
    return section[field]


def get_optional_value(section: Mapping[str, Any], field: str, default: Any) -> Any:
    return section.get(field, default)


def expect_str(value: Any, config_key: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{config_key} must be a string")
    return value


def expect_optional_str(value: Any, config_key: str) -> str | None:
    """Like :func:`expect_str`, but a missing backend option stays None."""
    if value is None:
        return None
    return expect_str(value, config_key)


def expect_bool(value: Any, config_key: str) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"{config_key} must be a boolean")
    return value


def expect_float(value: Any, config_key: str) -> float:
    """Validate a timeout in seconds. Integers are widened; booleans are rejected."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{config_key} must be a number")
    return float(value)


def expect_mapping(value: Any, config_key: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise TypeError(f"{config_key} must be an object")
    return value


def expect_str_list(value: Any, config_key: str) -> list[str]:
    """Validate a list of strings such as ``output.formats``.

    A bare string is taken as a one-item list, so ``formats: json`` works.

    Raises:
        TypeError: If the value is neither a string nor a list of strings.
    """
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise TypeError(f"{config_key} must be a list")
    items: list[str] = []
    for idx, item in enumerate(value):
        if not isinstance(item, str):
            raise TypeError(f"{config_key}[{idx}] must be a string")
        items.append(item)
    return items
