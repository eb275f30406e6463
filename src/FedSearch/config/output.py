"""Output configuration for search result writers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from FedSearch.config.common import expect_str, expect_str_list, get_optional_value, get_section

_ALLOWED_FORMATS = {"console", "json"}


@dataclass(frozen=True, slots=True)
class OutputConfig:
    """Validated ``output`` section.

    Attributes:
        base_dir: Directory that file writers write under.
        formats: Enabled writers, in order.
    """

    base_dir: str = "output"
    formats: tuple[str, ...] = ("console",)


def load_output(raw: Mapping[str, Any]) -> OutputConfig:
    """Load the optional ``output`` section.

    Raises:
        TypeError: If config types are invalid.
    """
    section = get_section(raw, "output")
    defaults = OutputConfig()
    formats = expect_str_list(get_optional_value(section, "formats", list(defaults.formats)), "output.formats")
    return OutputConfig(
        base_dir=expect_str(get_optional_value(section, "base_dir", defaults.base_dir), "output.base_dir"),
        formats=tuple(item.lower() for item in formats),
    )


def check_output(config: OutputConfig) -> None:
    """Validate output constraints.

    Raises:
        ValueError: If no format or an unknown format is configured.
    """
    if not config.formats:
        raise ValueError("output.formats must include at least one format")
    unknown = set(config.formats) - _ALLOWED_FORMATS
    if unknown:
        raise ValueError(f"output.formats has unknown formats: {sorted(unknown)}")
    if "json" in config.formats and not config.base_dir.strip():
        raise ValueError("output.base_dir must not be empty")
