"""Query-language configuration.

Controls whether queries are parsed at all, the keyword vocabulary used for
abbreviation expansion, which keys are dates, and a static contact table.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from FedSearch.config.common import (
    expect_bool,
    expect_mapping,
    expect_str_list,
    get_optional_value,
    get_section,
)
from FedSearch.parsing.keywords import DEFAULT_DATE_KEYS, DEFAULT_EXPANDABLE_KEYS


@dataclass(frozen=True, slots=True)
class QueryConfig:
    """Validated ``query`` section.

    Attributes:
        use_parsed_queries: When False every engine receives the raw query text.
        expandable_keys: Keyword vocabulary for abbreviation expansion.
        date_keys: Keys whose values are normalized as dates.
        contacts: Static contact table, name -> addresses.
    """

    use_parsed_queries: bool = True
    expandable_keys: tuple[str, ...] = tuple(DEFAULT_EXPANDABLE_KEYS)
    date_keys: tuple[str, ...] = tuple(DEFAULT_DATE_KEYS)
    contacts: Mapping[str, tuple[str, ...]] = field(default_factory=dict)


def load_query(raw: Mapping[str, Any]) -> QueryConfig:
    """Load the optional ``query`` section.

    Raises:
        TypeError: If a value has the wrong type.
    """
    section = get_section(raw, "query")
    defaults = QueryConfig()

    contacts_raw = expect_mapping(get_optional_value(section, "contacts", {}) or {}, "query.contacts")
    contacts = {
        str(name): tuple(expect_str_list(addresses, f"query.contacts.{name}"))
        for name, addresses in contacts_raw.items()
    }

    return QueryConfig(
        use_parsed_queries=expect_bool(
            get_optional_value(section, "use_parsed_queries", defaults.use_parsed_queries),
            "query.use_parsed_queries",
        ),
        expandable_keys=_lowered(
            get_optional_value(section, "expandable_keys", list(defaults.expandable_keys)),
            "query.expandable_keys",
        ),
        date_keys=_lowered(get_optional_value(section, "date_keys", list(defaults.date_keys)), "query.date_keys"),
        contacts=contacts,
    )


def check_query(config: QueryConfig) -> None:
    """Validate query constraints.

    Raises:
        ValueError: If the vocabulary is empty or a contact has no addresses.
    """
    if not config.expandable_keys:
        raise ValueError("query.expandable_keys must include at least one key")
    for name, addresses in config.contacts.items():
        if not addresses:
            raise ValueError(f"query.contacts.{name} must list at least one address")


def _lowered(value: Any, config_key: str) -> tuple[str, ...]:
    return tuple(item.strip().lower() for item in expect_str_list(value, config_key) if item.strip())
