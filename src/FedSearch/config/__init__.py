from __future__ import annotations

"""Public configuration API for FedSearch."""

from FedSearch.config.app import (
    DEFAULT_CONFIG_PATH,
    AppConfig,
    load_config,
    load_config_with_defaults,
    merge_config_dicts,
    parse_config_dict,
    parse_yaml,
)
from FedSearch.config.output import OutputConfig
from FedSearch.config.query import QueryConfig
from FedSearch.config.runtime import RuntimeConfig
from FedSearch.config.servers import EngineConfig, ServerConfig

__all__ = [
    "AppConfig",
    "RuntimeConfig",
    "QueryConfig",
    "EngineConfig",
    "ServerConfig",
    "OutputConfig",
    "DEFAULT_CONFIG_PATH",
    "load_config",
    "load_config_with_defaults",
    "merge_config_dicts",
    "parse_config_dict",
    "parse_yaml",
]
