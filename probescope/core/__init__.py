"""Core modules: chip catalog, probe discovery, configuration."""

from probescope.core.errors import (
    ProbescopeError,
    CatalogReadError,
    ProbeEnumerationError,
    ProbeSelectorError,
    UnsupportedShellError,
    CompletionPatternMismatch,
    ConfigError,
)
from probescope.core.chips import ChipCatalog, ChipFamily, ChipVariant, families
from probescope.core.probes import (
    ProbeDescriptor,
    ProbeSelector,
    ProbeType,
    KNOWN_PROBES,
    list_all,
    find_probe,
)
from probescope.core.config import (
    ConfigManager,
    ProbescopeConfig,
    get_config,
    get_config_manager,
    reload_config,
)

__all__ = [
    "ProbescopeError",
    "CatalogReadError",
    "ProbeEnumerationError",
    "ProbeSelectorError",
    "UnsupportedShellError",
    "CompletionPatternMismatch",
    "ConfigError",
    "ChipCatalog",
    "ChipFamily",
    "ChipVariant",
    "families",
    "ProbeDescriptor",
    "ProbeSelector",
    "ProbeType",
    "KNOWN_PROBES",
    "list_all",
    "find_probe",
    "ConfigManager",
    "ProbescopeConfig",
    "get_config",
    "get_config_manager",
    "reload_config",
]
