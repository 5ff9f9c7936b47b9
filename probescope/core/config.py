"""
Configuration File Support for ProbeScope.

Provides TOML-based configuration management:
- Default config location (~/.probescope/config.toml)
- Project-level config (.probescope.toml)
- Environment variable overrides
- Config validation and display
"""

import os
import sys
from pathlib import Path
from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any, List
from enum import Enum

from probescope.core.errors import ConfigError

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


class ConfigSection(str, Enum):
    """Configuration sections."""
    CATALOG = "catalog"
    PROBES = "probes"
    COMPLETION = "completion"
    ADVANCED = "advanced"


@dataclass
class CatalogConfig:
    """Chip catalog configuration."""
    include_builtin: bool = True
    target_dirs: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CatalogConfig":
        """Create from dictionary."""
        return cls(
            include_builtin=data.get("include_builtin", True),
            target_dirs=list(data.get("target_dirs", [])),
        )


@dataclass
class ProbesConfig:
    """
    Probe enumeration configuration.

    ``extra_probes`` maps ``"vvvv:pppp"`` (lowercase hex) to a probe type
    name such as ``"CmsisDap"``.
    """
    extra_probes: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProbesConfig":
        """Create from dictionary."""
        return cls(extra_probes=dict(data.get("extra_probes", {})))


@dataclass
class CompletionConfig:
    """Shell completion configuration."""
    verify_syntax: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompletionConfig":
        """Create from dictionary."""
        return cls(verify_syntax=data.get("verify_syntax", True))


@dataclass
class AdvancedConfig:
    """Advanced configuration."""
    log_level: str = "WARNING"
    log_file: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AdvancedConfig":
        """Create from dictionary."""
        return cls(
            log_level=data.get("log_level", "WARNING"),
            log_file=data.get("log_file"),
        )


@dataclass
class ProbescopeConfig:
    """
    Complete ProbeScope configuration.

    Contains all configuration sections.
    """
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    probes: ProbesConfig = field(default_factory=ProbesConfig)
    completion: CompletionConfig = field(default_factory=CompletionConfig)
    advanced: AdvancedConfig = field(default_factory=AdvancedConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "catalog": self.catalog.to_dict(),
            "probes": self.probes.to_dict(),
            "completion": self.completion.to_dict(),
            "advanced": self.advanced.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProbescopeConfig":
        """Create from dictionary."""
        return cls(
            catalog=CatalogConfig.from_dict(data.get("catalog", {})),
            probes=ProbesConfig.from_dict(data.get("probes", {})),
            completion=CompletionConfig.from_dict(data.get("completion", {})),
            advanced=AdvancedConfig.from_dict(data.get("advanced", {})),
        )

    def get_value(self, key_path: str) -> Any:
        """
        Get a configuration value by dot-separated path.

        Args:
            key_path: Dot-separated path (e.g., "advanced.log_level")

        Returns:
            Configuration value
        """
        obj: Any = self.to_dict()

        for part in key_path.split("."):
            if isinstance(obj, dict) and part in obj:
                obj = obj[part]
            else:
                raise KeyError(f"Configuration key not found: {key_path}")

        return obj


class ConfigManager:
    """
    Configuration file manager.

    Handles loading configuration from multiple sources:
    1. Built-in defaults
    2. User config (~/.probescope/config.toml)
    3. Project config (.probescope.toml)
    4. Environment variables (PROBESCOPE_*)
    """

    DEFAULT_USER_CONFIG = Path.home() / ".probescope" / "config.toml"
    PROJECT_CONFIG_NAME = ".probescope.toml"
    ENV_PREFIX = "PROBESCOPE_"

    def __init__(
        self,
        user_config_path: Optional[Path] = None,
        project_config_path: Optional[Path] = None,
        load_env: bool = True
    ):
        """
        Initialize ConfigManager.

        Args:
            user_config_path: Custom user config path
            project_config_path: Custom project config path
            load_env: Whether to load from environment variables
        """
        self.user_config_path = user_config_path or self.DEFAULT_USER_CONFIG
        self.project_config_path = project_config_path
        self.load_env = load_env

        self._config = ProbescopeConfig()
        self._loaded_sources: List[str] = ["defaults"]

    def load(self) -> ProbescopeConfig:
        """
        Load configuration from all sources.

        Returns:
            Merged ProbescopeConfig
        """
        self._config = ProbescopeConfig()
        self._loaded_sources = ["defaults"]

        if self.user_config_path.exists():
            try:
                self._load_toml_file(self.user_config_path)
            except (OSError, tomllib.TOMLDecodeError) as e:
                raise ConfigError(f"Error loading user config: {e}") from e
            self._loaded_sources.append(f"user:{self.user_config_path}")

        project_config = self._find_project_config()
        if project_config and project_config.exists():
            try:
                self._load_toml_file(project_config)
            except (OSError, tomllib.TOMLDecodeError) as e:
                raise ConfigError(f"Error loading project config: {e}") from e
            self._loaded_sources.append(f"project:{project_config}")

        if self.load_env:
            self._load_environment()

        return self._config

    def get_config(self) -> ProbescopeConfig:
        """Get current configuration."""
        return self._config

    def get_loaded_sources(self) -> List[str]:
        """Get list of loaded configuration sources."""
        return self._loaded_sources.copy()

    def init_config(self, path: Optional[Path] = None) -> Path:
        """
        Write a new configuration file with the defaults.

        Args:
            path: Path for config file

        Returns:
            Path to created config file
        """
        path = path or self.user_config_path

        if path.exists():
            raise ConfigError(f"Config file already exists: {path}")

        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            f.write(self._generate_toml(ProbescopeConfig()))

        return path

    def get_value(self, key_path: str) -> Any:
        """Get a configuration value by dot-separated path."""
        return self._config.get_value(key_path)

    def show_config(self, section: Optional[str] = None) -> str:
        """
        Generate a display string for configuration.

        Args:
            section: Specific section to show (shows all if None)

        Returns:
            Formatted configuration string
        """
        config_dict = self._config.to_dict()

        if section:
            if section not in config_dict:
                raise ConfigError(f"Unknown section: {section}")
            config_dict = {section: config_dict[section]}

        return self._format_config_display(config_dict)

    def validate(self) -> List[str]:
        """
        Validate current configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        for directory in self._config.catalog.target_dirs:
            if not Path(directory).expanduser().is_dir():
                errors.append(f"catalog.target_dirs: not a directory: {directory}")

        from probescope.core.probes import ProbeType

        for key, type_name in self._config.probes.extra_probes.items():
            parts = key.split(":")
            if len(parts) != 2 or not all(_is_hex16(p) for p in parts):
                errors.append(f"probes.extra_probes: invalid VID:PID key '{key}'")
            if type_name not in ProbeType.__members__:
                errors.append(
                    f"probes.extra_probes: unknown probe type '{type_name}' "
                    f"(valid: {', '.join(ProbeType.__members__)})"
                )

        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self._config.advanced.log_level.upper() not in valid_log_levels:
            errors.append(f"advanced.log_level must be one of: {', '.join(valid_log_levels)}")

        return errors

    def _find_project_config(self) -> Optional[Path]:
        """Find project config file by walking up directory tree."""
        if self.project_config_path:
            return self.project_config_path

        current = Path.cwd()

        while current != current.parent:
            config_path = current / self.PROJECT_CONFIG_NAME
            if config_path.exists():
                return config_path
            current = current.parent

        return None

    def _load_toml_file(self, path: Path) -> None:
        """Load and merge a TOML config file."""
        with open(path, "rb") as f:
            data = tomllib.load(f)

        self._merge_config(data)

    def _merge_config(self, data: Dict[str, Any]) -> None:
        """Merge loaded config data into current config."""
        if "catalog" in data:
            self._config.catalog = CatalogConfig.from_dict({
                **self._config.catalog.to_dict(),
                **data["catalog"]
            })

        if "probes" in data:
            merged = dict(self._config.probes.extra_probes)
            merged.update(data["probes"].get("extra_probes", {}))
            self._config.probes = ProbesConfig(extra_probes=merged)

        if "completion" in data:
            self._config.completion = CompletionConfig.from_dict({
                **self._config.completion.to_dict(),
                **data["completion"]
            })

        if "advanced" in data:
            self._config.advanced = AdvancedConfig.from_dict({
                **self._config.advanced.to_dict(),
                **data["advanced"]
            })

    def _load_environment(self) -> None:
        """Load configuration from environment variables."""
        env_mappings = {
            f"{self.ENV_PREFIX}TARGET_DIRS": ("catalog", "target_dirs", self._parse_path_list),
            f"{self.ENV_PREFIX}BUILTIN_TARGETS": ("catalog", "include_builtin", self._parse_bool),
            f"{self.ENV_PREFIX}VERIFY_SYNTAX": ("completion", "verify_syntax", self._parse_bool),
            f"{self.ENV_PREFIX}LOG_LEVEL": ("advanced", "log_level", str),
            f"{self.ENV_PREFIX}LOG_FILE": ("advanced", "log_file", str),
        }

        for env_var, (section, key, converter) in env_mappings.items():
            value = os.environ.get(env_var)
            if value is not None:
                section_obj = getattr(self._config, section)
                setattr(section_obj, key, converter(value))
                if "environment" not in self._loaded_sources:
                    self._loaded_sources.append("environment")

    @staticmethod
    def _parse_bool(value: str) -> bool:
        """Parse boolean from string."""
        return value.lower() in ("true", "1", "yes", "on")

    @staticmethod
    def _parse_path_list(value: str) -> List[str]:
        """Parse an os.pathsep separated list of directories."""
        return [p for p in value.split(os.pathsep) if p]

    def _generate_toml(self, config: ProbescopeConfig) -> str:
        """Generate TOML content from config."""
        lines = [
            "# ProbeScope Configuration File",
            "",
            "# Chip catalog: extra directories of YAML target descriptions",
            "[catalog]",
            f"include_builtin = {str(config.catalog.include_builtin).lower()}",
        ]
        dirs_str = ", ".join(f'"{d}"' for d in config.catalog.target_dirs)
        lines.append(f"target_dirs = [{dirs_str}]")
        lines.append("")

        lines.append("# Additional debug probes, keyed by lowercase hex VID:PID")
        lines.append("[probes.extra_probes]")
        for key, type_name in config.probes.extra_probes.items():
            lines.append(f'"{key}" = "{type_name}"')
        lines.append("")

        lines.append("# Shell completion")
        lines.append("[completion]")
        lines.append(f"verify_syntax = {str(config.completion.verify_syntax).lower()}")
        lines.append("")

        lines.append("[advanced]")
        lines.append(f'log_level = "{config.advanced.log_level}"')
        if config.advanced.log_file:
            lines.append(f'log_file = "{config.advanced.log_file}"')
        lines.append("")

        return "\n".join(lines)

    def _format_config_display(self, config_dict: Dict[str, Any], indent: int = 0) -> str:
        """Format config dictionary for display."""
        lines = []
        prefix = "  " * indent

        for key, value in config_dict.items():
            if isinstance(value, dict):
                lines.append(f"{prefix}[{key}]")
                if value:
                    lines.append(self._format_config_display(value, indent + 1))
            elif isinstance(value, list):
                list_str = ", ".join(str(v) for v in value)
                lines.append(f"{prefix}{key} = [{list_str}]")
            elif isinstance(value, str):
                lines.append(f'{prefix}{key} = "{value}"')
            elif isinstance(value, bool):
                lines.append(f"{prefix}{key} = {str(value).lower()}")
            elif value is None:
                lines.append(f"{prefix}{key} = (not set)")
            else:
                lines.append(f"{prefix}{key} = {value}")

        return "\n".join(lines)


def _is_hex16(value: str) -> bool:
    try:
        return len(value) == 4 and 0 <= int(value, 16) <= 0xFFFF
    except ValueError:
        return False


# Global config manager instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Get or create global config manager."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
        _config_manager.load()
    return _config_manager


def get_config() -> ProbescopeConfig:
    """Get current configuration."""
    return get_config_manager().get_config()


def reload_config() -> ProbescopeConfig:
    """Reload configuration from all sources."""
    global _config_manager
    _config_manager = ConfigManager()
    return _config_manager.load()
