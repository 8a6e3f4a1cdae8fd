"""Configuration types for describing options, their sources and defaults."""

from __future__ import annotations
from typing import Dict, Any, List, Union
from enum import Enum
from dataclasses import dataclass, field
from collections import namedtuple


SourceInfo = namedtuple("SourceInfo", "precedence")


class ConfigSource(Enum):
    """
    Enumeration of configuration sources.

    Sources are ordered by precedence, from highest to lowest:
    1. ENVIRONMENT - Environment variables (a .env file is loaded first)
    2. MANIFEST - TOML manifest file
    3. DEFAULT - Hardcoded default value
    """

    ENVIRONMENT = SourceInfo(precedence=1)
    MANIFEST = SourceInfo(precedence=2)
    DEFAULT = SourceInfo(precedence=3)

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"<ConfigSource.{self.name}>"


class ConfigDefault:
    """Marker class representing a default configuration value."""

    def __repr__(self) -> str:
        return "<ConfigDefault>"

    def __str__(self) -> str:
        return "*Default"


class ConfigRequired:
    """Marker used as a default value, indicating the option must come from another source."""

    def __repr__(self) -> str:
        return "<ConfigRequired>"

    def __str__(self) -> str:
        return "*Required"


class NameList(list):
    """A list subclass that renders hierarchical option names with dots."""

    def __repr__(self) -> str:
        return f"<NameList: {self}>"

    def __str__(self) -> str:
        return ".".join(str(part) for part in self)


@dataclass(frozen=False, order=True)
class ConfigOption:
    """Definition of a configuration option.

    Attributes:
        default: The default value for the configuration option.
        name: The hierarchical name/path of the configuration option.
        description: An optional description of the configuration option.
        sources: An unordered list of configuration sources to consider - automatically ordered by precedence.
        source_names: Optional custom names/paths for each source - if not provided, defaults will be generated.
    """

    default: Any
    name: list[str]
    description: str = ""
    sources: List[ConfigSource] = field(
        default_factory=lambda: [
            ConfigSource.ENVIRONMENT,
            ConfigSource.MANIFEST,
            ConfigSource.DEFAULT,
        ]
    )
    source_names: Dict[ConfigSource, Union[str, List[str], ConfigDefault, ConfigRequired]] = field(
        default_factory=dict
    )
    enforce_type: Any = Any  # `Any` disables type enforcement
    enforce_type_coerce: bool = False

    def __post_init__(self):
        """Sort sources and generate default source names if not provided."""
        self.sources.sort(key=lambda s: s.value.precedence)
        self._generate_source_names()

    def _generate_source_names(self) -> None:
        """Generate default source names/paths for sources that don't have one."""
        for source in self.sources:
            if source in self.source_names:
                continue
            if source == ConfigSource.MANIFEST:
                self.source_names[source] = NameList(self.name)  # TOML keeps the hierarchy
            elif source == ConfigSource.ENVIRONMENT:
                self.source_names[source] = "_".join(
                    part.replace(".", "_").upper() for part in self.name
                )
            elif source == ConfigSource.DEFAULT:
                self.source_names[source] = (
                    ConfigRequired() if self.default is ConfigRequired else ConfigDefault()
                )

    def get_source_name(self, source: ConfigSource) -> Union[str, List[str], ConfigDefault, ConfigRequired]:
        """Get the name/path for a specific source."""
        return self.source_names[source]

    def sources_friendly(self) -> str:
        """Get a human-readable string of the sources in order of precedence."""
        return " > ".join(f"{source.name}({self.get_source_name(source)})" for source in self.sources)


class ConfigSchema:
    """
    Base class for configuration schemas.

    Subclasses should be dataclasses that list their options in `_options`,
    keyed by the dataclass field each option fills.
    """

    _options: Dict[str, ConfigOption] = {}

    @classmethod
    def get_options(cls) -> Dict[str, ConfigOption]:
        """Retrieve all configuration options defined in the schema."""
        return cls._options

    @classmethod
    async def resolve(cls, config_manager: Any) -> ConfigSchema:
        """Resolve the configuration schema using the provided ConfigManager."""
        return await config_manager.resolve_config(cls)


class ConfigError(Exception):
    """Base exception class for configuration-related errors."""
    pass


class ConfigMissingRequiredError(ConfigError):
    """Exception raised when a required configuration option is missing."""
    pass


class ConfigTypeEnforcementError(ConfigError):
    """Exception raised when type enforcement fails for a configuration option."""
    pass


class ConfigTypeCoercionError(ConfigTypeEnforcementError):
    """Exception raised when type coercion fails for a configuration option."""
    pass
