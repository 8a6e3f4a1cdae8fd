"""Emitter settings/configuration schema"""

from dataclasses import dataclass

from .config_types import ConfigSchema, ConfigOption


@dataclass(frozen=True)
class EmitterSettings(ConfigSchema):
    """Emitter settings loaded from environment variables, the manifest or defaults."""

    # Registry Settings
    max_listeners: int
    capacity_policy: str
    # Logging Settings
    log_level: str
    debug_mode: bool
    log_file: str | None
    log_to_console: bool

    _options = {
        "max_listeners": ConfigOption(
            name=["emitter", "max_listeners"],
            default=10,
            enforce_type=int,
            enforce_type_coerce=True,
            description="The maximum number of listeners per event for new emitters.",
        ),
        "capacity_policy": ConfigOption(
            name=["emitter", "capacity_policy"],
            default="raise",
            enforce_type=str,
            enforce_type_coerce=True,
            description="What to do when a registration exceeds the cap: 'raise' or 'warn'.",
        ),
        "log_level": ConfigOption(
            name=["emitter", "log", "level"],
            default="INFO",
            enforce_type=str,
            enforce_type_coerce=True,
            description="The logging level. Can be DEBUG, INFO, WARNING, ERROR, CRITICAL.",
        ),
        "debug_mode": ConfigOption(
            name=["emitter", "log", "debug_mode"],
            default=False,
            enforce_type=bool,
            enforce_type_coerce=True,
            description="Enable verbose debug logging.",
        ),
        "log_file": ConfigOption(
            name=["emitter", "log", "file"],
            default=None,
            enforce_type=str,
            enforce_type_coerce=True,
            description="The file path to log output to. If not set, logging to file is disabled.",
        ),
        "log_to_console": ConfigOption(
            name=["emitter", "log", "console"],
            default=True,
            enforce_type=bool,
            enforce_type_coerce=True,
            description="Enable logging output to the console.",
        ),
    }
