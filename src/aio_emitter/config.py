"""Configuration management: environment variables, TOML manifest and defaults."""

import os
import tomllib
from pathlib import Path
from typing import Any, Dict

import aiofiles
from dotenv import load_dotenv

from .config_types import (
    ConfigError,
    ConfigMissingRequiredError,
    ConfigOption,
    ConfigRequired,
    ConfigSchema,
    ConfigSource,
    ConfigTypeCoercionError,
    ConfigTypeEnforcementError,
)
from .logging import get_emitter_logger


class TypeCoercion:
    """A set of class methods for coercing common types from strings."""

    @classmethod
    def convert(cls, value: Any, target_type: type, use_builtin: bool = True) -> Any:
        """Convert a value to the target type using custom rules, then the type's constructor."""
        if target_type is bool:
            try:
                return cls.to_bool(value)
            except TypeError:
                pass

        if use_builtin:
            try:
                return target_type(value)
            except (ValueError, TypeError):
                pass

        raise ConfigTypeCoercionError(
            f"No method exists to convert {value!r} from {type(value).__name__} to {target_type.__name__}."
        )

    @classmethod
    def to_bool(cls, value: Any) -> bool:
        """Convert a value to boolean."""
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            val_lower = value.strip().lower()
            if val_lower in ("true", "1", "yes", "on"):
                return True
            elif val_lower in ("false", "0", "no", "off"):
                return False
        if isinstance(value, (int, float)):
            return value != 0
        raise TypeError(f"Cannot convert {value} to bool.")


class ConfigManager:
    """Resolves configuration options from the environment, a TOML manifest and defaults."""

    def __init__(
        self,
        manifest: Path = Path("emitter.toml"),
        env_file: Path | None = None,
    ) -> None:
        """
        Args:
            manifest: Path to the TOML manifest. A missing file is treated as empty.
            env_file: Optional .env file. If not given, python-dotenv searches for one.
        """
        self.manifest_path = Path(manifest)
        self.manifest: Dict[str, Any] | None = None
        self.env_file_path = env_file
        self.logger = get_emitter_logger("config")

        if env_file is None:
            load_dotenv()
        else:
            load_dotenv(dotenv_path=env_file)

    async def read_toml(self, path: Path) -> Dict[str, Any]:
        """Read a TOML file and return its contents as a dictionary."""
        async with aiofiles.open(path, "rb") as f:
            content = await f.read()
        try:
            return tomllib.loads(content.decode())
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML manifest {path}: {e}") from e

    async def get_value_env(self, name: str) -> Any:
        """Retrieve an environment variable by name."""
        return os.getenv(name)

    def recursive_get(self, data: Dict[str, Any], keys: list[str]) -> Any:
        """Recursively get a value from nested dictionaries."""
        for key in keys:
            if isinstance(data, dict) and key in data:
                data = data[key]
            else:
                return None
        return data

    async def get_value_manifest(self, name: list[str]) -> Any:
        """Retrieve a value from the manifest, loading it on first use."""
        if self.manifest is None:
            try:
                self.manifest = await self.read_toml(self.manifest_path)
            except FileNotFoundError:
                self.logger.debug(f"No manifest found at {self.manifest_path}, using an empty one")
                self.manifest = {}
        return self.recursive_get(self.manifest, name)

    def enforce_type(self, value: Any, expected_type: type | Any, coerce: bool = False) -> Any:
        """Enforce or coerce a value to the expected type. Set expected_type to `typing.Any` to disable."""
        if expected_type is Any or isinstance(value, expected_type):
            return value
        if coerce:
            return TypeCoercion.convert(value, expected_type, use_builtin=True)
        raise ConfigTypeEnforcementError(
            f"Value {value!r} is not of type {getattr(expected_type, '__name__', expected_type)}."
        )

    async def get_config_option(self, option: ConfigOption) -> Any:
        """Retrieve a configuration option from the first source that provides a valid value."""
        result: Any = None
        for source in sorted(option.sources, key=lambda src: src.value.precedence):
            value = None
            source_name = option.source_names.get(source, None)
            self.logger.debug(
                f"Attempting to retrieve config option '{option.name}' from source '{source.name}' using name '{source_name}'"
            )
            if source == ConfigSource.ENVIRONMENT:
                value = await self.get_value_env(source_name)  # type: ignore
            elif source == ConfigSource.MANIFEST:
                value = await self.get_value_manifest(source_name)  # type: ignore
            elif source == ConfigSource.DEFAULT:
                if option.default is ConfigRequired:
                    raise ConfigMissingRequiredError(
                        f"Required configuration option missing: {option.name} from sources {option.sources_friendly()}"
                    )
                value = option.default

            if value is None:
                continue

            try:
                value = self.enforce_type(value, option.enforce_type, option.enforce_type_coerce)
            except ConfigTypeEnforcementError as e:
                self.logger.warning(
                    f"Type enforcement failed for config option '{option.name}' from source '{source.name}': {e}"
                )
                continue  # Try the next source
            result = value
            self.logger.debug(
                f"Config option '{option.name}' resolved from source '{source.name}' with value: {result!r}"
            )
            break
        return result

    async def resolve_config(self, schema: type[ConfigSchema]) -> ConfigSchema:
        """Resolve all configuration options defined in a schema."""
        self.logger.info(f"Resolving config schema: {schema.__name__}")
        resolved_fields: Dict[str, Any] = {}
        for field_name, option in schema.get_options().items():
            resolved_fields[field_name] = await self.get_config_option(option)
        return schema(**resolved_fields)
