import asyncio
import logging
from pathlib import Path

import pytest

from aio_emitter import CapacityPolicy, EmitterSettings, EventEmitter, InvalidCapacityPolicyError
from aio_emitter.config import ConfigManager, TypeCoercion
from aio_emitter.config_types import (
    ConfigError,
    ConfigMissingRequiredError,
    ConfigOption,
    ConfigRequired,
    ConfigSource,
    ConfigTypeCoercionError,
    ConfigTypeEnforcementError,
    NameList,
)


MANIFEST = """
[emitter]
max_listeners = 7
capacity_policy = "warn"

[emitter.log]
level = "DEBUG"
console = false
"""


def _manager(tmp_path: Path, manifest: str | None = None) -> ConfigManager:
    path = tmp_path / "emitter.toml"
    if manifest is not None:
        path.write_text(manifest, encoding="utf-8")
    return ConfigManager(manifest=path, env_file=tmp_path / ".env")


def _resolve(manager: ConfigManager) -> EmitterSettings:
    return asyncio.run(EmitterSettings.resolve(manager))


# Option naming

def test_option_source_names_are_generated():
    option = ConfigOption(default=1, name=["emitter", "log", "level"])
    assert option.sources == [ConfigSource.ENVIRONMENT, ConfigSource.MANIFEST, ConfigSource.DEFAULT]
    assert option.get_source_name(ConfigSource.ENVIRONMENT) == "EMITTER_LOG_LEVEL"
    assert isinstance(option.get_source_name(ConfigSource.MANIFEST), NameList)
    assert str(option.get_source_name(ConfigSource.MANIFEST)) == "emitter.log.level"


def test_option_sources_are_sorted_by_precedence():
    option = ConfigOption(
        default=None,
        name=["x"],
        sources=[ConfigSource.DEFAULT, ConfigSource.ENVIRONMENT],
    )
    assert option.sources == [ConfigSource.ENVIRONMENT, ConfigSource.DEFAULT]
    assert option.sources_friendly() == "ENVIRONMENT(X) > DEFAULT(*Default)"


# Type coercion

@pytest.mark.parametrize("raw, expected", [("yes", True), ("OFF", False), ("1", True), (0, False)])
def test_to_bool(raw, expected):
    assert TypeCoercion.convert(raw, bool) is expected


def test_convert_failure_raises():
    with pytest.raises(ConfigTypeCoercionError):
        TypeCoercion.convert("many", int)


def test_enforce_type_without_coercion(tmp_path, clean_env):
    manager = _manager(tmp_path)
    assert manager.enforce_type(5, int) == 5
    with pytest.raises(ConfigTypeEnforcementError):
        manager.enforce_type("5", int)
    assert manager.enforce_type("5", int, coerce=True) == 5


# Settings resolution

def test_defaults_without_manifest(tmp_path, clean_env):
    settings = _resolve(_manager(tmp_path))
    assert settings == EmitterSettings(
        max_listeners=10,
        capacity_policy="raise",
        log_level="INFO",
        debug_mode=False,
        log_file=None,
        log_to_console=True,
    )


def test_manifest_values(tmp_path, clean_env):
    settings = _resolve(_manager(tmp_path, MANIFEST))
    assert settings.max_listeners == 7
    assert settings.capacity_policy == "warn"
    assert settings.log_level == "DEBUG"
    assert settings.log_to_console is False
    assert settings.debug_mode is False


def test_environment_beats_manifest(tmp_path, clean_env, monkeypatch):
    monkeypatch.setenv("EMITTER_MAX_LISTENERS", "4")
    monkeypatch.setenv("EMITTER_LOG_DEBUG_MODE", "yes")
    settings = _resolve(_manager(tmp_path, MANIFEST))
    assert settings.max_listeners == 4
    assert settings.debug_mode is True
    assert settings.capacity_policy == "warn"


def test_uncoercible_environment_value_falls_back(tmp_path, clean_env, monkeypatch, caplog):
    monkeypatch.setenv("EMITTER_MAX_LISTENERS", "plenty")
    with caplog.at_level(logging.WARNING, logger="aio_emitter.config"):
        settings = _resolve(_manager(tmp_path, MANIFEST))
    assert settings.max_listeners == 7
    assert any("Type enforcement failed" in r.getMessage() for r in caplog.records)


def test_dotenv_file_is_loaded(tmp_path, clean_env, monkeypatch):
    # Register the variable with monkeypatch so the value load_dotenv writes is undone
    monkeypatch.setenv("EMITTER_MAX_LISTENERS", "placeholder")
    monkeypatch.delenv("EMITTER_MAX_LISTENERS")
    (tmp_path / ".env").write_text("EMITTER_MAX_LISTENERS=6\n", encoding="utf-8")

    settings = _resolve(_manager(tmp_path))
    assert settings.max_listeners == 6


def test_invalid_manifest_raises(tmp_path, clean_env):
    with pytest.raises(ConfigError):
        _resolve(_manager(tmp_path, "[emitter\nmax_listeners = "))


def test_required_option_missing(tmp_path, clean_env):
    option = ConfigOption(default=ConfigRequired, name=["emitter", "secret"])
    manager = _manager(tmp_path)
    with pytest.raises(ConfigMissingRequiredError):
        asyncio.run(manager.get_config_option(option))


# Factories

def test_from_settings():
    settings = EmitterSettings(
        max_listeners=2,
        capacity_policy="WARN",
        log_level="INFO",
        debug_mode=False,
        log_file=None,
        log_to_console=False,
    )
    emitter = EventEmitter.from_settings(settings)
    assert emitter.get_max_listeners() == 2
    assert emitter.capacity_policy is CapacityPolicy.WARN


def test_from_settings_rejects_unknown_policy():
    settings = EmitterSettings(
        max_listeners=2,
        capacity_policy="explode",
        log_level="INFO",
        debug_mode=False,
        log_file=None,
        log_to_console=False,
    )
    with pytest.raises(ConfigTypeEnforcementError) as exc_info:
        EventEmitter.from_settings(settings)
    assert isinstance(exc_info.value.__cause__, InvalidCapacityPolicyError)


def test_create_async_uses_manifest(tmp_path, clean_env):
    root = logging.getLogger()
    root_handlers, root_level = list(root.handlers), root.level
    manifest = tmp_path / "emitter.toml"
    manifest.write_text(MANIFEST, encoding="utf-8")

    emitter = asyncio.run(EventEmitter.create_async(manifest=manifest, env_file=tmp_path / ".env"))
    assert emitter.get_max_listeners() == 7
    assert emitter.capacity_policy is CapacityPolicy.WARN
    assert emitter.logger_manager is not None
    assert logging.getLogger("aio_emitter").level == logging.DEBUG
    # Host logging stays untouched
    assert root.handlers == root_handlers
    assert root.level == root_level

    emitter.close()
    assert emitter.logger_manager is None
    assert logging.getLogger("aio_emitter").handlers == []


def test_create_sync_with_log_file(tmp_path, clean_env, monkeypatch):
    log_file = tmp_path / "logs" / "emitter.log"
    monkeypatch.setenv("EMITTER_LOG_FILE", str(log_file))
    monkeypatch.setenv("EMITTER_LOG_CONSOLE", "false")

    emitter = EventEmitter.create(manifest=tmp_path / "missing.toml", env_file=tmp_path / ".env")
    assert emitter.get_max_listeners() == 10
    assert emitter.capacity_policy is CapacityPolicy.RAISE
    emitter.close()
    assert "Emitter created" in log_file.read_text(encoding="utf-8")
