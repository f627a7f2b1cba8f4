"""Configuration management."""

import os
from pathlib import Path
from typing import Any

import msgspec
import yaml

from localstore.core.exceptions import ConfigError
from localstore.core.models import DEFAULT_SEPARATOR
from localstore.storage.backends.codecs import DEFAULT_ENCRYPTION_KEY


class StoreConfig(msgspec.Struct, kw_only=True):
    """Settings that select and build the active backend."""

    provider: str = "preferences"
    data_dir: str | None = None
    separator: str = DEFAULT_SEPARATOR
    encryption_key: str = DEFAULT_ENCRYPTION_KEY
    wipe_namespace: bool = False
    strict: bool = False
    preferences_file: str = "preferences.sqlite3"
    json_file: str = "LocalStorage.json"
    xml_file: str = "LocalStorage.xml"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StoreConfig":
        """Build a config from a plain mapping, ignoring unknown keys."""
        try:
            return msgspec.convert(data, cls)
        except msgspec.ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e


class Config:
    """Configuration file loading."""

    @staticmethod
    def from_file(path: Path) -> dict[str, Any]:
        """Load configuration from a YAML file."""
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in config file: {e}") from e
        except OSError as e:
            raise ConfigError(f"Error reading config file: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file must contain a mapping: {path}")
        return data

    @staticmethod
    def get_config_paths() -> list[Path]:
        """Get the default configuration file paths to check."""
        paths = []

        # User config
        xdg_config_home = Path(
            os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
        )
        paths.append(xdg_config_home / "localstore" / "config.yaml")

        # Project config
        paths.append(Path(".localstore.yaml"))
        paths.append(Path("localstore.yaml"))

        return paths

    @staticmethod
    def merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
        """Merge multiple configuration dictionaries."""
        result: dict[str, Any] = {}
        for config in configs:
            result = _deep_merge(result, config)
        return result


def load_config(path: Path | None = None) -> StoreConfig:
    """Load configuration from files and environment variables.

    Default locations are read in order (later files win), then an explicit
    file, then ``LOCALSTORE_*`` environment variables.
    """
    config: dict[str, Any] = {}

    for default_path in Config.get_config_paths():
        if default_path.exists():
            try:
                config = Config.merge_configs(config, Config.from_file(default_path))
            except ConfigError:
                continue

    if path is not None:
        config = Config.merge_configs(config, Config.from_file(path))

    env_overrides = {}
    if provider := os.environ.get("LOCALSTORE_PROVIDER"):
        env_overrides["provider"] = provider
    if data_dir := os.environ.get("LOCALSTORE_DATA_DIR"):
        env_overrides["data_dir"] = data_dir
    if encryption_key := os.environ.get("LOCALSTORE_ENCRYPTION_KEY"):
        env_overrides["encryption_key"] = encryption_key

    return StoreConfig.from_dict(Config.merge_configs(config, env_overrides))


def get_data_dir(config: StoreConfig | None = None, data_dir: Path | None = None) -> Path:
    """Resolve the directory backends keep their files in."""
    if data_dir:
        return Path(data_dir)

    if config is not None and config.data_dir:
        return Path(config.data_dir).expanduser()

    if env_dir := os.environ.get("LOCALSTORE_DATA_DIR"):
        return Path(env_dir)

    # Default to XDG data home
    xdg_data_home = Path(
        os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share")
    )
    return xdg_data_home / "localstore"


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result
