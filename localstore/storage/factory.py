"""Backend selection from configuration."""

import logging
from collections.abc import Callable
from pathlib import Path

from localstore.config import StoreConfig, get_data_dir
from localstore.core.exceptions import ConfigError

from .backends import (
    BaseLocalStore,
    JsonFileBackend,
    PreferencesBackend,
    SecuredJsonFileBackend,
    XmlFileBackend,
)
from .prefs import SQLitePreferences

logger = logging.getLogger(__name__)


def _preferences(config: StoreConfig, data_dir: Path) -> BaseLocalStore:
    return PreferencesBackend(
        SQLitePreferences(data_dir / config.preferences_file),
        separator=config.separator,
        strict=config.strict,
        wipe_namespace=config.wipe_namespace,
    )


def _json(config: StoreConfig, data_dir: Path) -> BaseLocalStore:
    return JsonFileBackend(
        data_dir / config.json_file, separator=config.separator, strict=config.strict
    )


def _secured_json(config: StoreConfig, data_dir: Path) -> BaseLocalStore:
    # Shares the plain backend's file name.
    return SecuredJsonFileBackend(
        data_dir / config.json_file,
        key=config.encryption_key,
        separator=config.separator,
        strict=config.strict,
    )


def _xml(config: StoreConfig, data_dir: Path) -> BaseLocalStore:
    return XmlFileBackend(
        data_dir / config.xml_file, separator=config.separator, strict=config.strict
    )


PROVIDERS: dict[str, Callable[[StoreConfig, Path], BaseLocalStore]] = {
    "preferences": _preferences,
    "json": _json,
    "secured_json": _secured_json,
    "xml": _xml,
}


def create_backend(
    config: StoreConfig | None = None, data_dir: Path | None = None
) -> BaseLocalStore:
    """Build the backend named by ``config.provider``.

    Raises:
        ConfigError: If the provider is unknown.
    """
    config = config or StoreConfig()
    builder = PROVIDERS.get(config.provider)
    if builder is None:
        raise ConfigError(
            f"Unknown provider {config.provider!r}; "
            f"expected one of {', '.join(PROVIDERS)}"
        )

    directory = get_data_dir(config, data_dir)
    logger.debug(f"Creating {config.provider} backend in {directory}")
    return builder(config, directory)
