"""Process-wide access to the configured backend."""

import logging
import threading
from collections.abc import Callable

from localstore.config import StoreConfig, load_config

from .backends import BaseLocalStore
from .factory import create_backend

logger = logging.getLogger(__name__)


class LocalStore:
    """Holds exactly one backend, built lazily on first use.

    Concurrent first access builds a single backend: the factory runs under a
    lock, and callers that lose the race see the instance it produced.
    """

    def __init__(
        self,
        factory: Callable[[StoreConfig], BaseLocalStore] | None = None,
        config: StoreConfig | None = None,
    ):
        self._factory = factory or create_backend
        self._config = config
        self._instance: BaseLocalStore | None = None
        self._lock = threading.Lock()

    @property
    def config(self) -> StoreConfig:
        if self._config is None:
            self._config = load_config()
        return self._config

    @property
    def instance(self) -> BaseLocalStore:
        """The backend, created on first access."""
        instance = self._instance
        if instance is not None:
            return instance

        with self._lock:
            if self._instance is None:
                config = self.config
                logger.info(f"Initializing {config.provider} store")
                self._instance = self._factory(config)
            return self._instance

    @property
    def is_initialized(self) -> bool:
        return self._instance is not None

    def configure(self, config: StoreConfig | None) -> None:
        """Replace the configuration used to build the backend.

        ``None`` reloads configuration from files and environment on next use.

        Raises:
            RuntimeError: If the backend has already been built.
        """
        with self._lock:
            if self._instance is not None:
                raise RuntimeError(
                    "Store is already initialized; call reset() before configuring"
                )
            self._config = config

    def reset(self) -> None:
        """Close and forget the backend so the next access builds a new one."""
        with self._lock:
            instance, self._instance = self._instance, None
        if instance is not None:
            instance.close()


_default_store = LocalStore()


def get_store() -> BaseLocalStore:
    """Return the process-wide backend."""
    return _default_store.instance


def reset_store(config: StoreConfig | None = None) -> None:
    """Drop the process-wide backend, optionally switching configuration."""
    _default_store.reset()
    _default_store.configure(config)
