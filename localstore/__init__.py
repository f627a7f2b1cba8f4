"""Pluggable local key-value storage with interchangeable backends."""

__version__ = "0.1.0"

from localstore.core.models import Record, StoreIssue, ValueType
from localstore.storage.backends import (
    BaseLocalStore,
    JsonFileBackend,
    PreferencesBackend,
    SecuredJsonFileBackend,
    XmlFileBackend,
)
from localstore.storage.store import LocalStore, get_store, reset_store

__all__ = [
    "__version__",
    "BaseLocalStore",
    "JsonFileBackend",
    "LocalStore",
    "PreferencesBackend",
    "Record",
    "SecuredJsonFileBackend",
    "StoreIssue",
    "ValueType",
    "XmlFileBackend",
    "get_store",
    "reset_store",
]
