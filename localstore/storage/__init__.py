"""Storage layer: backends, preference stores, provider selection and the
process-wide store facade.

- **Backends**: preferences with key index, JSON file, secured JSON, XML
- **Preference stores**: SQLite-backed and in-memory
- **Facade**: lazily built, thread-safe single backend per process
- **Editing**: staged changes applied in one pass
"""

from localstore.storage.backends import (
    BaseLocalStore,
    JsonFileBackend,
    PreferencesBackend,
    SecuredJsonFileBackend,
    XmlFileBackend,
)
from localstore.storage.editing import EditableValue, StoreEditor
from localstore.storage.factory import PROVIDERS, create_backend
from localstore.storage.prefs import MemoryPreferences, PreferenceStore, SQLitePreferences
from localstore.storage.store import LocalStore, get_store, reset_store

__all__ = [
    "PROVIDERS",
    "BaseLocalStore",
    "EditableValue",
    "JsonFileBackend",
    "LocalStore",
    "MemoryPreferences",
    "PreferenceStore",
    "PreferencesBackend",
    "SQLitePreferences",
    "SecuredJsonFileBackend",
    "StoreEditor",
    "XmlFileBackend",
    "create_backend",
    "get_store",
    "reset_store",
]
