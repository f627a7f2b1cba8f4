"""Shared fixtures for storage tests.

Backend fixtures come as factories: calling one again opens a new backend
over the same durable medium, which is how tests simulate a restart.
"""

import tempfile
from pathlib import Path

import pytest

from localstore.storage.backends import (
    JsonFileBackend,
    PreferencesBackend,
    SecuredJsonFileBackend,
    XmlFileBackend,
)
from localstore.storage.prefs import MemoryPreferences, SQLitePreferences


@pytest.fixture
def temp_dir():
    """Temporary directory for test data."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def memory_prefs():
    """In-memory preference store."""
    return MemoryPreferences()


@pytest.fixture
def make_sqlite_backend(temp_dir):
    """Open preference backends over one SQLite file."""
    opened = []

    def make(**kwargs):
        backend = PreferencesBackend(
            SQLitePreferences(temp_dir / "preferences.sqlite3"), **kwargs
        )
        opened.append(backend)
        return backend

    yield make

    for backend in opened:
        backend.close()


@pytest.fixture
def make_memory_backend(memory_prefs):
    """Open preference backends over one in-memory store."""

    def make(**kwargs):
        return PreferencesBackend(memory_prefs, **kwargs)

    return make


@pytest.fixture
def json_path(temp_dir):
    return temp_dir / "LocalStorage.json"


@pytest.fixture
def make_json_backend(json_path):
    def make(**kwargs):
        return JsonFileBackend(json_path, **kwargs)

    return make


@pytest.fixture
def make_secured_backend(json_path):
    def make(**kwargs):
        return SecuredJsonFileBackend(json_path, **kwargs)

    return make


@pytest.fixture
def xml_path(temp_dir):
    return temp_dir / "LocalStorage.xml"


@pytest.fixture
def make_xml_backend(xml_path):
    def make(**kwargs):
        return XmlFileBackend(xml_path, **kwargs)

    return make


@pytest.fixture
def sample_values():
    """One value of every kind."""
    return {"name": "Ann", "score": 42, "ratio": 0.5}
