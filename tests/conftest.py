"""Pytest configuration and fixtures."""

import os

import pytest

from localstore.storage.store import reset_store


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch, tmp_path):
    """Isolate environment variables and working directory for each test.

    Config and data lookups resolve under a private temporary directory, so
    no test reads the user's files or leaves a store behind.
    """
    original_env = os.environ.copy()

    for name in ("LOCALSTORE_PROVIDER", "LOCALSTORE_DATA_DIR", "LOCALSTORE_ENCRYPTION_KEY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.chdir(tmp_path)

    yield

    reset_store()
    os.environ.clear()
    os.environ.update(original_env)
