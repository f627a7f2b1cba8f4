"""Shared fixtures for core tests."""

import pytest

from localstore.core.values import INT32_MAX, INT32_MIN


@pytest.fixture
def int32_bounds():
    """Smallest and largest storable integers."""
    return INT32_MIN, INT32_MAX


@pytest.fixture
def import_payload():
    """A mapping as it arrives from a decoded JSON import."""
    return {
        "score": "42",
        "ratio": "0.5",
        "name": "Ann",
        "level": 7,
        "speed": 1.25,
        "flag": True,
    }
