"""CLI commands module."""

from . import data, values

__all__ = ["data", "values"]
