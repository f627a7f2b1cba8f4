"""Core value model, scalar helpers and exceptions."""

from .exceptions import (
    ConfigError,
    InvalidKeyError,
    LocalStoreError,
    StoreInvariantError,
    StoreIOError,
    StoreParseError,
    ValueRangeError,
)
from .models import (
    DEFAULT_FLOAT,
    DEFAULT_INT,
    DEFAULT_SEPARATOR,
    DEFAULT_STRING,
    IssueKind,
    Record,
    StoreIssue,
    Value,
    ValueType,
)

__all__ = [
    "DEFAULT_FLOAT",
    "DEFAULT_INT",
    "DEFAULT_SEPARATOR",
    "DEFAULT_STRING",
    "ConfigError",
    "InvalidKeyError",
    "IssueKind",
    "LocalStoreError",
    "Record",
    "StoreIOError",
    "StoreInvariantError",
    "StoreIssue",
    "StoreParseError",
    "Value",
    "ValueRangeError",
    "ValueType",
]
