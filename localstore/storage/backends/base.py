"""Base local store interface.

Backends implement the typed primitives (get/set per scalar kind, key
presence, deletion, snapshots). Everything else callers use, booleans,
string arrays, counters, defaults, the JSON rendering and bulk import, is
written once here on top of those primitives.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping

from localstore.core.exceptions import (
    InvalidKeyError,
    LocalStoreError,
    StoreInvariantError,
    StoreIOError,
    StoreParseError,
)
from localstore.core.models import (
    DEFAULT_FLOAT,
    DEFAULT_INT,
    DEFAULT_SEPARATOR,
    DEFAULT_STRING,
    IssueKind,
    StoreIssue,
    Value,
    ValueType,
)
from localstore.core.values import format_value, is_utf8_text, sniff_value, validate_key

logger = logging.getLogger(__name__)


def issue_kind(error: LocalStoreError) -> IssueKind:
    """Map a storage exception onto its issue category."""
    if isinstance(error, StoreIOError):
        return IssueKind.IO
    if isinstance(error, StoreInvariantError):
        return IssueKind.INVARIANT
    return IssueKind.PARSE


class BaseLocalStore(ABC):
    """Abstract base class for local store backends."""

    provider_name = "base"

    def __init__(self, separator: str = DEFAULT_SEPARATOR, strict: bool = False):
        if not isinstance(separator, str) or len(separator) != 1:
            raise ValueError(f"Separator must be a single character: {separator!r}")
        self.separator = separator
        self.strict = strict
        self.issues: list[StoreIssue] = []

    # Primitives

    @abstractmethod
    def initialize(self) -> None:
        """Load state from the durable medium."""
        pass

    @abstractmethod
    def get_int(self, key: str) -> int:
        """Get an int, or 0 if the key is absent or not numeric."""
        pass

    @abstractmethod
    def get_float(self, key: str) -> float:
        """Get a float, or 0.0 if the key is absent or not numeric."""
        pass

    @abstractmethod
    def get_string(self, key: str) -> str:
        """Get a string, or "" if the key is absent."""
        pass

    @abstractmethod
    def set_int(self, key: str, value: int) -> None:
        """Create or overwrite an int value."""
        pass

    @abstractmethod
    def set_float(self, key: str, value: float) -> None:
        """Create or overwrite a float value."""
        pass

    @abstractmethod
    def set_string(self, key: str, value: str) -> None:
        """Create or overwrite a string value."""
        pass

    @abstractmethod
    def has_key(self, key: str) -> bool:
        """Check if key exists."""
        pass

    @abstractmethod
    def save(self) -> None:
        """Flush in-memory state to the durable medium."""
        pass

    @abstractmethod
    def delete_key(self, key: str) -> None:
        """Delete a key. Deleting an absent key is a no-op."""
        pass

    @abstractmethod
    def delete_all(self) -> None:
        """Delete every key this backend manages."""
        pass

    @abstractmethod
    def get_serialized_data(self) -> dict[str, Value]:
        """Snapshot of all stored values, in insertion order."""
        pass

    def close(self) -> None:
        """Release resources held by the backend."""
        pass

    def check_key(self, key: str) -> str:
        """Validate a key before writing it."""
        key = validate_key(key)
        problem = self.text_problem(key)
        if problem:
            raise InvalidKeyError(key, problem)
        return key

    def text_problem(self, text: str) -> str | None:
        """Say why the medium cannot hold ``text``, or None if it can."""
        if not is_utf8_text(text):
            return "text is not valid UTF-8"
        return None

    def _accepts_text(self, key: str, value: str) -> bool:
        """Check a string value before it reaches the medium.

        Rejected values are recorded as parse issues and leave the store
        untouched.
        """
        problem = self.text_problem(value)
        if problem is None:
            return True
        self._recover(StoreParseError(f"Cannot store value: {problem}"), key=key)
        return False

    # Derived getters

    def get_bool(self, key: str) -> bool:
        return self.get_int(key) == 1

    def get_int_or_default(self, key: str, default: int = DEFAULT_INT) -> int:
        return self.get_int(key) if self.has_key(key) else default

    def get_float_or_default(self, key: str, default: float = DEFAULT_FLOAT) -> float:
        return self.get_float(key) if self.has_key(key) else default

    def get_string_or_default(self, key: str, default: str = DEFAULT_STRING) -> str:
        return self.get_string(key) if self.has_key(key) else default

    def get_bool_or_default(self, key: str, default: bool = False) -> bool:
        return self.get_int(key) == 1 if self.has_key(key) else default

    def get_string_array(self, key: str) -> list[str]:
        """Split a stored string on the separator.

        Elements are not escaped, so an element containing the separator
        comes back as two elements.
        """
        value = self.get_string(key)
        return value.split(self.separator) if value else []

    # Derived setters

    def set_bool(self, key: str, value: bool) -> None:
        self.set_int(key, 1 if value else 0)

    def set_string_array(self, key: str, values: Iterable[str]) -> None:
        self.set_string(key, self.separator.join(values))

    def increment(self, key: str) -> None:
        self.set_int(key, self.get_int_or_default(key) + 1)

    def decrement(self, key: str) -> None:
        self.set_int(key, self.get_int_or_default(key) - 1)

    def set_value(self, key: str, value: Value) -> None:
        """Store a scalar through the setter matching its type."""
        value_type = ValueType.of(value)
        if value_type is ValueType.INT:
            self.set_int(key, value)
        elif value_type is ValueType.FLOAT:
            self.set_float(key, value)
        else:
            self.set_string(key, value)

    # Snapshots and bulk operations

    def keys(self) -> list[str]:
        """Get all stored keys."""
        return list(self.get_serialized_data())

    def get_serialized_data_json(self, data: Mapping[str, Value] | None = None) -> str:
        """Render a snapshot as a human-readable object literal.

        Numbers are unquoted, strings are quoted without escaping, so the
        output is not guaranteed to be valid JSON.
        """
        if data is None:
            data = self.get_serialized_data()

        parts = []
        for key, value in data.items():
            if isinstance(value, (int, float)):
                parts.append(f'"{key}":{format_value(value)}')
            else:
                parts.append(f'"{key}":"{value}"')
        return "{ " + ", ".join(parts) + " }"

    def deserialize_data(self, data: Mapping[str, object]) -> bool:
        """Import a mapping, sniffing each value's type.

        Each value is tried as an int, then as a float, and otherwise stored
        as a string. Values that cannot be imported are recorded as issues.
        Always returns True.
        """
        logger.info(f"[{self.provider_name}] Importing {len(data)} values")

        for key, raw in data.items():
            try:
                value_type, value = sniff_value(raw)
                if value_type is ValueType.INT:
                    self.set_int(key, value)
                elif value_type is ValueType.FLOAT:
                    self.set_float(key, value)
                else:
                    self.set_string(key, value)
            except StoreParseError as e:
                self._recover(e, key=key)
            except ValueError as e:
                self._recover(StoreParseError(str(e)), key=key, cause=e)

        logger.info(f"[{self.provider_name}] Import complete")
        return True

    # Diagnostics

    def validate(self) -> tuple[bool, list[str]]:
        """Check backend invariants."""
        return True, []

    def clear_issues(self) -> None:
        self.issues.clear()

    def _recover(
        self,
        error: LocalStoreError,
        key: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        """Record a problem and carry on, or raise it in strict mode."""
        issue = StoreIssue(kind=issue_kind(error), message=str(error), key=key)
        self.issues.append(issue)

        if issue.kind is IssueKind.INVARIANT:
            logger.warning(f"[{self.provider_name}] {issue}")
        else:
            logger.error(f"[{self.provider_name}] {issue}")

        if self.strict:
            raise error from cause

    @property
    def location(self) -> str | None:
        """Where the backend persists its data."""
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(provider={self.provider_name!r}, location={self.location!r})"
