"""Backend over a native preference store.

Preference stores cannot enumerate their keys, so this backend keeps a key
index (key -> type tag) in the store itself, under the reserved key
``__KEYS``, serialized as ``key1:type1,key2:type2``. The index is what makes
snapshots possible: each indexed key still present is re-read through the
getter matching its recorded type.

A value write and the index write that registers it happen inside one
preference store transaction. On load, index entries whose key is no longer
in the store are dropped and reported.
"""

import logging
from collections.abc import Iterator

from localstore.core.exceptions import (
    InvalidKeyError,
    LocalStoreError,
    StoreInvariantError,
    StoreParseError,
)
from localstore.core.models import (
    DEFAULT_FLOAT,
    DEFAULT_INT,
    DEFAULT_SEPARATOR,
    DEFAULT_STRING,
    Value,
    ValueType,
)
from localstore.core.values import narrow_float, narrow_int
from localstore.storage.prefs import PreferenceStore

from .base import BaseLocalStore

logger = logging.getLogger(__name__)

INDEX_KEY = "__KEYS"


class KeyIndex:
    """Ordered map of stored keys to their value types."""

    def __init__(self, separator: str = DEFAULT_SEPARATOR):
        self.separator = separator
        self._entries: dict[str, ValueType] = {}

    @classmethod
    def parse(cls, text: str, separator: str = DEFAULT_SEPARATOR) -> tuple["KeyIndex", list[str]]:
        """Parse a serialized index.

        Returns:
            The index and a list of messages for entries that were skipped.
        """
        index = cls(separator)
        errors = []
        if not text:
            return index, errors

        for item in text.split(separator):
            key, colon, tag = item.rpartition(":")
            if not colon or not key:
                errors.append(f"Malformed key index entry: {item!r}")
                continue
            value_type = ValueType.from_tag(tag)
            if value_type is None:
                errors.append(f"Unknown type tag {tag!r} for indexed key {key!r}")
                continue
            index._entries[key] = value_type
        return index, errors

    def serialize(self) -> str:
        return self.separator.join(
            f"{key}:{value_type.value}" for key, value_type in self._entries.items()
        )

    def copy(self) -> "KeyIndex":
        index = KeyIndex(self.separator)
        index._entries = dict(self._entries)
        return index

    def get(self, key: str) -> ValueType | None:
        return self._entries.get(key)

    def set(self, key: str, value_type: ValueType) -> None:
        self._entries[key] = value_type

    def remove(self, key: str) -> None:
        self._entries.pop(key, None)

    def items(self) -> list[tuple[str, ValueType]]:
        return list(self._entries.items())

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)


class PreferencesBackend(BaseLocalStore):
    """Local store backed by a native preference store plus a key index."""

    provider_name = "preferences"

    def __init__(
        self,
        prefs: PreferenceStore,
        separator: str = DEFAULT_SEPARATOR,
        strict: bool = False,
        wipe_namespace: bool = False,
    ):
        """Initialize the backend and load the key index.

        Args:
            prefs: Preference store holding the values and the index
            separator: Separator for string arrays and index entries
            strict: Raise storage errors instead of recording them
            wipe_namespace: Make delete_all() clear the whole preference
                store, including keys this backend did not write
        """
        super().__init__(separator=separator, strict=strict)
        if separator == ":":
            raise ValueError("':' separates keys from type tags in the key index")
        self.prefs = prefs
        self.wipe_namespace = wipe_namespace
        self._index = KeyIndex(separator)
        self.initialize()

    def initialize(self) -> None:
        """Load the key index and drop entries for vanished keys."""
        self._index = KeyIndex(self.separator)
        if not self.prefs.has_key(INDEX_KEY):
            return

        index, errors = KeyIndex.parse(self.prefs.get_string(INDEX_KEY), self.separator)
        for message in errors:
            self._recover(StoreParseError(message))

        stale = [key for key in index if not self.prefs.has_key(key)]
        for key in stale:
            index.remove(key)
            self._recover(
                StoreInvariantError("Indexed key missing from preference store"),
                key=key,
            )

        self._index = index
        if errors or stale:
            logger.info(f"Rewriting key index with {len(index)} entries")
            self._run(lambda: self._write_index(index))

    # Index maintenance

    def _write_index(self, index: KeyIndex) -> None:
        if len(index):
            self.prefs.set_string(INDEX_KEY, index.serialize())
        else:
            self.prefs.delete_key(INDEX_KEY)

    def _run(self, operation) -> bool:
        """Run writes in one preference transaction, then save."""
        try:
            with self.prefs.transaction():
                operation()
            self.prefs.save()
        except LocalStoreError as e:
            self._recover(e)
            return False
        return True

    def _set(self, key: str, value_type: ValueType, write) -> None:
        key = self.check_key(key)
        index = self._index
        if index.get(key) is not value_type:
            index = index.copy()
            index.set(key, value_type)

        def operation():
            write(key)
            if index is not self._index:
                self._write_index(index)

        if self._run(operation):
            self._index = index

    def check_key(self, key: str) -> str:
        key = super().check_key(key)
        if key == INDEX_KEY:
            raise InvalidKeyError(key, "reserved for the key index")
        if self.separator in key:
            raise InvalidKeyError(
                key, f"contains the index separator {self.separator!r}"
            )
        return key

    # Getters

    def get_int(self, key: str) -> int:
        if key == INDEX_KEY:
            return DEFAULT_INT
        return self.prefs.get_int(key)

    def get_float(self, key: str) -> float:
        if key == INDEX_KEY:
            return DEFAULT_FLOAT
        return self.prefs.get_float(key)

    def get_string(self, key: str) -> str:
        if key == INDEX_KEY:
            return DEFAULT_STRING
        return self.prefs.get_string(key)

    # Setters

    def set_int(self, key: str, value: int) -> None:
        value = narrow_int(value)
        self._set(key, ValueType.INT, lambda k: self.prefs.set_int(k, value))

    def set_float(self, key: str, value: float) -> None:
        value = narrow_float(value)
        self._set(key, ValueType.FLOAT, lambda k: self.prefs.set_float(k, value))

    def set_string(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"Expected str, got {type(value).__name__}")
        key = self.check_key(key)
        if self._accepts_text(key, value):
            self._set(key, ValueType.STRING, lambda k: self.prefs.set_string(k, value))

    # Other operations

    def has_key(self, key: str) -> bool:
        if key == INDEX_KEY:
            return False
        return self.prefs.has_key(key)

    def save(self) -> None:
        try:
            self.prefs.save()
        except LocalStoreError as e:
            self._recover(e)

    def delete_key(self, key: str) -> None:
        if key == INDEX_KEY:
            return
        if key not in self._index and not self.prefs.has_key(key):
            return

        index = self._index
        if key in index:
            index = index.copy()
            index.remove(key)

        def operation():
            self.prefs.delete_key(key)
            if index is not self._index:
                self._write_index(index)

        if self._run(operation):
            self._index = index

    def delete_all(self) -> None:
        """Delete all indexed keys and the index.

        With ``wipe_namespace`` the entire preference store is cleared.
        """

        def operation():
            if self.wipe_namespace:
                self.prefs.delete_all()
                return
            for key in self._index:
                self.prefs.delete_key(key)
            self.prefs.delete_key(INDEX_KEY)

        if self._run(operation):
            self._index = KeyIndex(self.separator)

    def get_serialized_data(self) -> dict[str, Value]:
        data: dict[str, Value] = {}
        for key, value_type in self._index.items():
            if not self.prefs.has_key(key):
                continue
            if value_type is ValueType.INT:
                data[key] = self.prefs.get_int(key)
            elif value_type is ValueType.FLOAT:
                data[key] = self.prefs.get_float(key)
            else:
                data[key] = self.prefs.get_string(key)
        return data

    def indexed_types(self) -> dict[str, ValueType]:
        """Recorded type of every indexed key."""
        return dict(self._index.items())

    def validate(self) -> tuple[bool, list[str]]:
        """Check that every indexed key is present in the preference store."""
        errors = [
            f"Indexed key missing from preference store: {key}"
            for key in self._index
            if not self.prefs.has_key(key)
        ]
        return len(errors) == 0, errors

    def close(self) -> None:
        self.prefs.close()

    @property
    def location(self) -> str | None:
        db_path = getattr(self.prefs, "db_path", None)
        return str(db_path) if db_path is not None else None
