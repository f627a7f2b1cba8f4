"""XML file storage backend.

The document lists one element per key, with the value kept as text next to
a type tag that says how to read it back::

    <?xml version='1.0' encoding='utf-8'?>
    <XmlStore>
      <items>
        <XmlItem key="score" value="42" type="int" />
        <XmlItem key="name" value="Ann" type="string" />
      </items>
    </XmlStore>

Items are held in an insertion-ordered mapping keyed by ``key``. A document
that repeats a key loads with the first occurrence; every later one is
reported as an invariant issue and dropped.
"""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path

import msgspec

from localstore.core.exceptions import (
    LocalStoreError,
    StoreInvariantError,
    StoreIOError,
    StoreParseError,
)
from localstore.core.models import DEFAULT_SEPARATOR, Value, ValueType
from localstore.core.values import (
    coerce_float,
    coerce_int,
    coerce_str,
    format_value,
    is_xml_text,
    narrow_float,
    narrow_int,
    parse_float,
    parse_int,
)

from .base import BaseLocalStore

logger = logging.getLogger(__name__)

ROOT_TAG = "XmlStore"
ITEMS_TAG = "items"
ITEM_TAG = "XmlItem"


class XmlItem(msgspec.Struct, kw_only=True):
    """One stored value: key, raw text and type tag."""

    key: str
    value_str: str = ""
    type: str = ValueType.STRING.value

    @property
    def value(self) -> Value | None:
        """The typed value, or None if the tag or text cannot be read."""
        value_type = ValueType.from_tag(self.type)
        if value_type is ValueType.INT:
            return parse_int(self.value_str)
        if value_type is ValueType.FLOAT:
            return parse_float(self.value_str, allow_special=True)
        if value_type is ValueType.STRING:
            return self.value_str
        return None

    def assign(self, value: Value) -> None:
        """Replace the value and its type tag in place."""
        self.type = ValueType.of(value).value
        self.value_str = format_value(value)


class XmlStore:
    """Uniquely keyed, insertion-ordered collection of items."""

    def __init__(self):
        self.items: dict[str, XmlItem] = {}

    def __getitem__(self, key: str) -> XmlItem | None:
        return self.items.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self.items

    def __len__(self) -> int:
        return len(self.items)

    def add(self, item: XmlItem) -> None:
        if item.key in self.items:
            raise StoreInvariantError(f"Duplicate key {item.key!r}")
        self.items[item.key] = item

    def remove(self, key: str) -> bool:
        return self.items.pop(key, None) is not None

    def clear(self) -> None:
        self.items.clear()

    def get_dictionary(self) -> dict[str, Value]:
        """Typed values of all readable items."""
        data: dict[str, Value] = {}
        for key, item in self.items.items():
            value = item.value
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_xml(cls, data: bytes) -> tuple["XmlStore", list[tuple[str | None, LocalStoreError]]]:
        """Parse a document.

        Returns:
            The store and the problems found, as (key, error) pairs.

        Raises:
            StoreParseError: If the document is not well-formed XML.
        """
        try:
            root = ET.fromstring(data)
        except ET.ParseError as e:
            raise StoreParseError(f"Malformed XML document: {e}") from e

        store = cls()
        problems: list[tuple[str | None, LocalStoreError]] = []

        if root.tag != ROOT_TAG:
            problems.append(
                (None, StoreParseError(f"Unexpected root element <{root.tag}>"))
            )

        items = root.find(ITEMS_TAG)
        elements = items.findall(ITEM_TAG) if items is not None else []

        for element in elements:
            key = element.get("key")
            if not key:
                problems.append((None, StoreParseError("Item without a key")))
                continue

            item = XmlItem(
                key=key,
                value_str=element.get("value", ""),
                type=element.get("type", ""),
            )
            if key in store:
                problems.append(
                    (key, StoreInvariantError("Duplicate key; keeping the first item"))
                )
                continue
            if item.value is None:
                problems.append(
                    (
                        key,
                        StoreParseError(
                            f"Cannot read {item.value_str!r} as type {item.type!r}"
                        ),
                    )
                )
            store.add(item)

        return store, problems

    def to_xml(self) -> bytes:
        root = ET.Element(ROOT_TAG)
        items = ET.SubElement(root, ITEMS_TAG)
        for item in self.items.values():
            ET.SubElement(
                items,
                ITEM_TAG,
                {"key": item.key, "value": item.value_str, "type": item.type},
            )
        ET.indent(root)
        return ET.tostring(root, encoding="utf-8", xml_declaration=True)


class XmlFileBackend(BaseLocalStore):
    """Local store persisted as an XML document of typed items."""

    provider_name = "xml"

    def __init__(
        self,
        path: Path,
        separator: str = DEFAULT_SEPARATOR,
        strict: bool = False,
    ):
        super().__init__(separator=separator, strict=strict)
        self.path = Path(path)
        self._store = XmlStore()
        self._duplicates: list[str] = []
        self.initialize()

    def initialize(self) -> None:
        """Load the document, falling back to an empty store on any error."""
        self._store = XmlStore()
        self._duplicates = []

        data = self._read_file()
        if not data:
            return

        try:
            store, problems = XmlStore.from_xml(data)
        except StoreParseError as e:
            self._recover(e, cause=e.__cause__)
            return

        self._store = store
        for key, error in problems:
            if isinstance(error, StoreInvariantError) and key:
                self._duplicates.append(key)
            self._recover(error, key=key)

    # File IO

    def _read_file(self) -> bytes | None:
        if not self.path.exists():
            return None

        logger.debug(f"Opening {self.path}")
        try:
            return self.path.read_bytes()
        except OSError as e:
            self._recover(StoreIOError(str(self.path), str(e)), cause=e)
            return None

    def _write_file(self) -> None:
        temp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_bytes(self._store.to_xml())
            temp_path.replace(self.path)
            self._duplicates = []
        except OSError as e:
            try:
                temp_path.unlink(missing_ok=True)
            except OSError:
                pass
            self._recover(StoreIOError(str(self.path), str(e)), cause=e)

    # Store interface

    def text_problem(self, text: str) -> str | None:
        problem = super().text_problem(text)
        if problem is None and not is_xml_text(text):
            problem = "text holds characters XML 1.0 cannot represent"
        return problem

    def _value(self, key: str) -> Value | None:
        item = self._store[key]
        return item.value if item is not None else None

    def _set(self, key: str, value: Value) -> None:
        key = self.check_key(key)
        item = self._store[key]
        if item is None:
            item = XmlItem(key=key)
            self._store.add(item)
        item.assign(value)
        self.save()

    def get_int(self, key: str) -> int:
        return coerce_int(self._value(key))

    def get_float(self, key: str) -> float:
        return coerce_float(self._value(key))

    def get_string(self, key: str) -> str:
        return coerce_str(self._value(key))

    def set_int(self, key: str, value: int) -> None:
        self._set(key, narrow_int(value))

    def set_float(self, key: str, value: float) -> None:
        self._set(key, narrow_float(value))

    def set_string(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"Expected str, got {type(value).__name__}")
        key = self.check_key(key)
        if self._accepts_text(key, value):
            self._set(key, value)

    def has_key(self, key: str) -> bool:
        return key in self._store

    def save(self) -> None:
        self._write_file()

    def delete_key(self, key: str) -> None:
        if self._store.remove(key):
            self.save()

    def delete_all(self) -> None:
        self._store.clear()
        self.save()

    def get_serialized_data(self) -> dict[str, Value]:
        return self._store.get_dictionary()

    def item_types(self) -> dict[str, str]:
        """Raw type tag of every item."""
        return {key: item.type for key, item in self._store.items.items()}

    def validate(self) -> tuple[bool, list[str]]:
        """Report duplicates still on disk and items that cannot be read."""
        errors = [f"Duplicate key in document: {key}" for key in self._duplicates]
        for key, item in self._store.items.items():
            if item.value is None:
                errors.append(f"Unreadable item {key}: {item.value_str!r} as {item.type!r}")
        return len(errors) == 0, errors

    @property
    def location(self) -> str | None:
        return str(self.path)
