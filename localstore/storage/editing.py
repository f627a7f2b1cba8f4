"""Staged editing of store contents.

An editor takes a snapshot of the store, lets callers change, create and
mark values for deletion, and writes everything back in one pass::

    editor = StoreEditor(store)
    editor.stage("score", 10)
    editor.mark_deleted("old")
    editor.save_all()
"""

import logging

from localstore.core.models import Value, ValueType
from localstore.core.values import (
    coerce_float,
    coerce_int,
    coerce_str,
    format_value,
    narrow_float,
    narrow_int,
)

from .backends import BaseLocalStore

logger = logging.getLogger(__name__)


def _narrow(value: Value) -> Value:
    value_type = ValueType.of(value)
    if value_type is ValueType.INT:
        return narrow_int(value)
    if value_type is ValueType.FLOAT:
        return narrow_float(value)
    return value


class EditableValue:
    """A single value with change tracking."""

    def __init__(self, name: str, value: Value, is_new: bool = False):
        self.name = name
        self._initial = _narrow(value)
        self._value = self._initial
        self.is_new = is_new
        self.to_be_deleted = False

    @property
    def value(self) -> Value:
        return self._value

    @value.setter
    def value(self, value: Value) -> None:
        self._value = _narrow(value)

    @property
    def has_changed(self) -> bool:
        """Whether the value differs from the one loaded from the store."""
        if self.is_new:
            return True
        return ValueType.of(self._value) is not ValueType.of(self._initial) or (
            format_value(self._value) != format_value(self._initial)
        )

    @property
    def type(self) -> ValueType:
        return ValueType.of(self._value)

    @type.setter
    def type(self, value_type: ValueType) -> None:
        # Switching type discards the old value.
        if value_type is not self.type:
            self._value = value_type.zero

    @property
    def int_value(self) -> int:
        return coerce_int(self._value)

    @int_value.setter
    def int_value(self, value: int) -> None:
        self.value = int(value)

    @property
    def float_value(self) -> float:
        return coerce_float(self._value)

    @float_value.setter
    def float_value(self, value: float) -> None:
        self.value = float(value)

    @property
    def string_value(self) -> str:
        return coerce_str(self._value)

    @string_value.setter
    def string_value(self, value: str) -> None:
        self.value = str(value)

    def __repr__(self) -> str:
        return (
            f"EditableValue(name={self.name!r}, value={self._value!r}, "
            f"type={self.type.value}, changed={self.has_changed}, "
            f"deleted={self.to_be_deleted})"
        )


class StoreEditor:
    """Editing session over a backend."""

    def __init__(self, store: BaseLocalStore):
        self.store = store
        self.values: dict[str, EditableValue] = {}
        self.refresh()

    def refresh(self) -> None:
        """Discard staged changes and reload from the store."""
        self.values = {
            key: EditableValue(key, value)
            for key, value in self.store.get_serialized_data().items()
        }

    def __contains__(self, name: str) -> bool:
        return name in self.values

    def __getitem__(self, name: str) -> EditableValue:
        return self.values[name]

    def create(self, name: str, value: Value) -> EditableValue:
        """Add a value that is not in the store yet.

        Raises:
            KeyError: If the name is already present.
        """
        name = self.store.check_key(name)
        if name in self.values:
            raise KeyError(name)
        editable = EditableValue(name, value, is_new=True)
        self.values[name] = editable
        return editable

    def stage(self, name: str, value: Value) -> EditableValue:
        """Change a value, creating it if needed."""
        if name not in self.values:
            return self.create(name, value)
        editable = self.values[name]
        editable.value = value
        return editable

    def mark_deleted(self, name: str, deleted: bool = True) -> None:
        """Flag a value for deletion on the next save.

        Raises:
            KeyError: If the name is unknown.
        """
        self.values[name].to_be_deleted = deleted

    def pending(self) -> list[EditableValue]:
        return [
            value
            for value in self.values.values()
            if value.to_be_deleted or value.has_changed
        ]

    def save_all(self) -> int:
        """Apply staged changes to the store and reload.

        Returns:
            Number of values deleted or written.
        """
        changes = self.pending()
        for editable in changes:
            if editable.to_be_deleted:
                if not editable.is_new:
                    self.store.delete_key(editable.name)
                continue

            if editable.type is ValueType.INT:
                self.store.set_int(editable.name, editable.int_value)
            elif editable.type is ValueType.FLOAT:
                self.store.set_float(editable.name, editable.float_value)
            else:
                self.store.set_string(editable.name, editable.string_value)

        self.store.save()
        logger.info(f"Applied {len(changes)} staged changes")
        self.refresh()
        return len(changes)
