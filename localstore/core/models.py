"""Core data models for stored values.

Every backend holds named scalars of exactly three kinds: 32-bit integers,
32-bit floats and text. The kind travels with the value as a ``ValueType``
tag, which is also the string persisted by backends that store everything as
text (the XML document, the preference key index).

Key components:
- ValueType: the scalar kinds and their persisted tags
- Record: immutable key/value pair carrying its type tag
- StoreIssue: structured report of an I/O, parse or invariant problem
"""

import enum
from datetime import datetime

import msgspec

DEFAULT_INT = 0
DEFAULT_FLOAT = 0.0
DEFAULT_STRING = ""
DEFAULT_SEPARATOR = ","

Value = int | float | str


class ValueType(enum.Enum):
    """Scalar kinds supported by every backend."""

    INT = "int"
    FLOAT = "float"
    STRING = "string"

    @classmethod
    def of(cls, value: object) -> "ValueType":
        """Classify a Python scalar.

        Booleans are integers (they are stored as 1/0).

        Raises:
            TypeError: If the value is not an int, float or str.
        """
        if isinstance(value, int):
            return cls.INT
        if isinstance(value, float):
            return cls.FLOAT
        if isinstance(value, str):
            return cls.STRING
        raise TypeError(f"Unsupported value type: {type(value).__name__}")

    @classmethod
    def from_tag(cls, tag: str | None) -> "ValueType | None":
        """Look up a persisted type tag, returning None for unknown tags."""
        for member in cls:
            if member.value == tag:
                return member
        return None

    @property
    def zero(self) -> Value:
        """The value getters return for absent or mistyped keys."""
        if self is ValueType.INT:
            return DEFAULT_INT
        if self is ValueType.FLOAT:
            return DEFAULT_FLOAT
        return DEFAULT_STRING


class Record(msgspec.Struct, frozen=True):
    """Immutable key/value pair with its type tag."""

    key: str
    type: ValueType
    value: Value

    @classmethod
    def of(cls, key: str, value: Value) -> "Record":
        """Build a record, narrowing numbers to 32-bit widths."""
        from .values import narrow_float, narrow_int

        value_type = ValueType.of(value)
        if value_type is ValueType.INT:
            value = narrow_int(value)
        elif value_type is ValueType.FLOAT:
            value = narrow_float(value)
        return cls(key=key, type=value_type, value=value)


class IssueKind(enum.Enum):
    """Categories of storage problems."""

    IO = "io"
    PARSE = "parse"
    INVARIANT = "invariant"


class StoreIssue(msgspec.Struct, frozen=True, kw_only=True):
    """A problem a backend recovered from instead of raising."""

    kind: IssueKind
    message: str
    key: str | None = None
    created: datetime = msgspec.field(default_factory=datetime.now)

    def __str__(self) -> str:
        prefix = f"[{self.kind.value}]"
        if self.key is not None:
            prefix += f" {self.key}:"
        return f"{prefix} {self.message}"
