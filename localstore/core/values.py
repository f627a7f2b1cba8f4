"""Scalar narrowing, parsing and coercion helpers.

Stored numbers follow 32-bit semantics: integers must fit a signed 32-bit
word and floats are rounded to IEEE-754 single precision. Parsing is strict
(no digit separators, no locale digits) so that text which merely looks
numeric to Python's ``int()`` stays text.
"""

import math
import re
import struct

from .exceptions import InvalidKeyError, StoreParseError, ValueRangeError
from .models import (
    DEFAULT_FLOAT,
    DEFAULT_INT,
    DEFAULT_STRING,
    Value,
    ValueType,
)

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

_INT_PATTERN = re.compile(r"^\s*[+-]?\d+\s*$", re.ASCII)
_FLOAT_PATTERN = re.compile(
    r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?\s*$", re.ASCII
)
_SPECIAL_FLOATS = {"inf", "+inf", "-inf", "infinity", "+infinity", "-infinity", "nan"}
_XML_INVALID_CHARS = re.compile(
    r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]"
)


def narrow_int(value: int) -> int:
    """Check that an integer fits in 32 bits.

    Raises:
        ValueRangeError: If the value is outside the signed 32-bit range.
    """
    value = int(value)
    if not INT32_MIN <= value <= INT32_MAX:
        raise ValueRangeError(f"Integer {value} does not fit in 32 bits")
    return value


def narrow_float(value: float) -> float:
    """Round a number to the nearest single-precision float.

    Magnitudes beyond the single range become infinities.
    """
    try:
        value = float(value)
    except OverflowError:
        return math.copysign(math.inf, value)
    if math.isnan(value) or math.isinf(value):
        return value
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def fits_int32(value: int) -> bool:
    return INT32_MIN <= value <= INT32_MAX


def parse_int(text: str) -> int | None:
    """Parse a 32-bit integer, returning None on failure."""
    if not isinstance(text, str) or not _INT_PATTERN.match(text):
        return None
    value = int(text)
    return value if fits_int32(value) else None


def parse_float(text: str, allow_special: bool = False) -> float | None:
    """Parse a single-precision float, returning None on failure.

    With ``allow_special``, ``inf``, ``-inf`` and ``nan`` are accepted too.
    """
    if not isinstance(text, str):
        return None
    if _FLOAT_PATTERN.match(text):
        return narrow_float(float(text))
    if allow_special and text.strip().lower() in _SPECIAL_FLOATS:
        return float(text)
    return None


def coerce_int(value: Value | None) -> int:
    """Read any stored scalar as an int, or 0 when that is impossible."""
    if value is None:
        return DEFAULT_INT
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return DEFAULT_INT
        rounded = round(value)
        return rounded if fits_int32(rounded) else DEFAULT_INT
    parsed = parse_int(value)
    return parsed if parsed is not None else DEFAULT_INT


def coerce_float(value: Value | None) -> float:
    """Read any stored scalar as a float, or 0.0 when that is impossible."""
    if value is None:
        return DEFAULT_FLOAT
    if isinstance(value, (int, float)):
        return narrow_float(value)
    parsed = parse_float(value)
    return parsed if parsed is not None else DEFAULT_FLOAT


def coerce_str(value: Value | None) -> str:
    """Read any stored scalar as text."""
    if value is None:
        return DEFAULT_STRING
    if isinstance(value, str):
        return value
    return format_value(value)


def format_value(value: Value) -> str:
    """Render a scalar as text (XML attribute values, JSON export)."""
    if isinstance(value, bool):
        return str(int(value))
    return str(value)


def sniff_value(raw: object) -> tuple[ValueType, Value]:
    """Guess the type of an imported value.

    Tries an int parse, then a float parse, and falls back to text.

    Raises:
        StoreParseError: If the value is not a scalar.
    """
    if raw is None or isinstance(raw, (list, tuple, dict, set)):
        raise StoreParseError(f"Cannot import non-scalar value: {raw!r}")

    text = raw if isinstance(raw, str) else str(raw)

    int_value = parse_int(text)
    if int_value is not None:
        return ValueType.INT, int_value

    float_value = parse_float(text)
    if float_value is not None:
        return ValueType.FLOAT, float_value

    return ValueType.STRING, text


def validate_key(key: object) -> str:
    """Check that a key is a non-empty string."""
    if not isinstance(key, str):
        raise InvalidKeyError(key, "keys must be strings")
    if not key:
        raise InvalidKeyError(key, "keys must not be empty")
    return key


def is_utf8_text(text: str) -> bool:
    """Whether text encodes as UTF-8 (no lone surrogates)."""
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def is_xml_text(text: str) -> bool:
    """Whether text only holds characters allowed in XML 1.0 documents."""
    return _XML_INVALID_CHARS.search(text) is None
