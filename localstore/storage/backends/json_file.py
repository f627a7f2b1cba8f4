"""JSON file storage backend."""

import logging
from pathlib import Path

import msgspec

from localstore.core.exceptions import StoreIOError, StoreParseError
from localstore.core.models import DEFAULT_SEPARATOR, Value
from localstore.core.values import (
    coerce_float,
    coerce_int,
    coerce_str,
    fits_int32,
    narrow_float,
    narrow_int,
)

from .base import BaseLocalStore
from .codecs import Codec, PlainCodec

logger = logging.getLogger(__name__)


class JsonFileBackend(BaseLocalStore):
    """Whole-store JSON document kept in memory and rewritten on every change.

    The file is read once at construction. Every mutating call rewrites the
    complete document atomically. A codec transforms the encoded document
    on its way to and from disk.
    """

    provider_name = "json"

    def __init__(
        self,
        path: Path,
        codec: Codec | None = None,
        separator: str = DEFAULT_SEPARATOR,
        strict: bool = False,
    ):
        super().__init__(separator=separator, strict=strict)
        self.path = Path(path)
        self.codec = codec or PlainCodec()
        self._data: dict[str, Value] = {}

        self.encoder = msgspec.json.Encoder()
        self.decoder = msgspec.json.Decoder()
        self.initialize()

    def initialize(self) -> None:
        """Load the document, falling back to an empty store on any error."""
        self._data = self._deserialize(self._read_file())

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

    def _write_file(self, payload: bytes) -> None:
        """Write the document atomically."""
        temp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_bytes(payload)
            temp_path.replace(self.path)
        except OSError as e:
            try:
                temp_path.unlink(missing_ok=True)
            except OSError:
                pass
            self._recover(StoreIOError(str(self.path), str(e)), cause=e)

    def _deserialize(self, raw: bytes | None) -> dict[str, Value]:
        if not raw:
            return {}

        try:
            document = self.decoder.decode(self.codec.decode(raw))
        except (msgspec.DecodeError, UnicodeDecodeError) as e:
            self._recover(
                StoreParseError(f"Cannot decode {self.path}: {e}"), cause=e
            )
            return {}

        if not isinstance(document, dict):
            self._recover(
                StoreParseError(f"Expected a JSON object in {self.path}")
            )
            return {}

        data: dict[str, Value] = {}
        for key, raw_value in document.items():
            value = self._narrow(raw_value)
            if value is None:
                self._recover(
                    StoreParseError(f"Unsupported stored value: {raw_value!r}"),
                    key=key,
                )
                continue
            data[key] = value
        return data

    def _serialize(self) -> bytes:
        return self.codec.encode(self.encoder.encode(self._data))

    @staticmethod
    def _narrow(value: object) -> Value | None:
        """Fit a decoded JSON value to the 32-bit scalar model."""
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, int):
            return value if fits_int32(value) else narrow_float(value)
        if isinstance(value, float):
            return narrow_float(value)
        if isinstance(value, str):
            return value
        return None

    # Store interface

    def _get(self, key: str) -> Value | None:
        return self._data.get(key)

    def _set(self, key: str, value: Value) -> None:
        key = self.check_key(key)
        self._data[key] = value
        self.save()

    def get_int(self, key: str) -> int:
        return coerce_int(self._get(key))

    def get_float(self, key: str) -> float:
        return coerce_float(self._get(key))

    def get_string(self, key: str) -> str:
        return coerce_str(self._get(key))

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
        return key in self._data

    def save(self) -> None:
        self._write_file(self._serialize())

    def delete_key(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self.save()

    def delete_all(self) -> None:
        self._data.clear()
        self.save()

    def get_serialized_data(self) -> dict[str, Value]:
        return dict(self._data)

    @property
    def location(self) -> str | None:
        return str(self.path)
