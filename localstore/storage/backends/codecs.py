"""Byte transforms applied to serialized documents before writing and after reading."""

from typing import Protocol

DEFAULT_ENCRYPTION_KEY = "CHANGE_THIS_KEY"


class Codec(Protocol):
    """Reversible transform over a serialized document."""

    name: str

    def encode(self, data: bytes) -> bytes: ...

    def decode(self, data: bytes) -> bytes: ...


class PlainCodec:
    """Identity transform."""

    name = "plain"

    def encode(self, data: bytes) -> bytes:
        return data

    def decode(self, data: bytes) -> bytes:
        return data


class XorCodec:
    """Symmetric byte-wise XOR with a fixed textual key.

    This obfuscates the file contents; it is not encryption in any
    meaningful sense.
    """

    name = "xor"

    def __init__(self, key: str = DEFAULT_ENCRYPTION_KEY):
        if not key:
            raise ValueError("XOR key must not be empty")
        self.key = key.encode("utf-8")

    def _apply(self, data: bytes) -> bytes:
        key = self.key
        size = len(key)
        return bytes(byte ^ key[i % size] for i, byte in enumerate(data))

    def encode(self, data: bytes) -> bytes:
        return self._apply(data)

    def decode(self, data: bytes) -> bytes:
        return self._apply(data)
