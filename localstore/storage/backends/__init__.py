"""Pluggable local store backends.

Every backend implements the same key-value interface:

- **PreferencesBackend**: native preference store plus a persisted key index
- **JsonFileBackend**: whole store as one JSON document
- **SecuredJsonFileBackend**: JSON document passed through an XOR codec
- **XmlFileBackend**: XML document of typed items
"""

from .base import BaseLocalStore
from .codecs import DEFAULT_ENCRYPTION_KEY, Codec, PlainCodec, XorCodec
from .json_file import JsonFileBackend
from .preferences import INDEX_KEY, KeyIndex, PreferencesBackend
from .secured import SecuredJsonFileBackend
from .xml_file import XmlFileBackend, XmlItem, XmlStore

__all__ = [
    "DEFAULT_ENCRYPTION_KEY",
    "INDEX_KEY",
    "BaseLocalStore",
    "Codec",
    "JsonFileBackend",
    "KeyIndex",
    "PlainCodec",
    "PreferencesBackend",
    "SecuredJsonFileBackend",
    "XmlFileBackend",
    "XmlItem",
    "XmlStore",
    "XorCodec",
]
