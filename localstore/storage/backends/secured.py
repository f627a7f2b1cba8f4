"""XOR-obfuscated JSON file backend."""

from pathlib import Path

from localstore.core.models import DEFAULT_SEPARATOR

from .codecs import DEFAULT_ENCRYPTION_KEY, XorCodec
from .json_file import JsonFileBackend


class SecuredJsonFileBackend(JsonFileBackend):
    """JSON file backend whose document passes through an XOR codec.

    Only the codec differs from the plain backend. A plain JSON file read
    through this backend does not decode and is reported as a parse issue.
    """

    provider_name = "secured_json"

    def __init__(
        self,
        path: Path,
        key: str = DEFAULT_ENCRYPTION_KEY,
        separator: str = DEFAULT_SEPARATOR,
        strict: bool = False,
    ):
        super().__init__(path, codec=XorCodec(key), separator=separator, strict=strict)
