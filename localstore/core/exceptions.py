"""Exception classes for local storage."""


class LocalStoreError(Exception):
    """Base exception for local storage errors."""

    pass


class StoreIOError(LocalStoreError):
    """Raised when the durable medium cannot be read or written."""

    def __init__(self, path: str, details: str = ""):
        """Initialize with path and details."""
        self.path = path
        message = f"I/O error on {path}"
        if details:
            message += f": {details}"
        super().__init__(message)


class StoreParseError(LocalStoreError, ValueError):
    """Raised when stored data cannot be decoded."""

    pass


class StoreInvariantError(LocalStoreError):
    """Raised when stored data violates a structural invariant."""

    pass


class InvalidKeyError(LocalStoreError, ValueError):
    """Raised when a key cannot be stored by a backend."""

    def __init__(self, key: object, reason: str):
        """Initialize with key and reason."""
        self.key = key
        super().__init__(f"Invalid key {key!r}: {reason}")


class ValueRangeError(LocalStoreError, ValueError):
    """Raised when a value does not fit the 32-bit scalar widths."""

    pass


class ConfigError(LocalStoreError):
    """Raised for invalid configuration."""

    pass
