"""Custom exceptions for registry blob publishing and serving."""

from typing import Optional


class RegistryError(Exception):
    """Base exception for all registry-related errors."""

    pass


class StoreError(RegistryError):
    """Raised on transport, authentication or store-side failures."""

    pass


class NotFoundError(StoreError):
    """Raised when a key is absent from the blob store."""

    def __init__(self, name: str, message: Optional[str] = None) -> None:
        self.name = name
        super().__init__(message or f"Blob not found: {name}")


class ConflictError(RegistryError):
    """Raised when a key already holds different content."""

    def __init__(self, name: str, existing: str, expected: str) -> None:
        self.name = name
        self.existing = existing
        self.expected = expected
        super().__init__(
            f"Key {name} already holds {existing}, refusing to write {expected}"
        )


class ModelError(RegistryError):
    """Raised when image content cannot be decomposed into blobs."""

    pass


class TarReadError(ModelError):
    """Raised when unable to read or parse tar file."""

    pass


class ValidationError(RegistryError):
    """Raised when a digest or alias supplied by the caller is malformed."""

    def __init__(self, message: str, code: str = "NAME_INVALID") -> None:
        self.code = code
        super().__init__(message)


class ConfigError(RegistryError):
    """Raised when store configuration values cannot be parsed."""

    pass
