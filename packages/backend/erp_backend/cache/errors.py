from __future__ import annotations


class CacheError(Exception):
    """Base class for failures raised by the cache layer itself."""


class SerializationError(CacheError):
    """A value could not be written to, or read back from, a cache payload."""


class UntrustedTypeError(SerializationError):
    """A type discriminator names a type outside the trusted registry."""

    def __init__(self, discriminator: str) -> None:
        super().__init__(f"type not allowed in cache payloads: {discriminator}")
        self.discriminator = discriminator


class CacheKeyError(CacheError, ValueError):
    """A cache key could not be derived from the call arguments."""
