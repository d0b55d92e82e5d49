"""Unified error hierarchy for Shoebox.

All store errors inherit from ShoeboxError. Backend adapters translate
driver exceptions (redis, SQLAlchemy) into these types and chain the
original via ``raise ... from exc``.
"""

from __future__ import annotations


class ShoeboxError(Exception):
    """Base error for all Shoebox exceptions."""

    def __init__(self, message: str, code: str = "SHOEBOX_ERROR") -> None:
        self.code = code
        super().__init__(message)


# -- Backend errors (raised by RawStore implementations) --


class BackingStoreIOError(ShoeboxError):
    """Network or disk failure talking to a physical backend."""

    def __init__(self, backend: str, message: str = "") -> None:
        self.backend = backend
        super().__init__(
            message or f"Backing store {backend} I/O failed",
            code="BACKING_STORE_IO",
        )


class SchemaInitError(ShoeboxError):
    """First-use table/structure creation failed.

    The store does not remember the failure: the next call retries.
    """

    def __init__(self, table: str, message: str = "") -> None:
        self.table = table
        super().__init__(
            message or f"Failed to initialize table {table}",
            code="SCHEMA_INIT",
        )


# -- Codec errors --


class SerializationError(ShoeboxError):
    """A value could not be encoded, or a stored payload is malformed."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="SERIALIZATION")


__all__ = [
    "BackingStoreIOError",
    "SchemaInitError",
    "SerializationError",
    "ShoeboxError",
]
