"""RawStorePort - minimal four-operation storage capability.

Every physical backend implements one of these ports:
    RawStorePort      - async (may suspend on I/O): Redis, coalescer
    SyncRawStorePort  - synchronous in-process: memory table, SQLite

``import`` is a Python keyword, so the write operation is ``import_``.
Both ports speak in Records; value-level get/set lives in the facade
(shoebox.store.facade).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shoebox.shared.types import Record


class RawStorePort(ABC):
    """Port: async record storage scoped to one namespace."""

    @abstractmethod
    async def import_(self, key: str, record: Record) -> None:
        """Store a record, overwriting any existing one.

        Args:
            key: Logical key (namespace is applied by the store).
            record: Value plus optional absolute expiry (ms).
        """

    @abstractmethod
    async def export(self, key: str) -> Record | None:
        """Read a record.

        Expired records are reported as None and deleted as a side effect.

        Args:
            key: Logical key.

        Returns:
            The live record, or None if absent or expired.
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete a record by key (no-op if absent).

        Args:
            key: Logical key.
        """

    @abstractmethod
    async def clear(self) -> None:
        """Delete every record in this store's namespace, and nothing else."""


class SyncRawStorePort(ABC):
    """Port: synchronous record storage scoped to one namespace.

    Same contract as RawStorePort without suspension points.
    """

    @abstractmethod
    def import_(self, key: str, record: Record) -> None:
        """Store a record, overwriting any existing one."""

    @abstractmethod
    def export(self, key: str) -> Record | None:
        """Read a live record, or None if absent or expired."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete a record by key (no-op if absent)."""

    @abstractmethod
    def clear(self) -> None:
        """Delete every record in this store's namespace, and nothing else."""
