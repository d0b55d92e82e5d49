"""In-process dict implementation of SyncRawStorePort.

- Physical key is "<namespace>:<key>"; several stores with different
  namespaces may share one client dict
- clear() scans every entry and drops those under this namespace's prefix
- Records are deep-copied in and out, so callers never alias stored values
"""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING

from shoebox.core.expiry import ExpiryPolicy
from shoebox.core.namespace import NamespaceKeyer
from shoebox.ports.raw_store_port import SyncRawStorePort
from shoebox.shared.types import DEFAULT_NAMESPACE

if TYPE_CHECKING:
    from shoebox.shared.types import Clock, Record

logger = logging.getLogger(__name__)


class MemoryRawStore(SyncRawStorePort):
    """Dict-backed record store.

    Not persistent: contents live as long as the client dict.
    """

    def __init__(
        self,
        *,
        client: dict[str, Record] | None = None,
        namespace: str = DEFAULT_NAMESPACE,
        clock: Clock | None = None,
    ) -> None:
        self._client: dict[str, Record] = client if client is not None else {}
        self._keyer = NamespaceKeyer(namespace)
        self._expiry = ExpiryPolicy(clock)

    @property
    def namespace(self) -> str:
        return self._keyer.namespace

    def import_(self, key: str, record: Record) -> None:
        self._client[self._keyer.attach(key)] = copy.deepcopy(record)

    def export(self, key: str) -> Record | None:
        record = self._client.get(self._keyer.attach(key))
        live = self._expiry.check(record, on_expire=lambda: self._evict(key))
        return copy.deepcopy(live) if live is not None else None

    def delete(self, key: str) -> None:
        self._client.pop(self._keyer.attach(key), None)

    def clear(self) -> None:
        for physical_key in [k for k in self._client if self._keyer.owns(k)]:
            del self._client[physical_key]

    def _evict(self, key: str) -> None:
        logger.debug("Evicting expired key %s from namespace %s", key, self.namespace)
        self.delete(key)
