"""Port interfaces - storage capability contracts.

Ports (2):
    RawStorePort      - async import/export/delete/clear over Records
    SyncRawStorePort  - synchronous twin, used for in-process stores
"""

from shoebox.ports.raw_store_port import RawStorePort, SyncRawStorePort

__all__ = [
    "RawStorePort",
    "SyncRawStorePort",
]
