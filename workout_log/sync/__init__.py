"""
Local-to-remote sync module.

Ships unsynced records to the remote authority and marks them synced
once the whole batch is acknowledged.
"""

from .base import BatchAck, RemoteAuthority
from .client import HttpRemoteAuthority
from .connectivity import ConnectivityMonitor
from .engine import SyncEngine, SyncResult, SyncState

__all__ = [
    "BatchAck",
    "RemoteAuthority",
    "HttpRemoteAuthority",
    "ConnectivityMonitor",
    "SyncEngine",
    "SyncResult",
    "SyncState",
]
