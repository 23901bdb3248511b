"""
Remote authority interface.

The sync engine only depends on this contract. The HTTP client and the
server-side repository both implement it, so the engine can talk to a
remote service or (in tests and single-process setups) to the
repository directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from ..records import Record


@dataclass
class BatchAck:
    """Acknowledgement of a whole batch.

    The remote authority accepts or rejects a batch as a unit; there is
    no per-record outcome.
    """

    success: bool
    synced: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "synced": self.synced}


class RemoteAuthority(ABC):
    """Server-side store that merges records by ``id``."""

    @abstractmethod
    async def accept_batch(self, records: Sequence[Record | Mapping[str, Any]]) -> BatchAck:
        """Upsert every record of a batch.

        Raises:
            RecordValidationError: If the batch is malformed
            StorageConnectionError: If the authority cannot be reached
            SyncError: If the authority refuses the batch
        """

    @abstractmethod
    async def accept_one(self, record: Record | Mapping[str, Any]) -> None:
        """Upsert a single directly submitted record.

        Raises:
            RecordValidationError: If name or weight is missing
        """

    async def close(self) -> None:
        """Release any held resources."""
        return None
