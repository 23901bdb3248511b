"""
Server-side entry repository (the remote authority's durable store).

Entries live in a single JSON document. Every accept is an upsert by
``id`` stamped with a server receipt time (``synced_at``), so a batch
delivered twice leaves one copy of each entry.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..exceptions import RecordValidationError, StorageIOError
from ..records import (
    ProgressionPoint,
    Record,
    as_mapping,
    format_timestamp,
    has_value,
    normalize_name,
    parse_timestamp,
    validate_required,
)
from ..sync.base import BatchAck, RemoteAuthority
from .file_ops import read_json, write_json_atomic

logger = logging.getLogger(__name__)


class ExerciseRepository(RemoteAuthority):
    """JSON-file backed store accepting upserted entries from clients."""

    def __init__(self, data_path: Path):
        """Initialize the repository.

        Args:
            data_path: JSON file holding the entry list (created on first write)
        """
        self.data_path = Path(data_path)
        self._lock = asyncio.Lock()

    # =========================================================================
    # Accept (RemoteAuthority)
    # =========================================================================

    async def accept_batch(self, records: Sequence[Record | Mapping[str, Any]]) -> BatchAck:
        """Upsert a batch of entries.

        The batch is normalized up front; a malformed batch is refused
        whole and nothing is written.

        Raises:
            RecordValidationError: If the batch or one of its entries is malformed,
                or an entry carries no id
        """
        if isinstance(records, (str, bytes, Mapping)) or not isinstance(records, Sequence):
            raise RecordValidationError("entries", "entries array required")

        received_at = datetime.now(UTC)
        entries = []
        for raw in records:
            if not isinstance(raw, (Record, Mapping)):
                raise RecordValidationError("entries", "each entry must be an object")
            item = as_mapping(raw)
            # Redelivery has to land on the same entry
            if not has_value(item, "id"):
                raise RecordValidationError("id", "each entry needs an id")
            entries.append(self._to_entry(item, received_at))

        async with self._lock:
            data = await self._load()
            for entry in entries:
                self._upsert(data, entry)
            await self._save(data)

        logger.info(f"Accepted batch of {len(entries)} entries")
        return BatchAck(success=True, synced=len(entries))

    async def accept_one(self, record: Record | Mapping[str, Any]) -> None:
        """Upsert a directly submitted entry.

        Raises:
            RecordValidationError: If name or weight is missing
        """
        data = as_mapping(record)
        validate_required(data)
        entry = self._to_entry(data, datetime.now(UTC))

        async with self._lock:
            entries = await self._load()
            self._upsert(entries, entry)
            await self._save(entries)

        logger.debug(f"Accepted entry {entry['id']} ({entry['name']})")

    # =========================================================================
    # Queries
    # =========================================================================

    async def list_entries(
        self,
        name: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """Entries newest first, optionally filtered by name and paginated."""
        entries = await self._load()

        if name is not None:
            wanted = normalize_name(name)
            entries = [e for e in entries if normalize_name(e.get("name")) == wanted]

        entries.sort(key=_created_key, reverse=True)

        if limit is not None:
            start = max(offset, 0)
            entries = entries[start : start + limit]
        elif offset:
            entries = entries[offset:]
        return entries

    async def names(self) -> list[str]:
        """Distinct names, most used first."""
        entries = await self._load()
        counts = Counter(normalize_name(e.get("name")) for e in entries)
        return [name for name, _ in sorted(counts.items(), key=lambda item: (-item[1], item[0]))]

    async def progression(self, name: str) -> list[dict[str, Any]]:
        """Oldest-first series for one name, identity fields stripped."""
        wanted = normalize_name(name)
        entries = [e for e in await self._load() if normalize_name(e.get("name")) == wanted]
        entries.sort(key=_created_key)
        return [ProgressionPoint.from_record(Record.from_dict(e)).to_dict() for e in entries]

    async def delete(self, entry_id: str) -> bool:
        """Remove an entry; unknown ids are not an error.

        Returns:
            True if an entry was removed
        """
        async with self._lock:
            entries = await self._load()
            kept = [e for e in entries if e.get("id") != entry_id]
            if len(kept) == len(entries):
                return False
            await self._save(kept)
        return True

    async def count(self) -> int:
        return len(await self._load())

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _to_entry(data: Mapping[str, Any], received_at: datetime) -> dict[str, Any]:
        entry = Record.from_dict(data).to_wire()
        entry["synced_at"] = format_timestamp(received_at)
        return entry

    @staticmethod
    def _upsert(entries: list[dict[str, Any]], entry: dict[str, Any]) -> None:
        for index, existing in enumerate(entries):
            if existing.get("id") == entry["id"]:
                entries[index] = entry
                return
        entries.append(entry)

    async def _load(self) -> list[dict[str, Any]]:
        data = await read_json(self.data_path)
        if data is None:
            return []
        if not isinstance(data, list):
            raise StorageIOError(
                "load_entries", str(self.data_path), ValueError("expected a JSON array")
            )
        return data

    async def _save(self, entries: list[dict[str, Any]]) -> None:
        await write_json_atomic(self.data_path, entries)


def _created_key(entry: Mapping[str, Any]) -> datetime:
    return parse_timestamp(entry.get("created_at")) or datetime.min.replace(tzinfo=UTC)
