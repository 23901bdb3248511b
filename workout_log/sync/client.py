"""
HTTP client for the remote authority.

Posts sync batches and single entries to the workout log server using
aiohttp. Transport problems and refusals are raised as package
exceptions; the sync engine decides what to do with them.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import aiohttp

from ..exceptions import RecordValidationError, StorageConnectionError, SyncError
from ..records import Record, as_mapping
from .base import BatchAck, RemoteAuthority

logger = logging.getLogger(__name__)


class HttpRemoteAuthority(RemoteAuthority):
    """Remote authority reached over HTTP.

    Example:
        >>> remote = HttpRemoteAuthority("https://gym.example.com", timeout=10)
        >>> ack = await remote.accept_batch(unsynced)
        >>> await remote.close()
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Server base URL (``/api/...`` paths are appended)
            timeout: Total seconds allowed per request
            session: Optional externally owned session
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def accept_batch(self, records: Sequence[Record | Mapping[str, Any]]) -> BatchAck:
        """POST ``{"entries": [...]}`` to ``/api/sync``."""
        entries = [_wire(r) for r in records]
        body = await self._post("/api/sync", {"entries": entries})

        if not body.get("success"):
            raise SyncError("Remote authority did not acknowledge batch")

        synced = int(body.get("synced", len(entries)))
        logger.debug(f"Remote acknowledged batch of {synced} entries")
        return BatchAck(success=True, synced=synced)

    async def accept_one(self, record: Record | Mapping[str, Any]) -> None:
        """POST a single entry to ``/api/exercises``."""
        await self._post("/api/exercises", _wire(record))

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        session = self._get_session()

        try:
            async with session.post(url, json=payload, timeout=self.timeout) as response:
                if response.status == 400:
                    body = await response.json(content_type=None)
                    reason = (body or {}).get("error", "bad request")
                    raise RecordValidationError("request", reason)
                if response.status >= 400:
                    text = await response.text()
                    raise SyncError(
                        f"Remote authority returned {response.status}: {text[:200]}",
                        status=response.status,
                    )
                return await response.json(content_type=None) or {}

        except (aiohttp.ClientError, TimeoutError) as e:
            raise StorageConnectionError(url, e) from e


def _wire(record: Record | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(record, Record):
        return record.to_wire()
    return dict(as_mapping(record))
