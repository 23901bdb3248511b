"""
Synchronization engine for pushing local records to the remote authority.

Protocol per attempt:
- Offline: do nothing, report zero synced
- Read every unsynced record from the local store
- Submit them as one batch
- On acknowledgement, mark every submitted record synced, unless it was
  rewritten locally while the batch was in flight
- On any failure, mark nothing and wait for the next attempt

Retries come from re-invocation: a periodic timer and the
offline -> online transition both call ``attempt_sync``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from ..config import WorkoutLogConfig
from ..local.store import LocalStore
from .base import RemoteAuthority
from .connectivity import ConnectivityMonitor

logger = logging.getLogger(__name__)


class SyncState(Enum):
    """Status signal shown to the user."""

    ONLINE = "online"
    OFFLINE = "offline"
    SYNCING = "syncing"


@dataclass
class SyncResult:
    """Result of one sync attempt."""

    synced: int = 0
    success: bool = True
    error: str | None = None
    skipped: bool = False
    duration_ms: int = 0

    def to_dict(self) -> dict[str, object]:
        return {
            "synced": self.synced,
            "success": self.success,
            "error": self.error,
            "skipped": self.skipped,
            "duration_ms": self.duration_ms,
        }


class SyncEngine:
    """Moves unsynced records to the remote authority, at least once.

    Handles:
    - Offline detection (no network action while offline)
    - All-or-nothing marking per batch
    - A single in-flight submission at a time
    - Periodic and reconnect-triggered attempts
    """

    def __init__(
        self,
        store: LocalStore,
        remote: RemoteAuthority,
        monitor: ConnectivityMonitor | None = None,
        config: WorkoutLogConfig | None = None,
    ) -> None:
        """Initialize the sync engine.

        Args:
            store: Local store to read unsynced records from and mark
            remote: Remote authority receiving batches
            monitor: Connectivity monitor (always online if omitted)
            config: Sync interval and request timeout settings
        """
        self.store = store
        self.remote = remote
        self.monitor = monitor or ConnectivityMonitor(probe=False)
        self.config = config or WorkoutLogConfig()

        self._lock = asyncio.Lock()
        self._sync_task: asyncio.Task[None] | None = None
        self._last_sync: datetime | None = None
        self._last_result: SyncResult | None = None

        # Called with the number of records synced when it is non-zero
        self.on_synced: Callable[[int], None] | None = None

    @property
    def state(self) -> SyncState:
        """Current status: syncing, offline or online."""
        if self._lock.locked():
            return SyncState.SYNCING
        if not self.monitor.is_online:
            return SyncState.OFFLINE
        return SyncState.ONLINE

    @property
    def last_sync(self) -> datetime | None:
        """When a batch was last acknowledged."""
        return self._last_sync

    @property
    def last_result(self) -> SyncResult | None:
        return self._last_result

    async def attempt_sync(self) -> SyncResult:
        """Run one sync attempt.

        Connectivity failures are logged and reported in the result,
        never raised. Local storage failures propagate.
        """
        if not self.monitor.is_online:
            return self._finish(SyncResult(synced=0))

        if self._lock.locked():
            logger.debug("Sync already in progress, skipping")
            return SyncResult(synced=0, skipped=True)

        async with self._lock:
            start_time = datetime.now(UTC)

            unsynced = await self.store.get_unsynced()
            if not unsynced:
                return self._finish(SyncResult(synced=0))

            try:
                ack = await asyncio.wait_for(
                    self.remote.accept_batch(unsynced),
                    timeout=self.config.request_timeout,
                )
            except Exception as e:
                logger.warning(f"Sync failed, will retry later: {e!r}")
                return self._finish(SyncResult(synced=0, success=False, error=str(e) or repr(e)))

            if not ack.success:
                logger.warning("Sync batch not acknowledged, will retry later")
                return self._finish(
                    SyncResult(synced=0, success=False, error="Batch not acknowledged")
                )

            # Rows rewritten while the batch was in flight stay unsynced
            marked = await self.store.mark_synced(unsynced)
            self._last_sync = datetime.now(UTC)

            duration = int((self._last_sync - start_time).total_seconds() * 1000)
            logger.info(f"Synced {marked} of {len(unsynced)} records in {duration}ms")

            result = self._finish(SyncResult(synced=marked, duration_ms=duration))

        if self.on_synced and result.synced:
            self.on_synced(result.synced)
        return result

    def _finish(self, result: SyncResult) -> SyncResult:
        self._last_result = result
        return result

    # =========================================================================
    # Scheduling
    # =========================================================================

    async def start_auto_sync(self) -> None:
        """Start periodic sync and sync-on-reconnect."""
        if self._sync_task is not None:
            return

        self.monitor.add_listener(self._on_reconnect)

        async def sync_loop() -> None:
            while True:
                try:
                    await asyncio.sleep(self.config.sync_interval)
                    if self.monitor.is_online:
                        await self.attempt_sync()
                except asyncio.CancelledError:
                    break
                except Exception as e:
                    logger.error(f"Sync loop error: {e}")

        self._sync_task = asyncio.create_task(sync_loop())
        logger.debug(f"Auto sync started (every {self.config.sync_interval}s)")

    async def stop_auto_sync(self) -> None:
        """Stop periodic sync."""
        self.monitor.remove_listener(self._on_reconnect)

        if self._sync_task is not None:
            self._sync_task.cancel()
            try:
                await self._sync_task
            except asyncio.CancelledError:
                pass
            self._sync_task = None

    async def _on_reconnect(self) -> None:
        await self.attempt_sync()
