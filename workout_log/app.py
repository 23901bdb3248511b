"""
Application facade.

Owns the local store, connectivity monitor, remote authority client and
sync engine for one device. Build it once at startup and pass it (or
its parts) to whatever needs them.

Usage:

    >>> log = await WorkoutLog.create(WorkoutLogConfig.load())
    >>> await log.start()
    >>> await log.log_exercise("Squat", 100, sets=3, reps=5)
    >>> stats = await log.history.stats("squat")
    >>> await log.close()
"""

from __future__ import annotations

import logging
from typing import Any

from .catalog import ExerciseCatalog
from .config import WorkoutLogConfig
from .history import ExerciseHistory
from .local.store import LocalStore
from .records import Record, WeightUnit, validate_required
from .sync.base import RemoteAuthority
from .sync.client import HttpRemoteAuthority
from .sync.connectivity import ConnectivityMonitor
from .sync.engine import SyncEngine, SyncResult, SyncState

logger = logging.getLogger(__name__)


class WorkoutLog:
    """Offline-first workout log for one device."""

    def __init__(
        self,
        store: LocalStore,
        remote: RemoteAuthority,
        monitor: ConnectivityMonitor,
        config: WorkoutLogConfig | None = None,
    ):
        """Wire already constructed components together.

        Args:
            store: Initialized local store
            remote: Remote authority receiving sync batches
            monitor: Connectivity monitor
            config: Settings for the sync engine
        """
        self.config = config or WorkoutLogConfig()
        self.store = store
        self.remote = remote
        self.monitor = monitor
        self.engine = SyncEngine(store, remote, monitor, self.config)
        self.history = ExerciseHistory(store)
        self.catalog = ExerciseCatalog(store)

    @classmethod
    async def create(
        cls,
        config: WorkoutLogConfig | None = None,
        remote: RemoteAuthority | None = None,
        monitor: ConnectivityMonitor | None = None,
    ) -> WorkoutLog:
        """Create and initialize a workout log.

        Args:
            config: Settings (environment/settings file if omitted)
            remote: Remote authority (HTTP client for ``config.remote_url`` if omitted)
            monitor: Connectivity monitor (probes ``config.remote_url`` if omitted)
        """
        if config is None:
            config = WorkoutLogConfig.load()

        store = await LocalStore.create(config)
        if remote is None:
            remote = HttpRemoteAuthority(config.remote_url, timeout=config.request_timeout)
        if monitor is None:
            monitor = ConnectivityMonitor(
                config.remote_url,
                interval=config.connectivity_interval,
                timeout=config.connectivity_timeout,
            )

        return cls(store, remote, monitor, config)

    @property
    def status(self) -> SyncState:
        """Offline / syncing / online signal."""
        return self.engine.state

    async def start(self) -> None:
        """Check connectivity, sync once, then keep syncing in the background."""
        await self.monitor.check()
        await self.monitor.start()
        await self.engine.start_auto_sync()
        await self.engine.attempt_sync()

    async def close(self) -> None:
        """Stop background work and release resources."""
        await self.engine.stop_auto_sync()
        await self.monitor.stop()
        await self.remote.close()
        await self.store.close()
        logger.debug("Workout log closed")

    async def __aenter__(self) -> WorkoutLog:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def log_exercise(
        self,
        name: str,
        weight: float | str,
        sets: int | str | None = None,
        reps: int | str | None = None,
        unit: WeightUnit | str = WeightUnit.KG,
        notes: str = "",
        **extra: Any,
    ) -> Record:
        """Record a user-entered exercise and try to sync it right away.

        Extra keyword arguments (``id``, ``created_at``) are passed through
        to the store.

        Raises:
            RecordValidationError: If name or weight is missing
        """
        data: dict[str, Any] = {
            "name": name,
            "weight": weight,
            "sets": sets,
            "reps": reps,
            "unit": unit,
            "notes": notes,
            **extra,
        }
        validate_required(data)
        data["synced"] = False

        record = await self.store.put(data)
        logger.info(f"Logged {record.name}: {record.weight}{record.unit.value}")

        await self.engine.attempt_sync()
        return record

    async def delete(self, record_id: str) -> bool:
        """Delete a record locally (not propagated to the remote authority)."""
        return await self.history.delete(record_id)

    async def sync(self) -> SyncResult:
        """Run a sync attempt now."""
        return await self.engine.attempt_sync()
