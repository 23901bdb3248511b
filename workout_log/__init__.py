"""
Workout Log

Offline-first exercise logging with sync to a remote authority.

Provides:
- Local SQLite record store with upsert-by-id semantics
- History, progression and usage queries over local data
- Sync engine shipping unsynced records in all-or-nothing batches
- aiohttp server acting as the remote authority

Usage:

    >>> from workout_log import WorkoutLog, WorkoutLogConfig
    >>> async with await WorkoutLog.create(WorkoutLogConfig.load()) as log:
    ...     await log.log_exercise("Bench Press", 80, sets=3, reps=5)
    ...     result = await log.sync()
    ...     print(result.synced)
"""

from .app import WorkoutLog
from .catalog import DEFAULT_EXERCISES, ExerciseCatalog, summarize
from .config import WorkoutLogConfig
from .exceptions import (
    RecordValidationError,
    StorageConnectionError,
    StorageIOError,
    SyncError,
    WorkoutLogError,
)
from .history import ExerciseHistory
from .local import LocalStore
from .records import ProgressionPoint, ProgressStats, Record, WeightUnit, calc_stats
from .sync import (
    BatchAck,
    ConnectivityMonitor,
    HttpRemoteAuthority,
    RemoteAuthority,
    SyncEngine,
    SyncResult,
    SyncState,
)

__all__ = [
    # Facade
    "WorkoutLog",
    "WorkoutLogConfig",
    # Records
    "Record",
    "WeightUnit",
    "ProgressionPoint",
    "ProgressStats",
    "calc_stats",
    # Local
    "LocalStore",
    "ExerciseHistory",
    "ExerciseCatalog",
    "DEFAULT_EXERCISES",
    "summarize",
    # Sync
    "BatchAck",
    "RemoteAuthority",
    "HttpRemoteAuthority",
    "ConnectivityMonitor",
    "SyncEngine",
    "SyncResult",
    "SyncState",
    # Exceptions
    "WorkoutLogError",
    "RecordValidationError",
    "StorageIOError",
    "StorageConnectionError",
    "SyncError",
]

__version__ = "0.1.0"
