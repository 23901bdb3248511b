"""
Shared test configuration and fixtures.

Stores are real (in-memory SQLite, JSON files under tmp_path); remotes
that need to misbehave are small in-process fakes.
"""

from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

import pytest

from workout_log.config import WorkoutLogConfig
from workout_log.exceptions import StorageConnectionError
from workout_log.local.store import LocalStore
from workout_log.records import Record
from workout_log.server.repository import ExerciseRepository
from workout_log.sync.base import BatchAck, RemoteAuthority
from workout_log.sync.connectivity import ConnectivityMonitor


def day(n: int, hour: int = 10) -> datetime:
    """A fixed timestamp on day ``n`` of January 2024."""
    return datetime(2024, 1, n, hour, 0, tzinfo=UTC)


class RecordingRemote(RemoteAuthority):
    """Remote that records every batch and can be told to fail."""

    def __init__(self, fail_with: Exception | None = None):
        self.batches: list[list[dict[str, Any]]] = []
        self.singles: list[dict[str, Any]] = []
        self.fail_with = fail_with
        self.closed = False

    async def accept_batch(self, records: Sequence[Record | Mapping[str, Any]]) -> BatchAck:
        if self.fail_with is not None:
            raise self.fail_with
        batch = [r.to_wire() if isinstance(r, Record) else dict(r) for r in records]
        self.batches.append(batch)
        return BatchAck(success=True, synced=len(batch))

    async def accept_one(self, record: Record | Mapping[str, Any]) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.singles.append(record.to_wire() if isinstance(record, Record) else dict(record))

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def config(tmp_path):
    """Config with fast intervals and tmp paths."""
    return WorkoutLogConfig(
        db_path=":memory:",
        remote_url="http://localhost:3000",
        sync_interval=0.05,
        request_timeout=0.5,
        server_data_path=tmp_path / "exercises.json",
    )


@pytest.fixture
async def store():
    """Fixture providing an initialized in-memory local store."""
    local = LocalStore(":memory:")
    await local.initialize()
    yield local
    await local.close()


@pytest.fixture
def repository(tmp_path):
    """Fixture providing a JSON-backed remote repository."""
    return ExerciseRepository(tmp_path / "data" / "exercises.json")


@pytest.fixture
def remote():
    return RecordingRemote()


@pytest.fixture
def failing_remote():
    return RecordingRemote(fail_with=StorageConnectionError("http://localhost:3000"))


@pytest.fixture
def online_monitor():
    return ConnectivityMonitor(probe=False, initially_online=True)


@pytest.fixture
def offline_monitor():
    return ConnectivityMonitor(probe=False, initially_online=False)
