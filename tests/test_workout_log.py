"""
End-to-end tests for the WorkoutLog facade.

Wires a real in-memory store to either a recording fake or the JSON
repository acting as the remote authority.
"""

import pytest
from conftest import RecordingRemote, day

from workout_log import WorkoutLog
from workout_log.exceptions import RecordValidationError
from workout_log.sync.connectivity import ConnectivityMonitor
from workout_log.sync.engine import SyncState


@pytest.fixture
async def offline_log(config, remote, offline_monitor):
    log = await WorkoutLog.create(config, remote=remote, monitor=offline_monitor)
    yield log
    await log.close()


class TestLogExercise:
    """Tests for recording entries through the facade."""

    @pytest.mark.asyncio
    async def test_offline_then_online_scenario(self, offline_log, remote, offline_monitor):
        """Record offline, reconnect, sync once, then nothing left to send."""
        record = await offline_log.log_exercise("Squat", 100, unit="kg", sets=3, reps=5)

        [stored] = await offline_log.store.get_all()
        assert stored.id == record.id
        assert stored.synced is False
        assert remote.batches == []
        assert offline_log.status is SyncState.OFFLINE

        await offline_monitor.set_online(True)
        result = await offline_log.sync()

        assert result.synced == 1
        assert len(remote.batches) == 1
        assert remote.batches[0][0]["name"] == "squat"
        assert (await offline_log.store.get(record.id)).synced is True

        again = await offline_log.sync()
        assert again.synced == 0
        assert len(remote.batches) == 1

    @pytest.mark.asyncio
    async def test_online_log_syncs_immediately(self, config, remote, online_monitor):
        async with await WorkoutLog.create(config, remote=remote, monitor=online_monitor) as log:
            record = await log.log_exercise("Deadlift", "140", sets="1", reps="5")

            assert (await log.store.get(record.id)).synced is True
            assert remote.batches[0][0]["weight"] == 140.0

        assert remote.closed is True

    @pytest.mark.asyncio
    async def test_sync_failure_keeps_record(self, config, failing_remote, online_monitor):
        async with await WorkoutLog.create(
            config, remote=failing_remote, monitor=online_monitor
        ) as log:
            record = await log.log_exercise("Row", 60)

            stored = await log.store.get(record.id)
            assert stored is not None
            assert stored.synced is False
            assert log.engine.last_result.success is False

    @pytest.mark.asyncio
    async def test_validation(self, offline_log):
        with pytest.raises(RecordValidationError):
            await offline_log.log_exercise("", 100)
        with pytest.raises(RecordValidationError):
            await offline_log.log_exercise("Squat", None)

        assert await offline_log.store.count() == 0

    @pytest.mark.asyncio
    async def test_zero_sets_preserved(self, offline_log):
        record = await offline_log.log_exercise("Plank", 0, sets=0)

        stored = await offline_log.store.get(record.id)
        assert stored.weight == 0.0
        assert stored.sets == 0
        assert stored.reps is None

    @pytest.mark.asyncio
    async def test_delete_is_local_only(self, config, repository, online_monitor):
        async with await WorkoutLog.create(
            config, remote=repository, monitor=online_monitor
        ) as log:
            record = await log.log_exercise("Squat", 100)
            assert await repository.count() == 1

            assert await log.delete(record.id) is True
            assert await log.store.count() == 0
            assert await repository.count() == 1


class TestProgress:
    """Tests for progress reading through the facade."""

    @pytest.mark.asyncio
    async def test_bench_progression(self, offline_log):
        await offline_log.log_exercise("Bench", 80, created_at=day(1))
        await offline_log.log_exercise("Bench", 85, created_at=day(2))

        records = await offline_log.store.get_by_name("bench")
        assert [r.weight for r in records] == [80.0, 85.0]

        stats = await offline_log.history.stats("bench")
        assert stats.max == 85
        assert stats.latest == 85
        assert stats.format()["change"] == "+5.0"


class TestLifecycle:
    """Tests for start/close."""

    @pytest.mark.asyncio
    async def test_start_syncs_pending_records(self, config, remote):
        monitor = ConnectivityMonitor(probe=False)
        log = await WorkoutLog.create(config, remote=remote, monitor=monitor)
        await log.store.put({"name": "Squat", "weight": 100})

        await log.start()
        try:
            assert len(remote.batches) == 1
            assert await log.store.get_unsynced() == []
        finally:
            await log.close()

        assert log.engine._sync_task is None

    @pytest.mark.asyncio
    async def test_default_remote_is_http(self, config):
        log = await WorkoutLog.create(config, monitor=ConnectivityMonitor(probe=False))
        try:
            assert log.remote.base_url == "http://localhost:3000"
        finally:
            await log.close()

    @pytest.mark.asyncio
    async def test_recording_remote_closed(self, config):
        remote = RecordingRemote()
        log = await WorkoutLog.create(config, remote=remote, monitor=ConnectivityMonitor(probe=False))
        await log.close()
        assert remote.closed is True
