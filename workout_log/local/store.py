"""
SQLite-backed local record store.

Durable, queryable storage for Records that works without network
access. Records are keyed by ``id`` (writes are upserts) with secondary
indexes on name, creation time and sync flag.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import aiosqlite

from ..config import WorkoutLogConfig
from ..exceptions import StorageConnectionError, StorageIOError
from ..records import (
    Record,
    as_mapping,
    format_timestamp,
    has_value,
    normalize_name,
    parse_timestamp,
)

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

# Columns for standard read operations
RECORD_COLUMNS = (
    "id",
    "name",
    "weight",
    "sets",
    "reps",
    "unit",
    "notes",
    "created_at",
    "synced",
    "revision",
)

_SELECT = f"SELECT {', '.join(RECORD_COLUMNS)} FROM records"

_UPSERT_SQL = """
    INSERT INTO records (id, name, weight, sets, reps, unit, notes, created_at, synced, revision)
    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
    ON CONFLICT(id) DO UPDATE SET
        name = excluded.name,
        weight = excluded.weight,
        sets = excluded.sets,
        reps = excluded.reps,
        unit = excluded.unit,
        notes = excluded.notes,
        created_at = excluded.created_at,
        synced = excluded.synced,
        revision = excluded.revision
"""

# SQLite's default host parameter limit is 999 on older builds
_MAX_PARAMS = 500


class LocalStore:
    """
    Local durable record store.

    Construct once at startup with ``await LocalStore.create(config)`` and
    hand the instance to everything that needs it.

    Features:
    - Upsert by id (a second write with the same id replaces the first)
    - Newest-first history and oldest-first per-name series
    - Unsynced lookup and sync marking for the sync engine
    """

    def __init__(self, db_path: str | Path = ":memory:"):
        """
        Initialize the store.

        Args:
            db_path: SQLite file path, or ``:memory:`` for a throwaway store
        """
        self.db_path = db_path
        self.conn: aiosqlite.Connection | None = None
        self._initialized = False
        self._write_lock = asyncio.Lock()

    @classmethod
    async def create(cls, config: WorkoutLogConfig | None = None) -> LocalStore:
        """Create and initialize a store from configuration."""
        if config is None:
            config = WorkoutLogConfig.from_env()

        store = cls(config.db_path)
        await store.initialize()
        return store

    async def initialize(self) -> None:
        """Open the database and create the schema if needed."""
        if self._initialized:
            return

        try:
            if str(self.db_path) != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

            self.conn = await aiosqlite.connect(str(self.db_path))
            self.conn.row_factory = aiosqlite.Row

            await self.conn.execute("""
                CREATE TABLE IF NOT EXISTS records (
                    id TEXT NOT NULL PRIMARY KEY,
                    name TEXT NOT NULL,
                    weight REAL,
                    sets INTEGER,
                    reps INTEGER,
                    unit TEXT NOT NULL DEFAULT 'kg',
                    notes TEXT NOT NULL DEFAULT '',
                    created_at TEXT NOT NULL,
                    synced INTEGER NOT NULL DEFAULT 0,
                    revision INTEGER NOT NULL DEFAULT 0
                )
            """)
            await self.conn.execute("CREATE INDEX IF NOT EXISTS idx_records_name ON records(name)")
            await self.conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_records_created ON records(created_at)"
            )
            await self.conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_records_synced ON records(synced)"
            )

            await self.conn.execute("""
                CREATE TABLE IF NOT EXISTS custom_exercises (
                    category TEXT NOT NULL,
                    name TEXT NOT NULL,
                    PRIMARY KEY (category, name)
                )
            """)

            await self.conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_meta (
                    key TEXT PRIMARY KEY,
                    value TEXT
                )
            """)
            await self.conn.execute(
                "INSERT OR IGNORE INTO schema_meta (key, value) VALUES ('version', ?)",
                (str(SCHEMA_VERSION),),
            )

            await self.conn.commit()
            self._initialized = True
            logger.info(f"Local store initialized: {self.db_path}")

        except (aiosqlite.Error, OSError) as e:
            if self.conn is not None:
                await self.conn.close()
                self.conn = None
            raise StorageConnectionError(str(self.db_path), e) from e

    async def close(self) -> None:
        """Close the database connection."""
        if self.conn:
            await self.conn.close()
            self.conn = None
        self._initialized = False

    async def __aenter__(self) -> LocalStore:
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # =========================================================================
    # Writes
    # =========================================================================

    async def put(self, record: Record | Mapping[str, Any]) -> Record:
        """Normalize and upsert a record.

        Missing ``id``/``created_at`` are assigned; an existing record's
        ``created_at`` is kept when the write does not carry one.
        Every write bumps the stored ``revision``, whatever the input says.
        No validation of name/weight happens here.

        Returns:
            The record as stored
        """
        data = as_mapping(record)
        item = Record.from_dict(data)

        async with self._write_lock:
            existing = await self._fetch_one(
                "SELECT created_at, revision FROM records WHERE id = ?", (item.id,), "put"
            )
            if existing is None:
                item.revision = 0
            else:
                item.revision = int(existing["revision"]) + 1
                if not has_value(data, "created_at"):
                    item.created_at = parse_timestamp(existing["created_at"])

            await self._write(
                _UPSERT_SQL,
                (
                    item.id,
                    item.name,
                    item.weight,
                    item.sets,
                    item.reps,
                    item.unit.value,
                    item.notes,
                    format_timestamp(item.created_at),
                    1 if item.synced else 0,
                    item.revision,
                ),
                "put",
            )

        logger.debug(f"Stored record {item.id} ({item.name})")
        return item

    async def mark_synced(self, items: Iterable[str | Record]) -> int:
        """Flag records as acknowledged by the remote authority.

        A plain id is marked unconditionally. A Record is marked only if
        the stored row still has the revision that was submitted; a row
        rewritten after it was read keeps ``synced = 0``.

        Unknown ids are ignored (the record may have been deleted locally
        while its batch was in flight).

        Returns:
            Number of records updated
        """
        ids: list[str] = []
        revisions: dict[str, int] = {}
        for item in items:
            if isinstance(item, Record):
                revisions[item.id] = item.revision
            else:
                ids.append(item)
        id_list = [i for i in dict.fromkeys(ids) if i not in revisions]
        updated = 0

        async with self._write_lock:
            for start in range(0, len(id_list), _MAX_PARAMS):
                chunk = id_list[start : start + _MAX_PARAMS]
                placeholders = ", ".join("?" for _ in chunk)
                updated += await self._write(
                    f"UPDATE records SET synced = 1 WHERE id IN ({placeholders})",
                    tuple(chunk),
                    "mark_synced",
                )

            if revisions:
                updated += await self._write_many(
                    "UPDATE records SET synced = 1 WHERE id = ? AND revision = ?",
                    list(revisions.items()),
                    "mark_synced",
                )

        total = len(id_list) + len(revisions)
        logger.debug(f"Marked {updated} of {total} records synced")
        return updated

    async def remove(self, record_id: str) -> bool:
        """Delete a record. Unknown ids are not an error.

        Returns:
            True if a record was removed
        """
        async with self._write_lock:
            deleted = await self._write(
                "DELETE FROM records WHERE id = ?", (record_id,), "remove"
            )
        return deleted > 0

    # =========================================================================
    # Reads
    # =========================================================================

    async def get(self, record_id: str) -> Record | None:
        """Get a single record by id."""
        row = await self._fetch_one(f"{_SELECT} WHERE id = ?", (record_id,), "get")
        return self._row_to_record(row) if row is not None else None

    async def get_all(
        self,
        name: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Record]:
        """All records, newest first.

        Args:
            name: Optional exact (case-insensitive) name filter
            limit: Maximum number of records
            offset: Records to skip before the first returned one
        """
        sql = _SELECT
        params: list[Any] = []

        if name is not None:
            sql += " WHERE name = ?"
            params.append(normalize_name(name))

        # rowid keeps equal timestamps in insertion order
        sql += " ORDER BY created_at DESC, rowid ASC"

        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            params.extend([limit, offset])
        elif offset:
            sql += " LIMIT -1 OFFSET ?"
            params.append(offset)

        rows = await self._fetch_all(sql, tuple(params), "get_all")
        return [self._row_to_record(row) for row in rows]

    async def get_by_name(self, name: str) -> list[Record]:
        """Records for one exercise, oldest first (chart order)."""
        rows = await self._fetch_all(
            f"{_SELECT} WHERE name = ? ORDER BY created_at ASC, rowid ASC",
            (normalize_name(name),),
            "get_by_name",
        )
        return [self._row_to_record(row) for row in rows]

    async def get_last_by_name(self, name: str) -> Record | None:
        """The most recent record for one exercise, if any."""
        row = await self._fetch_one(
            f"{_SELECT} WHERE name = ? ORDER BY created_at DESC, rowid ASC LIMIT 1",
            (normalize_name(name),),
            "get_last_by_name",
        )
        return self._row_to_record(row) if row is not None else None

    async def get_names(self) -> list[str]:
        """Distinct exercise names, most logged first."""
        rows = await self._fetch_all(
            "SELECT name, COUNT(*) AS uses FROM records GROUP BY name ORDER BY uses DESC, name ASC",
            (),
            "get_names",
        )
        return [row["name"] for row in rows]

    async def get_unsynced(self) -> list[Record]:
        """Records not yet acknowledged by the remote authority."""
        rows = await self._fetch_all(f"{_SELECT} WHERE synced = 0", (), "get_unsynced")
        return [self._row_to_record(row) for row in rows]

    async def count(self) -> int:
        """Total number of stored records."""
        row = await self._fetch_one("SELECT COUNT(*) AS total FROM records", (), "count")
        return int(row["total"]) if row is not None else 0

    # =========================================================================
    # Custom exercises (catalog additions)
    # =========================================================================

    async def add_custom_exercise(self, category: str, name: str) -> bool:
        """Persist a user-added exercise name under a category.

        Returns:
            True if the exercise was new
        """
        async with self._write_lock:
            inserted = await self._write(
                "INSERT OR IGNORE INTO custom_exercises (category, name) VALUES (?, ?)",
                (category, name),
                "add_custom_exercise",
            )
        return inserted > 0

    async def get_custom_exercises(self) -> dict[str, list[str]]:
        """User-added exercises grouped by category, in insertion order."""
        rows = await self._fetch_all(
            "SELECT category, name FROM custom_exercises ORDER BY rowid ASC",
            (),
            "get_custom_exercises",
        )
        result: dict[str, list[str]] = {}
        for row in rows:
            result.setdefault(row["category"], []).append(row["name"])
        return result

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require_conn(self) -> aiosqlite.Connection:
        if self.conn is None:
            raise StorageConnectionError(str(self.db_path))
        return self.conn

    async def _write(self, sql: str, params: tuple[Any, ...], operation: str) -> int:
        conn = self._require_conn()
        try:
            cursor = await conn.execute(sql, params)
            await conn.commit()
            return cursor.rowcount
        except aiosqlite.Error as e:
            raise StorageIOError(operation, str(self.db_path), e) from e

    async def _write_many(
        self, sql: str, rows: list[tuple[Any, ...]], operation: str
    ) -> int:
        conn = self._require_conn()
        try:
            cursor = await conn.executemany(sql, rows)
            await conn.commit()
            return cursor.rowcount
        except aiosqlite.Error as e:
            raise StorageIOError(operation, str(self.db_path), e) from e

    async def _fetch_one(
        self, sql: str, params: tuple[Any, ...], operation: str
    ) -> aiosqlite.Row | None:
        conn = self._require_conn()
        try:
            async with conn.execute(sql, params) as cursor:
                return await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StorageIOError(operation, str(self.db_path), e) from e

    async def _fetch_all(
        self, sql: str, params: tuple[Any, ...], operation: str
    ) -> list[aiosqlite.Row]:
        conn = self._require_conn()
        try:
            async with conn.execute(sql, params) as cursor:
                return list(await cursor.fetchall())
        except aiosqlite.Error as e:
            raise StorageIOError(operation, str(self.db_path), e) from e

    @staticmethod
    def _row_to_record(row: aiosqlite.Row) -> Record:
        return Record.from_dict({key: row[key] for key in RECORD_COLUMNS})
