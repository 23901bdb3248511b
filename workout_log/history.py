"""
Read-side query facade over the local store.

What the history list, the progress chart and the exercise picker ask
for. Everything here reads the local store only; the remote authority
is never queried.
"""

from __future__ import annotations

from .local.store import LocalStore
from .records import ProgressionPoint, ProgressStats, Record, calc_stats


class ExerciseHistory:
    """Queries for presentation collaborators."""

    def __init__(self, store: LocalStore):
        self.store = store

    async def list_records(
        self,
        name: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Record]:
        """Records newest first, optionally filtered by name and paginated."""
        return await self.store.get_all(name=name, limit=limit, offset=offset)

    async def names(self) -> list[str]:
        """Exercise names, most logged first."""
        return await self.store.get_names()

    async def progression(self, name: str) -> list[ProgressionPoint]:
        """Oldest-first chart series for one exercise."""
        return [ProgressionPoint.from_record(r) for r in await self.store.get_by_name(name)]

    async def stats(self, name: str) -> ProgressStats | None:
        """Max / latest / change for one exercise, None without data."""
        return calc_stats(await self.progression(name))

    async def last_entry(self, name: str) -> Record | None:
        return await self.store.get_last_by_name(name)

    async def delete(self, record_id: str) -> bool:
        """Delete locally. The deletion is not propagated to the remote authority."""
        return await self.store.remove(record_id)
