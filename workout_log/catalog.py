"""
Exercise library.

Default exercises grouped by muscle category, plus exercises the user
adds under a category (persisted in the local store).
"""

from __future__ import annotations

from .exceptions import RecordValidationError
from .local.store import LocalStore
from .records import Record, normalize_name

DEFAULT_EXERCISES: dict[str, list[str]] = {
    "Chest": [
        "Bench Press",
        "Incline Bench",
        "Decline Bench",
        "DB Fly",
        "Cable Fly",
        "Push-Up",
        "Dips",
        "Chest Press",
    ],
    "Back": [
        "Deadlift",
        "Pull-Up",
        "Lat Pulldown",
        "Seated Row",
        "Bent Over Row",
        "T-Bar Row",
        "Single Arm Row",
        "Face Pull",
        "Hyperextension",
    ],
    "Shoulders": [
        "Overhead Press",
        "DB Shoulder Press",
        "Lateral Raise",
        "Front Raise",
        "Rear Delt Fly",
        "Arnold Press",
        "Shrugs",
        "Upright Row",
    ],
    "Legs": [
        "Squat",
        "Leg Press",
        "Romanian Deadlift",
        "Leg Extension",
        "Leg Curl",
        "Lunges",
        "Calf Raise",
        "Hack Squat",
        "Bulgarian Split Squat",
    ],
    "Arms": [
        "Barbell Curl",
        "Dumbbell Curl",
        "Hammer Curl",
        "Preacher Curl",
        "Tricep Pushdown",
        "Skull Crusher",
        "Overhead Tricep",
        "Close Grip Bench",
    ],
    "Core": [
        "Plank",
        "Crunch",
        "Cable Crunch",
        "Leg Raise",
        "Russian Twist",
        "Ab Rollout",
        "Side Plank",
    ],
}

NO_HISTORY = "No history"


def summarize(record: Record | None) -> str:
    """One-line summary of an entry, e.g. ``100kg · 3×5``."""
    if record is None:
        return NO_HISTORY

    weight = "?" if record.weight is None else f"{record.weight:g}"
    text = f"{weight}{record.unit.value}"
    if record.sets is not None:
        reps = "?" if record.reps is None else str(record.reps)
        text += f" · {record.sets}×{reps}"
    return text


class ExerciseCatalog:
    """Default and user-added exercises per category."""

    def __init__(self, store: LocalStore):
        self.store = store

    def categories(self) -> list[str]:
        return list(DEFAULT_EXERCISES)

    async def exercises_for(self, category: str) -> list[str]:
        """Defaults followed by custom additions for a category."""
        self._check_category(category)
        custom = (await self.store.get_custom_exercises()).get(category, [])
        defaults = DEFAULT_EXERCISES[category]
        known = {normalize_name(name) for name in defaults}
        return defaults + [name for name in custom if normalize_name(name) not in known]

    async def add_custom(self, category: str, name: str) -> bool:
        """Add an exercise under a category.

        Names are compared the way records are keyed, so "bench press"
        matches the default "Bench Press".

        Returns:
            True if it was not already listed
        """
        self._check_category(category)
        name = name.strip() if name else ""
        if not name:
            raise RecordValidationError("name", "exercise name is required")

        listed = await self.exercises_for(category)
        if normalize_name(name) in {normalize_name(n) for n in listed}:
            return False
        return await self.store.add_custom_exercise(category, name)

    async def last_entries(self, category: str) -> dict[str, Record | None]:
        """Latest logged record for each exercise in a category."""
        latest: dict[str, Record] = {}
        for record in await self.store.get_all():
            # get_all is newest first, so the first hit per name wins
            latest.setdefault(record.name, record)

        return {
            name: latest.get(normalize_name(name))
            for name in await self.exercises_for(category)
        }

    @staticmethod
    def _check_category(category: str) -> None:
        if category not in DEFAULT_EXERCISES:
            raise RecordValidationError("category", "unknown category", category)
