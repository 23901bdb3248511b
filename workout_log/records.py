"""
Core record types for the workout log.

A Record is one logged exercise entry. It is the unit of local storage,
of sync batches, and of the remote authority's merge (upsert by ``id``).
"""

from __future__ import annotations

import math
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from .exceptions import RecordValidationError

# Fields shipped to the remote authority (``synced`` and ``revision`` are local-only)
WIRE_FIELDS = ("id", "name", "weight", "reps", "sets", "unit", "notes", "created_at")


class WeightUnit(Enum):
    """Units a weight can be recorded in."""

    KG = "kg"
    LB = "lb"

    @classmethod
    def parse(cls, value: str | WeightUnit | None) -> WeightUnit:
        """Parse a unit name, defaulting to kilograms when absent.

        Raises:
            RecordValidationError: If the unit is not a known weight unit
        """
        if value is None:
            return cls.KG
        if isinstance(value, WeightUnit):
            return value

        key = str(value).strip().lower()
        if not key:
            return cls.KG
        try:
            return _UNIT_ALIASES[key]
        except KeyError:
            raise RecordValidationError("unit", "unknown weight unit", str(value)) from None


_UNIT_ALIASES = {
    "kg": WeightUnit.KG,
    "kgs": WeightUnit.KG,
    "kilogram": WeightUnit.KG,
    "kilograms": WeightUnit.KG,
    "lb": WeightUnit.LB,
    "lbs": WeightUnit.LB,
    "pound": WeightUnit.LB,
    "pounds": WeightUnit.LB,
}


# =============================================================================
# Coercion helpers
# =============================================================================


def generate_id() -> str:
    """Generate a globally unique record ID."""
    return str(uuid.uuid4())


def normalize_name(name: str | None) -> str:
    """Canonical form of an exercise name: trimmed and lowercased."""
    if name is None:
        return ""
    return str(name).strip().lower()


def coerce_float(value: Any) -> float | None:
    """Coerce a weight value to float, or None when it cannot be read."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(result) else result


def coerce_int(value: Any) -> int | None:
    """Coerce a sets/reps value to int.

    ``None`` and blank strings mean "not recorded" and stay ``None``;
    zero is a real value and is kept.
    """
    number = coerce_float(value)
    if number is None or math.isinf(number):
        return None
    return int(number)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a timestamp into an aware UTC datetime.

    Accepts datetimes and ISO 8601 strings (a trailing ``Z`` is allowed).
    Naive values are taken as UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            raise RecordValidationError("created_at", "invalid timestamp", str(value)) from None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def format_timestamp(dt: datetime) -> str:
    """Fixed-width ISO 8601 form so stored timestamps sort lexically."""
    return dt.astimezone(UTC).isoformat(timespec="microseconds")


def has_value(data: Mapping[str, Any], key: str) -> bool:
    """True when ``key`` is present with a non-empty value."""
    value = data.get(key)
    return value is not None and value != ""


def validate_required(data: Mapping[str, Any]) -> None:
    """Check the fields a direct submission must carry.

    Raises:
        RecordValidationError: If name or weight is missing
    """
    if not normalize_name(data.get("name")):
        raise RecordValidationError("name", "name and weight are required")
    if coerce_float(data.get("weight")) is None:
        raise RecordValidationError("weight", "name and weight are required")


# =============================================================================
# Record
# =============================================================================


@dataclass
class Record:
    """One logged exercise entry.

    Attributes:
        id: Unique identifier, the merge key on both sides of sync
        name: Normalized exercise name
        weight: Weight lifted (None when not readable)
        created_at: When the set was performed (aware UTC)
        sets: Number of sets, None if not recorded
        reps: Number of reps, None if not recorded
        unit: Weight unit
        notes: Free text
        synced: True once the remote authority acknowledged the record
        revision: Local write counter, bumped by every store write
    """

    id: str
    name: str
    weight: float | None
    created_at: datetime
    sets: int | None = None
    reps: int | None = None
    unit: WeightUnit = WeightUnit.KG
    notes: str = ""
    synced: bool = False
    revision: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "weight": self.weight,
            "reps": self.reps,
            "sets": self.sets,
            "unit": self.unit.value,
            "notes": self.notes,
            "created_at": format_timestamp(self.created_at),
            "synced": self.synced,
            "revision": self.revision,
        }

    def to_wire(self) -> dict[str, Any]:
        """Payload sent to the remote authority."""
        data = self.to_dict()
        return {key: data[key] for key in WIRE_FIELDS}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Record:
        """Create a normalized record from loosely typed input.

        Missing ``id`` and ``created_at`` are generated; ``synced`` is
        False unless the input carries it.
        """
        created_at = parse_timestamp(data.get("created_at")) or datetime.now(UTC)
        return cls(
            id=str(data["id"]) if has_value(data, "id") else generate_id(),
            name=normalize_name(data.get("name")),
            weight=coerce_float(data.get("weight")),
            created_at=created_at,
            sets=coerce_int(data.get("sets")),
            reps=coerce_int(data.get("reps")),
            unit=WeightUnit.parse(data.get("unit")),
            notes=data.get("notes") or "",
            synced=bool(data.get("synced", False)),
            revision=coerce_int(data.get("revision")) or 0,
        )


def as_mapping(record: Record | Mapping[str, Any]) -> Mapping[str, Any]:
    """Accept either a Record or a plain mapping."""
    if isinstance(record, Record):
        return record.to_dict()
    return record


# =============================================================================
# Progression
# =============================================================================


@dataclass
class ProgressionPoint:
    """A record projected for charting (identity fields stripped)."""

    weight: float | None
    reps: int | None
    sets: int | None
    unit: WeightUnit
    created_at: datetime

    @classmethod
    def from_record(cls, record: Record) -> ProgressionPoint:
        return cls(
            weight=record.weight,
            reps=record.reps,
            sets=record.sets,
            unit=record.unit,
            created_at=record.created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "weight": self.weight,
            "reps": self.reps,
            "sets": self.sets,
            "unit": self.unit.value,
            "created_at": format_timestamp(self.created_at),
        }


@dataclass
class ProgressStats:
    """Summary of a chronological series of weights."""

    max: float
    latest: float
    first: float
    entries: int
    change: float = field(init=False)

    def __post_init__(self) -> None:
        self.change = self.latest - self.first

    def format(self) -> dict[str, str]:
        """Display form: one decimal, signed change."""
        sign = "+" if self.change >= 0 else ""
        return {
            "max": f"{self.max:.1f}",
            "latest": f"{self.latest:.1f}",
            "change": f"{sign}{self.change:.1f}",
            "entries": str(self.entries),
        }


def calc_stats(points: Iterable[ProgressionPoint | Record]) -> ProgressStats | None:
    """Compute max / latest / change over an oldest-first series.

    Returns None when no point carries a weight.
    """
    weights = [p.weight for p in points if p.weight is not None]
    if not weights:
        return None
    return ProgressStats(
        max=max(weights),
        latest=weights[-1],
        first=weights[0],
        entries=len(weights),
    )
