"""Tests for record normalization, coercion and progress stats."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from workout_log.exceptions import RecordValidationError
from workout_log.records import (
    ProgressionPoint,
    Record,
    WeightUnit,
    calc_stats,
    coerce_float,
    coerce_int,
    format_timestamp,
    normalize_name,
    parse_timestamp,
    validate_required,
)


class TestNormalization:
    """Tests for field coercion helpers."""

    def test_name_is_trimmed_and_lowercased(self):
        assert normalize_name("  Bench Press ") == "bench press"
        assert normalize_name(None) == ""

    def test_weight_parses_strings(self):
        assert coerce_float("82.5") == 82.5
        assert coerce_float(100) == 100.0
        assert coerce_float("") is None
        assert coerce_float("heavy") is None
        assert coerce_float(None) is None

    def test_zero_sets_are_not_collapsed_to_missing(self):
        """Zero is a recorded value; only None/blank mean 'not recorded'."""
        assert coerce_int(0) == 0
        assert coerce_int("0") == 0
        assert coerce_int(None) is None
        assert coerce_int("") is None

    def test_int_coercion_truncates_like_parse_int(self):
        assert coerce_int("5") == 5
        assert coerce_int("5.7") == 5
        assert coerce_int(3.0) == 3

    def test_unit_aliases(self):
        assert WeightUnit.parse(None) is WeightUnit.KG
        assert WeightUnit.parse("") is WeightUnit.KG
        assert WeightUnit.parse("LBS") is WeightUnit.LB
        assert WeightUnit.parse("kilograms") is WeightUnit.KG
        assert WeightUnit.parse(WeightUnit.LB) is WeightUnit.LB

    def test_unknown_unit_rejected(self):
        with pytest.raises(RecordValidationError) as exc_info:
            WeightUnit.parse("stone")
        assert exc_info.value.field == "unit"


class TestTimestamps:
    """Tests for timestamp parsing and formatting."""

    def test_z_suffix_accepted(self):
        dt = parse_timestamp("2024-01-15T10:00:00Z")
        assert dt == datetime(2024, 1, 15, 10, tzinfo=UTC)

    def test_naive_taken_as_utc(self):
        dt = parse_timestamp(datetime(2024, 1, 15, 10))
        assert dt.tzinfo is not None
        assert dt == datetime(2024, 1, 15, 10, tzinfo=UTC)

    def test_offsets_converted_to_utc(self):
        dt = parse_timestamp("2024-01-15T12:00:00+02:00")
        assert dt == datetime(2024, 1, 15, 10, tzinfo=UTC)

    def test_invalid_timestamp_rejected(self):
        with pytest.raises(RecordValidationError):
            parse_timestamp("yesterday")

    def test_formatted_timestamps_sort_chronologically(self):
        """Fixed-width formatting keeps lexical order equal to time order."""
        base = datetime(2024, 1, 15, 10, tzinfo=timezone(timedelta(hours=5)))
        stamps = [format_timestamp(base + timedelta(microseconds=n * 250_000)) for n in range(6)]
        assert stamps == sorted(stamps)
        assert all(s.endswith("+00:00") for s in stamps)


class TestRecord:
    """Tests for Record construction and serialization."""

    def test_from_dict_assigns_identity_and_time(self):
        record = Record.from_dict({"name": " Squat ", "weight": "100"})

        assert record.id
        assert record.name == "squat"
        assert record.weight == 100.0
        assert record.sets is None
        assert record.reps is None
        assert record.unit is WeightUnit.KG
        assert record.notes == ""
        assert record.synced is False
        assert record.created_at.tzinfo is not None

    def test_from_dict_keeps_given_identity(self):
        record = Record.from_dict(
            {"id": "abc", "name": "Squat", "weight": 100, "created_at": "2024-01-15T10:00:00Z"}
        )
        assert record.id == "abc"
        assert record.created_at == datetime(2024, 1, 15, 10, tzinfo=UTC)

    def test_synced_flag_taken_from_input(self):
        assert Record.from_dict({"name": "x", "weight": 1, "synced": True}).synced is True

    def test_wire_payload_excludes_synced(self):
        record = Record.from_dict({"name": "Squat", "weight": 100, "sets": 3, "reps": 5})
        wire = record.to_wire()

        assert set(wire) == {"id", "name", "weight", "reps", "sets", "unit", "notes", "created_at"}
        assert wire["unit"] == "kg"

    def test_dict_round_trip(self):
        record = Record.from_dict({"name": "Row", "weight": 60, "sets": 0, "unit": "lb"})
        again = Record.from_dict(record.to_dict())
        assert again == record


class TestValidation:
    """Tests for direct-submission validation."""

    def test_missing_name(self):
        with pytest.raises(RecordValidationError) as exc_info:
            validate_required({"weight": 10})
        assert exc_info.value.field == "name"

    def test_blank_name(self):
        with pytest.raises(RecordValidationError):
            validate_required({"name": "   ", "weight": 10})

    def test_missing_weight(self):
        with pytest.raises(RecordValidationError) as exc_info:
            validate_required({"name": "Squat"})
        assert exc_info.value.field == "weight"

    def test_zero_weight_is_valid(self):
        validate_required({"name": "Plank", "weight": 0})


class TestStats:
    """Tests for progress statistics."""

    def _point(self, weight, n):
        return ProgressionPoint(
            weight=weight,
            reps=None,
            sets=None,
            unit=WeightUnit.KG,
            created_at=datetime(2024, 1, n, tzinfo=UTC),
        )

    def test_bench_progression(self):
        stats = calc_stats([self._point(80, 1), self._point(85, 2)])

        assert stats.max == 85
        assert stats.latest == 85
        assert stats.change == 5
        assert stats.entries == 2
        assert stats.format()["change"] == "+5.0"

    def test_regression_has_negative_change(self):
        stats = calc_stats([self._point(90, 1), self._point(100, 2), self._point(85, 3)])

        assert stats.max == 100
        assert stats.change == -5
        assert stats.format() == {"max": "100.0", "latest": "85.0", "change": "-5.0", "entries": "3"}

    def test_empty_series(self):
        assert calc_stats([]) is None
        assert calc_stats([self._point(None, 1)]) is None
