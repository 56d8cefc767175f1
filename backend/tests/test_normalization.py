"""Normalization engine tests - clamping, penalties and coercion of raw verdicts."""

import os
import sys

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import datetime, timezone

import pytest

from keyword_trends.errors import InvalidExternalResponseError
from keyword_trends.schemas.trend_schema import SeriesProfile, TrendDirection
from keyword_trends.services.normalization_engine import (
    coerce_prediction_date,
    coerce_seasonality,
    normalize_verdict,
)

FIXED_NOW = datetime(2026, 3, 1, tzinfo=timezone.utc)


def _profile(sample_count=12, volatility=0.1):
    return SeriesProfile(
        sample_count=sample_count,
        recent_avg=100.0,
        prior_avg=100.0,
        percent_change=0.0,
        volatility=volatility,
    )


def _raw(**overrides):
    raw = {
        "trend_direction": "up",
        "growth_potential": 70,
        "confidence_score": 0.8,
        "seasonality": ["december"],
        "prediction_date": "2026-02-01T00:00:00Z",
    }
    raw.update(overrides)
    return raw


def _normalize(raw, profile=None):
    return normalize_verdict(raw, profile or _profile(), now=lambda: FIXED_NOW)


class TestClamping:
    def test_valid_verdict_passes_through(self):
        verdict = _normalize(_raw())
        assert verdict.trend_direction == TrendDirection.UP
        assert verdict.growth_potential == 70.0
        assert verdict.confidence_score == 0.8
        assert verdict.seasonality == ["december"]
        assert verdict.prediction_date == datetime(2026, 2, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("growth, expected", [(150, 100.0), (-20, 0.0), (1e300, 100.0)])
    def test_growth_clamped(self, growth, expected):
        assert _normalize(_raw(growth_potential=growth)).growth_potential == expected

    @pytest.mark.parametrize("confidence, expected", [(1.7, 1.0), (-0.3, 0.0)])
    def test_confidence_clamped(self, confidence, expected):
        assert _normalize(_raw(confidence_score=confidence)).confidence_score == expected

    @pytest.mark.parametrize(
        "growth, expected",
        [(float("inf"), 100.0), ("Infinity", 100.0), (float("-inf"), 0.0), ("-inf", 0.0)],
    )
    def test_infinite_growth_clamped(self, growth, expected):
        assert _normalize(_raw(growth_potential=growth)).growth_potential == expected

    @pytest.mark.parametrize("confidence, expected", [(float("inf"), 1.0), ("-Infinity", 0.0)])
    def test_infinite_confidence_clamped(self, confidence, expected):
        assert _normalize(_raw(confidence_score=confidence)).confidence_score == expected

    def test_numeric_strings_accepted(self):
        verdict = _normalize(_raw(growth_potential="75", confidence_score=" 0.5 "))
        assert verdict.growth_potential == 75.0
        assert verdict.confidence_score == 0.5


class TestPenalties:
    def test_sparse_penalty_applied(self):
        verdict = _normalize(_raw(confidence_score=0.9), _profile(sample_count=8))
        assert verdict.confidence_score == 0.63

    def test_sparse_penalty_after_clamp(self):
        verdict = _normalize(_raw(confidence_score=5), _profile(sample_count=6))
        assert verdict.confidence_score == 0.7

    def test_no_penalty_for_full_history(self):
        verdict = _normalize(_raw(confidence_score=0.9), _profile(sample_count=24))
        assert verdict.confidence_score == 0.9

    def test_volatility_caps_growth(self):
        verdict = _normalize(_raw(growth_potential=90), _profile(volatility=0.8))
        assert verdict.growth_potential == 50.0

    def test_volatility_keeps_low_growth(self):
        verdict = _normalize(_raw(growth_potential=20), _profile(volatility=0.8))
        assert verdict.growth_potential == 20.0


class TestRejection:
    @pytest.mark.parametrize("direction", ["sideways", "UP", " up", "", None, 1])
    def test_invalid_direction(self, direction):
        with pytest.raises(InvalidExternalResponseError):
            _normalize(_raw(trend_direction=direction))

    @pytest.mark.parametrize("field", ["growth_potential", "confidence_score"])
    def test_missing_number(self, field):
        raw = _raw()
        del raw[field]
        with pytest.raises(InvalidExternalResponseError):
            _normalize(raw)

    @pytest.mark.parametrize("value", [True, "lots", float("nan"), [50], {"v": 1}])
    def test_non_numeric_growth(self, value):
        with pytest.raises(InvalidExternalResponseError):
            _normalize(_raw(growth_potential=value))

    def test_not_a_mapping(self):
        with pytest.raises(InvalidExternalResponseError):
            _normalize(["up", 50, 0.5])


class TestCoercion:
    def test_seasonality_string_becomes_empty(self):
        assert coerce_seasonality("winter") == []

    def test_seasonality_mixed_types_become_empty(self):
        assert coerce_seasonality(["winter", 3]) == []

    def test_seasonality_deduplicated(self):
        assert coerce_seasonality(["dec", "dec", " jan ", ""]) == ["dec", "jan"]

    def test_seasonality_set_sorted(self):
        assert coerce_seasonality({"summer", "autumn"}) == ["autumn", "summer"]

    def test_missing_date_is_now(self):
        assert coerce_prediction_date(None, lambda: FIXED_NOW) == FIXED_NOW

    def test_garbage_date_is_now(self):
        assert coerce_prediction_date("next tuesday", lambda: FIXED_NOW) == FIXED_NOW

    def test_naive_date_assumed_utc(self):
        parsed = coerce_prediction_date("2025-12-31T10:00:00", lambda: FIXED_NOW)
        assert parsed == datetime(2025, 12, 31, 10, 0, tzinfo=timezone.utc)
