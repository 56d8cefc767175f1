"""Verdict Normalization Engine.

Turns a raw verdict mapping (from either estimator strategy) into a
bounded ``TrendVerdict``.  This is the ONLY place where clamping and
penalties are applied, so both strategies stay on the same scale.

Rules
-----
- NO API calls
- Numeric fields are repaired (clamped), never rejected
- ``trend_direction`` must be one of the three literals, otherwise the
  verdict is rejected
- Fully deterministic apart from the "now" default for prediction_date
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional

from ..constants import (
    CONFIDENCE_DECIMALS,
    CONFIDENCE_MAX,
    CONFIDENCE_MIN,
    FULL_HISTORY_SAMPLES,
    GROWTH_DECIMALS,
    GROWTH_MAX,
    GROWTH_MIN,
    SPARSE_DATA_PENALTY,
    VOLATILE_GROWTH_CAP,
    VOLATILITY_THRESHOLD,
)
from ..errors import InvalidExternalResponseError
from ..schemas.trend_schema import SeriesProfile, TrendDirection, TrendVerdict

logger = logging.getLogger(__name__)

_VALID_DIRECTIONS = frozenset(d.value for d in TrendDirection)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _clamp(value: float, lo: float, hi: float) -> float:
    """Clamp *value* to [lo, hi]."""
    return max(lo, min(hi, value))


# ---------------------------------------------------------------------------
# Field coercion
# ---------------------------------------------------------------------------

def coerce_direction(value: Any) -> TrendDirection:
    """Return the direction for an exact ``up``/``down``/``stable`` literal."""
    if isinstance(value, TrendDirection):
        return value
    if not isinstance(value, str) or value not in _VALID_DIRECTIONS:
        raise InvalidExternalResponseError(
            f"trend_direction must be one of {sorted(_VALID_DIRECTIONS)}, got {value!r}"
        )
    return TrendDirection(value)


def coerce_number(value: Any, field: str) -> float:
    """Read a numeric field. Missing or non-numeric values are a shape error.

    NaN is rejected; infinities pass through and are clamped by the caller.
    """
    if isinstance(value, bool) or value is None:
        raise InvalidExternalResponseError(f"{field} must be a number, got {value!r}")
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError as exc:
            raise InvalidExternalResponseError(
                f"{field} must be a number, got {value!r}"
            ) from exc
    else:
        raise InvalidExternalResponseError(f"{field} must be a number, got {value!r}")

    if math.isnan(number):
        raise InvalidExternalResponseError(f"{field} must be a number, got NaN")
    return number


def coerce_seasonality(value: Any) -> List[str]:
    """Return unique tags in first-seen order, or [] for anything but strings."""
    if isinstance(value, (set, frozenset)):
        value = sorted(value, key=str)
    if not isinstance(value, (list, tuple)):
        return []
    if not all(isinstance(tag, str) for tag in value):
        return []

    tags: List[str] = []
    for tag in value:
        tag = tag.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def coerce_prediction_date(
    value: Any, now: Callable[[], datetime] = utcnow
) -> datetime:
    """Parse an ISO-8601 timestamp. Missing or unparsable values become *now*."""
    parsed: Optional[datetime] = None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.info("Unparsable prediction_date %r, using now", value)

    if parsed is None:
        return now()
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ---------------------------------------------------------------------------
# Penalties
# ---------------------------------------------------------------------------

def apply_volatility_cap(growth: float, volatility: float) -> float:
    """High-volatility series never claim more than the neutral growth value."""
    if volatility > VOLATILITY_THRESHOLD:
        return min(growth, VOLATILE_GROWTH_CAP)
    return growth


def apply_sparse_penalty(confidence: float, sample_count: int) -> float:
    if sample_count < FULL_HISTORY_SAMPLES:
        return confidence * SPARSE_DATA_PENALTY
    return confidence


# ===================================================================== #
#  Public API                                                             #
# ===================================================================== #

def normalize_verdict(
    raw: Mapping[str, Any],
    profile: SeriesProfile,
    *,
    now: Callable[[], datetime] = utcnow,
) -> TrendVerdict:
    """Validate *raw* and bring it onto the common verdict scale.

    Parameters
    ----------
    raw:
        Mapping with ``trend_direction``, ``growth_potential``,
        ``confidence_score`` and optionally ``seasonality`` and
        ``prediction_date``.
    profile:
        Statistics of the series the verdict was produced from; drives
        the volatility cap and the sparse-data penalty.

    Raises
    ------
    InvalidExternalResponseError
        If ``trend_direction`` is not one of the literals, or a numeric
        field is missing or not a number.
    """
    if not isinstance(raw, Mapping):
        raise InvalidExternalResponseError(
            f"Verdict must be a JSON object, got {type(raw).__name__}"
        )

    direction = coerce_direction(raw.get("trend_direction"))

    growth = coerce_number(raw.get("growth_potential"), "growth_potential")
    growth = _clamp(growth, GROWTH_MIN, GROWTH_MAX)
    growth = apply_volatility_cap(growth, profile.volatility)

    confidence = coerce_number(raw.get("confidence_score"), "confidence_score")
    confidence = _clamp(confidence, CONFIDENCE_MIN, CONFIDENCE_MAX)
    confidence = apply_sparse_penalty(confidence, profile.sample_count)
    confidence = _clamp(confidence, CONFIDENCE_MIN, CONFIDENCE_MAX)

    return TrendVerdict(
        trend_direction=direction,
        growth_potential=round(growth, GROWTH_DECIMALS),
        confidence_score=round(confidence, CONFIDENCE_DECIMALS),
        seasonality=coerce_seasonality(raw.get("seasonality")),
        prediction_date=coerce_prediction_date(raw.get("prediction_date"), now),
    )
