"""Trend Estimators.

Defines the ``TrendEstimator`` strategy interface, the window statistics
shared by every strategy, and the deterministic statistical estimator.

Strategies
----------
- ``StatisticalTrendEstimator`` - local heuristic, no external calls.
- ``ExternalTrendEstimator``    - language-model verdict
  (see ``external_estimator.py``).

Both hand their raw verdict to ``normalize_verdict`` so clamping and
penalties are applied in exactly one place.

Adding a new strategy
---------------------
1. Subclass ``TrendEstimator``.
2. Implement ``estimate``; order and profile the series with ``profile_series``.
3. Register it in ``trend_service.get_estimator()``.
"""

from __future__ import annotations

import abc
import logging
import math
import statistics
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..constants import (
    BASELINE_CONFIDENCE,
    DIRECTION_THRESHOLD_PCT,
    FULL_HISTORY_SAMPLES,
    GROWTH_BASELINE,
    MIN_SAMPLES,
    MONTH_TAGS,
    PRIOR_WINDOW,
    RECENT_WINDOW,
    SEASONAL_PEAK_RATIO,
    STRATEGY_STATISTICAL,
)
from ..errors import InsufficientDataError
from ..schemas.trend_schema import (
    Sample,
    SeriesProfile,
    SourceMention,
    TrendDirection,
    TrendVerdict,
)
from .normalization_engine import normalize_verdict, utcnow

logger = logging.getLogger(__name__)


# ===================================================================== #
#  Series helpers                                                         #
# ===================================================================== #

def order_samples(series: Sequence[Sample]) -> List[Sample]:
    """Return samples in chronological order.

    Sorts by timestamp when every sample has one, else by period_index
    when every sample has one; otherwise the caller's order is kept.
    """
    samples = list(series)
    if samples and all(s.timestamp is not None for s in samples):
        return sorted(samples, key=lambda s: s.timestamp)
    if samples and all(s.period_index is not None for s in samples):
        return sorted(samples, key=lambda s: s.period_index)
    return samples


def _valid_shows(samples: Sequence[Sample]) -> List[float]:
    """Non-empty shows values, in order."""
    return [s.shows for s in samples if s.shows is not None]


def _mean(values: Sequence[float]) -> float:
    """Arithmetic mean, 0.0 for an empty window.

    Values near the float maximum are divided before summing, so the mean
    of finite values is always finite.
    """
    if not values:
        return 0.0
    n = len(values)
    total = sum(values)
    if math.isfinite(total):
        return total / n
    return sum(v / n for v in values)


def split_windows(samples: Sequence[Sample]) -> Tuple[List[Sample], List[Sample]]:
    """Return (prior, recent).

    recent = last RECENT_WINDOW samples; prior = the PRIOR_WINDOW samples
    before them, or whatever exists of that range for short series.
    """
    recent = list(samples[-RECENT_WINDOW:])
    prior_end = max(len(samples) - RECENT_WINDOW, 0)
    prior_start = max(prior_end - PRIOR_WINDOW, 0)
    prior = list(samples[prior_start:prior_end])
    return prior, recent


def percent_change(recent_avg: float, prior_avg: float) -> Optional[float]:
    """Percent change between window averages, None without a baseline."""
    if prior_avg == 0:
        return None
    change = (recent_avg - prior_avg) / prior_avg * 100
    if math.isnan(change):
        return None
    return change


def volatility_index(values: Sequence[float]) -> float:
    """std_dev / mean (coefficient of variation), 0.0 when undefined."""
    if len(values) < 2:
        return 0.0

    # The ratio is scale-free; rescale so stdev cannot overflow.
    peak = max(values)
    if peak == 0:
        return 0.0
    scaled = [v / peak for v in values]

    mean_val = _mean(scaled)
    if mean_val == 0:
        return 0.0

    return statistics.stdev(scaled) / mean_val


def classify_direction(change: Optional[float]) -> TrendDirection:
    if change is None:
        return TrendDirection.STABLE
    if change > DIRECTION_THRESHOLD_PCT:
        return TrendDirection.UP
    if change < -DIRECTION_THRESHOLD_PCT:
        return TrendDirection.DOWN
    return TrendDirection.STABLE


def detect_seasonality(samples: Sequence[Sample]) -> List[str]:
    """Tag calendar months whose average volume peaks above the overall mean.

    Needs a timestamp on every sample and at least a full year of history;
    returns [] otherwise.  Tags follow calendar order.
    """
    if len(samples) < FULL_HISTORY_SAMPLES:
        return []
    if any(s.timestamp is None for s in samples):
        return []

    overall = _mean(_valid_shows(samples))
    if overall == 0:
        return []

    by_month: Dict[int, List[float]] = {}
    for s in samples:
        if s.shows is None:
            continue
        by_month.setdefault(s.timestamp.month, []).append(s.shows)

    tags: List[str] = []
    for month in sorted(by_month):
        if _mean(by_month[month]) >= overall * SEASONAL_PEAK_RATIO:
            tags.append(MONTH_TAGS[month - 1])
    return tags


def mentions_total(mentions: Optional[Sequence[SourceMention]]) -> int:
    """Sum of all mention counts (0 when no mentions were supplied)."""
    if not mentions:
        return 0
    return sum(m.count for m in mentions)


def profile_series(series: Sequence[Sample]) -> Tuple[List[Sample], SeriesProfile]:
    """Order *series* once and compute its window statistics.

    Returns the chronologically ordered samples with their profile.

    Raises
    ------
    InsufficientDataError
        If the series has fewer than MIN_SAMPLES samples.
    """
    if len(series) < MIN_SAMPLES:
        raise InsufficientDataError(len(series), MIN_SAMPLES)

    samples = order_samples(series)
    prior, recent = split_windows(samples)

    recent_avg = _mean(_valid_shows(recent))
    prior_avg = _mean(_valid_shows(prior))

    profile = SeriesProfile(
        sample_count=len(samples),
        recent_avg=recent_avg,
        prior_avg=prior_avg,
        percent_change=percent_change(recent_avg, prior_avg),
        volatility=volatility_index(_valid_shows(samples)),
    )
    return samples, profile


def build_series_profile(series: Sequence[Sample]) -> SeriesProfile:
    """Window statistics for *series* (see ``profile_series``)."""
    return profile_series(series)[1]


# ===================================================================== #
#  Strategy interface                                                     #
# ===================================================================== #

class TrendEstimator(abc.ABC):
    """Interface that every trend estimation strategy must implement.

    ``estimate`` receives the keyword, its sample series and optional
    source mentions and returns a normalized ``TrendVerdict``.  Series
    below MIN_SAMPLES raise ``InsufficientDataError`` before any work.
    """

    name: str = ""

    @abc.abstractmethod
    async def estimate(
        self,
        keyword: str,
        series: Sequence[Sample],
        mentions: Optional[Sequence[SourceMention]] = None,
        *,
        timeout: Optional[float] = None,
    ) -> TrendVerdict:
        ...


# ===================================================================== #
#  Statistical estimator                                                  #
# ===================================================================== #

class StatisticalTrendEstimator(TrendEstimator):
    """Compares the last six periods against the six before them."""

    name = STRATEGY_STATISTICAL

    def __init__(self, now: Callable[[], datetime] = utcnow) -> None:
        self._now = now

    def estimate_series(
        self,
        series: Sequence[Sample],
        mentions: Optional[Sequence[SourceMention]] = None,
    ) -> TrendVerdict:
        """Synchronous core of ``estimate``.

        *mentions* does not influence the verdict; the service reports
        their total alongside it.
        """
        samples, profile = profile_series(series)
        change = profile.percent_change

        if change is None:
            logger.info(
                "No usable prior window (prior_avg=0, samples=%d), defaulting to stable",
                profile.sample_count,
            )

        raw = {
            "trend_direction": classify_direction(change),
            "growth_potential": GROWTH_BASELINE + (change or 0.0),
            "confidence_score": BASELINE_CONFIDENCE,
            "seasonality": detect_seasonality(samples),
            "prediction_date": self._now(),
        }
        return normalize_verdict(raw, profile, now=self._now)

    async def estimate(
        self,
        keyword: str,
        series: Sequence[Sample],
        mentions: Optional[Sequence[SourceMention]] = None,
        *,
        timeout: Optional[float] = None,
    ) -> TrendVerdict:
        # Pure computation, nothing to time out.
        return self.estimate_series(series, mentions)


def estimate(
    series: Sequence[Sample],
    mentions: Optional[Sequence[SourceMention]] = None,
) -> TrendVerdict:
    """Run the statistical estimator on *series*."""
    return StatisticalTrendEstimator().estimate_series(series, mentions)
