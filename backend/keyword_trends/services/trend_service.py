"""Trend Service.

Orchestrates one forecast: picks the estimator strategy, runs it, reports
the mention total, and falls back to the statistical estimator when the
external verdict is rejected.

Retries, caching and persistence are the caller's concern.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..constants import STRATEGY_EXTERNAL, STRATEGY_STATISTICAL
from ..errors import InvalidExternalResponseError
from ..schemas.trend_schema import Sample, SourceMention, TrendPrediction
from ..timing import async_timer
from .external_estimator import ExternalTrendEstimator
from .trend_estimator import StatisticalTrendEstimator, TrendEstimator, mentions_total
from .wordstat_client import fetch_keyword_history

logger = logging.getLogger(__name__)


def get_estimator(strategy: str) -> TrendEstimator:
    """Return the estimator registered for *strategy*."""
    if strategy == STRATEGY_STATISTICAL:
        return StatisticalTrendEstimator()
    if strategy == STRATEGY_EXTERNAL:
        return ExternalTrendEstimator()
    raise ValueError(f"Unknown trend strategy: {strategy!r}")


async def predict_trend(
    keyword: str,
    series: Sequence[Sample],
    mentions: Optional[Sequence[SourceMention]] = None,
    *,
    strategy: str = STRATEGY_STATISTICAL,
    timeout: Optional[float] = None,
    fallback: bool = True,
    estimator: Optional[TrendEstimator] = None,
) -> TrendPrediction:
    """Forecast *keyword* from an already-fetched series.

    Parameters
    ----------
    strategy:
        ``"statistical"`` or ``"external"``; ignored when *estimator* is given.
    timeout:
        Deadline in seconds for the external prediction service.
    fallback:
        When the external verdict is invalid, return the statistical
        verdict instead of raising ``InvalidExternalResponseError``.
    """
    if estimator is None:
        estimator = get_estimator(strategy)

    fallback_used = False
    async with async_timer("trend_service", f"{estimator.name} estimate"):
        try:
            verdict = await estimator.estimate(keyword, series, mentions, timeout=timeout)
        except InvalidExternalResponseError as exc:
            if not fallback or isinstance(estimator, StatisticalTrendEstimator):
                raise
            print(f"⚠️ [TREND] Invalid external verdict for keyword={keyword!r} - using statistical estimate")
            logger.warning("Invalid external verdict for %r: %s", keyword, exc)
            estimator = StatisticalTrendEstimator()
            verdict = await estimator.estimate(keyword, series, mentions)
            fallback_used = True

    print(
        f"📈 [TREND] keyword={keyword!r} direction={verdict.trend_direction.value} "
        f"growth={verdict.growth_potential} confidence={verdict.confidence_score}"
    )

    return TrendPrediction(
        keyword=keyword,
        verdict=verdict,
        mentions_count=mentions_total(mentions),
        strategy=estimator.name,
        sample_count=len(series),
        fallback_used=fallback_used,
    )


async def forecast_keyword(
    keyword: str,
    *,
    strategy: str = STRATEGY_STATISTICAL,
    timeout: Optional[float] = None,
    fallback: bool = True,
) -> TrendPrediction:
    """Fetch the WordStat history for *keyword*, then forecast it."""
    series, mentions = await fetch_keyword_history(keyword)
    return await predict_trend(
        keyword,
        series,
        mentions,
        strategy=strategy,
        timeout=timeout,
        fallback=fallback,
    )
