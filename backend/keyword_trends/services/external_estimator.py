"""External-service-backed trend estimator.

Sends the keyword's history to a language model and treats the reply as
untrusted input: the object is validated and normalized by the same
engine as the statistical verdict.

Failure modes
-------------
- ``InsufficientDataError``        - raised before any network call
- ``PredictionTimeoutError``       - caller deadline or HTTP timeout hit
- ``ExternalServiceError``         - network / non-200 response
- ``InvalidExternalResponseError`` - reply is not a valid verdict

Nothing is retried here; retry policy belongs to the caller.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

import httpx

from ..constants import STRATEGY_EXTERNAL
from ..errors import PredictionTimeoutError
from ..schemas.trend_schema import Sample, SourceMention, TrendVerdict
from .normalization_engine import normalize_verdict, utcnow
from .openai_client import call_openai_chat_async
from .trend_estimator import TrendEstimator, profile_series

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = """You are a search-demand analyst. You receive the monthly
search volume history of one keyword ("shows", oldest first) and optional
mention counts from content sources.

Forecast the keyword's trend for the coming months. Respond with a single
JSON object and nothing else:

{
  "trend_direction": "up" | "down" | "stable",
  "growth_potential": number between 0 and 100,
  "confidence_score": number between 0 and 1,
  "seasonality": [list of lowercase month names where demand peaks],
  "prediction_date": ISO-8601 timestamp
}

Use exactly one of the three trend_direction values."""


def build_prediction_payload(
    keyword: str,
    series: Sequence[Sample],
    mentions: Optional[Sequence[SourceMention]] = None,
) -> Dict[str, Any]:
    """Build the ``{keyword, historicalData: {shows, sources}}`` payload."""
    return {
        "keyword": keyword,
        "historicalData": {
            "shows": [
                s.model_dump(mode="json", exclude_none=True) for s in series
            ],
            "sources": [
                m.model_dump(mode="json", exclude_none=True) for m in (mentions or [])
            ],
        },
    }


def build_prediction_messages(
    keyword: str,
    series: Sequence[Sample],
    mentions: Optional[Sequence[SourceMention]] = None,
) -> List[Dict[str, str]]:
    payload = build_prediction_payload(keyword, series, mentions)
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": json.dumps(payload, ensure_ascii=False)},
    ]


class ExternalTrendEstimator(TrendEstimator):
    """Delegates the forecast to an OpenAI-compatible chat endpoint."""

    name = STRATEGY_EXTERNAL

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        now: Callable[[], datetime] = utcnow,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._client = client
        self._now = now

    async def estimate(
        self,
        keyword: str,
        series: Sequence[Sample],
        mentions: Optional[Sequence[SourceMention]] = None,
        *,
        timeout: Optional[float] = None,
    ) -> TrendVerdict:
        samples, profile = profile_series(series)
        messages = build_prediction_messages(keyword, samples, mentions)

        call = call_openai_chat_async(
            messages=messages,
            api_key=self._api_key,
            model=self._model,
            client=self._client,
        )
        try:
            if timeout is None:
                raw = await call
            else:
                raw = await asyncio.wait_for(call, timeout)
        except PredictionTimeoutError:
            raise
        except asyncio.TimeoutError as exc:
            print(f"❌ [TREND] External prediction exceeded {timeout}s for keyword={keyword!r}")
            raise PredictionTimeoutError(
                f"External prediction exceeded the {timeout}s deadline"
            ) from exc

        logger.debug("External verdict for %r: %s", keyword, raw)
        return normalize_verdict(raw, profile, now=self._now)


async def estimate_via_external(
    series: Sequence[Sample],
    mentions: Optional[Sequence[SourceMention]] = None,
    *,
    keyword: str = "",
    timeout: Optional[float] = None,
) -> TrendVerdict:
    """Run the external estimator with environment-configured credentials."""
    return await ExternalTrendEstimator().estimate(
        keyword, series, mentions, timeout=timeout
    )
