"""WordStat Client.

Fetches keyword search-volume history from the WordStat JSON API and turns
it into a ``SampleSeries`` plus ``SourceMentions``.

Rules
-----
- NO estimation here
- Pure signal extraction
- One request per call; failures raise ``ExternalServiceError``
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import httpx

from ..config import get_wordstat_credentials, get_wordstat_timeout, get_wordstat_url
from ..errors import ExternalServiceError
from ..schemas.trend_schema import Sample, SourceMention

logger = logging.getLogger(__name__)

# Keys the provider has used for the volume of one period.
_VOLUME_KEYS = ("shows", "count", "number")
_TIME_KEYS = ("timestamp", "date", "period")
_SOURCE_ID_KEYS = ("source_id", "source", "id", "name")
# Wrappers the series may be nested under.
_CONTAINER_KEYS = ("data", "content", "result")


# ===================================================================== #
#  Parsing helpers                                                        #
# ===================================================================== #

def _to_number(value: Any) -> Optional[float]:
    """Parse a volume value; returns None for empty or invalid input."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = value.replace(" ", "").replace("\u00a0", "").replace(",", "")
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
    else:
        return None

    if number != number or number < 0:  # NaN or negative
        return None
    return number


def _parse_timestamp(value: Any) -> Optional[datetime]:
    """Accept ISO dates/datetimes and ``YYYY-MM`` month stamps."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    if len(text) == 7 and text[4] == "-":
        text += "-01"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _first(item: Dict[str, Any], keys: Tuple[str, ...]) -> Any:
    for key in keys:
        if key in item:
            return item[key]
    return None


def _find_container(payload: Any) -> Dict[str, Any]:
    """Locate the dict holding ``shows``/``sources``."""
    if isinstance(payload, list):
        return {"shows": payload}
    if not isinstance(payload, dict):
        return {}
    if "shows" in payload or "sources" in payload:
        return payload
    for key in _CONTAINER_KEYS:
        nested = payload.get(key)
        if isinstance(nested, dict) and ("shows" in nested or "sources" in nested):
            return nested
    return {}


def parse_wordstat_payload(payload: Any) -> Tuple[List[Sample], List[SourceMention]]:
    """Convert a WordStat response body into (series, mentions).

    Items without a usable volume become empty samples so the series
    length still reflects the number of periods.  Mentions with an
    invalid count are skipped.
    """
    container = _find_container(payload)

    series: List[Sample] = []
    raw_shows = container.get("shows") or []
    if isinstance(raw_shows, list):
        for idx, item in enumerate(raw_shows):
            if not isinstance(item, dict):
                item = {"shows": item}
            phrase = item.get("phrase")
            series.append(
                Sample(
                    shows=_to_number(_first(item, _VOLUME_KEYS)),
                    period_index=idx,
                    phrase=phrase if isinstance(phrase, str) else None,
                    timestamp=_parse_timestamp(_first(item, _TIME_KEYS)),
                )
            )

    mentions: List[SourceMention] = []
    raw_sources = container.get("sources") or []
    if isinstance(raw_sources, list):
        for item in raw_sources:
            if not isinstance(item, dict):
                continue
            count = _to_number(item.get("count"))
            if count is None:
                continue
            source_id = _first(item, _SOURCE_ID_KEYS)
            mentions.append(
                SourceMention(
                    source_id=str(source_id) if source_id is not None else None,
                    count=int(count),
                )
            )

    return series, mentions


# ===================================================================== #
#  Public API                                                             #
# ===================================================================== #

async def fetch_wordstat(
    keyword: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> Any:
    """Fetch the raw WordStat JSON for *keyword*.

    Raises
    ------
    ValueError
        If *keyword* is blank.
    ExternalServiceError
        Timeout, network failure, non-200 status or a non-JSON body.
    """
    keyword = (keyword or "").strip()
    if not keyword:
        raise ValueError("Keyword is required")

    user, key = get_wordstat_credentials()
    params = {"user": user, "key": key, "query": keyword}

    print(f"🔍 [WORDSTAT] Fetching history for keyword={keyword!r}")
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=get_wordstat_timeout()) as owned:
                response = await owned.get(get_wordstat_url(), params=params)
        else:
            response = await client.get(get_wordstat_url(), params=params)
    except httpx.TimeoutException as exc:
        print(f"⚠️ [WORDSTAT] Timeout for keyword={keyword!r}")
        raise ExternalServiceError(f"WordStat timed out for {keyword!r}") from exc
    except httpx.HTTPError as exc:
        logger.warning("WordStat error for keyword=%r: %s", keyword, exc)
        raise ExternalServiceError(f"WordStat request failed: {exc}") from exc

    print(f"📦 [WORDSTAT] HTTP {response.status_code} for keyword={keyword!r}")
    if response.status_code != 200:
        logger.warning(
            "WordStat HTTP %d for keyword=%r", response.status_code, keyword
        )
        raise ExternalServiceError(
            f"WordStat returned HTTP {response.status_code}",
            status_code=response.status_code,
        )

    try:
        return response.json()
    except ValueError as exc:
        raise ExternalServiceError("WordStat returned a non-JSON body") from exc


async def fetch_keyword_history(
    keyword: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> Tuple[List[Sample], List[SourceMention]]:
    """Fetch and parse the history for *keyword*."""
    payload = await fetch_wordstat(keyword, client=client)
    series, mentions = parse_wordstat_payload(payload)
    print(f"📦 [WORDSTAT] keyword={keyword!r} → {len(series)} samples, {len(mentions)} sources")
    return series, mentions
