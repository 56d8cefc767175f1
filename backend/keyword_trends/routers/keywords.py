"""
Keywords Router

Keyword CRUD and per-keyword forecasts, stored in Directus with the
caller's own bearer token.
"""

import time
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from fastapi.concurrency import run_in_threadpool

from ..errors import TrendForecastError
from ..schemas.keyword_schema import Keyword, KeywordCreate
from ..schemas.trend_schema import TrendPrediction
from ..services.auth_dependency import get_bearer_token
from ..services.directus_client import DirectusClient, get_directus_client
from ..services.trend_service import forecast_keyword
from ..timing import elapsed_ms, log_timing
from .errors import http_error_for, service_unavailable

router = APIRouter(
    prefix="/keywords",
    tags=["Keywords"],
)


@router.get(
    "",
    response_model=List[Keyword],
    summary="List the caller's keywords",
)
def list_keywords(
    token: str = Depends(get_bearer_token),
    directus: DirectusClient = Depends(get_directus_client),
) -> List[Keyword]:
    try:
        return directus.list_keywords(token)
    except TrendForecastError as exc:
        raise http_error_for(exc) from exc


@router.post(
    "",
    response_model=Keyword,
    status_code=status.HTTP_201_CREATED,
    summary="Add a keyword",
)
def add_keyword(
    payload: KeywordCreate,
    token: str = Depends(get_bearer_token),
    directus: DirectusClient = Depends(get_directus_client),
) -> Keyword:
    try:
        return directus.add_keyword(token, payload.keyword.strip())
    except TrendForecastError as exc:
        raise http_error_for(exc) from exc


@router.delete(
    "/{keyword_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a keyword",
)
def delete_keyword(
    keyword_id: str,
    token: str = Depends(get_bearer_token),
    directus: DirectusClient = Depends(get_directus_client),
) -> Response:
    try:
        directus.delete_keyword(token, keyword_id)
    except TrendForecastError as exc:
        raise http_error_for(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{keyword_id}/forecast",
    response_model=TrendPrediction,
    summary="Forecast a stored keyword and cache the verdict on it",
)
async def forecast_stored_keyword(
    keyword_id: str,
    strategy: Literal["statistical", "external"] = Query(default="statistical"),
    timeout: Optional[float] = Query(default=None, gt=0),
    token: str = Depends(get_bearer_token),
    directus: DirectusClient = Depends(get_directus_client),
) -> TrendPrediction:
    """Fetch WordStat history for the keyword, forecast it, save the verdict."""
    start_time = time.perf_counter()
    log_timing("keyword_forecast", "START")

    try:
        keyword = await run_in_threadpool(directus.get_keyword, token, keyword_id)
        result = await forecast_keyword(keyword.keyword, strategy=strategy, timeout=timeout)
        await run_in_threadpool(directus.save_keyword_trend, token, keyword_id, result.verdict)
    except TrendForecastError as exc:
        log_timing("keyword_forecast", f"ERROR - {exc}", elapsed_ms(start_time))
        raise http_error_for(exc) from exc
    except EnvironmentError as exc:
        raise service_unavailable(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    log_timing("keyword_forecast", "END", elapsed_ms(start_time))
    return result
