"""
Trends Router with Timing Instrumentation

Handles forecasting for caller-supplied history (/trends/predict) and for
history fetched from WordStat (/trends/forecast).
"""

import time
from typing import Literal, Optional

from fastapi import APIRouter, HTTPException, Query, status

from ..errors import TrendForecastError
from ..schemas.trend_schema import TrendPrediction, TrendPredictionRequest
from ..services.trend_service import forecast_keyword, predict_trend
from ..timing import elapsed_ms, log_timing
from .errors import http_error_for, service_unavailable

router = APIRouter(
    prefix="/trends",
    tags=["Trends"],
    responses={
        422: {"description": "Not enough history to forecast"},
        502: {"description": "Upstream service failed or returned an invalid verdict"},
        504: {"description": "Prediction service exceeded the deadline"},
    },
)


@router.post(
    "/predict",
    response_model=TrendPrediction,
    status_code=status.HTTP_200_OK,
    summary="Forecast a keyword from its history",
    response_description="Normalized trend verdict with mention total",
)
async def predict(request: TrendPredictionRequest) -> TrendPrediction:
    start_time = time.perf_counter()
    log_timing("predict_endpoint", "START")

    try:
        result = await predict_trend(
            request.keyword,
            request.historical_data.shows,
            request.historical_data.sources,
            strategy=request.strategy,
            timeout=request.timeout,
            fallback=request.fallback,
        )
    except TrendForecastError as exc:
        log_timing("predict_endpoint", f"ERROR - {exc}", elapsed_ms(start_time))
        raise http_error_for(exc) from exc
    except EnvironmentError as exc:
        raise service_unavailable(exc) from exc

    log_timing("predict_endpoint", "END", elapsed_ms(start_time))
    return result


@router.get(
    "/forecast",
    response_model=TrendPrediction,
    summary="Fetch WordStat history and forecast a keyword",
)
async def forecast(
    keyword: str = Query(..., min_length=1, description="Keyword to forecast"),
    strategy: Literal["statistical", "external"] = Query(default="statistical"),
    timeout: Optional[float] = Query(default=None, gt=0),
) -> TrendPrediction:
    start_time = time.perf_counter()
    log_timing("forecast_endpoint", "START")

    try:
        result = await forecast_keyword(keyword, strategy=strategy, timeout=timeout)
    except TrendForecastError as exc:
        log_timing("forecast_endpoint", f"ERROR - {exc}", elapsed_ms(start_time))
        raise http_error_for(exc) from exc
    except EnvironmentError as exc:
        raise service_unavailable(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    log_timing("forecast_endpoint", "END", elapsed_ms(start_time))
    return result
