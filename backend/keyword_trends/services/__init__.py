from .trend_estimator import StatisticalTrendEstimator, TrendEstimator, estimate
from .external_estimator import ExternalTrendEstimator, estimate_via_external
from .normalization_engine import normalize_verdict
from .trend_service import forecast_keyword, get_estimator, predict_trend

__all__ = [
    "TrendEstimator",
    "StatisticalTrendEstimator",
    "ExternalTrendEstimator",
    "estimate",
    "estimate_via_external",
    "normalize_verdict",
    "get_estimator",
    "predict_trend",
    "forecast_keyword",
]
