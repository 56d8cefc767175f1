# Schemas package
from .trend_schema import (
    HistoricalData,
    Sample,
    SampleSeries,
    SeriesProfile,
    SourceMention,
    SourceMentions,
    TrendDirection,
    TrendPrediction,
    TrendPredictionRequest,
    TrendVerdict,
)
from .keyword_schema import Keyword, KeywordCreate, LoginCredentials, LoginResponse

__all__ = [
    "Sample",
    "SampleSeries",
    "SourceMention",
    "SourceMentions",
    "HistoricalData",
    "SeriesProfile",
    "TrendDirection",
    "TrendVerdict",
    "TrendPredictionRequest",
    "TrendPrediction",
    "Keyword",
    "KeywordCreate",
    "LoginCredentials",
    "LoginResponse",
]
