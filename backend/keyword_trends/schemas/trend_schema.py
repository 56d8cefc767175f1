from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class TrendDirection(str, Enum):
    """Exactly one direction holds for every verdict."""
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class Sample(BaseModel):
    """One periodic search-volume observation for a keyword.

    ``shows`` may be null for an empty period; empty samples still count
    towards the series length but are excluded from every average.
    """

    shows: Optional[float] = Field(
        default=None,
        ge=0.0,
        description="Search volume for the period (non-negative), null if missing",
    )
    period_index: Optional[int] = Field(
        default=None,
        description="Position of the period in the provider's series",
    )
    phrase: Optional[str] = Field(
        default=None,
        description="Phrase the provider reported the volume for",
    )
    timestamp: Optional[datetime] = Field(
        default=None,
        description="Start of the period, when the provider supplies one",
    )

    @field_validator("timestamp")
    @classmethod
    def timestamp_is_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        # Naive stamps are read as UTC so a series always sorts.
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class SourceMention(BaseModel):
    """Mention count from a single source. Only the total is ever used."""

    source_id: Optional[str] = None
    count: int = Field(..., ge=0)


SampleSeries = List[Sample]
SourceMentions = List[SourceMention]


class HistoricalData(BaseModel):
    """The ``historicalData`` payload shared with the prediction service."""

    shows: List[Sample] = Field(default_factory=list)
    sources: List[SourceMention] = Field(default_factory=list)


class SeriesProfile(BaseModel):
    """Window statistics derived from a series.

    Computed once and shared by both estimator strategies so the
    normalization engine applies identical penalties to each.
    """

    sample_count: int = Field(..., ge=0)
    recent_avg: float = Field(..., ge=0.0)
    prior_avg: float = Field(..., ge=0.0)
    percent_change: Optional[float] = Field(
        default=None,
        description="(recent_avg - prior_avg) / prior_avg * 100, null when prior_avg is 0",
    )
    volatility: float = Field(
        ...,
        ge=0.0,
        description="Coefficient of variation (stdev / mean) of all non-empty shows",
    )


class TrendVerdict(BaseModel):
    """The forecast for one keyword.

    Produced by a ``TrendEstimator`` after normalization, so every field
    is already within bounds.
    """

    trend_direction: TrendDirection
    growth_potential: float = Field(
        ...,
        ge=0.0,
        le=100.0,
        description="Growth potential on a 0-100 scale",
    )
    confidence_score: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        description="Confidence in the forecast, 0-1",
    )
    seasonality: List[str] = Field(
        default_factory=list,
        description="Seasonal tags, e.g. peak months",
    )
    prediction_date: datetime = Field(
        ...,
        description="When the verdict was produced (UTC)",
    )


class TrendPredictionRequest(BaseModel):
    """Request body for ``POST /trends/predict``."""

    keyword: str = Field(..., min_length=1, max_length=200)
    historical_data: HistoricalData = Field(..., alias="historicalData")
    strategy: Literal["statistical", "external"] = Field(
        default="statistical",
        description="Which estimator produces the verdict",
    )
    timeout: Optional[float] = Field(
        default=None,
        gt=0.0,
        description="Deadline in seconds for the external prediction service",
    )
    fallback: bool = Field(
        default=True,
        description="Fall back to the statistical estimator when the external verdict is invalid",
    )

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "keyword": "winter tires",
                "historicalData": {
                    "shows": [{"shows": 120}, {"shows": 135}, {"shows": 160}],
                    "sources": [{"count": 4}],
                },
                "strategy": "statistical",
            }
        }


class TrendPrediction(BaseModel):
    """Service-level result: the verdict plus caller-facing context."""

    keyword: str
    verdict: TrendVerdict
    mentions_count: int = Field(default=0, ge=0)
    strategy: str = Field(..., description="Strategy that produced the verdict")
    sample_count: int = Field(..., ge=0)
    fallback_used: bool = Field(
        default=False,
        description="True if the external verdict was rejected and the statistical one returned instead",
    )
