"""Exception taxonomy for the trend forecaster.

Only hard failures live here. Out-of-range numbers are clamped by the
normalization engine and never raised.
"""

from __future__ import annotations

from typing import Optional


class TrendForecastError(Exception):
    """Base class for every error raised by this package."""


class InsufficientDataError(TrendForecastError):
    """The sample series is shorter than the estimator's minimum."""

    def __init__(self, sample_count: int, required: int) -> None:
        self.sample_count = sample_count
        self.required = required
        super().__init__(
            f"At least {required} samples are required, got {sample_count}"
        )


class InvalidExternalResponseError(TrendForecastError):
    """The prediction service returned an object that is not a valid verdict."""


class ExternalServiceError(TrendForecastError):
    """A network or HTTP failure while talking to an external service."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class PredictionTimeoutError(TrendForecastError, TimeoutError):
    """The external prediction exceeded the caller-supplied deadline."""


class DirectusError(TrendForecastError):
    """Directus rejected a request."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class DirectusAuthError(DirectusError):
    """Directus rejected the access token (HTTP 401)."""
