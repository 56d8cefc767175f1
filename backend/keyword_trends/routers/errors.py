"""Translate domain errors into HTTP responses."""

from fastapi import HTTPException, status

from ..errors import (
    DirectusAuthError,
    DirectusError,
    ExternalServiceError,
    InsufficientDataError,
    InvalidExternalResponseError,
    PredictionTimeoutError,
    TrendForecastError,
)


def http_error_for(exc: TrendForecastError) -> HTTPException:
    """Map a domain error to the HTTPException a router should raise."""
    if isinstance(exc, InsufficientDataError):
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif isinstance(exc, PredictionTimeoutError):
        code = status.HTTP_504_GATEWAY_TIMEOUT
    elif isinstance(exc, (InvalidExternalResponseError, ExternalServiceError)):
        code = status.HTTP_502_BAD_GATEWAY
    elif isinstance(exc, DirectusAuthError):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        )
    elif isinstance(exc, DirectusError) and exc.status_code and 400 <= exc.status_code < 500:
        code = exc.status_code
    elif isinstance(exc, DirectusError):
        code = status.HTTP_502_BAD_GATEWAY
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=str(exc))


def service_unavailable(exc: Exception) -> HTTPException:
    """503 for a route whose upstream credentials are not configured."""
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"Service not configured: {exc}",
    )
