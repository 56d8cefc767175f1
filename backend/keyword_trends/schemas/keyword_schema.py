"""Directus keyword and login schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field


class LoginCredentials(BaseModel):
    email: EmailStr = Field(..., description="Directus account email")
    password: str = Field(..., min_length=6)


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires: Optional[int] = Field(
        default=None,
        description="Access token lifetime in milliseconds, as reported by Directus",
    )


class KeywordCreate(BaseModel):
    keyword: str = Field(..., min_length=1, max_length=200)


class Keyword(BaseModel):
    """A row of the ``user_keywords`` collection.

    The trend columns cache the most recent verdict saved by the caller.
    """

    id: str
    keyword: str = Field(..., min_length=1)
    user_created: Optional[str] = None
    trend_direction: Optional[str] = None
    growth_potential: Optional[float] = None
    confidence_score: Optional[float] = None
    seasonality: Optional[List[str]] = None
    prediction_date: Optional[datetime] = None
