"""Directus API client.

Thin wrapper over the hosted Directus REST API used to store keywords and
their cached verdicts.  The access token is an explicit argument of every
call; the client itself holds no session state.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import get_directus_timeout, get_directus_url
from ..errors import DirectusAuthError, DirectusError
from ..schemas.keyword_schema import Keyword, LoginResponse
from ..schemas.trend_schema import TrendVerdict

logger = logging.getLogger(__name__)

_KEYWORDS_PATH = "/items/user_keywords"


def _as_keyword(data: Any, message: str) -> Keyword:
    if not isinstance(data, dict):
        raise DirectusError(message)
    return Keyword(**data)


def _error_message(response: httpx.Response, default: str) -> str:
    """First ``errors[].message`` of a Directus error body, else *default*."""
    try:
        body = response.json()
    except ValueError:
        return default
    if not isinstance(body, dict):
        return default
    errors = body.get("errors")
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        message = errors[0].get("message")
        if isinstance(message, str) and message:
            return message
    return default


class DirectusClient:
    """Keyword CRUD against ``/items/user_keywords``.

    Usage:
        with DirectusClient() as directus:
            token = directus.login(email, password).access_token
            directus.add_keyword(token, "winter tires")
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url or get_directus_url(),
            timeout=timeout if timeout is not None else get_directus_timeout(),
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    def __enter__(self) -> "DirectusClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------ #
    #  Internal                                                            #
    # ------------------------------------------------------------------ #

    def _request(
        self,
        method: str,
        path: str,
        *,
        default_message: str,
        token: Optional[str] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        headers = {"Authorization": f"Bearer {token}"} if token else None
        try:
            response = self._client.request(method, path, headers=headers, json=json)
        except httpx.HTTPError as exc:
            print(f"❌ [DIRECTUS] {method} {path} failed: {exc}")
            raise DirectusError(default_message) from exc

        print(f"📦 [DIRECTUS] {method} {path} → HTTP {response.status_code}")
        if response.status_code == 401:
            raise DirectusAuthError(
                _error_message(response, default_message), status_code=401
            )
        if response.status_code >= 400:
            message = _error_message(response, default_message)
            logger.warning("Directus %s %s: %d %s", method, path, response.status_code, message)
            raise DirectusError(message, status_code=response.status_code)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json().get("data")
        except (ValueError, AttributeError) as exc:
            raise DirectusError(default_message) from exc

    # ------------------------------------------------------------------ #
    #  Public                                                              #
    # ------------------------------------------------------------------ #

    def login(self, email: str, password: str) -> LoginResponse:
        data = self._request(
            "POST",
            "/auth/login",
            default_message="Failed to login",
            json={"email": email, "password": password},
        )
        if not isinstance(data, dict) or not data.get("access_token"):
            raise DirectusError("Failed to login")
        return LoginResponse(**data)

    def list_keywords(self, token: str) -> List[Keyword]:
        data = self._request(
            "GET", _KEYWORDS_PATH, token=token, default_message="Failed to fetch keywords"
        )
        return [Keyword(**item) for item in data or []]

    def get_keyword(self, token: str, keyword_id: str) -> Keyword:
        data = self._request(
            "GET",
            f"{_KEYWORDS_PATH}/{keyword_id}",
            token=token,
            default_message="Failed to fetch keyword",
        )
        return _as_keyword(data, "Failed to fetch keyword")

    def add_keyword(self, token: str, keyword: str) -> Keyword:
        data = self._request(
            "POST",
            _KEYWORDS_PATH,
            token=token,
            default_message="Failed to add keyword",
            json={"keyword": keyword},
        )
        return _as_keyword(data, "Failed to add keyword")

    def delete_keyword(self, token: str, keyword_id: str) -> None:
        self._request(
            "DELETE",
            f"{_KEYWORDS_PATH}/{keyword_id}",
            token=token,
            default_message="Failed to delete keyword",
        )

    def save_keyword_trend(
        self, token: str, keyword_id: str, verdict: TrendVerdict
    ) -> Keyword:
        """Cache *verdict* on the keyword row."""
        data = self._request(
            "PATCH",
            f"{_KEYWORDS_PATH}/{keyword_id}",
            token=token,
            default_message="Failed to save keyword trend",
            json=verdict.model_dump(mode="json"),
        )
        return _as_keyword(data, "Failed to save keyword trend")


def get_directus_client():
    """FastAPI dependency: one client per request, closed afterwards."""
    client = DirectusClient()
    try:
        yield client
    finally:
        client.close()
