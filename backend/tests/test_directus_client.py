"""Directus client tests - explicit token passing and error messages."""

import os
import sys

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import json
from datetime import datetime, timezone

import httpx
import pytest

from keyword_trends.errors import DirectusAuthError, DirectusError
from keyword_trends.schemas.trend_schema import TrendDirection, TrendVerdict
from keyword_trends.services.directus_client import DirectusClient

BASE_URL = "http://directus.test"


def _client(handler):
    return DirectusClient(BASE_URL, timeout=5.0, transport=httpx.MockTransport(handler))


class TestLogin:
    def test_login_returns_token(self):
        captured = {}

        def handler(request):
            captured["path"] = request.url.path
            captured["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={"data": {"access_token": "abc", "refresh_token": "def", "expires": 900000}},
            )

        with _client(handler) as directus:
            session = directus.login("user@example.com", "secret1")

        assert session.access_token == "abc"
        assert session.expires == 900000
        assert captured["path"] == "/auth/login"
        assert captured["body"] == {"email": "user@example.com", "password": "secret1"}

    def test_login_error_message_from_directus(self):
        def handler(request):
            return httpx.Response(
                401, json={"errors": [{"message": "Invalid user credentials."}]}
            )

        with _client(handler) as directus:
            with pytest.raises(DirectusAuthError) as exc_info:
                directus.login("user@example.com", "wrong-pass")
        assert str(exc_info.value) == "Invalid user credentials."

    def test_login_without_token_fails(self):
        with _client(lambda request: httpx.Response(200, json={"data": {}})) as directus:
            with pytest.raises(DirectusError, match="Failed to login"):
                directus.login("user@example.com", "secret1")


class TestKeywords:
    def test_list_sends_bearer_token(self):
        captured = {}

        def handler(request):
            captured["auth"] = request.headers.get("authorization")
            return httpx.Response(
                200,
                json={"data": [{"id": "1", "keyword": "boots", "user_created": "u1", "extra": 1}]},
            )

        with _client(handler) as directus:
            keywords = directus.list_keywords("token-1")

        assert captured["auth"] == "Bearer token-1"
        assert [(k.id, k.keyword) for k in keywords] == [("1", "boots")]

    def test_add_keyword(self):
        def handler(request):
            assert request.method == "POST"
            assert json.loads(request.content) == {"keyword": "boots"}
            return httpx.Response(200, json={"data": {"id": "7", "keyword": "boots"}})

        with _client(handler) as directus:
            keyword = directus.add_keyword("token-1", "boots")
        assert keyword.id == "7"

    def test_delete_keyword(self):
        def handler(request):
            assert request.method == "DELETE"
            assert request.url.path == "/items/user_keywords/7"
            return httpx.Response(204)

        with _client(handler) as directus:
            assert directus.delete_keyword("token-1", "7") is None

    def test_default_error_message(self):
        with _client(lambda request: httpx.Response(500, text="oops")) as directus:
            with pytest.raises(DirectusError) as exc_info:
                directus.add_keyword("token-1", "boots")
        assert str(exc_info.value) == "Failed to add keyword"
        assert exc_info.value.status_code == 500

    def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("down", request=request)

        with _client(handler) as directus:
            with pytest.raises(DirectusError, match="Failed to fetch keywords"):
                directus.list_keywords("token-1")

    def test_save_keyword_trend(self):
        captured = {}

        def handler(request):
            captured["method"] = request.method
            captured["body"] = json.loads(request.content)
            return httpx.Response(
                200, json={"data": {"id": "7", "keyword": "boots", **captured["body"]}}
            )

        verdict = TrendVerdict(
            trend_direction=TrendDirection.UP,
            growth_potential=80.0,
            confidence_score=0.7,
            seasonality=["december"],
            prediction_date=datetime(2026, 1, 1, tzinfo=timezone.utc),
        )
        with _client(handler) as directus:
            keyword = directus.save_keyword_trend("token-1", "7", verdict)

        assert captured["method"] == "PATCH"
        assert captured["body"]["trend_direction"] == "up"
        assert captured["body"]["seasonality"] == ["december"]
        assert keyword.growth_potential == 80.0
        assert keyword.trend_direction == "up"
