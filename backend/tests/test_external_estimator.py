"""External estimator tests - prediction service calls are served by httpx.MockTransport."""

import os
import sys

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import asyncio
import json
from datetime import datetime, timezone

import httpx
import pytest

from keyword_trends.errors import (
    ExternalServiceError,
    InsufficientDataError,
    InvalidExternalResponseError,
    PredictionTimeoutError,
)
from keyword_trends.schemas.trend_schema import Sample, SourceMention, TrendDirection
from keyword_trends.services.external_estimator import (
    ExternalTrendEstimator,
    build_prediction_payload,
)
from keyword_trends.services.openai_client import sanitize_json

FIXED_NOW = datetime(2026, 4, 1, tzinfo=timezone.utc)
FULL_SERIES = [Sample(shows=v) for v in [100] * 6 + [120] * 6]
SPARSE_SERIES = [Sample(shows=v) for v in [100] * 8]


def _completion(content):
    if not isinstance(content, str):
        content = json.dumps(content)
    return httpx.Response(
        200,
        json={
            "choices": [{"message": {"role": "assistant", "content": content}}],
            "usage": {"prompt_tokens": 10, "completion_tokens": 20, "total_tokens": 30},
        },
    )


def _verdict(**overrides):
    body = {
        "trend_direction": "up",
        "growth_potential": 80,
        "confidence_score": 0.9,
        "seasonality": ["december"],
        "prediction_date": "2026-03-31T00:00:00Z",
    }
    body.update(overrides)
    return body


def _estimate(handler, series=FULL_SERIES, mentions=None, timeout=None):
    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            estimator = ExternalTrendEstimator(
                api_key="test-key",
                model="test-model",
                client=client,
                now=lambda: FIXED_NOW,
            )
            return await estimator.estimate("winter tires", series, mentions, timeout=timeout)

    return asyncio.run(run())


class TestValidResponses:
    def test_verdict_normalized(self):
        verdict = _estimate(lambda request: _completion(_verdict()))
        assert verdict.trend_direction == TrendDirection.UP
        assert verdict.growth_potential == 80.0
        assert verdict.confidence_score == 0.9
        assert verdict.seasonality == ["december"]
        assert verdict.prediction_date == datetime(2026, 3, 31, tzinfo=timezone.utc)

    def test_out_of_range_values_clamped(self):
        verdict = _estimate(
            lambda request: _completion(_verdict(growth_potential=250, confidence_score=3))
        )
        assert verdict.growth_potential == 100.0
        assert verdict.confidence_score == 1.0

    def test_sparse_penalty_matches_statistical(self):
        verdict = _estimate(lambda request: _completion(_verdict()), series=SPARSE_SERIES)
        assert verdict.confidence_score == 0.63

    def test_bad_seasonality_and_date_repaired(self):
        verdict = _estimate(
            lambda request: _completion(_verdict(seasonality="summer", prediction_date="soon"))
        )
        assert verdict.seasonality == []
        assert verdict.prediction_date == FIXED_NOW

    def test_fenced_json_accepted(self):
        fenced = "```json\n" + json.dumps(_verdict(trend_direction="down")) + "\n```"
        verdict = _estimate(lambda request: _completion(fenced))
        assert verdict.trend_direction == TrendDirection.DOWN

    def test_request_carries_history_payload(self):
        captured = {}

        def handler(request):
            captured["headers"] = request.headers
            captured["body"] = json.loads(request.content)
            return _completion(_verdict())

        _estimate(handler, mentions=[SourceMention(count=3), SourceMention(count=4)])

        body = captured["body"]
        assert captured["headers"]["authorization"] == "Bearer test-key"
        assert body["model"] == "test-model"
        assert body["response_format"] == {"type": "json_object"}
        user_payload = json.loads(body["messages"][1]["content"])
        assert user_payload["keyword"] == "winter tires"
        assert [s["shows"] for s in user_payload["historicalData"]["shows"]] == [100] * 6 + [120] * 6
        assert user_payload["historicalData"]["sources"] == [{"count": 3}, {"count": 4}]


class TestInvalidResponses:
    def test_sideways_direction_rejected(self):
        with pytest.raises(InvalidExternalResponseError):
            _estimate(lambda request: _completion(_verdict(trend_direction="sideways")))

    def test_non_json_content_rejected(self):
        with pytest.raises(InvalidExternalResponseError):
            _estimate(lambda request: _completion("The trend is going up."))

    def test_missing_choices_rejected(self):
        with pytest.raises(InvalidExternalResponseError):
            _estimate(lambda request: httpx.Response(200, json={"choices": []}))


class TestFailures:
    def test_http_error_is_service_error(self):
        with pytest.raises(ExternalServiceError) as exc_info:
            _estimate(lambda request: httpx.Response(500, text="upstream down"))
        assert exc_info.value.status_code == 500

    def test_connection_error_is_service_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ExternalServiceError):
            _estimate(handler)

    def test_http_timeout_is_timeout_error(self):
        def handler(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        with pytest.raises(PredictionTimeoutError) as exc_info:
            _estimate(handler)
        assert isinstance(exc_info.value, TimeoutError)
        assert not isinstance(exc_info.value, ExternalServiceError)

    def test_caller_deadline_is_timeout_error(self):
        async def slow_handler(request):
            await asyncio.sleep(1.0)
            return _completion(_verdict())

        with pytest.raises(PredictionTimeoutError):
            _estimate(slow_handler, timeout=0.05)

    def test_insufficient_data_checked_before_call(self):
        calls = []

        def handler(request):
            calls.append(request)
            return _completion(_verdict())

        with pytest.raises(InsufficientDataError):
            _estimate(handler, series=[Sample(shows=1)] * 5)
        assert calls == []


class TestHelpers:
    def test_payload_shape(self):
        payload = build_prediction_payload(
            "boots", [Sample(shows=5, phrase="boots")], [SourceMention(source_id="a", count=2)]
        )
        assert payload == {
            "keyword": "boots",
            "historicalData": {
                "shows": [{"shows": 5.0, "phrase": "boots"}],
                "sources": [{"source_id": "a", "count": 2}],
            },
        }

    def test_sanitize_strips_prose_and_trailing_commas(self):
        raw = 'Here you go: {"a": [1, 2,], "b": 3,} thanks'
        assert json.loads(sanitize_json(raw)) == {"a": [1, 2], "b": 3}

    def test_sanitize_without_object(self):
        with pytest.raises(ValueError):
            sanitize_json("no json here")
