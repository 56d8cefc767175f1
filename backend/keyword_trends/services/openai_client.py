"""Centralized OpenAI-compatible chat client.

Every language-model call goes through `call_openai_chat_async()`.
This ensures:
  - Model, temperature, timeout, and token limits are read from env.
  - JSON response format is enforced via response_format.
  - No retries: failures surface as typed errors and the caller decides.
  - Consistent logging.
"""

from __future__ import annotations

import json
import re
import time
from typing import Any, Dict, List, Optional

import httpx

from ..config import (
    get_openai_key,
    get_openai_max_tokens,
    get_openai_model,
    get_openai_temperature,
    get_openai_timeout,
    get_openai_url,
)
from ..errors import (
    ExternalServiceError,
    InvalidExternalResponseError,
    PredictionTimeoutError,
)


# ---------------------------------------------------------------------------
# JSON sanitizer - extracts valid JSON from LLM output
# ---------------------------------------------------------------------------
def sanitize_json(raw: str) -> str:
    """Extract a JSON object from raw LLM output.

    Handles:
      - Markdown fences (```json ... ```)
      - Leading/trailing whitespace and BOM
      - Prose before/after JSON
      - Trailing commas before } or ]

    Raises ValueError if no JSON object is found.
    """
    text = raw.strip().lstrip("\ufeff")

    if text.startswith("```"):
        parts = text.split("```")
        if len(parts) >= 3:
            text = parts[1]
        else:
            text = text[3:]

    text = text.strip()
    if text.lower().startswith("json"):
        text = text[4:].strip()

    brace_idx = text.find("{")
    if brace_idx == -1:
        raise ValueError("LLM did not return a JSON object - no '{' found")
    text = text[brace_idx:]

    rbrace_idx = text.rfind("}")
    if rbrace_idx == -1:
        raise ValueError("LLM did not return a JSON object - no '}' found")
    text = text[: rbrace_idx + 1]

    text = re.sub(r",\s*([}\]])", r"\1", text)

    return text


def build_payload(
    *,
    model: str,
    messages: List[Dict[str, str]],
    max_completion_tokens: int,
    temperature: float,
) -> Dict[str, Any]:
    """Build a chat completions payload with a JSON-object response format."""
    payload: Dict[str, Any] = {
        "model": model,
        "messages": messages,
        "max_tokens": max_completion_tokens,
        "temperature": temperature,
        "response_format": {"type": "json_object"},
    }

    print(f"🧠 [OPENAI] Model: {model}")
    print(f"🧠 [OPENAI] Tokens requested: {max_completion_tokens}")

    return payload


def parse_completion(data: Dict[str, Any]) -> Dict[str, Any]:
    """Pull the JSON object out of a chat completions response body.

    Raises InvalidExternalResponseError if the content is empty or not a
    JSON object.
    """
    try:
        raw_content = (data["choices"][0]["message"]["content"] or "").strip()
    except (KeyError, IndexError, TypeError) as exc:
        raise InvalidExternalResponseError(
            "Completion response has no message content"
        ) from exc

    print(f"🧠 [OPENAI] Raw output length: {len(raw_content)} chars")
    if not raw_content:
        raise InvalidExternalResponseError("Completion content is empty")

    try:
        parsed = json.loads(sanitize_json(raw_content))
    except (ValueError, json.JSONDecodeError) as exc:
        print(f"❌ [OPENAI] JSON parse failed: {exc}")
        print(f"⚠️  [OPENAI] Raw (first 300 chars): {raw_content[:300]}")
        raise InvalidExternalResponseError(f"Completion is not valid JSON: {exc}") from exc

    if not isinstance(parsed, dict):
        raise InvalidExternalResponseError("Completion JSON is not an object")
    return parsed


async def call_openai_chat_async(
    *,
    messages: List[Dict[str, str]],
    max_completion_tokens: int = 0,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, Any]:
    """Call chat completions once and return the parsed JSON object.

    Parameters
    ----------
    messages : list[dict]
        The messages array (system + user).
    max_completion_tokens : int
        Token limit for the response. 0 = use env default.
    api_key : str, optional
        Override API key (default: from env).
    model : str, optional
        Override model name (default: from env).
    client : httpx.AsyncClient, optional
        Client to send the request with; a short-lived one is created
        when omitted.

    Raises
    ------
    PredictionTimeoutError
        The HTTP request timed out.
    ExternalServiceError
        Network failure or non-200 response.
    InvalidExternalResponseError
        The response content is not a JSON object.
    """
    if api_key is None:
        api_key = get_openai_key()
    if model is None:
        model = get_openai_model()
    if max_completion_tokens <= 0:
        max_completion_tokens = get_openai_max_tokens()

    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }

    payload = build_payload(
        model=model,
        messages=messages,
        max_completion_tokens=max_completion_tokens,
        temperature=get_openai_temperature(),
    )

    t0 = time.time()
    print(f"🧠 [OPENAI] Calling {model}")
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=get_openai_timeout()) as owned:
                response = await owned.post(get_openai_url(), headers=headers, json=payload)
        else:
            response = await client.post(get_openai_url(), headers=headers, json=payload)
    except httpx.TimeoutException as exc:
        duration = time.time() - t0
        print(f"❌ [OPENAI] Timeout - aborting ({duration:.1f}s)")
        raise PredictionTimeoutError(f"Prediction service timed out after {duration:.1f}s") from exc
    except httpx.HTTPError as exc:
        print(f"❌ [OPENAI] Request failed: {exc}")
        raise ExternalServiceError(f"Prediction service request failed: {exc}") from exc

    duration = time.time() - t0
    print(f"📦 [OPENAI] HTTP {response.status_code} ({duration:.1f}s)")

    if response.status_code != 200:
        print(f"⚠️  [OPENAI] Error response: {response.text[:400]}")
        raise ExternalServiceError(
            f"Prediction service returned HTTP {response.status_code}",
            status_code=response.status_code,
        )

    try:
        data = response.json()
    except ValueError as exc:
        raise ExternalServiceError("Prediction service returned a non-JSON body") from exc

    usage = data.get("usage") if isinstance(data, dict) else None
    if usage:
        print(f"🧠 [OPENAI] Tokens used: prompt={usage.get('prompt_tokens', '?')}, completion={usage.get('completion_tokens', '?')}, total={usage.get('total_tokens', '?')}")

    parsed = parse_completion(data)
    print("🧠 [OPENAI] Success")
    return parsed
