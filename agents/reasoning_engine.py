from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Protocol

import requests

from agents.errors import ReasoningEngineUnavailable, SchemaValidationError
from utils.config import (
    DISABLE_LLM,
    GEMINI_API_KEY,
    GEMINI_API_URL,
    GEMINI_MODEL,
    OPENAI_API_KEY,
    OPENAI_MODEL,
)

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"
OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"

# Non-5xx statuses worth retrying: request timeout, rate limit
TRANSIENT_STATUSES = {408, 429}

# Gemini's OpenAPI-subset description of the answer we want back
RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "suggestion": {
            "type": "OBJECT",
            "properties": {
                "nextPeriodStock": {"type": "INTEGER"},
                "safetyStock": {"type": "INTEGER"},
            },
            "required": ["nextPeriodStock", "safetyStock"],
        },
        "reasoning": {"type": "STRING"},
    },
    "required": ["suggestion", "reasoning"],
}


class ReasoningEngine(Protocol):
    """Turns sales statistics into stock numbers plus a written justification.

    Implementations may be non-deterministic and must not keep state between
    calls. ``generate`` returns ``{"suggestion": {"nextPeriodStock", "safetyStock"},
    "reasoning"}`` and should honour ``timeout`` (seconds).
    """

    def generate(self, context: Dict[str, Any], timeout: float) -> Dict[str, Any]:
        ...


def build_prompt(context: Dict[str, Any]) -> str:
    analysis = context.get("analysis") or {}
    peak_days = ", ".join(analysis.get("peakDays") or []) or "none"
    lines = [
        "You are an expert inventory management AI.",
        "Your task is to provide a stock level suggestion based on an analysis of historical sales data.",
        "",
        f'Product: "{context.get("productName")}"',
        f"- Current Stock: {context.get('currentStock')}",
        f"- Sales Period Analyzed: Last {context.get('analysisPeriod')}",
        "",
        "Sales analysis (treat this as the source of truth):",
        f"- Total units sold: {analysis.get('totalSold')}",
        f"- Sales trend: {analysis.get('salesTrend')}",
        f"- Average daily sales: {analysis.get('averageDailySales')}",
        f"- Peak days: {peak_days}",
        "",
        "Guidance:",
        str(context.get("guidance", "")),
        "",
        "1. Suggest a whole number of units to stock for the next period and a safety stock quantity.",
        "2. Explain step by step how the trend, total sales and peak days led to those numbers.",
        "",
        'Answer with JSON only: {"suggestion": {"nextPeriodStock": <int>, "safetyStock": <int>}, "reasoning": "<text>"}',
    ]
    return "\n".join(lines)


def _decode_model_json(text: Optional[str]) -> Dict[str, Any]:
    """Decode the JSON answer a model wrote, tolerating markdown code fences."""
    if not text or not text.strip():
        raise SchemaValidationError("Reasoning engine returned an empty answer")
    body = text.strip()
    if body.startswith("```"):
        body = body.strip("`")
        if body.lower().startswith("json"):
            body = body[4:]
    try:
        data = json.loads(body)
    except ValueError as e:
        raise SchemaValidationError(f"Reasoning engine answer is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise SchemaValidationError("Reasoning engine answer is not a JSON object")
    return data


def _post(provider: str, url: str, timeout: float, **kwargs) -> Dict[str, Any]:
    try:
        resp = requests.post(url, timeout=timeout, **kwargs)
    except requests.Timeout as e:
        raise ReasoningEngineUnavailable(f"{provider} request timed out after {timeout}s") from e
    except requests.RequestException as e:
        raise ReasoningEngineUnavailable(f"{provider} request failed: {e}") from e

    if resp.status_code != 200:
        msg = None
        try:
            msg = resp.json().get("error", {}).get("message")
        except Exception:
            msg = None
        detail = f"{provider} request failed: {resp.status_code} {(msg or resp.text)[:300]}"
        if resp.status_code in TRANSIENT_STATUSES or resp.status_code >= 500:
            raise ReasoningEngineUnavailable(detail)
        # Bad key or bad payload: repeating the call cannot succeed
        logger.error(detail, extra={"extra_data": {"event": "engine_rejected", "status": resp.status_code}})
        raise ReasoningEngineUnavailable(f"{detail} (not retryable)", retryable=False)

    try:
        return resp.json()
    except ValueError as e:
        raise SchemaValidationError(f"{provider} returned a non-JSON response body") from e


class GeminiReasoningEngine:
    """Google Generative Language API (generateContent) with a JSON response schema."""

    def __init__(self, api_key: str, model: str = GEMINI_MODEL, api_url: Optional[str] = None, temperature: float = 0.2):
        if not api_key:
            raise ValueError("api_key is required")
        self.api_key = api_key
        self.model = model
        self.api_url = (api_url or f"{GEMINI_BASE_URL}/{model}:generateContent").rstrip("/")
        self.temperature = temperature

    def generate(self, context: Dict[str, Any], timeout: float) -> Dict[str, Any]:
        payload = {
            "contents": [{"role": "user", "parts": [{"text": build_prompt(context)}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": 1024,
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }
        # Google API keys (start with "AIza") are sent as query param, anything else as a bearer token
        params = None
        headers = {"Content-Type": "application/json"}
        if self.api_key.startswith("AIza"):
            params = {"key": self.api_key}
        else:
            headers["Authorization"] = f"Bearer {self.api_key}"

        logger.debug(f"Calling Gemini model {self.model} for {context.get('productName')}")
        data = _post("Gemini", self.api_url, timeout, json=payload, headers=headers, params=params)

        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise SchemaValidationError("Gemini response has no candidate text") from e
        return _decode_model_json(text)


class OpenAIReasoningEngine:
    """OpenAI Chat Completions in JSON mode."""

    def __init__(self, api_key: str, model: str = OPENAI_MODEL, temperature: float = 0.2):
        if not api_key:
            raise ValueError("api_key is required")
        self.api_key = api_key
        self.model = model
        self.temperature = temperature

    def generate(self, context: Dict[str, Any], timeout: float) -> Dict[str, Any]:
        messages = [
            {"role": "system", "content": "You are an inventory management assistant. Reply with a single JSON object."},
            {"role": "user", "content": build_prompt(context)},
        ]
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": 1024,
            "response_format": {"type": "json_object"},
        }

        logger.debug(f"Calling OpenAI model {self.model} for {context.get('productName')}")
        data = _post("OpenAI", OPENAI_CHAT_URL, timeout, json=payload, headers=headers)

        try:
            text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise SchemaValidationError("OpenAI response has no message content") from e
        return _decode_model_json(text)


def build_reasoning_engine() -> Optional[ReasoningEngine]:
    """Engine for the configured provider, or None when no key is set (or LLM calls are disabled)."""
    if DISABLE_LLM:
        return None
    if GEMINI_API_KEY:
        return GeminiReasoningEngine(GEMINI_API_KEY, model=GEMINI_MODEL, api_url=GEMINI_API_URL)
    if OPENAI_API_KEY:
        return OpenAIReasoningEngine(OPENAI_API_KEY, model=OPENAI_MODEL)
    return None
