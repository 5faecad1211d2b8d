from __future__ import annotations

import json
import logging
import re
from typing import Any

import httpx

from music_readiness.core.config import settings

logger = logging.getLogger(__name__)

_CODE_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)


class ContentGenerationError(RuntimeError):
    """Upstream content generation failed. 429 means rate limited, 402 means the account is out of credit."""

    def __init__(self, detail: str, status_code: int | None = None):
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail)

    @property
    def is_rate_limited(self) -> bool:
        return self.status_code == 429

    @property
    def is_payment_required(self) -> bool:
        return self.status_code == 402


def _extract_output_text(data: dict[str, Any]) -> str:
    if isinstance(data.get("output_text"), str) and data["output_text"].strip():
        return data["output_text"].strip()

    output = data.get("output")
    if not isinstance(output, list):
        return ""

    parts: list[str] = []
    for item in output:
        if not isinstance(item, dict) or item.get("type") != "message":
            continue
        content = item.get("content")
        if not isinstance(content, list):
            continue
        for c in content:
            if not isinstance(c, dict):
                continue
            if c.get("type") in ("output_text", "text") and isinstance(c.get("text"), str):
                parts.append(c["text"])
    return "\n".join(parts).strip()


def _extract_refusal(data: dict[str, Any]) -> str:
    output = data.get("output")
    if not isinstance(output, list):
        return ""
    for item in output:
        if not isinstance(item, dict) or item.get("type") != "message":
            continue
        for c in item.get("content") or []:
            if isinstance(c, dict) and c.get("type") == "refusal":
                text = c.get("refusal") or c.get("text")
                if isinstance(text, str) and text.strip():
                    return text.strip()
    return ""


def parse_json_from_text(text: str) -> Any:
    """Models wrap JSON in code fences or prose often enough that a plain json.loads is not sufficient."""
    fenced = _CODE_FENCE_RE.search(text)
    if fenced:
        text = fenced.group(1)
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        for pattern in (r"\{[\s\S]*\}", r"\[[\s\S]*\]"):
            match = re.search(pattern, text)
            if match:
                try:
                    return json.loads(match.group(0))
                except json.JSONDecodeError:
                    continue
        raise


def _should_fallback_to_json_object(status_code: int, body_text: str) -> bool:
    if status_code != 400:
        return False
    return ("text.format" in body_text) and ("json_schema" in body_text) and ("not supported" in body_text.lower())


def call_openai_responses_json(
    *,
    instructions: str,
    input_text: str,
    schema_name: str,
    schema: dict[str, Any],
    temperature: float = 0.7,
    timeout_ms: int | None = None,
    transport: httpx.BaseTransport | None = None,
) -> Any:
    api_key = (settings.OPENAI_API_KEY or "").strip()
    if not api_key:
        raise ContentGenerationError("OPENAI_API_KEY is not configured")

    url = f"{settings.OPENAI_API_BASE.rstrip('/')}/responses"
    headers: dict[str, str] = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}
    if settings.OPENAI_PROJECT_ID:
        headers["OpenAI-Project"] = settings.OPENAI_PROJECT_ID.strip()

    def make_body(mode: str) -> dict[str, Any]:
        if mode == "json_object":
            text_format: dict[str, Any] = {"type": "json_object"}
        else:
            text_format = {
                "type": "json_schema",
                "name": schema_name,
                "strict": True,
                "schema": schema,
            }

        return {
            "model": settings.OPENAI_MODEL,
            "instructions": instructions,
            "input": input_text,
            "temperature": temperature,
            "text": {"format": text_format},
        }

    mode = "json_object" if (settings.OPENAI_TEXT_FORMAT or "").strip().lower() == "json_object" else "json_schema"
    timeout = httpx.Timeout((timeout_ms or settings.OPENAI_TIMEOUT_MS) / 1000.0)

    try:
        with httpx.Client(timeout=timeout, transport=transport) as client:
            resp = client.post(url, headers=headers, json=make_body(mode))
            body_text = resp.text
            if not resp.is_success and mode == "json_schema" and _should_fallback_to_json_object(resp.status_code, body_text):
                logger.info("json_schema format rejected for %s, retrying with json_object", schema_name)
                mode = "json_object"
                resp = client.post(url, headers=headers, json=make_body(mode))
                body_text = resp.text
    except httpx.HTTPError as err:
        raise ContentGenerationError(f"OpenAI request failed: {err}") from err

    if not resp.is_success:
        raise ContentGenerationError(
            f"OpenAI upstream error {resp.status_code}: {body_text[:500]}",
            status_code=resp.status_code,
        )

    try:
        data = resp.json()
    except ValueError as err:
        raise ContentGenerationError("OpenAI returned a non-JSON body", status_code=resp.status_code) from err

    refusal = _extract_refusal(data)
    if refusal:
        raise ContentGenerationError(f"OpenAI refusal: {refusal}")

    output_text = _extract_output_text(data)
    if not output_text:
        raise ContentGenerationError("OpenAI returned no text output")

    try:
        return parse_json_from_text(output_text)
    except json.JSONDecodeError as err:
        raise ContentGenerationError(f"Failed to parse OpenAI JSON output: {err}") from err
