"""
OpenAI LLM helpers — shared by the analysis gateway.
"""

from __future__ import annotations

import base64
import json
import logging
import time
from openai import OpenAI, RateLimitError

import config

log = logging.getLogger(__name__)

_client: OpenAI | None = None


def get_client() -> OpenAI:
    global _client
    if _client is None:
        _client = OpenAI(api_key=config.OPENAI_API_KEY, timeout=config.OPENAI_TIMEOUT_SEC)
    return _client


def image_content(image: bytes, mime_type: str = "image/jpeg") -> dict:
    """Build a chat message part carrying an inline image."""
    encoded = base64.b64encode(image).decode("ascii")
    return {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{encoded}"}}


def chat(
    system: str,
    user: str | list[dict],
    model: str | None = None,
    json_mode: bool = False,
    temperature: float = 0.3,
    max_tokens: int = 2048,
) -> str:
    """Send a chat completion request and return the assistant message.

    ``user`` is either plain text or a list of content parts (text and
    images). Retries up to LLM_MAX_RETRIES times on rate limit (429) errors
    with exponential backoff.
    """
    client = get_client()
    kwargs: dict = {
        "model": model or config.OPENAI_MODEL,
        "messages": [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ],
        "temperature": temperature,
        "max_tokens": max_tokens,
    }
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}

    for attempt in range(config.LLM_MAX_RETRIES):
        try:
            resp = client.chat.completions.create(**kwargs)
            return resp.choices[0].message.content or ""
        except RateLimitError as e:
            delay = config.LLM_BASE_DELAY * (2 ** attempt)
            log.warning(
                "Rate limited (attempt %d/%d), retrying in %.0fs: %s",
                attempt + 1, config.LLM_MAX_RETRIES, delay, e,
            )
            if attempt == config.LLM_MAX_RETRIES - 1:
                raise
            time.sleep(delay)

    return ""  # only reached when LLM_MAX_RETRIES is 0


def chat_json(system: str, user: str | list[dict], **kwargs) -> dict:
    """Send a chat completion and parse the JSON response.

    Raises ValueError when the reply is not a JSON object.
    """
    raw = chat(system, user, json_mode=True, **kwargs)
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        log.error("Failed to parse LLM JSON response: %s", raw[:500])
        raise ValueError("LLM returned invalid JSON") from e
    if not isinstance(data, dict):
        log.error("LLM JSON response is not an object: %s", raw[:500])
        raise ValueError("LLM returned a non-object JSON value")
    return data
