"""Gemini client helpers shared by every LLM-backed endpoint."""

import asyncio
import json
import logging
import re
import time
from typing import Any

from fastapi import HTTPException
from google import genai

from pitch_ai import config

logger = logging.getLogger(__name__)

BUSY_MESSAGE = "Server is currently busy due to high demand. Please try again in a few moments."
TIMEOUT_MESSAGE = "Request timed out. The server is experiencing high load. Please try again in a few moments."
UNAVAILABLE_MESSAGE = "Service temporarily unavailable. Please try again in a few moments."


def get_client() -> genai.Client:
    """Instantiate a Gemini client using the configured API key."""
    if not config.GEMINI_API_KEY:
        raise RuntimeError("GEMINI_API_KEY missing")
    return genai.Client(api_key=config.GEMINI_API_KEY)


def _is_rate_limit(exc: Exception) -> bool:
    error_str = str(exc).lower()
    if "429" in str(exc) or "resource exhausted" in error_str or "quota" in error_str or "rate limit" in error_str:
        return True
    status_code = getattr(exc, "status_code", None) or getattr(exc, "code", None)
    return status_code == 429


def _is_unavailable(exc: Exception) -> bool:
    error_str = str(exc).lower()
    if "503" in str(exc) or "unavailable" in error_str or "overloaded" in error_str:
        return True
    status_code = getattr(exc, "status_code", None) or getattr(exc, "code", None)
    return status_code == 503


def call_gemini_with_retry(client, model, contents, max_retries=3, initial_delay=1, timeout=60):
    """
    Call Gemini API with retry logic for 503/429 errors and timeout.

    Args:
        client: Gemini client instance
        model: Model name to use
        contents: Prompt/content to send
        max_retries: Maximum number of retry attempts
        initial_delay: Initial delay in seconds before first retry
        timeout: Maximum time in seconds for the entire operation

    Returns:
        Response from Gemini API

    Raises:
        Exception: If all retries fail, timeout, or non-retryable error occurs
    """
    last_exception = None
    start_time = time.time()

    for attempt in range(max_retries + 1):
        if time.time() - start_time > timeout:
            raise TimeoutError(TIMEOUT_MESSAGE)

        try:
            return client.models.generate_content(model=model or config.GEMINI_MODEL, contents=contents)
        except Exception as e:
            is_rate_limit = _is_rate_limit(e)
            is_retryable = is_rate_limit or _is_unavailable(e)

            if not is_retryable or attempt >= max_retries:
                if is_rate_limit:
                    raise RuntimeError(BUSY_MESSAGE) from e
                if is_retryable:
                    raise RuntimeError(UNAVAILABLE_MESSAGE) from e
                raise

            # Rate limits back off harder
            base_delay = initial_delay * 2 if is_rate_limit else initial_delay
            delay = min(base_delay * (2 ** attempt), 10)

            if time.time() - start_time + delay > timeout:
                raise TimeoutError(TIMEOUT_MESSAGE) from e

            logger.warning("[Gemini] Retrying in %ss (attempt %d/%d) - %s", delay, attempt + 1, max_retries, str(e)[:100])
            time.sleep(delay)
            last_exception = e

    if last_exception is not None and _is_rate_limit(last_exception):
        raise RuntimeError(BUSY_MESSAGE)
    raise RuntimeError(UNAVAILABLE_MESSAGE)


async def call_gemini_with_retry_async(client, model, contents, max_retries=3, initial_delay=1, timeout=60):
    """Async wrapper for call_gemini_with_retry to avoid blocking the event loop."""
    return await asyncio.to_thread(
        call_gemini_with_retry,
        client, model, contents, max_retries, initial_delay, timeout
    )


async def generate_text(contents: Any, max_retries: int = 3, initial_delay: int = 2) -> str:
    """Run a prompt against the configured model and return the response text."""
    client = get_client()
    response = await call_gemini_with_retry_async(
        client=client,
        model=config.GEMINI_MODEL,
        contents=contents,
        max_retries=max_retries,
        initial_delay=initial_delay,
    )
    return (response.text or "").strip()


def extract_json_object(text: str) -> dict:
    """Extract the first JSON object from a model response.

    Handles responses wrapped in ```json fences as well as bare objects with
    surrounding chatter.
    """
    if not isinstance(text, str):
        raise ValueError("Model response was not text")
    fenced = re.search(r"```(?:json)?\s*([\s\S]*?)```", text)
    candidate = fenced.group(1) if fenced else text
    start = candidate.find("{")
    end = candidate.rfind("}")
    if start < 0 or end < 0 or end <= start:
        raise ValueError("No JSON object found in model response")
    obj = json.loads(candidate[start : end + 1])
    if not isinstance(obj, dict):
        raise ValueError("Model response JSON was not an object")
    return obj


def raise_for_gemini_error(exc: Exception, default_detail: str) -> None:
    """Translate a Gemini failure into the matching HTTP error."""
    error_msg = str(exc).lower()
    if "busy" in error_msg or "rate limit" in error_msg or "quota" in error_msg or "429" in str(exc):
        raise HTTPException(status_code=503, detail=BUSY_MESSAGE)
    if "temporarily unavailable" in error_msg or _is_unavailable(exc):
        raise HTTPException(status_code=503, detail=UNAVAILABLE_MESSAGE)
    if isinstance(exc, TimeoutError) or "timed out" in error_msg or "timeout" in error_msg:
        raise HTTPException(status_code=504, detail="Request timed out. Please try again.")
    raise HTTPException(status_code=500, detail=default_detail)
