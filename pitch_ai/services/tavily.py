"""Minimal Tavily search/extract client."""

import logging

import requests

from pitch_ai import config
from pitch_ai.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


def post_json(url: str, body: dict, timeout: float = 12) -> dict:
    try:
        resp = requests.post(
            url,
            json=body,
            headers={"Content-Type": "application/json", "User-Agent": "pitch-ai/1.0"},
            timeout=timeout,
        )
    except requests.RequestException as e:
        logger.error("POST %s failed: %s", url, e)
        raise ExternalServiceError(f"{url} request failed: {e}") from e
    if not resp.ok:
        raise ExternalServiceError(f"{url} {resp.status_code}", status_code=resp.status_code)
    return resp.json()


def search(query: str, max_results: int = 8, include_answer: bool = False) -> tuple:
    """Run an advanced search. Returns (answer or None, results)."""
    data = post_json(f"{config.TAVILY_API_URL}/search", {
        "api_key": config.TAVILY_API_KEY,
        "query": query,
        "search_depth": "advanced",
        "max_results": max_results,
        "include_answer": include_answer,
        "include_raw_content": True,
    })
    return data.get("answer"), data.get("results") or []


def extract(url: str) -> str:
    data = post_json(f"{config.TAVILY_API_URL}/extract", {
        "api_key": config.TAVILY_API_KEY,
        "urls": [url],
    })
    if data.get("content"):
        return str(data["content"])
    results = data.get("results") or []
    if results:
        return str(results[0].get("raw_content") or results[0].get("content") or "")
    return ""
