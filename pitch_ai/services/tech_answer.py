"""Find a reference solution for a coding question on the web."""

import logging
import re
from typing import Optional

from pitch_ai.services import tavily

logger = logging.getLogger(__name__)

TRUSTED_DOMAINS = ["leetcode.com", "geeksforgeeks.org", "stackoverflow.com", "github.com"]

_HAS_CODE = re.compile(r"```[\s\S]{10,}```|~~~[\s\S]{10,}~~~")
_CODE_BLOCK = re.compile(r"```[\s\S]*?```|~~~[\s\S]*?~~~")


def has_code(raw: str) -> bool:
    return bool(_HAS_CODE.search(raw or ""))


def _trusted(url: str) -> bool:
    return any(d in url for d in TRUSTED_DOMAINS)


def pick_best(results: list[dict]) -> Optional[dict]:
    for r in results:
        if r.get("url") and _trusted(r["url"]) and has_code(r.get("content") or ""):
            return r
    for r in results:
        if r.get("url") and _trusted(r["url"]):
            return r
    if not results:
        return None
    return sorted(results, key=lambda r: r.get("score") or 0, reverse=True)[0]


def split_explanation_and_code(raw: str) -> tuple[str, Optional[str]]:
    """Split the first fenced code block from a short prose explanation.

    The explanation is at most the first three sentences before the code,
    with quoted ("> Input: ...") lines removed.
    """
    match = _CODE_BLOCK.search(raw)
    code = match.group(0) if match else None
    before = raw[: match.start()] if match else raw

    before = re.sub(r"^>.*$", "", before, flags=re.MULTILINE)
    joined = " ".join(line.strip() for line in re.split(r"\r?\n", before) if line.strip())
    sentences = re.split(r"\. (?=[A-Z])", joined)[:3]
    explanation = ". ".join(sentences)
    if not explanation.endswith("."):
        explanation += "."
    return explanation.strip(), code


def find_tech_answer(question: str) -> dict:
    norm = question.strip()
    answer, results = tavily.search(f"{norm} solution", max_results=6, include_answer=True)
    if not results:
        return {"notFound": True, "sources": []}

    best = pick_best(results) or results[0]
    if not best.get("url"):
        return {"notFound": True, "sources": []}

    raw = (best.get("content") or "").strip()
    if not raw:
        raw = tavily.extract(best["url"])
    explanation, code = split_explanation_and_code(raw)

    return {
        "question": norm,
        "answer": {
            "explanation": (answer or "").strip() or explanation,
            "code": code,
        },
        "sourceUrl": best["url"],
        "sources": [{"title": r.get("title"), "url": r.get("url")} for r in results[:3]],
    }
