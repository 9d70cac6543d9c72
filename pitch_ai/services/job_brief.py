"""Locate a live job posting for a company/title pair and summarise it."""

import logging
import re
from typing import Optional

from pitch_ai.services import tavily
from pitch_ai.services.content_extraction import extract_posting_sections

logger = logging.getLogger(__name__)

ATS_DOMAINS = [
    "myworkdayjobs.com",
    "greenhouse.io",
    "lever.co",
    "ashbyhq.com",
    "icims.com",
    "smartrecruiters.com",
    "taleo.net",
]

RAW_LIMIT = 120_000


def company_slug(company: str) -> str:
    return re.sub(r"[^a-z0-9]", "", company.lower())


def build_query(company: str, title: str) -> str:
    slug = company_slug(company)
    return (
        f'{company} "{title}" (Workday OR Greenhouse OR Lever OR '
        f"site:careers.{slug}.com OR site:jobs.{slug}.com)"
    )


def pick_best_posting(results: list[dict], company: str, title: str) -> Optional[dict]:
    """ATS hit matching the title, then a company careers/jobs page, then top score."""
    c = company.lower()
    t = title.lower()
    t_slug = re.sub(r"\s+", "-", t)

    for r in results:
        url = (r.get("url") or "")
        if not url or not any(d in url for d in ATS_DOMAINS):
            continue
        if t in (r.get("title") or "").lower() or t_slug in url.lower():
            return r

    for r in results:
        url = (r.get("url") or "").lower()
        if url and c in url and ("careers" in url or "jobs" in url):
            return r

    if not results:
        return None
    return sorted(results, key=lambda r: r.get("score") or 0, reverse=True)[0]


def summarize(raw: str, max_lines: int = 5) -> str:
    lines = [line.strip() for line in re.split(r"\r?\n", raw)]
    return " ".join([line for line in lines if line][:max_lines])


def _sources(results: list[dict]) -> list[dict]:
    return [{"title": r.get("title"), "url": r.get("url")} for r in results[:3]]


def build_job_brief(company: str, title: str) -> dict:
    _, results = tavily.search(build_query(company, title), max_results=8)
    if not results:
        return {"notFound": True, "sources": []}

    best = pick_best_posting(results, company, title) or results[0]
    if not best.get("url"):
        return {"notFound": True, "sources": []}

    raw = best.get("content") or ""
    if not raw.strip():
        logger.info("Search result had no content, extracting %s", best["url"])
        raw = tavily.extract(best["url"])

    return {
        "company": company,
        "title": title,
        "postingUrl": best["url"],
        "summary": summarize(raw),
        "sections": extract_posting_sections(raw),
        "raw": raw[:RAW_LIMIT],
        "sources": _sources(results),
    }
