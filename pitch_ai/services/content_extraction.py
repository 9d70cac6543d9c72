"""Turn uploaded resumes, job postings and company pages into plain text."""

import io
import json
import logging
import re
from typing import Optional
from urllib.parse import urlparse

import PyPDF2
import requests
from bs4 import BeautifulSoup

from pitch_ai import config

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "... [Content truncated]"

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

STRIP_SELECTORS = "script, style, nav, footer, header, .nav, .footer, .header, .sidebar"
CONTENT_SELECTORS = [
    "main",
    ".main-content",
    ".content",
    ".post-content",
    ".article-content",
    ".job-description",
    ".job-details",
    ".company-info",
    "article",
    ".container",
    "body",
]


def clean_text(text: str) -> str:
    if not isinstance(text, str):
        return ""
    return re.sub(r"\s+", " ", text).strip()


def truncate_content(text: str, limit: Optional[int] = None) -> str:
    limit = config.MAX_CONTENT_CHARS if limit is None else limit
    if len(text) > limit:
        return text[:limit] + TRUNCATION_MARKER
    return text


def extract_pdf_text(data: bytes, filename: str = "upload.pdf") -> str:
    """Extract text from PDF bytes page by page.

    Pages that fail to extract are skipped. Raises ValueError with a user
    facing message when the document is unreadable or holds no text.
    """
    try:
        reader = PyPDF2.PdfReader(io.BytesIO(data))
    except Exception as e:
        logger.error("PDF parse failed for %s: %s", filename, e)
        raise ValueError("The uploaded file is not a valid PDF or is corrupted") from e

    if reader.is_encrypted:
        raise ValueError("Password-protected PDFs are not supported")

    pages = []
    for page_num, page in enumerate(reader.pages, start=1):
        try:
            page_text = page.extract_text() or ""
        except Exception as e:
            logger.warning("Could not process page %d of %s: %s", page_num, filename, e)
            continue
        if page_text.strip():
            pages.append(page_text)

    full_text = "\n\n".join(pages).strip()
    if len(full_text) < 20:
        raise ValueError(
            "PDF appears to be empty or contains no extractable text. "
            "The PDF might be image-based or protected."
        )

    content = truncate_content(clean_text(full_text))
    logger.info("Extracted %d characters from PDF %s", len(content), filename)
    return content


def normalize_url(url: str) -> str:
    normalized = (url or "").strip()
    if not normalized.startswith("http://") and not normalized.startswith("https://"):
        normalized = "https://" + normalized
    parsed = urlparse(normalized)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("Only HTTP and HTTPS URLs are supported")
    return normalized


def html_to_text(html: str) -> str:
    """Pick the main readable region of a page and return its text."""
    if not isinstance(html, str) or not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.select(STRIP_SELECTORS):
        tag.decompose()

    for selector in CONTENT_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        text = element.get_text(" ", strip=True)
        if len(text) > 100:
            return text

    body = soup.body or soup
    return body.get_text(" ", strip=True)


def extract_json_ld_job_posting(html: str) -> Optional[str]:
    """Extract job posting text from JSON-LD blocks if present.

    Many ATS providers (notably Workday) embed the full job description in
    <script type="application/ld+json"> blocks.
    """
    if not isinstance(html, str) or not html:
        return None

    soup = BeautifulSoup(html, "html.parser")
    blocks = soup.find_all("script", attrs={"type": "application/ld+json"})
    if not blocks:
        return None

    def _as_list(x):
        if isinstance(x, list):
            return x
        if isinstance(x, dict):
            return [x]
        return []

    candidates: list[dict] = []
    for block in blocks:
        raw = (block.string or block.get_text() or "").strip()
        if not raw:
            continue
        try:
            obj = json.loads(raw)
        except json.JSONDecodeError:
            continue

        for item in _as_list(obj):
            if not isinstance(item, dict):
                continue
            t = item.get("@type")
            # Some providers use a list for @type
            types = [str(x).lower() for x in (t if isinstance(t, list) else [t]) if x]
            if any("jobposting" in tt for tt in types) or ("description" in item and "hiringOrganization" in item):
                candidates.append(item)

    if not candidates:
        return None

    job = candidates[0]
    title = (job.get("title") or job.get("name") or "").strip()
    org = job.get("hiringOrganization") or {}
    org_name = (org.get("name") if isinstance(org, dict) else "") or ""
    desc = job.get("description") or ""
    desc_txt = BeautifulSoup(desc, "html.parser").get_text(" ", strip=True) if isinstance(desc, str) else ""

    parts = []
    header_bits = [b.strip() for b in [title, org_name] if isinstance(b, str) and b.strip()]
    if header_bits:
        parts.append(" - ".join(header_bits))
    if desc_txt:
        parts.append(desc_txt)

    out = "\n".join(parts).strip()
    return out or None


def extract_url_content(url: str) -> str:
    """Fetch a page and return its cleaned, truncated text.

    Raises ValueError prefixed with "Failed to extract content from URL".
    """
    try:
        normalized = normalize_url(url)
        logger.info("Extracting content from URL: %s", normalized)
        resp = requests.get(normalized, timeout=10, headers=BROWSER_HEADERS)
        resp.raise_for_status()

        # JSON-LD first so ATS pages keep their full description
        text = extract_json_ld_job_posting(resp.text) or html_to_text(resp.text)
        content = truncate_content(clean_text(text))
        if len(content) < 50:
            raise ValueError("Unable to extract meaningful content from the webpage")
    except (ValueError, requests.RequestException) as e:
        logger.error("URL extraction failed for %s: %s", url, e)
        raise ValueError(f"Failed to extract content from URL: {e}") from e

    logger.info("Extracted %d characters from URL", len(content))
    return content


SECTION_HEADINGS = {
    "responsibilities": [
        "responsibilities",
        "what you'll do",
        "what you will do",
        "the role",
        "your role",
        "key duties",
        "day to day",
    ],
    "qualifications": [
        "qualifications",
        "requirements",
        "what you bring",
        "what you'll bring",
        "minimum qualifications",
        "basic qualifications",
        "who you are",
        "skills",
    ],
    "nice_to_have": [
        "nice to have",
        "preferred",
        "bonus points",
        "pluses",
        "good to have",
    ],
}

_MAX_SECTION_ITEMS = 8


def _find_heading(text_lower: str, headings: list[str]) -> tuple[int, int]:
    """Return (position, length) of the earliest heading match, or (-1, 0)."""
    best = (-1, 0)
    for heading in headings:
        pos = text_lower.find(heading)
        if pos >= 0 and (best[0] < 0 or pos < best[0]):
            best = (pos, len(heading))
    return best


def _split_items(chunk: str) -> list[str]:
    pieces = re.split(r"\s*(?:[•●▪–*]|\n-|\n|(?<=[.!?;])\s+)\s*", chunk)
    items = []
    seen = set()
    for piece in pieces:
        item = piece.strip(" -:\t")
        if len(item) < 8 or len(item) > 300:
            continue
        key = item.lower()
        if key in seen:
            continue
        seen.add(key)
        items.append(item)
        if len(items) >= _MAX_SECTION_ITEMS:
            break
    return items


def extract_posting_sections(text: str) -> dict:
    """Heuristically split a job posting into responsibilities, qualifications and nice-to-haves."""
    sections = {name: [] for name in SECTION_HEADINGS}
    if not isinstance(text, str) or not text.strip():
        return sections

    lower = text.lower()
    found = []
    for name, headings in SECTION_HEADINGS.items():
        pos, length = _find_heading(lower, headings)
        if pos >= 0:
            found.append((pos, length, name))
    found.sort()

    for i, (pos, length, name) in enumerate(found):
        end = found[i + 1][0] if i + 1 < len(found) else len(text)
        chunk = text[pos + length:end].lstrip(" :\n\t")
        sections[name] = _split_items(chunk)

    return sections
