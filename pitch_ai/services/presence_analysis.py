"""Visual presentation feedback from a single interview video frame."""

import logging
import re
from datetime import datetime, timezone
from typing import Optional

from pitch_ai import config
from pitch_ai.services.gemini import extract_json_object, generate_text

logger = logging.getLogger(__name__)

PRESENCE_PROMPT = """Analyze this interview video frame for presentation skills. Provide balanced and constructive feedback focused on professional development.

Never contradict yourself: a trait listed as a strength (eye contact, posture, expression, setup) must not also appear as an area for growth.

1. Identify 2-3 genuine strengths (e.g. eye contact with camera, positive expressions, professional posture, composed demeanor, professional background, good framing).
2. Identify 1-2 growth opportunities that do not overlap with the strengths (e.g. eye contact consistency, more expressive engagement, posture, visible enthusiasm).
3. Frame every point constructively.

Return ONLY a JSON object with exactly this format:
{
  "presentationStrengths": ["strength 1", "strength 2", "strength 3"],
  "presentationWeaknesses": ["growth opportunity 1", "growth opportunity 2"]
}"""

_DATA_URL_PREFIX = re.compile(r"^data:image/[a-z]+;base64,")


def _unique(items: list) -> list:
    seen = set()
    out = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


async def analyze_interview_presence(audio_content: Optional[str] = None,
                                     image_data: Optional[str] = None,
                                     transcript_text: Optional[str] = None) -> dict:
    """Analyze presentation from an image frame.

    Audio and transcript are accepted for the request shape but only the image
    is analyzed. Problems are reported as weaknesses rather than raised.
    """
    strengths: list[str] = []
    weaknesses: list[str] = []

    if not image_data:
        weaknesses.append("No video available - cannot assess visual presentation")
    elif not config.GEMINI_API_KEY:
        weaknesses.append("Video analysis unavailable - API not configured")
    else:
        clean_image = _DATA_URL_PREFIX.sub("", image_data)
        logger.info("Sending %d chars of image data for presence analysis", len(clean_image))
        contents = [
            {"text": PRESENCE_PROMPT},
            {"inline_data": {"mime_type": "image/jpeg", "data": clean_image}},
        ]
        try:
            text = await generate_text(contents)
        except Exception as e:
            logger.error("Visual analysis failed: %s", e)
            weaknesses.append("Video analysis failed due to technical issue")
        else:
            try:
                analysis = extract_json_object(text)
                if isinstance(analysis.get("presentationStrengths"), list):
                    strengths.extend(str(s) for s in analysis["presentationStrengths"])
                if isinstance(analysis.get("presentationWeaknesses"), list):
                    weaknesses.extend(str(w) for w in analysis["presentationWeaknesses"])
            except ValueError as e:
                logger.error("Failed to parse visual analysis response: %s", e)
                weaknesses.append("Video analysis completed but results could not be processed")

    return {
        "strengths": [],
        "areasForImprovement": [],
        "suggestions": [],
        "presentationStrengths": _unique(strengths),
        "presentationWeaknesses": _unique(weaknesses),
        "timestamp": _now_iso(),
    }
