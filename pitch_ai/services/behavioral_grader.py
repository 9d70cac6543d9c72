"""Behavioral answer grading and whole-interview summaries."""

import logging
from typing import Optional

from pitch_ai.services.gemini import extract_json_object, generate_text

logger = logging.getLogger(__name__)


def build_grading_prompt(question: str, answer: str) -> str:
    return f"""You are an interview coach.
Evaluate the following behavioral interview answer.

Question: "{question}"
Answer: "{answer}"

Provide concise feedback in JSON format. For suggestions, provide 1-3 specific improvements based on answer quality:
- Strong answers: 1-2 minor refinements
- Weak answers: 2-3 key improvements

IMPORTANT: Return ONLY valid JSON with this structure:
{{
  "strengths": "What the candidate did well (1-2 sentences)",
  "weaknesses": "Main areas for improvement (1-2 sentences)",
  "suggestions": ["Most important suggestion", "Second suggestion if needed", "Third only if answer needs major work"],
  "score": <number from 1-10>
}}

Each suggestion should be actionable and under 40 words."""


def coerce_score(value) -> Optional[int]:
    """Coerce a model-supplied score into an int within 1..10."""
    if isinstance(value, bool):
        return None
    try:
        score = round(float(str(value).split("/")[0].strip()))
    except (TypeError, ValueError, OverflowError):
        return None
    return max(1, min(10, score))


def parse_feedback(text: str) -> dict:
    """Parse grader output; unparseable text is returned as {"raw": text}."""
    try:
        feedback = extract_json_object(text)
    except ValueError as e:
        logger.info("Failed to parse grader JSON, returning raw response: %s", e)
        return {"raw": text}

    if "score" in feedback:
        score = coerce_score(feedback["score"])
        if score is None:
            feedback.pop("score")
        else:
            feedback["score"] = score
    if isinstance(feedback.get("suggestions"), str):
        feedback["suggestions"] = [feedback["suggestions"]]
    return feedback


async def grade_answer(question: str, answer: str) -> dict:
    text = await generate_text(build_grading_prompt(question, answer))
    logger.debug("Grader response preview: %s", text[:200])
    return parse_feedback(text)


def average_score(responses: list[dict]) -> Optional[float]:
    scores = []
    for item in responses:
        feedback = item.get("feedback")
        if isinstance(feedback, dict):
            score = coerce_score(feedback.get("score")) if feedback.get("score") is not None else None
            if score is not None:
                scores.append(score)
    if not scores:
        return None
    return round(sum(scores) / len(scores), 1)


def build_summary_prompt(responses: list[dict]) -> str:
    transcript = []
    for i, item in enumerate(responses, start=1):
        transcript.append(f"Q{i}: {item.get('question', '')}\nA{i}: {item.get('answer', '')}")
    joined = "\n\n".join(transcript)
    return f"""You are an interview coach reviewing a full behavioral interview.

{joined}

Summarize the candidate's overall performance.
Return ONLY valid JSON with this structure:
{{
  "overallSummary": "2-3 sentence overall assessment",
  "keyStrengths": ["strength 1", "strength 2"],
  "improvementAreas": ["area 1", "area 2"]
}}"""


async def summarize_interview(responses: list[dict]) -> dict:
    """Average the per-answer scores and ask for an overall summary.

    When the model call or parsing fails the local average is still returned
    with an empty summary and ``fallback: True``.
    """
    result = {
        "averageScore": average_score(responses),
        "responseCount": len(responses),
        "overallSummary": "",
        "keyStrengths": [],
        "improvementAreas": [],
    }
    try:
        text = await generate_text(build_summary_prompt(responses))
        parsed = extract_json_object(text)
    except Exception as e:
        logger.error("Interview summary generation failed, returning local average only: %s", e)
        result["fallback"] = True
        return result

    result["overallSummary"] = str(parsed.get("overallSummary") or "")
    for key in ("keyStrengths", "improvementAreas"):
        value = parsed.get(key)
        result[key] = [str(v) for v in value] if isinstance(value, list) else []
    return result
