"""Behavioral question generation and technical question selection."""

import json
import logging
from typing import Optional

from pitch_ai.services.gemini import extract_json_object, generate_text
from pitch_ai.services.technical_evaluator import load_question_bank

logger = logging.getLogger(__name__)

FALLBACK_BEHAVIORAL_QUESTIONS = [
    {
        "id": "behav_fallback_1",
        "question": "Tell me about a time where you faced a significant challenge. How did you overcome it?",
        "category": "behavioral",
        "difficulty": "medium",
        "tags": ["problem-solving", "resilience", "challenge"],
    },
    {
        "id": "behav_fallback_2",
        "question": "What attracts you most to this role and this company? How does it align with your career goals?",
        "category": "behavioral",
        "difficulty": "easy",
        "tags": ["company-fit", "motivation", "career-alignment"],
    },
]


def _content_of(processed_content: list[dict], content_type: str) -> str:
    for item in processed_content:
        if isinstance(item, dict) and item.get("type") == content_type:
            return item.get("content") or ""
    return ""


def split_processed_content(processed_content: list[dict]) -> dict:
    """Pick resume, job description, company info and joined other info out of the uploads."""
    other = "\n\n".join(
        item.get("content") or ""
        for item in processed_content
        if isinstance(item, dict) and item.get("type") == "otherInfo"
    )
    return {
        "resume": _content_of(processed_content, "resume"),
        "job_description": _content_of(processed_content, "jobDescription"),
        "company_info": _content_of(processed_content, "companyInfo"),
        "other_info": other,
    }


def build_behavioral_prompt(parts: dict) -> str:
    company_block = f"COMPANY INFORMATION:\n{parts['company_info']}\n" if parts["company_info"] else ""
    other_block = f"ADDITIONAL INFORMATION:\n{parts['other_info']}\n" if parts["other_info"] else ""

    return f"""You are a professional interviewer preparing questions for a job candidate.

Rules:
- Only use information from the candidate's uploaded materials below. Never invent companies, projects, technologies, team sizes or years of experience.
- When details are missing, ask a generic but professional behavioral question about the position instead.
- If company information names the company, frame questions around that company by name.
- Prioritize internships, work experience, leadership, teamwork and values alignment over grades or coursework.

RESUME CONTENT:
{parts['resume'] or 'No resume content provided'}

JOB DESCRIPTION:
{parts['job_description'] or 'No job description provided'}

{company_block}
{other_block}
Generate exactly 2 behavioral questions:
- Q1 (resume-tailored) must reference the candidate's resume.
- Q2 (job-tailored) must reference the target job description.

Return ONLY valid JSON with this structure:
{{
  "behavioral": [
    {{"id": "behav_1_resume", "question": "...", "category": "behavioral", "difficulty": "easy|medium|hard", "tags": ["resume", "experience"]}},
    {{"id": "behav_2_job", "question": "...", "category": "behavioral", "difficulty": "easy|medium|hard", "tags": ["job", "role", "values"]}}
  ]
}}"""


def parse_behavioral_questions(text: str) -> dict:
    """Parse the model output, falling back to the fixed generic questions."""
    try:
        parsed = extract_json_object(text)
        behavioral = parsed.get("behavioral") or []
        if not isinstance(behavioral, list):
            raise ValueError("Invalid question structure - behavioral array expected")
        behavioral = [q for q in behavioral if isinstance(q, dict) and q.get("question")]
        if not behavioral:
            raise ValueError("No behavioral questions generated")
    except ValueError as e:
        logger.warning("Failed to parse generated questions, using fallback: %s", e)
        logger.debug("Raw response: %s", text)
        return {"behavioral": [dict(q) for q in FALLBACK_BEHAVIORAL_QUESTIONS]}

    for q in behavioral:
        q.setdefault("category", "behavioral")
    return {"behavioral": behavioral}


async def generate_behavioral_questions(processed_content: list[dict]) -> dict:
    parts = split_processed_content(processed_content)
    text = await generate_text(build_behavioral_prompt(parts))
    return parse_behavioral_questions(text)


def fallback_select_two(job_description: str, questions: list[dict]) -> list[dict]:
    """Rank questions by keyword overlap with the job description."""
    if len(questions) < 2:
        return list(questions)
    jd = (job_description or "").lower()
    scored = []
    for q in questions:
        keywords = q.get("keywords") if isinstance(q.get("keywords"), list) else []
        score = sum(1 for k in keywords if str(k).lower() in jd)
        scored.append((score, q))
    # Stable sort keeps file order on ties
    scored.sort(key=lambda pair: pair[0], reverse=True)

    if scored[0][0] == 0:
        preferred = [q for q in questions if "software" in (q.get("role") or "").lower()][:2]
        if len(preferred) == 2:
            return preferred
        return [questions[0], questions[1]]

    return [q for _, q in scored[:2]]


def _question_summaries(questions: list[dict]) -> list[dict]:
    return [
        {"id": q["id"], "role": q.get("role", ""), "question": q["question"], "keywords": q.get("keywords", [])}
        for q in questions
    ]


def build_selection_prompt(job_description: str, summaries: list[dict]) -> str:
    return f"""You are given a job description and a list of technical interview questions (id, role, question, keywords).
Choose exactly 2 question IDs from the list that best match the job description and role. Do NOT invent or modify questions.
Return only valid JSON with the shape: {{"selected": [{{"id": <number>, "role": "...", "question": "...", "keywords": ["..."]}}, ...]}}

JOB DESCRIPTION:
{job_description or 'No job description provided'}

AVAILABLE QUESTIONS:
{json.dumps(summaries, indent=2)}

If the job description is empty or not specific, select two diverse questions for a general software engineering role.
Do not include any text outside the JSON."""


def _resolve_selection(parsed: dict, summaries: list[dict]) -> Optional[list[dict]]:
    selected = parsed.get("selected")
    if not isinstance(selected, list) or len(selected) != 2:
        return None
    by_id = {q["id"]: q for q in summaries}
    resolved = []
    for item in selected:
        raw_id = item.get("id") if isinstance(item, dict) else item
        try:
            qid = int(raw_id)
        except (TypeError, ValueError):
            return None
        if qid not in by_id:
            return None
        resolved.append(by_id[qid])
    if resolved[0]["id"] == resolved[1]["id"]:
        return None
    return resolved


async def select_technical_questions(processed_content: list[dict]) -> tuple[list[dict], bool]:
    """Return (selected questions, used_fallback)."""
    job_description = _content_of(processed_content, "jobDescription")
    summaries = _question_summaries(load_question_bank())

    text = await generate_text(build_selection_prompt(job_description, summaries))
    try:
        resolved = _resolve_selection(extract_json_object(text), summaries)
    except ValueError as e:
        logger.error("Failed to parse technical selection: %s", e)
        resolved = None
    if resolved is not None:
        return resolved, False
    logger.warning("Model returned an unexpected selection, using keyword fallback. Raw: %s", text[:500])

    selected = fallback_select_two(job_description, summaries)
    logger.warning(
        "Fallback technical selection: ids=%s jd_length=%d",
        [q["id"] for q in selected],
        len(job_description or ""),
    )
    return selected, True
