import asyncio
import logging

from fastapi import APIRouter, HTTPException

from pitch_ai import config
from pitch_ai.schemas.research import JobBriefRequest, TechAnswerRequest
from pitch_ai.services.job_brief import build_job_brief
from pitch_ai.services.tech_answer import find_tech_answer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["research"])


def _require_tavily_key() -> None:
    if not config.TAVILY_API_KEY:
        raise HTTPException(status_code=500, detail="TAVILY_API_KEY missing")


@router.post("/job-brief")
async def job_brief(request: JobBriefRequest):
    """Find the live posting for a company and title and summarize it."""
    _require_tavily_key()
    if not request.company or not request.title:
        raise HTTPException(status_code=400, detail="company and title required")

    try:
        return await asyncio.to_thread(build_job_brief, request.company, request.title)
    except Exception as e:
        logger.exception("Job brief failed for %s / %s", request.company, request.title)
        raise HTTPException(status_code=500, detail=str(e) or "job-brief failed")


@router.post("/tech-answer")
async def tech_answer(request: TechAnswerRequest):
    """Look up a reference explanation and code for a coding question."""
    _require_tavily_key()
    if not request.question or not request.question.strip():
        raise HTTPException(status_code=400, detail="question required")

    try:
        return await asyncio.to_thread(find_tech_answer, request.question)
    except Exception as e:
        logger.exception("Tech answer lookup failed")
        raise HTTPException(status_code=500, detail=str(e) or "tech-answer failed")
