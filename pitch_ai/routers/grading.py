import logging

from fastapi import APIRouter, HTTPException

from pitch_ai.schemas.interview import GradeRequest, SummarizeRequest
from pitch_ai.services.behavioral_grader import grade_answer, summarize_interview

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/behav-grader", tags=["behavioral"])


@router.post("/grade")
async def grade_behavioral(request: GradeRequest):
    """Grade a single behavioral answer (strengths, weaknesses, suggestions, 1-10 score)."""
    if not request.question or not request.answer:
        raise HTTPException(status_code=400, detail="Missing question or answer")

    logger.info(
        "Behavioral grader request: question_length=%d answer_length=%d",
        len(request.question), len(request.answer),
    )
    try:
        feedback = await grade_answer(request.question, request.answer)
    except Exception:
        logger.exception("Error grading behavioral response")
        raise HTTPException(status_code=500, detail="Failed to grade behavioral response")

    return {"success": True, "feedback": feedback}


@router.post("/summarize")
async def summarize_behavioral(request: SummarizeRequest):
    """Summarize a whole behavioral interview from its graded responses."""
    if not request.responses:
        raise HTTPException(status_code=400, detail="responses must be a non-empty list")

    summary = await summarize_interview([r.model_dump() for r in request.responses])
    return {"success": True, "summary": summary}
