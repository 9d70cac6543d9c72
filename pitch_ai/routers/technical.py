import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, HTTPException

from pitch_ai.exceptions import EvaluatorNotReady, QuestionNotFound
from pitch_ai.schemas.technical import BatchEvaluateRequest, EvaluateRequest
from pitch_ai.services.technical_evaluator import get_technical_evaluator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/technical", tags=["technical"])

NOT_READY_DETAIL = "Technical evaluator not initialized. Please initialize first."

_started_at = time.time()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def summarize_results(results: list[dict]) -> dict:
    total = len(results)
    if not total:
        return {"totalQuestions": 0, "correctAnswers": 0, "averageScore": 0, "averageSimilarity": 0}
    return {
        "totalQuestions": total,
        "correctAnswers": sum(1 for r in results if r.get("isCorrect")),
        "averageScore": sum(r.get("score", 0) for r in results) / total,
        "averageSimilarity": sum(r.get("similarity", 0) for r in results) / total,
    }


@router.get("/health")
async def health():
    evaluator = get_technical_evaluator()
    return {
        "success": True,
        "message": "Technical evaluation service is running",
        "initialized": evaluator.is_initialized,
        "timestamp": _now_iso(),
    }


@router.post("/initialize")
async def initialize():
    """Load reference questions and compute (or load cached) reference embeddings."""
    evaluator = get_technical_evaluator()
    started = time.time()
    try:
        await asyncio.to_thread(evaluator.initialize)
    except Exception as e:
        logger.exception("Technical evaluator initialization failed")
        raise HTTPException(status_code=500, detail=f"Failed to initialize technical evaluator: {e}")
    return {
        "success": True,
        "message": "Technical evaluator initialized successfully",
        "data": {
            **evaluator.get_status(),
            "initializationTimeMs": int((time.time() - started) * 1000),
        },
    }


@router.get("/status")
async def status():
    evaluator = get_technical_evaluator()
    return {
        "success": True,
        "message": "Evaluator status retrieved successfully",
        "data": {
            **evaluator.get_status(),
            "cache": evaluator.embedding_cache.get_status(),
            "uptime": time.time() - _started_at,
            "timestamp": _now_iso(),
        },
    }


@router.get("/questions")
async def list_questions(role: Optional[str] = None):
    evaluator = get_technical_evaluator()
    questions = evaluator.get_questions_by_role(role) if role else evaluator.get_all_questions()
    return {
        "success": True,
        "message": "Questions retrieved successfully",
        "data": {"questions": questions, "total": len(questions), "role": role or "all"},
    }


@router.get("/questions/{question_id}")
async def get_question(question_id: str):
    try:
        qid = int(question_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid question ID")

    question = get_technical_evaluator().get_question(qid)
    if question is None:
        raise HTTPException(status_code=404, detail=f"No question found with ID {qid}")
    return {
        "success": True,
        "message": "Question retrieved successfully",
        "data": {k: v for k, v in question.items() if k != "embedding"},
    }


@router.post("/evaluate")
async def evaluate(request: EvaluateRequest):
    """Score one answer against its reference answer."""
    if not _is_int(request.questionId):
        raise HTTPException(status_code=400, detail="Question ID is required and must be a number")
    if not isinstance(request.userAnswer, str) or not request.userAnswer.strip():
        raise HTTPException(status_code=400, detail="User answer is required and must be a non-empty string")

    evaluator = get_technical_evaluator()
    if not evaluator.is_initialized:
        raise HTTPException(status_code=503, detail=NOT_READY_DETAIL)

    try:
        result = await asyncio.to_thread(
            evaluator.evaluate_answer, request.questionId, request.userAnswer.strip(), request.config
        )
    except EvaluatorNotReady:
        raise HTTPException(status_code=503, detail=NOT_READY_DETAIL)
    except QuestionNotFound:
        raise HTTPException(status_code=404, detail="Question not found")
    except Exception:
        logger.exception("Evaluation failed for question %s", request.questionId)
        raise HTTPException(status_code=500, detail="Failed to evaluate technical answer")

    return {
        "success": True,
        "message": "Answer evaluated successfully",
        "data": {"evaluation": result, "questionId": request.questionId, "timestamp": _now_iso()},
    }


@router.post("/evaluate-batch")
async def evaluate_batch(request: BatchEvaluateRequest):
    """Score several answers sequentially and summarize them."""
    if not request.evaluations:
        raise HTTPException(status_code=400, detail="Evaluations array is required and must not be empty")

    for index, item in enumerate(request.evaluations):
        if not isinstance(item, dict) or not _is_int(item.get("questionId")):
            raise HTTPException(status_code=400, detail=f"Invalid questionId at index {index}")
        if not isinstance(item.get("userAnswer"), str):
            raise HTTPException(status_code=400, detail=f"Invalid userAnswer at index {index}")

    evaluator = get_technical_evaluator()
    if not evaluator.is_initialized:
        raise HTTPException(status_code=503, detail=NOT_READY_DETAIL)

    try:
        results = await asyncio.to_thread(evaluator.evaluate_batch, request.evaluations, request.config)
    except EvaluatorNotReady:
        raise HTTPException(status_code=503, detail=NOT_READY_DETAIL)

    return {
        "success": True,
        "message": "Batch evaluation completed successfully",
        "data": {"evaluations": results, "summary": summarize_results(results), "timestamp": _now_iso()},
    }
