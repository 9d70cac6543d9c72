import logging
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException

from pitch_ai.schemas.media import PresenceAnalysisRequest
from pitch_ai.services.presence_analysis import analyze_interview_presence

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/multi-modal", tags=["multi-modal"])


@router.post("/analyze")
async def analyze(request: PresenceAnalysisRequest):
    """Visual presentation feedback for an interview frame."""
    try:
        analysis = await analyze_interview_presence(
            request.audioContent, request.imageData, request.transcriptText
        )
    except Exception:
        logger.exception("Multi-modal analysis error")
        raise HTTPException(status_code=500, detail="Failed to analyze interview presence")
    return {"success": True, "analysis": analysis}


@router.get("/test")
async def test_setup():
    return {
        "success": True,
        "message": "Multi-modal analysis service is available",
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    }
