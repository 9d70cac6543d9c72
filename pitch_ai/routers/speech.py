import asyncio
import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse

from pitch_ai import config
from pitch_ai.exceptions import ExternalServiceError, TranscriptionTimeout
from pitch_ai.schemas.media import (
    IntroductionRequest,
    QuestionAudioRequest,
    TranscribeChunkRequest,
    TranscribeRequest,
)
from pitch_ai.services import speech

logger = logging.getLogger(__name__)

stt_router = APIRouter(prefix="/api/stt", tags=["speech-to-text"])
tts_router = APIRouter(prefix="/api/tts", tags=["text-to-speech"])


def _raise_for_stt_error(exc: Exception, default_detail: str) -> None:
    if isinstance(exc, ExternalServiceError) and exc.status_code == 400:
        raise HTTPException(status_code=400, detail=f"Invalid audio format or configuration: {exc}")
    raise HTTPException(status_code=500, detail=f"{default_detail}: {exc}")


@stt_router.post("/transcribe")
async def transcribe(request: TranscribeRequest):
    """Transcribe a full recording with a long-running recognition."""
    if not request.audioContent:
        raise HTTPException(status_code=400, detail="Audio content must be provided as base64 string")

    try:
        return await asyncio.to_thread(speech.transcribe_long_running, request.audioContent, request.config)
    except TranscriptionTimeout as e:
        return JSONResponse(status_code=408, content={
            "message": str(e),
            "operationName": e.operation_name,
            "error": "You can check the operation status manually if needed",
        })
    except Exception as e:
        logger.exception("STT transcription failed")
        _raise_for_stt_error(e, "Speech-to-text transcription failed")


@stt_router.post("/transcribe-chunk")
async def transcribe_chunk(request: TranscribeChunkRequest):
    """Transcribe a short chunk (max ~60s) with synchronous recognition."""
    if not request.audioContent:
        raise HTTPException(status_code=400, detail="Audio content must be provided as base64 string")

    duration = speech.estimate_duration_seconds(request.audioContent)
    if duration > speech.MAX_SYNC_SECONDS:
        logger.warning("Chunk %s appears longer than 60 seconds (%.1fs)", request.chunkIndex, duration)
        return JSONResponse(status_code=400, content={
            "message": "Audio chunk too long for sync API",
            "error": f"Estimated duration: {duration:.1f}s (max 60s for sync recognition)",
            "chunkIndex": request.chunkIndex,
            "estimatedDuration": duration,
        })

    try:
        return await asyncio.to_thread(
            speech.transcribe_chunk, request.audioContent, request.config, request.chunkIndex
        )
    except Exception as e:
        logger.exception("Chunk %s transcription failed", request.chunkIndex)
        _raise_for_stt_error(e, "Chunk transcription failed")


@stt_router.get("/test")
async def test_stt():
    key = config.GOOGLE_STT_API_KEY
    if not key:
        raise HTTPException(
            status_code=500,
            detail="STT API configuration test failed: Google Speech-to-Text API key not found in environment variables",
        )
    return {
        "message": "STT API configuration test successful",
        "apiKeyPresent": True,
        "apiKeyPrefix": key[:10] + "...",
        "endpoint": f"{speech.STT_BASE_URL}/speech:recognize",
    }


@tts_router.get("/test")
async def test_tts():
    try:
        audio = await asyncio.to_thread(speech.synthesize, speech.TEST_GREETING)
    except Exception as e:
        logger.exception("TTS synthesis failed")
        raise HTTPException(status_code=500, detail=f"TTS synthesis failed: {e}")
    return {"message": "TTS synthesis successful", "audioContent": audio}


@tts_router.post("/introduction")
async def introduction(request: IntroductionRequest):
    """Speak the interviewer's personalised introduction."""
    if not request.position or not request.company or not request.interviewerName:
        raise HTTPException(
            status_code=400,
            detail="Missing required parameters: position, company, interviewerName",
        )

    intro_text = speech.introduction_text(request.position, request.company, request.interviewerName)
    try:
        audio = await asyncio.to_thread(speech.synthesize, intro_text, speech.INTERVIEW_SPEAKING_RATE)
    except Exception as e:
        logger.exception("Introduction TTS failed")
        raise HTTPException(status_code=500, detail=f"Introduction TTS synthesis failed: {e}")
    return {"message": "Introduction TTS synthesis successful", "audioContent": audio, "introText": intro_text}


@tts_router.post("/question")
async def question_audio(request: QuestionAudioRequest):
    """Speak an interview question."""
    if not request.question or not isinstance(request.question, str):
        raise HTTPException(status_code=400, detail="Question must be a non-empty string")

    try:
        audio = await asyncio.to_thread(speech.synthesize, request.question, speech.INTERVIEW_SPEAKING_RATE)
    except Exception as e:
        logger.exception("Question TTS failed")
        raise HTTPException(status_code=500, detail=f"Question TTS synthesis failed: {e}")
    return {"message": "Question TTS synthesis successful", "audioContent": audio, "question": request.question}
