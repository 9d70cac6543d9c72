import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Body, File, Form, Header, HTTPException, UploadFile

from pitch_ai import config
from pitch_ai.schemas.interview import ProcessedContentRequest, UploadTextRequest, UploadUrlRequest
from pitch_ai.services import session_store
from pitch_ai.services.content_extraction import extract_pdf_text, extract_url_content
from pitch_ai.services.gemini import raise_for_gemini_error
from pitch_ai.services.question_generation import generate_behavioral_questions, select_technical_questions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/interview", tags=["interview"])

DEFAULT_CONTENT_TYPE = "otherInfo"
PREVIEW_CHARS = 500


def _require_session(session_id: Optional[str]) -> str:
    if not session_id:
        raise HTTPException(status_code=400, detail="Session ID required")
    return session_id


def _resolve_processed_content(request: Optional[ProcessedContentRequest], session_id: str) -> list[dict]:
    if request is not None and request.processedContent:
        return [item.model_dump(exclude_none=True) for item in request.processedContent]
    return session_store.processed_content(session_id)


@router.post("/upload/text")
async def upload_text(
    request: UploadTextRequest,
    x_session_id: Optional[str] = Header(None),
):
    """Store pasted text (resume, job description, ...) in the session."""
    if not request.text:
        raise HTTPException(status_code=400, detail="Text content is required")
    session_id = _require_session(x_session_id)
    if len(request.text) > config.MAX_CONTENT_CHARS:
        raise HTTPException(status_code=400, detail="Text content too long")

    content = request.text.strip()
    session_store.save_upload(session_id, request.type or DEFAULT_CONTENT_TYPE, {"method": "text", "content": content})
    return {"success": True, "message": "Text processed successfully", "content": content}


@router.post("/upload/url")
async def upload_url(
    request: UploadUrlRequest,
    x_session_id: Optional[str] = Header(None),
):
    """Scrape a web page and store its text in the session."""
    if not request.url:
        raise HTTPException(status_code=400, detail="URL is required")
    session_id = _require_session(x_session_id)

    try:
        content = await asyncio.to_thread(extract_url_content, request.url)
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e))

    session_store.save_upload(
        session_id,
        request.type or DEFAULT_CONTENT_TYPE,
        {"method": "url", "content": content, "url": request.url},
    )
    return {"success": True, "message": "URL content extracted successfully", "content": content}


@router.post("/upload/file")
async def upload_file(
    file: Optional[UploadFile] = File(None),
    type: Optional[str] = Form(None),
    x_session_id: Optional[str] = Header(None),
):
    """Extract text from an uploaded PDF and store it in the session."""
    session_id = _require_session(x_session_id)
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")
    if not file.filename.lower().endswith(".pdf"):
        raise HTTPException(status_code=400, detail="Only PDF files are supported")

    data = await file.read()
    if len(data) > config.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=400, detail="File too large (max 10MB)")

    try:
        content = await asyncio.to_thread(extract_pdf_text, data, file.filename)
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e))

    session_store.save_upload(
        session_id,
        type or DEFAULT_CONTENT_TYPE,
        {"method": "file", "content": content, "filename": file.filename},
    )
    preview = content[:PREVIEW_CHARS] + "..." if len(content) > PREVIEW_CHARS else content
    return {"success": True, "message": "File uploaded and processed successfully", "content": preview}


@router.get("/session/{session_id}")
async def get_session(session_id: str):
    session = session_store.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


@router.put("/session/{session_id}")
async def update_session(session_id: str, data: dict = Body(...)):
    session_store.update_session(session_id, data)
    return {"success": True, "message": "Session updated successfully"}


@router.post("/generate-questions")
async def generate_questions(
    request: Optional[ProcessedContentRequest] = Body(None),
    x_session_id: Optional[str] = Header(None),
):
    """Generate one resume-tailored and one job-tailored behavioral question."""
    session_id = _require_session(x_session_id)
    processed = _resolve_processed_content(request, session_id)
    if not processed:
        raise HTTPException(status_code=400, detail="No content provided")

    try:
        questions = await generate_behavioral_questions(processed)
    except Exception as e:
        logger.exception("Question generation failed")
        raise_for_gemini_error(e, "Failed to generate questions")

    return {"success": True, "questions": questions, "sessionId": session_id}


@router.post("/select-technical-questions")
async def select_technical(
    request: Optional[ProcessedContentRequest] = Body(None),
    x_session_id: Optional[str] = Header(None),
):
    """Pick two reference technical questions that fit the job description."""
    session_id = _require_session(x_session_id)
    processed = _resolve_processed_content(request, session_id)

    try:
        selected, used_fallback = await select_technical_questions(processed)
    except Exception as e:
        logger.exception("Technical question selection failed")
        raise_for_gemini_error(e, "Failed to select technical questions")

    body = {"success": True, "selected": selected, "sessionId": session_id}
    if used_fallback:
        body["fallback"] = True
    return body
