import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pitch_ai import config
from pitch_ai.routers import (
    auth_router,
    uploads_router,
    grading_router,
    technical_router,
    research_router,
    stt_router,
    tts_router,
    multimodal_router,
)

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _strip_trailing_slash(value: str) -> str:
    return value[:-1] if isinstance(value, str) and value.endswith("/") else value


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies as 400 rather than FastAPI's default 422."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", []) if p != "body")
    message = first.get("msg", "Invalid request")
    detail = f"{field}: {message}" if field else message
    return JSONResponse(status_code=400, content={"detail": detail})


def create_app() -> FastAPI:
    app = FastAPI(title="Pitch AI Interview API")

    allowed_origins = [
        _strip_trailing_slash(config.FRONTEND_URL),
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(dict.fromkeys(o for o in allowed_origins if o)),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(auth_router)
    app.include_router(uploads_router)
    app.include_router(grading_router)
    app.include_router(technical_router)
    app.include_router(research_router)
    app.include_router(stt_router)
    app.include_router(tts_router)
    app.include_router(multimodal_router)

    @app.get("/")
    async def root():
        """Health check endpoint."""
        return {"message": "Pitch AI interview API is running"}

    @app.get("/health")
    async def health():
        return {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logger.info("Starting server on port %d", config.PORT)
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
