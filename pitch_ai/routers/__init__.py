from pitch_ai.routers.auth import router as auth_router
from pitch_ai.routers.uploads import router as uploads_router
from pitch_ai.routers.grading import router as grading_router
from pitch_ai.routers.technical import router as technical_router
from pitch_ai.routers.research import router as research_router
from pitch_ai.routers.speech import stt_router, tts_router
from pitch_ai.routers.multimodal import router as multimodal_router

__all__ = [
    "auth_router",
    "uploads_router",
    "grading_router",
    "technical_router",
    "research_router",
    "stt_router",
    "tts_router",
    "multimodal_router",
]
