"""Shared pytest fixtures: isolated config, fresh singletons, no network."""

import pytest
from fastapi.testclient import TestClient

from pitch_ai import config
from pitch_ai.services import cohere_embeddings, embedding_cache, session_store, technical_evaluator

API_KEY_SETTINGS = [
    "GEMINI_API_KEY",
    "COHERE_API_KEY",
    "GOOGLE_STT_API_KEY",
    "GOOGLE_TTS_API_KEY",
    "TAVILY_API_KEY",
    "SUPABASE_URL",
    "SUPABASE_KEY",
    "SUPABASE_SERVICE_ROLE_KEY",
    "SUPABASE_JWT_SECRET",
]


@pytest.fixture(autouse=True)
def isolated_state(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Blank API keys, a temp embedding cache and empty in-memory state for each test."""
    for name in API_KEY_SETTINGS:
        monkeypatch.setattr(config, name, "")
    monkeypatch.setattr(config, "EMBEDDING_CACHE_DIR", str(tmp_path / "embeddings"))
    monkeypatch.setattr(config, "STT_POLL_INTERVAL", 0)

    session_store.clear_sessions()
    technical_evaluator.reset_technical_evaluator()
    cohere_embeddings.reset_cohere_service()
    embedding_cache.reset_embedding_cache()
    yield
    session_store.clear_sessions()
    technical_evaluator.reset_technical_evaluator()
    cohere_embeddings.reset_cohere_service()
    embedding_cache.reset_embedding_cache()


@pytest.fixture
def client():
    from backend import app

    return TestClient(app)


class FakeCohere:
    """Stands in for CohereEmbeddingService; texts map to fixed vectors."""

    def __init__(self, vectors=None, default=None):
        self.vectors = dict(vectors or {})
        self.default = default or [0.0, 1.0]
        self.calls = []
        self.is_initialized = False

    def initialize(self):
        self.is_initialized = True

    def generate_embedding(self, text, input_type="search_document"):
        self.calls.append((text, input_type))
        return list(self.vectors.get(text, self.default))


@pytest.fixture
def fake_cohere():
    return FakeCohere()
