"""Cohere embedding client with retry, plus vector similarity helpers."""

import logging
import re
import time
from typing import Optional

import numpy as np
import requests

from pitch_ai import config
from pitch_ai.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

INPUT_TYPES = ("search_document", "search_query", "classification", "clustering")

# Messages containing these are not worth retrying
_NON_RETRYABLE = ("unauthorized", "Invalid", "quota")


def _normalize(text: str) -> str:
    return re.sub(r"\s+", " ", text.strip())


class CohereEmbeddingService:
    """Generates text embeddings through the Cohere v2 embed endpoint."""

    def __init__(self, api_key: str, model: Optional[str] = None, max_retries: int = 3, retry_delay: float = 1.0):
        if not api_key:
            raise ValueError("Cohere API key is required")
        self.api_key = api_key
        self.model = model or config.COHERE_EMBED_MODEL
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.is_initialized = False

    def initialize(self) -> None:
        """Validate connectivity by embedding a short test text."""
        logger.info("Initializing Cohere embedding service...")
        try:
            self.generate_embedding("test connectivity")
        except Exception as e:
            logger.error("Failed to initialize Cohere embedding service: %s", e)
            raise ExternalServiceError(f"Cohere initialization failed: {e}") from e
        self.is_initialized = True
        logger.info("Cohere embedding service initialized")

    def _embed(self, texts: list[str], input_type: str) -> list[list[float]]:
        try:
            resp = requests.post(
                config.COHERE_API_URL,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
                json={
                    "texts": texts,
                    "model": self.model,
                    "input_type": input_type,
                    "embedding_types": ["float"],
                },
                timeout=30,
            )
        except requests.RequestException as e:
            raise ExternalServiceError(f"Embedding generation failed: {e}") from e

        if resp.status_code == 401:
            raise ExternalServiceError("Invalid Cohere API key (unauthorized)", status_code=401)
        if resp.status_code == 429:
            raise ExternalServiceError("Rate limit exceeded. Please try again later.", status_code=429)
        if resp.status_code >= 400:
            detail = resp.text[:300]
            if "quota" in detail.lower():
                raise ExternalServiceError("API quota exceeded", status_code=resp.status_code)
            raise ExternalServiceError(
                f"Embedding generation failed: HTTP {resp.status_code}: {detail}", status_code=resp.status_code
            )

        data = resp.json()
        return ((data.get("embeddings") or {}).get("float")) or []

    def _execute_with_retry(self, fn, *args):
        last_error = None
        for attempt in range(1, self.max_retries + 1):
            try:
                return fn(*args)
            except Exception as e:
                last_error = e
                if attempt == self.max_retries:
                    break
                if any(marker in str(e) for marker in _NON_RETRYABLE):
                    break
                delay = self.retry_delay * attempt
                logger.warning("Cohere attempt %d failed, retrying in %ss: %s", attempt, delay, e)
                time.sleep(delay)
        raise last_error or ExternalServiceError("Max retries exceeded")

    def generate_embedding(self, text: str, input_type: str = "search_document") -> list[float]:
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")
        clean = _normalize(text)

        def _single():
            start = time.time()
            vectors = self._embed([clean], input_type)
            if not vectors or not vectors[0]:
                raise ExternalServiceError("No embeddings returned from Cohere API")
            logger.debug(
                "Generated embedding for %r in %dms, vector size %d",
                clean[:50], int((time.time() - start) * 1000), len(vectors[0]),
            )
            return vectors[0]

        return self._execute_with_retry(_single)

    def generate_batch_embeddings(self, texts: list[str], input_type: str = "search_document") -> list[list[float]]:
        if not texts:
            return []
        valid = [_normalize(t) for t in texts if isinstance(t, str) and t.strip()]
        if not valid:
            raise ValueError("No valid texts provided")

        def _batch():
            start = time.time()
            vectors = self._embed(valid, input_type)
            if len(vectors) != len(valid):
                raise ExternalServiceError("Mismatch between input texts and returned embeddings")
            if any(not v for v in vectors):
                raise ExternalServiceError("Invalid embedding format in batch response")
            logger.info("Generated %d embeddings in %dms", len(vectors), int((time.time() - start) * 1000))
            return vectors

        return self._execute_with_retry(_batch)

    def get_status(self) -> dict:
        return {"isInitialized": self.is_initialized, "model": self.model, "maxRetries": self.max_retries}


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Cosine similarity clamped to [0, 1]. Zero vectors score 0."""
    if a is None or b is None:
        raise ValueError("Both embeddings must be provided")
    if len(a) != len(b):
        raise ValueError(f"Embedding dimensions must match: {len(a)} vs {len(b)}")

    vec_a = np.asarray(a, dtype=float)
    vec_b = np.asarray(b, dtype=float)
    norm_a = np.linalg.norm(vec_a)
    norm_b = np.linalg.norm(vec_b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    similarity = float(np.dot(vec_a, vec_b) / (norm_a * norm_b))
    return max(0.0, min(1.0, similarity))


def find_most_similar(query: list[float], candidates: list[list[float]], threshold: float = 0.5) -> Optional[tuple[int, float]]:
    """Return (index, similarity) of the best candidate at or above threshold."""
    if not query or not candidates:
        return None
    best_index, best_similarity = -1, 0.0
    for i, candidate in enumerate(candidates):
        try:
            similarity = cosine_similarity(query, candidate)
        except ValueError as e:
            logger.warning("Could not calculate similarity for embedding %d: %s", i, e)
            continue
        if similarity > best_similarity:
            best_index, best_similarity = i, similarity
    if best_index < 0 or best_similarity < threshold:
        return None
    return best_index, best_similarity


_cohere_service: Optional[CohereEmbeddingService] = None


def get_cohere_service() -> CohereEmbeddingService:
    global _cohere_service
    if _cohere_service is None:
        if not config.COHERE_API_KEY:
            raise RuntimeError("COHERE_API_KEY environment variable is required")
        _cohere_service = CohereEmbeddingService(config.COHERE_API_KEY)
    return _cohere_service


def reset_cohere_service() -> None:
    global _cohere_service
    _cohere_service = None
