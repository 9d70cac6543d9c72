"""Disk-backed cache of reference answer embeddings.

Embeddings are persisted as ``embeddings.json`` plus ``metadata.json`` so a
restart does not re-embed every reference answer. A cache written for a
different embedding model is discarded on load.
"""

import hashlib
import json
import logging
import os
import time
from typing import Optional

from pitch_ai import config

logger = logging.getLogger(__name__)

CACHE_VERSION = "1.0.0"


def hash_text(text: str) -> str:
    return hashlib.sha256(text.strip().encode("utf-8")).hexdigest()


def _now_ms() -> int:
    return int(time.time() * 1000)


def _question_key(question_id: int) -> str:
    return f"question_{question_id}"


def _is_valid_entry(entry) -> bool:
    return (
        isinstance(entry, dict)
        and isinstance(entry.get("id"), str)
        and isinstance(entry.get("text"), str)
        and isinstance(entry.get("embedding"), list)
        and len(entry["embedding"]) > 0
        and isinstance(entry.get("text_hash"), str)
        and isinstance(entry.get("created_at"), (int, float))
        and isinstance(entry.get("model"), str)
    )


class EmbeddingCache:
    def __init__(self, cache_dir: Optional[str] = None, model: Optional[str] = None):
        self.cache_dir = cache_dir or config.EMBEDDING_CACHE_DIR
        self.cache_file = os.path.join(self.cache_dir, "embeddings.json")
        self.metadata_file = os.path.join(self.cache_dir, "metadata.json")
        self.model = model or config.COHERE_EMBED_MODEL
        self.is_loaded = False
        self._cache: dict[str, dict] = {}

    def initialize(self) -> None:
        """Create the cache directory and load any persisted embeddings.

        Failures are logged; the cache then simply starts empty.
        """
        try:
            os.makedirs(self.cache_dir, exist_ok=True)
            self._load()
            self.is_loaded = True
            logger.info("Embedding cache initialized with %d cached embeddings", len(self._cache))
        except OSError as e:
            logger.error("Cache initialization failed, continuing without cache: %s", e)

    def _ensure_loaded(self) -> None:
        if not self.is_loaded:
            self.initialize()

    def _load(self) -> None:
        if not os.path.exists(self.cache_file) or not os.path.exists(self.metadata_file):
            logger.info("No existing embedding cache found, starting fresh")
            return

        try:
            with open(self.metadata_file, "r", encoding="utf-8") as f:
                metadata = json.load(f)
            if metadata.get("model") != self.model:
                logger.info("Cache model mismatch (%s vs %s), invalidating cache", metadata.get("model"), self.model)
                self.clear()
                return

            with open(self.cache_file, "r", encoding="utf-8") as f:
                entries = json.load(f)
            for entry in entries if isinstance(entries, list) else []:
                if _is_valid_entry(entry):
                    self._cache[entry["id"]] = entry
            logger.info("Loaded %d embeddings from cache", len(self._cache))
        except (OSError, ValueError, AttributeError) as e:
            logger.error("Error loading embedding cache, starting empty: %s", e)
            self._cache.clear()

    def _persist(self) -> None:
        entries = list(self._cache.values())
        question_ids = sorted({e["question_id"] for e in entries if e.get("question_id") is not None})
        now = _now_ms()
        metadata = {
            "version": CACHE_VERSION,
            "model": self.model,
            "created_at": now,
            "last_updated": now,
            "embedding_count": len(entries),
            "question_ids": question_ids,
        }
        os.makedirs(self.cache_dir, exist_ok=True)
        with open(self.cache_file, "w", encoding="utf-8") as f:
            json.dump(entries, f)
        with open(self.metadata_file, "w", encoding="utf-8") as f:
            json.dump(metadata, f, indent=2)

    def _entry(self, key: str, text: str, embedding: list[float], question_id: Optional[int] = None) -> dict:
        entry = {
            "id": key,
            "text": text,
            "embedding": embedding,
            "text_hash": hash_text(text),
            "created_at": _now_ms(),
            "model": self.model,
        }
        if question_id is not None:
            entry["question_id"] = question_id
        return entry

    def store_embedding(self, key: str, text: str, embedding: list[float]) -> None:
        if not text or not embedding:
            raise ValueError("Invalid text or embedding data")
        self._cache[key] = self._entry(key, text, embedding)
        try:
            self._persist()
        except OSError as e:
            logger.error("Failed to persist embedding cache: %s", e)

    def store_batch_embeddings(self, items: list[dict]) -> None:
        valid = [i for i in items if i.get("id") and i.get("text") and i.get("embedding")]
        if not valid:
            return
        for item in valid:
            self._cache[item["id"]] = self._entry(item["id"], item["text"], item["embedding"])
        logger.info("Stored %d embeddings in cache", len(valid))
        self._persist()

    def get_embedding(self, key: str) -> Optional[list[float]]:
        entry = self._cache.get(key)
        return entry["embedding"] if entry else None

    def has_embedding(self, key: str, text: Optional[str] = None) -> bool:
        entry = self._cache.get(key)
        if entry is None:
            return False
        if text:
            return entry["text_hash"] == hash_text(text)
        return True

    def get_batch_embeddings(self, keys: list[str]) -> dict[str, list[float]]:
        return {k: self._cache[k]["embedding"] for k in keys if k in self._cache}

    def remove_embedding(self, key: str) -> bool:
        return self._cache.pop(key, None) is not None

    def clear(self) -> None:
        self._cache.clear()
        self._persist()
        logger.info("Embedding cache cleared")

    def cleanup(self, max_age_ms: Optional[int] = None) -> int:
        """Drop entries older than max_age_ms. Returns the number removed."""
        if not max_age_ms:
            return 0
        cutoff = _now_ms() - max_age_ms
        stale = [k for k, e in self._cache.items() if e["created_at"] < cutoff]
        for key in stale:
            del self._cache[key]
        if stale:
            self._persist()
            logger.info("Cleaned up %d old cache entries", len(stale))
        return len(stale)

    def get_stats(self) -> dict:
        timestamps = [e["created_at"] for e in self._cache.values()]
        return {
            "size": len(self._cache),
            "totalEmbeddings": len(self._cache),
            "oldestEntry": min(timestamps) if timestamps else None,
            "newestEntry": max(timestamps) if timestamps else None,
            "model": self.model,
        }

    def get_status(self) -> dict:
        return {"isLoaded": self.is_loaded, "cacheDir": self.cache_dir, "stats": self.get_stats()}

    # Question-keyed helpers

    def store_question_embedding(self, question_id: int, text: str, embedding: list[float]) -> None:
        self._ensure_loaded()
        key = _question_key(question_id)
        self._cache[key] = self._entry(key, text, embedding, question_id)
        self._persist()
        logger.debug("Cached embedding for question %s", question_id)

    def store_question_embeddings(self, items: list[dict]) -> None:
        """items: [{"question_id", "text", "embedding"}]"""
        self._ensure_loaded()
        for item in items:
            key = _question_key(item["question_id"])
            self._cache[key] = self._entry(key, item["text"], item["embedding"], item["question_id"])
        self._persist()
        logger.info("Cached embeddings for %d questions", len(items))

    def get_question_embedding(self, question_id: int) -> Optional[dict]:
        self._ensure_loaded()
        return self._cache.get(_question_key(question_id))

    def has_question_embedding(self, question_id: int) -> bool:
        self._ensure_loaded()
        return _question_key(question_id) in self._cache

    def get_cached_question_ids(self) -> list[int]:
        self._ensure_loaded()
        return sorted({e["question_id"] for e in self._cache.values() if e.get("question_id") is not None})


_cache_instance: Optional[EmbeddingCache] = None


def get_embedding_cache() -> EmbeddingCache:
    global _cache_instance
    if _cache_instance is None:
        _cache_instance = EmbeddingCache()
    return _cache_instance


def reset_embedding_cache() -> None:
    global _cache_instance
    _cache_instance = None
