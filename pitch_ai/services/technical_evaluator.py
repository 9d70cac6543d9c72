"""Semantic grading of technical answers against stored reference answers.

Each reference answer is embedded once (and cached on disk). A candidate
answer is embedded as a search query, compared to its reference by cosine
similarity, and blended with a keyword-overlap ratio:

    combined = semantic * semantic_weight + keyword * keyword_weight

``score`` is ``combined`` on a 0-100 scale and ``rating`` the same value on a
1-10 band.
"""

import json
import logging
import os
import time
from dataclasses import asdict, dataclass, fields
from typing import Optional

from pitch_ai.exceptions import EvaluatorNotReady, QuestionNotFound
from pitch_ai.services.cohere_embeddings import cosine_similarity, get_cohere_service
from pitch_ai.services.embedding_cache import get_embedding_cache

logger = logging.getLogger(__name__)

QUESTION_BANK_PATH = os.path.join(os.path.dirname(os.path.dirname(__file__)), "data", "technical_questions.json")

TOO_SHORT_FEEDBACK = "Answer is too short. Please provide a more detailed explanation with at least a few sentences."
TOO_SHORT_SUGGESTIONS = [
    "Provide more detail in your answer",
    "Explain the concept step by step",
    "Include relevant examples or use cases",
]


@dataclass
class EvaluationConfig:
    excellent_threshold: float = 0.85
    good_threshold: float = 0.70
    partial_threshold: float = 0.50
    keyword_weight: float = 0.3
    semantic_weight: float = 0.7

    # Request bodies use camelCase
    _ALIASES = {
        "excellentThreshold": "excellent_threshold",
        "goodThreshold": "good_threshold",
        "partialThreshold": "partial_threshold",
        "keywordWeight": "keyword_weight",
        "semanticWeight": "semantic_weight",
    }

    def merged(self, overrides: Optional[dict]) -> "EvaluationConfig":
        """Return a copy with any recognised numeric overrides applied."""
        values = asdict(self)
        names = {f.name for f in fields(self)}
        for key, value in (overrides or {}).items():
            name = self._ALIASES.get(key, key)
            if name in names and isinstance(value, (int, float)) and not isinstance(value, bool):
                values[name] = float(value)
        return EvaluationConfig(**values)

    def to_dict(self) -> dict:
        return {alias: getattr(self, name) for alias, name in self._ALIASES.items()}


def load_question_bank(path: Optional[str] = None) -> list[dict]:
    """Load and validate the reference questions.

    Entries missing an id, question or a reference answer of at least 10
    characters are skipped with a warning. Raises ValueError when nothing
    valid remains.
    """
    path = path or QUESTION_BANK_PATH
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        raise ValueError("Technical questions data is not an array")

    questions = []
    seen_ids = set()
    for item in raw:
        if not isinstance(item, dict) or not item.get("id") or not item.get("question") or not item.get("reference_answer"):
            logger.warning("Skipping invalid question: missing required fields: %r", item)
            continue
        answer = item["reference_answer"]
        if not isinstance(answer, str) or len(answer.strip()) < 10:
            logger.warning("Skipping question %s: reference answer too short", item["id"])
            continue
        try:
            qid = int(item["id"])
        except (TypeError, ValueError):
            logger.warning("Skipping question with non-integer id %r", item["id"])
            continue
        if qid in seen_ids:
            logger.warning("Skipping duplicate question id %s", qid)
            continue
        seen_ids.add(qid)
        questions.append({
            "id": qid,
            "role": item.get("role") or "Software Engineer",
            "question": item["question"],
            "reference_answer": answer,
            "keywords": item["keywords"] if isinstance(item.get("keywords"), list) else [],
        })

    if not questions:
        raise ValueError("No valid technical questions found")
    return questions


def keyword_match(answer: str, keywords: list[str]) -> tuple[float, list[str]]:
    """Case-insensitive substring match. Returns (ratio, matched keywords)."""
    if not keywords:
        return 0.0, []
    answer_lower = answer.lower()
    matches = [k for k in keywords if k.lower() in answer_lower]
    return len(matches) / len(keywords), matches


def build_feedback(combined: float, semantic: float, keyword_score: float, matches: list[str],
                   keywords: list[str], cfg: EvaluationConfig) -> tuple[str, bool, list[str]]:
    suggestions = []

    if combined >= cfg.excellent_threshold:
        feedback = "Excellent answer! You demonstrate a strong understanding of the concept with clear explanations."
        is_correct = True
        missing = [k for k in keywords if k not in matches]
        if missing:
            suggestions.append("Consider mentioning these key terms: " + ", ".join(missing))
    elif combined >= cfg.good_threshold:
        feedback = "Good answer! You covered the main concepts well but could add more detail or clarity."
        is_correct = True
        suggestions.append("Expand on your explanation with more specific details")
        if keyword_score < 0.5:
            suggestions.append("Include these important concepts: " + ", ".join(keywords[:3]))
    elif combined >= cfg.partial_threshold:
        feedback = "Partially correct. Your answer touches on relevant concepts but misses key details."
        is_correct = False
        suggestions.append("Review the core concepts and provide more comprehensive explanation")
        suggestions.append("Include these key terms: " + ", ".join(keywords[:3]))
        if semantic < 0.4:
            suggestions.append("Your answer may be addressing a different aspect of the question")
    else:
        feedback = "The answer appears to be off-topic or missing key concepts. Please review the question carefully."
        is_correct = False
        suggestions.append("Read the question carefully and focus on the main concept being asked")
        suggestions.append("Key concepts to address: " + ", ".join(keywords[:5]))
        suggestions.append("Consider reviewing the fundamentals of this topic")

    if semantic > 0.7 and keyword_score < 0.3:
        suggestions.append("Your explanation is conceptually sound but could benefit from using more technical terminology")
    elif semantic < 0.5 and keyword_score > 0.5:
        suggestions.append("You mentioned relevant keywords but the overall explanation needs better structure and clarity")

    return feedback, is_correct, suggestions


def _rating(combined: float) -> int:
    return max(1, min(10, round(combined * 10)))


def _empty_result(question_id, feedback: str, suggestions: list[str]) -> dict:
    return {
        "questionId": question_id,
        "similarity": 0,
        "keywordScore": 0,
        "score": 0,
        "rating": 1,
        "feedback": feedback,
        "isCorrect": False,
        "keywordMatches": [],
        "suggestions": suggestions,
    }


class TechnicalQuestionEvaluator:
    def __init__(self, cohere_service=None, embedding_cache=None, question_bank_path: Optional[str] = None):
        self._cohere = cohere_service
        self.embedding_cache = embedding_cache or get_embedding_cache()
        self.question_bank_path = question_bank_path
        self.config = EvaluationConfig()
        self.is_initialized = False
        self._questions: dict[int, dict] = {}

    @property
    def cohere(self):
        if self._cohere is None:
            self._cohere = get_cohere_service()
        return self._cohere

    def initialize(self) -> None:
        """Load the question bank and make sure every reference answer has an embedding."""
        logger.info("Initializing technical question evaluator...")
        self.embedding_cache.initialize()
        self.cohere.initialize()
        questions = load_question_bank(self.question_bank_path)
        logger.info("Loaded %d technical questions", len(questions))
        self._precompute_reference_embeddings(questions)
        self.is_initialized = True
        logger.info("Technical question evaluator initialized")

    def _precompute_reference_embeddings(self, questions: list[dict]) -> None:
        start = time.time()
        pending = []
        cached_count = 0
        for question in questions:
            cached = self.embedding_cache.get_question_embedding(question["id"])
            if cached and cached.get("text") == question["reference_answer"]:
                question["embedding"] = cached["embedding"]
                cached_count += 1
            else:
                if cached:
                    logger.info("Reference answer changed for question %s, regenerating embedding", question["id"])
                pending.append(question)

        logger.info("Cache status: %d cached, %d need computation", cached_count, len(pending))

        to_cache = []
        for question in pending:
            try:
                embedding = self.cohere.generate_embedding(question["reference_answer"])
            except Exception as e:
                logger.error("Failed to generate embedding for question %s: %s", question["id"], e)
                raise RuntimeError(f"Failed to generate embedding for question {question['id']}: {e}") from e
            question["embedding"] = embedding
            to_cache.append({"question_id": question["id"], "text": question["reference_answer"], "embedding": embedding})

        if to_cache:
            self.embedding_cache.store_question_embeddings(to_cache)

        self._questions = {q["id"]: q for q in questions}
        logger.info(
            "Embedding pre-computation completed in %dms, cache hit rate %.1f%%",
            int((time.time() - start) * 1000),
            cached_count / len(questions) * 100,
        )

    def evaluate_answer(self, question_id: int, user_answer: str, config: Optional[dict] = None) -> dict:
        if not self.is_initialized:
            raise EvaluatorNotReady("Evaluator not initialized. Call initialize() first.")

        if not user_answer or len(user_answer.strip()) < 5:
            return _empty_result(question_id, TOO_SHORT_FEEDBACK, list(TOO_SHORT_SUGGESTIONS))

        question = self._questions.get(question_id)
        if not question or not question.get("embedding"):
            raise QuestionNotFound(f"Question with ID {question_id} not found or missing embedding")

        cfg = self.config.merged(config)
        user_embedding = self.cohere.generate_embedding(user_answer.strip(), "search_query")
        semantic = cosine_similarity(question["embedding"], user_embedding)
        keyword_score, matches = keyword_match(user_answer, question["keywords"])
        combined = semantic * cfg.semantic_weight + keyword_score * cfg.keyword_weight

        feedback, is_correct, suggestions = build_feedback(
            combined, semantic, keyword_score, matches, question["keywords"], cfg
        )
        score = round(combined * 100)
        logger.info(
            "Question %s evaluation: semantic=%.3f keyword=%.3f final=%d",
            question_id, semantic, keyword_score, score,
        )
        return {
            "questionId": question_id,
            "similarity": semantic,
            "keywordScore": keyword_score,
            "score": score,
            "rating": _rating(combined),
            "feedback": feedback,
            "isCorrect": is_correct,
            "keywordMatches": matches,
            "suggestions": suggestions,
        }

    def evaluate_batch(self, items: list[dict], config: Optional[dict] = None) -> list[dict]:
        """Evaluate items one after another; a failing item yields an error result."""
        results = []
        for item in items:
            question_id = item.get("questionId")
            try:
                results.append(self.evaluate_answer(question_id, item.get("userAnswer"), config))
            except EvaluatorNotReady:
                raise
            except Exception as e:
                logger.error("Error evaluating question %s: %s", question_id, e)
                results.append(_empty_result(
                    question_id, "Evaluation failed due to technical error", ["Please try again later"]
                ))
        return results

    def get_question(self, question_id: int) -> Optional[dict]:
        return self._questions.get(question_id)

    def get_all_questions(self) -> list[dict]:
        return [{k: v for k, v in q.items() if k != "embedding"} for q in self._questions.values()]

    def get_questions_by_role(self, role: str) -> list[dict]:
        role_lower = role.lower()
        return [q for q in self.get_all_questions() if role_lower in q["role"].lower()]

    def get_status(self) -> dict:
        first = next(iter(self._questions.values()), None)
        return {
            "isInitialized": self.is_initialized,
            "questionCount": len(self._questions),
            "embeddingDimension": len(first["embedding"]) if first and first.get("embedding") else None,
            "config": self.config.to_dict(),
        }


_evaluator: Optional[TechnicalQuestionEvaluator] = None


def get_technical_evaluator() -> TechnicalQuestionEvaluator:
    global _evaluator
    if _evaluator is None:
        _evaluator = TechnicalQuestionEvaluator()
    return _evaluator


def reset_technical_evaluator() -> None:
    global _evaluator
    _evaluator = None
