from pitch_ai.services.question_generation import (
    FALLBACK_BEHAVIORAL_QUESTIONS,
    _resolve_selection,
    fallback_select_two,
    parse_behavioral_questions,
    split_processed_content,
)
from pitch_ai.services.technical_evaluator import load_question_bank


def _summaries():
    return [{"id": q["id"], "role": q["role"], "question": q["question"], "keywords": q["keywords"]}
            for q in load_question_bank()]


def test_split_processed_content_joins_other_info():
    parts = split_processed_content([
        {"type": "resume", "content": "R"},
        {"type": "jobDescription", "content": "J"},
        {"type": "otherInfo", "content": "one"},
        {"type": "otherInfo", "content": "two"},
    ])
    assert parts == {"resume": "R", "job_description": "J", "company_info": "", "other_info": "one\n\ntwo"}


def test_parse_behavioral_questions_skips_empty_entries():
    parsed = parse_behavioral_questions(
        '{"behavioral": [{"id": "a", "question": "Why us?"}, {"id": "b"}]}'
    )
    assert parsed == {"behavioral": [{"id": "a", "question": "Why us?", "category": "behavioral"}]}


def test_parse_behavioral_questions_fallback_is_a_copy():
    parsed = parse_behavioral_questions('{"behavioral": []}')
    parsed["behavioral"][0]["question"] = "changed"
    assert FALLBACK_BEHAVIORAL_QUESTIONS[0]["question"] != "changed"


def test_fallback_select_two_ranks_by_keyword_overlap():
    selected = fallback_select_two("We need Redis and a token bucket rate limiter", _summaries())
    assert len(selected) == 2
    assert selected[0]["id"] == 6


def test_fallback_select_two_prefers_software_roles_without_matches():
    selected = fallback_select_two("", _summaries())
    assert [q["id"] for q in selected] == [1, 2]


def test_resolve_selection_requires_two_distinct_known_ids():
    summaries = _summaries()
    assert [q["id"] for q in _resolve_selection({"selected": [{"id": "4"}, 7]}, summaries)] == [4, 7]
    assert _resolve_selection({"selected": [{"id": 4}, {"id": 4}]}, summaries) is None
    assert _resolve_selection({"selected": [{"id": 4}]}, summaries) is None
    assert _resolve_selection({"selected": [{"id": "x"}, {"id": 4}]}, summaries) is None
