"""Job brief and tech answer lookups over a stubbed Tavily client."""

from unittest.mock import Mock

import pytest

from pitch_ai import config
from pitch_ai.exceptions import ExternalServiceError
from pitch_ai.services import tavily
from pitch_ai.services.job_brief import build_query, company_slug, pick_best_posting, summarize
from pitch_ai.services.tech_answer import has_code, pick_best, split_explanation_and_code

POSTING = (
    "Backend Engineer\n"
    "Acme Corp\n"
    "\n"
    "Responsibilities: Build payment APIs for merchants. Keep services reliable.\n"
    "Qualifications: 3+ years of Python experience.\n"
    "Remote friendly\n"
    "Apply now"
)


@pytest.fixture
def tavily_key(monkeypatch):
    monkeypatch.setattr(config, "TAVILY_API_KEY", "tvly-key")


def test_company_slug_and_query():
    assert company_slug("Acme Corp.") == "acmecorp"
    query = build_query("Acme Corp", "Backend Engineer")
    assert query.startswith('Acme Corp "Backend Engineer"')
    assert "site:careers.acmecorp.com" in query


def test_pick_best_posting_prefers_matching_ats_result():
    results = [
        {"url": "https://blog.example.com/acme", "title": "Acme news", "score": 0.99},
        {"url": "https://boards.greenhouse.io/acme/jobs/1", "title": "Designer", "score": 0.5},
        {"url": "https://boards.greenhouse.io/acme/jobs/backend-engineer", "title": "Open role", "score": 0.4},
    ]
    assert pick_best_posting(results, "Acme", "Backend Engineer")["url"].endswith("backend-engineer")


def test_pick_best_posting_falls_back_to_careers_page_then_score():
    careers = {"url": "https://acme.com/careers/123", "title": "Role", "score": 0.1}
    other = {"url": "https://news.example.com", "title": "News", "score": 0.9}
    assert pick_best_posting([other, careers], "Acme", "Backend Engineer") is careers
    assert pick_best_posting([{"url": "https://a.example", "score": 0.2}, other], "Acme", "x") is other
    assert pick_best_posting([], "Acme", "x") is None


def test_summarize_uses_first_non_empty_lines():
    assert summarize(POSTING, max_lines=3) == "Backend Engineer Acme Corp Responsibilities: Build payment APIs for merchants. Keep services reliable."


def test_post_json_raises_on_http_error(monkeypatch):
    monkeypatch.setattr(tavily.requests, "post", Mock(return_value=Mock(ok=False, status_code=432)))
    with pytest.raises(ExternalServiceError, match="432"):
        tavily.post_json("https://api.tavily.example/search", {})


def test_extract_reads_results_raw_content(monkeypatch):
    response = Mock(ok=True)
    response.json.return_value = {"results": [{"url": "u", "raw_content": "full page"}]}
    post = Mock(return_value=response)
    monkeypatch.setattr(tavily.requests, "post", post)

    assert tavily.extract("https://acme.com/careers/1") == "full page"
    assert post.call_args.kwargs["json"]["urls"] == ["https://acme.com/careers/1"]


def test_job_brief_requires_key(client):
    resp = client.post("/api/job-brief", json={"company": "Acme", "title": "Backend Engineer"})
    assert resp.status_code == 500
    assert resp.json()["detail"] == "TAVILY_API_KEY missing"


def test_job_brief_requires_fields(client, tavily_key):
    resp = client.post("/api/job-brief", json={"company": "Acme"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "company and title required"


def test_job_brief(client, tavily_key, monkeypatch):
    results = [
        {"url": "https://jobs.lever.co/acme/backend-engineer", "title": "Backend Engineer - Acme", "content": POSTING},
        {"url": "https://acme.com/about", "title": "About Acme", "content": "About"},
    ]
    monkeypatch.setattr(tavily, "search", lambda query, max_results=8, include_answer=False: (None, results))

    resp = client.post("/api/job-brief", json={"company": "Acme", "title": "Backend Engineer"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["postingUrl"] == "https://jobs.lever.co/acme/backend-engineer"
    assert body["summary"].startswith("Backend Engineer Acme Corp")
    assert body["sections"]["responsibilities"] == ["Build payment APIs for merchants.", "Keep services reliable."]
    assert body["sections"]["qualifications"] == ["3+ years of Python experience.", "Remote friendly", "Apply now"]
    assert body["raw"] == POSTING
    assert body["sources"][1] == {"title": "About Acme", "url": "https://acme.com/about"}


def test_job_brief_extracts_when_search_content_is_empty(client, tavily_key, monkeypatch):
    results = [{"url": "https://acme.com/careers/9", "title": "Role", "content": ""}]
    monkeypatch.setattr(tavily, "search", lambda query, max_results=8, include_answer=False: (None, results))
    monkeypatch.setattr(tavily, "extract", lambda url: "Extracted posting text")

    body = client.post("/api/job-brief", json={"company": "Acme", "title": "Engineer"}).json()
    assert body["summary"] == "Extracted posting text"


def test_job_brief_not_found(client, tavily_key, monkeypatch):
    monkeypatch.setattr(tavily, "search", lambda query, max_results=8, include_answer=False: (None, []))
    body = client.post("/api/job-brief", json={"company": "Acme", "title": "Engineer"}).json()
    assert body == {"notFound": True, "sources": []}


def test_job_brief_search_failure(client, tavily_key, monkeypatch):
    def fail(query, max_results=8, include_answer=False):
        raise ExternalServiceError("https://api.tavily.com/search 500", status_code=500)

    monkeypatch.setattr(tavily, "search", fail)
    resp = client.post("/api/job-brief", json={"company": "Acme", "title": "Engineer"})
    assert resp.status_code == 500
    assert resp.json()["detail"] == "https://api.tavily.com/search 500"


CODE_ANSWER = (
    "Use two pointers. Move left and right. Stop when they meet. Extra sentence here.\n"
    "> Input: [1,2]\n"
    "```python\ndef f():\n    return 1\n```\n"
    "More text after."
)


def test_split_explanation_and_code():
    explanation, code = split_explanation_and_code(CODE_ANSWER)
    assert explanation == "Use two pointers. Move left and right. Stop when they meet."
    assert code == "```python\ndef f():\n    return 1\n```"


def test_split_without_code():
    assert split_explanation_and_code("Just prose") == ("Just prose.", None)


def test_pick_best_prefers_trusted_source_with_code():
    plain = {"url": "https://stackoverflow.com/q/1", "content": "no code here"}
    with_code = {"url": "https://leetcode.com/problems/two-sum", "content": CODE_ANSWER}
    untrusted = {"url": "https://random.example", "content": CODE_ANSWER, "score": 1}
    assert has_code(CODE_ANSWER)
    assert pick_best([untrusted, plain, with_code]) is with_code
    assert pick_best([untrusted, plain]) is plain


def test_tech_answer_requires_question(client, tavily_key):
    resp = client.post("/api/tech-answer", json={"question": "   "})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "question required"


def test_tech_answer(client, tavily_key, monkeypatch):
    results = [{"url": "https://leetcode.com/problems/two-sum", "title": "Two Sum", "content": CODE_ANSWER}]
    monkeypatch.setattr(tavily, "search", lambda query, max_results=8, include_answer=False: ("", results))

    body = client.post("/api/tech-answer", json={"question": " Two sum "}).json()

    assert body["question"] == "Two sum"
    assert body["answer"]["explanation"] == "Use two pointers. Move left and right. Stop when they meet."
    assert body["answer"]["code"].startswith("```python")
    assert body["sourceUrl"] == "https://leetcode.com/problems/two-sum"


def test_tech_answer_prefers_search_answer(client, tavily_key, monkeypatch):
    results = [{"url": "https://leetcode.com/problems/two-sum", "title": "Two Sum", "content": CODE_ANSWER}]
    monkeypatch.setattr(
        tavily, "search", lambda query, max_results=8, include_answer=False: ("Use a hash map.", results)
    )
    body = client.post("/api/tech-answer", json={"question": "Two sum"}).json()
    assert body["answer"]["explanation"] == "Use a hash map."
