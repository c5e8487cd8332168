import asyncio
import json

import httpx


def _ai(**overrides):
    from backend.hirez.config import AISettings

    values = {"api_key": "test-key", "base_url": "http://model.test/api/v1", "model": "test-model"}
    values.update(overrides)
    return AISettings(**values)


def _chat_transport(content: str, *, status_code: int = 200, seen: list | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(
            status_code,
            json={"model": "test-model", "choices": [{"message": {"role": "assistant", "content": content}}]},
        )

    return httpx.MockTransport(handler)


def _match(ai, transport):
    from backend.hirez.services.resume_matcher import match_resume

    return asyncio.run(
        match_resume(
            resume_text="Python, FastAPI, PostgreSQL. 5 years.",
            job_description="Backend engineer, Python and SQL.",
            ai=ai,
            transport=transport,
        )
    )


def test_parse_malformed_responses_yield_sentinel():
    from backend.hirez.schemas.match import ANALYSIS_FAILED
    from backend.hirez.services.resume_matcher import parse_match_response

    for raw in ("", "no json here", "{not json}", '{"match_score": 50, "strengths": 12}', "[1, 2, 3]"):
        result = parse_match_response(raw)
        assert result.match_score == 0
        assert result.strengths == [] and result.weaknesses == []
        assert result.reasoning == ANALYSIS_FAILED
        assert result.is_failed


def test_parse_fenced_json_and_missing_keys():
    from backend.hirez.services.resume_matcher import parse_match_response

    raw = "```json\n" + json.dumps({"match_score": 72, "strengths": ["SQL"], "reasoning": "Good"}) + "\n```"
    result = parse_match_response(raw)
    assert result.match_score == 72
    assert result.strengths == ["SQL"]
    assert result.weaknesses == []
    assert result.reasoning == "Good"
    assert not result.is_failed


def test_score_is_clamped():
    from backend.hirez.services.resume_matcher import parse_match_response

    assert parse_match_response('{"match_score": 150}').match_score == 100
    assert parse_match_response('{"match_score": -5}').match_score == 0
    assert parse_match_response('{"match_score": "88"}').match_score == 88


def test_unreachable_model_endpoint_yields_sentinel():
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    result = _match(_ai(), httpx.MockTransport(refuse))
    assert result.is_failed


def test_http_error_yields_sentinel():
    result = _match(_ai(), _chat_transport("rate limited", status_code=429))
    assert result.is_failed


def test_missing_key_yields_sentinel_without_calling_out():
    seen: list = []
    result = _match(_ai(api_key=""), _chat_transport("{}", seen=seen))
    assert result.is_failed
    assert seen == []


def test_successful_match_sends_chat_request():
    seen: list = []
    content = json.dumps(
        {
            "match_score": 81,
            "strengths": ["FastAPI", "PostgreSQL"],
            "weaknesses": ["No AWS"],
            "reasoning": "Strong backend fit.",
        }
    )
    result = _match(_ai(), _chat_transport(content, seen=seen))

    assert result.match_score == 81
    assert result.strengths == ["FastAPI", "PostgreSQL"]
    assert result.weaknesses == ["No AWS"]

    request = seen[0]
    assert str(request.url) == "http://model.test/api/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer test-key"
    body = json.loads(request.content)
    assert body["model"] == "test-model"
    assert "Backend engineer" in body["messages"][-1]["content"]


def test_legacy_matcher_reads_data_envelope():
    from backend.hirez.services.resume_matcher import match_resume_legacy

    def handler(request: httpx.Request) -> httpx.Response:
        messages = json.loads(request.content)
        assert isinstance(messages, list) and messages[0]["role"] == "system"
        return httpx.Response(200, json={"data": {"matchScore": 77, "strengths": ["Python"], "weaknesses": []}})

    result = asyncio.run(
        match_resume_legacy(
            resume_text="Python",
            job_description="Python dev",
            ai=_ai(legacy_match_url="http://legacy.test/generate"),
            transport=httpx.MockTransport(handler),
        )
    )
    assert result.match_score == 77
    assert result.strengths == ["Python"]
    assert result.reasoning == "No reasoning provided"


def test_legacy_matcher_timeout_yields_sentinel():
    from backend.hirez.services.resume_matcher import match_resume_legacy

    def slow(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    result = asyncio.run(
        match_resume_legacy(
            resume_text="Python",
            job_description="Python dev",
            ai=_ai(legacy_match_url="http://legacy.test/generate"),
            transport=httpx.MockTransport(slow),
        )
    )
    assert result.is_failed


def test_score_resume_dispatches_on_provider(monkeypatch):
    import backend.hirez.services.resume_matcher as matcher
    from backend.hirez.schemas.match import MatchResult

    calls = []

    async def fake_legacy(**kwargs):
        calls.append("legacy")
        return MatchResult(match_score=10)

    async def fake_openrouter(**kwargs):
        calls.append("openrouter")
        return MatchResult(match_score=20)

    monkeypatch.setattr(matcher, "match_resume_legacy", fake_legacy)
    monkeypatch.setattr(matcher, "match_resume", fake_openrouter)

    legacy = asyncio.run(matcher.score_resume(resume_text="r", job_description="j", ai=_ai(match_provider="legacy")))
    default = asyncio.run(matcher.score_resume(resume_text="r", job_description="j", ai=_ai()))
    assert (legacy.match_score, default.match_score) == (10, 20)
    assert calls == ["legacy", "openrouter"]
