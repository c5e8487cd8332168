import json
import logging
from typing import Any

import httpx

from ..config import AISettings
from ..schemas.match import MatchResult
from .ai_client import AIClientError, chat_completion
from .ai_common import extract_first_json_object
from .ai_prompts import legacy_match_messages, resume_match_system_prompt, resume_match_user_prompt


logger = logging.getLogger(__name__)


def parse_match_response(raw_text: str) -> MatchResult:
    """
    Turn a model answer into a MatchResult.

    Missing keys default to zero/empty. Anything unparseable yields the failed sentinel.
    """
    try:
        obj = extract_first_json_object(raw_text)
        return MatchResult.model_validate(
            {
                "match_score": obj.get("match_score"),
                "strengths": obj.get("strengths"),
                "weaknesses": obj.get("weaknesses"),
                "reasoning": obj.get("reasoning"),
            }
        )
    except ValueError as e:
        # json.JSONDecodeError and pydantic's ValidationError are both ValueErrors.
        logger.warning("AI match response parse failed: %s", type(e).__name__)
        return MatchResult.failed()


async def match_resume(
    *,
    resume_text: str,
    job_description: str,
    ai: AISettings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> MatchResult:
    """
    Score a resume against a job description with the hosted model.

    Never raises; on any failure the result is `MatchResult.failed()`.
    """
    if not ai.enabled:
        logger.warning("AI match skipped: OPENROUTER_API_KEY not configured")
        return MatchResult.failed()

    try:
        raw_text, meta = await chat_completion(
            api_key=ai.api_key,
            base_url=ai.base_url,
            model=ai.model,
            user_text=resume_match_user_prompt(resume_text=resume_text, job_description=job_description),
            system_text=resume_match_system_prompt(),
            timeout_s=ai.timeout_s,
            log_payloads=ai.log_payloads,
            transport=transport,
        )
    except AIClientError as e:
        logger.warning("AI match failed: %s", e)
        return MatchResult.failed()
    except Exception as e:
        logger.exception("AI match unexpected error: %s", e)
        return MatchResult.failed()

    result = parse_match_response(raw_text)
    logger.info("AI match model=%s score=%s latency_ms=%s", meta.model, result.match_score, meta.latency_ms)
    return result


def _legacy_result(payload: Any) -> MatchResult:
    data = (payload or {}).get("data") if isinstance(payload, dict) else None
    if not isinstance(data, dict):
        data = {}
    return MatchResult.model_validate(
        {
            "match_score": data.get("matchScore") or 0,
            "strengths": data.get("strengths") or [],
            "weaknesses": data.get("weaknesses") or [],
            "reasoning": data.get("reasoning") or "No reasoning provided",
        }
    )


async def match_resume_legacy(
    *,
    resume_text: str,
    job_description: str,
    ai: AISettings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> MatchResult:
    """
    Score through the legacy prompt gateway: posts a chat-message array and reads
    `data.matchScore/strengths/weaknesses/reasoning`. Hard 20s timeout; never raises.
    """
    if not ai.legacy_match_url:
        logger.warning("Legacy match skipped: LEGACY_MATCH_URL not configured")
        return MatchResult.failed()

    messages = legacy_match_messages(resume_text=resume_text, job_description=job_description)
    if ai.log_payloads:
        logger.info("Legacy match request url=%s body=%s", ai.legacy_match_url, json.dumps(messages)[:800])

    try:
        async with httpx.AsyncClient(timeout=ai.legacy_timeout_s, transport=transport) as client:
            r = await client.post(ai.legacy_match_url, json=messages)
        if r.status_code >= 400:
            logger.warning("Legacy match failed with status %s", r.status_code)
            return MatchResult.failed()
        return _legacy_result(r.json())
    except httpx.TimeoutException:
        logger.warning("Legacy match timed out after %.0fs", ai.legacy_timeout_s)
        return MatchResult.failed()
    except (httpx.RequestError, ValueError) as e:
        logger.warning("Legacy match failed: %s", type(e).__name__)
        return MatchResult.failed()
    except Exception as e:
        logger.exception("Legacy match unexpected error: %s", e)
        return MatchResult.failed()


async def score_resume(
    *,
    resume_text: str,
    job_description: str,
    ai: AISettings,
) -> MatchResult:
    """Dispatch to the configured matcher (MATCH_PROVIDER)."""
    if ai.match_provider == "legacy":
        return await match_resume_legacy(resume_text=resume_text, job_description=job_description, ai=ai)
    return await match_resume(resume_text=resume_text, job_description=job_description, ai=ai)
