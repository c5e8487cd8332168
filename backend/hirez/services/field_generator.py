import logging
import secrets
import string

from pydantic import ValidationError as SchemaError

from ..config import AISettings
from ..schemas.fields import FieldType, FormField, SuggestedField
from .ai_client import AIClientError, chat_completion
from .ai_common import extract_json_array, strip_code_fences
from .ai_prompts import (
    field_generation_system_prompt,
    field_generation_user_prompt,
    job_description_system_prompt,
    job_description_user_prompt,
)


logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits
EXPERIENCE_OPTIONS = ["0-1 years", "1-3 years", "3-5 years", "5+ years"]


def new_field_id(prefix: str = "ai") -> str:
    return f"{prefix}-" + "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))


def _ai_field(type_: FieldType, label: str, *, required: bool, options: list[str] | None = None) -> FormField:
    return FormField(
        id=new_field_id(),
        type=type_,
        label=label,
        required=required,
        options=options,
        is_ai_generated=True,
    )


def fallback_fields(hiring_domain: str | None) -> list[FormField]:
    """Static field set used whenever AI suggestion is unavailable."""
    domain = (hiring_domain or "").strip().lower()
    if domain == "tech":
        return [
            _ai_field(FieldType.textarea, "Technical Skills", required=True),
            _ai_field(FieldType.textarea, "Relevant Projects", required=False),
        ]
    if domain == "sales":
        return [
            _ai_field(FieldType.textarea, "Sales Experience", required=True),
            _ai_field(FieldType.textarea, "Past Sales Achievements", required=False),
        ]
    return [
        _ai_field(FieldType.textarea, "Relevant Experience", required=True),
        _ai_field(FieldType.select, "Years of Experience", required=True, options=list(EXPERIENCE_OPTIONS)),
    ]


def parse_suggested_fields(raw_text: str) -> list[FormField]:
    """
    Parse the model's JSON array into form fields with fresh ids.
    Raises ValueError (or pydantic's ValidationError) when the shape is wrong.
    """
    items = extract_json_array(raw_text)
    if not items:
        raise ValueError("AI returned no fields")

    fields: list[FormField] = []
    for item in items:
        suggested = SuggestedField.model_validate(item)
        fields.append(
            _ai_field(
                suggested.type,
                suggested.label.strip(),
                required=suggested.required,
                options=suggested.options if suggested.type == FieldType.select else None,
            )
        )
    return fields


async def suggest_fields(
    *,
    job_description: str,
    hiring_domain: str | None,
    ai: AISettings,
) -> list[FormField]:
    """
    Suggest extra application-form fields for a job description.

    Never raises: any failure (AI disabled, network, non-JSON, bad field shape) yields
    `fallback_fields(hiring_domain)`, so callers always get a non-empty list.
    """
    domain = (hiring_domain or "").strip() or "non-tech"
    if not ai.enabled:
        logger.warning("AI disabled (OPENROUTER_API_KEY not configured); using fallback fields for %s", domain)
        return fallback_fields(domain)

    try:
        raw_text, _meta = await chat_completion(
            api_key=ai.api_key,
            base_url=ai.base_url,
            model=ai.model,
            user_text=field_generation_user_prompt(job_description=job_description, hiring_domain=domain),
            system_text=field_generation_system_prompt(hiring_domain=domain),
            timeout_s=ai.timeout_s,
            log_payloads=ai.log_payloads,
        )
        fields = parse_suggested_fields(raw_text)
        logger.info("Generated %s form fields for domain=%s", len(fields), domain)
        return fields
    except (ValueError, SchemaError) as e:
        logger.warning("AI field suggestion unusable (%s); using fallback fields", type(e).__name__)
    except AIClientError as e:
        logger.warning("AI field suggestion failed: %s", e)
    except Exception as e:
        logger.exception("AI field suggestion unexpected error: %s", e)
    return fallback_fields(domain)


async def format_job_description(*, raw_text: str, ai: AISettings) -> str:
    """
    Rewrite raw job-description text as structured HTML.

    Without an API key the raw text is returned unchanged. Model failures propagate
    as `AIClientError` (an UpstreamError).
    """
    if not ai.enabled:
        logger.warning("AI disabled; returning job description unchanged")
        return raw_text

    text, _meta = await chat_completion(
        api_key=ai.api_key,
        base_url=ai.base_url,
        model=ai.model,
        user_text=job_description_user_prompt(raw_text=raw_text),
        system_text=job_description_system_prompt(),
        timeout_s=ai.timeout_s,
        log_payloads=ai.log_payloads,
    )
    return strip_code_fences(text) or raw_text
