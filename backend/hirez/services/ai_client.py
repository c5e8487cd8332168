import json
import logging
import time
from dataclasses import dataclass
from typing import Any

import httpx

from ..utils.error_handlers import UpstreamError


logger = logging.getLogger(__name__)


class AIClientError(UpstreamError):
    pass


class AIClientTimeout(AIClientError):
    pass


class AIClientHTTPError(AIClientError):
    def __init__(self, *, status_code: int, message: str):
        super().__init__(message)
        self.upstream_status = status_code


@dataclass(frozen=True)
class ChatMeta:
    model: str
    latency_ms: int
    status_code: int | None


def _safe_truncate(s: str, n: int = 800) -> str:
    s = s or ""
    if len(s) <= n:
        return s
    return s[:n] + "…"


async def chat_completion(
    *,
    api_key: str,
    base_url: str,
    model: str,
    user_text: str,
    system_text: str | None = None,
    temperature: float | None = None,
    timeout_s: float | None = None,
    log_payloads: bool = False,
    transport: httpx.AsyncBaseTransport | None = None,
) -> tuple[str, ChatMeta]:
    """
    Calls an OpenAI-compatible chat completions endpoint (OpenRouter by default) and
    returns the assistant message text.

    Endpoint:
      POST {base_url}/chat/completions
    Auth:
      Authorization: Bearer {api_key}

    Exactly one attempt is made. `timeout_s=None` disables the client timeout.
    """
    if not api_key:
        raise AIClientError("Missing OPENROUTER_API_KEY")
    if not model:
        raise AIClientError("Missing OPENROUTER_MODEL")
    url = f"{(base_url or '').rstrip('/')}/chat/completions"

    messages: list[dict[str, str]] = []
    if system_text:
        messages.append({"role": "system", "content": system_text})
    messages.append({"role": "user", "content": user_text or ""})

    body: dict[str, Any] = {"model": model, "messages": messages}
    if temperature is not None:
        body["temperature"] = float(temperature)

    headers = {
        "Authorization": f"Bearer {api_key}",
        "content-type": "application/json",
    }

    if log_payloads:
        logger.info(
            "Chat request model=%s url=%s body=%s",
            model,
            url,
            _safe_truncate(json.dumps(body, ensure_ascii=False)),
        )

    start = time.perf_counter()
    try:
        async with httpx.AsyncClient(timeout=timeout_s, transport=transport) as client:
            r = await client.post(url, json=body, headers=headers)
    except httpx.TimeoutException:
        raise AIClientTimeout("Model request timed out") from None
    except httpx.RequestError as e:
        raise AIClientError(f"Model request failed: {type(e).__name__}") from e

    if r.status_code >= 400:
        raise AIClientHTTPError(status_code=r.status_code, message=_safe_truncate(r.text, 1000))

    try:
        data = r.json()
    except ValueError as e:
        raise AIClientError("Model response was not JSON") from e
    if not isinstance(data, dict):
        raise AIClientError("Model response has an unexpected shape")

    # Typical shape:
    # { choices: [ { message: { role: "assistant", content: "..." } } ], ... }
    choices = data.get("choices") or [{}]
    text = ((choices[0] or {}).get("message") or {}).get("content") or ""
    meta = ChatMeta(
        model=str(data.get("model") or model),
        latency_ms=int((time.perf_counter() - start) * 1000),
        status_code=r.status_code,
    )
    logger.info(
        "Chat ok model=%s status=%s latency_ms=%s",
        meta.model,
        meta.status_code,
        meta.latency_ms,
    )
    return str(text).strip(), meta
