# screener/services/llm_adapters/gemini_adapter.py
"""
Adapter for the Google Generative Language REST API (Gemini models).

Env configuration:
- LLM_API_KEY: required, sent as x-goog-api-key
- LLM_MODEL: model name (default gemini-2.0-flash)
- LLM_API_BASE: API root
- LLM_TIMEOUT_SEC: request timeout
"""

import logging
from typing import Any, Dict, Optional

import httpx

from screener.core.config import settings
from screener.core.errors import LLMQuotaError
from screener.services.llm_adapters.base import GenerationConfig, raise_for_llm_status

logger = logging.getLogger(__name__)


def _endpoint() -> str:
    base = settings.LLM_API_BASE.rstrip("/")
    return f"{base}/models/{settings.LLM_MODEL}:generateContent"


def _request_body(prompt: str, config: GenerationConfig) -> Dict[str, Any]:
    return {
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        "generationConfig": {
            "maxOutputTokens": config.max_output_tokens,
            "temperature": config.temperature,
        },
    }


def _candidate_text(body: Dict[str, Any]) -> str:
    candidates = body.get("candidates") or []
    if not candidates:
        feedback = body.get("promptFeedback") or {}
        raise ValueError(f"Gemini returned no candidates (blockReason={feedback.get('blockReason')})")
    parts = (candidates[0].get("content") or {}).get("parts") or []
    text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
    if not text:
        raise ValueError(f"Gemini candidate has no text (finishReason={candidates[0].get('finishReason')})")
    return text


def _is_resource_exhausted(resp: httpx.Response) -> bool:
    # quota errors sometimes arrive with a non-429 status but RESOURCE_EXHAUSTED in the body
    try:
        err = resp.json().get("error") or {}
    except ValueError:
        return False
    return err.get("status") == "RESOURCE_EXHAUSTED"


async def generate(prompt: str, config: GenerationConfig, client: Optional[httpx.AsyncClient] = None) -> str:
    if not settings.LLM_API_KEY:
        raise RuntimeError("LLM_API_KEY is not configured for the gemini adapter")

    headers = {"Content-Type": "application/json", "x-goog-api-key": settings.LLM_API_KEY}
    body = _request_body(prompt, config)
    if client is not None:
        resp = await client.post(_endpoint(), json=body, headers=headers)
    else:
        async with httpx.AsyncClient(timeout=settings.LLM_TIMEOUT_SEC) as own_client:
            resp = await own_client.post(_endpoint(), json=body, headers=headers)

    if resp.is_error and _is_resource_exhausted(resp):
        raise LLMQuotaError("Gemini quota exhausted (RESOURCE_EXHAUSTED)")
    raise_for_llm_status(resp)

    payload = resp.json()
    usage = payload.get("usageMetadata") or {}
    logger.debug(
        "Gemini reply received (prompt_tokens=%s, output_tokens=%s)",
        usage.get("promptTokenCount"),
        usage.get("candidatesTokenCount"),
    )
    return _candidate_text(payload)
