# screener/services/llm_adapters/http_adapter.py
"""
Async HTTP adapter to call a generic LLM HTTP endpoint.

Request:  {"prompt": "...", "generationConfig": {"maxOutputTokens": N, "temperature": T}}
Response: {"text": "..."} (a bare JSON string is accepted too)

Env configuration:
- LLM_HTTP_URL: required for this adapter
- LLM_API_KEY: optional, sent as Authorization: Bearer <key>
- LLM_TIMEOUT_SEC: request timeout

One request per call; retries belong to the analysis invoker.
"""

from typing import Any, Dict, Optional

import httpx

from screener.core.config import settings
from screener.services.llm_adapters.base import GenerationConfig, raise_for_llm_status


def _headers() -> Dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if settings.LLM_API_KEY:
        headers["Authorization"] = f"Bearer {settings.LLM_API_KEY}"
    return headers


def _reply_text(body: Any) -> str:
    if isinstance(body, str):
        return body
    if isinstance(body, dict) and isinstance(body.get("text"), str):
        return body["text"]
    raise ValueError("LLM HTTP endpoint returned no 'text' field")


async def generate(prompt: str, config: GenerationConfig, client: Optional[httpx.AsyncClient] = None) -> str:
    url = settings.LLM_HTTP_URL
    if not url:
        raise RuntimeError("LLM_HTTP_URL is not configured")

    body = {
        "prompt": prompt,
        "generationConfig": {
            "maxOutputTokens": config.max_output_tokens,
            "temperature": config.temperature,
        },
    }
    if client is not None:
        resp = await client.post(str(url), json=body, headers=_headers())
    else:
        async with httpx.AsyncClient(timeout=settings.LLM_TIMEOUT_SEC) as own_client:
            resp = await own_client.post(str(url), json=body, headers=_headers())
    raise_for_llm_status(resp)
    return _reply_text(resp.json())
