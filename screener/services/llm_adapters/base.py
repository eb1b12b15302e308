# screener/services/llm_adapters/base.py
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import httpx

from screener.core.errors import LLMQuotaError


@dataclass(frozen=True)
class GenerationConfig:
    max_output_tokens: int = 2048
    temperature: float = 0.3


@runtime_checkable
class LLMAdapter(Protocol):
    async def generate(self, prompt: str, config: GenerationConfig) -> str: ...


def raise_for_llm_status(resp: httpx.Response) -> None:
    """
    raise_for_status() that turns 429 into LLMQuotaError so callers never
    have to look inside error messages to detect quota exhaustion.
    """
    if resp.status_code == 429:
        raise LLMQuotaError("LLM service quota exceeded (HTTP 429)")
    resp.raise_for_status()
