# screener/services/llm_adapter.py
"""
Pluggable LLM adapter loader and facade.

Environment:
- LLM_ADAPTER: "mock" (default), "http", "gemini", or a dotted module path

Adapter modules expose:
- async def generate(prompt: str, config: GenerationConfig) -> str
  raising LLMQuotaError when the service reports quota exhaustion.

Adapter failures propagate to the caller; there is no fallback to the mock adapter.
"""

import importlib
import logging
from typing import Optional

from screener.core.config import settings
from screener.services.llm_adapters.base import GenerationConfig, LLMAdapter

logger = logging.getLogger(__name__)

BUILTIN_ADAPTERS = {
    "mock": "screener.services.llm_adapters.mock_adapter",
    "http": "screener.services.llm_adapters.http_adapter",
    "gemini": "screener.services.llm_adapters.gemini_adapter",
}

_adapter: Optional[LLMAdapter] = None


def load_adapter(name: str) -> LLMAdapter:
    mod = importlib.import_module(BUILTIN_ADAPTERS.get(name, name))
    # adapter module must implement async generate
    if not hasattr(mod, "generate"):
        raise RuntimeError(f"Adapter {name} does not expose generate()")
    return mod


def get_adapter() -> LLMAdapter:
    global _adapter
    if _adapter is None:
        _adapter = load_adapter(settings.LLM_ADAPTER)
        logger.info("LLM adapter loaded: %s", settings.LLM_ADAPTER)
    return _adapter


def reset_adapter() -> None:
    """Forget the cached adapter so the next call re-reads LLM_ADAPTER."""
    global _adapter
    _adapter = None


def default_generation_config() -> GenerationConfig:
    return GenerationConfig(
        max_output_tokens=settings.LLM_MAX_OUTPUT_TOKENS,
        temperature=settings.LLM_TEMPERATURE,
    )


async def generate(prompt: str, config: Optional[GenerationConfig] = None) -> str:
    """
    Unified entry to call the configured adapter.
    """
    adapter = get_adapter()
    return await adapter.generate(prompt, config or default_generation_config())
