# screener/services/analysis_invoker.py
"""
Calls the external model and turns its reply into an AnalysisResult.

Each attempt yields either an AnalysisResult or an InvocationFailure tagged
with its kind; the retry loop decides on the kind alone:

  quota      -> QuotaExceededError immediately, never retried
  transient  -> retried with increasing backoff
  parse      -> retried like transient (a re-prompt may comply)

After max_attempts the last failure is raised as RetriesExhaustedError.
The invoker accepts or rejects replies structurally; it never edits them.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Union

import httpx
from pydantic import ValidationError

from screener.core.config import settings
from screener.core.errors import (
    LLMQuotaError,
    QuotaExceededError,
    ResponseParseError,
    RetriesExhaustedError,
)
from screener.models.resume import AnalysisResult
from screener.services import llm_adapter
from screener.services.llm_adapters.base import GenerationConfig

logger = logging.getLogger(__name__)

Generate = Callable[[str, GenerationConfig], Awaitable[str]]
Sleep = Callable[[float], Awaitable[None]]

FENCE = "```"
JSON_FENCE = "```json"


class FailureKind(str, Enum):
    PARSE = "parse"
    QUOTA = "quota"
    TRANSIENT = "transient"


@dataclass(frozen=True)
class InvocationFailure:
    kind: FailureKind
    message: str


AttemptOutcome = Union[AnalysisResult, InvocationFailure]


def sanitize_reply(raw: str) -> str:
    """
    Strip code fences and surrounding prose, returning the span from the first
    '{' to the last '}'. Raises ResponseParseError when there is no such span.
    """
    text = (raw or "").strip()
    if text.startswith(JSON_FENCE):
        text = text[len(JSON_FENCE):]
    elif text.startswith(FENCE):
        text = text[len(FENCE):]
    if text.endswith(FENCE):
        text = text[: -len(FENCE)]
    text = text.strip()

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise ResponseParseError("Model reply does not contain a JSON object.")
    return text[start : end + 1]


def parse_reply(raw: str) -> AnalysisResult:
    candidate = sanitize_reply(raw)
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise ResponseParseError(f"Model reply is not valid JSON: {exc.msg} at position {exc.pos}") from exc

    if not isinstance(data, dict):
        raise ResponseParseError("Model reply JSON is not an object.")
    if data.get("fitScore") is None:
        raise ResponseParseError("fitScore is missing in model reply.")

    try:
        return AnalysisResult.model_validate(data)
    except ValidationError as exc:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        raise ResponseParseError(f"Model reply has invalid fields: {fields}") from exc


def _is_quota_signal(exc: BaseException) -> bool:
    if isinstance(exc, LLMQuotaError):
        return True
    return isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code == 429


class AnalysisInvoker:
    def __init__(
        self,
        generate: Optional[Generate] = None,
        *,
        max_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
        timeout: Optional[float] = None,
        config: Optional[GenerationConfig] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self._generate = generate or llm_adapter.generate
        self.max_attempts = max(1, max_attempts if max_attempts is not None else settings.LLM_MAX_ATTEMPTS)
        self.retry_delay = settings.LLM_RETRY_DELAY_SEC if retry_delay is None else retry_delay
        self.timeout = settings.LLM_TIMEOUT_SEC if timeout is None else timeout
        self.config = config or llm_adapter.default_generation_config()
        self._sleep = sleep

    async def attempt(self, prompt: str) -> AttemptOutcome:
        try:
            raw = await asyncio.wait_for(self._generate(prompt, self.config), timeout=self.timeout)
        except asyncio.TimeoutError:
            return InvocationFailure(FailureKind.TRANSIENT, f"no reply within {self.timeout:g}s")
        except Exception as exc:
            if _is_quota_signal(exc):
                return InvocationFailure(FailureKind.QUOTA, str(exc))
            return InvocationFailure(FailureKind.TRANSIENT, f"{type(exc).__name__}: {exc}")

        try:
            return parse_reply(raw)
        except ResponseParseError as exc:
            return InvocationFailure(FailureKind.PARSE, str(exc))

    async def analyze(self, prompt: str) -> AnalysisResult:
        logger.info("Sending prompt to LLM (prompt_length=%s)", len(prompt))
        last: Optional[InvocationFailure] = None

        for attempt in range(1, self.max_attempts + 1):
            outcome = await self.attempt(prompt)
            if isinstance(outcome, AnalysisResult):
                if attempt > 1:
                    logger.info("LLM analysis succeeded on attempt %s", attempt)
                return outcome

            last = outcome
            if outcome.kind is FailureKind.QUOTA:
                logger.error("LLM quota exceeded on attempt %s; not retrying", attempt)
                raise QuotaExceededError()

            logger.warning(
                "LLM attempt %s/%s failed (%s): %s",
                attempt, self.max_attempts, outcome.kind.value, outcome.message,
            )
            if attempt < self.max_attempts:
                await self._sleep(self.retry_delay * attempt)

        raise RetriesExhaustedError(self.max_attempts, last.kind.value if last else None)
