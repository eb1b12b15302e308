# screener/core/errors.py
from typing import Optional


class ScreeningError(Exception):
    """Base class for failures raised by the screening pipeline."""


class JobNotFoundError(ScreeningError):
    pass


class ExtractionError(ScreeningError):
    """Text could not be extracted, or the extracted text was empty."""


class ExtractionUnsupportedError(ExtractionError):
    pass


class LLMQuotaError(ScreeningError):
    """Raised by LLM adapters when the service reports quota / rate limit exhaustion."""


class ResponseParseError(ScreeningError):
    """The model reply did not contain a structurally valid analysis object."""


class AnalysisError(ScreeningError):
    pass


class QuotaExceededError(AnalysisError):
    def __init__(self, message: str = "AI service quota exceeded. Please try again later."):
        super().__init__(message)


class RetriesExhaustedError(AnalysisError):
    def __init__(self, attempts: int, last_failure: Optional[str] = None):
        self.attempts = attempts
        self.last_failure = last_failure
        msg = f"AI analysis failed after {attempts} attempts"
        if last_failure:
            msg = f"{msg} (last failure: {last_failure})"
        super().__init__(msg)
