# screener/services/orchestrator.py
"""
Per-document processing state machine.

    uploaded -> extracting -> processing -> completed
         \__________\______________\_____-> error

Every status change is a conditional update in the resume store, so a second
trigger for the same document either sees `processing` / `completed` and
returns, or loses the compare-and-set and returns. run() never raises: all
failures end in the `error` state with a short diagnostic.
"""

import asyncio
import logging
from typing import Callable, Optional, Sequence, Set

from screener.core.errors import (
    AnalysisError,
    ExtractionError,
    ExtractionUnsupportedError,
    QuotaExceededError,
    RetriesExhaustedError,
)
from screener.models.resume import (
    ACTIVE_OR_DONE,
    NON_TERMINAL,
    AnalysisResult,
    ProcessingStatus,
)
from screener.repositories.jobs import JobStore
from screener.repositories.resumes import ResumeStore
from screener.services.analysis_invoker import AnalysisInvoker
from screener.services.pii_scrubber import PiiScrubber
from screener.services.prompt_builder import build_analysis_prompt
from screener.services.text_extractor import TextExtractor, extract_text

logger = logging.getLogger(__name__)

PromptBuilder = Callable[[str, str, Sequence[str], Sequence[str]], str]

JOB_NOT_FOUND = "Associated job description not found."
EXTRACTION_FAILED = "Text extraction failed or file format unsupported."
NO_TEXT = "No text content found in file."
QUOTA_EXCEEDED = "AI service quota exceeded. Please try again later."
UNEXPECTED = "Unexpected processing error."
MAX_DIAGNOSTIC_LENGTH = 200

MIN_SCORE, MAX_SCORE = 0, 10


def coerce_score(value) -> int:
    """fitScore as an int in 0..10; anything unparseable becomes 0."""
    try:
        score = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return MIN_SCORE
    return max(MIN_SCORE, min(MAX_SCORE, score))


def diagnostic_for(exc: BaseException) -> str:
    """Short, user-facing error detail. Never includes model output or resume text."""
    if isinstance(exc, ExtractionUnsupportedError):
        msg = EXTRACTION_FAILED
    elif isinstance(exc, ExtractionError):
        msg = str(exc) or EXTRACTION_FAILED
    elif isinstance(exc, QuotaExceededError):
        msg = QUOTA_EXCEEDED
    elif isinstance(exc, RetriesExhaustedError):
        msg = str(exc)
    elif isinstance(exc, AnalysisError):
        msg = str(exc) or UNEXPECTED
    else:
        msg = UNEXPECTED
    return msg[:MAX_DIAGNOSTIC_LENGTH]


class AnalysisOrchestrator:
    def __init__(
        self,
        resumes: ResumeStore,
        jobs: JobStore,
        invoker: Optional[AnalysisInvoker] = None,
        scrubber: Optional[PiiScrubber] = None,
        extractor: TextExtractor = extract_text,
        prompt_builder: PromptBuilder = build_analysis_prompt,
    ):
        self.resumes = resumes
        self.jobs = jobs
        self.invoker = invoker or AnalysisInvoker()
        self.scrubber = scrubber or PiiScrubber()
        self.extractor = extractor
        self.prompt_builder = prompt_builder
        self._tasks: Set[asyncio.Task] = set()

    def schedule(self, resume_id: str, content: Optional[bytes] = None) -> asyncio.Task:
        """
        Fire-and-forget run(). The task is kept referenced until it finishes;
        callers observe the outcome through the stored status.
        """
        task = asyncio.get_running_loop().create_task(self.run(resume_id, content), name=f"analysis-{resume_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every scheduled run (used at shutdown)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def run(self, resume_id: str, content: Optional[bytes] = None) -> None:
        logger.info("Starting analysis for resume %s", resume_id, extra={"resume_id": resume_id})
        try:
            await self._run(resume_id, content)
        except Exception as exc:
            logger.exception("Error during analysis for resume %s", resume_id, extra={"resume_id": resume_id})
            await self._record_error(resume_id, diagnostic_for(exc))

    async def _record_error(self, resume_id: str, details: str) -> None:
        try:
            moved = await self.resumes.transition(
                resume_id, NON_TERMINAL, ProcessingStatus.ERROR,
                error_details=details, analysis=None, score=None,
            )
            if not moved:
                logger.warning("Resume %s left its active state before the error could be recorded", resume_id)
        except Exception:
            # best-effort on the failure path: log, do not retry
            logger.exception("Failed to update resume %s to error state", resume_id)

    async def _run(self, resume_id: str, content: Optional[bytes]) -> None:
        status = await self.resumes.get_status(resume_id)
        if status is None:
            logger.error("Resume not found for ID: %s", resume_id)
            return
        if status in ACTIVE_OR_DONE:
            logger.info("Resume %s is already %s. Skipping re-analysis.", resume_id, status.value)
            return

        doc = await self.resumes.get(resume_id)
        if doc is None:
            logger.error("Resume %s disappeared before analysis", resume_id)
            return

        job = await self.jobs.get(doc.job_id)
        if job is None:
            logger.error("JobDescription not found for jobId: %s (resume %s)", doc.job_id, resume_id)
            await self._record_error(resume_id, JOB_NOT_FOUND)
            return

        if content is not None and doc.extracted_text is None:
            if not await self.resumes.transition(
                resume_id, {ProcessingStatus.UPLOADED, ProcessingStatus.ERROR}, ProcessingStatus.EXTRACTING,
                error_details=None,
            ):
                logger.info("Resume %s was claimed by another run before extraction; skipping", resume_id)
                return
            text = await self.extractor(content, doc.file_type)
            claimed = await self.resumes.transition(
                resume_id, {ProcessingStatus.EXTRACTING}, ProcessingStatus.PROCESSING,
                extracted_text=text, error_details=None, analysis=None, score=None,
            )
        else:
            text = doc.extracted_text
            claimed = await self.resumes.transition(
                resume_id, {ProcessingStatus.UPLOADED, ProcessingStatus.ERROR}, ProcessingStatus.PROCESSING,
                error_details=None, analysis=None, score=None,
            )
        if not claimed:
            logger.info("Resume %s is already being analysed by another run; skipping", resume_id)
            return

        if not text or not text.strip():
            raise ExtractionError(NO_TEXT)

        prompt = self.prompt_builder(text, job.description_text, job.must_have_skills, job.focus_areas)
        result = await self.invoker.analyze(prompt)
        scrubbed = self.scrubber.scrub(result)
        await self._complete(resume_id, scrubbed)

    async def _complete(self, resume_id: str, result: AnalysisResult) -> None:
        score = coerce_score(result.fit_score)
        stored = await self.resumes.transition(
            resume_id, {ProcessingStatus.PROCESSING}, ProcessingStatus.COMPLETED,
            analysis=result, score=score, error_details=None,
        )
        if not stored:
            logger.warning("Resume %s left the processing state before completion was stored", resume_id)
            return
        logger.info(
            "Analysis completed successfully for resume %s (score=%s)",
            resume_id, score, extra={"resume_id": resume_id, "score": score},
        )
