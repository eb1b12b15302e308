# screener/services/ingest.py
"""
Bulk resume upload: validate each file, persist the accepted ones in state
`uploaded`, and hand them to the orchestrator without waiting for analysis.

One bad file never rejects the rest of the batch; every rejection carries a
human-readable reason.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from screener.core.errors import JobNotFoundError
from screener.models.resume import ProcessingStatus, ResumeDocument
from screener.repositories.jobs import JobStore
from screener.repositories.resumes import ResumeStore
from screener.services.file_validator import validate_resume_file
from screener.services.orchestrator import AnalysisOrchestrator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IncomingFile:
    filename: str
    media_type: Optional[str]
    content: bytes
    size: Optional[int] = None


@dataclass
class IngestResult:
    accepted: List[Dict[str, str]] = field(default_factory=list)
    rejected: List[Dict[str, str]] = field(default_factory=list)


async def ingest_uploads(
    files: Sequence[IncomingFile],
    job_id: str,
    user_id: str,
    resumes: ResumeStore,
    jobs: JobStore,
    orchestrator: AnalysisOrchestrator,
) -> IngestResult:
    job = await jobs.get(job_id)
    if job is None or job.user_id != user_id:
        raise JobNotFoundError("Job description not found or you are not authorized for this job.")

    result = IngestResult()
    for f in files:
        verdict = validate_resume_file(f.content, f.filename, f.media_type, f.size)
        if not verdict.is_valid:
            result.rejected.append({"filename": f.filename, "error": verdict.error})
            log = logger.error if verdict.check == "content" else logger.warning
            log(
                "File validation failed for %s: %s", f.filename, verdict.error,
                extra={"filename": f.filename, "check": verdict.check, "user_id": user_id},
            )
            continue

        doc = ResumeDocument(
            id=uuid.uuid4().hex,
            user_id=user_id,
            job_id=job_id,
            original_filename=f.filename,
            file_type=(f.media_type or "").split(";")[0].strip().lower(),
            processing_status=ProcessingStatus.UPLOADED,
        )
        resume_id = await resumes.create(doc)
        orchestrator.schedule(resume_id, f.content)
        result.accepted.append({"resumeId": resume_id, "filename": f.filename})
        logger.info("Resume %s queued for analysis", resume_id, extra={"resume_id": resume_id, "job_id": job_id})

    return result
