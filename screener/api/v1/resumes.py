# screener/api/v1/resumes.py
import logging
import math
from typing import List

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.responses import Response

from screener.api.deps import get_current_user_id, get_job_repository, get_orchestrator, get_resume_repository
from screener.core.config import settings
from screener.core.errors import JobNotFoundError
from screener.models.resume import ProcessingStatus
from screener.services.ingest import IncomingFile, ingest_uploads
from screener.services.ranking import compute_recruiter_stats, export_candidates_csv, rank_candidates

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/resumes", tags=["resumes"])


async def _owned_job(job_id: str, user_id: str, jobs):
    job = await jobs.get(job_id)
    if job is None or job.user_id != user_id:
        raise HTTPException(status_code=404, detail="Job description not found or you are not authorized for this job.")
    return job


@router.post("/upload", status_code=status.HTTP_201_CREATED)
async def upload_resumes(
    files: List[UploadFile] = File(...),
    job_id: str = Form(...),
    user_id: str = Depends(get_current_user_id),
    resumes=Depends(get_resume_repository),
    jobs=Depends(get_job_repository),
    orchestrator=Depends(get_orchestrator),
):
    if not files:
        raise HTTPException(status_code=400, detail="No files uploaded.")
    if len(files) > settings.UPLOAD_MAX_FILES:
        raise HTTPException(status_code=400, detail=f"Too many files; at most {settings.UPLOAD_MAX_FILES} per upload.")

    incoming = []
    for f in files:
        content = await f.read()
        incoming.append(IncomingFile(filename=f.filename or "", media_type=f.content_type, content=content, size=len(content)))

    try:
        outcome = await ingest_uploads(incoming, job_id, user_id, resumes, jobs, orchestrator)
    except JobNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    if not outcome.accepted:
        raise HTTPException(
            status_code=400,
            detail={"message": "All file uploads failed validation.", "errors": outcome.rejected},
        )

    return {
        "message": f"{len(outcome.accepted)} resume(s) uploaded successfully and queued for analysis.",
        "uploaded": outcome.accepted,
        "errors": outcome.rejected,
    }


@router.get("/stats")
async def recruiter_stats(
    user_id: str = Depends(get_current_user_id),
    resumes=Depends(get_resume_repository),
    jobs=Depends(get_job_repository),
):
    documents = await resumes.list_for_user(user_id)
    total_jobs = await jobs.count_for_user(user_id)
    return compute_recruiter_stats(documents, total_jobs)


@router.get("/{resume_id}/status")
async def resume_status(
    resume_id: str,
    user_id: str = Depends(get_current_user_id),
    resumes=Depends(get_resume_repository),
):
    doc = await resumes.get(resume_id)
    if doc is None:
        raise HTTPException(status_code=404, detail="Resume not found.")
    if doc.user_id != user_id:
        raise HTTPException(status_code=403, detail="Not authorized to access this resume.")
    return {
        "resumeId": doc.id,
        "status": doc.processing_status.value,
        "errorDetails": doc.error_details,
        "score": doc.score,
    }


@router.get("/job/{job_id}/candidates")
async def job_candidates(
    job_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    resumes=Depends(get_resume_repository),
    jobs=Depends(get_job_repository),
):
    await _owned_job(job_id, user_id, jobs)
    # rank across the whole job before slicing so standout flags stay global
    ranked = rank_candidates(await resumes.list_for_job(job_id, ProcessingStatus.COMPLETED))
    total = len(ranked)
    start = (page - 1) * limit
    return {
        "candidates": [c.model_dump() for c in ranked[start:start + limit]],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if total else 0,
        },
    }


@router.get("/job/{job_id}/export")
async def export_job_candidates(
    job_id: str,
    user_id: str = Depends(get_current_user_id),
    resumes=Depends(get_resume_repository),
    jobs=Depends(get_job_repository),
):
    await _owned_job(job_id, user_id, jobs)
    ranked = rank_candidates(await resumes.list_for_job(job_id, ProcessingStatus.COMPLETED))
    body = export_candidates_csv(ranked)
    logger.info("Exported %d candidates for job %s", len(ranked), job_id)
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="candidates-{job_id}.csv"'},
    )
