# screener/api/deps.py
from typing import Optional

from fastapi import Header, HTTPException, status

from screener.repositories.jobs import MongoJobRepository
from screener.repositories.resumes import MongoResumeRepository
from screener.services.orchestrator import AnalysisOrchestrator

_orchestrator: Optional[AnalysisOrchestrator] = None


def get_resume_repository() -> MongoResumeRepository:
    return MongoResumeRepository()


def get_job_repository() -> MongoJobRepository:
    return MongoJobRepository()


def get_orchestrator() -> AnalysisOrchestrator:
    """
    Process-wide orchestrator, so scheduled analyses can be drained at shutdown.
    """
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = AnalysisOrchestrator(MongoResumeRepository(), MongoJobRepository())
    return _orchestrator


def peek_orchestrator() -> Optional[AnalysisOrchestrator]:
    return _orchestrator


async def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    # authentication happens upstream; the gateway forwards the caller's id
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-User-Id header")
    return x_user_id
