# screener/main.py
import logging

from fastapi import FastAPI

from screener.api.deps import peek_orchestrator
from screener.api.v1.resumes import router as resumes_router
from screener.core.logging import configure_logging
from screener.db.mongo import close_db
from screener.repositories.resumes import MongoResumeRepository

logger = logging.getLogger(__name__)

app = FastAPI(title="Resume Screening API")

app.include_router(resumes_router, prefix="/api/v1")


@app.on_event("startup")
async def startup_event():
    configure_logging()
    try:
        await MongoResumeRepository().ensure_indexes()
    except Exception:
        # the API still serves; queries fall back to collection scans
        logger.exception("Could not create resume indexes")


@app.on_event("shutdown")
async def shutdown_event():
    orchestrator = peek_orchestrator()
    if orchestrator is not None:
        await orchestrator.drain()
    close_db()
