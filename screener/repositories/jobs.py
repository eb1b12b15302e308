# screener/repositories/jobs.py
from typing import Optional, Protocol

from screener.db.mongo import get_db
from screener.models.resume import JobRequirements

# owned and written by the job-posting service; read only here
JOBS_COLLECTION = "jobdescriptions"


class JobStore(Protocol):
    async def get(self, job_id: str) -> Optional[JobRequirements]: ...

    async def count_for_user(self, user_id: str) -> int: ...


class MongoJobRepository:
    def __init__(self, db=None):
        self._db = db

    @property
    def collection(self):
        db = self._db if self._db is not None else get_db()
        return db[JOBS_COLLECTION]

    async def get(self, job_id: str) -> Optional[JobRequirements]:
        raw = await self.collection.find_one({"_id": job_id})
        return JobRequirements.model_validate(raw) if raw else None

    async def count_for_user(self, user_id: str) -> int:
        return await self.collection.count_documents({"user_id": user_id})
