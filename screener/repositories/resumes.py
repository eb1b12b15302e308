# screener/repositories/resumes.py
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Protocol

from pymongo import ASCENDING, DESCENDING, ReturnDocument

from screener.db.mongo import get_db
from screener.models.resume import ProcessingStatus, ResumeDocument

RESUMES_COLLECTION = "resumes"


def _now():
    return datetime.utcnow()


def _to_document_value(value: Any) -> Any:
    if isinstance(value, ProcessingStatus):
        return value.value
    if hasattr(value, "to_document"):
        return value.to_document()
    return value


class ResumeStore(Protocol):
    async def create(self, doc: ResumeDocument) -> str: ...

    async def get(self, resume_id: str) -> Optional[ResumeDocument]: ...

    async def get_status(self, resume_id: str) -> Optional[ProcessingStatus]: ...

    async def transition(
        self,
        resume_id: str,
        expected: Iterable[ProcessingStatus],
        target: ProcessingStatus,
        **fields: Any,
    ) -> bool: ...

    async def list_for_job(self, job_id: str, status: Optional[ProcessingStatus] = None) -> List[ResumeDocument]: ...

    async def list_for_user(self, user_id: str) -> List[ResumeDocument]: ...


class MongoResumeRepository:
    """
    Resume documents in MongoDB. Status changes go through transition(), a
    conditional find_one_and_update, so two pipeline runs for one document
    cannot both move it forward.
    """

    def __init__(self, db=None):
        self._db = db

    @property
    def collection(self):
        db = self._db if self._db is not None else get_db()
        return db[RESUMES_COLLECTION]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("user_id", ASCENDING), ("job_id", ASCENDING)])
        await self.collection.create_index([("job_id", ASCENDING), ("processing_status", ASCENDING)])

    async def create(self, doc: ResumeDocument) -> str:
        res = await self.collection.insert_one(doc.to_document())
        return str(res.inserted_id)

    async def get(self, resume_id: str) -> Optional[ResumeDocument]:
        raw = await self.collection.find_one({"_id": resume_id})
        return ResumeDocument.model_validate(raw) if raw else None

    async def get_status(self, resume_id: str) -> Optional[ProcessingStatus]:
        raw = await self.collection.find_one({"_id": resume_id}, projection={"processing_status": 1})
        return ProcessingStatus(raw["processing_status"]) if raw else None

    async def transition(
        self,
        resume_id: str,
        expected: Iterable[ProcessingStatus],
        target: ProcessingStatus,
        **fields: Any,
    ) -> bool:
        """
        Move the document to `target` only if its current status is one of
        `expected`, setting `fields` in the same write. Returns False when the
        precondition did not hold (or the document does not exist).
        """
        update: Dict[str, Any] = {k: _to_document_value(v) for k, v in fields.items()}
        update["processing_status"] = target.value
        update["updated_at"] = _now()
        res = await self.collection.find_one_and_update(
            {"_id": resume_id, "processing_status": {"$in": [s.value for s in expected]}},
            {"$set": update},
            projection={"_id": 1},
            return_document=ReturnDocument.AFTER,
        )
        return res is not None

    async def list_for_job(self, job_id: str, status: Optional[ProcessingStatus] = None) -> List[ResumeDocument]:
        query: Dict[str, Any] = {"job_id": job_id}
        if status is not None:
            query["processing_status"] = status.value
        cur = self.collection.find(query).sort("score", DESCENDING)
        return [ResumeDocument.model_validate(d) async for d in cur]

    async def list_for_user(self, user_id: str) -> List[ResumeDocument]:
        cur = self.collection.find({"user_id": user_id}, projection={"extracted_text": 0})
        return [ResumeDocument.model_validate(d) async for d in cur]
