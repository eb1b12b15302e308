# tests/conftest.py
import asyncio
import io
from typing import Any, Dict, Iterable, List, Optional

import pytest

from screener.models.resume import JobRequirements, ProcessingStatus, ResumeDocument

PDF_MEDIA_TYPE = "application/pdf"
DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

RESUME_TEXT = "Frontend engineer. 3 years building React applications. Some Express work."

E2E_REPLY = (
    '{"skills":["React"],"yearsExperience":"3","education":[],"fitScore":6,'
    '"justification":"partial match","warnings":["Missing Node"]}'
)


class InMemoryResumeStore:
    """
    ResumeStore fake with the same compare-and-set semantics as the Mongo
    repository. Every call yields to the loop so concurrent runs interleave.
    """

    def __init__(self):
        self.docs: Dict[str, ResumeDocument] = {}
        self.history: Dict[str, List[ProcessingStatus]] = {}

    def add(self, doc: ResumeDocument) -> ResumeDocument:
        self.docs[doc.id] = doc
        self.history[doc.id] = [doc.processing_status]
        return doc

    async def create(self, doc: ResumeDocument) -> str:
        await asyncio.sleep(0)
        self.add(doc)
        return doc.id

    async def get(self, resume_id: str) -> Optional[ResumeDocument]:
        await asyncio.sleep(0)
        return self.docs.get(resume_id)

    async def get_status(self, resume_id: str) -> Optional[ProcessingStatus]:
        await asyncio.sleep(0)
        doc = self.docs.get(resume_id)
        return doc.processing_status if doc else None

    async def transition(self, resume_id: str, expected: Iterable[ProcessingStatus], target: ProcessingStatus, **fields: Any) -> bool:
        await asyncio.sleep(0)
        doc = self.docs.get(resume_id)
        if doc is None or doc.processing_status not in set(expected):
            return False
        self.docs[resume_id] = doc.model_copy(update={**fields, "processing_status": target})
        self.history[resume_id].append(target)
        return True

    async def list_for_job(self, job_id: str, status: Optional[ProcessingStatus] = None) -> List[ResumeDocument]:
        await asyncio.sleep(0)
        return [
            d for d in self.docs.values()
            if d.job_id == job_id and (status is None or d.processing_status == status)
        ]

    async def list_for_user(self, user_id: str) -> List[ResumeDocument]:
        await asyncio.sleep(0)
        return [d for d in self.docs.values() if d.user_id == user_id]


class InMemoryJobStore:
    def __init__(self, jobs: Iterable[JobRequirements] = ()):
        self.jobs = {j.id: j for j in jobs}

    async def get(self, job_id: str) -> Optional[JobRequirements]:
        await asyncio.sleep(0)
        return self.jobs.get(job_id)

    async def count_for_user(self, user_id: str) -> int:
        return sum(1 for j in self.jobs.values() if j.user_id == user_id)


class ScriptedGenerate:
    """
    Stand-in for an LLM adapter's generate(). Each call consumes the next
    scripted item: a string is returned, an exception instance is raised.
    The last item repeats once the script runs out.
    """

    def __init__(self, *script):
        self.script = list(script)
        self.prompts: List[str] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def __call__(self, prompt, config):
        self.prompts.append(prompt)
        await asyncio.sleep(0)
        item = self.script[min(len(self.prompts), len(self.script)) - 1]
        if isinstance(item, BaseException):
            raise item
        return item


class RecordingSleep:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def make_resume(resume_id: str = "res-1", **overrides) -> ResumeDocument:
    values = dict(
        id=resume_id,
        user_id="user-1",
        job_id="job-1",
        original_filename=f"{resume_id}.pdf",
        file_type=PDF_MEDIA_TYPE,
    )
    values.update(overrides)
    return ResumeDocument(**values)


@pytest.fixture
def job():
    return JobRequirements(
        id="job-1",
        user_id="user-1",
        title="Full-stack developer",
        description_text="We need a full-stack developer with React and Node experience.",
        must_have_skills=["React", "Node"],
        focus_areas=["frontend performance"],
    )


@pytest.fixture
def resume_store():
    return InMemoryResumeStore()


@pytest.fixture
def job_store(job):
    return InMemoryJobStore([job])


@pytest.fixture
def pdf_bytes():
    # passes the signature and size checks; text comes from a fake extractor
    return b"%PDF-1.4\n" + b"1 0 obj << /Type /Catalog >> endobj\n" * 64


@pytest.fixture
def docx_bytes():
    from docx import Document

    document = Document()
    document.add_paragraph("Senior Python Developer")
    document.add_paragraph("Built data pipelines with FastAPI and MongoDB.")
    table = document.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "Skills"
    table.rows[0].cells[1].text = "Python, SQL"
    buf = io.BytesIO()
    document.save(buf)
    return buf.getvalue()


@pytest.fixture
def fake_extractor():
    calls = []

    async def extract(content: bytes, media_type: str) -> str:
        calls.append(media_type)
        await asyncio.sleep(0)
        return RESUME_TEXT

    extract.calls = calls
    return extract
