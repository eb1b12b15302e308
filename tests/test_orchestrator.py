# tests/test_orchestrator.py
import asyncio

import pytest

from conftest import E2E_REPLY, RESUME_TEXT, InMemoryJobStore, RecordingSleep, ScriptedGenerate, make_resume
from screener.core.errors import ExtractionError, ExtractionUnsupportedError, LLMQuotaError
from screener.models.resume import ProcessingStatus
from screener.services.analysis_invoker import AnalysisInvoker
from screener.services.orchestrator import (
    EXTRACTION_FAILED,
    JOB_NOT_FOUND,
    MAX_DIAGNOSTIC_LENGTH,
    NO_TEXT,
    QUOTA_EXCEEDED,
    AnalysisOrchestrator,
    coerce_score,
    diagnostic_for,
)

S = ProcessingStatus


def _orchestrator(resume_store, job_store, generate, extractor):
    invoker = AnalysisInvoker(generate, max_attempts=3, retry_delay=0, timeout=5, sleep=RecordingSleep())
    return AnalysisOrchestrator(resume_store, job_store, invoker=invoker, extractor=extractor)


@pytest.mark.asyncio
async def test_upload_to_completed(resume_store, job_store, fake_extractor, pdf_bytes):
    resume_store.add(make_resume("r1"))
    generate = ScriptedGenerate(E2E_REPLY)
    orch = _orchestrator(resume_store, job_store, generate, fake_extractor)

    await orch.run("r1", pdf_bytes)

    doc = resume_store.docs["r1"]
    assert doc.processing_status == S.COMPLETED
    assert doc.score == 6
    assert doc.error_details is None
    assert doc.extracted_text == RESUME_TEXT
    assert doc.analysis.skills == ["React"]
    assert doc.analysis.years_experience == "3"
    assert doc.analysis.warnings == ["Missing Node"]
    assert resume_store.history["r1"] == [S.UPLOADED, S.EXTRACTING, S.PROCESSING, S.COMPLETED]
    assert generate.calls == 1
    # job requirements reach the prompt
    assert "**MUST-HAVE SKILLS (pay special attention):** React, Node." in generate.prompts[0]
    assert RESUME_TEXT in generate.prompts[0]


@pytest.mark.asyncio
async def test_quota_ends_in_error_after_one_call(resume_store, job_store, fake_extractor, pdf_bytes):
    resume_store.add(make_resume("r1"))
    generate = ScriptedGenerate(LLMQuotaError("429"), E2E_REPLY)
    orch = _orchestrator(resume_store, job_store, generate, fake_extractor)

    await orch.run("r1", pdf_bytes)

    doc = resume_store.docs["r1"]
    assert doc.processing_status == S.ERROR
    assert doc.error_details == QUOTA_EXCEEDED
    assert doc.analysis is None and doc.score is None
    assert generate.calls == 1


@pytest.mark.asyncio
async def test_exhausted_retries_end_in_error(resume_store, job_store, fake_extractor, pdf_bytes):
    resume_store.add(make_resume("r1"))
    generate = ScriptedGenerate("no json here")
    orch = _orchestrator(resume_store, job_store, generate, fake_extractor)

    await orch.run("r1", pdf_bytes)

    doc = resume_store.docs["r1"]
    assert doc.processing_status == S.ERROR
    assert doc.error_details.startswith("AI analysis failed after 3 attempts")
    assert "no json here" not in doc.error_details
    assert generate.calls == 3


@pytest.mark.asyncio
async def test_concurrent_triggers_analyse_once(resume_store, job_store, fake_extractor, pdf_bytes):
    resume_store.add(make_resume("r1"))
    generate = ScriptedGenerate(E2E_REPLY)
    orch = _orchestrator(resume_store, job_store, generate, fake_extractor)

    await asyncio.gather(orch.run("r1", pdf_bytes), orch.run("r1", pdf_bytes))

    assert generate.calls == 1
    assert len(fake_extractor.calls) == 1
    assert resume_store.docs["r1"].processing_status == S.COMPLETED
    assert resume_store.history["r1"].count(S.PROCESSING) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [S.PROCESSING, S.COMPLETED])
async def test_active_or_done_documents_are_skipped(status, resume_store, job_store, fake_extractor, pdf_bytes):
    resume_store.add(make_resume("r1", processing_status=status, extracted_text=RESUME_TEXT, score=4))
    generate = ScriptedGenerate(E2E_REPLY)
    orch = _orchestrator(resume_store, job_store, generate, fake_extractor)

    await orch.run("r1", pdf_bytes)

    assert generate.calls == 0
    assert resume_store.docs["r1"].processing_status == status
    assert resume_store.docs["r1"].score == 4


@pytest.mark.asyncio
async def test_unknown_resume_is_ignored(resume_store, job_store, fake_extractor):
    generate = ScriptedGenerate(E2E_REPLY)
    await _orchestrator(resume_store, job_store, generate, fake_extractor).run("missing")
    assert generate.calls == 0


@pytest.mark.asyncio
async def test_missing_job_ends_in_error(resume_store, fake_extractor, pdf_bytes):
    resume_store.add(make_resume("r1", job_id="deleted-job"))
    generate = ScriptedGenerate(E2E_REPLY)
    orch = _orchestrator(resume_store, InMemoryJobStore(), generate, fake_extractor)

    await orch.run("r1", pdf_bytes)

    doc = resume_store.docs["r1"]
    assert doc.processing_status == S.ERROR
    assert doc.error_details == JOB_NOT_FOUND
    assert generate.calls == 0


@pytest.mark.asyncio
async def test_extraction_failure_ends_in_error(resume_store, job_store, pdf_bytes):
    async def failing_extractor(content, media_type):
        raise ExtractionError("No text content found in file.")

    resume_store.add(make_resume("r1"))
    generate = ScriptedGenerate(E2E_REPLY)
    await _orchestrator(resume_store, job_store, generate, failing_extractor).run("r1", pdf_bytes)

    doc = resume_store.docs["r1"]
    assert doc.processing_status == S.ERROR
    assert doc.error_details == NO_TEXT
    assert resume_store.history["r1"] == [S.UPLOADED, S.EXTRACTING, S.ERROR]
    assert generate.calls == 0


@pytest.mark.asyncio
async def test_unsupported_format_ends_in_error(resume_store, job_store):
    async def doc_extractor(content, media_type):
        raise ExtractionUnsupportedError("Text extraction is not supported for application/msword files.")

    resume_store.add(make_resume("r1", file_type="application/msword", original_filename="cv.doc"))
    await _orchestrator(resume_store, job_store, ScriptedGenerate(E2E_REPLY), doc_extractor).run("r1", b"\xd0\xcf")
    assert resume_store.docs["r1"].error_details == EXTRACTION_FAILED


@pytest.mark.asyncio
async def test_empty_stored_text_ends_in_error(resume_store, job_store, fake_extractor):
    resume_store.add(make_resume("r1", extracted_text="   "))
    generate = ScriptedGenerate(E2E_REPLY)
    await _orchestrator(resume_store, job_store, generate, fake_extractor).run("r1")
    assert resume_store.docs["r1"].processing_status == S.ERROR
    assert resume_store.docs["r1"].error_details == NO_TEXT
    assert generate.calls == 0


@pytest.mark.asyncio
async def test_failed_resume_can_be_reanalysed(resume_store, job_store, fake_extractor):
    resume_store.add(make_resume(
        "r1", processing_status=S.ERROR, error_details=QUOTA_EXCEEDED, extracted_text=RESUME_TEXT,
    ))
    generate = ScriptedGenerate(E2E_REPLY)
    await _orchestrator(resume_store, job_store, generate, fake_extractor).run("r1")

    doc = resume_store.docs["r1"]
    assert doc.processing_status == S.COMPLETED
    assert doc.error_details is None
    assert fake_extractor.calls == []


@pytest.mark.asyncio
async def test_pii_is_scrubbed_before_storing(resume_store, job_store, fake_extractor, pdf_bytes):
    reply = '{"skills": ["React", "jane@example.com"], "fitScore": 8, "justification": "good"}'
    resume_store.add(make_resume("r1"))
    await _orchestrator(resume_store, job_store, ScriptedGenerate(reply), fake_extractor).run("r1", pdf_bytes)

    analysis = resume_store.docs["r1"].analysis
    assert analysis.skills == ["React", "[REDACTED Email]"]
    assert any("Email" in w for w in analysis.warnings)
    assert "jane@example.com" not in resume_store.docs["r1"].model_dump_json()
    assert "jane@example.com" not in str(resume_store.docs["r1"].to_document())


@pytest.mark.asyncio
async def test_null_institution_in_reply_completes(resume_store, job_store, fake_extractor, pdf_bytes):
    reply = '{"education": [{"degree": "BSc", "institution": null, "graduationYear": null}], "fitScore": 7}'
    resume_store.add(make_resume("r1"))
    generate = ScriptedGenerate(reply)
    await _orchestrator(resume_store, job_store, generate, fake_extractor).run("r1", pdf_bytes)

    doc = resume_store.docs["r1"]
    assert doc.processing_status == S.COMPLETED
    assert doc.score == 7
    assert doc.analysis.education[0].institution == ""
    assert generate.calls == 1


@pytest.mark.asyncio
async def test_failed_upload_without_text_is_reextracted(resume_store, job_store, fake_extractor, pdf_bytes):
    resume_store.add(make_resume("r1", processing_status=S.ERROR, error_details=QUOTA_EXCEEDED))
    generate = ScriptedGenerate(E2E_REPLY)
    await _orchestrator(resume_store, job_store, generate, fake_extractor).run("r1", pdf_bytes)

    doc = resume_store.docs["r1"]
    assert doc.processing_status == S.COMPLETED
    assert doc.extracted_text == RESUME_TEXT
    assert resume_store.history["r1"] == [S.ERROR, S.EXTRACTING, S.PROCESSING, S.COMPLETED]
    assert len(fake_extractor.calls) == 1


@pytest.mark.asyncio
async def test_out_of_range_score_is_clamped(resume_store, job_store, fake_extractor, pdf_bytes):
    resume_store.add(make_resume("r1"))
    await _orchestrator(resume_store, job_store, ScriptedGenerate('{"fitScore": "12"}'), fake_extractor).run("r1", pdf_bytes)
    doc = resume_store.docs["r1"]
    assert doc.score == 10
    # stored analysis keeps the model's value
    assert doc.analysis.fit_score == "12"


@pytest.mark.asyncio
async def test_run_never_raises_when_store_fails(resume_store, job_store, fake_extractor, pdf_bytes, monkeypatch):
    async def broken_transition(*args, **kwargs):
        raise RuntimeError("database unavailable")

    resume_store.add(make_resume("r1"))
    monkeypatch.setattr(resume_store, "transition", broken_transition)
    await _orchestrator(resume_store, job_store, ScriptedGenerate(E2E_REPLY), fake_extractor).run("r1", pdf_bytes)
    assert resume_store.docs["r1"].processing_status == S.UPLOADED


@pytest.mark.asyncio
async def test_schedule_runs_in_background(resume_store, job_store, fake_extractor, pdf_bytes):
    resume_store.add(make_resume("r1"))
    orch = _orchestrator(resume_store, job_store, ScriptedGenerate(E2E_REPLY), fake_extractor)

    task = orch.schedule("r1", pdf_bytes)
    assert resume_store.docs["r1"].processing_status == S.UPLOADED
    await orch.drain()

    assert task.done()
    assert resume_store.docs["r1"].processing_status == S.COMPLETED


def test_coerce_score():
    assert coerce_score(6) == 6
    assert coerce_score("7") == 7
    assert coerce_score(6.8) == 6
    assert coerce_score(12) == 10
    assert coerce_score(-3) == 0
    assert coerce_score("about eight") == 0
    assert coerce_score(None) == 0


def test_diagnostics_are_short_and_generic():
    assert diagnostic_for(RuntimeError("secret resume text " * 50)) == "Unexpected processing error."
    assert len(diagnostic_for(ExtractionError("x" * 500))) == MAX_DIAGNOSTIC_LENGTH
