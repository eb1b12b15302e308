# tests/test_pii_scrubber.py
import re

from screener.models.resume import AnalysisResult, EducationEntry
from screener.services.pii_scrubber import (
    EMAIL_DETECTOR,
    PHONE_DETECTOR,
    PiiDetector,
    PiiScrubber,
    institution_warning,
    justification_warning,
    scrub_analysis,
    skill_warning,
)


def _result(**overrides):
    values = dict(skills=["Python"], fit_score=7, justification="Solid backend experience.", warnings=[])
    values.update(overrides)
    return AnalysisResult(**values)


def test_email_in_skill_is_redacted():
    scrubbed = scrub_analysis(_result(skills=["Python", "jane.doe@example.com"]))
    assert scrubbed.skills == ["Python", "[REDACTED Email]"]
    assert skill_warning("Email") in scrubbed.warnings


def test_phone_in_skill_is_redacted():
    scrubbed = scrub_analysis(_result(skills=["call +1 555-123-4567"]))
    assert scrubbed.skills == ["call [REDACTED Phone]"]
    assert scrubbed.warnings == [skill_warning("Phone")]


def test_phone_formats():
    for text in ("(555) 123-4567", "555.123.4567", "+44 555 123 4567", "5551234567"):
        assert PHONE_DETECTOR.found_in(text), text
    assert not PHONE_DETECTOR.found_in("Python 3.12")


def test_justification_and_institution_are_flagged_not_rewritten():
    result = _result(
        justification="Reach the candidate at 555-123-4567.",
        education=[EducationEntry(degree="BSc", institution="alumni@state.edu")],
    )
    scrubbed = scrub_analysis(result)
    assert scrubbed.justification == "Reach the candidate at 555-123-4567."
    assert scrubbed.education[0].institution == "alumni@state.edu"
    assert justification_warning("Phone") in scrubbed.warnings
    assert institution_warning("Email") in scrubbed.warnings


def test_model_warnings_are_redacted_in_place():
    scrubbed = scrub_analysis(_result(warnings=["Email jane@example.com listed under skills"]))
    assert scrubbed.warnings == ["Email [REDACTED Email] listed under skills"]


def test_warnings_are_deduplicated_in_order():
    scrubbed = scrub_analysis(_result(skills=["a@b.io", "c@d.io"], warnings=["Missing Node", "Missing Node"]))
    assert scrubbed.warnings == ["Missing Node", skill_warning("Email")]


def test_scrub_is_idempotent_and_does_not_mutate_input():
    original = _result(
        skills=["jane@example.com", "React"],
        justification="Phone 555-123-4567 on file.",
        warnings=["Missing Node"],
    )
    before = original.model_dump()
    once = scrub_analysis(original)
    twice = scrub_analysis(once)
    assert once == twice
    assert original.model_dump() == before


def test_clean_result_is_unchanged():
    result = _result()
    assert scrub_analysis(result) == result


def test_custom_detectors():
    ssn = PiiDetector("SSN", re.compile(r"\b\d{3}-\d{2}-\d{4}\b"))
    scrubber = PiiScrubber([EMAIL_DETECTOR, ssn])
    scrubbed = scrubber.scrub(_result(skills=["123-45-6789"]))
    assert scrubbed.skills == ["[REDACTED SSN]"]
    assert scrubbed.warnings == [skill_warning("SSN")]


def test_long_top_level_domains_are_redacted():
    scrubbed = scrub_analysis(_result(skills=["jane@example.technology"]))
    assert scrubbed.skills == ["[REDACTED Email]"]
