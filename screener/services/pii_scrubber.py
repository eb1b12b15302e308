# screener/services/pii_scrubber.py
"""
Second-pass PII scrub over a validated AnalysisResult.

The prompt already asks the model to leave PII out; this pass runs on every
result regardless. Behaviour per field:

- skills: matches are replaced in place with "[REDACTED <label>]"
- model warnings: matches are replaced in place, no extra warning
- education institution, justification: text is kept, a system warning
  naming the field and detector is added

Warnings are merged with order-preserving de-duplication. scrub() never
mutates its input and is idempotent.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from screener.models.resume import AnalysisResult


@dataclass(frozen=True)
class PiiDetector:
    label: str
    pattern: "re.Pattern[str]"

    @property
    def placeholder(self) -> str:
        return f"[REDACTED {self.label}]"

    def found_in(self, text: str) -> bool:
        return bool(self.pattern.search(text))

    def redact(self, text: str) -> str:
        return self.pattern.sub(self.placeholder, text)


EMAIL_DETECTOR = PiiDetector(
    "Email",
    re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
)
PHONE_DETECTOR = PiiDetector(
    "Phone",
    re.compile(r"(?<![\w+])(?:\+?\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}\b"),
)

DEFAULT_DETECTORS: Tuple[PiiDetector, ...] = (EMAIL_DETECTOR, PHONE_DETECTOR)


def skill_warning(label: str) -> str:
    return f"System: Potential PII ({label}) detected and redacted from skill."


def institution_warning(label: str) -> str:
    return f"System: Potential PII ({label}) detected in education institution."


def justification_warning(label: str) -> str:
    return f"System: Potential PII ({label}) detected in 'justification'."


def _dedupe(items: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(items))


class PiiScrubber:
    def __init__(self, detectors: Sequence[PiiDetector] = DEFAULT_DETECTORS):
        self.detectors = tuple(detectors)

    def _redact(self, text: str) -> Tuple[str, List[str]]:
        labels = []
        for detector in self.detectors:
            if detector.found_in(text):
                labels.append(detector.label)
                text = detector.redact(text)
        return text, labels

    def _labels_in(self, text: str) -> List[str]:
        return [d.label for d in self.detectors if d.found_in(text)]

    def scrub(self, result: AnalysisResult) -> AnalysisResult:
        system_warnings: List[str] = []

        skills = []
        for skill in result.skills:
            cleaned, labels = self._redact(skill)
            skills.append(cleaned)
            system_warnings.extend(skill_warning(label) for label in labels)

        for entry in result.education:
            if entry.institution:
                system_warnings.extend(institution_warning(label) for label in self._labels_in(entry.institution))

        if result.justification:
            system_warnings.extend(justification_warning(label) for label in self._labels_in(result.justification))

        model_warnings = [self._redact(w)[0] for w in result.warnings]

        return result.model_copy(
            update={
                "skills": skills,
                "education": [entry.model_copy() for entry in result.education],
                "warnings": _dedupe(model_warnings + system_warnings),
            }
        )


_default_scrubber = PiiScrubber()


def scrub_analysis(result: AnalysisResult) -> AnalysisResult:
    return _default_scrubber.scrub(result)
