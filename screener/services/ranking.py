# screener/services/ranking.py
"""
Read-side helpers over completed resume documents: ranking with standout
flags, recruiter statistics and CSV export.

Standout flags are position based. After a stable sort by score (descending)
the first max(1, floor(n * fraction)) candidates are flagged, so a tie that
straddles the cutoff is split by position, not widened by score equality.
"""

import csv
import io
import math
from typing import Any, Dict, Iterable, List, Optional, Sequence

from screener.core.config import settings
from screener.models.resume import CandidateItem, ProcessingStatus, ResumeDocument

CSV_HEADER = ["Rank", "Score", "Filename", "Years of Experience", "Skills", "Justification", "Standout"]


def standout_cutoff(count: int, fraction: float) -> int:
    if count <= 0:
        return 0
    return max(1, math.floor(count * fraction))


def rank_candidates(documents: Iterable[ResumeDocument], standout_fraction: Optional[float] = None) -> List[CandidateItem]:
    fraction = settings.STANDOUT_FRACTION if standout_fraction is None else standout_fraction
    completed = [d for d in documents if d.processing_status == ProcessingStatus.COMPLETED]
    # sorted() is stable: equal scores keep their incoming order
    ordered = sorted(completed, key=lambda d: d.score or 0, reverse=True)
    cutoff = standout_cutoff(len(ordered), fraction)

    items = []
    for index, doc in enumerate(ordered):
        analysis = doc.analysis
        warnings = list(analysis.warnings) if analysis else []
        items.append(
            CandidateItem(
                candidate_id=doc.id,
                original_filename=doc.original_filename,
                file_type=doc.file_type,
                upload_timestamp=doc.created_at,
                rank=index + 1,
                score=doc.score or 0,
                skills=list(analysis.skills) if analysis else [],
                years_experience=analysis.years_experience if analysis else None,
                education=list(analysis.education) if analysis else [],
                justification=analysis.justification if analysis else "",
                warnings=warnings,
                has_warnings=bool(warnings),
                is_standout=index < cutoff,
            )
        )
    return items


def compute_recruiter_stats(documents: Sequence[ResumeDocument], total_jobs: int) -> Dict[str, Any]:
    by_status = {status: 0 for status in ProcessingStatus}
    for doc in documents:
        by_status[doc.processing_status] += 1

    scores = [doc.score or 0 for doc in documents if doc.processing_status == ProcessingStatus.COMPLETED]
    average = round(sum(scores) / len(scores), 1) if scores else 0

    return {
        "totalJobs": total_jobs,
        "totalResumes": len(documents),
        "averageScore": average,
        "statusDistribution": {
            "uploaded": by_status[ProcessingStatus.UPLOADED],
            "processing": by_status[ProcessingStatus.EXTRACTING] + by_status[ProcessingStatus.PROCESSING],
            "completed": by_status[ProcessingStatus.COMPLETED],
            "failed": by_status[ProcessingStatus.ERROR],
        },
        "scoreDistribution": {
            "low": sum(1 for s in scores if s < 5),
            "mid": sum(1 for s in scores if 5 <= s < 8),
            "high": sum(1 for s in scores if s >= 8),
        },
    }


# spreadsheet apps evaluate cells starting with these characters as formulas
_FORMULA_PREFIXES = ("=", "+", "-", "@")


def _cell(value: str) -> str:
    return "'" + value if value.startswith(_FORMULA_PREFIXES) else value


def export_candidates_csv(candidates: Sequence[CandidateItem]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for c in candidates:
        years = "N/A" if c.years_experience in (None, "") else str(c.years_experience)
        writer.writerow([
            c.rank,
            c.score,
            _cell(c.original_filename),
            _cell(years),
            _cell(", ".join(c.skills)),
            _cell(c.justification),
            "yes" if c.is_standout else "",
        ])
    return buf.getvalue()
