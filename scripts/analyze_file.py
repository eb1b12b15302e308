# scripts/analyze_file.py
"""
Run one local resume through validation, extraction, prompting, the configured
LLM adapter and the PII scrub, then print the analysis as JSON.

    python scripts/analyze_file.py resume.pdf job.txt --must-have Python,SQL
"""

import argparse
import asyncio
import json
import mimetypes
import sys

from screener.core.logging import configure_logging
from screener.services.analysis_invoker import AnalysisInvoker
from screener.services.file_validator import validate_resume_file
from screener.services.orchestrator import coerce_score
from screener.services.pii_scrubber import scrub_analysis
from screener.services.prompt_builder import build_analysis_prompt
from screener.services.text_extractor import DOCX_MEDIA_TYPE, extract_text

mimetypes.add_type(DOCX_MEDIA_TYPE, ".docx")


def _split(value: str):
    return [v.strip() for v in (value or "").split(",") if v.strip()]


async def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("resume")
    parser.add_argument("job_description", help="plain text file with the job description")
    parser.add_argument("--must-have", default="", help="comma separated must-have skills")
    parser.add_argument("--focus", default="", help="comma separated focus areas")
    args = parser.parse_args(argv)

    configure_logging()
    with open(args.resume, "rb") as fh:
        content = fh.read()
    with open(args.job_description, encoding="utf-8") as fh:
        job_text = fh.read()

    media_type = mimetypes.guess_type(args.resume)[0]
    verdict = validate_resume_file(content, args.resume.replace("\\", "/").rsplit("/", 1)[-1], media_type)
    if not verdict:
        print(f"rejected ({verdict.check}): {verdict.error}", file=sys.stderr)
        return 1

    text = await extract_text(content, media_type)
    prompt = build_analysis_prompt(text, job_text, _split(args.must_have), _split(args.focus))
    result = scrub_analysis(await AnalysisInvoker().analyze(prompt))

    out = result.to_document()
    out["score"] = coerce_score(result.fit_score)
    print(json.dumps(out, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
