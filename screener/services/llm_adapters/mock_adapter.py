# screener/services/llm_adapters/mock_adapter.py
"""
Deterministic mock adapter to mimic the analysis model for local runs and CI.
The reply is derived from a hash of the prompt, wrapped in a code fence the
way real models tend to answer.
"""

import asyncio
import hashlib
import json
import re

from screener.services.llm_adapters.base import GenerationConfig

_MUST_HAVE_RE = re.compile(r"\*\*MUST-HAVE SKILLS[^:]*:\*\*\s*(.+?)\.\s", re.DOTALL)


def _must_have_skills(prompt: str) -> list:
    m = _MUST_HAVE_RE.search(prompt)
    if not m:
        return []
    return [s.strip() for s in m.group(1).split(",") if s.strip()]


async def generate(prompt: str, config: GenerationConfig) -> str:
    await asyncio.sleep(0)  # keep async signature
    h = hashlib.sha256(prompt.encode("utf-8")).hexdigest()
    fit_score = 1 + int(h[:8], 16) % 10

    lowered = prompt.lower()
    required = _must_have_skills(prompt)
    # must-have skills appear once in the appended section; a second hit means the resume has it
    found = [s for s in required if lowered.count(s.lower()) > 1]
    missing = [s for s in required if s not in found]

    reply = {
        "skills": found,
        "yearsExperience": None,
        "education": [],
        "fitScore": fit_score,
        "justification": "Mock analysis generated without a language model.",
        "warnings": [f"Missing must-have skill: {s}" for s in missing],
    }
    return "```json\n" + json.dumps(reply, indent=2) + "\n```"
