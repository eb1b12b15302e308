# screener/services/prompt_builder.py
"""
Renders the resume analysis instruction sent to the LLM.

build_analysis_prompt() is a pure function: same inputs, byte-identical output.
The JSON shape is embedded verbatim so replies stay close to AnalysisResult.
"""

from typing import Sequence

PII_PLACEHOLDER = "[REDACTED FOR PII]"

RESPONSE_SCHEMA_EXAMPLE = """```json
{
  "skills": ["string"],
  "yearsExperience": "number (e.g., 5) or string (e.g., '0-2', '10+'), or null if not determinable",
  "education": [
    {
      "degree": "string (e.g., 'Bachelor of Science in Computer Science')",
      "institution": "string (e.g., 'a well-known university' - ANONYMIZED)",
      "graduationYear": "string (e.g., '2020' or null)"
    }
  ],
  "fitScore": "number (integer 1-10)",
  "justification": "string",
  "warnings": ["string"]
}
```"""

INSTRUCTIONS = f"""Analyze the following resume against the provided job description.
Your goal is to extract specific information, evaluate the candidate's fit, and provide a score.

**IMPORTANT INSTRUCTIONS:**
1. **RESPOND ONLY WITH A SINGLE VALID JSON OBJECT.** The whole reply must be that object. Do not include any text outside the JSON structure.
2. **EXPLICITLY EXCLUDE ALL PERSONALLY IDENTIFIABLE INFORMATION (PII).** This includes but is not limited to: name, email address, phone number, physical address, social media links, photos, or any other data that can directly identify an individual. If PII appears in fields like 'skills' or 'education', omit or generalize it (for example, instead of "John Doe University", use "a university"). If a value cannot be safely generalized, use the placeholder "{PII_PLACEHOLDER}" for that value, or omit the field entirely if the whole field would be PII.
3. 'fitScore' must be an integer between 1 (very poor fit) and 10 (excellent fit).
4. 'yearsExperience' is the estimated years of relevant experience for this job. It may be an integer (e.g., 5), a range string (e.g., '3-5'), an open-ended string (e.g., '10+'), or null if not determinable.
5. 'skills' is the list of skills relevant to the job description that are found in the resume.
6. 'education' is the list of educational qualifications.
7. 'justification' is a concise explanation of the 'fitScore', highlighting key strengths and weaknesses relative to the job description.
8. **Keyword evaluation:** differentiate between a resume that merely lists many keywords and one that demonstrates genuine application of those skills through described experience and achievements. Depth and context of experience matter more than the number of keyword mentions. If keyword usage reads as superficial relative to the described experience, say so in the 'warnings' array.
9. **Warnings field:** if critical skills from the job description are clearly missing from the resume, or ambiguities prevent a full assessment, add a brief note to the 'warnings' array.

**JSON OUTPUT STRUCTURE (strictly adhere to this format):**
{RESPONSE_SCHEMA_EXAMPLE}"""

CLOSING = "**Now, provide your analysis in the specified JSON format only:**"


def _section(title: str, body: str) -> str:
    return f"**{title}:**\n---\n{body}\n---"


def build_analysis_prompt(
    resume_text: str,
    job_description: str,
    must_have_skills: Sequence[str] = (),
    focus_areas: Sequence[str] = (),
) -> str:
    parts = [
        INSTRUCTIONS,
        _section("JOB DESCRIPTION", job_description),
        _section("RESUME TEXT", resume_text),
    ]

    if must_have_skills:
        parts.append(
            f"**MUST-HAVE SKILLS (pay special attention):** {', '.join(must_have_skills)}. "
            "The presence or absence of these skills should significantly impact the fitScore and justification. "
            "If any of these must-have skills are missing, note each one in the 'warnings' array."
        )
    if focus_areas:
        parts.append(
            f"**KEY FOCUS AREAS (weigh experience related to these more heavily):** {', '.join(focus_areas)}."
        )

    parts.append(CLOSING)
    return "\n\n".join(parts)
