# screener/models/resume.py
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProcessingStatus(str, Enum):
    UPLOADED = "uploaded"
    EXTRACTING = "extracting"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


# a document in one of these states must not be analysed again
ACTIVE_OR_DONE = frozenset({ProcessingStatus.PROCESSING, ProcessingStatus.COMPLETED})
# states from which the error state may be entered
NON_TERMINAL = frozenset({ProcessingStatus.UPLOADED, ProcessingStatus.EXTRACTING, ProcessingStatus.PROCESSING})


def _utcnow() -> datetime:
    return datetime.utcnow()


class EducationEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True, extra="ignore")

    degree: str = ""
    institution: str = ""
    graduation_year: Optional[str] = Field(default=None, alias="graduationYear")

    @field_validator("degree", "institution", mode="before")
    @classmethod
    def _null_text(cls, value):
        # null is how the model omits a PII-only value
        return "" if value is None else value


class AnalysisResult(BaseModel):
    """
    Structured model reply. Keys follow the camelCase shape requested in the prompt;
    unknown keys are dropped and nothing else is corrected.
    """
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True, extra="ignore")

    skills: List[str] = Field(default_factory=list)
    years_experience: Union[int, str, None] = Field(default=None, alias="yearsExperience")
    education: List[EducationEntry] = Field(default_factory=list)
    fit_score: Union[int, float, str] = Field(alias="fitScore")
    justification: str = ""
    warnings: List[str] = Field(default_factory=list)

    @field_validator("skills", "education", "warnings", mode="before")
    @classmethod
    def _null_list(cls, value):
        # models often send null for "nothing found"
        return [] if value is None else value

    @field_validator("justification", mode="before")
    @classmethod
    def _null_text(cls, value):
        return "" if value is None else value

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class JobRequirements(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(alias="_id")
    user_id: Optional[str] = None
    title: str = ""
    description_text: str
    must_have_skills: List[str] = Field(default_factory=list)
    focus_areas: List[str] = Field(default_factory=list)


class ResumeDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(alias="_id")
    user_id: str
    job_id: str
    original_filename: str
    file_type: str
    extracted_text: Optional[str] = None
    processing_status: ProcessingStatus = ProcessingStatus.UPLOADED
    error_details: Optional[str] = None
    score: Optional[int] = None
    analysis: Optional[AnalysisResult] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def to_document(self) -> Dict[str, Any]:
        # enums stored by value so Mongo queries can match on plain strings
        return self.model_dump(by_alias=True, mode="python") | {"processing_status": self.processing_status.value}


class CandidateItem(BaseModel):
    candidate_id: str
    original_filename: str
    file_type: str
    upload_timestamp: datetime
    rank: int
    score: int
    skills: List[str] = Field(default_factory=list)
    years_experience: Union[int, str, None] = None
    education: List[EducationEntry] = Field(default_factory=list)
    justification: str = ""
    warnings: List[str] = Field(default_factory=list)
    has_warnings: bool = False
    is_standout: bool = False
