"""Interview rehearsal models for the Rehearsal Coach."""

from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import ConfigDict, Field, field_validator

from .base import BaseModel, WireModel
from .enums import QuestionCategory

# 0-based question index -> answer text. Keys need not cover every question.
AnswerSet = Dict[int, str]


class InterviewSettings(WireModel):
    """Interview configuration captured on the setup stage."""

    model_config = ConfigDict(frozen=True)

    job_role: str = Field(..., description="Role the candidate is rehearsing for")
    experience: str = Field(..., description="Experience level")
    interview_type: str = Field(..., description="Interview type, e.g. Behavioral or Mixed")
    difficulty: str = Field(..., description="Difficulty level")
    duration: str = Field(..., description="Planned duration")

    @field_validator("job_role", "experience", "interview_type", "difficulty", "duration")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Interview settings fields must not be blank")
        return v.strip()


class Question(BaseModel):
    """Represents an interview question."""

    text: str = Field(..., alias="question", description="Question content")
    category: QuestionCategory = Field(..., alias="type", description="Question category")

    def to_wire(self) -> Dict[str, str]:
        return {"question": self.text, "type": self.category.value}


class RecordedMedia(BaseModel):
    """Opaque handle to a recording produced by the capture collaborator."""

    path: Path = Field(..., description="Location of the captured recording")
    content_type: str = Field(default="application/octet-stream", description="MIME type")
    size_bytes: Optional[int] = Field(default=None, ge=0, description="Size of the recording")
    captured_at: datetime = Field(default_factory=datetime.now, description="Capture time")


class CategoryScore(WireModel):
    """Score and feedback for a single evaluation category."""

    score: float = Field(..., description="Category score")
    feedback: str = Field(default="", description="Category feedback")


class ReportData(WireModel):
    """Scored feedback produced by the scoring service."""

    overall_score: float = Field(..., description="Overall score")
    clarity_of_communication: CategoryScore
    technical_proficiency: CategoryScore
    behavioral_competency: CategoryScore
    confidence_and_demeanor: CategoryScore
    strengths: List[str] = Field(default_factory=list)
    areas_for_improvement: List[str] = Field(default_factory=list)


class Report(ReportData):
    """Report data stamped with the identifier and date assigned at persistence time."""

    id: str = Field(..., description="Unique report identifier")
    date: str = Field(..., description="ISO-8601 creation timestamp")

    @classmethod
    def from_data(cls, data: ReportData, report_id: str, date: str) -> "Report":
        return cls(**data.model_dump(), id=report_id, date=date)
