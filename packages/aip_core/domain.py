from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import ConfigDict, Field, field_validator

from packages.aip_core.dto import BaseDTO


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class InterviewType(str, Enum):
    TECHNICAL = "TECHNICAL"
    CODING = "CODING"
    BEHAVIORAL = "BEHAVIORAL"
    SITUATIONAL = "SITUATIONAL"
    MIXED = "MIXED"

class Depth(str, Enum):
    """Interview probing intensity. Also used as question difficulty."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

class QuestionType(str, Enum):
    """Answer style a question expects. Drives structure detection in scoring."""
    BEHAVIORAL = "BEHAVIORAL"
    TECHNICAL = "TECHNICAL"
    CODING = "CODING"


class Question(BaseDTO):
    id: str
    text: str
    category: str = Field(..., description="Distribution category, e.g. conceptual, warmup, behavioral")
    expected_topics: Optional[List[str]] = Field(None, alias="expectedTopics")
    difficulty: Depth = Depth.MEDIUM
    time_allocation: Optional[float] = Field(None, alias="timeAllocation", description="Minutes")
    follow_ups: Optional[List[str]] = Field(None, alias="followUps")

    def question_type(self) -> QuestionType:
        """Map the free-form category onto the answer style used for scoring."""
        category = self.category.lower()
        if category in ("behavioral", "experience", "situational", "motivation"):
            return QuestionType.BEHAVIORAL
        if category in ("coding", "warmup", "medium", "challenging"):
            return QuestionType.CODING
        return QuestionType.TECHNICAL


class WorkExperience(BaseDTO):
    company: str
    role: str
    duration: Optional[str] = None
    start_date: Optional[str] = Field(None, alias="startDate")
    end_date: Optional[str] = Field(None, alias="endDate")
    description: Optional[str] = None

class Education(BaseDTO):
    degree: str
    institution: str
    year: Optional[str] = None

class ResumeSummary(BaseDTO):
    skills: List[str] = Field(default_factory=list)
    experience: List[WorkExperience] = Field(default_factory=list)
    education: List[Education] = Field(default_factory=list)


class InterviewContext(BaseDTO):
    """
    Everything the conductor needs for one scheduled interview.
    Frozen: created once by the orchestrator, never mutated during conduct.
    """
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        populate_by_name=True,
        frozen=True
    )

    interview_id: str = Field(..., alias="interviewId")
    candidate_id: Optional[str] = Field(None, alias="candidateId")
    candidate_name: str = Field(..., alias="candidateName")
    candidate_email: str = Field(..., alias="candidateEmail")
    company_id: str = Field(..., alias="companyId")
    company_name: str = Field("the company", alias="companyName")
    job_id: Optional[str] = Field(None, alias="jobId")
    interview_type: InterviewType = Field(..., alias="interviewType")
    skills: List[str] = Field(default_factory=list)
    depth: Depth = Depth.MEDIUM
    # Scheduled interviews run 10-120 minutes; shorter values yield zero questions
    duration: int = Field(..., ge=1, le=120, description="Minutes")
    questions: List[Question] = Field(default_factory=list)
    resume_data: Optional[ResumeSummary] = Field(None, alias="resumeData")

    @field_validator("candidate_email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        if "@" not in value:
            raise ValueError("candidate_email must be an email address")
        return value
