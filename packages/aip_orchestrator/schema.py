from typing import Dict, List, Optional

from pydantic import Field, field_validator

from packages.aip_core.domain import Education, ResumeSummary, WorkExperience
from packages.aip_core.dto import BaseDTO


class JobPosting(BaseDTO):
    id: str
    title: str
    description: str
    tech_stack: List[str] = Field(default_factory=list, alias="techStack")
    preferred_skills: List[str] = Field(default_factory=list, alias="preferredSkills")


class PersonalInfo(BaseDTO):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class ParsedResume(BaseDTO):
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo, alias="personalInfo")
    skills: List[str] = Field(default_factory=list)
    experience: List[WorkExperience] = Field(default_factory=list)
    education: List[Education] = Field(default_factory=list)
    online_presence: Dict[str, str] = Field(default_factory=dict, alias="onlinePresence")

    @field_validator("skills", mode="before")
    @classmethod
    def _flatten_skill_categories(cls, value):
        # Models often group skills by category: {"languages": [...], "tools": [...]}
        if isinstance(value, dict):
            return [skill for group in value.values() for skill in (group or [])]
        return value

    def to_summary(self) -> ResumeSummary:
        return ResumeSummary(skills=self.skills, experience=self.experience, education=self.education)


class SegmentReply(BaseDTO):
    response: str
    should_continue: bool = Field(..., alias="shouldContinue")
    next_question: Optional[str] = Field(None, alias="nextQuestion")


class PreparationOutcome(BaseDTO):
    questions_generated: bool = Field(..., alias="questionsGenerated")
    session_created: bool = Field(..., alias="sessionCreated")
    invite_sent: bool = Field(..., alias="inviteSent")
    question_count: int = Field(0, alias="questionCount")
