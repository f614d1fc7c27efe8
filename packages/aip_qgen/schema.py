from typing import Dict, List, Optional

from pydantic import Field

from packages.aip_core.domain import Depth, InterviewType, Question
from packages.aip_core.dto import BaseDTO


class TemplateQuestion(BaseDTO):
    text: str
    difficulty: Depth = Depth.MEDIUM
    expected_topics: Optional[List[str]] = Field(None, alias="expectedTopics")
    follow_up_questions: Optional[List[str]] = Field(None, alias="followUpQuestions")
    time_limit: Optional[int] = Field(None, alias="timeLimit", description="Minutes")
    hints: Optional[List[str]] = None


class QuestionTemplate(BaseDTO):
    """Question set produced by the generator for one interview."""
    id: str
    title: str
    job_role: str = Field(..., alias="jobRole")
    category: InterviewType
    questions: List[TemplateQuestion] = Field(default_factory=list)

    def to_questions(self, id_prefix: str = "q") -> List[Question]:
        """Flatten into the ordered questions an InterviewContext carries."""
        return [
            Question(
                id=f"{id_prefix}{index + 1}",
                text=item.text,
                category=self.category.value.lower(),
                expected_topics=item.expected_topics,
                difficulty=item.difficulty,
                time_allocation=item.time_limit,
                follow_ups=item.follow_up_questions,
            )
            for index, item in enumerate(self.questions)
        ]


class RoleTemplate(BaseDTO):
    """Pre-defined question bank for a common role, grouped by category."""
    template_id: str = Field(..., alias="templateId")
    title: str
    questions: Dict[str, List[TemplateQuestion]]


class TemplateLookup(BaseDTO):
    found: bool
    template: Optional[RoleTemplate] = None
    can_customize: bool = Field(False, alias="canCustomize")
    available_templates: List[str] = Field(default_factory=list, alias="availableTemplates")


class GenerationRequest(BaseDTO):
    job_title: str = Field(..., alias="jobTitle")
    job_description: str = Field(..., alias="jobDescription")
    required_skills: List[str] = Field(default_factory=list, alias="requiredSkills")
    interview_type: InterviewType = Field(..., alias="interviewType")
    duration: int = Field(..., ge=1, le=120, description="Minutes")
    depth: Depth = Depth.MEDIUM
    experience_level: Optional[str] = Field(None, alias="experienceLevel")
    candidate_skills: List[str] = Field(default_factory=list, alias="candidateSkills")
    candidate_positions: Optional[int] = Field(None, alias="candidatePositions")


class FollowUpSuggestion(BaseDTO):
    question: str
    rationale: str
