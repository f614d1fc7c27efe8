from typing import List, Optional

from pydantic import BaseModel, Field, computed_field

from packages.aip_core.utils import round_half_up
from packages.aip_code_eval.schema import CodeEvaluationResult, TestCaseResult
from packages.aip_sentiment.schema import CheatingFlag
from packages.aip_scoring.weights import OVERALL_WEIGHTS


class DimensionScores(BaseModel):
    communication: int = Field(..., ge=0, le=100)
    technical: int = Field(..., ge=0, le=100)
    problem_solving: int = Field(..., ge=0, le=100, alias="problemSolving")
    confidence: int = Field(..., ge=0, le=100)

    model_config = {"populate_by_name": True}


class Score(DimensionScores):
    """Four dimensions plus the overall score, which is always derived from them."""

    @computed_field
    @property
    def overall(self) -> int:
        return round_half_up(sum(getattr(self, dim) * w for dim, w in OVERALL_WEIGHTS.items()))


class QuestionIndicators(BaseModel):
    has_structure: bool = Field(..., alias="hasStructure")
    covers_expected_topics: Optional[float] = Field(None, alias="coversExpectedTopics")
    demonstrates_depth: bool = Field(..., alias="demonstratesDepth")
    shows_practical_understanding: bool = Field(..., alias="showsPracticalUnderstanding")

    model_config = {"populate_by_name": True}


class QuestionEvaluation(BaseModel):
    criteria: List[str]
    indicators: QuestionIndicators
    suggested_score: int = Field(..., alias="suggestedScore")

    model_config = {"populate_by_name": True}


class QuestionScore(BaseModel):
    """One weighted entry of the aggregation."""
    question_id: str
    scores: DimensionScores
    weight: float = Field(1.0, gt=0)


class Summary(BaseModel):
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    summary: str
    hiring_recommendation: str


class BehavioralPatterns(BaseModel):
    confidence_trend: str  # increasing | decreasing | stable
    stress_points: List[str] = Field(default_factory=list)
    recovery_ability: float
    consistency_score: float

class BehavioralInsights(BaseModel):
    handles_pressure_well: bool
    maintains_composure: bool
    shows_growth_during_interview: bool

class PatternReport(BaseModel):
    patterns: BehavioralPatterns
    insights: BehavioralInsights
    flags: List[CheatingFlag] = Field(default_factory=list)


class CodeSubmission(BaseModel):
    """A stored code evaluation attached to an interview."""
    problem_id: str
    problem: str
    code: str
    language: str
    evaluation: CodeEvaluationResult
    time_spent: Optional[float] = None


class AnsweredQuestion(BaseModel):
    question_id: str
    question: str
    answer: str
    score: int
    feedback: str

class CodeSubmissionResult(BaseModel):
    problem_id: str
    problem: str
    code: str
    language: str
    test_results: List[TestCaseResult] = Field(default_factory=list)
    score: int
    feedback: str


class InterviewResult(BaseModel):
    interview_id: str
    candidate_id: Optional[str] = None
    scores: Score
    transcript: str
    summary: str
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    hiring_recommendation: str
    flagged_behaviors: List[CheatingFlag] = Field(default_factory=list)
    questions_answered: List[AnsweredQuestion] = Field(default_factory=list)
    code_submissions: List[CodeSubmissionResult] = Field(default_factory=list)
    behavioral_patterns: Optional[PatternReport] = None
    duration: float = Field(..., description="Minutes")
    completed_at: str
    partial: bool = False
