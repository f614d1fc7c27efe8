from typing import Optional, List, Dict
from pydantic import BaseModel, Field

from packages.aip_core.domain import Depth, InterviewContext, InterviewType, QuestionType
from packages.aip_sentiment.schema import AudioFeatures, BehaviorSignals, FaceFeatures, SentimentSample
from packages.aip_code_eval.schema import TestCase
from packages.aip_scoring.schema import QuestionScore
from packages.aip_orchestrator.schema import ParsedResume

# --- Request Schemas ---

class GuardrailCheckRequest(BaseModel):
    text: str
    direction: str = Field("input", pattern="^(input|output)$")

class SentimentAnalyzeRequest(BaseModel):
    audio_features: Optional[AudioFeatures] = None
    face_features: Optional[FaceFeatures] = None
    timestamp: Optional[str] = None

class CheatingSignalsRequest(BaseModel):
    signals: BehaviorSignals
    timestamp: Optional[str] = None

class CodeEvaluateRequest(BaseModel):
    code: str
    language: str
    test_cases: List[TestCase]
    time_limit_sec: Optional[float] = None
    memory_limit_mb: Optional[int] = None
    time_spent: Optional[float] = None

class CodeSubmitRequest(BaseModel):
    problem_id: str
    code: str
    language: str
    time_spent: Optional[float] = None

class QuestionGenerateRequest(BaseModel):
    job_id: str
    interview_type: InterviewType
    duration: int
    depth: Depth = Depth.MEDIUM
    candidate_resume: Optional[ParsedResume] = None

class FollowUpRequest(BaseModel):
    original_question: str
    candidate_answer: str
    question_type: InterviewType = InterviewType.TECHNICAL
    depth: Depth = Depth.MEDIUM
    time_remaining: float = Field(..., description="Minutes")

class ScoreQuestionRequest(BaseModel):
    question: str
    answer: str
    expected_topics: Optional[List[str]] = None
    difficulty: Depth = Depth.MEDIUM
    question_type: QuestionType = QuestionType.TECHNICAL

class AggregateRequest(BaseModel):
    question_scores: List[QuestionScore]
    sentiment_history: List[SentimentSample] = Field(default_factory=list)

class ResumeParseRequest(BaseModel):
    text: str

class PrepareInterviewRequest(BaseModel):
    context: InterviewContext
    resume_text: Optional[str] = None

class SegmentRequest(BaseModel):
    candidate_input: Optional[str] = None
    audio_features: Optional[AudioFeatures] = None

class MatchRequest(BaseModel):
    job_id: str
    candidate_skills: List[str]

# --- Response Schemas ---

class PlanResponse(BaseModel):
    interview_type: InterviewType
    duration: int
    total_questions: int
    distribution: Dict[str, int]
