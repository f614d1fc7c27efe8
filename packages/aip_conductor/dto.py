from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from packages.aip_core.domain import InterviewType, Question, utc_now_iso
from packages.aip_guardrails.rules import GuardrailCategory
from packages.aip_sentiment.schema import CheatingFlag, SentimentSample
from packages.aip_conductor.state import AbortReason, ConductorState, Speaker


class Utterance(BaseModel):
    speaker: Speaker
    text: str
    timestamp: str = Field(default_factory=utc_now_iso)

    def line(self) -> str:
        return f"{self.speaker.value}: {self.text}"


class AnswerRecord(BaseModel):
    """Everything the candidate said for one question, follow-ups included."""
    question: Question
    answer: str = ""
    follow_ups: List[str] = Field(default_factory=list, description="Follow-up prompts asked")
    follow_up_answers: List[str] = Field(default_factory=list)

    @property
    def question_id(self) -> str:
        return self.question.id

    def full_answer(self) -> str:
        return " ".join(part for part in [self.answer, *self.follow_up_answers] if part)


class GuardrailViolation(BaseModel):
    """Internal record of a tripped guardrail. Never sent to the candidate."""
    direction: str  # "input" | "output"
    rule: Optional[str] = None
    category: Optional[GuardrailCategory] = None
    reason: Optional[str] = None
    timestamp: str = Field(default_factory=utc_now_iso)


class SessionState(BaseModel):
    """
    Mutable state of one live interview.
    Only the conductor that owns it writes to it.
    """
    state: ConductorState = ConductorState.NOT_STARTED
    started_at: Optional[str] = None
    ended_at: Optional[str] = None
    current_question_index: int = 0
    transcript: List[Utterance] = Field(default_factory=list)
    sentiment_history: List[SentimentSample] = Field(default_factory=list)
    tab_switches: int = 0
    cheating_flags: List[CheatingFlag] = Field(default_factory=list)
    answers: Dict[str, AnswerRecord] = Field(default_factory=dict)
    follow_up_counts: Dict[str, int] = Field(default_factory=dict)
    violations: List[GuardrailViolation] = Field(default_factory=list)
    abort_reason: Optional[AbortReason] = None


class InterviewBundle(BaseModel):
    """Snapshot of a finished (or aborted) interview, handed to scoring."""
    interview_id: str
    candidate_id: Optional[str] = None
    candidate_name: str
    interview_type: InterviewType
    transcript: List[str] = Field(default_factory=list)
    answers: List[AnswerRecord] = Field(default_factory=list)
    sentiment_history: List[SentimentSample] = Field(default_factory=list)
    cheating_flags: List[CheatingFlag] = Field(default_factory=list)
    tab_switches: int = 0
    duration: float = Field(0.0, description="Elapsed minutes")
    questions_answered: int = 0
    total_questions: int = 0
    final_state: ConductorState
    partial: bool = False
    abort_reason: Optional[AbortReason] = None
    completed_at: str = Field(default_factory=utc_now_iso)
