import random
import time
from typing import Callable, List, Optional

from packages.aip_core.config import AIPConfig
from packages.aip_core.domain import Depth, InterviewContext, Question, utc_now_iso
from packages.aip_core.errors import InvalidStateError
from packages.aip_core.logging import get_logger
from packages.aip_guardrails.engine import GuardrailEngine
from packages.aip_guardrails.rules import GuardrailCategory
from packages.aip_guardrails.schema import GuardrailVerdict
from packages.aip_sentiment.analyzer import SentimentAnalyzer
from packages.aip_sentiment.schema import (
    AudioFeatures,
    BehaviorSignals,
    CheatingAnalysis,
    CheatingFlag,
    CheatingFlagType,
    FaceFeatures,
    Severity,
)
from packages.aip_conductor import messages
from packages.aip_conductor.dto import (
    AnswerRecord,
    GuardrailViolation,
    InterviewBundle,
    SessionState,
    Utterance,
)
from packages.aip_conductor.state import TERMINAL_STATES, AbortReason, ConductorState, Speaker, can_transition

logger = get_logger("aip.conductor")


class InterviewConductor:
    """
    State machine for one live interview.

    Every public method returns the interviewer messages to send, already passed
    through the output guardrail. Cheating events only touch the session record,
    never the conversational state.

    Randomness (transition phrases) and time are injected so runs are reproducible.
    """

    def __init__(
        self,
        context: InterviewContext,
        guardrails: Optional[GuardrailEngine] = None,
        analyzer: Optional[SentimentAnalyzer] = None,
        config: Optional[AIPConfig] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.context = context
        self.guardrails = guardrails or GuardrailEngine()
        self.analyzer = analyzer or SentimentAnalyzer()
        self.config = config or AIPConfig()
        self.rng = rng or random.Random()
        self.clock = clock

        self.session = SessionState()
        self._started_clock: Optional[float] = None
        self._ended_clock: Optional[float] = None

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def state(self) -> ConductorState:
        return self.session.state

    @property
    def is_finished(self) -> bool:
        return self.session.state in TERMINAL_STATES

    @property
    def current_question(self) -> Optional[Question]:
        index = self.session.current_question_index
        if 0 <= index < len(self.context.questions):
            return self.context.questions[index]
        return None

    def elapsed_minutes(self) -> float:
        if self._started_clock is None:
            return 0.0
        end = self._ended_clock if self._ended_clock is not None else self.clock()
        return max(0.0, (end - self._started_clock) / 60.0)

    def time_remaining(self) -> float:
        """Minutes left in the budget, never negative."""
        return max(0.0, self.context.duration - self.elapsed_minutes())

    # ------------------------------------------------------------------
    # Conversation
    # ------------------------------------------------------------------
    def start(self) -> List[str]:
        if self.session.state != ConductorState.NOT_STARTED:
            raise InvalidStateError(
                "Interview already started",
                details={"interview_id": self.context.interview_id, "state": self.session.state.value},
            )

        self._started_clock = self.clock()
        self.session.started_at = utc_now_iso()
        logger.info(
            f"Interview {self.context.interview_id} starting: "
            f"{len(self.context.questions)} questions, {self.context.duration} min"
        )

        self._set_state(ConductorState.GREETING)
        outbound = [self._emit(messages.greeting(self.context))]

        if not self.context.questions:
            outbound += self._conclude()
            return outbound

        outbound.append(self._emit(self.context.questions[0].text))
        self._set_state(ConductorState.AWAITING_ANSWER)
        return outbound

    def receive_candidate_input(self, text: Optional[str], audio_features: Optional[AudioFeatures] = None) -> List[str]:
        """
        One candidate utterance. Blocked input gets the guardrail redirect and
        leaves the interview where it was. Empty input counts as an empty answer.
        """
        if self.session.state == ConductorState.NOT_STARTED:
            raise InvalidStateError("Interview has not started", details={"interview_id": self.context.interview_id})
        if self.session.state == ConductorState.ABORTED:
            raise InvalidStateError("Interview was aborted", details={"interview_id": self.context.interview_id})

        text = text or ""
        self.session.transcript.append(Utterance(speaker=Speaker.CANDIDATE, text=text))

        if text.strip():
            verdict = self.guardrails.check_input(text)
            if not verdict.safe:
                return self._handle_blocked_input(verdict)

        if audio_features is not None:
            self.session.sentiment_history.append(self.analyzer.sample(audio_features=audio_features))

        if self.session.state != ConductorState.AWAITING_ANSWER:
            # Closing remarks already sent; keep the transcript, say nothing.
            return []

        if text.strip() and messages.is_clarification_request(text):
            logger.info(f"Interview {self.context.interview_id}: clarification requested")
            return [self._emit(messages.clarification(self.current_question))]

        return self._process_answer(text)

    def abort(self, reason: AbortReason = AbortReason.OPERATOR) -> bool:
        """Stop the interview where it is. Returns False when it had already finished."""
        if self.is_finished:
            return False
        logger.warning(f"Interview {self.context.interview_id} aborted in {self.session.state.value}: {reason.value}")
        self.session.abort_reason = reason
        self._finish(ConductorState.ABORTED)
        return True

    # ------------------------------------------------------------------
    # Behaviour events
    # ------------------------------------------------------------------
    def handle_tab_switch(self, timestamp: Optional[str] = None) -> CheatingFlag:
        self.session.tab_switches += 1
        analysis = self.analyzer.analyze_cheating_signals(
            BehaviorSignals(tab_switches=self.session.tab_switches), timestamp
        )
        flag = analysis.flags[0]
        self.session.cheating_flags.append(flag)
        logger.info(f"Interview {self.context.interview_id}: tab switch #{self.session.tab_switches} ({flag.severity.value})")
        return flag

    def handle_face_count(self, face_count: int, timestamp: Optional[str] = None) -> List[CheatingFlag]:
        flags = self.analyzer.analyze_face(FaceFeatures(face_count=face_count), timestamp).flags
        self.session.cheating_flags.extend(flags)
        if flags:
            logger.info(f"Interview {self.context.interview_id}: face check flagged ({face_count} faces)")
        return flags

    def handle_behavior_signals(self, signals: BehaviorSignals, timestamp: Optional[str] = None) -> CheatingAnalysis:
        analysis = self.analyzer.analyze_cheating_signals(signals, timestamp)
        self.session.cheating_flags.extend(analysis.flags)
        return analysis

    # ------------------------------------------------------------------
    # Result
    # ------------------------------------------------------------------
    def build_bundle(self) -> InterviewBundle:
        """Snapshot for scoring. Partial unless the interview reached ENDED."""
        ordered = [
            self.session.answers[q.id]
            for q in self.context.questions
            if q.id in self.session.answers
        ]
        return InterviewBundle(
            interview_id=self.context.interview_id,
            candidate_id=self.context.candidate_id,
            candidate_name=self.context.candidate_name,
            interview_type=self.context.interview_type,
            transcript=[u.line() for u in self.session.transcript],
            answers=ordered,
            sentiment_history=list(self.session.sentiment_history),
            cheating_flags=list(self.session.cheating_flags),
            tab_switches=self.session.tab_switches,
            duration=round(self.elapsed_minutes(), 2),
            questions_answered=len(ordered),
            total_questions=len(self.context.questions),
            final_state=self.session.state,
            partial=self.session.state != ConductorState.ENDED,
            abort_reason=self.session.abort_reason,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _handle_blocked_input(self, verdict: GuardrailVerdict) -> List[str]:
        self.session.violations.append(GuardrailViolation(
            direction="input", rule=verdict.rule, category=verdict.category, reason=verdict.reason,
        ))
        if verdict.category == GuardrailCategory.OFF_TOPIC:
            self.session.cheating_flags.append(CheatingFlag(
                type=CheatingFlagType.OFF_TOPIC,
                severity=Severity.LOW,
                timestamp=utc_now_iso(),
                description="Candidate tried to divert from the interview",
            ))
        return [self._emit(verdict.replacement)]

    def _process_answer(self, answer: str) -> List[str]:
        question = self.current_question
        record = self.session.answers.get(question.id)
        if record is None:
            self.session.answers[question.id] = AnswerRecord(question=question, answer=answer)
        else:
            record.follow_up_answers.append(answer)

        if self._should_ask_follow_up(question, answer):
            return self._ask_follow_up(question)
        return self._transition()

    def _should_ask_follow_up(self, question: Question, answer: str) -> bool:
        if not answer.strip():
            return False
        if self.session.follow_up_counts.get(question.id, 0) >= self.config.MAX_FOLLOW_UPS_PER_QUESTION:
            return False
        if self.time_remaining() <= self.config.FOLLOW_UP_MIN_REMAINING_MIN:
            return False
        return question.difficulty == Depth.HIGH and len(answer) < self.config.FOLLOW_UP_MAX_ANSWER_CHARS

    def _ask_follow_up(self, question: Question) -> List[str]:
        self._set_state(ConductorState.FOLLOW_UP)
        self.session.follow_up_counts[question.id] = self.session.follow_up_counts.get(question.id, 0) + 1
        self.session.answers[question.id].follow_ups.append(messages.FOLLOW_UP_PROMPT)
        outbound = [self._emit(messages.FOLLOW_UP_PROMPT)]
        self._set_state(ConductorState.AWAITING_ANSWER)
        return outbound

    def _transition(self) -> List[str]:
        self._set_state(ConductorState.TRANSITIONING)
        self.session.current_question_index += 1

        if self.session.current_question_index >= len(self.context.questions):
            return self._conclude()
        if self.time_remaining() <= 0:
            logger.info(
                f"Interview {self.context.interview_id}: time budget exhausted, "
                f"skipping {len(self.context.questions) - self.session.current_question_index} questions"
            )
            return self._conclude()

        phrase = self.rng.choice(messages.TRANSITION_PHRASES)
        outbound = [self._emit(messages.transition(phrase, self.current_question))]
        self._set_state(ConductorState.AWAITING_ANSWER)
        return outbound

    def _conclude(self) -> List[str]:
        self._set_state(ConductorState.CONCLUDING)
        outbound = [self._emit(messages.conclusion(self.context.candidate_name))]
        self._finish(ConductorState.ENDED)
        return outbound

    def _finish(self, state: ConductorState):
        self._ended_clock = self.clock()
        self.session.ended_at = utc_now_iso()
        self._set_state(state)

    def _emit(self, text: str) -> str:
        verdict = self.guardrails.check_output(text)
        if not verdict.safe:
            self.session.violations.append(GuardrailViolation(
                direction="output", rule=verdict.rule, category=verdict.category, reason=verdict.reason,
            ))
            text = verdict.replacement
        self.session.transcript.append(Utterance(speaker=Speaker.INTERVIEWER, text=text))
        return text

    def _set_state(self, new_state: ConductorState):
        old_state = self.session.state
        if not can_transition(old_state, new_state):
            raise InvalidStateError(
                f"Illegal transition {old_state.value} -> {new_state.value}",
                details={"interview_id": self.context.interview_id},
            )
        self.session.state = new_state
        logger.info(f"Interview {self.context.interview_id}: {old_state.value} -> {new_state.value}")
