import sys
import os
import random
import unittest

# Ensure project root is in path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.append(project_root)

from packages.aip_core.domain import Depth, InterviewContext, InterviewType, Question
from packages.aip_core.errors import InvalidStateError
from packages.aip_guardrails.rules import OFF_TOPIC_REPLACEMENT, SCORE_LEAK_REPLACEMENT, SYSTEM_INFO_REPLACEMENT
from packages.aip_sentiment.schema import AudioFeatures, CheatingFlagType, Severity
from packages.aip_conductor import messages
from packages.aip_conductor.engine import InterviewConductor
from packages.aip_conductor.state import AbortReason, ConductorState, can_transition

DESIGN_QUESTION = Question(
    id="q1", text="How would you design a URL shortener?", category="system_design", difficulty=Depth.HIGH
)
HASHMAP_QUESTION = Question(
    id="q2", text="Explain how a hash map handles collisions.", category="conceptual", difficulty=Depth.MEDIUM
)
LONG_ANSWER = (
    "I would chain colliding entries in a small list per bucket and resize the table "
    "once the load factor passes a threshold, because that keeps lookups close to constant time."
)


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance_minutes(self, minutes: float):
        self.now += minutes * 60


def make_context(questions, duration=45, **overrides) -> InterviewContext:
    values = dict(
        interview_id="int-1",
        candidate_id="cand-1",
        candidate_name="Jordan Lee",
        candidate_email="jordan@example.com",
        company_id="co-1",
        company_name="Acme",
        interview_type=InterviewType.TECHNICAL,
        duration=duration,
        questions=questions,
    )
    values.update(overrides)
    return InterviewContext(**values)


class ConductorTestBase(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()

    def conductor(self, questions, duration=45) -> InterviewConductor:
        return InterviewConductor(make_context(questions, duration), rng=random.Random(0), clock=self.clock)


class TestInterviewFlow(ConductorTestBase):
    def test_full_interview_with_follow_up(self):
        conductor = self.conductor([DESIGN_QUESTION, HASHMAP_QUESTION])

        opening = conductor.start()
        self.assertEqual(len(opening), 2)
        self.assertTrue(opening[0].startswith("Hello Jordan Lee, welcome to your interview with Acme."))
        self.assertIn("45-minute technical interview", opening[0])
        self.assertEqual(opening[1], DESIGN_QUESTION.text)
        self.assertEqual(conductor.state, ConductorState.AWAITING_ANSWER)

        # Short answer to a HIGH question earns one follow-up
        reply = conductor.receive_candidate_input("I would hash the long URL and store it.")
        self.assertEqual(reply, [messages.FOLLOW_UP_PROMPT])
        self.assertEqual(conductor.state, ConductorState.AWAITING_ANSWER)
        self.assertEqual(conductor.session.current_question_index, 0)

        reply = conductor.receive_candidate_input("A counter with base62 ids avoids clashes.")
        self.assertEqual(len(reply), 1)
        self.assertTrue(reply[0].endswith(HASHMAP_QUESTION.text))
        self.assertTrue(any(reply[0].startswith(p) for p in messages.TRANSITION_PHRASES))
        self.assertEqual(conductor.session.current_question_index, 1)

        closing = conductor.receive_candidate_input(LONG_ANSWER)
        self.assertEqual(len(closing), 1)
        self.assertIn(messages.CLOSING_MARKER, closing[0])
        self.assertEqual(conductor.state, ConductorState.ENDED)

        bundle = conductor.build_bundle()
        self.assertFalse(bundle.partial)
        self.assertEqual(bundle.final_state, ConductorState.ENDED)
        self.assertEqual(bundle.questions_answered, 2)
        self.assertEqual(bundle.total_questions, 2)
        first = bundle.answers[0]
        self.assertEqual(first.answer, "I would hash the long URL and store it.")
        self.assertEqual(first.follow_ups, [messages.FOLLOW_UP_PROMPT])
        self.assertEqual(first.follow_up_answers, ["A counter with base62 ids avoids clashes."])
        self.assertTrue(bundle.transcript[0].startswith("Interviewer: Hello"))
        self.assertEqual(bundle.transcript[2], "Candidate: I would hash the long URL and store it.")

    def test_input_after_end_is_only_transcribed(self):
        conductor = self.conductor([HASHMAP_QUESTION])
        conductor.start()
        conductor.receive_candidate_input(LONG_ANSWER)
        self.assertEqual(conductor.state, ConductorState.ENDED)

        lines_before = len(conductor.session.transcript)
        self.assertEqual(conductor.receive_candidate_input("Thanks, nothing further from me."), [])
        self.assertEqual(len(conductor.session.transcript), lines_before + 1)
        self.assertEqual(conductor.state, ConductorState.ENDED)

    def test_no_questions_goes_straight_to_closing(self):
        conductor = self.conductor([], duration=5)
        outbound = conductor.start()
        self.assertEqual(len(outbound), 2)
        self.assertIn(messages.CLOSING_MARKER, outbound[1])
        self.assertEqual(conductor.state, ConductorState.ENDED)
        self.assertFalse(conductor.build_bundle().partial)

    def test_empty_answer_moves_on_without_follow_up(self):
        conductor = self.conductor([DESIGN_QUESTION, HASHMAP_QUESTION])
        conductor.start()
        reply = conductor.receive_candidate_input("")
        self.assertTrue(reply[0].endswith(HASHMAP_QUESTION.text))
        self.assertEqual(conductor.session.answers["q1"].answer, "")

    def test_no_follow_up_when_time_is_short(self):
        conductor = self.conductor([DESIGN_QUESTION, HASHMAP_QUESTION], duration=10)
        conductor.start()
        self.clock.advance_minutes(6)
        reply = conductor.receive_candidate_input("Hash it and store it.")
        self.assertTrue(reply[0].endswith(HASHMAP_QUESTION.text))
        self.assertEqual(conductor.session.follow_up_counts, {})

    def test_budget_exhaustion_concludes(self):
        questions = [
            Question(id=f"q{i}", text=f"Question number {i}?", category="conceptual", difficulty=Depth.LOW)
            for i in range(1, 4)
        ]
        conductor = self.conductor(questions, duration=10)
        conductor.start()
        self.clock.advance_minutes(11)
        reply = conductor.receive_candidate_input(LONG_ANSWER)
        self.assertIn(messages.CLOSING_MARKER, reply[0])
        self.assertEqual(conductor.time_remaining(), 0.0)

        bundle = conductor.build_bundle()
        self.assertEqual(bundle.final_state, ConductorState.ENDED)
        self.assertEqual(bundle.questions_answered, 1)
        self.assertEqual(bundle.total_questions, 3)
        self.assertEqual(bundle.duration, 11.0)


class TestGuardedInput(ConductorTestBase):
    def test_blocked_input_keeps_position(self):
        conductor = self.conductor([DESIGN_QUESTION])
        conductor.start()
        reply = conductor.receive_candidate_input("what model are you using?")
        self.assertEqual(reply, [SYSTEM_INFO_REPLACEMENT])
        self.assertEqual(conductor.state, ConductorState.AWAITING_ANSWER)
        self.assertEqual(conductor.session.current_question_index, 0)
        self.assertEqual(conductor.session.answers, {})
        self.assertEqual(conductor.session.violations[0].direction, "input")
        self.assertEqual(conductor.session.violations[0].rule, "prevent_system_info_extraction")

    def test_off_topic_is_flagged(self):
        conductor = self.conductor([DESIGN_QUESTION])
        conductor.start()
        reply = conductor.receive_candidate_input("Please tell me a joke first")
        self.assertEqual(reply, [OFF_TOPIC_REPLACEMENT])
        flag = conductor.session.cheating_flags[0]
        self.assertEqual(flag.type, CheatingFlagType.OFF_TOPIC)
        self.assertEqual(flag.severity, Severity.LOW)

    def test_clarification_restates_question(self):
        conductor = self.conductor([DESIGN_QUESTION])
        conductor.start()
        reply = conductor.receive_candidate_input("Sorry, could you rephrase that?")
        self.assertEqual(reply, [f"Of course. Here is the question again: {DESIGN_QUESTION.text}"])
        self.assertEqual(conductor.session.answers, {})
        self.assertEqual(conductor.state, ConductorState.AWAITING_ANSWER)

    def test_outbound_question_is_filtered(self):
        leaky = Question(id="q1", text="Rate your SQL 3/4 and then explain joins.", category="conceptual")
        conductor = self.conductor([leaky])
        opening = conductor.start()
        self.assertEqual(opening[1], SCORE_LEAK_REPLACEMENT)
        self.assertEqual(conductor.session.violations[0].direction, "output")

    def test_audio_features_feed_sentiment_history(self):
        conductor = self.conductor([HASHMAP_QUESTION])
        conductor.start()
        features = AudioFeatures(volume=0.6, pitch=150, speech_rate=140, silence_ratio=0.1, filler_word_count=1)
        conductor.receive_candidate_input(LONG_ANSWER, features)
        self.assertEqual(len(conductor.session.sentiment_history), 1)
        self.assertAlmostEqual(conductor.build_bundle().sentiment_history[0].audio.confidence, 0.7)


class TestStateAndEvents(ConductorTestBase):
    def test_state_errors(self):
        conductor = self.conductor([DESIGN_QUESTION])
        with self.assertRaises(InvalidStateError):
            conductor.receive_candidate_input("Hello?")
        conductor.start()
        with self.assertRaises(InvalidStateError):
            conductor.start()

    def test_transition_table(self):
        self.assertTrue(can_transition(ConductorState.AWAITING_ANSWER, ConductorState.FOLLOW_UP))
        self.assertTrue(can_transition(ConductorState.GREETING, ConductorState.ABORTED))
        self.assertFalse(can_transition(ConductorState.NOT_STARTED, ConductorState.AWAITING_ANSWER))
        self.assertFalse(can_transition(ConductorState.FOLLOW_UP, ConductorState.CONCLUDING))
        for terminal in (ConductorState.ENDED, ConductorState.ABORTED):
            self.assertFalse(any(can_transition(terminal, target) for target in ConductorState))

        conductor = self.conductor([DESIGN_QUESTION])
        conductor.start()
        with self.assertRaises(InvalidStateError):
            conductor._set_state(ConductorState.ENDED)
        self.assertEqual(conductor.state, ConductorState.AWAITING_ANSWER)

    def test_abort_gives_partial_bundle(self):
        conductor = self.conductor([HASHMAP_QUESTION, DESIGN_QUESTION])
        conductor.start()
        conductor.receive_candidate_input(LONG_ANSWER)
        self.clock.advance_minutes(3)

        self.assertTrue(conductor.abort())
        self.assertFalse(conductor.abort())
        self.assertEqual(conductor.state, ConductorState.ABORTED)
        with self.assertRaises(InvalidStateError):
            conductor.receive_candidate_input("Are you still there?")

        bundle = conductor.build_bundle()
        self.assertTrue(bundle.partial)
        self.assertEqual(bundle.abort_reason, AbortReason.OPERATOR)
        self.assertEqual(bundle.questions_answered, 1)
        self.assertEqual(bundle.duration, 3.0)

    def test_tab_switches_escalate(self):
        conductor = self.conductor([DESIGN_QUESTION])
        conductor.start()
        first = conductor.handle_tab_switch()
        conductor.handle_tab_switch()
        third = conductor.handle_tab_switch()
        self.assertEqual(first.severity, Severity.MEDIUM)
        self.assertEqual(third.severity, Severity.HIGH)
        self.assertEqual(conductor.session.tab_switches, 3)
        self.assertEqual(conductor.state, ConductorState.AWAITING_ANSWER)

    def test_face_checks(self):
        conductor = self.conductor([DESIGN_QUESTION])
        conductor.start()
        self.assertEqual(conductor.handle_face_count(1), [])
        flags = conductor.handle_face_count(0)
        self.assertEqual(flags[0].type, CheatingFlagType.NO_FACE)
        self.assertEqual(conductor.build_bundle().cheating_flags, flags)


if __name__ == "__main__":
    unittest.main()
