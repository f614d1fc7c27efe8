import sys
import os
import random
import unittest

# Ensure project root is in path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.append(project_root)

from packages.aip_core.domain import Depth, InterviewContext, InterviewType, Question, QuestionType
from packages.aip_core.errors import AggregationError
from packages.aip_code_eval.schema import (
    CodeEvaluationResult,
    ComplexityEstimate,
    ComplexityLevel,
    QualityAnalysis,
)
from packages.aip_conductor.dto import AnswerRecord, InterviewBundle
from packages.aip_conductor.engine import InterviewConductor
from packages.aip_conductor.state import ConductorState
from packages.aip_sentiment.schema import AudioSentiment, Pace, SentimentSample, Tone, VolumeLevel
from packages.aip_scoring import rules
from packages.aip_scoring.engine import (
    ScoringEngine,
    aggregate,
    behavioral_patterns,
    confidence_trend,
    consistency_score,
    dimension_scores,
    hiring_recommendation,
    recovery_ability,
    score_question,
)
from packages.aip_scoring.schema import CodeSubmission, DimensionScores, QuestionScore, Score

STRONG_ANSWER = (
    "First, I would add indexes because reads dominate. "
    "It depends on the workload; for example in a project we added caching too."
)
INDEX_QUESTION = Question(
    id="q1",
    text="How would you speed up a slow read path?",
    category="conceptual",
    expected_topics=["indexes", "caching"],
)
SHARDING_QUESTION = Question(id="q2", text="When would you shard a database?", category="conceptual")


def sample(confidence: float, tone: Tone = Tone.NEUTRAL, timestamp: str = "t") -> SentimentSample:
    return SentimentSample(
        timestamp=timestamp,
        audio=AudioSentiment(confidence=confidence, pace=Pace.NORMAL, tone=tone, volume=VolumeLevel.NORMAL),
    )


def entry(question_id: str, communication: int, technical: int, problem_solving: int, confidence: int, weight: float = 1.0):
    return QuestionScore(
        question_id=question_id,
        scores=DimensionScores(
            communication=communication, technical=technical, problem_solving=problem_solving, confidence=confidence
        ),
        weight=weight,
    )


def code_evaluation(score: int, quality: int) -> CodeEvaluationResult:
    return CodeEvaluationResult(
        success=True,
        passed_tests=2,
        total_tests=2,
        summary="Passed 2/2 test cases",
        complexity=ComplexityEstimate(time="O(n)", space="O(1)"),
        quality=QualityAnalysis(
            has_comments=True,
            has_descriptive_names=True,
            has_error_handling=True,
            has_edge_cases=False,
            complexity=ComplexityLevel.LOW,
            line_count=12,
            quality=quality,
            feedback="Excellent code quality! Well-structured with good practices.",
        ),
        score=score,
        feedback="Excellent solution!",
    )


class TestScoreModel(unittest.TestCase):
    def test_overall_follows_dimensions(self):
        score = Score(communication=70, technical=80, problem_solving=90, confidence=60)
        self.assertEqual(score.overall, 79)
        self.assertEqual(score.model_dump(by_alias=True)["problemSolving"], 90)
        self.assertEqual(score.model_dump()["overall"], 79)

    def test_hiring_bands(self):
        self.assertEqual(
            hiring_recommendation(Score(communication=80, technical=80, problem_solving=80, confidence=80), "mid"),
            "STRONG HIRE - Exceeds requirements",
        )
        borderline = Score(communication=60, technical=60, problem_solving=60, confidence=60)
        self.assertEqual(hiring_recommendation(borderline, "junior"), "CONSIDER - Shows potential with proper support")
        self.assertEqual(hiring_recommendation(borderline, "senior"), "NO HIRE - Does not meet current requirements")


class TestQuestionScoring(unittest.TestCase):
    def test_strong_answer(self):
        evaluation = score_question(INDEX_QUESTION.text, STRONG_ANSWER, ["indexes", "caching"])
        self.assertTrue(evaluation.indicators.has_structure)
        self.assertTrue(evaluation.indicators.demonstrates_depth)
        self.assertTrue(evaluation.indicators.shows_practical_understanding)
        self.assertEqual(evaluation.indicators.covers_expected_topics, 1.0)
        self.assertEqual(evaluation.suggested_score, 100)
        self.assertIn("trade-off analysis", evaluation.criteria)

    def test_difficulty_multiplier(self):
        plain = "Add an index on the column."
        self.assertEqual(score_question("q", plain, difficulty=Depth.MEDIUM).suggested_score, 60)
        self.assertEqual(score_question("q", plain, difficulty=Depth.LOW).suggested_score, 54)
        self.assertEqual(score_question("q", plain, difficulty=Depth.HIGH).suggested_score, 66)

    def test_behavioral_structure(self):
        answer = "The situation was a failing release and my action was to roll back."
        evaluation = score_question("q", answer, question_type=QuestionType.BEHAVIORAL)
        self.assertTrue(evaluation.indicators.has_structure)
        self.assertIsNone(evaluation.indicators.covers_expected_topics)

    def test_dimensions(self):
        evaluation = score_question(INDEX_QUESTION.text, STRONG_ANSWER, ["indexes", "caching"])
        dims = dimension_scores(evaluation, STRONG_ANSWER)
        self.assertEqual(dims.communication, 85)
        self.assertEqual(dims.technical, 100)
        self.assertEqual(dims.problem_solving, 100)
        self.assertEqual(dims.confidence, 80)

    def test_empty_answer_scores_zero(self):
        evaluation = score_question("q", "")
        dims = dimension_scores(evaluation, "   ")
        self.assertEqual(dims, DimensionScores(communication=0, technical=0, problem_solving=0, confidence=0))

    def test_hedging_lowers_confidence(self):
        self.assertEqual(rules.confidence_points("I think maybe it is probably fine"), 50)
        self.assertEqual(rules.confidence_points("maybe maybe maybe maybe maybe maybe"), 40)
        self.assertEqual(rules.confidence_points("Use a B-tree index."), 80)


class TestAggregation(unittest.TestCase):
    def test_empty_input(self):
        with self.assertRaises(AggregationError):
            aggregate([])

    def test_weighted_mean(self):
        score = aggregate([entry("a", 60, 40, 60, 60, weight=1), entry("b", 60, 80, 60, 60, weight=3)])
        self.assertEqual(score.technical, 70)
        self.assertEqual(score.communication, 60)

    def test_sentiment_nudges_confidence(self):
        scores = [entry("a", 80, 80, 80, 80)]
        self.assertEqual(aggregate(scores, [sample(1.0)]).confidence, 88)
        self.assertEqual(aggregate(scores, [sample(0.0)]).confidence, 72)
        self.assertEqual(aggregate(scores, [sample(0.5)]).confidence, 80)
        # Face-only history leaves confidence alone
        self.assertEqual(aggregate(scores, [SentimentSample(timestamp="t")]).confidence, 80)


class TestBehaviouralPatterns(unittest.TestCase):
    def test_trend(self):
        self.assertEqual(confidence_trend([sample(0.3), sample(0.4), sample(0.7), sample(0.8)]), "increasing")
        self.assertEqual(confidence_trend([sample(0.8), sample(0.8), sample(0.3)]), "decreasing")
        self.assertEqual(confidence_trend([sample(0.1), sample(0.9)]), "stable")

    def test_recovery(self):
        history = [sample(0.3, Tone.STRESSED), sample(0.3, Tone.NERVOUS), sample(0.6), sample(0.3, Tone.STRESSED)]
        self.assertEqual(recovery_ability(history), 0.33)
        self.assertEqual(recovery_ability([sample(0.6), sample(0.7)]), 1.0)

    def test_consistency(self):
        self.assertEqual(consistency_score([sample(0.5), sample(0.5)]), 1.0)
        self.assertEqual(consistency_score([sample(0.2), sample(0.8)]), 0.7)
        self.assertEqual(consistency_score([sample(0.2)]), 1.0)

    def test_report(self):
        history = [
            sample(0.3, Tone.NERVOUS, "t1"),
            sample(0.6, Tone.NEUTRAL, "t2"),
            sample(0.8, Tone.CONFIDENT, "t3"),
            sample(0.8, Tone.CONFIDENT, "t4"),
        ]
        report = behavioral_patterns(history)
        self.assertEqual(report.patterns.stress_points, ["t1"])
        self.assertEqual(report.patterns.confidence_trend, "increasing")
        self.assertTrue(report.insights.handles_pressure_well)
        self.assertTrue(report.insights.shows_growth_during_interview)


class TestScoringEngine(unittest.TestCase):
    def bundle(self, answers, **overrides) -> InterviewBundle:
        values = dict(
            interview_id="int-9",
            candidate_id="cand-9",
            candidate_name="Riley",
            interview_type=InterviewType.TECHNICAL,
            transcript=["Interviewer: Hello", "Candidate: Hi"],
            answers=answers,
            duration=12.5,
            questions_answered=len(answers),
            total_questions=2,
            final_state=ConductorState.ENDED,
        )
        values.update(overrides)
        return InterviewBundle(**values)

    def test_scores_answers(self):
        bundle = self.bundle([
            AnswerRecord(question=INDEX_QUESTION, answer=STRONG_ANSWER),
            AnswerRecord(question=SHARDING_QUESTION, answer=""),
        ])
        result = ScoringEngine().score_interview(bundle, experience_level="mid")

        self.assertEqual(result.scores.communication, 43)
        self.assertEqual(result.scores.technical, 50)
        self.assertEqual(result.scores.problem_solving, 50)
        self.assertEqual(result.scores.confidence, 40)
        self.assertEqual(result.scores.overall, 48)

        self.assertEqual([q.score for q in result.questions_answered], [100, 0])
        self.assertEqual(result.questions_answered[1].feedback, "No answer given.")
        self.assertIn(f"Particularly strong in: {INDEX_QUESTION.text}", result.strengths)
        self.assertIn(f"Areas for improvement: {SHARDING_QUESTION.text}", result.weaknesses)
        self.assertIn("Consider additional technical training or certifications", result.recommendations)
        self.assertEqual(result.hiring_recommendation, "NO HIRE - Does not meet current requirements")
        self.assertIn("particular strength in technical", result.summary)
        self.assertIn("For a mid-level position", result.summary)
        self.assertEqual(result.transcript, "Interviewer: Hello\nCandidate: Hi")
        self.assertIsNone(result.behavioral_patterns)
        self.assertFalse(result.partial)

    def test_code_submissions_join_the_mean(self):
        bundle = self.bundle([
            AnswerRecord(question=INDEX_QUESTION, answer=STRONG_ANSWER),
            AnswerRecord(question=SHARDING_QUESTION, answer=""),
        ])
        submission = CodeSubmission(
            problem_id="p1", problem="Two Sum", code="def solve(): pass", language="python",
            evaluation=code_evaluation(score=80, quality=90),
        )
        result = ScoringEngine().score_interview(bundle, [submission])

        self.assertEqual(result.scores.technical, 60)
        self.assertEqual(result.scores.communication, 58)
        self.assertEqual(len(result.code_submissions), 1)
        self.assertEqual(result.code_submissions[0].score, 80)

    def test_follow_up_answers_count_toward_the_question(self):
        record = AnswerRecord(
            question=INDEX_QUESTION,
            answer="Add indexes.",
            follow_ups=["Can you elaborate?"],
            follow_up_answers=["First check the plan because caching may hide the real cost."],
        )
        result = ScoringEngine().score_interview(self.bundle([record], total_questions=1))
        self.assertIn("caching", result.questions_answered[0].answer)
        self.assertTrue(result.questions_answered[0].answer.startswith("Add indexes."))

    def test_partial_bundle_from_conductor(self):
        context = InterviewContext(
            interview_id="int-10",
            candidate_name="Riley",
            candidate_email="riley@example.com",
            company_id="co",
            interview_type=InterviewType.TECHNICAL,
            duration=30,
            questions=[INDEX_QUESTION, SHARDING_QUESTION],
        )
        conductor = InterviewConductor(context, rng=random.Random(0))
        conductor.start()
        conductor.receive_candidate_input(STRONG_ANSWER)
        conductor.handle_tab_switch()
        conductor.abort()

        result = ScoringEngine().score_interview(conductor.build_bundle())
        self.assertTrue(result.partial)
        self.assertEqual(len(result.questions_answered), 1)
        self.assertEqual(len(result.flagged_behaviors), 1)
        self.assertEqual(result.scores.technical, 100)


if __name__ == "__main__":
    unittest.main()
