import statistics
from typing import List, Optional, Sequence

from packages.aip_core.domain import Depth, QuestionType
from packages.aip_core.errors import AggregationError
from packages.aip_core.utils import clamp, round_half_up
from packages.aip_core.logging import get_logger
from packages.aip_conductor.dto import AnswerRecord, InterviewBundle
from packages.aip_conductor.messages import analyze_answer_gaps
from packages.aip_sentiment.schema import CheatingFlag, SentimentSample, Tone
from packages.aip_scoring import rules
from packages.aip_scoring.schema import (
    AnsweredQuestion,
    BehavioralInsights,
    BehavioralPatterns,
    CodeSubmission,
    CodeSubmissionResult,
    DimensionScores,
    InterviewResult,
    PatternReport,
    QuestionEvaluation,
    QuestionIndicators,
    QuestionScore,
    Score,
    Summary,
)
from packages.aip_scoring.weights import SENTIMENT_ADJUSTMENT_SCALE, SENTIMENT_NEUTRAL_CONFIDENCE

logger = get_logger("aip.scoring")

STRENGTH_THRESHOLD = 80
WEAKNESS_THRESHOLD = 60
RECOMMENDATION_THRESHOLD = 70
MAX_NAMED_ANSWERS = 3

TREND_MIN_SAMPLES = 3
TREND_DELTA = 0.1

STRENGTH_LABELS = {
    "communication": "Excellent communication skills",
    "technical": "Strong technical knowledge",
    "problem_solving": "Outstanding problem-solving ability",
    "confidence": "High confidence and professional presence",
}
WEAKNESS_LABELS = {
    "communication": "Communication needs improvement",
    "technical": "Technical knowledge gaps identified",
    "problem_solving": "Problem-solving approach needs development",
    "confidence": "Could benefit from confidence building",
}
AREA_NAMES = {
    "communication": "communication",
    "technical": "technical",
    "problem_solving": "problem solving",
    "confidence": "confidence",
}


def _audio_confidences(history: Sequence[SentimentSample]) -> List[float]:
    return [s.audio.confidence for s in history if s.audio is not None]


def score_question(
    question: str,
    answer: str,
    expected_topics: Optional[List[str]] = None,
    difficulty: Depth = Depth.MEDIUM,
    question_type: QuestionType = QuestionType.TECHNICAL
) -> QuestionEvaluation:
    """Keyword-indicator evaluation of one answer. `question` is carried for logging only."""
    answer = answer or ""
    indicators = QuestionIndicators(
        has_structure=rules.has_structure(answer, question_type),
        covers_expected_topics=rules.topic_coverage(answer, expected_topics),
        demonstrates_depth=rules.demonstrates_depth(answer),
        shows_practical_understanding=rules.shows_practical_understanding(answer),
    )
    suggested = rules.calculate_question_score(
        indicators.has_structure,
        indicators.demonstrates_depth,
        indicators.shows_practical_understanding,
        indicators.covers_expected_topics,
        difficulty,
    )
    logger.debug(f"Scored question '{question[:40]}': {suggested}")
    return QuestionEvaluation(
        criteria=rules.evaluation_criteria(question_type, difficulty),
        indicators=indicators,
        suggested_score=suggested,
    )


def dimension_scores(evaluation: QuestionEvaluation, answer: str, difficulty: Depth = Depth.MEDIUM) -> DimensionScores:
    """
    Map one evaluated answer onto the four dimensions.
    An empty answer scores zero everywhere.
    """
    if not answer or not answer.strip():
        return DimensionScores(communication=0, technical=0, problem_solving=0, confidence=0)

    ind = evaluation.indicators
    return DimensionScores(
        communication=rules.communication_points(answer, ind.has_structure, ind.shows_practical_understanding),
        technical=evaluation.suggested_score,
        problem_solving=rules.problem_solving_points(
            ind.demonstrates_depth, ind.shows_practical_understanding, ind.covers_expected_topics, difficulty
        ),
        confidence=rules.confidence_points(answer),
    )


def aggregate(question_scores: Sequence[QuestionScore], sentiment_history: Optional[Sequence[SentimentSample]] = None) -> Score:
    """
    Weighted mean per dimension, then a sentiment nudge on confidence.
    Overall follows from the dimensions.
    """
    if not question_scores:
        raise AggregationError("no scores to aggregate")

    total_weight = sum(q.weight for q in question_scores)

    def mean(dim: str) -> int:
        return round_half_up(sum(getattr(q.scores, dim) * q.weight for q in question_scores) / total_weight)

    communication = mean("communication")
    technical = mean("technical")
    problem_solving = mean("problem_solving")
    confidence = mean("confidence")

    audio = _audio_confidences(sentiment_history or [])
    if audio:
        mean_audio = sum(audio) / len(audio)
        adjustment = (mean_audio - SENTIMENT_NEUTRAL_CONFIDENCE) * SENTIMENT_ADJUSTMENT_SCALE
        confidence = round_half_up(clamp(confidence * (1 + adjustment)))

    return Score(
        communication=communication,
        technical=technical,
        problem_solving=problem_solving,
        confidence=confidence,
    )


def _dimensions(score: Score):
    return [(dim, getattr(score, dim)) for dim in ("communication", "technical", "problem_solving", "confidence")]

def strongest_area(score: Score) -> str:
    # Ties go to the earlier dimension
    dim, _ = max(_dimensions(score), key=lambda item: item[1])
    return AREA_NAMES[dim]

def identify_strengths(score: Score, strong_answers: Sequence[str]) -> List[str]:
    strengths = [STRENGTH_LABELS[dim] for dim, value in _dimensions(score) if value >= STRENGTH_THRESHOLD]
    if strong_answers:
        strengths.append("Particularly strong in: " + ", ".join(strong_answers[:MAX_NAMED_ANSWERS]))
    return strengths

def identify_weaknesses(score: Score, weak_answers: Sequence[str]) -> List[str]:
    weaknesses = [WEAKNESS_LABELS[dim] for dim, value in _dimensions(score) if value < WEAKNESS_THRESHOLD]
    if weak_answers:
        weaknesses.append("Areas for improvement: " + ", ".join(weak_answers[:MAX_NAMED_ANSWERS]))
    return weaknesses

def generate_recommendations(score: Score, experience_level: str) -> List[str]:
    recommendations = []
    if score.technical < RECOMMENDATION_THRESHOLD:
        recommendations.append("Consider additional technical training or certifications")
    if score.communication < RECOMMENDATION_THRESHOLD:
        recommendations.append("Practice explaining technical concepts to non-technical audiences")
    if experience_level == "junior" and score.overall >= RECOMMENDATION_THRESHOLD:
        recommendations.append("Strong potential for growth with mentorship")
    return recommendations

def hiring_recommendation(score: Score, experience_level: str) -> str:
    if score.overall >= 80:
        return "STRONG HIRE - Exceeds requirements"
    if score.overall >= 70:
        return "HIRE - Meets requirements well"
    if score.overall >= 60 and experience_level == "junior":
        return "CONSIDER - Shows potential with proper support"
    return "NO HIRE - Does not meet current requirements"

def summary_sentence(score: Score, experience_level: str) -> str:
    if score.overall >= 80:
        performance = "excellent"
    elif score.overall >= 70:
        performance = "good"
    elif score.overall >= 60:
        performance = "satisfactory"
    else:
        performance = "below expectations"
    verdict = "meets or exceeds" if score.overall >= 70 else "falls short of"
    return (
        f"The candidate demonstrated {performance} overall performance "
        f"with particular strength in {strongest_area(score)}. "
        f"For a {experience_level}-level position, the candidate {verdict} expectations."
    )


def summarize(score: Score, strong_answers: Sequence[str], weak_answers: Sequence[str], experience_level: str) -> Summary:
    return Summary(
        strengths=identify_strengths(score, strong_answers),
        weaknesses=identify_weaknesses(score, weak_answers),
        recommendations=generate_recommendations(score, experience_level),
        summary=summary_sentence(score, experience_level),
        hiring_recommendation=hiring_recommendation(score, experience_level),
    )


# -------------------------------------------------------------------------
# Behavioural patterns
# -------------------------------------------------------------------------
def confidence_trend(history: Sequence[SentimentSample]) -> str:
    values = _audio_confidences(history)
    if len(values) < TREND_MIN_SAMPLES:
        return "stable"
    middle = len(values) // 2
    first = sum(values[:middle]) / middle
    second = sum(values[middle:]) / (len(values) - middle)
    if second > first + TREND_DELTA:
        return "increasing"
    if second < first - TREND_DELTA:
        return "decreasing"
    return "stable"

def _is_stressed(sample: SentimentSample) -> bool:
    return sample.audio is not None and sample.audio.tone in (Tone.STRESSED, Tone.NERVOUS)

def stress_points(history: Sequence[SentimentSample]) -> List[str]:
    return [s.timestamp for s in history if _is_stressed(s)]

def recovery_ability(history: Sequence[SentimentSample]) -> float:
    """Share of stressed readings followed by a calm one. No stress at all counts as full recovery."""
    audio = [s for s in history if s.audio is not None]
    stressed_with_next = [i for i in range(len(audio) - 1) if _is_stressed(audio[i])]
    trailing_stress = 1 if audio and _is_stressed(audio[-1]) else 0
    total_stressed = len(stressed_with_next) + trailing_stress
    if total_stressed == 0:
        return 1.0
    recovered = sum(1 for i in stressed_with_next if not _is_stressed(audio[i + 1]))
    return round(recovered / total_stressed, 2)

def consistency_score(history: Sequence[SentimentSample]) -> float:
    values = _audio_confidences(history)
    if len(values) < 2:
        return 1.0
    return round(clamp(1 - statistics.pstdev(values), 0.0, 1.0), 2)

def behavioral_patterns(history: Sequence[SentimentSample], cheating_flags: Optional[Sequence[CheatingFlag]] = None) -> PatternReport:
    patterns = BehavioralPatterns(
        confidence_trend=confidence_trend(history),
        stress_points=stress_points(history),
        recovery_ability=recovery_ability(history),
        consistency_score=consistency_score(history),
    )
    insights = BehavioralInsights(
        handles_pressure_well=len(patterns.stress_points) < 3 and patterns.recovery_ability > 0.7,
        maintains_composure=patterns.consistency_score > 0.8,
        shows_growth_during_interview=patterns.confidence_trend == "increasing",
    )
    return PatternReport(patterns=patterns, insights=insights, flags=list(cheating_flags or []))


# -------------------------------------------------------------------------
# Whole interview
# -------------------------------------------------------------------------
def _answer_feedback(evaluation: QuestionEvaluation, answer: str) -> str:
    if not answer.strip():
        return "No answer given."
    if evaluation.suggested_score >= STRENGTH_THRESHOLD:
        opening = "Strong answer."
    elif evaluation.suggested_score >= WEAKNESS_THRESHOLD:
        opening = "Adequate answer."
    else:
        opening = "Answer lacked depth."
    gaps = analyze_answer_gaps(answer)
    if gaps:
        return f"{opening} Could be improved with: {', '.join(gaps)}."
    return opening


class ScoringEngine:
    """
    Turns a finished interview bundle and its code submissions into the final result.
    Produces the result only; storing it is the caller's job.
    """

    def score_interview(
        self,
        bundle: InterviewBundle,
        code_submissions: Sequence[CodeSubmission] = (),
        experience_level: str = "mid"
    ) -> InterviewResult:
        entries: List[QuestionScore] = []
        answered: List[AnsweredQuestion] = []
        strong: List[str] = []
        weak: List[str] = []

        for record in bundle.answers:
            evaluation, dims = self._score_record(record)
            entries.append(QuestionScore(question_id=record.question_id, scores=dims))
            answer = record.full_answer()
            question_score = evaluation.suggested_score if answer.strip() else 0
            answered.append(AnsweredQuestion(
                question_id=record.question_id,
                question=record.question.text,
                answer=answer,
                score=question_score,
                feedback=_answer_feedback(evaluation, answer),
            ))
            if question_score >= STRENGTH_THRESHOLD:
                strong.append(record.question.text)
            elif question_score < WEAKNESS_THRESHOLD:
                weak.append(record.question.text)

        code_results: List[CodeSubmissionResult] = []
        for submission in code_submissions:
            result = submission.evaluation
            entries.append(QuestionScore(
                question_id=submission.problem_id,
                scores=DimensionScores(
                    communication=round_half_up(result.quality.quality),
                    technical=result.score,
                    problem_solving=result.score,
                    confidence=result.score,
                ),
            ))
            code_results.append(CodeSubmissionResult(
                problem_id=submission.problem_id,
                problem=submission.problem,
                code=submission.code,
                language=submission.language,
                test_results=result.results,
                score=result.score,
                feedback=result.feedback,
            ))

        score = aggregate(entries, bundle.sentiment_history)
        summary = summarize(score, strong, weak, experience_level)
        patterns = behavioral_patterns(bundle.sentiment_history, bundle.cheating_flags) if bundle.sentiment_history else None

        logger.info(
            f"Interview {bundle.interview_id} scored: overall {score.overall} "
            f"({len(bundle.answers)} answers, {len(code_results)} code submissions, partial={bundle.partial})"
        )
        return InterviewResult(
            interview_id=bundle.interview_id,
            candidate_id=bundle.candidate_id,
            scores=score,
            transcript="\n".join(bundle.transcript),
            summary=summary.summary,
            strengths=summary.strengths,
            weaknesses=summary.weaknesses,
            recommendations=summary.recommendations,
            hiring_recommendation=summary.hiring_recommendation,
            flagged_behaviors=list(bundle.cheating_flags),
            questions_answered=answered,
            code_submissions=code_results,
            behavioral_patterns=patterns,
            duration=bundle.duration,
            completed_at=bundle.completed_at,
            partial=bundle.partial,
        )

    @staticmethod
    def _score_record(record: AnswerRecord):
        question = record.question
        answer = record.full_answer()
        evaluation = score_question(
            question.text,
            answer,
            expected_topics=question.expected_topics,
            difficulty=question.difficulty,
            question_type=question.question_type(),
        )
        return evaluation, dimension_scores(evaluation, answer, question.difficulty)
