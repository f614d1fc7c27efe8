from typing import Dict

from packages.aip_core.utils import round_half_up

from packages.aip_code_eval.complexity import LINEAR, LINEARITHMIC
from packages.aip_code_eval.schema import (
    ComplexityEstimate,
    ProblemDifficulty,
    QualityAnalysis,
    TestRunSummary,
)

# Expected solve time in minutes per difficulty
EXPECTED_SOLVE_MINUTES: Dict[ProblemDifficulty, int] = {
    ProblemDifficulty.EASY: 15,
    ProblemDifficulty.MEDIUM: 25,
    ProblemDifficulty.HARD: 40,
}

CORRECTNESS_WEIGHT = 40
QUALITY_WEIGHT = 20

EFFICIENCY_BASE = 15
EFFICIENCY_QUADRATIC_TIGHT = 10
EFFICIENCY_GOOD = 20
TIGHT_EXPECTED_MINUTES = 30

PROBLEM_SOLVING_BASE = 10
PROBLEM_SOLVING_FAST = 15
PROBLEM_SOLVING_SLOW = 5
FAST_RATIO = 0.8
SLOW_RATIO = 1.5


def expected_time_for(difficulty: ProblemDifficulty) -> int:
    return EXPECTED_SOLVE_MINUTES[difficulty]


def correctness_points(passed_tests: int, total_tests: int) -> float:
    if total_tests == 0:
        return 0.0
    return passed_tests / total_tests * CORRECTNESS_WEIGHT

def efficiency_points(time_complexity: str, expected_time: float) -> int:
    if "n²" in time_complexity and expected_time < TIGHT_EXPECTED_MINUTES:
        return EFFICIENCY_QUADRATIC_TIGHT
    if time_complexity in (LINEAR, LINEARITHMIC):
        return EFFICIENCY_GOOD
    return EFFICIENCY_BASE

def quality_points(quality_score: float) -> float:
    return quality_score / 100 * QUALITY_WEIGHT

def problem_solving_points(time_spent: float, expected_time: float) -> int:
    ratio = time_spent / expected_time
    if ratio < FAST_RATIO:
        return PROBLEM_SOLVING_FAST
    if ratio > SLOW_RATIO:
        return PROBLEM_SOLVING_SLOW
    return PROBLEM_SOLVING_BASE


def calculate_submission_score(
    passed_tests: int,
    total_tests: int,
    time_complexity: str,
    quality_score: float,
    time_spent: float,
    expected_time: float
) -> int:
    """
    correctness 40 + efficiency 25 + quality 20 + problem solving 15.
    Rounded and capped at 100.
    """
    score = (
        correctness_points(passed_tests, total_tests)
        + efficiency_points(time_complexity, expected_time)
        + quality_points(quality_score)
        + problem_solving_points(time_spent, expected_time)
    )
    return round_half_up(min(100, score))


def generate_feedback(
    run: TestRunSummary,
    quality: QualityAnalysis,
    complexity: ComplexityEstimate,
    score: int
) -> str:
    if score >= 80:
        feedback = "Excellent solution! "
    elif score >= 60:
        feedback = "Good attempt with room for improvement. "
    else:
        feedback = "The solution needs work. "

    feedback += f"\n\nTest Results: {run.summary}\n"
    if not run.success:
        feedback += "Some test cases failed. Review edge cases and logic.\n"

    feedback += "\nComplexity Analysis:\n"
    feedback += f"- Time: {complexity.time}\n"
    feedback += f"- Space: {complexity.space}\n"

    feedback += f"\nCode Quality: {quality.feedback}\n"
    if quality.suggestions:
        feedback += "Suggestions:\n"
        for suggestion in quality.suggestions:
            feedback += f"- {suggestion}\n"

    return feedback
