import re
from typing import List, Optional

from packages.aip_core.domain import Depth, QuestionType
from packages.aip_core.utils import clamp, round_half_up
from packages.aip_scoring.weights import get_difficulty_multiplier

BASE_CRITERIA = ["clarity", "completeness", "accuracy"]

TYPE_CRITERIA = {
    QuestionType.BEHAVIORAL: ["specific examples", "self-reflection", "impact description"],
    QuestionType.TECHNICAL: ["conceptual understanding", "practical application", "best practices"],
    QuestionType.CODING: ["algorithm efficiency", "code quality", "edge case handling"],
}

DIFFICULTY_CRITERIA = {
    Depth.HIGH: ["nuanced understanding", "innovative thinking", "system-level perspective"],
    Depth.MEDIUM: ["solid reasoning", "multiple approaches", "trade-off analysis"],
    Depth.LOW: ["fundamental knowledge", "basic application", "clear communication"],
}

STAR_PATTERN = re.compile(r"situation|task|action|result|challenge|approach|outcome", re.IGNORECASE)
CONNECTIVE_PATTERN = re.compile(r"first|second|finally|because|therefore|however", re.IGNORECASE)
SENTENCE_SPLIT = re.compile(r"[.!?]")

DEPTH_INDICATORS = [
    re.compile(r"trade-?off", re.IGNORECASE),
    re.compile(r"depends on", re.IGNORECASE),
    re.compile(r"in my experience", re.IGNORECASE),
    re.compile(r"considering", re.IGNORECASE),
    re.compile(r"alternative", re.IGNORECASE),
    re.compile(r"optimize", re.IGNORECASE),
    re.compile(r"scale", re.IGNORECASE),
]

PRACTICAL_INDICATORS = [
    re.compile(r"for example", re.IGNORECASE),
    re.compile(r"in practice", re.IGNORECASE),
    re.compile(r"I have", re.IGNORECASE),
    re.compile(r"we implemented", re.IGNORECASE),
    re.compile(r"real-world", re.IGNORECASE),
    re.compile(r"project", re.IGNORECASE),
]

HEDGING_PATTERN = re.compile(r"\b(i think|maybe|not sure|i guess|probably|perhaps)\b", re.IGNORECASE)

QUESTION_BASE_SCORE = 60
STRUCTURE_POINTS = 10
DEPTH_POINTS = 15
PRACTICAL_POINTS = 10
COVERAGE_POINTS = 15


def evaluation_criteria(question_type: QuestionType, difficulty: Depth) -> List[str]:
    return BASE_CRITERIA + TYPE_CRITERIA.get(question_type, []) + DIFFICULTY_CRITERIA.get(difficulty, [])

def has_structure(answer: str, question_type: QuestionType) -> bool:
    if question_type == QuestionType.BEHAVIORAL:
        return bool(STAR_PATTERN.search(answer))
    if question_type == QuestionType.TECHNICAL:
        return bool(CONNECTIVE_PATTERN.search(answer))
    return len(SENTENCE_SPLIT.split(answer)) > 2

def topic_coverage(answer: str, expected_topics: Optional[List[str]]) -> Optional[float]:
    """Fraction of expected topics mentioned. None when there is nothing to cover."""
    if not expected_topics:
        return None
    lowered = answer.lower()
    covered = [t for t in expected_topics if t.lower() in lowered]
    return len(covered) / len(expected_topics)

def demonstrates_depth(answer: str) -> bool:
    return any(p.search(answer) for p in DEPTH_INDICATORS)

def shows_practical_understanding(answer: str) -> bool:
    return any(p.search(answer) for p in PRACTICAL_INDICATORS)

def hedge_count(answer: str) -> int:
    return len(HEDGING_PATTERN.findall(answer))


def calculate_question_score(
    structure: bool,
    depth: bool,
    practical: bool,
    coverage: Optional[float],
    difficulty: Depth
) -> int:
    score = QUESTION_BASE_SCORE
    if structure:
        score += STRUCTURE_POINTS
    if depth:
        score += DEPTH_POINTS
    if practical:
        score += PRACTICAL_POINTS
    if coverage is not None:
        score += round_half_up(coverage * COVERAGE_POINTS)
    return min(100, round_half_up(score * get_difficulty_multiplier(difficulty)))


# -------------------------------------------------------------------------
# Per-question dimension heuristics
# -------------------------------------------------------------------------
def communication_points(answer: str, structure: bool, practical: bool) -> int:
    score = 50
    if structure:
        score += 20
    if practical:
        score += 10
    length = len(answer.strip())
    if length >= 300:
        score += 20
    elif length >= 150:
        score += 10
    elif length >= 50:
        score += 5
    return round_half_up(clamp(score))

def problem_solving_points(depth: bool, practical: bool, coverage: Optional[float], difficulty: Depth) -> int:
    score = 50
    if depth:
        score += 20
    if practical:
        score += 10
    if coverage is not None:
        score += coverage * 20
    return round_half_up(clamp(score * get_difficulty_multiplier(difficulty)))

def confidence_points(answer: str) -> int:
    # Each hedge costs 10, floor 40
    return round_half_up(max(40, 80 - 10 * hedge_count(answer)))
