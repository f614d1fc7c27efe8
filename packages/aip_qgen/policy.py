import math
import re
from typing import Dict, List, Union

from packages.aip_core.domain import InterviewType

MINUTES_PER_QUESTION = 10

# Fractions per category. Counts are floored; remainders are not redistributed.
DISTRIBUTIONS: Dict[InterviewType, Dict[str, float]] = {
    InterviewType.TECHNICAL: {
        "conceptual": 0.4,
        "practical": 0.4,
        "system_design": 0.2,
    },
    InterviewType.BEHAVIORAL: {
        "experience": 0.4,
        "situational": 0.3,
        "motivation": 0.3,
    },
    InterviewType.CODING: {
        "warmup": 0.2,
        "medium": 0.5,
        "challenging": 0.3,
    },
    InterviewType.MIXED: {
        "behavioral": 0.3,
        "technical": 0.3,
        "coding": 0.4,
    },
}


_TYPES = {t.value: t for t in InterviewType}

def _as_type(interview_type: Union[InterviewType, str]) -> InterviewType:
    return _TYPES.get(str(getattr(interview_type, "value", interview_type)), InterviewType.MIXED)

def plan_distribution(interview_type: Union[InterviewType, str], total_questions: int) -> Dict[str, int]:
    """
    Category -> question count for one interview.
    Types without their own split (SITUATIONAL, unknown) use the MIXED split.
    """
    if total_questions < 0:
        total_questions = 0
    fractions = DISTRIBUTIONS.get(_as_type(interview_type), DISTRIBUTIONS[InterviewType.MIXED])
    return {category: math.floor(total_questions * fraction) for category, fraction in fractions.items()}

def question_count(duration_minutes: int) -> int:
    """Roughly ten minutes per question."""
    return max(0, duration_minutes // MINUTES_PER_QUESTION)


def relevant_skills(question_text: str, skills: List[str]) -> List[str]:
    """Skills that appear in the question, or that contain the question text, ignoring case."""
    text = question_text.lower()
    matched = []
    for skill in skills:
        needle = skill.strip().lower()
        if needle and (needle in text or text in needle):
            matched.append(skill)
    return matched

def is_customizable(question_text: str, skills: List[str]) -> bool:
    return len(relevant_skills(question_text, skills)) > 0


_YEARS_PATTERN = re.compile(r"(\d+)\s*year", re.IGNORECASE)

def detect_experience_level(experience: str) -> str:
    """Years mentioned in free text -> senior / mid / junior / entry."""
    match = _YEARS_PATTERN.search(experience or "")
    years = int(match.group(1)) if match else 0
    if years >= 8:
        return "senior"
    if years >= 4:
        return "mid"
    if years >= 2:
        return "junior"
    return "entry"
