import re
from datetime import date
from typing import List, Optional, Sequence, Tuple

from pydantic import Field

from packages.aip_core.domain import WorkExperience
from packages.aip_core.dto import BaseDTO
from packages.aip_core.errors import InvalidInputError
from packages.aip_core.logging import get_logger
from packages.aip_core.utils import round_half_up

REQUIRED_WEIGHT = 70
PREFERRED_WEIGHT = 30

logger = get_logger("aip.profile")


class SkillMatch(BaseDTO):
    matched_required: List[str] = Field(default_factory=list, alias="matchedRequired")
    matched_preferred: List[str] = Field(default_factory=list, alias="matchedPreferred")
    missing_required: List[str] = Field(default_factory=list, alias="missingRequired")
    additional_skills: List[str] = Field(default_factory=list, alias="additionalSkills")
    match_score: int = Field(..., alias="matchScore")


class ExperienceEstimate(BaseDTO):
    years: float
    level: str  # entry | junior | mid | senior | lead


def _overlaps(a: str, b: str) -> bool:
    a, b = a.lower(), b.lower()
    return a in b or b in a

def _matched(skills: Sequence[str], candidate: Sequence[str]) -> List[str]:
    return [s for s in skills if any(_overlaps(s, c) for c in candidate)]


def match_skills(
    candidate_skills: Sequence[str],
    required_skills: Sequence[str],
    preferred_skills: Sequence[str] = ()
) -> SkillMatch:
    """
    70/30 weighted match of a candidate's skills against job requirements.
    Matching is a case-insensitive substring test in either direction.
    """
    if not required_skills:
        raise InvalidInputError("At least one required skill is needed to compute a match")

    candidate = [s for s in candidate_skills if s and s.strip()]
    matched_required = _matched(required_skills, candidate)
    matched_preferred = _matched(preferred_skills, candidate)
    missing_required = [s for s in required_skills if s not in matched_required]

    all_matched = matched_required + matched_preferred
    additional = [s for s in candidate if not any(_overlaps(s, m) for m in all_matched)]

    score = (
        len(matched_required) / len(required_skills) * REQUIRED_WEIGHT
        + len(matched_preferred) / max(len(preferred_skills), 1) * PREFERRED_WEIGHT
    )
    return SkillMatch(
        matched_required=matched_required,
        matched_preferred=matched_preferred,
        missing_required=missing_required,
        additional_skills=additional,
        match_score=round_half_up(score),
    )


_YEARS = re.compile(r"(\d+)\s*year", re.IGNORECASE)
_MONTHS = re.compile(r"(\d+)\s*month", re.IGNORECASE)
_DATE = re.compile(r"(\d{4})(?:[-/.](\d{1,2}))?")
_ONGOING = {"present", "current", "now"}


def _parse_month(value: str, today: date) -> Tuple[int, int]:
    if value.strip().lower() in _ONGOING:
        return today.year, today.month
    match = _DATE.search(value)
    if not match:
        raise InvalidInputError(f"Unrecognised date: {value}")
    return int(match.group(1)), int(match.group(2) or 1)

def _months_of(exp: WorkExperience, today: date) -> int:
    if exp.duration:
        years = _YEARS.search(exp.duration)
        months = _MONTHS.search(exp.duration)
        return (int(years.group(1)) if years else 0) * 12 + (int(months.group(1)) if months else 0)
    if exp.start_date and exp.end_date:
        start_year, start_month = _parse_month(exp.start_date, today)
        end_year, end_month = _parse_month(exp.end_date, today)
        return max(0, (end_year - start_year) * 12 + (end_month - start_month))
    return 0


def estimate_experience_level(
    experience: Sequence[WorkExperience],
    today: Optional[date] = None,
    strict: bool = True
) -> ExperienceEstimate:
    """
    Total tenure from durations ("2 years 3 months") or start/end dates.
    An end date of "present", "current" or "now" means today.
    With strict=False a position whose dates cannot be read is skipped instead of rejected.
    """
    today = today or date.today()
    total_months = 0
    for exp in experience:
        try:
            total_months += _months_of(exp, today)
        except InvalidInputError as e:
            if strict:
                raise
            logger.warning(f"Skipping position at {exp.company or 'unknown company'}: {e.message}")
    years = total_months / 12

    if years < 1:
        level = "entry"
    elif years < 3:
        level = "junior"
    elif years < 6:
        level = "mid"
    elif years < 10:
        level = "senior"
    else:
        level = "lead"

    return ExperienceEstimate(years=round_half_up(years * 10) / 10, level=level)
