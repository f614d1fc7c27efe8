import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Pattern, Tuple


class GuardrailCategory(str, Enum):
    SYSTEM_INFO = "SYSTEM_INFO"
    OFF_TOPIC = "OFF_TOPIC"
    HINT_REQUEST = "HINT_REQUEST"
    SCORE_LEAK = "SCORE_LEAK"
    UNPROFESSIONAL_TONE = "UNPROFESSIONAL_TONE"

class ReplacementMode(str, Enum):
    FULL = "FULL"          # whole message replaced by the template
    TARGETED = "TARGETED"  # only the matching phrases are substituted


@dataclass(frozen=True)
class RuleSet:
    name: str
    category: GuardrailCategory
    reason: str
    patterns: Tuple[Pattern[str], ...]
    replacement: str
    mode: ReplacementMode = ReplacementMode.FULL


def _compile(*patterns: str, ignore_case: bool = True) -> Tuple[Pattern[str], ...]:
    flags = re.IGNORECASE if ignore_case else 0
    return tuple(re.compile(p, flags) for p in patterns)


SYSTEM_INFO_REPLACEMENT = "Let's focus on the interview questions. Could you please answer the current question?"
OFF_TOPIC_REPLACEMENT = "I understand, but let's stay focused on the interview. Please answer the current question."
HINT_REPLACEMENT = (
    "I can guide you through the problem, but I cannot provide direct answers. "
    "Let me ask you: what approach would you consider for this problem?"
)
SCORE_LEAK_REPLACEMENT = "Thank you for your response. Let's continue with the next question."
TONE_REPLACEMENT = "Thank you for your attempt. Let's explore this from a different angle"

# Shown on the candidate channel whenever an internal error must not leak.
CANDIDATE_SAFE_ERROR_MESSAGE = SCORE_LEAK_REPLACEMENT


SYSTEM_INFO_RULES = RuleSet(
    name="prevent_system_info_extraction",
    category=GuardrailCategory.SYSTEM_INFO,
    reason="Attempted to extract system information",
    patterns=_compile(
        r"what\s+(model|llm|ai|gpt|api)",
        r"tell\s+me\s+about\s+(your|the)\s+(system|implementation|architecture)",
        r"how\s+(are|do)\s+you\s+(built|implemented|work)",
        r"what\s+(api|service|backend)",
        r"reveal\s+(the|your)\s+(prompt|instructions|score|scoring)",
        r"show\s+me\s+(the|my)\s+(score|result|feedback)",
        r"what\s+is\s+my\s+(score|grade|rating)",
        r"debug|developer\s+mode|system\s+prompt",
    ),
    replacement=SYSTEM_INFO_REPLACEMENT,
)

OFF_TOPIC_RULES = RuleSet(
    name="keep_on_topic",
    category=GuardrailCategory.OFF_TOPIC,
    reason="Attempted to divert from interview",
    patterns=_compile(
        r"tell\s+me\s+a\s+(joke|story)",
        r"what\s+do\s+you\s+think\s+about\s+(politics|religion|sports)",
        r"let'?s\s+talk\s+about\s+something\s+else",
        r"change\s+the\s+(topic|subject)",
        r"can\s+we\s+discuss",
        r"forget\s+about\s+the\s+interview",
    ),
    replacement=OFF_TOPIC_REPLACEMENT,
)

HINT_RULES = RuleSet(
    name="prevent_hint_extraction",
    category=GuardrailCategory.HINT_REQUEST,
    reason="Attempted to extract hints or answers",
    patterns=_compile(
        r"give\s+me\s+(the\s+)?(answer|solution|hint|clue)",
        r"what'?s\s+the\s+(answer|solution)",
        r"tell\s+me\s+the\s+(answer|solution)",
        r"can\s+you\s+(solve|answer)\s+(it|this)\s+for\s+me",
        r"just\s+tell\s+me",
        r"i\s+don'?t\s+know.*help",
    ),
    replacement=HINT_REPLACEMENT,
)

SCORE_LEAK_RULES = RuleSet(
    name="prevent_scoring_leak",
    category=GuardrailCategory.SCORE_LEAK,
    reason="Output contains scoring information",
    patterns=(
        re.compile(r"your?\s+score\s+(is|was)", re.IGNORECASE),
        re.compile(r"you\s+(scored|got|achieved)", re.IGNORECASE),
        re.compile(r"\d+\s*(/|out\s+of)\s*\d+"),
        re.compile(r"\d+\s*(%|percent|points)", re.IGNORECASE),
        re.compile(r"(passed|failed)\s+the\s+(test|interview)", re.IGNORECASE),
        re.compile(r"performance\s+(was|is)\s+(good|bad|average|excellent|poor)", re.IGNORECASE),
        re.compile(r"\b(evaluation|assessment|grade|rating)s?\b", re.IGNORECASE),
    ),
    replacement=SCORE_LEAK_REPLACEMENT,
)

TONE_RULES = RuleSet(
    name="maintain_professional_tone",
    category=GuardrailCategory.UNPROFESSIONAL_TONE,
    reason="Output contains unprofessional language",
    patterns=_compile(
        r"that'?s\s+(wrong|incorrect|bad)",
        r"you'?re\s+not\s+getting\s+it",
        r"terrible|awful|horrible",
        r"you\s+should\s+know\s+this",
        r"obviously|clearly\s+wrong",
    ),
    replacement=TONE_REPLACEMENT,
    mode=ReplacementMode.TARGETED,
)

# Evaluation order matters: first matching rule set wins.
INPUT_RULE_SETS: List[RuleSet] = [SYSTEM_INFO_RULES, OFF_TOPIC_RULES, HINT_RULES]
OUTPUT_RULE_SETS: List[RuleSet] = [SCORE_LEAK_RULES, TONE_RULES]
