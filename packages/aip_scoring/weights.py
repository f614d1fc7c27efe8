from typing import Dict

from packages.aip_core.domain import Depth

# Overall score weights per dimension. Must sum to 1.0.
OVERALL_WEIGHTS: Dict[str, float] = {
    "communication": 0.2,
    "technical": 0.4,
    "problem_solving": 0.3,
    "confidence": 0.1,
}

DIFFICULTY_MULTIPLIERS: Dict[Depth, float] = {
    Depth.HIGH: 1.1,
    Depth.MEDIUM: 1.0,
    Depth.LOW: 0.9,
}

# Sentiment nudges the aggregated confidence by at most +/-10%.
SENTIMENT_ADJUSTMENT_SCALE = 0.2
SENTIMENT_NEUTRAL_CONFIDENCE = 0.5


def get_difficulty_multiplier(difficulty: Depth) -> float:
    return DIFFICULTY_MULTIPLIERS.get(difficulty, 1.0)
