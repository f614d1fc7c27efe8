from typing import Dict, List, Union

from packages.aip_core.domain import Depth, InterviewType

DEPTH_ADJUSTMENTS: Dict[Depth, str] = {
    Depth.HIGH: "Add complexity and ambiguity, expect detailed analysis",
    Depth.MEDIUM: "Balance clarity with some challenging aspects",
    Depth.LOW: "Keep straightforward and focused on fundamentals",
}

FOLLOW_UP_STRATEGIES: Dict[Depth, str] = {
    Depth.LOW: "Ask for clarification or specific examples",
    Depth.MEDIUM: "Explore edge cases or alternative approaches",
    Depth.HIGH: "Challenge assumptions or explore system-level implications",
}

TYPE_GUIDELINES: Dict[InterviewType, List[str]] = {
    InterviewType.BEHAVIORAL: [
        "Focus on past experiences and specific situations",
        "Use STAR method (Situation, Task, Action, Result)",
        "Probe for learnings and self-reflection",
    ],
    InterviewType.TECHNICAL: [
        "Test conceptual understanding, not just memorization",
        "Include real-world application scenarios",
        "Allow for different valid approaches",
    ],
    InterviewType.CODING: [
        "Start with problem understanding and clarification",
        "Evaluate problem-solving approach, not just the solution",
        "Consider time and space complexity discussions",
    ],
}

DEPTH_GUIDELINES: Dict[Depth, List[str]] = {
    Depth.HIGH: [
        "Include follow-up questions to dig deeper",
        "Challenge assumptions and explore edge cases",
        "Assess ability to handle ambiguity",
    ],
    Depth.MEDIUM: [
        "Balance between breadth and depth",
        "Include some challenging aspects",
    ],
    Depth.LOW: [
        "Focus on fundamental understanding",
        "Provide clear, unambiguous questions",
    ],
}

LEVEL_GUIDELINES: Dict[str, List[str]] = {
    "senior": [
        "Include system design and architecture questions",
        "Assess leadership and mentoring abilities",
        "Test strategic thinking and trade-off analysis",
    ],
    "junior": [
        "Focus on fundamentals and learning ability",
        "Assess enthusiasm and growth potential",
        "Include questions about recent projects or learning",
    ],
}
LEVEL_GUIDELINES["lead"] = LEVEL_GUIDELINES["senior"]

EXAMPLE_STRUCTURES: Dict[InterviewType, dict] = {
    InterviewType.BEHAVIORAL: {
        "mainQuestion": "Tell me about a time when...",
        "followUps": ["What was the outcome?", "What would you do differently?", "How did you measure success?"],
        "evaluationCriteria": ["Clarity", "Impact", "Learning", "Leadership"],
    },
    InterviewType.TECHNICAL: {
        "mainQuestion": "Explain how... works",
        "followUps": ["What are the trade-offs?", "How would you optimize it?", "What alternatives exist?"],
        "evaluationCriteria": ["Accuracy", "Depth", "Practical application", "Communication"],
    },
    InterviewType.CODING: {
        "problemStatement": "Given..., implement a function that...",
        "constraints": ["Time complexity should be...", "Space complexity should be..."],
        "examples": ["Input: ..., Output: ..."],
        "evaluationCriteria": ["Correctness", "Efficiency", "Code quality", "Problem-solving approach"],
    },
}


_DEPTHS = {d.value: d for d in Depth}
_TYPES = {t.value: t for t in InterviewType}

def _depth(depth: Union[Depth, str]) -> Depth:
    return _DEPTHS.get(str(getattr(depth, "value", depth)), Depth.MEDIUM)

def _type(interview_type: Union[InterviewType, str]):
    return _TYPES.get(str(getattr(interview_type, "value", interview_type)))

def question_guidelines(interview_type: Union[InterviewType, str], depth: Union[Depth, str], level: str) -> List[str]:
    guidelines: List[str] = []
    guidelines.extend(TYPE_GUIDELINES.get(_type(interview_type), []))
    guidelines.extend(DEPTH_GUIDELINES[_depth(depth)])
    guidelines.extend(LEVEL_GUIDELINES.get(level, []))
    return guidelines

def example_structure(interview_type: Union[InterviewType, str]) -> dict:
    return EXAMPLE_STRUCTURES.get(_type(interview_type), EXAMPLE_STRUCTURES[InterviewType.TECHNICAL])

def depth_adjustment(depth: Union[Depth, str]) -> str:
    return DEPTH_ADJUSTMENTS[_depth(depth)]

def follow_up_strategy(depth: Union[Depth, str]) -> str:
    return FOLLOW_UP_STRATEGIES[_depth(depth)]
