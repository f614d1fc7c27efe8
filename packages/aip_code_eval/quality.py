import re
from typing import Dict, List, Pattern

from packages.aip_code_eval.schema import ComplexityLevel, QualityAnalysis

COMMENT_PATTERN = re.compile(r"//|/\*|#")
SINGLE_LETTER_PATTERN = re.compile(r"\b[a-z]\b(?![\s]*[=<>])")
ALLOWED_SINGLE_LETTERS = {"i", "j", "k", "x", "y", "n", "m"}
MAX_SINGLE_LETTER_NAMES = 3

_BRACE_HANDLERS = [r"try\s*{", r"catch\s*\("]

ERROR_HANDLING_PATTERNS: Dict[str, List[Pattern[str]]] = {
    "javascript": [re.compile(p) for p in _BRACE_HANDLERS + [r"\.catch\(", r"if\s*\(\s*error\s*\)"]],
    "typescript": [re.compile(p) for p in _BRACE_HANDLERS + [r"\.catch\(", r"if\s*\(\s*error\s*\)"]],
    "python": [re.compile(p) for p in [r"try\s*:", r"except\s*", r"if\s+.*is\s+None"]],
    "java": [re.compile(p) for p in _BRACE_HANDLERS + [r"throws\s+\w+Exception"]],
    "cpp": [re.compile(p) for p in _BRACE_HANDLERS],
}

EDGE_CASE_PATTERNS: List[Pattern[str]] = [
    re.compile(r"if\s*\(\s*\w+\.length\s*===?\s*0\s*\)"),
    re.compile(r"if\s*\(\s*!\w+\s*\)"),
    re.compile(r"if\s*\(\s*\w+\s*===?\s*null\s*\)"),
    re.compile(r"if\s*\(\s*len\(\w+\)\s*==\s*0\s*\)"),
    re.compile(r"if\s+not\s+\w+"),
    re.compile(r"\w+\s*\?\."),
]

LOOP_PATTERN = re.compile(r"for\s*\(|while\s*\(|for\s+\w+\s+in|while\s+")
CONDITION_PATTERN = re.compile(r"if\s*\(|if\s+")

# Quality score weights
BASE_QUALITY = 50
COMMENT_BONUS = 10
NAMING_BONUS = 15
ERROR_HANDLING_BONUS = 15
EDGE_CASE_BONUS = 10
LOW_COMPLEXITY_BONUS = 5
HIGH_COMPLEXITY_PENALTY = 5


def has_comments(code: str) -> bool:
    return COMMENT_PATTERN.search(code) is not None

def has_descriptive_names(code: str) -> bool:
    """False once three or more single-letter names fall outside the loop/index allow-list."""
    names = SINGLE_LETTER_PATTERN.findall(code)
    problematic = [name for name in names if name not in ALLOWED_SINGLE_LETTERS]
    return len(problematic) < MAX_SINGLE_LETTER_NAMES

def has_error_handling(code: str, language: str) -> bool:
    patterns = ERROR_HANDLING_PATTERNS.get(language, [])
    return any(pattern.search(code) for pattern in patterns)

def has_edge_cases(code: str) -> bool:
    return any(pattern.search(code) for pattern in EDGE_CASE_PATTERNS)

def complexity_level(code: str) -> ComplexityLevel:
    lines = len(code.split("\n"))
    loops = len(LOOP_PATTERN.findall(code))
    conditions = len(CONDITION_PATTERN.findall(code))

    score = loops * 3 + conditions * 2 + lines / 10

    if score > 20:
        return ComplexityLevel.HIGH
    if score > 10:
        return ComplexityLevel.MEDIUM
    return ComplexityLevel.LOW


def calculate_quality_score(
    comments: bool,
    descriptive_names: bool,
    error_handling: bool,
    edge_cases: bool,
    complexity: ComplexityLevel
) -> int:
    score = BASE_QUALITY
    if comments:
        score += COMMENT_BONUS
    if descriptive_names:
        score += NAMING_BONUS
    if error_handling:
        score += ERROR_HANDLING_BONUS
    if edge_cases:
        score += EDGE_CASE_BONUS

    if complexity == ComplexityLevel.LOW:
        score += LOW_COMPLEXITY_BONUS
    elif complexity == ComplexityLevel.HIGH:
        score -= HIGH_COMPLEXITY_PENALTY

    return min(100, max(0, score))

def quality_feedback(score: int) -> str:
    if score >= 80:
        return "Excellent code quality! Well-structured with good practices."
    if score >= 60:
        return "Good code quality with room for improvement in some areas."
    if score >= 40:
        return "Fair code quality. Consider implementing the suggestions to improve."
    return "Code needs improvement. Focus on the suggested areas."


def build_suggestions(
    code: str,
    language: str,
    comments: bool,
    error_handling: bool,
    edge_cases: bool,
    complexity: ComplexityLevel
) -> List[str]:
    """Language specific suggestions first, general ones after."""
    suggestions: List[str] = []

    if language in ("javascript", "typescript"):
        if not error_handling and "try" not in code:
            suggestions.append("Consider adding error handling with try-catch blocks")
        if "var " in code:
            suggestions.append("Use const/let instead of var for better scoping")

    if language == "python":
        if "def " not in code and "class " not in code:
            suggestions.append("Consider organizing code into functions or classes")
        if not comments and '"""' not in code:
            suggestions.append("Add docstrings to document your functions")

    if not comments:
        suggestions.append("Add comments to explain complex logic")
    if complexity == ComplexityLevel.HIGH:
        suggestions.append("Consider breaking down complex functions into smaller ones")
    if not edge_cases:
        suggestions.append("Consider handling edge cases (empty inputs, null values, etc.)")

    return suggestions


def analyze_quality(code: str, language: str) -> QualityAnalysis:
    language = (language or "").lower()
    comments = has_comments(code)
    names = has_descriptive_names(code)
    errors = has_error_handling(code, language)
    edges = has_edge_cases(code)
    complexity = complexity_level(code)

    score = calculate_quality_score(comments, names, errors, edges, complexity)

    return QualityAnalysis(
        has_comments=comments,
        has_descriptive_names=names,
        has_error_handling=errors,
        has_edge_cases=edges,
        complexity=complexity,
        line_count=len(code.split("\n")),
        suggestions=build_suggestions(code, language, comments, errors, edges, complexity),
        quality=score,
        feedback=quality_feedback(score),
    )
