"""
Static, pattern based complexity estimate.

This is a heuristic over the source text, not a measurement. The rule set is
kept fixed so scores stay reproducible across runs.
"""
import re

from packages.aip_code_eval.schema import ComplexityEstimate

QUADRATIC = "O(n²)"
LINEAR = "O(n)"
LINEARITHMIC = "O(n log n)"
CONSTANT = "O(1)"
RECURSIVE_TIME = "O(n) to O(2ⁿ) depending on recursion"
RECURSIVE_SPACE = "O(n) call stack"

_NESTED_BRACE_LOOPS = [
    re.compile(r"for.*\{[\s\S]*?for.*\{", re.IGNORECASE),
    re.compile(r"while.*\{[\s\S]*?while.*\{", re.IGNORECASE),
]
_LOOP_KEYWORD = re.compile(r"\b(for|while)\b")
_INDENTED_LOOP = re.compile(r"^(\s*)(for|while)\b.*:\s*$")

_RECURSION_PATTERNS = [
    # function name(...) { ... name(
    re.compile(r"\bfunction\s+([A-Za-z_]\w*)\s*\([\s\S]*?\)\s*\{[\s\S]*?\b\1\s*\("),
    # const name = (...) => { ... name(
    re.compile(r"\bconst\s+([A-Za-z_]\w*)\s*=\s*\([\s\S]*?\)\s*=>\s*\{[\s\S]*?\b\1\s*\("),
    # def name(...): ... name(
    re.compile(r"\bdef\s+([A-Za-z_]\w*)\s*\([^)]*\)[^:]*:[\s\S]*?\b\1\s*\("),
]

_HASH_STRUCTURES = re.compile(r"Map|Set|Object|Dictionary|HashMap|dict", re.IGNORECASE)
_GROWING_ARRAYS = re.compile(r"\[\]|Array|push|pop|append", re.IGNORECASE)


def has_nested_loops(code: str) -> bool:
    if any(p.search(code) for p in _NESTED_BRACE_LOOPS):
        return True
    return _has_nested_indented_loops(code)

def _has_nested_indented_loops(code: str) -> bool:
    """Indentation based variant for brace-less languages."""
    open_loops = []  # indentation widths of enclosing loop headers
    for line in code.split("\n"):
        if not line.strip():
            continue
        indent = len(line) - len(line.lstrip())
        while open_loops and indent <= open_loops[-1]:
            open_loops.pop()
        match = _INDENTED_LOOP.match(line)
        if match:
            if open_loops:
                return True
            open_loops.append(indent)
    return False

def has_recursion(code: str) -> bool:
    return any(p.search(code) for p in _RECURSION_PATTERNS)

def count_loop_keywords(code: str) -> int:
    return len(_LOOP_KEYWORD.findall(code))


def estimate_complexity(code: str) -> ComplexityEstimate:
    recursive = has_recursion(code)

    time_complexity = CONSTANT
    if has_nested_loops(code):
        time_complexity = QUADRATIC
    elif count_loop_keywords(code) == 1:
        time_complexity = LINEAR
    elif recursive:
        time_complexity = RECURSIVE_TIME

    space_complexity = CONSTANT
    if _HASH_STRUCTURES.search(code) or _GROWING_ARRAYS.search(code):
        space_complexity = LINEAR
    if recursive:
        space_complexity = RECURSIVE_SPACE

    return ComplexityEstimate(time=time_complexity, space=space_complexity)
