from enum import Enum
from typing import List, Optional
from pydantic import ConfigDict, Field

from packages.aip_core.dto import BaseDTO


class CodeDTO(BaseDTO):
    """Code, stdin and expected output are compared byte-wise: keep whitespace."""
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=False,
        populate_by_name=True
    )


class ProblemDifficulty(str, Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"

class ComplexityLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ProblemExample(CodeDTO):
    input: str
    output: str
    explanation: Optional[str] = None

class TestCase(CodeDTO):
    # Optional on purpose: a case missing either field is reported per-case, not rejected as a batch
    input: Optional[str] = None
    expected_output: Optional[str] = Field(None, alias="expectedOutput")
    is_hidden: bool = Field(False, alias="isHidden")

class CodeProblem(CodeDTO):
    id: str
    title: str
    description: str
    examples: List[ProblemExample] = Field(default_factory=list)
    constraints: List[str] = Field(default_factory=list)
    test_cases: List[TestCase] = Field(default_factory=list, alias="testCases")
    difficulty: ProblemDifficulty = ProblemDifficulty.MEDIUM
    topics: List[str] = Field(default_factory=list)
    time_limit: Optional[float] = Field(None, alias="timeLimit", description="Seconds per test case")
    memory_limit: Optional[int] = Field(None, alias="memoryLimit", description="MB")


class TestCaseResult(CodeDTO):
    passed: bool
    input: Optional[str] = None
    expected_output: Optional[str] = Field(None, alias="expectedOutput")
    actual_output: str = Field("", alias="actualOutput")
    execution_time: Optional[float] = Field(None, alias="executionTime")
    memory: Optional[int] = None
    status: str
    is_hidden: bool = Field(False, alias="isHidden")

class TestRunSummary(CodeDTO):
    success: bool
    passed_tests: int = Field(..., alias="passedTests", ge=0)
    total_tests: int = Field(..., alias="totalTests", ge=0)
    results: List[TestCaseResult] = Field(default_factory=list)
    visible_results: List[TestCaseResult] = Field(default_factory=list, alias="visibleResults")
    summary: str


class ComplexityEstimate(BaseDTO):
    time: str = "O(1)"
    space: str = "O(1)"

class QualityAnalysis(BaseDTO):
    has_comments: bool = Field(..., alias="hasComments")
    has_descriptive_names: bool = Field(..., alias="hasDescriptiveNames")
    has_error_handling: bool = Field(..., alias="hasErrorHandling")
    has_edge_cases: bool = Field(..., alias="hasEdgeCases")
    complexity: ComplexityLevel
    line_count: int = Field(..., alias="lineCount")
    suggestions: List[str] = Field(default_factory=list)
    quality: int = Field(..., ge=0, le=100)
    feedback: str


class CodeEvaluationResult(CodeDTO):
    """
    Aggregate for one submission.
    `results` holds every case; only `visible_results` may reach the candidate.
    """
    success: bool
    passed_tests: int = Field(..., alias="passedTests", ge=0)
    total_tests: int = Field(..., alias="totalTests", ge=0)
    results: List[TestCaseResult] = Field(default_factory=list)
    visible_results: List[TestCaseResult] = Field(default_factory=list, alias="visibleResults")
    summary: str
    complexity: ComplexityEstimate
    quality: QualityAnalysis
    score: int = Field(..., ge=0, le=100)
    feedback: str
