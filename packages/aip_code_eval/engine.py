import asyncio
from typing import List, Optional, Sequence

from packages.aip_core.config import AIPConfig
from packages.aip_core.dto import ExecutionRequestDTO
from packages.aip_core.errors import CapabilityFailureError, InvalidInputError
from packages.aip_core.logging import get_logger
from packages.aip_providers.code_exec.base import ICodeExecutionProvider, STATUS_ACCEPTED
from packages.aip_code_eval.complexity import estimate_complexity
from packages.aip_code_eval.languages import resolve_language_id
from packages.aip_code_eval.quality import analyze_quality
from packages.aip_code_eval.schema import (
    CodeEvaluationResult,
    CodeProblem,
    ProblemDifficulty,
    TestCase,
    TestCaseResult,
    TestRunSummary,
)
from packages.aip_code_eval.scoring import (
    calculate_submission_score,
    expected_time_for,
    generate_feedback,
)

logger = get_logger("aip.code_eval")

RUNTIME_ERROR_STATUS = "Runtime Error"
RUNTIME_ERROR_OUTPUT = "Error running test case"


class CodeEvaluationEngine:
    """
    Runs a submission against its test cases through the execution capability
    and turns the outcome into a scored CodeEvaluationResult.

    Test cases are independent, so they are dispatched together; each one carries
    its own timeout and a failed or timed-out case never blocks the batch.
    Executions are never retried: a case that failed is reported as failed.
    """

    def __init__(self, provider: ICodeExecutionProvider, config: Optional[AIPConfig] = None):
        self.provider = provider
        self.config = config or AIPConfig()

    async def run_tests(
        self,
        code: str,
        language: str,
        test_cases: Sequence[TestCase],
        time_limit_sec: Optional[float] = None,
        memory_limit_mb: Optional[int] = None
    ) -> TestRunSummary:
        language_id = resolve_language_id(language)
        self._validate_submission(code, test_cases)

        time_limit = time_limit_sec or self.config.DEFAULT_TIME_LIMIT_SEC
        memory_limit = memory_limit_mb or self.config.DEFAULT_MEMORY_LIMIT_MB

        tasks = [
            self._run_case(code, language_id, case, time_limit, memory_limit)
            for case in test_cases
        ]
        results: List[TestCaseResult] = list(await asyncio.gather(*tasks))

        passed = sum(1 for r in results if r.passed)
        total = len(results)
        logger.info(f"Test run finished: {passed}/{total} passed ({language})")

        return TestRunSummary(
            success=all(r.passed for r in results),
            passed_tests=passed,
            total_tests=total,
            results=results,
            visible_results=[r for r in results if not r.is_hidden],
            summary=f"Passed {passed}/{total} test cases",
        )

    async def evaluate(
        self,
        code: str,
        language: str,
        test_cases: Sequence[TestCase],
        time_limit_sec: Optional[float] = None,
        memory_limit_mb: Optional[int] = None,
        expected_time: Optional[float] = None,
        time_spent: Optional[float] = None
    ) -> CodeEvaluationResult:
        """
        Full evaluation of one submission.
        Without a problem the expected solve time is that of a MEDIUM problem and an
        unknown time spent counts as exactly on schedule.
        """
        run = await self.run_tests(code, language, test_cases, time_limit_sec, memory_limit_mb)

        quality = analyze_quality(code, language)
        complexity = estimate_complexity(code)

        expected = expected_time or expected_time_for(ProblemDifficulty.MEDIUM)
        spent = time_spent if time_spent is not None else expected

        score = calculate_submission_score(
            passed_tests=run.passed_tests,
            total_tests=run.total_tests,
            time_complexity=complexity.time,
            quality_score=quality.quality,
            time_spent=spent,
            expected_time=expected,
        )

        return CodeEvaluationResult(
            success=run.success,
            passed_tests=run.passed_tests,
            total_tests=run.total_tests,
            results=run.results,
            visible_results=run.visible_results,
            summary=run.summary,
            complexity=complexity,
            quality=quality,
            score=score,
            feedback=generate_feedback(run, quality, complexity, score),
        )

    async def evaluate_submission(
        self,
        problem: CodeProblem,
        code: str,
        language: str,
        time_spent: Optional[float] = None
    ) -> CodeEvaluationResult:
        """Evaluate against a stored problem, using its limits and difficulty."""
        logger.info(f"Evaluating submission for problem {problem.id}")
        return await self.evaluate(
            code=code,
            language=language,
            test_cases=problem.test_cases,
            time_limit_sec=problem.time_limit,
            memory_limit_mb=problem.memory_limit,
            expected_time=expected_time_for(problem.difficulty),
            time_spent=time_spent,
        )

    @staticmethod
    def _validate_submission(code: str, test_cases: Sequence[TestCase]):
        if code is None or not code.strip():
            raise InvalidInputError("Submission code must not be empty")
        if not test_cases:
            raise InvalidInputError("At least one test case is required")

    async def _run_case(
        self,
        code: str,
        language_id: int,
        case: TestCase,
        time_limit: float,
        memory_limit: int
    ) -> TestCaseResult:
        if case.input is None or case.expected_output is None:
            logger.warning("Malformed test case (missing input or expected output)")
            return self._runtime_error(case)

        request = ExecutionRequestDTO(
            source_code=code,
            language_id=language_id,
            stdin=case.input,
            expected_output=case.expected_output,
            cpu_time_limit=time_limit,
            memory_limit_kb=memory_limit * 1024,
        )
        timeout = time_limit + self.config.EXECUTION_TIMEOUT_GRACE_SEC

        try:
            result = await asyncio.wait_for(self.provider.execute(request), timeout=timeout)
        except asyncio.TimeoutError:
            logger.error(f"Test case timed out after {timeout}s")
            return self._runtime_error(case)
        except CapabilityFailureError as e:
            logger.error(f"Execution capability failed for a test case: {e.message}")
            return self._runtime_error(case)
        except Exception:
            # One broken case must not sink the rest of the batch
            logger.exception("Unexpected error while executing a test case")
            return self._runtime_error(case)

        return TestCaseResult(
            passed=result.status_id == STATUS_ACCEPTED,
            input=case.input,
            expected_output=case.expected_output,
            actual_output=result.stdout or result.stderr or "",
            execution_time=result.elapsed_time,
            memory=result.memory_used,
            status=result.status_description,
            is_hidden=case.is_hidden,
        )

    @staticmethod
    def _runtime_error(case: TestCase) -> TestCaseResult:
        return TestCaseResult(
            passed=False,
            input=case.input,
            expected_output=case.expected_output,
            actual_output=RUNTIME_ERROR_OUTPUT,
            execution_time=None,
            memory=None,
            status=RUNTIME_ERROR_STATUS,
            is_hidden=case.is_hidden,
        )
