import sys
import os
import json
import unittest

# Ensure project root is in path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.append(project_root)

import httpx

from packages.aip_core.config import AIPConfig
from packages.aip_core.dto import ExecutionRequestDTO, ExecutionResultDTO
from packages.aip_core.errors import CapabilityFailureError, InvalidInputError, UnsupportedLanguageError
from packages.aip_providers.code_exec.judge0 import Judge0CodeExecutionProvider
from packages.aip_providers.code_exec.mock import MockCodeExecutionProvider
from packages.aip_code_eval.complexity import (
    CONSTANT,
    LINEAR,
    QUADRATIC,
    RECURSIVE_SPACE,
    RECURSIVE_TIME,
    estimate_complexity,
)
from packages.aip_code_eval.engine import CodeEvaluationEngine, RUNTIME_ERROR_OUTPUT, RUNTIME_ERROR_STATUS
from packages.aip_code_eval.languages import resolve_language_id
from packages.aip_code_eval.presentation import next_hint, present_problem
from packages.aip_code_eval.quality import analyze_quality
from packages.aip_code_eval.schema import (
    CodeProblem,
    ComplexityLevel,
    ProblemDifficulty,
    ProblemExample,
    TestCase as CodeTestCase,
)
from packages.aip_code_eval.scoring import calculate_submission_score, expected_time_for

SUM_SOLUTION = "\n".join([
    "def solve(nums):",
    "    # add every number once",
    "    total = 0",
    "    for value in nums:",
    "        total += value",
    "    return total",
])

NESTED_PYTHON = "\n".join([
    "def pairs(items):",
    "    found = []",
    "    for left in items:",
    "        for right in items:",
    "            found.append((left, right))",
    "    return found",
])

NESTED_JS = "for (let i = 0; i < n; i++) {\n  for (let j = 0; j < n; j++) {\n    total += i * j;\n  }\n}"

RECURSIVE_PYTHON = "\n".join([
    "def fib(n):",
    "    if n < 2:",
    "        return n",
    "    return fib(n - 1) + fib(n - 2)",
])


def cases(*pairs, hidden=()):
    return [
        CodeTestCase(input=stdin, expected_output=expected, is_hidden=index in hidden)
        for index, (stdin, expected) in enumerate(pairs)
    ]


class TestSubmissionScore(unittest.TestCase):
    def test_two_of_three_fast_linear(self):
        score = calculate_submission_score(
            passed_tests=2, total_tests=3, time_complexity=LINEAR,
            quality_score=90, time_spent=10, expected_time=25,
        )
        self.assertEqual(score, 80)

    def test_quadratic_on_tight_problem(self):
        score = calculate_submission_score(
            passed_tests=3, total_tests=3, time_complexity=QUADRATIC,
            quality_score=50, time_spent=40, expected_time=25,
        )
        # 40 + 10 + 10 + 5
        self.assertEqual(score, 65)

    def test_expected_times(self):
        self.assertEqual(expected_time_for(ProblemDifficulty.EASY), 15)
        self.assertEqual(expected_time_for(ProblemDifficulty.MEDIUM), 25)
        self.assertEqual(expected_time_for(ProblemDifficulty.HARD), 40)


class TestStaticAnalysis(unittest.TestCase):
    def test_complexity(self):
        self.assertEqual(estimate_complexity(SUM_SOLUTION).time, LINEAR)
        self.assertEqual(estimate_complexity(NESTED_PYTHON).time, QUADRATIC)
        self.assertEqual(estimate_complexity(NESTED_PYTHON).space, LINEAR)
        self.assertEqual(estimate_complexity(NESTED_JS).time, QUADRATIC)
        self.assertEqual(estimate_complexity("return 42").time, CONSTANT)

    def test_recursion(self):
        result = estimate_complexity(RECURSIVE_PYTHON)
        self.assertEqual(result.time, RECURSIVE_TIME)
        self.assertEqual(result.space, RECURSIVE_SPACE)

        js = "function walk(node) {\n  if (!node) return 0;\n  return 1 + walk(node.next);\n}"
        self.assertEqual(estimate_complexity(js).space, RECURSIVE_SPACE)

    def test_loop_keyword_needs_word_boundary(self):
        # "format" and "meanwhile" are not loops
        code = "value = format(x)\nmeanwhile = 1\nfor item in items:\n    print(item)"
        self.assertEqual(estimate_complexity(code).time, LINEAR)

    def test_quality_of_commented_python(self):
        quality = analyze_quality(SUM_SOLUTION, "python")
        self.assertTrue(quality.has_comments)
        self.assertTrue(quality.has_descriptive_names)
        self.assertFalse(quality.has_error_handling)
        self.assertFalse(quality.has_edge_cases)
        self.assertEqual(quality.complexity, ComplexityLevel.LOW)
        self.assertEqual(quality.quality, 80)
        self.assertIn("Consider handling edge cases (empty inputs, null values, etc.)", quality.suggestions)

    def test_quality_suggestions_for_javascript(self):
        code = "var total = 0;\nfunction add(a, b, c, d) {\n  return a + b + c + d;\n}"
        quality = analyze_quality(code, "javascript")
        self.assertIn("Use const/let instead of var for better scoping", quality.suggestions)
        self.assertIn("Consider adding error handling with try-catch blocks", quality.suggestions)
        self.assertIn("Add comments to explain complex logic", quality.suggestions)
        self.assertFalse(quality.has_descriptive_names)

    def test_language_ids(self):
        self.assertEqual(resolve_language_id("Python"), 71)
        self.assertEqual(resolve_language_id("javascript"), 63)
        with self.assertRaises(UnsupportedLanguageError):
            resolve_language_id("cobol")


class TestCodeEvaluationEngine(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.config = AIPConfig(DEFAULT_TIME_LIMIT_SEC=0.05, EXECUTION_TIMEOUT_GRACE_SEC=0.05)

    async def test_partial_pass(self):
        provider = MockCodeExecutionProvider(outcomes={"3": "4"})
        engine = CodeEvaluationEngine(provider, self.config)
        result = await engine.evaluate(SUM_SOLUTION, "python", cases(("1", "1"), ("2", "2"), ("3", "3")), time_spent=10)

        self.assertFalse(result.success)
        self.assertEqual(result.passed_tests, 2)
        self.assertEqual(result.total_tests, 3)
        self.assertEqual(result.summary, "Passed 2/3 test cases")
        self.assertEqual(result.results[2].actual_output, "4")
        self.assertEqual(result.results[2].status, "Wrong Answer")
        self.assertEqual(result.complexity.time, LINEAR)
        expected = calculate_submission_score(2, 3, result.complexity.time, result.quality.quality, 10, 25)
        self.assertEqual(result.score, expected)
        self.assertIn("Some test cases failed", result.feedback)
        self.assertEqual(len(provider.requests), 3)

    async def test_hidden_cases_stay_out_of_visible_results(self):
        engine = CodeEvaluationEngine(MockCodeExecutionProvider(), self.config)
        result = await engine.evaluate(SUM_SOLUTION, "python", cases(("1", "1"), ("secret", "42"), hidden={1}))
        self.assertTrue(result.success)
        self.assertEqual(len(result.results), 2)
        self.assertEqual(len(result.visible_results), 1)
        self.assertNotIn("secret", [r.input for r in result.visible_results])

    async def test_timeout_fails_only_that_case(self):
        provider = MockCodeExecutionProvider(outcomes={"slow": 1.0})
        engine = CodeEvaluationEngine(provider, self.config)
        result = await engine.run_tests(SUM_SOLUTION, "python", cases(("slow", "1"), ("fast", "fast")))
        slow, fast = result.results
        self.assertFalse(slow.passed)
        self.assertEqual(slow.status, RUNTIME_ERROR_STATUS)
        self.assertEqual(slow.actual_output, RUNTIME_ERROR_OUTPUT)
        self.assertTrue(fast.passed)

    async def test_capability_failure_becomes_runtime_error(self):
        provider = MockCodeExecutionProvider(outcomes={"boom": RuntimeError("sandbox down")})
        engine = CodeEvaluationEngine(provider, self.config)
        result = await engine.run_tests(SUM_SOLUTION, "python", cases(("boom", "1"), ("ok", "ok")))
        self.assertEqual(result.passed_tests, 1)
        self.assertEqual(result.results[0].status, RUNTIME_ERROR_STATUS)

    async def test_malformed_case_is_reported_per_case(self):
        provider = MockCodeExecutionProvider()
        engine = CodeEvaluationEngine(provider, self.config)
        result = await engine.run_tests(
            SUM_SOLUTION, "python", [CodeTestCase(input=None, expected_output="1"), CodeTestCase(input="2", expected_output="2")]
        )
        self.assertFalse(result.results[0].passed)
        self.assertEqual(result.results[0].status, RUNTIME_ERROR_STATUS)
        self.assertTrue(result.results[1].passed)
        self.assertEqual(len(provider.requests), 1)

    async def test_invalid_submissions(self):
        engine = CodeEvaluationEngine(MockCodeExecutionProvider(), self.config)
        with self.assertRaises(UnsupportedLanguageError):
            await engine.evaluate(SUM_SOLUTION, "cobol", cases(("1", "1")))
        with self.assertRaises(InvalidInputError):
            await engine.evaluate("   ", "python", cases(("1", "1")))
        with self.assertRaises(InvalidInputError):
            await engine.evaluate(SUM_SOLUTION, "python", [])

    async def test_problem_limits_and_difficulty(self):
        provider = MockCodeExecutionProvider()
        engine = CodeEvaluationEngine(provider, self.config)
        problem = CodeProblem(
            id="p1", title="Sum", description="Add numbers",
            test_cases=cases(("1", "1")), difficulty=ProblemDifficulty.EASY,
            time_limit=2, memory_limit=64,
        )
        result = await engine.evaluate_submission(problem, SUM_SOLUTION, "python", time_spent=30)
        self.assertEqual(provider.requests[0].cpu_time_limit, 2)
        self.assertEqual(provider.requests[0].memory_limit_kb, 64 * 1024)
        # 30 minutes on a 15 minute problem is slow
        expected = calculate_submission_score(1, 1, result.complexity.time, result.quality.quality, 30, 15)
        self.assertEqual(result.score, expected)


def judge0_reply(request: httpx.Request) -> httpx.Response:
    stdin = json.loads(request.content)["stdin"]
    if stdin == "gateway":
        return httpx.Response(200, text="<html>gateway</html>")
    if stdin == "odd":
        return httpx.Response(200, json={"status": {"id": 3, "description": "Accepted"}, "time": "fast"})
    return httpx.Response(200, json={
        "status": {"id": 3, "description": "Accepted"},
        "stdout": stdin + "\n",
        "time": "0.012",
        "memory": 2048,
    })


class UnstableProvider(MockCodeExecutionProvider):
    async def execute(self, request: ExecutionRequestDTO) -> ExecutionResultDTO:
        if request.stdin == "explode":
            raise ValueError("unexpected payload")
        return await super().execute(request)


class TestJudge0Provider(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.config = AIPConfig()
        self.client = httpx.AsyncClient(transport=httpx.MockTransport(judge0_reply))
        self.provider = Judge0CodeExecutionProvider(self.config, client=self.client)

    async def asyncTearDown(self):
        await self.provider.aclose()

    async def test_accepted_submission(self):
        result = await self.provider.execute(ExecutionRequestDTO(
            source_code="print(input())", language_id=71, stdin="7", expected_output="7",
            cpu_time_limit=2, memory_limit_kb=1024,
        ))
        self.assertEqual(result.status_id, 3)
        self.assertEqual(result.stdout, "7\n")
        self.assertAlmostEqual(result.elapsed_time, 0.012)

    async def test_unreadable_responses_are_capability_failures(self):
        for stdin in ("gateway", "odd"):
            with self.assertRaises(CapabilityFailureError):
                await self.provider.execute(ExecutionRequestDTO(
                    source_code="print(1)", language_id=71, stdin=stdin, expected_output="1",
                    cpu_time_limit=2, memory_limit_kb=1024,
                ))

    async def test_bad_gateway_fails_only_that_case(self):
        engine = CodeEvaluationEngine(self.provider, self.config)
        result = await engine.run_tests(
            "print(input())", "python", cases(("gateway", "gateway"), ("odd", "odd"), ("5", "5"))
        )
        self.assertEqual([r.status for r in result.results], [RUNTIME_ERROR_STATUS, RUNTIME_ERROR_STATUS, "Accepted"])
        self.assertEqual(result.passed_tests, 1)

    async def test_unexpected_provider_error_fails_only_that_case(self):
        engine = CodeEvaluationEngine(UnstableProvider(), self.config)
        result = await engine.run_tests(SUM_SOLUTION, "python", cases(("explode", "1"), ("ok", "ok")))
        self.assertEqual(result.results[0].status, RUNTIME_ERROR_STATUS)
        self.assertEqual(result.results[0].actual_output, RUNTIME_ERROR_OUTPUT)
        self.assertTrue(result.results[1].passed)


class TestPresentation(unittest.TestCase):
    def setUp(self):
        self.problem = CodeProblem(
            id="p2",
            title="Two Sum",
            description="Return indices of the two numbers adding up to target.",
            examples=[ProblemExample(input="[2,7,11,15], 9", output="[0,1]", explanation="2 + 7 = 9")],
            constraints=["2 <= nums.length <= 10^4"],
            test_cases=cases(("SECRET_INPUT_42", "[0,1]")),
            time_limit=2,
        )

    def test_statement_hides_test_cases(self):
        text = present_problem(self.problem)
        self.assertIn("**Two Sum**", text)
        self.assertIn("Explanation: 2 + 7 = 9", text)
        self.assertIn("- 2 <= nums.length <= 10^4", text)
        self.assertIn("Time Limit: 2 seconds per test case", text)
        self.assertNotIn("SECRET_INPUT_42", text)

    def test_hints_unlock_progressively(self):
        self.assertIn("step by step", next_hint(self.problem, stuck_minutes=6, hints_given=0))
        self.assertIn("2 <= nums.length", next_hint(self.problem, stuck_minutes=11, hints_given=1))
        self.assertIn("data structure", next_hint(self.problem, stuck_minutes=16, hints_given=2))
        self.assertIn("Take your time", next_hint(self.problem, stuck_minutes=3, hints_given=0))


if __name__ == "__main__":
    unittest.main()
