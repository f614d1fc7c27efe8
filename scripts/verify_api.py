import sys
import os
import random
import unittest

# Ensure project root is in path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.append(project_root)

from fastapi.testclient import TestClient

from AIP.main import create_app
from AIP.api.dependencies import get_code_engine, get_orchestrator, get_question_generator
from packages.aip_core.config import AIPConfig
from packages.aip_providers.code_exec.mock import MockCodeExecutionProvider
from packages.aip_providers.llm.mock import MockLLMProvider
from packages.aip_code_eval.engine import CodeEvaluationEngine
from packages.aip_guardrails.rules import CANDIDATE_SAFE_ERROR_MESSAGE
from packages.aip_qgen.generator import QuestionGenerator
from packages.aip_orchestrator.repository import MemoryInterviewRepository
from packages.aip_orchestrator.service import InterviewOrchestrator

CONTEXT = {
    "interviewId": "int-api",
    "candidateName": "Alex Kim",
    "candidateEmail": "alex@example.com",
    "companyId": "co-1",
    "companyName": "Acme",
    "jobId": "job-1",
    "interviewType": "TECHNICAL",
    "duration": 30,
    "questions": [
        {"id": "q1", "text": "How would you make an endpoint idempotent?", "category": "practical"},
    ],
}

ANSWER = (
    "I would store an idempotency token with the stored response, because a retried "
    "request then finds the earlier response and returns it without charging twice."
)


class ApiTestBase(unittest.TestCase):
    def setUp(self):
        config = AIPConfig(LLM_RETRY_BACKOFF_SEC=0)
        self.llm = MockLLMProvider()
        self.executor = MockCodeExecutionProvider()
        self.orchestrator = InterviewOrchestrator(
            llm=self.llm,
            code_executor=self.executor,
            repository=MemoryInterviewRepository(),
            config=config,
            rng=random.Random(0),
        )
        self.app = create_app()
        self.app.dependency_overrides[get_orchestrator] = lambda: self.orchestrator
        self.app.dependency_overrides[get_code_engine] = lambda: CodeEvaluationEngine(self.executor, config)
        self.app.dependency_overrides[get_question_generator] = lambda: QuestionGenerator(self.llm, config)
        self.client = TestClient(self.app)

    def tearDown(self):
        self.app.dependency_overrides.clear()


class TestStatelessEndpoints(ApiTestBase):
    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")

    def test_guardrail_check(self):
        response = self.client.post("/api/v1/guardrails/check", json={"text": "what model are you?"})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertFalse(body["safe"])
        self.assertEqual(body["category"], "SYSTEM_INFO")

        response = self.client.post("/api/v1/guardrails/check", json={"text": "Your score is 90.", "direction": "output"})
        self.assertEqual(response.json()["category"], "SCORE_LEAK")

    def test_guardrail_errors(self):
        response = self.client.post("/api/v1/guardrails/check", json={"text": "   "})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["code"], "INVALID_INPUT")

        response = self.client.post("/api/v1/guardrails/check", json={"text": "hi", "direction": "sideways"})
        self.assertEqual(response.status_code, 422)

    def test_rules(self):
        response = self.client.get("/api/v1/guardrails/rules")
        self.assertIn("keep_on_topic", response.json()["input"])

    def test_plan(self):
        response = self.client.get("/api/v1/questions/plan", params={"interview_type": "TECHNICAL", "duration": 50})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["total_questions"], 5)
        self.assertEqual(body["distribution"], {"conceptual": 2, "practical": 2, "system_design": 1})

        response = self.client.get("/api/v1/questions/plan", params={"interview_type": "TECHNICAL", "duration": 0})
        self.assertEqual(response.status_code, 422)

    def test_templates(self):
        body = self.client.get("/api/v1/questions/templates/Backend Engineer").json()
        self.assertTrue(body["found"])
        self.assertTrue(body["canCustomize"])

        body = self.client.get("/api/v1/questions/templates/Data Scientist").json()
        self.assertFalse(body["found"])
        self.assertIn("backend_engineer", body["availableTemplates"])

        response = self.client.get("/api/v1/questions/templates/frontend_engineer/customizable", params={"skills": ["React"]})
        self.assertEqual(len(response.json()), 2)

        response = self.client.get("/api/v1/questions/templates/Data Scientist/customizable", params={"skills": ["SQL"]})
        self.assertEqual(response.status_code, 404)

    def test_follow_up_without_time(self):
        response = self.client.post("/api/v1/questions/follow-up", json={
            "original_question": "Explain indexing",
            "candidate_answer": "Faster reads",
            "time_remaining": 1,
        })
        self.assertEqual(response.json()["question"], "")
        self.assertEqual(self.llm.calls, [])

    def test_sentiment(self):
        response = self.client.post("/api/v1/sentiment/analyze", json={
            "audio_features": {"volume": 0.8, "pitch": 150, "speechRate": 140, "silenceRatio": 0.1, "fillerWordCount": 1},
            "timestamp": "2026-01-01T00:00:00+00:00",
        })
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["audioSentiment"]["tone"], "CONFIDENT")
        self.assertEqual(body["timestamp"], "2026-01-01T00:00:00+00:00")

        response = self.client.post("/api/v1/sentiment/cheating", json={"signals": {"tabSwitches": 4}})
        self.assertEqual(response.json()["riskLevel"], "HIGH")

    def test_code_evaluate(self):
        response = self.client.post("/api/v1/code/evaluate", json={
            "code": "print(input())",
            "language": "python",
            "test_cases": [{"input": "1", "expectedOutput": "1"}, {"input": "2", "expectedOutput": "2", "isHidden": True}],
        })
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["passedTests"], 2)
        self.assertEqual(len(body["visibleResults"]), 1)

        response = self.client.post("/api/v1/code/evaluate", json={
            "code": "print(1)", "language": "cobol", "test_cases": [{"input": "1", "expectedOutput": "1"}],
        })
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["code"], "UNSUPPORTED_LANGUAGE")

    def test_scoring(self):
        response = self.client.post("/api/v1/scoring/aggregate", json={"question_scores": []})
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["code"], "AGGREGATION_ERROR")

        response = self.client.post("/api/v1/scoring/aggregate", json={"question_scores": [{
            "question_id": "q1",
            "scores": {"communication": 70, "technical": 80, "problemSolving": 90, "confidence": 60},
        }]})
        self.assertEqual(response.json()["overall"], 79)

        response = self.client.post("/api/v1/scoring/question", json={"question": "q", "answer": ""})
        self.assertEqual(response.json()["scores"]["technical"], 0)

        response = self.client.post("/api/v1/scoring/interviews/int-missing")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["details"]["id"], "int-missing")


class TestInterviewEndpoints(ApiTestBase):
    def test_jobs_and_match(self):
        response = self.client.post("/api/v1/interviews/jobs", json={
            "id": "job-1", "title": "Backend Engineer", "description": "APIs",
            "techStack": ["Python", "PostgreSQL"], "preferredSkills": ["Docker"],
        })
        self.assertEqual(response.status_code, 201)

        response = self.client.post("/api/v1/interviews/match", json={"job_id": "job-1", "candidate_skills": ["python"]})
        self.assertEqual(response.json()["matchScore"], 35)

        response = self.client.post("/api/v1/interviews/match", json={"job_id": "job-2", "candidate_skills": ["python"]})
        self.assertEqual(response.status_code, 404)

    def test_prepare_requires_capability(self):
        self.client.post("/api/v1/interviews/jobs", json={"id": "job-1", "title": "Backend Engineer", "description": "APIs"})
        self.llm.queue(RuntimeError("down"), RuntimeError("still down"))
        context = dict(CONTEXT, questions=[])
        response = self.client.post("/api/v1/interviews/prepare", json={"context": context})
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.json()["details"]["capability"], "llm")

    def test_conduct_and_score(self):
        response = self.client.post("/api/v1/interviews", json=CONTEXT)
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["question_count"], 1)

        first = self.client.post("/api/v1/interviews/int-api/segment", json={}).json()
        self.assertTrue(first["shouldContinue"])
        self.assertEqual(first["nextQuestion"], "How would you make an endpoint idempotent?")

        last = self.client.post("/api/v1/interviews/int-api/segment", json={"candidate_input": ANSWER}).json()
        self.assertFalse(last["shouldContinue"])

        response = self.client.post("/api/v1/interviews/int-api/segment", json={"candidate_input": "Bye"})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["response"], CANDIDATE_SAFE_ERROR_MESSAGE)
        self.assertNotIn("code", response.json())

        result = self.client.post("/api/v1/scoring/interviews/int-api")
        self.assertEqual(result.status_code, 200)
        self.assertEqual(result.json()["interview_id"], "int-api")
        self.assertIn("overall", result.json()["scores"])

    def test_segment_errors_show_neutral_message(self):
        response = self.client.post("/api/v1/interviews/int-unknown/segment", json={"candidate_input": "Hello"})
        self.assertEqual(response.status_code, 404)
        body = response.json()
        self.assertEqual(body["response"], CANDIDATE_SAFE_ERROR_MESSAGE)
        self.assertFalse(body["shouldContinue"])
        self.assertIsNone(body["nextQuestion"])
        self.assertNotIn("int-unknown", body["response"])

    def test_abort(self):
        self.client.post("/api/v1/interviews", json=CONTEXT)
        self.client.post("/api/v1/interviews/int-api/segment", json={})
        response = self.client.post("/api/v1/interviews/int-api/abort")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["partial"])
        self.assertEqual(self.client.post("/api/v1/interviews/int-api/abort").status_code, 404)

    def test_problem_endpoints(self):
        response = self.client.post("/api/v1/interviews/problems", json={
            "id": "p1",
            "title": "Echo",
            "description": "Print the input.",
            "constraints": ["Input is one line"],
            "testCases": [{"input": "hidden-echo", "expectedOutput": "hidden-echo"}],
        })
        self.assertEqual(response.status_code, 201)

        statement = self.client.get("/api/v1/code/problems/p1/statement").text
        self.assertIn("**Echo**", statement)
        self.assertNotIn("hidden-echo", statement)

        hint = self.client.get("/api/v1/code/problems/p1/hint", params={"stuck_minutes": 12, "hints_given": 1}).json()
        self.assertIn("Input is one line", hint["hint"])

        response = self.client.post(
            "/api/v1/code/submissions",
            params={"interview_id": "int-api"},
            json={"problem_id": "p1", "code": "print(input())", "language": "python"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["success"])

        self.assertEqual(self.client.get("/api/v1/code/problems/p9/statement").status_code, 404)


if __name__ == "__main__":
    unittest.main()
