import sys
import os
import json
import random
import tempfile
import unittest

# Ensure project root is in path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.append(project_root)

from packages.aip_core.config import AIPConfig
from packages.aip_core.domain import Depth, InterviewContext, InterviewType, Question, ResumeSummary, WorkExperience
from packages.aip_core.errors import CapabilityFailureError, InvalidInputError, InvalidStateError, NotFoundError
from packages.aip_providers.code_exec.mock import MockCodeExecutionProvider
from packages.aip_providers.llm.mock import MockLLMProvider
from packages.aip_providers.realtime.mock import MockRealtimeChannel
from packages.aip_code_eval.schema import CodeProblem, ProblemDifficulty, TestCase as CodeTestCase
from packages.aip_conductor.state import AbortReason, ConductorState
from packages.aip_scoring.schema import CodeSubmission
from packages.aip_orchestrator.repository import JsonFileInterviewRepository, MemoryInterviewRepository
from packages.aip_orchestrator.schema import JobPosting
from packages.aip_orchestrator.service import InterviewOrchestrator

RESUME_JSON = json.dumps({
    "personalInfo": {"name": "Jordan Lee", "email": "jordan@example.com"},
    "skills": {"languages": ["Python", "SQL"], "tools": ["Docker"]},
    "experience": [{"company": "Acme", "role": "Backend Developer", "duration": "4 years"}],
    "education": [{"degree": "BSc Computer Science", "institution": "State University", "year": "2019"}],
})

QUESTION_JSON = json.dumps({
    "title": "Backend Engineer interview",
    "questions": [
        {"text": "How does a B-tree index speed up reads?", "difficulty": "MEDIUM"},
        {"text": "How would you make an endpoint idempotent?", "difficulty": "MEDIUM"},
        {"text": "Walk me through designing a job queue.", "difficulty": "HIGH"},
    ],
})

ANSWER_ONE = (
    "I would key writes by an idempotency token stored with the result, because a retry "
    "then finds the stored response and returns it without running the side effect again."
)
ANSWER_TWO = (
    "First I would measure where the time goes, then add an index on the filtered column "
    "and cache hot reads, since that usually removes most of the load in practice."
)

SUM_SOLUTION = "def solve(nums):\n    # add them up\n    return sum(nums)"


def make_context(interview_id="int-1", **overrides) -> InterviewContext:
    values = dict(
        interview_id=interview_id,
        candidate_id="cand-1",
        candidate_name="Jordan Lee",
        candidate_email="jordan@example.com",
        company_id="co-1",
        company_name="Acme",
        job_id="job-1",
        interview_type=InterviewType.TECHNICAL,
        duration=30,
    )
    values.update(overrides)
    return InterviewContext(**values)


def scheduled_context(interview_id="int-1") -> InterviewContext:
    return make_context(interview_id, questions=[
        Question(id="q1", text="How would you make an endpoint idempotent?", category="practical"),
        Question(id="q2", text="How would you speed up a slow read path?", category="conceptual"),
    ])


class OrchestratorTestBase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.repository = MemoryInterviewRepository()
        self.llm = MockLLMProvider()
        self.executor = MockCodeExecutionProvider()
        self.invites = []

        async def record_invite(context):
            self.invites.append(context.interview_id)
            return True

        self.orchestrator = InterviewOrchestrator(
            llm=self.llm,
            code_executor=self.executor,
            repository=self.repository,
            config=AIPConfig(LLM_RETRY_BACKOFF_SEC=0),
            invite_sender=record_invite,
            rng=random.Random(0),
        )
        self.orchestrator.save_job(JobPosting(
            id="job-1",
            title="Backend Engineer",
            description="Build and run the order APIs",
            tech_stack=["Python", "PostgreSQL"],
            preferred_skills=["Docker"],
        ))


class TestPreparation(OrchestratorTestBase):
    async def test_run_complete_interview(self):
        self.llm.queue(RESUME_JSON, QUESTION_JSON)
        outcome = await self.orchestrator.run_complete_interview(make_context(), resume_text="Jordan Lee, backend developer")

        self.assertTrue(outcome.questions_generated)
        self.assertTrue(outcome.session_created)
        self.assertTrue(outcome.invite_sent)
        self.assertEqual(outcome.question_count, 3)
        self.assertEqual(self.invites, ["int-1"])

        stored = self.repository.get_context("int-1")
        self.assertEqual([q.id for q in stored.questions], ["q1", "q2", "q3"])
        self.assertEqual(stored.skills, ["Python", "SQL", "Docker"])
        self.assertEqual(stored.resume_data.experience[0].company, "Acme")

        question_prompt = self.llm.calls[1][0].content
        self.assertIn("- Experience Level: mid", question_prompt)
        self.assertIn("- Skills: Python, SQL, Docker", question_prompt)

    async def test_level_from_text_when_no_positions(self):
        resume = json.dumps({"skills": ["Go"], "experience": []})
        self.llm.queue(resume, QUESTION_JSON)
        await self.orchestrator.run_complete_interview(
            make_context(), resume_text="Platform engineer with 9 years of experience in Go."
        )
        self.assertIn("- Experience Level: senior", self.llm.calls[1][0].content)

    async def test_without_resume(self):
        self.llm.queue(QUESTION_JSON)
        outcome = await self.orchestrator.run_complete_interview(make_context(skills=["Python"]))
        self.assertEqual(outcome.question_count, 3)
        self.assertIsNone(self.repository.get_context("int-1").resume_data)
        self.assertEqual(len(self.llm.calls), 1)

    async def test_preparation_failures(self):
        with self.assertRaises(InvalidInputError):
            await self.orchestrator.run_complete_interview(make_context(job_id=None))
        with self.assertRaises(NotFoundError):
            await self.orchestrator.run_complete_interview(make_context(job_id="job-missing"))

        self.llm.queue("not json", "still not json")
        with self.assertRaises(CapabilityFailureError):
            await self.orchestrator.run_complete_interview(make_context(), resume_text="Some resume")
        self.assertIsNone(self.repository.get_context("int-1"))
        self.assertEqual(self.invites, [])

    async def test_parse_resume(self):
        with self.assertRaises(InvalidInputError):
            await self.orchestrator.parse_resume("  ")

        self.llm.queue(RESUME_JSON)
        parsed = await self.orchestrator.parse_resume("Jordan Lee resume")
        self.assertEqual(parsed.personal_info.name, "Jordan Lee")
        self.assertEqual(parsed.skills, ["Python", "SQL", "Docker"])

        self.llm.queue("[1, 2, 3]")
        with self.assertRaises(CapabilityFailureError):
            await self.orchestrator.parse_resume("Jordan Lee resume")

    async def test_generation_request_is_validated(self):
        with self.assertRaises(InvalidInputError):
            await self.orchestrator.generate_questions("job-1", InterviewType.TECHNICAL, 500, Depth.MEDIUM)

    def test_match_candidate(self):
        result = self.orchestrator.match_candidate(["python", "docker"], "job-1")
        self.assertEqual(result.match_score, 65)
        self.assertEqual(result.missing_required, ["PostgreSQL"])
        with self.assertRaises(NotFoundError):
            self.orchestrator.match_candidate(["python"], "job-404")


class TestConductAndScore(OrchestratorTestBase):
    def test_segment_flow_then_score(self):
        self.orchestrator.schedule_interview(scheduled_context())

        opening = self.orchestrator.conduct_segment("int-1", None)
        self.assertTrue(opening.response.startswith("Hello Jordan Lee"))
        self.assertTrue(opening.should_continue)
        self.assertEqual(opening.next_question, "How would you make an endpoint idempotent?")

        second = self.orchestrator.conduct_segment("int-1", ANSWER_ONE)
        self.assertTrue(second.should_continue)
        self.assertEqual(second.next_question, "How would you speed up a slow read path?")

        last = self.orchestrator.conduct_segment("int-1", ANSWER_TWO)
        self.assertFalse(last.should_continue)
        self.assertIsNone(last.next_question)

        bundle = self.repository.get_bundle("int-1")
        self.assertEqual(bundle.final_state, ConductorState.ENDED)
        self.assertEqual(bundle.questions_answered, 2)
        with self.assertRaises(InvalidStateError):
            self.orchestrator.conduct_segment("int-1", "Hello again")

        result = self.orchestrator.score_interview("int-1")
        self.assertEqual(result.interview_id, "int-1")
        self.assertEqual(len(result.questions_answered), 2)
        self.assertFalse(result.partial)
        self.assertIs(self.orchestrator.score_interview("int-1"), result)

    def test_score_survives_unreadable_resume_dates(self):
        context = scheduled_context()
        context.resume_data = ResumeSummary(experience=[
            WorkExperience(company="Acme", role="Engineer", start_date="spring", end_date="Current"),
            WorkExperience(company="Beta", role="Engineer", duration="1 year"),
        ])
        self.orchestrator.schedule_interview(context)
        self.orchestrator.conduct_segment("int-1", None)
        self.orchestrator.conduct_segment("int-1", ANSWER_ONE)
        self.orchestrator.conduct_segment("int-1", ANSWER_TWO)

        result = self.orchestrator.score_interview("int-1")
        self.assertFalse(result.partial)
        self.assertIn("junior-level position", result.summary)

    def test_unknown_interview(self):
        with self.assertRaises(NotFoundError):
            self.orchestrator.conduct_segment("int-404", None)
        with self.assertRaises(NotFoundError):
            self.orchestrator.score_interview("int-404")
        with self.assertRaises(NotFoundError):
            self.orchestrator.abort_interview("int-404")

    def test_abort(self):
        self.orchestrator.schedule_interview(scheduled_context())
        self.orchestrator.conduct_segment("int-1", None)
        self.orchestrator.conduct_segment("int-1", ANSWER_ONE)

        bundle = self.orchestrator.abort_interview("int-1")
        self.assertTrue(bundle.partial)
        self.assertEqual(bundle.abort_reason, AbortReason.OPERATOR)
        self.assertIs(self.repository.get_bundle("int-1"), bundle)
        with self.assertRaises(NotFoundError):
            self.orchestrator.abort_interview("int-1")

        result = self.orchestrator.score_interview("int-1")
        self.assertTrue(result.partial)

    async def test_live_interview(self):
        self.orchestrator.schedule_interview(scheduled_context("int-live"))
        channel = MockRealtimeChannel()
        channel.say(ANSWER_ONE)
        channel.say(ANSWER_TWO)

        bundle = await self.orchestrator.run_live_interview("int-live", channel)
        self.assertEqual(bundle.final_state, ConductorState.ENDED)
        self.assertEqual(self.repository.get_bundle("int-live"), bundle)
        self.assertEqual(len(channel.sent), 4)

    async def test_live_interview_stores_bundle_on_unexpected_error(self):
        self.orchestrator.schedule_interview(scheduled_context("int-live"))

        class DroppingChannel(MockRealtimeChannel):
            async def receive(self):
                if self._inbound.empty():
                    raise RuntimeError("stream reset")
                return await super().receive()

        channel = DroppingChannel()
        channel.say(ANSWER_ONE)
        with self.assertRaises(RuntimeError):
            await self.orchestrator.run_live_interview("int-live", channel)

        bundle = self.repository.get_bundle("int-live")
        self.assertEqual(bundle.abort_reason, AbortReason.CHANNEL_FAILURE)
        self.assertEqual(bundle.questions_answered, 1)
        self.assertTrue(self.orchestrator.score_interview("int-live").partial)

    async def test_code_submission_joins_result(self):
        self.orchestrator.save_problem(CodeProblem(
            id="p1",
            title="Sum",
            description="Return the sum of the list.",
            test_cases=[
                CodeTestCase(input="1 2 3", expected_output="6"),
                CodeTestCase(input="5", expected_output="5", is_hidden=True),
            ],
            difficulty=ProblemDifficulty.EASY,
        ))
        self.assertNotIn("1 2 3", self.orchestrator.problem_statement("p1"))
        self.assertIn("step by step", self.orchestrator.problem_hint("p1", stuck_minutes=7, hints_given=0))

        result = await self.orchestrator.evaluate_code("p1", SUM_SOLUTION, "python", "int-1", time_spent=8)
        self.assertTrue(result.success)
        self.assertEqual(len(result.visible_results), 1)
        self.assertEqual(len(self.repository.list_code_submissions("int-1")), 1)

        self.orchestrator.schedule_interview(scheduled_context())
        self.orchestrator.conduct_segment("int-1", None)
        self.orchestrator.conduct_segment("int-1", ANSWER_ONE)
        self.orchestrator.conduct_segment("int-1", ANSWER_TWO)

        scored = self.orchestrator.score_interview("int-1")
        self.assertEqual(len(scored.code_submissions), 1)
        self.assertEqual(scored.code_submissions[0].problem, "Sum")

        with self.assertRaises(NotFoundError):
            await self.orchestrator.evaluate_code("p404", SUM_SOLUTION, "python", "int-1")


class TestJsonFileRepository(unittest.IsolatedAsyncioTestCase):
    async def test_round_trip(self):
        with tempfile.TemporaryDirectory() as base_dir:
            repository = JsonFileInterviewRepository(base_dir)
            orchestrator = InterviewOrchestrator(
                llm=MockLLMProvider(),
                code_executor=MockCodeExecutionProvider(),
                repository=repository,
                rng=random.Random(0),
            )
            job = JobPosting(id="job-1", title="Backend Engineer", description="APIs", tech_stack=["Python"])
            orchestrator.save_job(job)
            self.assertEqual(repository.get_job("job-1"), job)
            self.assertIsNone(repository.get_job("job-2"))

            context = scheduled_context()
            orchestrator.schedule_interview(context)
            self.assertEqual(repository.get_context("int-1"), context)

            problem = CodeProblem(
                id="p1", title="Echo", description="Print the input.",
                test_cases=[CodeTestCase(input="  padded  ", expected_output="  padded  ")],
            )
            orchestrator.save_problem(problem)
            self.assertEqual(repository.get_problem("p1").test_cases[0].input, "  padded  ")
            evaluation = await orchestrator.evaluate_code("p1", "print(input())", "python", "int-1")
            submissions = repository.list_code_submissions("int-1")
            self.assertIsInstance(submissions[0], CodeSubmission)
            self.assertEqual(submissions[0].evaluation.score, evaluation.score)

            orchestrator.conduct_segment("int-1", None)
            orchestrator.conduct_segment("int-1", ANSWER_ONE)
            orchestrator.conduct_segment("int-1", ANSWER_TWO)
            self.assertEqual(repository.get_bundle("int-1").questions_answered, 2)

            result = orchestrator.score_interview("int-1")
            stored = repository.get_result("int-1")
            self.assertEqual(stored.scores.overall, result.scores.overall)
            with self.assertRaises(InvalidStateError):
                repository.save_result(result)


if __name__ == "__main__":
    unittest.main()
