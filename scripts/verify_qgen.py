import sys
import os
import json
import unittest

# Ensure project root is in path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.append(project_root)

from packages.aip_core.config import AIPConfig
from packages.aip_core.domain import Depth, InterviewType
from packages.aip_core.errors import CapabilityFailureError
from packages.aip_providers.llm.mock import MockLLMProvider
from packages.aip_qgen.generator import QuestionGenerator
from packages.aip_qgen.policy import detect_experience_level, is_customizable, plan_distribution, question_count
from packages.aip_qgen.schema import GenerationRequest
from packages.aip_qgen.templates import customizable_questions, load_template, template_key

QUESTION_SET = json.dumps({
    "title": "Backend interview",
    "questions": [
        {"text": "How does a B-tree index speed up reads?", "difficulty": "MEDIUM", "expectedTopics": ["B-trees"], "timeLimit": 10},
        {"text": "Walk me through designing a job queue.", "difficulty": "HIGH", "expectedTopics": ["queues", "retries"]},
        {"text": "What is an HTTP status code?", "difficulty": "LOW"},
    ],
})


def request(**overrides) -> GenerationRequest:
    values = dict(
        job_title="Backend Engineer",
        job_description="Build and run APIs",
        required_skills=["Python", "PostgreSQL"],
        interview_type=InterviewType.TECHNICAL,
        duration=30,
        depth=Depth.HIGH,
    )
    values.update(overrides)
    return GenerationRequest(**values)


class TestPolicy(unittest.TestCase):
    def test_distributions_floor(self):
        self.assertEqual(
            plan_distribution(InterviewType.TECHNICAL, 5),
            {"conceptual": 2, "practical": 2, "system_design": 1},
        )
        self.assertEqual(
            plan_distribution(InterviewType.BEHAVIORAL, 3),
            {"experience": 1, "situational": 0, "motivation": 0},
        )
        self.assertEqual(
            plan_distribution(InterviewType.CODING, 10),
            {"warmup": 2, "medium": 5, "challenging": 3},
        )

    def test_situational_uses_mixed_split(self):
        self.assertEqual(
            plan_distribution(InterviewType.SITUATIONAL, 10),
            {"behavioral": 3, "technical": 3, "coding": 4},
        )
        self.assertEqual(plan_distribution("UNKNOWN", 10), plan_distribution(InterviewType.MIXED, 10))

    def test_zero_questions_gives_empty_split(self):
        for interview_type in InterviewType:
            distribution = plan_distribution(interview_type, 0)
            self.assertTrue(distribution, interview_type)
            self.assertEqual(set(distribution.values()), {0}, interview_type)
        self.assertEqual(set(plan_distribution(InterviewType.CODING, -2).values()), {0})

    def test_question_count(self):
        self.assertEqual(question_count(45), 4)
        self.assertEqual(question_count(60), 6)
        self.assertEqual(question_count(9), 0)

    def test_customizable(self):
        self.assertTrue(is_customizable("Explain React hooks", ["react"]))
        self.assertFalse(is_customizable("Explain React hooks", ["Go"]))

    def test_experience_from_free_text(self):
        self.assertEqual(detect_experience_level("9 years building services"), "senior")
        self.assertEqual(detect_experience_level("5 years"), "mid")
        self.assertEqual(detect_experience_level("2 years of Java"), "junior")
        self.assertEqual(detect_experience_level("recent graduate"), "entry")


class TestTemplates(unittest.TestCase):
    def test_lookup_by_role_name(self):
        self.assertEqual(template_key("  Backend   Engineer "), "backend_engineer")
        lookup = load_template("Backend Engineer")
        self.assertTrue(lookup.found)
        self.assertTrue(lookup.can_customize)
        coding = [q.text for q in lookup.template.questions["coding"]]
        self.assertIn("Implement an LRU cache.", coding)

    def test_lookup_by_id(self):
        lookup = load_template("whatever", template_id="frontend_engineer")
        self.assertEqual(lookup.template.title, "Frontend Engineer")

    def test_unknown_role_lists_available(self):
        lookup = load_template("Data Scientist")
        self.assertFalse(lookup.found)
        self.assertIsNone(lookup.template)
        self.assertIn("software_engineer_i", lookup.available_templates)

    def test_customizable_questions(self):
        template = load_template("frontend_engineer").template
        texts = [q.text for q in customizable_questions(template, ["React"])]
        self.assertEqual(
            texts,
            ["Explain React hooks and their benefits.", "Create a React component for an autocomplete search."],
        )


class TestQuestionGenerator(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.config = AIPConfig(LLM_RETRY_BACKOFF_SEC=0)

    def test_prompt_carries_plan_and_guidelines(self):
        generator = QuestionGenerator(MockLLMProvider(), self.config)
        prompt = generator.build_prompt(request(candidate_skills=["Python"], candidate_positions=2, experience_level="senior"))
        self.assertIn("Generate 3 interview questions", prompt)
        self.assertIn('"conceptual": 1', prompt)
        self.assertIn("Depth: HIGH (Add complexity and ambiguity, expect detailed analysis)", prompt)
        self.assertIn("- Experience: 2 positions", prompt)
        self.assertIn("- Include system design and architecture questions", prompt)
        self.assertIn("Explain how... works", prompt)

    async def test_generate(self):
        llm = MockLLMProvider(responses=[f"```json\n{QUESTION_SET}\n```"])
        template = await QuestionGenerator(llm, self.config).generate(request())
        self.assertEqual(template.category, InterviewType.TECHNICAL)
        self.assertEqual(len(template.questions), 3)

        questions = template.to_questions()
        self.assertEqual([q.id for q in questions], ["q1", "q2", "q3"])
        self.assertEqual(questions[0].time_allocation, 10)
        self.assertEqual(questions[1].difficulty, Depth.HIGH)
        self.assertEqual(questions[0].category, "technical")

    async def test_short_duration_makes_no_call(self):
        llm = MockLLMProvider()
        template = await QuestionGenerator(llm, self.config).generate(request(duration=5))
        self.assertEqual(template.questions, [])
        self.assertEqual(llm.calls, [])

    async def test_retry_then_success(self):
        llm = MockLLMProvider(responses=[RuntimeError("overloaded"), QUESTION_SET])
        template = await QuestionGenerator(llm, self.config).generate(request())
        self.assertEqual(len(template.questions), 3)
        self.assertEqual(len(llm.calls), 2)

    async def test_unusable_output(self):
        generator = QuestionGenerator(MockLLMProvider(responses=["Here are some great questions!"]), self.config)
        with self.assertRaises(CapabilityFailureError):
            await generator.generate(request())

        generator = QuestionGenerator(MockLLMProvider(responses=['{"title": "x"}']), self.config)
        with self.assertRaises(CapabilityFailureError):
            await generator.generate(request())

        bad_difficulty = json.dumps({"questions": [{"text": "Q", "difficulty": "EXTREME"}]})
        generator = QuestionGenerator(MockLLMProvider(responses=[bad_difficulty]), self.config)
        with self.assertRaises(CapabilityFailureError):
            await generator.generate(request())

    async def test_follow_up_needs_time(self):
        llm = MockLLMProvider()
        suggestion = await QuestionGenerator(llm, self.config).generate_follow_up(
            "Explain indexing", "It makes reads faster", InterviewType.TECHNICAL, Depth.MEDIUM, time_remaining=2
        )
        self.assertEqual(suggestion.question, "")
        self.assertEqual(suggestion.rationale, "Insufficient time for follow-up")
        self.assertEqual(llm.calls, [])

    async def test_follow_up(self):
        llm = MockLLMProvider(responses=['{"question": "What does a write cost?", "rationale": "Probe trade-offs"}'])
        suggestion = await QuestionGenerator(llm, self.config).generate_follow_up(
            "Explain indexing", "It makes reads faster", "TECHNICAL", Depth.HIGH, time_remaining=12
        )
        self.assertEqual(suggestion.question, "What does a write cost?")
        prompt = llm.calls[0][0].content
        self.assertIn("Challenge assumptions or explore system-level implications", prompt)
        self.assertIn("Can be answered in 5 minutes", prompt)


if __name__ == "__main__":
    unittest.main()
