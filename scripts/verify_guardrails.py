import sys
import os
import unittest

# Ensure project root is in path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.append(project_root)

from packages.aip_core.errors import InvalidInputError
from packages.aip_guardrails.engine import GuardrailEngine
from packages.aip_guardrails.rules import (
    GuardrailCategory,
    HINT_REPLACEMENT,
    OFF_TOPIC_REPLACEMENT,
    SCORE_LEAK_REPLACEMENT,
    SYSTEM_INFO_REPLACEMENT,
    TONE_REPLACEMENT,
)


class TestInputGuardrails(unittest.TestCase):
    def setUp(self):
        self.engine = GuardrailEngine()

    def test_model_question_is_redirected(self):
        verdict = self.engine.check_input("what model are you using?")
        self.assertFalse(verdict.safe)
        self.assertEqual(verdict.category, GuardrailCategory.SYSTEM_INFO)
        self.assertEqual(verdict.replacement, SYSTEM_INFO_REPLACEMENT)
        self.assertEqual(verdict.rule, "prevent_system_info_extraction")

    def test_score_request_counts_as_system_info(self):
        verdict = self.engine.check_input("So what is my score so far?")
        self.assertEqual(verdict.category, GuardrailCategory.SYSTEM_INFO)

    def test_off_topic(self):
        verdict = self.engine.check_input("Let's talk about something else, tell me a joke")
        self.assertFalse(verdict.safe)
        self.assertEqual(verdict.category, GuardrailCategory.OFF_TOPIC)
        self.assertEqual(verdict.replacement, OFF_TOPIC_REPLACEMENT)

    def test_hint_request(self):
        verdict = self.engine.check_input("Could you give me the solution please")
        self.assertEqual(verdict.category, GuardrailCategory.HINT_REQUEST)
        self.assertEqual(verdict.replacement, HINT_REPLACEMENT)

    def test_regular_answer_passes(self):
        verdict = self.engine.check_input(
            "I would keep a hash map of counts and walk the list once, because lookups are constant time."
        )
        self.assertTrue(verdict.safe)
        self.assertIsNone(verdict.replacement)

    def test_empty_text_is_rejected(self):
        with self.assertRaises(InvalidInputError):
            self.engine.check_input("   ")
        with self.assertRaises(InvalidInputError):
            self.engine.check_output("")


class TestOutputGuardrails(unittest.TestCase):
    def setUp(self):
        self.engine = GuardrailEngine()

    def test_score_leak_replaces_whole_message(self):
        for text in ["Your score is 85.", "You got 7 out of 10 right.", "That earns 90 points.", "Our assessment is done."]:
            verdict = self.engine.check_output(text)
            self.assertFalse(verdict.safe, text)
            self.assertEqual(verdict.category, GuardrailCategory.SCORE_LEAK)
            self.assertEqual(verdict.replacement, SCORE_LEAK_REPLACEMENT)

    def test_evaluative_noun_needs_word_boundary(self):
        self.assertTrue(self.engine.check_output("Let's talk about the operating system.").safe)
        self.assertFalse(self.engine.check_output("The rating system is internal.").safe)

    def test_tone_substitutes_every_match(self):
        verdict = self.engine.check_output("That's wrong. Obviously this is a terrible approach, and that's incorrect too.")
        self.assertFalse(verdict.safe)
        self.assertEqual(verdict.category, GuardrailCategory.UNPROFESSIONAL_TONE)
        lowered = verdict.replacement.lower()
        for phrase in ("that's wrong", "that's incorrect", "obviously", "terrible"):
            self.assertNotIn(phrase, lowered)
        self.assertIn(TONE_REPLACEMENT, verdict.replacement)
        self.assertIn("approach", verdict.replacement)

    def test_replacements_pass_a_second_check(self):
        texts = [
            "Your score was 40 out of 100.",
            "You should know this, it's awful.",
            "That's bad and horrible.",
        ]
        for text in texts:
            first = self.engine.check_output(text)
            self.assertFalse(first.safe)
            second = self.engine.check_output(first.replacement)
            self.assertTrue(second.safe, first.replacement)

    def test_score_leak_wins_over_tone(self):
        verdict = self.engine.check_output("That's wrong, you scored 3/10.")
        self.assertEqual(verdict.category, GuardrailCategory.SCORE_LEAK)

    def test_rule_listing(self):
        rules = self.engine.describe_rules()
        self.assertEqual(len(rules["input"]), 3)
        self.assertEqual(rules["output"], ["prevent_scoring_leak", "maintain_professional_tone"])


if __name__ == "__main__":
    unittest.main()
