import sys
import os
import unittest
from datetime import date

# Ensure project root is in path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.append(project_root)

from packages.aip_core.domain import WorkExperience
from packages.aip_core.errors import InvalidInputError
from packages.aip_profile.matcher import estimate_experience_level, match_skills


class TestSkillMatch(unittest.TestCase):
    def test_weighted_match(self):
        result = match_skills(
            candidate_skills=["python", "Docker", "Go"],
            required_skills=["Python", "FastAPI"],
            preferred_skills=["docker", "AWS"],
        )
        # 1/2 * 70 + 1/2 * 30
        self.assertEqual(result.match_score, 50)
        self.assertEqual(result.matched_required, ["Python"])
        self.assertEqual(result.missing_required, ["FastAPI"])
        self.assertEqual(result.matched_preferred, ["docker"])
        self.assertEqual(result.additional_skills, ["Go"])

    def test_substring_either_direction(self):
        result = match_skills(["React.js"], ["React"])
        self.assertEqual(result.matched_required, ["React"])

    def test_without_preferred_skills(self):
        result = match_skills(["Python", "SQL"], ["python", "sql"])
        self.assertEqual(result.match_score, 70)

    def test_requires_required_skills(self):
        with self.assertRaises(InvalidInputError):
            match_skills(["Python"], [])


class TestExperienceLevel(unittest.TestCase):
    today = date(2026, 1, 1)

    def test_durations(self):
        estimate = estimate_experience_level([
            WorkExperience(company="A", role="Dev", duration="2 years 3 months"),
            WorkExperience(company="B", role="Dev", duration="1 year"),
        ], today=self.today)
        self.assertEqual(estimate.years, 3.3)
        self.assertEqual(estimate.level, "mid")

    def test_dates_until_present(self):
        estimate = estimate_experience_level(
            [WorkExperience(company="A", role="Dev", start_date="2020-01", end_date="present")],
            today=self.today,
        )
        self.assertEqual(estimate.years, 6.0)
        self.assertEqual(estimate.level, "senior")

    def test_no_experience(self):
        estimate = estimate_experience_level([], today=self.today)
        self.assertEqual(estimate.level, "entry")
        self.assertEqual(estimate.years, 0)

    def test_long_tenure_is_lead(self):
        estimate = estimate_experience_level(
            [WorkExperience(company="A", role="Staff", duration="12 years")], today=self.today
        )
        self.assertEqual(estimate.level, "lead")

    def test_unreadable_date(self):
        with self.assertRaises(InvalidInputError):
            estimate_experience_level(
                [WorkExperience(company="A", role="Dev", start_date="sometime", end_date="present")],
                today=self.today,
            )

    def test_current_and_now_mean_today(self):
        for end in ("Current", "NOW", " present "):
            estimate = estimate_experience_level(
                [WorkExperience(company="A", role="Dev", start_date="2023-01", end_date=end)],
                today=self.today,
            )
            self.assertEqual(estimate.years, 3.0)
            self.assertEqual(estimate.level, "mid")

    def test_lenient_mode_skips_unreadable_positions(self):
        experience = [
            WorkExperience(company="A", role="Dev", start_date="sometime", end_date="later"),
            WorkExperience(company="B", role="Dev", duration="2 years"),
        ]
        with self.assertLogs("aip.profile", level="WARNING"):
            estimate = estimate_experience_level(experience, today=self.today, strict=False)
        self.assertEqual(estimate.years, 2.0)
        self.assertEqual(estimate.level, "junior")


if __name__ == "__main__":
    unittest.main()
