import re
from typing import Dict, List, Optional

from packages.aip_core.domain import Depth
from packages.aip_qgen.policy import is_customizable
from packages.aip_qgen.schema import RoleTemplate, TemplateLookup, TemplateQuestion


def _q(text: str, difficulty: Depth, **extra) -> TemplateQuestion:
    return TemplateQuestion(text=text, difficulty=difficulty, **extra)


ROLE_TEMPLATES: Dict[str, RoleTemplate] = {
    "software_engineer_i": RoleTemplate(
        template_id="software_engineer_i",
        title="Software Engineer I - General",
        questions={
            "behavioral": [
                _q(
                    "Tell me about a challenging bug you fixed.",
                    Depth.LOW,
                    expected_topics=["problem-solving", "debugging", "persistence"],
                    follow_up_questions=[
                        "How did you identify the root cause?",
                        "What tools did you use?",
                        "How did you prevent similar issues?",
                    ],
                ),
                _q(
                    "Describe a time you worked in a team.",
                    Depth.LOW,
                    expected_topics=["collaboration", "communication", "conflict resolution"],
                    follow_up_questions=[
                        "What was your specific role?",
                        "How did you handle disagreements?",
                        "What did you learn from the experience?",
                    ],
                ),
            ],
            "technical": [
                _q(
                    "Explain the difference between let, const, and var in JavaScript.",
                    Depth.LOW,
                    expected_topics=["scope", "hoisting", "immutability"],
                ),
                _q(
                    "What are REST API principles?",
                    Depth.MEDIUM,
                    expected_topics=["HTTP methods", "stateless", "resources", "status codes"],
                ),
            ],
            "coding": [
                _q(
                    "Implement a function to check if a string is a palindrome.",
                    Depth.LOW,
                    time_limit=10,
                    hints=["Consider case sensitivity", "Handle spaces and punctuation"],
                ),
                _q(
                    "Find two numbers in an array that sum to a target value.",
                    Depth.MEDIUM,
                    time_limit=15,
                    hints=["Think about time complexity", "Consider using a hash map"],
                ),
            ],
        },
    ),
    "frontend_engineer": RoleTemplate(
        template_id="frontend_engineer",
        title="Frontend Engineer",
        questions={
            "behavioral": [
                _q(
                    "How do you ensure UI/UX consistency across a large application?",
                    Depth.MEDIUM,
                    expected_topics=["design systems", "component libraries", "testing"],
                ),
            ],
            "technical": [
                _q(
                    "Explain React hooks and their benefits.",
                    Depth.MEDIUM,
                    expected_topics=["useState", "useEffect", "custom hooks", "functional components"],
                ),
                _q(
                    "How do you optimize web performance?",
                    Depth.HIGH,
                    expected_topics=["lazy loading", "bundling", "caching", "rendering"],
                ),
            ],
            "coding": [
                _q("Implement a debounce function.", Depth.MEDIUM, time_limit=15),
                _q("Create a React component for an autocomplete search.", Depth.HIGH, time_limit=25),
            ],
        },
    ),
    "backend_engineer": RoleTemplate(
        template_id="backend_engineer",
        title="Backend Engineer",
        questions={
            "behavioral": [
                _q(
                    "Describe how you handled a production outage.",
                    Depth.HIGH,
                    expected_topics=["incident response", "root cause analysis", "communication"],
                ),
            ],
            "technical": [
                _q(
                    "Explain database indexing and when to use it.",
                    Depth.MEDIUM,
                    expected_topics=["B-trees", "performance", "trade-offs"],
                ),
                _q(
                    "How do you design a scalable microservices architecture?",
                    Depth.HIGH,
                    expected_topics=["service boundaries", "communication", "data consistency"],
                ),
            ],
            "coding": [
                _q("Design a rate limiter.", Depth.HIGH, time_limit=30),
                _q("Implement an LRU cache.", Depth.HIGH, time_limit=25),
            ],
        },
    ),
}


def template_key(job_role: str) -> str:
    """'Backend Engineer' -> 'backend_engineer'"""
    return re.sub(r"\s+", "_", job_role.strip().lower())


def load_template(job_role: str, template_id: Optional[str] = None) -> TemplateLookup:
    """
    Find a pre-defined template by explicit id, else by normalised role name.
    A miss is not an error: the caller gets the list of known templates instead.
    """
    key = template_id if template_id else template_key(job_role or "")
    template = ROLE_TEMPLATES.get(key)
    if template is None:
        return TemplateLookup(found=False, available_templates=list(ROLE_TEMPLATES.keys()))
    return TemplateLookup(found=True, template=template, can_customize=True)


def customizable_questions(template: RoleTemplate, skills: List[str]) -> List[TemplateQuestion]:
    """Template questions that mention one of the given skills and can be tailored to them."""
    return [
        question
        for questions in template.questions.values()
        for question in questions
        if is_customizable(question.text, skills)
    ]
