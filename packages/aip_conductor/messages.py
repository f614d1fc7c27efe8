import re
from typing import List

from packages.aip_core.domain import InterviewContext, Question

TRANSITION_PHRASES = [
    "Great, thank you for that answer. Let's move on to the next question.",
    "I appreciate your response. Now, I'd like to ask you about something else.",
    "Thank you. For our next topic,",
    "Excellent. Moving forward,",
    "That's helpful. Let me ask you another question:",
]

FOLLOW_UP_PROMPT = "That's interesting. Can you elaborate on your approach and why you chose it?"

CLOSING_MARKER = "end of our interview"

CLARIFICATION_PATTERNS = [
    re.compile(r"can you (explain|clarify|repeat)", re.IGNORECASE),
    re.compile(r"what do you mean", re.IGNORECASE),
    re.compile(r"i don'?t understand", re.IGNORECASE),
    re.compile(r"could you rephrase", re.IGNORECASE),
    re.compile(r"sorry.*didn'?t catch", re.IGNORECASE),
]


def greeting(context: InterviewContext) -> str:
    return (
        f"Hello {context.candidate_name}, welcome to your interview with {context.company_name}. "
        f"I'm your AI interviewer today, and I'll be conducting this {context.duration}-minute "
        f"{context.interview_type.value.lower()} interview.\n\n"
        "Before we begin, let me explain how this will work:\n"
        f"- I'll ask you {len(context.questions)} questions\n"
        "- Take your time to think through each answer\n"
        "- Feel free to ask for clarification if needed\n"
        "- I'll be taking notes throughout our conversation\n\n"
        "Are you ready to begin?"
    )

def conclusion(candidate_name: str) -> str:
    return (
        f"That brings us to the {CLOSING_MARKER}. Thank you so much for your time and "
        f"thoughtful responses, {candidate_name}.\n\n"
        "The next steps are:\n"
        "- Your interview will be reviewed by the hiring team\n"
        "- You'll receive feedback within the timeframe communicated by the recruiter\n"
        "- If you have any questions about the process, please reach out to your point of contact\n\n"
        "Do you have any final questions for me before we end?"
    )

def transition(phrase: str, question: Question) -> str:
    return f"{phrase} {question.text}"

def clarification(question: Question) -> str:
    # Restate only; the wording of the question is all the candidate gets.
    return f"Of course. Here is the question again: {question.text}"


def is_clarification_request(text: str) -> bool:
    return any(p.search(text) for p in CLARIFICATION_PATTERNS)


def analyze_answer_gaps(answer: str) -> List[str]:
    """Common elements missing from an answer, used to steer follow-ups."""
    gaps = []
    if "example" not in answer.lower():
        gaps.append("concrete examples")
    if not re.search(r"because|since|therefore|thus", answer, re.IGNORECASE):
        gaps.append("reasoning or justification")
    if not re.search(r"trade-?off|consider|depend", answer, re.IGNORECASE):
        gaps.append("consideration of alternatives")
    return gaps
