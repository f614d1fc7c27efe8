import json
import uuid
from typing import Optional, Union

from pydantic import ValidationError

from packages.aip_core.config import AIPConfig
from packages.aip_core.domain import Depth, InterviewType
from packages.aip_core.dto import LLMMessageDTO
from packages.aip_core.errors import CapabilityFailureError
from packages.aip_core.logging import get_logger
from packages.aip_providers.llm.base import ILLMProvider
from packages.aip_providers.llm.json_output import parse_json_output
from packages.aip_providers.llm.retry import chat_with_retry
from packages.aip_qgen.guidelines import depth_adjustment, example_structure, follow_up_strategy, question_guidelines
from packages.aip_qgen.policy import plan_distribution, question_count
from packages.aip_qgen.schema import FollowUpSuggestion, GenerationRequest, QuestionTemplate

logger = get_logger("aip.qgen")

MIN_FOLLOW_UP_MINUTES = 3
MAX_FOLLOW_UP_MINUTES = 5

SYSTEM_PROMPT = """You are an expert interview question designer.
Generate relevant, challenging and fair interview questions tailored to the role and the candidate background.
Questions are open-ended, scenario-based, progressive in difficulty, unbiased and unambiguous.
BEHAVIORAL questions follow the STAR format. TECHNICAL questions test understanding, not memorization.
CODING questions start with a clear problem statement and consider time/space complexity.
Respond with JSON only."""


class QuestionGenerator:
    """
    Builds question sets through the language model capability.
    The distribution and count are decided locally; the model only writes the questions.
    """

    def __init__(self, llm: ILLMProvider, config: Optional[AIPConfig] = None):
        self.llm = llm
        self.config = config or AIPConfig()

    def build_prompt(self, request: GenerationRequest) -> str:
        count = question_count(request.duration)
        distribution = plan_distribution(request.interview_type, count)
        level = request.experience_level or "mid"

        lines = [
            f"Generate {count} interview questions for the following context:",
            "",
            f"Job: {request.job_title}",
            f"Description: {request.job_description}",
            f"Required Skills: {', '.join(request.required_skills)}",
            "",
            f"Interview Type: {request.interview_type.value}",
            f"Duration: {request.duration} minutes",
            f"Depth: {request.depth.value} ({depth_adjustment(request.depth)})",
        ]
        if request.candidate_skills or request.candidate_positions is not None:
            lines += [
                "",
                "Candidate Background:",
                f"- Experience Level: {level}",
                f"- Skills: {', '.join(request.candidate_skills)}",
            ]
            if request.candidate_positions is not None:
                lines.append(f"- Experience: {request.candidate_positions} positions")

        lines += ["", "Please generate questions with the following distribution:", json.dumps(distribution, indent=2)]
        lines += ["", "Guidelines:"]
        lines += [f"- {g}" for g in question_guidelines(request.interview_type, request.depth, level)]
        lines += ["", "Example question structure:", json.dumps(example_structure(request.interview_type), indent=2)]
        lines += [
            "",
            'Return JSON: {"title": str, "questions": [{"text": str, "difficulty": "LOW|MEDIUM|HIGH", '
            '"expectedTopics": [str], "followUpQuestions": [str], "timeLimit": int}]}',
            "Ensure questions progress logically and cover different aspects of the role.",
        ]
        return "\n".join(lines)

    async def generate(self, request: GenerationRequest) -> QuestionTemplate:
        count = question_count(request.duration)
        template_id = str(uuid.uuid4())
        if count == 0:
            logger.info(f"Duration {request.duration}min leaves no room for questions")
            return QuestionTemplate(
                id=template_id,
                title=request.job_title,
                job_role=request.job_title,
                category=request.interview_type,
            )

        response = await chat_with_retry(
            self.llm,
            [LLMMessageDTO(role="user", content=self.build_prompt(request))],
            system_prompt=SYSTEM_PROMPT,
            backoff_sec=self.config.LLM_RETRY_BACKOFF_SEC,
            step="generate_questions",
        )
        payload = parse_json_output(response.content, step="generate_questions")
        if not isinstance(payload, dict) or not isinstance(payload.get("questions"), list):
            raise CapabilityFailureError("llm", "generate_questions: response has no question list")

        payload.setdefault("id", template_id)
        payload.setdefault("title", request.job_title)
        payload.setdefault("jobRole", request.job_title)
        payload.setdefault("category", request.interview_type.value)
        try:
            template = QuestionTemplate.model_validate(payload)
        except ValidationError as e:
            raise CapabilityFailureError("llm", f"generate_questions: malformed question set ({e.error_count()} errors)") from e

        if len(template.questions) != count:
            logger.warning(f"Requested {count} questions, model returned {len(template.questions)}")
        logger.info(f"Generated {len(template.questions)} questions for '{request.job_title}'")
        return template

    async def generate_follow_up(
        self,
        original_question: str,
        candidate_answer: str,
        question_type: Union[InterviewType, str],
        depth: Depth,
        time_remaining: float
    ) -> FollowUpSuggestion:
        if time_remaining < MIN_FOLLOW_UP_MINUTES:
            return FollowUpSuggestion(question="", rationale="Insufficient time for follow-up")

        prompt = "\n".join([
            f"Original Question: {original_question}",
            f"Candidate Answer: {candidate_answer}",
            f"Question Type: {getattr(question_type, 'value', question_type)}",
            f"Depth Level: {depth.value}",
            f"Strategy: {follow_up_strategy(depth)}",
            "",
            "Generate a follow-up question that:",
            "1. Builds on the candidate's answer",
            "2. Explores deeper understanding",
            f"3. Can be answered in {min(time_remaining, MAX_FOLLOW_UP_MINUTES):g} minutes",
            "4. Reveals additional insights about the candidate's knowledge",
            "",
            'Return JSON: {"question": str, "rationale": str}',
        ])
        response = await chat_with_retry(
            self.llm,
            [LLMMessageDTO(role="user", content=prompt)],
            system_prompt=SYSTEM_PROMPT,
            backoff_sec=self.config.LLM_RETRY_BACKOFF_SEC,
            step="generate_follow_up",
        )
        payload = parse_json_output(response.content, step="generate_follow_up")
        try:
            return FollowUpSuggestion.model_validate(payload)
        except ValidationError as e:
            raise CapabilityFailureError("llm", "generate_follow_up: malformed follow-up") from e
