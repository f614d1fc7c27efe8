import random
import time
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from pydantic import ValidationError

from packages.aip_core.config import AIPConfig
from packages.aip_core.domain import Depth, InterviewContext, InterviewType, WorkExperience
from packages.aip_core.dto import LLMMessageDTO
from packages.aip_core.errors import CapabilityFailureError, InvalidInputError, InvalidStateError, NotFoundError
from packages.aip_core.logging import get_logger
from packages.aip_providers.code_exec.base import ICodeExecutionProvider
from packages.aip_providers.llm.base import ILLMProvider
from packages.aip_providers.llm.json_output import parse_json_output
from packages.aip_providers.llm.retry import chat_with_retry
from packages.aip_providers.realtime.base import IRealtimeChannel
from packages.aip_guardrails.engine import GuardrailEngine
from packages.aip_sentiment.analyzer import SentimentAnalyzer
from packages.aip_sentiment.schema import AudioFeatures
from packages.aip_code_eval.engine import CodeEvaluationEngine
from packages.aip_code_eval.presentation import next_hint, present_problem
from packages.aip_code_eval.schema import CodeEvaluationResult, CodeProblem
from packages.aip_qgen.generator import QuestionGenerator
from packages.aip_qgen.policy import detect_experience_level
from packages.aip_qgen.schema import GenerationRequest, QuestionTemplate
from packages.aip_conductor.dto import InterviewBundle
from packages.aip_conductor.engine import InterviewConductor
from packages.aip_conductor.messages import CLOSING_MARKER
from packages.aip_conductor.runner import InterviewSessionRunner
from packages.aip_conductor.state import AbortReason, ConductorState
from packages.aip_scoring.engine import ScoringEngine
from packages.aip_scoring.schema import CodeSubmission, InterviewResult
from packages.aip_profile.matcher import SkillMatch, estimate_experience_level, match_skills
from packages.aip_orchestrator.repository import InterviewRepository
from packages.aip_orchestrator.schema import JobPosting, ParsedResume, PreparationOutcome, SegmentReply

logger = get_logger("aip.orchestrator")

InviteSender = Callable[[InterviewContext], Awaitable[bool]]

RESUME_SYSTEM_PROMPT = (
    "You are an expert resume parser. Extract structured, factual information only. "
    "Respond with JSON only."
)


async def log_only_invite(context: InterviewContext) -> bool:
    logger.info(f"Invite for interview {context.interview_id} queued for {context.candidate_email}")
    return True


class InterviewOrchestrator:
    """
    Entry point of the interview pipeline.
    Capabilities and storage are injected; the orchestrator keeps no global state.
    Live non-realtime sessions (conduct_segment) are held per interview until they end.
    """

    def __init__(
        self,
        llm: ILLMProvider,
        code_executor: ICodeExecutionProvider,
        repository: InterviewRepository,
        config: Optional[AIPConfig] = None,
        guardrails: Optional[GuardrailEngine] = None,
        analyzer: Optional[SentimentAnalyzer] = None,
        invite_sender: Optional[InviteSender] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.config = config or AIPConfig()
        self.llm = llm
        self.repository = repository
        self.guardrails = guardrails or GuardrailEngine()
        self.analyzer = analyzer or SentimentAnalyzer()
        self.code_engine = CodeEvaluationEngine(code_executor, self.config)
        self.question_generator = QuestionGenerator(llm, self.config)
        self.scoring_engine = ScoringEngine()
        self.invite_sender = invite_sender or log_only_invite
        self.rng = rng
        self.clock = clock
        self._live: Dict[str, InterviewConductor] = {}

    # ------------------------------------------------------------------
    # Preparation
    # ------------------------------------------------------------------
    async def parse_resume(self, resume_text: str) -> ParsedResume:
        if not resume_text or not resume_text.strip():
            raise InvalidInputError("Resume text must not be empty")

        prompt = (
            "Parse this resume and extract all relevant information:\n\n"
            f"{resume_text}\n\n"
            "Extract:\n"
            "1. Personal information (name, email, phone)\n"
            "2. Technical skills by category\n"
            "3. Work experience with achievements\n"
            "4. Education and certifications\n"
            "5. Online presence (GitHub, LinkedIn)\n\n"
            'Return structured JSON data with keys "personalInfo", "skills", "experience", '
            '"education" and "onlinePresence".'
        )
        response = await chat_with_retry(
            self.llm,
            [LLMMessageDTO(role="user", content=prompt)],
            system_prompt=RESUME_SYSTEM_PROMPT,
            backoff_sec=self.config.LLM_RETRY_BACKOFF_SEC,
            step="parse_resume",
        )
        payload = parse_json_output(response.content, step="parse_resume")
        try:
            parsed = ParsedResume.model_validate(payload)
        except ValidationError as e:
            raise CapabilityFailureError("llm", "parse_resume: malformed resume structure") from e
        logger.info(f"Parsed resume: {len(parsed.skills)} skills, {len(parsed.experience)} positions")
        return parsed

    async def generate_questions(
        self,
        job_id: str,
        interview_type: InterviewType,
        duration: int,
        depth: Depth,
        candidate_resume: Optional[ParsedResume] = None,
        experience_level: Optional[str] = None
    ) -> QuestionTemplate:
        job = self._require_job(job_id)
        if experience_level is None and candidate_resume is not None and candidate_resume.experience:
            experience_level = self._experience_level_of(candidate_resume.experience)

        try:
            request = GenerationRequest(
                job_title=job.title,
                job_description=job.description,
                required_skills=job.tech_stack,
                interview_type=interview_type,
                duration=duration,
                depth=depth,
                experience_level=experience_level,
                candidate_skills=candidate_resume.skills if candidate_resume else [],
                candidate_positions=len(candidate_resume.experience) if candidate_resume else None,
            )
        except ValidationError as e:
            raise InvalidInputError("Invalid question generation request", details={"errors": str(e)}) from e
        return await self.question_generator.generate(request)

    def match_candidate(self, candidate_skills: Sequence[str], job_id: str) -> SkillMatch:
        job = self._require_job(job_id)
        return match_skills(candidate_skills, job.tech_stack, job.preferred_skills)

    async def run_complete_interview(
        self,
        context: InterviewContext,
        resume_text: Optional[str] = None
    ) -> PreparationOutcome:
        """
        Prepare a scheduled interview end to end: resume, questions, session, invite.
        Any failing step aborts the whole preparation.
        """
        logger.info(f"Preparing interview {context.interview_id}")
        if context.job_id is None:
            raise InvalidInputError("Interview context has no job to generate questions for")

        resume = None
        experience_level = None
        if resume_text:
            resume = await self.parse_resume(resume_text)
            if not resume.experience:
                # No dated positions to measure; fall back to years stated in the text
                experience_level = self._normalise_level(detect_experience_level(resume_text))

        template = await self.generate_questions(
            job_id=context.job_id,
            interview_type=context.interview_type,
            duration=context.duration,
            depth=context.depth,
            candidate_resume=resume,
            experience_level=experience_level,
        )

        update = {"questions": template.to_questions()}
        if resume is not None:
            update["resume_data"] = resume.to_summary()
            update["skills"] = context.skills or resume.skills
        prepared = context.model_copy(update=update)
        self.repository.save_context(prepared)

        invite_sent = await self.invite_sender(prepared)
        return PreparationOutcome(
            questions_generated=True,
            session_created=True,
            invite_sent=invite_sent,
            question_count=len(prepared.questions),
        )

    # ------------------------------------------------------------------
    # Conduct
    # ------------------------------------------------------------------
    def new_conductor(self, context: InterviewContext) -> InterviewConductor:
        return InterviewConductor(
            context,
            guardrails=self.guardrails,
            analyzer=self.analyzer,
            config=self.config,
            rng=self.rng,
            clock=self.clock,
        )

    def conduct_segment(
        self,
        interview_id: str,
        candidate_input: Optional[str],
        audio_features: Optional[AudioFeatures] = None
    ) -> SegmentReply:
        """
        Turn-by-turn conduct for clients without a realtime channel.
        The first call opens the interview and returns the greeting.
        """
        conductor = self._live.get(interview_id)
        if conductor is None:
            context = self._require_context(interview_id)
            if self.repository.get_bundle(interview_id) is not None:
                raise InvalidStateError("Interview already finished", details={"interview_id": interview_id})
            conductor = self.new_conductor(context)
            self._live[interview_id] = conductor
            outbound = conductor.start()
        else:
            outbound = conductor.receive_candidate_input(candidate_input, audio_features)

        if conductor.is_finished:
            self._close_live(interview_id)

        response = "\n\n".join(outbound)
        next_question = None
        if conductor.state == ConductorState.AWAITING_ANSWER and conductor.current_question is not None:
            next_question = conductor.current_question.text
        return SegmentReply(
            response=response,
            should_continue=CLOSING_MARKER not in response,
            next_question=next_question,
        )

    def abort_interview(self, interview_id: str, reason: AbortReason = AbortReason.OPERATOR) -> InterviewBundle:
        conductor = self._live.get(interview_id)
        if conductor is None:
            raise NotFoundError("Live interview", interview_id)
        conductor.abort(reason)
        return self._close_live(interview_id)

    async def run_live_interview(self, interview_id: str, channel: IRealtimeChannel) -> InterviewBundle:
        """Realtime conduct. The bundle is stored even when the run is cut short."""
        runner = InterviewSessionRunner(self.new_conductor(self._require_context(interview_id)), channel)
        try:
            return await runner.run()
        finally:
            if runner.bundle is not None:
                self.repository.save_bundle(runner.bundle)

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------
    def problem_statement(self, problem_id: str) -> str:
        return present_problem(self._require_problem(problem_id))

    def problem_hint(self, problem_id: str, stuck_minutes: float, hints_given: int) -> str:
        return next_hint(self._require_problem(problem_id), stuck_minutes, hints_given)

    async def evaluate_code(
        self,
        problem_id: str,
        code: str,
        language: str,
        interview_id: str,
        time_spent: Optional[float] = None
    ) -> CodeEvaluationResult:
        problem = self._require_problem(problem_id)
        result = await self.code_engine.evaluate_submission(problem, code, language, time_spent)
        self.repository.add_code_submission(interview_id, CodeSubmission(
            problem_id=problem.id,
            problem=problem.title,
            code=code,
            language=language,
            evaluation=result,
            time_spent=time_spent,
        ))
        return result

    def score_interview(self, interview_id: str) -> InterviewResult:
        """Score once; later calls return the stored result unchanged."""
        existing = self.repository.get_result(interview_id)
        if existing is not None:
            return existing

        bundle = self.repository.get_bundle(interview_id)
        if bundle is None:
            raise NotFoundError("Interview bundle", interview_id)

        context = self.repository.get_context(interview_id)
        experience_level = "mid"
        if context is not None and context.resume_data is not None and context.resume_data.experience:
            experience_level = self._experience_level_of(context.resume_data.experience)

        result = self.scoring_engine.score_interview(
            bundle,
            self.repository.list_code_submissions(interview_id),
            experience_level,
        )
        self.repository.save_result(result)
        return result

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------
    def save_job(self, job: JobPosting):
        self.repository.save_job(job)

    def save_problem(self, problem: CodeProblem):
        self.repository.save_problem(problem)

    def schedule_interview(self, context: InterviewContext):
        """Store a context that already carries its questions."""
        self.repository.save_context(context)
        logger.info(f"Interview {context.interview_id} scheduled with {len(context.questions)} questions")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _require_job(self, job_id: str) -> JobPosting:
        job = self.repository.get_job(job_id)
        if job is None:
            raise NotFoundError("Job", job_id)
        return job

    def _require_problem(self, problem_id: str) -> CodeProblem:
        problem = self.repository.get_problem(problem_id)
        if problem is None:
            raise NotFoundError("Problem", problem_id)
        return problem

    def _require_context(self, interview_id: str) -> InterviewContext:
        context = self.repository.get_context(interview_id)
        if context is None:
            raise NotFoundError("Interview", interview_id)
        return context

    def _close_live(self, interview_id: str) -> InterviewBundle:
        conductor = self._live.pop(interview_id)
        bundle = conductor.build_bundle()
        self.repository.save_bundle(bundle)
        return bundle

    @classmethod
    def _experience_level_of(cls, experience: List[WorkExperience]) -> str:
        return cls._normalise_level(estimate_experience_level(experience, strict=False).level)

    @staticmethod
    def _normalise_level(level: str) -> str:
        # Question guidance and hiring bands know junior/mid/senior; entry reads as junior
        return "junior" if level == "entry" else level
