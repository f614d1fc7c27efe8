from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from AIP.api.errors import status_for
from AIP.api.schemas import MatchRequest, PrepareInterviewRequest, ResumeParseRequest, SegmentRequest
from AIP.api.dependencies import get_orchestrator
from packages.aip_core.domain import InterviewContext
from packages.aip_core.errors import AIPBaseError
from packages.aip_core.logging import get_logger
from packages.aip_code_eval.schema import CodeProblem
from packages.aip_conductor.dto import InterviewBundle
from packages.aip_guardrails.rules import CANDIDATE_SAFE_ERROR_MESSAGE
from packages.aip_profile.matcher import SkillMatch
from packages.aip_orchestrator.schema import JobPosting, ParsedResume, PreparationOutcome, SegmentReply
from packages.aip_orchestrator.service import InterviewOrchestrator

logger = get_logger("aip.api.interviews")
router = APIRouter()

@router.post("/jobs", status_code=status.HTTP_201_CREATED)
def create_job(job: JobPosting, orchestrator: InterviewOrchestrator = Depends(get_orchestrator)):
    orchestrator.save_job(job)
    return {"id": job.id}

@router.post("/problems", status_code=status.HTTP_201_CREATED)
def create_problem(problem: CodeProblem, orchestrator: InterviewOrchestrator = Depends(get_orchestrator)):
    orchestrator.save_problem(problem)
    return {"id": problem.id}

@router.post("", status_code=status.HTTP_201_CREATED)
def schedule_interview(context: InterviewContext, orchestrator: InterviewOrchestrator = Depends(get_orchestrator)):
    """
    Schedule an interview whose questions are already known.
    """
    orchestrator.schedule_interview(context)
    return {"interview_id": context.interview_id, "question_count": len(context.questions)}

@router.post("/prepare", response_model=PreparationOutcome, response_model_by_alias=True)
async def prepare_interview(
    request: PrepareInterviewRequest,
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator)
):
    """
    Parse the resume, generate questions, store the session and send the invite.
    """
    return await orchestrator.run_complete_interview(request.context, request.resume_text)

@router.post("/resume/parse", response_model=ParsedResume, response_model_by_alias=True)
async def parse_resume(request: ResumeParseRequest, orchestrator: InterviewOrchestrator = Depends(get_orchestrator)):
    return await orchestrator.parse_resume(request.text)

@router.post("/match", response_model=SkillMatch, response_model_by_alias=True)
def match_candidate(request: MatchRequest, orchestrator: InterviewOrchestrator = Depends(get_orchestrator)):
    return orchestrator.match_candidate(request.candidate_skills, request.job_id)

@router.post("/{interview_id}/segment", response_model=SegmentReply, response_model_by_alias=True)
def conduct_segment(
    interview_id: str,
    request: SegmentRequest,
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator)
):
    """
    One conversational turn. The first call opens the interview.
    The candidate only ever sees the neutral error message; the cause goes to the log.
    """
    try:
        return orchestrator.conduct_segment(interview_id, request.candidate_input, request.audio_features)
    except AIPBaseError as e:
        status_code = status_for(e)
        logger.warning(f"Segment for interview {interview_id} failed -> {status_code} {e}")
        reply = SegmentReply(response=CANDIDATE_SAFE_ERROR_MESSAGE, should_continue=False, next_question=None)
        return JSONResponse(status_code=status_code, content=reply.model_dump(by_alias=True))

@router.post("/{interview_id}/abort", response_model=InterviewBundle)
def abort_interview(interview_id: str, orchestrator: InterviewOrchestrator = Depends(get_orchestrator)):
    return orchestrator.abort_interview(interview_id)
