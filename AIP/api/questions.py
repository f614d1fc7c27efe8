from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from AIP.api.schemas import FollowUpRequest, PlanResponse, QuestionGenerateRequest
from AIP.api.dependencies import get_orchestrator, get_question_generator
from packages.aip_core.domain import InterviewType
from packages.aip_core.errors import NotFoundError
from packages.aip_qgen.generator import QuestionGenerator
from packages.aip_qgen.policy import plan_distribution, question_count
from packages.aip_qgen.schema import FollowUpSuggestion, QuestionTemplate, TemplateLookup, TemplateQuestion
from packages.aip_qgen.templates import customizable_questions, load_template
from packages.aip_orchestrator.service import InterviewOrchestrator

router = APIRouter()

@router.get("/plan", response_model=PlanResponse)
def plan_questions(
    interview_type: InterviewType = Query(...),
    duration: int = Query(..., ge=1, le=120)
):
    """
    How many questions of which category an interview of this length gets.
    """
    total = question_count(duration)
    return PlanResponse(
        interview_type=interview_type,
        duration=duration,
        total_questions=total,
        distribution=plan_distribution(interview_type, total),
    )

@router.get("/templates/{job_role}", response_model=TemplateLookup, response_model_by_alias=True)
def get_template(job_role: str, template_id: Optional[str] = Query(None)):
    return load_template(job_role, template_id)

@router.get("/templates/{job_role}/customizable", response_model=List[TemplateQuestion], response_model_by_alias=True)
def get_customizable_questions(job_role: str, skills: List[str] = Query(...)):
    """
    Template questions that can be tailored to the candidate skills.
    """
    lookup = load_template(job_role)
    if not lookup.found:
        raise NotFoundError("Template", job_role)
    return customizable_questions(lookup.template, skills)

@router.post("/generate", response_model=QuestionTemplate, response_model_by_alias=True)
async def generate_questions(
    request: QuestionGenerateRequest,
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator)
):
    return await orchestrator.generate_questions(
        job_id=request.job_id,
        interview_type=request.interview_type,
        duration=request.duration,
        depth=request.depth,
        candidate_resume=request.candidate_resume,
    )

@router.post("/follow-up", response_model=FollowUpSuggestion)
async def follow_up(
    request: FollowUpRequest,
    generator: QuestionGenerator = Depends(get_question_generator)
):
    return await generator.generate_follow_up(
        original_question=request.original_question,
        candidate_answer=request.candidate_answer,
        question_type=request.question_type,
        depth=request.depth,
        time_remaining=request.time_remaining,
    )
