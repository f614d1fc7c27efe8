from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse

from AIP.api.schemas import CodeEvaluateRequest, CodeSubmitRequest
from AIP.api.dependencies import get_code_engine, get_orchestrator
from packages.aip_code_eval.engine import CodeEvaluationEngine
from packages.aip_code_eval.schema import CodeEvaluationResult
from packages.aip_orchestrator.service import InterviewOrchestrator

router = APIRouter()

@router.post("/evaluate", response_model=CodeEvaluationResult)
async def evaluate_code(
    request: CodeEvaluateRequest,
    engine: CodeEvaluationEngine = Depends(get_code_engine)
):
    """
    Evaluate ad-hoc code against the given test cases.
    """
    return await engine.evaluate(
        code=request.code,
        language=request.language,
        test_cases=request.test_cases,
        time_limit_sec=request.time_limit_sec,
        memory_limit_mb=request.memory_limit_mb,
        time_spent=request.time_spent,
    )

@router.post("/submissions", response_model=CodeEvaluationResult)
async def submit_code(
    request: CodeSubmitRequest,
    interview_id: str = Query(...),
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator)
):
    """
    Evaluate a submission for a stored problem and attach it to the interview.
    """
    return await orchestrator.evaluate_code(
        problem_id=request.problem_id,
        code=request.code,
        language=request.language,
        interview_id=interview_id,
        time_spent=request.time_spent,
    )

@router.get("/problems/{problem_id}/statement", response_class=PlainTextResponse)
def problem_statement(
    problem_id: str,
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator)
):
    """
    Candidate-facing problem text. Test cases are never included.
    """
    return orchestrator.problem_statement(problem_id)

@router.get("/problems/{problem_id}/hint")
def problem_hint(
    problem_id: str,
    stuck_minutes: float = Query(..., ge=0),
    hints_given: int = Query(0, ge=0),
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator)
):
    return {"hint": orchestrator.problem_hint(problem_id, stuck_minutes, hints_given)}
