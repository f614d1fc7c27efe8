from fastapi import APIRouter, Depends

from AIP.api.schemas import AggregateRequest, ScoreQuestionRequest
from AIP.api.dependencies import get_orchestrator
from packages.aip_scoring.engine import aggregate, dimension_scores, score_question
from packages.aip_scoring.schema import InterviewResult, Score
from packages.aip_orchestrator.service import InterviewOrchestrator

router = APIRouter()

@router.post("/question")
def score_single_question(request: ScoreQuestionRequest):
    """
    Indicator evaluation of one answer plus its per-dimension scores.
    """
    evaluation = score_question(
        request.question,
        request.answer,
        expected_topics=request.expected_topics,
        difficulty=request.difficulty,
        question_type=request.question_type,
    )
    dims = dimension_scores(evaluation, request.answer, request.difficulty)
    return {
        "evaluation": evaluation.model_dump(by_alias=True),
        "scores": dims.model_dump(),
    }

@router.post("/aggregate", response_model=Score)
def aggregate_scores(request: AggregateRequest):
    return aggregate(request.question_scores, request.sentiment_history)

@router.post("/interviews/{interview_id}", response_model=InterviewResult)
def score_interview(
    interview_id: str,
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator)
):
    """
    Score a finished (or aborted) interview. Scoring twice returns the stored result.
    """
    return orchestrator.score_interview(interview_id)
