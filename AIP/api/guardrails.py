from fastapi import APIRouter, Depends

from AIP.api.schemas import GuardrailCheckRequest
from AIP.api.dependencies import get_guardrail_engine
from packages.aip_guardrails.engine import GuardrailEngine
from packages.aip_guardrails.schema import GuardrailVerdict

router = APIRouter()

@router.post("/check", response_model=GuardrailVerdict)
def check_text(
    request: GuardrailCheckRequest,
    engine: GuardrailEngine = Depends(get_guardrail_engine)
):
    """
    Run one text through the candidate-input or interviewer-output rules.
    """
    if request.direction == "output":
        return engine.check_output(request.text)
    return engine.check_input(request.text)

@router.get("/rules")
def list_rules(engine: GuardrailEngine = Depends(get_guardrail_engine)):
    return engine.describe_rules()
