from typing import Optional
from pydantic import Field

from packages.aip_core.dto import BaseDTO
from packages.aip_guardrails.rules import GuardrailCategory


class GuardrailVerdict(BaseDTO):
    """
    Outcome of one guardrail check.
    safe=False is a normal control-flow result, not an error.
    """
    safe: bool
    reason: Optional[str] = Field(None, description="Internal reason, never shown to the candidate")
    replacement: Optional[str] = Field(None, description="Text to send instead of the checked text")
    category: Optional[GuardrailCategory] = None
    rule: Optional[str] = Field(None, description="Name of the rule set that matched")
