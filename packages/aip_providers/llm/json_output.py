import json
from typing import Any

from packages.aip_core.errors import CapabilityFailureError
from packages.aip_core.logging import get_logger

logger = get_logger("aip.providers.llm")


def clean_json_string(json_str: str) -> str:
    """
    Cleans markdown code blocks from JSON string.
    """
    if "```json" in json_str:
        json_str = json_str.split("```json")[1].split("```")[0]
    elif "```" in json_str:
        json_str = json_str.split("```")[1].split("```")[0]
    return json_str.strip()


def parse_json_output(content: str, step: str = "llm") -> Any:
    """Model output that should be JSON. Anything else is a capability failure."""
    try:
        return json.loads(clean_json_string(content or ""))
    except json.JSONDecodeError as e:
        logger.error(f"{step}: model returned non-JSON output: {content[:200] if content else ''!r}")
        raise CapabilityFailureError("llm", f"{step}: model output is not valid JSON") from e
