import asyncio
from typing import List, Optional

from packages.aip_core.dto import LLMMessageDTO, LLMResponseDTO
from packages.aip_core.errors import CapabilityFailureError
from packages.aip_core.logging import get_logger
from packages.aip_providers.llm.base import ILLMProvider

logger = get_logger("aip.providers.llm")


async def chat_with_retry(
    provider: ILLMProvider,
    messages: List[LLMMessageDTO],
    system_prompt: Optional[str] = None,
    backoff_sec: float = 1.0,
    step: str = "llm",
) -> LLMResponseDTO:
    """
    Read-style model calls are retried exactly once after a backoff.
    The second failure is fatal to the calling step.
    """
    try:
        return await provider.chat(messages, system_prompt=system_prompt)
    except CapabilityFailureError as first:
        logger.warning(f"{step}: language model call failed, retrying once ({first.message})")

    await asyncio.sleep(backoff_sec)
    try:
        return await provider.chat(messages, system_prompt=system_prompt)
    except CapabilityFailureError as second:
        logger.error(f"{step}: language model call failed after retry ({second.message})")
        raise
