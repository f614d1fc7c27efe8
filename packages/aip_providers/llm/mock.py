import asyncio
from typing import Optional, List

from packages.aip_providers.llm.base import ILLMProvider
from packages.aip_core.dto import LLMMessageDTO, LLMResponseDTO
from packages.aip_core.config import AIPConfig
from packages.aip_core.errors import CapabilityFailureError

class MockLLMProvider(ILLMProvider):
    """
    Scriptable language model for tests and local runs.
    Queued responses are returned in order; queued exceptions are raised in order.
    """
    DEFAULT_CONTENT = "This is a mock LLM response based on the input."

    def __init__(self, config: AIPConfig = None, responses: Optional[List] = None):
        self.config = config
        self.latency_ms = 0
        if config and hasattr(config, 'MOCK_LATENCY_MS'):
            self.latency_ms = config.MOCK_LATENCY_MS
        self.responses = list(responses or [])
        self.calls: List[List[LLMMessageDTO]] = []

    def queue(self, *items):
        self.responses.extend(items)

    async def chat(self, messages: List[LLMMessageDTO], system_prompt: Optional[str] = None) -> LLMResponseDTO:
        self.calls.append(list(messages))
        if self.latency_ms > 0:
            await asyncio.sleep(self.latency_ms / 1000.0)

        content = self.DEFAULT_CONTENT
        if self.responses:
            item = self.responses.pop(0)
            if isinstance(item, Exception):
                if isinstance(item, CapabilityFailureError):
                    raise item
                raise CapabilityFailureError("llm", str(item)) from item
            content = item

        return LLMResponseDTO(
            content=content,
            token_usage={"prompt_tokens": 10, "completion_tokens": 20, "total_tokens": 30},
            finish_reason="stop"
        )
