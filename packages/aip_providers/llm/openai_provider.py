from typing import Optional, List

from openai import AsyncOpenAI, OpenAIError

from packages.aip_providers.llm.base import ILLMProvider
from packages.aip_core.dto import LLMMessageDTO, LLMResponseDTO
from packages.aip_core.config import AIPConfig
from packages.aip_core.errors import CapabilityFailureError, ConfigurationError
from packages.aip_core.logging import get_logger

logger = get_logger("aip.providers.llm")


class OpenAILLMProvider(ILLMProvider):
    """Chat completions through the OpenAI API."""

    def __init__(self, config: AIPConfig, client: Optional[AsyncOpenAI] = None):
        if client is None and not config.OPENAI_API_KEY:
            raise ConfigurationError("OPENAI_API_KEY is required for the openai LLM provider")
        self.model = config.OPENAI_MODEL
        self.client = client or AsyncOpenAI(api_key=config.OPENAI_API_KEY, timeout=config.LLM_TIMEOUT_SEC)

    async def chat(self, messages: List[LLMMessageDTO], system_prompt: Optional[str] = None) -> LLMResponseDTO:
        payload = []
        if system_prompt:
            payload.append({"role": "system", "content": system_prompt})
        payload.extend({"role": m.role, "content": m.content} for m in messages)

        try:
            response = await self.client.chat.completions.create(model=self.model, messages=payload)
        except OpenAIError as e:
            logger.error(f"OpenAI chat failed: {e}")
            raise CapabilityFailureError("llm", f"OpenAI request failed: {e}") from e

        choice = response.choices[0]
        usage = None
        if response.usage is not None:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }
        return LLMResponseDTO(
            content=(choice.message.content or "").strip(),
            token_usage=usage,
            finish_reason=choice.finish_reason,
        )
