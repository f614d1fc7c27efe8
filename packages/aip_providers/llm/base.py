from abc import ABC, abstractmethod
from typing import Optional, List
from packages.aip_core.dto import LLMMessageDTO, LLMResponseDTO

class ILLMProvider(ABC):
    @abstractmethod
    async def chat(self, messages: List[LLMMessageDTO], system_prompt: Optional[str] = None) -> LLMResponseDTO:
        """
        Chat with the language model capability.
        Args:
            messages: List of LLMMessageDTO
            system_prompt: Optional system prompt override
        Returns:
            LLMResponseDTO
        Raises:
            CapabilityFailureError: the model is unavailable or timed out
        """
        pass
