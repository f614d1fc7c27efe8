from abc import ABC, abstractmethod
from packages.aip_core.dto import ChannelEventDTO

class IRealtimeChannel(ABC):
    """
    Bidirectional candidate channel.
    Outbound text is spoken to the candidate; inbound events carry transcribed
    speech plus optional extracted audio/face features.
    """
    @abstractmethod
    async def send_message(self, text: str) -> None:
        pass

    @abstractmethod
    async def receive(self) -> ChannelEventDTO:
        """Wait for the next inbound event."""
        pass
