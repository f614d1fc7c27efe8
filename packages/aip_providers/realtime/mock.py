import asyncio
from typing import List

from packages.aip_core.dto import ChannelEventDTO
from packages.aip_providers.realtime.base import IRealtimeChannel

class MockRealtimeChannel(IRealtimeChannel):
    """Queue-backed channel. Tests push inbound events and read `sent`."""

    def __init__(self):
        self.sent: List[str] = []
        self._inbound: asyncio.Queue = asyncio.Queue()

    def push(self, event: ChannelEventDTO):
        self._inbound.put_nowait(event)

    def say(self, text: str, audio_features: dict = None):
        self.push(ChannelEventDTO(kind="utterance", text=text, audio_features=audio_features))

    async def send_message(self, text: str) -> None:
        self.sent.append(text)

    async def receive(self) -> ChannelEventDTO:
        return await self._inbound.get()
