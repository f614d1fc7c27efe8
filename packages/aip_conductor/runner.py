import asyncio
from typing import List, Optional

from pydantic import ValidationError

from packages.aip_core.dto import ChannelEventDTO
from packages.aip_core.errors import CapabilityFailureError
from packages.aip_core.logging import get_logger
from packages.aip_providers.realtime.base import IRealtimeChannel
from packages.aip_guardrails.rules import CANDIDATE_SAFE_ERROR_MESSAGE
from packages.aip_sentiment.schema import AudioFeatures, BehaviorSignals
from packages.aip_conductor.dto import InterviewBundle
from packages.aip_conductor.engine import InterviewConductor
from packages.aip_conductor.state import AbortReason

logger = get_logger("aip.conductor.runner")


class InterviewSessionRunner:
    """
    Drives one conductor from a realtime channel.

    Turns are serialised by a per-session lock, so an utterance is fully handled
    (guardrails, sentiment, state change, replies sent) before the next one starts.
    Sessions share nothing and can run side by side on one event loop.
    If the run is cancelled or fails for any reason, the conductor is aborted and
    `bundle` still holds the partial snapshot. On failure the candidate only ever
    sees the safe error template.
    """

    def __init__(self, conductor: InterviewConductor, channel: IRealtimeChannel):
        self.conductor = conductor
        self.channel = channel
        self.bundle: Optional[InterviewBundle] = None
        self._lock = asyncio.Lock()

    async def run(self) -> InterviewBundle:
        interview_id = self.conductor.context.interview_id
        try:
            async with self._lock:
                await self._send(self.conductor.start())

            while not self.conductor.is_finished:
                event = await self.channel.receive()
                await self.handle_event(event)
        except asyncio.CancelledError:
            self._abort(AbortReason.CANCELLED)
            raise
        except CapabilityFailureError as e:
            logger.error(f"Realtime channel failed for interview {interview_id}: {e.message}")
            self._abort(AbortReason.CHANNEL_FAILURE)
            await self._notify_failure()
            raise
        except Exception:
            logger.exception(f"Interview {interview_id} stopped by an unexpected error")
            self._abort(AbortReason.CHANNEL_FAILURE)
            await self._notify_failure()
            raise

        self.bundle = self.conductor.build_bundle()
        return self.bundle

    async def handle_event(self, event: ChannelEventDTO):
        async with self._lock:
            if event.kind == "utterance":
                audio = self._parse(AudioFeatures, event.audio_features) if event.audio_features else None
                await self._send(self.conductor.receive_candidate_input(event.text, audio))
            elif event.kind == "tab_switch":
                self.conductor.handle_tab_switch()
            elif event.kind == "face":
                self.conductor.handle_face_count(event.face_count or 0)
            elif event.kind == "signals":
                signals = self._parse(BehaviorSignals, event.signals or {})
                if signals is not None:
                    self.conductor.handle_behavior_signals(signals)
            elif event.kind == "disconnect":
                self.conductor.abort(AbortReason.CANDIDATE_DISCONNECTED)
            else:
                logger.warning(f"Ignoring unknown channel event kind: {event.kind}")

    def _parse(self, model, payload: dict):
        # Bad feature payloads are dropped; the utterance itself still counts
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            logger.warning(
                f"Interview {self.conductor.context.interview_id}: "
                f"discarding invalid {model.__name__} ({e.error_count()} errors)"
            )
            return None

    async def _send(self, outbound: List[str]):
        for text in outbound:
            await self.channel.send_message(text)

    async def _notify_failure(self):
        try:
            await self.channel.send_message(CANDIDATE_SAFE_ERROR_MESSAGE)
        except CapabilityFailureError as e:
            logger.warning(f"Could not deliver the error notice to the candidate: {e.message}")

    def _abort(self, reason: AbortReason):
        self.conductor.abort(reason)
        self.bundle = self.conductor.build_bundle()
