import sys
import os
import asyncio
import random
import unittest

# Ensure project root is in path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.append(project_root)

from packages.aip_core.domain import Depth, InterviewContext, InterviewType, Question
from packages.aip_core.dto import ChannelEventDTO
from packages.aip_core.errors import CapabilityFailureError
from packages.aip_providers.realtime.mock import MockRealtimeChannel
from packages.aip_sentiment.schema import CheatingFlagType
from packages.aip_conductor import messages
from packages.aip_conductor.engine import InterviewConductor
from packages.aip_conductor.runner import InterviewSessionRunner
from packages.aip_conductor.state import AbortReason, ConductorState
from packages.aip_guardrails.rules import CANDIDATE_SAFE_ERROR_MESSAGE

ANSWER_ONE = (
    "I would start from the access pattern, pick a key that spreads writes evenly, "
    "and add a read replica once the primary gets busy."
)
ANSWER_TWO = (
    "Each request carries a token, the gateway checks it against the identity service, "
    "and the services trust the forwarded claims after that."
)


def make_conductor(interview_id="int-run") -> InterviewConductor:
    context = InterviewContext(
        interview_id=interview_id,
        candidate_name="Sam Park",
        candidate_email="sam@example.com",
        company_id="co-1",
        interview_type=InterviewType.TECHNICAL,
        duration=30,
        questions=[
            Question(id="q1", text="How would you scale a write-heavy table?", category="practical", difficulty=Depth.MEDIUM),
            Question(id="q2", text="How do services authenticate each other?", category="conceptual", difficulty=Depth.MEDIUM),
        ],
    )
    return InterviewConductor(context, rng=random.Random(1))


class BrokenChannel(MockRealtimeChannel):
    async def receive(self) -> ChannelEventDTO:
        raise CapabilityFailureError("realtime", "socket closed")


class CrashingChannel(MockRealtimeChannel):
    """Delivers what was queued, then fails with a non-capability error."""

    async def receive(self) -> ChannelEventDTO:
        if self._inbound.empty():
            raise RuntimeError("frame decoder crashed")
        return await super().receive()


class TestSessionRunner(unittest.IsolatedAsyncioTestCase):
    async def test_full_run(self):
        channel = MockRealtimeChannel()
        channel.say(ANSWER_ONE, {"volume": 0.5, "pitch": 150, "speechRate": 140, "silenceRatio": 0.1, "fillerWordCount": 0})
        channel.say(ANSWER_TWO)

        runner = InterviewSessionRunner(make_conductor(), channel)
        bundle = await asyncio.wait_for(runner.run(), timeout=2)

        self.assertIs(runner.bundle, bundle)
        self.assertEqual(bundle.final_state, ConductorState.ENDED)
        self.assertEqual(bundle.questions_answered, 2)
        self.assertEqual(len(bundle.sentiment_history), 1)
        self.assertEqual(len(channel.sent), 4)
        self.assertEqual(channel.sent[1], "How would you scale a write-heavy table?")
        self.assertIn(messages.CLOSING_MARKER, channel.sent[-1])

    async def test_behaviour_events(self):
        channel = MockRealtimeChannel()
        channel.push(ChannelEventDTO(kind="tab_switch"))
        channel.push(ChannelEventDTO(kind="face", face_count=2))
        channel.push(ChannelEventDTO(kind="signals", signals={"backgroundNoiseLevel": 0.9}))
        channel.push(ChannelEventDTO(kind="wave"))
        channel.say(ANSWER_ONE)
        channel.say(ANSWER_TWO)

        bundle = await asyncio.wait_for(InterviewSessionRunner(make_conductor(), channel).run(), timeout=2)
        self.assertEqual(bundle.tab_switches, 1)
        types = [flag.type for flag in bundle.cheating_flags]
        self.assertEqual(
            types,
            [CheatingFlagType.TAB_SWITCH, CheatingFlagType.MULTIPLE_FACES, CheatingFlagType.SUSPICIOUS_AUDIO],
        )
        self.assertEqual(bundle.final_state, ConductorState.ENDED)

    async def test_disconnect_aborts(self):
        channel = MockRealtimeChannel()
        channel.say(ANSWER_ONE)
        channel.push(ChannelEventDTO(kind="disconnect"))

        bundle = await asyncio.wait_for(InterviewSessionRunner(make_conductor(), channel).run(), timeout=2)
        self.assertEqual(bundle.final_state, ConductorState.ABORTED)
        self.assertEqual(bundle.abort_reason, AbortReason.CANDIDATE_DISCONNECTED)
        self.assertTrue(bundle.partial)
        self.assertEqual(bundle.questions_answered, 1)

    async def test_cancel_leaves_partial_bundle(self):
        channel = MockRealtimeChannel()
        runner = InterviewSessionRunner(make_conductor(), channel)
        task = asyncio.create_task(runner.run())
        for _ in range(5):
            await asyncio.sleep(0)
        self.assertEqual(len(channel.sent), 2)

        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task
        self.assertEqual(runner.bundle.abort_reason, AbortReason.CANCELLED)
        self.assertEqual(runner.bundle.final_state, ConductorState.ABORTED)

    async def test_channel_failure(self):
        channel = BrokenChannel()
        runner = InterviewSessionRunner(make_conductor(), channel)
        with self.assertRaises(CapabilityFailureError):
            await runner.run()
        self.assertEqual(runner.bundle.abort_reason, AbortReason.CHANNEL_FAILURE)
        self.assertEqual(runner.bundle.questions_answered, 0)
        self.assertEqual(channel.sent[-1], CANDIDATE_SAFE_ERROR_MESSAGE)

    async def test_unexpected_error_keeps_progress(self):
        channel = CrashingChannel()
        channel.say(ANSWER_ONE)
        runner = InterviewSessionRunner(make_conductor(), channel)

        with self.assertRaises(RuntimeError):
            await asyncio.wait_for(runner.run(), timeout=2)

        self.assertIsNotNone(runner.bundle)
        self.assertEqual(runner.bundle.final_state, ConductorState.ABORTED)
        self.assertEqual(runner.bundle.abort_reason, AbortReason.CHANNEL_FAILURE)
        self.assertEqual(runner.bundle.questions_answered, 1)
        self.assertEqual(runner.bundle.answers[0].answer, ANSWER_ONE)
        self.assertEqual(channel.sent[-1], CANDIDATE_SAFE_ERROR_MESSAGE)
        self.assertNotIn("decoder", " ".join(channel.sent))

    async def test_invalid_feature_payloads_are_skipped(self):
        channel = MockRealtimeChannel()
        channel.say(ANSWER_ONE, {"volume": 5, "pitch": 150})
        channel.push(ChannelEventDTO(kind="signals", signals={"tabSwitches": -3}))
        channel.say(ANSWER_TWO)

        with self.assertLogs("aip.conductor.runner", level="WARNING") as logs:
            bundle = await asyncio.wait_for(InterviewSessionRunner(make_conductor(), channel).run(), timeout=2)

        self.assertEqual(bundle.final_state, ConductorState.ENDED)
        self.assertEqual(bundle.questions_answered, 2)
        self.assertEqual(bundle.answers[0].answer, ANSWER_ONE)
        self.assertEqual(bundle.sentiment_history, [])
        self.assertEqual(bundle.cheating_flags, [])
        self.assertEqual(len(logs.records), 2)

    async def test_sessions_run_side_by_side(self):
        channels = [MockRealtimeChannel(), MockRealtimeChannel()]
        for channel in channels:
            channel.say(ANSWER_ONE)
            channel.say(ANSWER_TWO)
        runners = [
            InterviewSessionRunner(make_conductor(f"int-{i}"), channel)
            for i, channel in enumerate(channels)
        ]
        bundles = await asyncio.wait_for(asyncio.gather(*(r.run() for r in runners)), timeout=2)
        self.assertEqual([b.interview_id for b in bundles], ["int-0", "int-1"])
        self.assertTrue(all(b.final_state == ConductorState.ENDED for b in bundles))


if __name__ == "__main__":
    unittest.main()
