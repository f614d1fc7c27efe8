import sys
import os
import logging
import unittest

# Ensure project root is in path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.append(project_root)

from packages.aip_core.config import AIPConfig
from packages.aip_core.dto import BaseDTO, LLMMessageDTO
from packages.aip_core.errors import (
    AIPBaseError,
    CapabilityFailureError,
    CapabilityTimeoutError,
    InvalidInputError,
    NotFoundError,
    UnsupportedLanguageError,
)
from packages.aip_core.logging import get_logger
from packages.aip_core.utils import clamp, round_half_up
from packages.aip_providers.llm.json_output import clean_json_string, parse_json_output
from packages.aip_providers.llm.mock import MockLLMProvider
from packages.aip_providers.llm.retry import chat_with_retry


class TestConfigAndErrors(unittest.TestCase):
    def test_config_defaults(self):
        config = AIPConfig.load()
        self.assertIn(config.LLM_PROVIDER, ("mock", "openai"))
        self.assertEqual(AIPConfig(MAX_FOLLOW_UPS_PER_QUESTION=2).MAX_FOLLOW_UPS_PER_QUESTION, 2)

    def test_error_hierarchy(self):
        self.assertTrue(issubclass(UnsupportedLanguageError, InvalidInputError))
        self.assertTrue(issubclass(CapabilityTimeoutError, CapabilityFailureError))
        self.assertTrue(issubclass(NotFoundError, AIPBaseError))

    def test_error_payload(self):
        err = CapabilityTimeoutError("code_execution", 10.0)
        self.assertEqual(err.code, "CAPABILITY_TIMEOUT")
        self.assertEqual(err.capability, "code_execution")
        self.assertEqual(err.details["timeout_sec"], 10.0)
        self.assertIn("[CAPABILITY_TIMEOUT]", str(err))

    def test_dto_strips_whitespace(self):
        class NameDTO(BaseDTO):
            name: str

        self.assertEqual(NameDTO(name="  Alex  ").name, "Alex")


class TestRounding(unittest.TestCase):
    def test_half_goes_up(self):
        self.assertEqual(round_half_up(0.5), 1)
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(79.67), 80)
        self.assertEqual(round_half_up(79.49), 79)

    def test_float_noise_is_ignored(self):
        # Weighted sums can land a hair under the half
        self.assertEqual(round_half_up(72.49999999999999), 73)

    def test_clamp(self):
        self.assertEqual(clamp(120), 100)
        self.assertEqual(clamp(-3), 0)
        self.assertEqual(clamp(0.4, 0.0, 1.0), 0.4)


class TestJsonOutput(unittest.TestCase):
    def test_fenced_json(self):
        self.assertEqual(clean_json_string('```json\n{"a": 1}\n```'), '{"a": 1}')
        self.assertEqual(parse_json_output('```\n[1, 2]\n```'), [1, 2])

    def test_invalid_json_is_capability_failure(self):
        with self.assertRaises(CapabilityFailureError):
            parse_json_output("Sure! Here are your questions.", step="test")


class TestChatRetry(unittest.IsolatedAsyncioTestCase):
    async def test_single_retry_recovers(self):
        llm = MockLLMProvider(responses=[RuntimeError("rate limited"), "second try"])
        response = await chat_with_retry(llm, [LLMMessageDTO(role="user", content="hi")], backoff_sec=0)
        self.assertEqual(response.content, "second try")
        self.assertEqual(len(llm.calls), 2)

    async def test_second_failure_is_fatal(self):
        llm = MockLLMProvider(responses=[RuntimeError("down"), RuntimeError("still down"), "never"])
        with self.assertRaises(CapabilityFailureError):
            await chat_with_retry(llm, [LLMMessageDTO(role="user", content="hi")], backoff_sec=0)
        self.assertEqual(len(llm.calls), 2)


class TestLogging(unittest.TestCase):
    def test_module_loggers_share_configuration(self):
        logger = get_logger("aip.scoring")
        self.assertIs(logger, logging.getLogger("aip.scoring"))
        self.assertTrue(logging.getLogger().handlers)
        with self.assertLogs("aip", level="INFO") as logs:
            logger.info("scored")
        self.assertEqual(logs.records[0].name, "aip.scoring")


if __name__ == "__main__":
    unittest.main()
