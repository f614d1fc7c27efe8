import asyncio
from typing import Callable, Dict, List, Optional, Union

from packages.aip_core.config import AIPConfig
from packages.aip_core.dto import ExecutionRequestDTO, ExecutionResultDTO
from packages.aip_core.errors import CapabilityFailureError
from packages.aip_providers.code_exec.base import (
    ICodeExecutionProvider,
    STATUS_ACCEPTED,
    STATUS_WRONG_ANSWER,
)

Outcome = Union[str, ExecutionResultDTO, Exception, float]


class MockCodeExecutionProvider(ICodeExecutionProvider):
    """
    In-process stand-in for the sandbox.

    `outcomes` maps stdin to what the sandbox should do for that input:
      - str: program stdout, judged against expected_output
      - ExecutionResultDTO: returned as-is
      - Exception: raised (wrapped as CapabilityFailureError)
      - float: sleep that many seconds before answering (used to force timeouts)
    Inputs without an entry echo the expected output, i.e. they pass.
    """

    def __init__(
        self,
        config: AIPConfig = None,
        outcomes: Optional[Dict[str, Outcome]] = None,
        runner: Optional[Callable[[ExecutionRequestDTO], str]] = None
    ):
        self.latency_ms = 0
        if config and hasattr(config, 'MOCK_LATENCY_MS'):
            self.latency_ms = config.MOCK_LATENCY_MS
        self.outcomes = outcomes or {}
        self.runner = runner
        self.requests: List[ExecutionRequestDTO] = []

    async def execute(self, request: ExecutionRequestDTO) -> ExecutionResultDTO:
        self.requests.append(request)
        if self.latency_ms > 0:
            await asyncio.sleep(self.latency_ms / 1000.0)

        outcome = self.outcomes.get(request.stdin)
        if isinstance(outcome, float):
            await asyncio.sleep(outcome)
            outcome = None
        if isinstance(outcome, Exception):
            if isinstance(outcome, CapabilityFailureError):
                raise outcome
            raise CapabilityFailureError("code_execution", str(outcome)) from outcome
        if isinstance(outcome, ExecutionResultDTO):
            return outcome

        if outcome is None:
            stdout = self.runner(request) if self.runner else (request.expected_output or "")
        else:
            stdout = outcome
        return self._judge(request, stdout)

    @staticmethod
    def _judge(request: ExecutionRequestDTO, stdout: str) -> ExecutionResultDTO:
        accepted = request.expected_output is None or stdout.strip() == request.expected_output.strip()
        return ExecutionResultDTO(
            status_id=STATUS_ACCEPTED if accepted else STATUS_WRONG_ANSWER,
            status_description="Accepted" if accepted else "Wrong Answer",
            stdout=stdout,
            stderr=None,
            elapsed_time=0.01,
            memory_used=1024,
        )
