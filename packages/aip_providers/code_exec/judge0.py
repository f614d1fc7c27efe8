from typing import Optional

import httpx
from pydantic import ValidationError

from packages.aip_core.config import AIPConfig
from packages.aip_core.dto import ExecutionRequestDTO, ExecutionResultDTO
from packages.aip_core.errors import CapabilityFailureError, ConfigurationError
from packages.aip_core.logging import get_logger
from packages.aip_providers.code_exec.base import ICodeExecutionProvider

logger = get_logger("aip.providers.code_exec")


class Judge0CodeExecutionProvider(ICodeExecutionProvider):
    """
    Synchronous-submission client for a Judge0 CE endpoint (RapidAPI style auth).
    One HTTP request per test case; `wait=true` makes Judge0 return the verdict inline.
    """

    def __init__(self, config: AIPConfig, client: Optional[httpx.AsyncClient] = None):
        if client is None and not config.JUDGE0_API_KEY:
            raise ConfigurationError("JUDGE0_API_KEY is required for the judge0 provider")
        self.base_url = config.JUDGE0_API_URL.rstrip("/")
        self.headers = {
            "X-RapidAPI-Key": config.JUDGE0_API_KEY or "",
            "X-RapidAPI-Host": config.JUDGE0_API_HOST,
            "Content-Type": "application/json",
        }
        self.client = client or httpx.AsyncClient(timeout=None)

    async def execute(self, request: ExecutionRequestDTO) -> ExecutionResultDTO:
        body = {
            "source_code": request.source_code,
            "language_id": request.language_id,
            "stdin": request.stdin,
            "expected_output": request.expected_output,
            "cpu_time_limit": request.cpu_time_limit,
            "memory_limit": request.memory_limit_kb,
        }
        try:
            resp = await self.client.post(
                f"{self.base_url}/submissions",
                params={"base64_encoded": "false", "wait": "true"},
                headers=self.headers,
                json=body,
            )
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Judge0 submission failed: {e}")
            raise CapabilityFailureError("code_execution", f"Judge0 submission failed: {e}") from e

        try:
            data = resp.json()
        except ValueError as e:
            logger.error(f"Judge0 returned a non-JSON body: {resp.text[:200]!r}")
            raise CapabilityFailureError("code_execution", "Judge0 response is not JSON") from e
        if not isinstance(data, dict):
            raise CapabilityFailureError("code_execution", "Judge0 response is not an object", {"response": data})

        status = data.get("status") or {}
        if not isinstance(status, dict) or "id" not in status:
            raise CapabilityFailureError("code_execution", "Judge0 response without status", {"response": data})

        elapsed = data.get("time")
        try:
            return ExecutionResultDTO(
                status_id=status["id"],
                status_description=status.get("description", ""),
                stdout=data.get("stdout"),
                stderr=data.get("stderr") or data.get("compile_output"),
                elapsed_time=float(elapsed) if elapsed else None,
                memory_used=data.get("memory"),
            )
        except (ValueError, ValidationError) as e:
            logger.error(f"Judge0 response has unexpected fields: {e}")
            raise CapabilityFailureError("code_execution", "Judge0 response has unexpected fields", {"response": data}) from e

    async def aclose(self):
        await self.client.aclose()
