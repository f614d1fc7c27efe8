from pydantic import BaseModel, ConfigDict


class BaseDTO(BaseModel):
    """
    Base class for every DTO (Data Transfer Object) of the project.

    Features:
        - from_attributes=True (build from arbitrary objects)
        - str_strip_whitespace=True (strip surrounding whitespace)
        - populate_by_name=True (accept field names and camelCase aliases)
    """
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        populate_by_name=True
    )


# -------------------------------------------------------------------------
# LLM Provider DTOs
# -------------------------------------------------------------------------
class LLMMessageDTO(BaseDTO):
    role: str  # "system", "user", "assistant"
    content: str

class LLMResponseDTO(BaseDTO):
    content: str
    token_usage: dict[str, int] | None = None
    finish_reason: str | None = None


# -------------------------------------------------------------------------
# Code Execution Provider DTOs
# -------------------------------------------------------------------------
class ExecutionRequestDTO(BaseDTO):
    # Source code must keep its indentation
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=False,
        populate_by_name=True
    )

    source_code: str
    language_id: int
    stdin: str = ""
    expected_output: str | None = None
    cpu_time_limit: float = 5.0
    memory_limit_kb: int = 128 * 1024

class ExecutionResultDTO(BaseDTO):
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=False,
        populate_by_name=True
    )

    status_id: int
    status_description: str
    stdout: str | None = None
    stderr: str | None = None
    elapsed_time: float | None = None  # seconds
    memory_used: int | None = None  # KB


# -------------------------------------------------------------------------
# Realtime Channel DTOs
# -------------------------------------------------------------------------
class ChannelEventDTO(BaseDTO):
    """
    One inbound event from the realtime channel.
    kind: "utterance" | "tab_switch" | "face" | "signals" | "disconnect"
    """
    kind: str
    text: str | None = None
    audio_features: dict | None = None
    face_count: int | None = None
    signals: dict | None = None
