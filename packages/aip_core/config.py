from pydantic_settings import BaseSettings, SettingsConfigDict
from packages.aip_core.errors import ConfigurationError


class AIPConfig(BaseSettings):
    """
    Application-wide settings.
    Values are read from the environment and the .env file.
    """
    PROJECT_NAME: str = "AI Interview Platform Core"
    VERSION: str = "0.1.0"

    # Language model capability
    LLM_PROVIDER: str = "mock"  # "mock" | "openai"
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4-turbo-preview"
    LLM_TIMEOUT_SEC: float = 60.0
    LLM_RETRY_BACKOFF_SEC: float = 1.0

    # Code execution capability
    CODE_EXEC_PROVIDER: str = "mock"  # "mock" | "judge0"
    JUDGE0_API_URL: str = "https://judge0-ce.p.rapidapi.com"
    JUDGE0_API_KEY: str | None = None
    JUDGE0_API_HOST: str = "judge0-ce.p.rapidapi.com"
    DEFAULT_TIME_LIMIT_SEC: float = 5.0
    DEFAULT_MEMORY_LIMIT_MB: int = 128
    EXECUTION_TIMEOUT_GRACE_SEC: float = 5.0

    # Interview conduct
    FOLLOW_UP_MIN_REMAINING_MIN: float = 5.0
    FOLLOW_UP_MAX_ANSWER_CHARS: int = 100
    MAX_FOLLOW_UPS_PER_QUESTION: int = 1

    # Mock providers
    MOCK_LATENCY_MS: int = 0

    # Persistence
    RESULT_STORAGE_DIR: str = "data/interviews"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @classmethod
    def load(cls) -> "AIPConfig":
        """
        Load settings, wrapping any validation failure in ConfigurationError.
        """
        try:
            return cls()
        except Exception as e:
            raise ConfigurationError(f"Failed to load configuration: {str(e)}") from e
