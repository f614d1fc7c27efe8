from functools import lru_cache

from packages.aip_core.config import AIPConfig
from packages.aip_core.errors import ConfigurationError
from packages.aip_guardrails.engine import GuardrailEngine
from packages.aip_sentiment.analyzer import SentimentAnalyzer
from packages.aip_code_eval.engine import CodeEvaluationEngine
from packages.aip_qgen.generator import QuestionGenerator
from packages.aip_orchestrator.repository import InterviewRepository, JsonFileInterviewRepository
from packages.aip_orchestrator.service import InterviewOrchestrator

# --- Providers (External Adapters) ---

from packages.aip_providers.llm.base import ILLMProvider
from packages.aip_providers.llm.mock import MockLLMProvider
from packages.aip_providers.llm.openai_provider import OpenAILLMProvider
from packages.aip_providers.code_exec.base import ICodeExecutionProvider
from packages.aip_providers.code_exec.mock import MockCodeExecutionProvider
from packages.aip_providers.code_exec.judge0 import Judge0CodeExecutionProvider


@lru_cache
def get_config() -> AIPConfig:
    return AIPConfig.load()

@lru_cache
def get_llm_provider() -> ILLMProvider:
    """
    Singleton language model client, chosen by LLM_PROVIDER.
    """
    config = get_config()
    if config.LLM_PROVIDER == "mock":
        return MockLLMProvider(config)
    if config.LLM_PROVIDER == "openai":
        return OpenAILLMProvider(config)
    raise ConfigurationError(f"Unknown LLM_PROVIDER: {config.LLM_PROVIDER}")

@lru_cache
def get_code_executor() -> ICodeExecutionProvider:
    """
    Singleton sandbox client, chosen by CODE_EXEC_PROVIDER.
    """
    config = get_config()
    if config.CODE_EXEC_PROVIDER == "mock":
        return MockCodeExecutionProvider(config)
    if config.CODE_EXEC_PROVIDER == "judge0":
        return Judge0CodeExecutionProvider(config)
    raise ConfigurationError(f"Unknown CODE_EXEC_PROVIDER: {config.CODE_EXEC_PROVIDER}")

# --- Repositories (Persistence) ---

@lru_cache
def get_interview_repository() -> InterviewRepository:
    """
    Singleton Interview Repository (File-based).
    """
    return JsonFileInterviewRepository(base_dir=get_config().RESULT_STORAGE_DIR)

# --- Domain Services (Application Logic) ---

@lru_cache
def get_guardrail_engine() -> GuardrailEngine:
    return GuardrailEngine()

@lru_cache
def get_sentiment_analyzer() -> SentimentAnalyzer:
    return SentimentAnalyzer()

def get_code_engine() -> CodeEvaluationEngine:
    return CodeEvaluationEngine(get_code_executor(), get_config())

def get_question_generator() -> QuestionGenerator:
    return QuestionGenerator(get_llm_provider(), get_config())

@lru_cache
def get_orchestrator() -> InterviewOrchestrator:
    """
    Singleton Orchestrator.
    Must be shared across requests: it holds the live turn-by-turn sessions.
    """
    return InterviewOrchestrator(
        llm=get_llm_provider(),
        code_executor=get_code_executor(),
        repository=get_interview_repository(),
        config=get_config(),
        guardrails=get_guardrail_engine(),
        analyzer=get_sentiment_analyzer(),
    )
