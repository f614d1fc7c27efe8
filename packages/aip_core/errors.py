from typing import Optional, Dict, Any


class AIPBaseError(Exception):
    """
    Top-level exception for the interview platform core.
    Every custom exception must inherit from this class.

    Attributes:
        code (str): Error identifier (e.g. 'INVALID_INPUT')
        message (str): Human readable message (never shown to candidates)
        details (Optional[Dict[str, Any]]): Extra debugging information
    """
    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{code}] {message}")


class ConfigurationError(AIPBaseError):
    """Raised when configuration loading/validation fails."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(code="CONF_ERROR", message=message, details=details)


class InvalidInputError(AIPBaseError):
    """Malformed problem, test case, context or text. Rejected, never coerced."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, code: str = "INVALID_INPUT"):
        super().__init__(code=code, message=message, details=details)


class UnsupportedLanguageError(InvalidInputError):
    """Language identifier outside the execution backend enumeration."""
    def __init__(self, language: str):
        super().__init__(
            message=f"Unsupported language: {language}",
            details={"language": language},
            code="UNSUPPORTED_LANGUAGE",
        )


class CapabilityFailureError(AIPBaseError):
    """An external capability (language model, sandbox, channel) failed."""
    def __init__(
        self,
        capability: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        code: str = "CAPABILITY_FAILURE",
    ):
        self.capability = capability
        merged = {"capability": capability}
        merged.update(details or {})
        super().__init__(code=code, message=message, details=merged)


class CapabilityTimeoutError(CapabilityFailureError):
    """An external capability did not answer within its timeout."""
    def __init__(self, capability: str, timeout_sec: float):
        super().__init__(
            capability=capability,
            message=f"{capability} timed out after {timeout_sec}s",
            details={"timeout_sec": timeout_sec},
            code="CAPABILITY_TIMEOUT",
        )


class AggregationError(AIPBaseError):
    """Scoring called with empty or inconsistent input."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(code="AGGREGATION_ERROR", message=message, details=details)


class InvalidStateError(AIPBaseError):
    """Operation not allowed in the current interview state."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(code="INVALID_STATE", message=message, details=details)


class NotFoundError(AIPBaseError):
    """Requested record does not exist in storage."""
    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            code="NOT_FOUND",
            message=f"{resource} not found: {resource_id}",
            details={"resource": resource, "id": resource_id},
        )
