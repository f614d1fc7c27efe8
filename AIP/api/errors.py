from packages.aip_core.errors import (
    AIPBaseError,
    AggregationError,
    CapabilityFailureError,
    CapabilityTimeoutError,
    ConfigurationError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
)

# Most specific first
ERROR_STATUS = [
    (CapabilityTimeoutError, 504),
    (CapabilityFailureError, 502),
    (NotFoundError, 404),
    (InvalidInputError, 400),
    (InvalidStateError, 409),
    (AggregationError, 422),
    (ConfigurationError, 500),
]


def status_for(error: AIPBaseError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(error, error_type):
            return status_code
    return 500
