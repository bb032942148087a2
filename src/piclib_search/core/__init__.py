"""
Core module for PicLib Search.

Provides:
- Unified exception hierarchy
- Resilience policies (rate-limit aware retry + transient-fault backoff)
"""

from .exceptions import (
    # API errors
    APIError,
    # Configuration errors
    ConfigurationError,
    # Data errors
    DataError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    FetchFailedError,
    ImageDecodeError,
    InvalidParameterError,
    InvalidQueryError,
    MirrorCallFailedError,
    NetworkError,
    NoMirrorsAvailableError,
    ParseError,
    # Base
    PicLibSearchError,
    RateLimitError,
    ServiceUnavailableError,
    # Validation errors
    ValidationError,
)
from .resilience import (
    REQUEST_TIMEOUT,
    DestinationClass,
    PolicyWrap,
    RetryAfterPolicy,
    TransientFaultPolicy,
    build_policy,
    decorrelated_jitter_backoff,
    parse_retry_after,
)

__all__ = [
    # Exceptions
    "PicLibSearchError",
    "ErrorContext",
    "ErrorSeverity",
    "ErrorCategory",
    "APIError",
    "RateLimitError",
    "NetworkError",
    "ServiceUnavailableError",
    "MirrorCallFailedError",
    "FetchFailedError",
    "ImageDecodeError",
    "NoMirrorsAvailableError",
    "ValidationError",
    "InvalidQueryError",
    "InvalidParameterError",
    "DataError",
    "ParseError",
    "ConfigurationError",
    # Resilience
    "REQUEST_TIMEOUT",
    "DestinationClass",
    "RetryAfterPolicy",
    "TransientFaultPolicy",
    "PolicyWrap",
    "build_policy",
    "decorrelated_jitter_backoff",
    "parse_retry_after",
]
