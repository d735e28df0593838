"""Payee duplicate detection engine."""

from .deduplication import (
    DuplicateDetectionConfig,
    DuplicateDetectionEngine,
    DuplicateDetectionResult,
    detect_duplicates,
)
from .errors import (
    ConfigurationError,
    InputValidationError,
    OracleError,
    OracleResponseError,
    PayeeCoreError,
)

__version__ = "1.0.0"

__all__ = [
    "DuplicateDetectionConfig",
    "DuplicateDetectionEngine",
    "DuplicateDetectionResult",
    "detect_duplicates",
    "PayeeCoreError",
    "ConfigurationError",
    "InputValidationError",
    "OracleError",
    "OracleResponseError",
]
