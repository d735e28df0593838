"""Error types for payee duplicate detection."""

from typing import Any, Dict, Optional


class PayeeCoreError(Exception):
    """Base exception for all payeecore-specific errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "error_message": self.message,
            "error_code": self.error_code,
            "context": self.context,
        }


class ConfigurationError(PayeeCoreError):
    """Invalid or inconsistent configuration supplied to a detection run."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code="invalid_config", context=context)
        self.config_key = config_key


class InputValidationError(PayeeCoreError):
    """The record batch as a whole cannot be processed."""

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        field_value: Any = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code="invalid_input", context=context)
        self.field_name = field_name
        self.field_value = field_value


class OracleError(PayeeCoreError):
    """The arbitration oracle could not produce a judgment."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code="oracle_failure", context=context)
        self.provider = provider


class OracleResponseError(OracleError):
    """The oracle answered, but not with a usable judgment."""

    def __init__(
        self,
        message: str,
        raw_response: Optional[str] = None,
        provider: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, provider=provider, context=context)
        self.error_code = "oracle_bad_response"
        self.raw_response = raw_response
