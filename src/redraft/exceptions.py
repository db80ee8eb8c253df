"""Custom exception hierarchy for redraft."""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes, used in log records and ``to_dict()``."""

    # Rewrite service errors
    REWRITE_TRANSPORT = "REWRITE_TRANSPORT"
    REWRITE_PROTOCOL = "REWRITE_PROTOCOL"
    REWRITE_CONTRACT = "REWRITE_CONTRACT"

    # Configuration errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class RedraftError(Exception):
    """
    Base exception for all redraft errors.

    Carries a human-readable message, a machine-readable error code
    and optional structured details.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to a dictionary for logging or JSON output.

        Returns:
            Dictionary with error, message, and details fields
        """
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class ConfigurationError(RedraftError):
    """Settings are invalid or inconsistent."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR)


class RewriteServiceError(RedraftError):
    """A single call to the rewrite service failed.

    The pipeline treats every subclass the same way (the batch failed);
    the subclass only tells the logs what went wrong.
    """

    kind = "unknown"


class RewriteTransportError(RewriteServiceError):
    """Connection failure, timeout, or an open circuit breaker."""

    kind = "transport"

    def __init__(self, message: str, endpoint: str = ""):
        super().__init__(
            message,
            ErrorCode.REWRITE_TRANSPORT,
            details={"endpoint": endpoint} if endpoint else None,
        )


class RewriteProtocolError(RewriteServiceError):
    """Non-2xx status or a body that is not the expected JSON shape."""

    kind = "protocol"

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(
            message,
            ErrorCode.REWRITE_PROTOCOL,
            details={"status_code": status_code} if status_code else None,
        )
        self.status_code = status_code


class RewriteContractError(RewriteServiceError):
    """The service answered with a different number of segments than sent."""

    kind = "contract"

    def __init__(self, expected: int, received: int):
        super().__init__(
            f"Rewrite service returned {received} segments, expected {expected}",
            ErrorCode.REWRITE_CONTRACT,
            details={"expected": expected, "received": received},
        )
        self.expected = expected
        self.received = received
