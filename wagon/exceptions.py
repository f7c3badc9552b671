"""Custom exception classes for cloud-storage-wagon.

Every failure that leaves a transport operation is one of these types; backend
SDK exceptions are translated at the operation boundary (see
``wagon.error_mapping``) and never leak to callers.
"""

from typing import Any, Dict, Optional


class WagonError(Exception):
    """Base exception for all cloud-storage-wagon errors."""

    error_code: str = "ERR000"  # Override in subclasses

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
    ):
        """
        Initialize wagon exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional context
            error_code: Optional error code override
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code

    def __str__(self) -> str:
        """Return string representation with error code and details."""
        parts = [f"[{self.error_code}] {self.message}"]
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            parts.append(f"({detail_str})")
        return " ".join(parts)


def _cause_details(original_error: Optional[BaseException]) -> Dict[str, Any]:
    if original_error is None:
        return {}
    return {
        "original_error": str(original_error),
        "error_type": type(original_error).__name__,
    }


class ConfigurationError(WagonError):
    """Raised when a repository descriptor or settings file is invalid.

    Examples:
        - Repository URL that cannot be parsed or has no scheme
        - Repository URL without a bucket host
        - Settings values of the wrong type

    Raised before any backend interaction.
    """

    error_code = "CFG001"

    def __init__(
        self,
        message: str,
        config_path: Optional[str] = None,
        key: Optional[str] = None,
    ):
        details = {}
        if config_path:
            details["config_path"] = config_path
        if key:
            details["config_key"] = key
        super().__init__(message, details)


class TransferFailedError(WagonError):
    """Raised when a backend call or local I/O fails during a valid operation.

    The caller may retry the whole operation; transports never retry
    internally.
    """

    error_code = "XFR001"

    def __init__(
        self,
        message: str,
        backend_type: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[BaseException] = None,
    ):
        details: Dict[str, Any] = {}
        if backend_type:
            details["backend_type"] = backend_type
        if operation:
            details["operation"] = operation
        details.update(_cause_details(original_error))
        super().__init__(message, details)
        self.original_error = original_error


class ResourceDoesNotExistError(WagonError):
    """Raised when a requested object, local source file or bucket is absent."""

    error_code = "RES001"

    def __init__(
        self,
        message: str,
        backend_type: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[BaseException] = None,
    ):
        details: Dict[str, Any] = {}
        if backend_type:
            details["backend_type"] = backend_type
        if operation:
            details["operation"] = operation
        details.update(_cause_details(original_error))
        super().__init__(message, details)
        self.original_error = original_error


class AuthorizationError(WagonError):
    """Raised when credentials or permissions are rejected by the backend."""

    error_code = "AUTH001"

    def __init__(
        self,
        message: str,
        backend_type: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[BaseException] = None,
    ):
        details: Dict[str, Any] = {}
        if backend_type:
            details["backend_type"] = backend_type
        if operation:
            details["operation"] = operation
        details.update(_cause_details(original_error))
        super().__init__(message, details)
        self.original_error = original_error


class AuthenticationError(AuthorizationError):
    """Raised when binding a transport to its backend fails.

    Examples:
        - No credentials found by the provider chain
        - Client construction rejected by the SDK
        - Network failure while resolving the bucket
    """

    error_code = "AUTH002"


class UnsupportedOperationError(WagonError):
    """Raised when a transport is asked for an operation it cannot perform.

    This is a local programming error, e.g. calling ``put_directory`` on a
    transport whose ``supports_directory_copy()`` is False.
    """

    error_code = "OPS001"

    def __init__(self, message: str, operation: Optional[str] = None):
        details = {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class CommandExecutionError(WagonError):
    """Raised when an external command exits non-zero or cannot be started."""

    error_code = "CMD001"

    def __init__(
        self,
        message: str,
        command: Optional[str] = None,
        exit_code: Optional[int] = None,
        stderr: Optional[str] = None,
        original_error: Optional[BaseException] = None,
    ):
        details: Dict[str, Any] = {}
        if command:
            details["command"] = command
        if exit_code is not None:
            details["exit_code"] = exit_code
        details.update(_cause_details(original_error))
        super().__init__(message, details)
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        self.original_error = original_error
