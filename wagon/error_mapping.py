"""Error wrappers and unified error mapping.

This module provides:
- register_error_mapper: Decorator to register backend-specific error mappers
- translate_error: Unified exception mapper applied at every operation boundary
- error_boundary: Context manager raising the translated exception
- wrap_boto3_exception / wrap_google_exception / wrap_command_exception
"""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional

from wagon.exceptions import (
    AuthenticationError,
    AuthorizationError,
    CommandExecutionError,
    ResourceDoesNotExistError,
    TransferFailedError,
    WagonError,
)

logger = logging.getLogger(__name__)

# Operation names used as translation context
CONNECT = "connect"
GET = "get"
PUT = "put"
PUT_DIRECTORY = "put_directory"
EXISTS = "exists"
METADATA = "metadata"
LIST = "list"

# Type alias for error mapper functions
ErrorMapper = Callable[[Exception, str, Optional[str]], WagonError]

# Registry of backend-specific error mappers
_ERROR_MAPPERS: Dict[str, ErrorMapper] = {}

_S3_MISSING_CODES = {"404", "NoSuchKey", "NoSuchBucket", "NotFound"}
_S3_DENIED_CODES = {
    "401",
    "403",
    "AccessDenied",
    "AllAccessDisabled",
    "ExpiredToken",
    "InvalidAccessKeyId",
    "InvalidToken",
    "SignatureDoesNotMatch",
}

# gsutil reports HTTP failures on stderr, e.g. "AccessDeniedException: 403 ..."
_GSUTIL_DENIED = re.compile(r"AccessDenied|\b40[13]\b")


def _describe(operation: str, context: Optional[str]) -> str:
    return f"{operation} {context}" if context else operation


def wrap_boto3_exception(
    exc: Exception, operation: str, context: Optional[str] = None
) -> WagonError:
    """Convert boto3/botocore exceptions to transport errors.

    Args:
        exc: Original boto3/botocore exception
        operation: Transport operation (get, put, exists, list, ...)
        context: Object key or source/target description

    Returns:
        ResourceDoesNotExistError, AuthorizationError or TransferFailedError
    """
    from botocore.exceptions import (
        BotoCoreError,
        ClientError,
        NoCredentialsError,
        PartialCredentialsError,
    )

    target = _describe(operation, context)
    if isinstance(exc, ClientError):
        error_code = str(exc.response.get("Error", {}).get("Code", "Unknown"))
        status_code = exc.response.get("ResponseMetadata", {}).get(
            "HTTPStatusCode", 0
        )
        if error_code in _S3_MISSING_CODES or status_code == 404:
            return ResourceDoesNotExistError(
                f"S3 object not found: {target}",
                backend_type="s3",
                operation=operation,
                original_error=exc,
            )
        if error_code in _S3_DENIED_CODES or status_code in (401, 403):
            return AuthorizationError(
                f"S3 access denied: {target} ({error_code})",
                backend_type="s3",
                operation=operation,
                original_error=exc,
            )
        return TransferFailedError(
            f"S3 operation failed: {target}: {error_code} (HTTP {status_code})",
            backend_type="s3",
            operation=operation,
            original_error=exc,
        )
    if isinstance(exc, (NoCredentialsError, PartialCredentialsError)):
        return AuthorizationError(
            f"S3 credentials unavailable: {target}",
            backend_type="s3",
            operation=operation,
            original_error=exc,
        )
    if isinstance(exc, BotoCoreError):
        return TransferFailedError(
            f"S3 operation failed: {target}: {type(exc).__name__}",
            backend_type="s3",
            operation=operation,
            original_error=exc,
        )
    return TransferFailedError(
        f"S3 operation failed: {target}: {type(exc).__name__}: {exc}",
        backend_type="s3",
        operation=operation,
        original_error=exc,
    )


def wrap_google_exception(
    exc: Exception, operation: str, context: Optional[str] = None
) -> WagonError:
    """Convert google-cloud-storage / google-auth exceptions to transport errors."""
    from google.api_core import exceptions as gexc
    from google.auth.exceptions import GoogleAuthError

    target = _describe(operation, context)
    if isinstance(exc, gexc.NotFound):
        return ResourceDoesNotExistError(
            f"GCS object not found: {target}",
            backend_type="gcs",
            operation=operation,
            original_error=exc,
        )
    if isinstance(exc, (gexc.Forbidden, gexc.Unauthorized, GoogleAuthError)):
        return AuthorizationError(
            f"GCS access denied: {target}",
            backend_type="gcs",
            operation=operation,
            original_error=exc,
        )
    return TransferFailedError(
        f"GCS operation failed: {target}: {type(exc).__name__}: {exc}",
        backend_type="gcs",
        operation=operation,
        original_error=exc,
    )


def wrap_command_exception(
    exc: Exception, operation: str, context: Optional[str] = None
) -> WagonError:
    """Convert gsutil command failures to TransferFailedError or AuthorizationError."""
    target = _describe(operation, context)
    if isinstance(exc, CommandExecutionError):
        if _GSUTIL_DENIED.search(exc.stderr or ""):
            return AuthorizationError(
                f"gsutil access denied: {target}: {exc.message}",
                backend_type="gsutil",
                operation=operation,
                original_error=exc,
            )
        return TransferFailedError(
            f"gsutil {target} failed: {exc.message}",
            backend_type="gsutil",
            operation=operation,
            original_error=exc,
        )
    return TransferFailedError(
        f"gsutil {target} failed: {type(exc).__name__}: {exc}",
        backend_type="gsutil",
        operation=operation,
        original_error=exc,
    )


def register_error_mapper(backend_type: str) -> Callable[[ErrorMapper], ErrorMapper]:
    """Decorator to register a backend-specific error mapper.

    Usage:
        @register_error_mapper("my_backend")
        def my_mapper(exc, operation, context=None):
            return TransferFailedError(...)
    """

    def decorator(mapper: ErrorMapper) -> ErrorMapper:
        _ERROR_MAPPERS[backend_type.lower()] = mapper
        return mapper

    return decorator


def _default_error_mapper(
    exc: Exception, operation: str, context: Optional[str] = None
) -> WagonError:
    """Default error mapper for unknown backend types and local I/O."""
    if isinstance(exc, FileNotFoundError):
        return ResourceDoesNotExistError(
            f"Not found: {_describe(operation, context)}: {exc}",
            operation=operation,
            original_error=exc,
        )
    if isinstance(exc, PermissionError):
        return AuthorizationError(
            f"Permission denied: {_describe(operation, context)}: {exc}",
            operation=operation,
            original_error=exc,
        )
    return TransferFailedError(
        f"{_describe(operation, context)}: {type(exc).__name__}: {exc}",
        operation=operation,
        original_error=exc,
    )


@register_error_mapper("s3")
def _s3_error_mapper(
    exc: Exception, operation: str, context: Optional[str] = None
) -> WagonError:
    """Map S3/boto3 exceptions."""
    return wrap_boto3_exception(exc, operation, context)


@register_error_mapper("gcs")
def _gcs_error_mapper(
    exc: Exception, operation: str, context: Optional[str] = None
) -> WagonError:
    """Map GCS exceptions."""
    return wrap_google_exception(exc, operation, context)


@register_error_mapper("gsutil")
def _gsutil_error_mapper(
    exc: Exception, operation: str, context: Optional[str] = None
) -> WagonError:
    """Map gsutil command failures."""
    return wrap_command_exception(exc, operation, context)


def translate_error(
    exc: Exception,
    backend_type: str,
    operation: str,
    context: Optional[str] = None,
) -> WagonError:
    """Unified exception mapper that routes to backend-specific wrappers.

    Args:
        exc: The original exception to wrap
        backend_type: The backend type (s3, gcs, gsutil)
        operation: The operation that failed (connect, get, put, ...)
        context: Optional context (repository, object key, source -> target)

    Returns:
        A WagonError. Already-typed errors are returned unchanged; failures
        while binding to the backend become AuthenticationError.

    Example:
        try:
            client.head_object(...)
        except Exception as exc:
            raise translate_error(exc, "s3", "exists", key) from exc
    """
    # Tool failures are raw causes, translated like SDK exceptions
    if isinstance(exc, WagonError) and not isinstance(exc, CommandExecutionError):
        return exc

    if operation == CONNECT:
        return AuthenticationError(
            f"Unable to connect to {context or backend_type}: {type(exc).__name__}: {exc}",
            backend_type=backend_type,
            operation=operation,
            original_error=exc,
        )

    mapper = _ERROR_MAPPERS.get(backend_type.lower(), _default_error_mapper)
    return mapper(exc, operation, context)


@contextmanager
def error_boundary(
    backend_type: str, operation: str, context: Optional[str] = None
) -> Iterator[None]:
    """Translate any exception raised inside the block.

    Example:
        with error_boundary("s3", "get", f"{key} -> {target}"):
            transfer.download(...)
    """
    try:
        yield
    except Exception as exc:
        error = translate_error(exc, backend_type, operation, context)
        if error is exc:
            raise
        logger.debug("Translated %s into %s", type(exc).__name__, type(error).__name__)
        raise error from exc


def list_error_mappers() -> List[str]:
    """Return all registered error mapper backend types."""
    return sorted(_ERROR_MAPPERS.keys())


__all__ = [
    "CONNECT",
    "GET",
    "PUT",
    "PUT_DIRECTORY",
    "EXISTS",
    "METADATA",
    "LIST",
    "register_error_mapper",
    "translate_error",
    "error_boundary",
    "list_error_mappers",
    "wrap_boto3_exception",
    "wrap_google_exception",
    "wrap_command_exception",
]
