"""Repository transports and the scheme registry.

Importing this package registers the built-in transports:
- s3: S3Transport (boto3)
- gs: GCSTransport (google-cloud-storage)
- gsutil: GSUtilTransport (external ``gsutil`` tool)
"""

from .base import Transport, default_detectors
from .registry import (
    TRANSPORT_REGISTRY,
    get_transport,
    get_transport_class,
    list_transports,
    register_transport,
    resolve_transport_scheme,
)
from .gcs import GCSTransport
from .gsutil import CommandExecutor, CommandResult, GSUtilTransport
from .s3 import S3Transport

__all__ = [
    # Base class and registry
    "Transport",
    "default_detectors",
    "TRANSPORT_REGISTRY",
    "get_transport",
    "get_transport_class",
    "list_transports",
    "register_transport",
    "resolve_transport_scheme",
    # Implementations
    "S3Transport",
    "GCSTransport",
    "GSUtilTransport",
    "CommandExecutor",
    "CommandResult",
]
