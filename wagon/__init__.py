"""Cloud object-store transports for artifact repositories.

A repository descriptor such as ``s3://bucket/releases`` maps onto a flat
object store: every resource lives at ``<basedir>/<resource name>`` and
directories are emulated from key prefixes.

Usage:
    from wagon import get_transport

    with get_transport("s3://my-bucket/releases") as transport:
        transport.put("build/app-1.0.jar", "com/acme/app/1.0/app-1.0.jar")
        transport.get_file_list("com/acme/app")
"""

__version__ = "1.0.0"

from wagon.config import TransportSettings, load_settings
from wagon.connection import ConnectionState, LazyConnection
from wagon.content_type import ContentTypeProbe, MimetypesDetector, SuffixMapDetector
from wagon.error_mapping import error_boundary, register_error_mapper, translate_error
from wagon.events import EventType, RequestType, Resource, TransferEvent
from wagon.exceptions import (
    AuthenticationError,
    AuthorizationError,
    CommandExecutionError,
    ConfigurationError,
    ResourceDoesNotExistError,
    TransferFailedError,
    UnsupportedOperationError,
    WagonError,
)
from wagon.repository import ObjectKeyResolver, Repository, RepositoryLocator
from wagon.transports import (
    GCSTransport,
    GSUtilTransport,
    S3Transport,
    Transport,
    get_transport,
    list_transports,
    register_transport,
)

__all__ = [
    "__version__",
    # Transports
    "Transport",
    "S3Transport",
    "GCSTransport",
    "GSUtilTransport",
    "get_transport",
    "list_transports",
    "register_transport",
    # Building blocks
    "Repository",
    "RepositoryLocator",
    "ObjectKeyResolver",
    "ContentTypeProbe",
    "MimetypesDetector",
    "SuffixMapDetector",
    "ConnectionState",
    "LazyConnection",
    "EventType",
    "RequestType",
    "Resource",
    "TransferEvent",
    "TransportSettings",
    "load_settings",
    # Errors
    "WagonError",
    "ConfigurationError",
    "TransferFailedError",
    "ResourceDoesNotExistError",
    "AuthorizationError",
    "AuthenticationError",
    "UnsupportedOperationError",
    "CommandExecutionError",
    "error_boundary",
    "register_error_mapper",
    "translate_error",
]
