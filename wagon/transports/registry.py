"""Registry mapping repository URL schemes to transport classes."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional, Sequence, Type
from urllib.parse import urlsplit

from wagon.exceptions import ConfigurationError

if TYPE_CHECKING:
    from wagon.config.models import TransportSettings
    from wagon.content_type import ContentTypeDetector
    from wagon.events import TransferListener
    from wagon.transports.base import Transport

logger = logging.getLogger(__name__)

TRANSPORT_REGISTRY: Dict[str, Type["Transport"]] = {}


def register_transport(
    scheme: str,
) -> Callable[[Type["Transport"]], Type["Transport"]]:
    """Decorator to register a transport class for a URL scheme.

    Usage:
        @register_transport("s3")
        class S3Transport(Transport):
            ...
    """

    def decorator(cls: Type["Transport"]) -> Type["Transport"]:
        TRANSPORT_REGISTRY[scheme.lower()] = cls
        return cls

    return decorator


def list_transports() -> List[str]:
    """Return all registered transport schemes."""
    return sorted(TRANSPORT_REGISTRY.keys())


def resolve_transport_scheme(repository_url: str) -> str:
    """Return the outer scheme of a repository URL (``gsutil`` for ``gsutil:gs://...``)."""
    try:
        scheme = urlsplit(str(repository_url).strip()).scheme
    except ValueError as exc:
        raise ConfigurationError(
            f"Repository URL cannot be parsed: {repository_url!r}: {exc}"
        ) from exc
    if not scheme:
        raise ConfigurationError(f"Repository URL has no scheme: {repository_url!r}")
    return scheme.lower()


def get_transport_class(scheme: str) -> Type["Transport"]:
    cls = TRANSPORT_REGISTRY.get(scheme.lower())
    if cls is None:
        raise ConfigurationError(
            f"No transport registered for scheme '{scheme}'. "
            f"Available transports: {', '.join(list_transports())}."
        )
    return cls


def get_transport(
    repository_url: str,
    settings: Optional["TransportSettings"] = None,
    detectors: Optional[Sequence["ContentTypeDetector"]] = None,
    listeners: Iterable["TransferListener"] = (),
) -> "Transport":
    """Create the transport registered for the repository URL's scheme.

    Args:
        repository_url: Repository URL or, when ``settings`` defines it, a
            repository id
        settings: Transport settings
        detectors: Content-type detectors (defaults per Transport)
        listeners: Transfer listeners to attach

    Raises:
        ConfigurationError: If the URL is malformed or its scheme unknown
    """
    if settings is not None:
        repository_url = settings.resolve_repository(repository_url)
    cls = get_transport_class(resolve_transport_scheme(repository_url))
    transport = cls(repository_url, settings=settings, detectors=detectors)
    for listener in listeners:
        transport.add_transfer_listener(listener)
    logger.debug("Created %r", transport)
    return transport
