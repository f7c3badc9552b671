"""Repository descriptor parsing and object-key resolution.

Object stores have a flat namespace; a repository is emulated by prefixing
every resource name with the (normalized) repository base directory.

Supported descriptor formats:
- ``s3://bucket/base/dir``
- ``gs://bucket/base/dir``
- ``gsutil:gs://bucket/base/dir`` (opaque: the scheme-specific part is
  re-parsed as the real URL)
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Iterable, List, Optional, Set, Tuple
from urllib.parse import SplitResult, unquote, urlsplit

from wagon.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DELIMITER = "/"


@dataclass(frozen=True)
class Repository:
    """Resolved repository descriptor.

    Attributes:
        url: Effective (unwrapped) repository URL
        scheme: Scheme of the effective URL
        host: Bucket name (None when the URL has no authority)
        basedir: Percent-decoded path of the effective URL
        original: Descriptor string as supplied by the caller
    """

    url: str
    scheme: str
    host: Optional[str]
    basedir: str
    original: str

    def __str__(self) -> str:
        return self.original


def _split(descriptor: str) -> SplitResult:
    try:
        return urlsplit(descriptor)
    except ValueError as exc:
        raise ConfigurationError(
            f"Repository URL cannot be parsed: {descriptor!r}: {exc}"
        ) from exc


def _is_opaque(parts: SplitResult) -> bool:
    # scheme:ssp where ssp does not start with "/" (e.g. gsutil:gs://bucket)
    return bool(parts.scheme) and not parts.netloc and not parts.path.startswith(
        DELIMITER
    )


def _host(parts: SplitResult) -> Optional[str]:
    # SplitResult.hostname lowercases; legacy S3 bucket names keep their case
    host = parts.netloc.rpartition("@")[2]
    if host.startswith("["):
        host = host[: host.find("]") + 1]
    else:
        host = host.partition(":")[0]
    return host or None


def parse_repository(descriptor: str) -> Repository:
    """Parse a repository descriptor.

    Args:
        descriptor: Repository URL, possibly opaque (``backend:real-url``)

    Returns:
        Repository with host and basedir of the effective URL

    Raises:
        ConfigurationError: If the descriptor is empty or not a URI
    """
    if descriptor is None or not str(descriptor).strip():
        raise ConfigurationError("Repository URL is empty")

    original = str(descriptor).strip()
    parts = _split(original)
    if not parts.scheme:
        raise ConfigurationError(f"Repository URL has no scheme: {original!r}")

    if _is_opaque(parts):
        ssp = original[len(parts.scheme) + 1 :]
        parts = _split(ssp)
        if not parts.scheme:
            raise ConfigurationError(
                f"Repository URL scheme-specific part is not a URI: {original!r}"
            )

    return Repository(
        url=parts.geturl(),
        scheme=parts.scheme,
        host=_host(parts),
        basedir=unquote(parts.path),
        original=original,
    )


class RepositoryLocator:
    """Resolve a repository descriptor once and derive the key prefix."""

    def __init__(self, descriptor: str) -> None:
        self.descriptor = descriptor
        self._repository: Optional[Repository] = None
        self._prefix: Optional[str] = None
        self._lock = threading.Lock()

    @property
    def repository(self) -> Repository:
        if self._repository is None:
            with self._lock:
                if self._repository is None:
                    self._repository = parse_repository(self.descriptor)
                    logger.debug("Resolved repository %s", self._repository)
        return self._repository

    @property
    def host(self) -> Optional[str]:
        return self.repository.host

    @property
    def path(self) -> str:
        return self.repository.basedir

    @property
    def url(self) -> str:
        return self.repository.url

    def require_host(self) -> str:
        """Return the bucket host or raise ConfigurationError."""
        host = self.host
        if not host:
            raise ConfigurationError(
                f"Repository URL does not name a bucket: {self.descriptor!r}"
            )
        return host

    @property
    def prefix(self) -> str:
        """Bucket key prefix derived from the repository base directory.

        Empty when the base directory is empty; otherwise the stripped
        base directory followed by exactly one delimiter.
        """
        if self._prefix is None:
            self._prefix = normalize_prefix(self.path)
        return self._prefix


def normalize_prefix(basedir: Optional[str]) -> str:
    """Strip delimiters from both ends and append one when non-empty."""
    stripped = (basedir or "").strip(DELIMITER)
    return stripped + DELIMITER if stripped else ""


class ObjectKeyResolver:
    """Combine the repository prefix with caller-supplied resource names."""

    def __init__(self, locator: RepositoryLocator) -> None:
        self.locator = locator

    def key(self, resource_name: str) -> str:
        return self.locator.prefix + resource_name

    def directory_key(self, dir_name: Optional[str]) -> str:
        """Key prefix used to list the children of ``dir_name``."""
        return self.locator.prefix + normalize_prefix(dir_name)


def collapse_listing(
    directory_key: str, entries: Iterable[Tuple[str, bool]]
) -> List[str]:
    """Collapse flat object keys into the children of one directory.

    Args:
        directory_key: Key prefix of the directory being listed
        entries: ``(key, is_directory)`` pairs returned by the backend

    Returns:
        Sorted, de-duplicated child names; sub-directories end with "/"
    """
    children: Set[str] = set()
    for key, is_directory in entries:
        if not key.startswith(directory_key):
            continue
        parts = key[len(directory_key) :].split(DELIMITER, 1)
        name = parts[0]
        if not name:
            continue
        if is_directory or len(parts) > 1:
            name += DELIMITER
        children.add(name)
    return sorted(children)
