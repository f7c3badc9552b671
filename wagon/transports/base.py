"""Transport base class: the get/put/exists/list operation set.

``Transport`` implements every operation once, in terms of a handful of
backend primitives (``_object_exists``, ``_download``, ``_upload``, ...).
Concrete transports bind to their SDK in ``_connect`` and implement the
primitives; the base class owns key resolution, lazy binding, event firing
and error translation.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

from wagon.config.models import TransportSettings
from wagon.connection import LazyConnection
from wagon.content_type import (
    ContentTypeDetector,
    ContentTypeProbe,
    SuffixMapDetector,
    discover_detectors,
)
from wagon.error_mapping import EXISTS, GET, LIST, METADATA, PUT, error_boundary
from wagon.events import RequestType, Resource, TransferEventSupport
from wagon.exceptions import (
    ResourceDoesNotExistError,
    TransferFailedError,
    UnsupportedOperationError,
    WagonError,
)
from wagon.repository import (
    ObjectKeyResolver,
    Repository,
    RepositoryLocator,
    collapse_listing,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def default_detectors(settings: TransportSettings) -> List[ContentTypeDetector]:
    """Configured suffix overrides first, then the discovered detectors."""
    detectors: List[ContentTypeDetector] = []
    if settings.content_types:
        detectors.append(SuffixMapDetector(settings.content_types))
    detectors.extend(discover_detectors())
    return detectors


class Transport(TransferEventSupport):
    """Abstract repository transport over a flat object store.

    Args:
        repository_url: Repository descriptor, e.g. ``s3://bucket/releases``
        settings: Transport settings (defaults when omitted)
        detectors: Content-type detectors, in order. Defaults to the
            configured suffix map followed by the discovered detectors.
    """

    backend_type = "abstract"

    def __init__(
        self,
        repository_url: str,
        settings: Optional[TransportSettings] = None,
        detectors: Optional[Sequence[ContentTypeDetector]] = None,
    ) -> None:
        super().__init__()
        self.settings = settings or TransportSettings()
        self.locator = RepositoryLocator(repository_url)
        self.keys = ObjectKeyResolver(self.locator)
        if detectors is None:
            detectors = default_detectors(self.settings)
        self.content_types = ContentTypeProbe(detectors)
        self.connection: LazyConnection[Any] = LazyConnection(
            str(repository_url), self.backend_type, self._connect, self._disconnect
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.locator.descriptor!r})"

    def __enter__(self) -> "Transport":
        self.open_connection()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close_connection()

    @property
    def repository(self) -> Repository:
        return self.locator.repository

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open_connection(self) -> None:
        """Bind to the backend (no-op when already bound)."""
        self.connection.open()

    def close_connection(self) -> None:
        """Release the backend handle; safe to call repeatedly."""
        self.connection.close()

    # ------------------------------------------------------------------
    # Backend primitives
    # ------------------------------------------------------------------

    def _connect(self) -> Any:
        raise NotImplementedError

    def _disconnect(self, handle: Any) -> None:
        pass

    def _object_exists(self, key: str) -> bool:
        raise NotImplementedError

    def _last_modified(self, key: str) -> Optional[int]:
        """Last-modified time of ``key`` in epoch milliseconds, None if absent."""
        raise NotImplementedError

    def _download(self, key: str, destination: Path) -> None:
        raise NotImplementedError

    def _delete(self, key: str) -> None:
        raise NotImplementedError

    def _upload(self, source: Path, key: str, content_type: Optional[str]) -> None:
        raise NotImplementedError

    def _list(self, directory_key: str) -> Iterable[Tuple[str, bool]]:
        """Yield ``(key, is_directory)`` for objects under ``directory_key``."""
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def create_parent_directories(self, destination: Path) -> None:
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise TransferFailedError(
                f"Unable to create parent directories of {destination}",
                backend_type=self.backend_type,
                operation=GET,
                original_error=exc,
            ) from exc

    def get(self, resource_name: str, destination: PathLike) -> None:
        """Download ``resource_name`` to ``destination``.

        Raises:
            ResourceDoesNotExistError: If no object exists at the resource key
            TransferFailedError: If the download fails
            AuthorizationError: If the backend rejects the request
        """
        resource = Resource(resource_name)
        target = Path(destination)

        self.fire_get_initiated(resource, target)
        try:
            self.create_parent_directories(target)
            self.fire_get_started(resource, target)

            key = self.keys.key(resource_name)
            with error_boundary(self.backend_type, GET, f"{key} -> {target}"):
                if not self._object_exists(key):
                    raise ResourceDoesNotExistError(
                        f"Resource does not exist: {key}",
                        backend_type=self.backend_type,
                        operation=GET,
                    )
                self._download(key, target)
        except WagonError as exc:
            self.fire_transfer_error(resource, exc, RequestType.GET, target)
            raise

        logger.info("Downloaded %s to %s", key, target)
        self.fire_get_completed(resource, target)

    def get_if_newer(
        self, resource_name: str, destination: PathLike, timestamp: int
    ) -> bool:
        """Download ``resource_name`` only if it changed after ``timestamp``.

        Args:
            resource_name: Resource name relative to the repository
            destination: Local file to write
            timestamp: Epoch milliseconds to compare against

        Returns:
            True if the resource was newer and has been downloaded. A missing
            resource is reported as not newer rather than raised.
        """
        key = self.keys.key(resource_name)
        with error_boundary(self.backend_type, METADATA, key):
            last_modified = self._last_modified(key)

        if last_modified is None:
            logger.debug("No metadata for %s; treating as not newer", key)
            return False

        if last_modified <= timestamp:
            logger.debug(
                "%s last modified %d is not newer than %d", key, last_modified, timestamp
            )
            return False

        self.get(resource_name, destination)
        return True

    def put(self, source: PathLike, resource_name: str) -> None:
        """Upload a local file, replacing any object at the resource key.

        Raises:
            ResourceDoesNotExistError: If ``source`` does not exist (checked
                before any backend call)
            TransferFailedError: If the upload fails
            AuthorizationError: If the backend rejects the request
        """
        source_path = Path(source)
        if not source_path.exists():
            raise ResourceDoesNotExistError(
                f"Source file does not exist: {source_path.absolute()}",
                backend_type=self.backend_type,
                operation=PUT,
            )

        resource = Resource.from_file(resource_name, source_path)

        self.fire_put_initiated(resource, source_path)
        self.fire_put_started(resource, source_path)
        try:
            key = self.keys.key(resource_name)
            with error_boundary(self.backend_type, PUT, f"{source_path} -> {key}"):
                if self._object_exists(key):
                    logger.debug("Deleting existing object %s before upload", key)
                    self._delete(key)
                content_type = self.content_types.probe(source_path)
                self._upload(source_path, key, content_type)
        except WagonError as exc:
            self.fire_transfer_error(resource, exc, RequestType.PUT, source_path)
            raise

        logger.info("Uploaded %s to %s", source_path.name, key)
        self.fire_put_completed(resource, source_path)

    def put_directory(self, source: PathLike, destination: str) -> None:
        raise UnsupportedOperationError(
            f"{type(self).__name__} does not support directory copy",
            operation="put_directory",
        )

    def supports_directory_copy(self) -> bool:
        return False

    def resource_exists(self, resource_name: str) -> bool:
        key = self.keys.key(resource_name)
        with error_boundary(self.backend_type, EXISTS, key):
            return self._object_exists(key)

    def get_file_list(self, dir_name: str = "") -> List[str]:
        """List the children of a repository directory.

        Returns:
            Sorted child names; sub-directories carry a trailing "/"
        """
        directory_key = self.keys.directory_key(dir_name)
        with error_boundary(self.backend_type, LIST, directory_key):
            entries = list(self._list(directory_key))
        children = collapse_listing(directory_key, entries)
        logger.debug(
            "Listed %d entries (%d children) under '%s'",
            len(entries),
            len(children),
            directory_key,
        )
        return children
