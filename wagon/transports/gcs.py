"""Google Cloud Storage transport for ``gs://bucket/basedir`` repositories."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple

from google.cloud import storage

from wagon.error_mapping import CONNECT
from wagon.exceptions import ResourceDoesNotExistError

from .base import Transport
from .registry import register_transport

logger = logging.getLogger(__name__)


@dataclass
class GCSHandle:
    client: storage.Client
    bucket: storage.Bucket


@register_transport("gs")
class GCSTransport(Transport):
    """Repository transport backed by google-cloud-storage.

    GCS has no directory markers, so listings are recursive and a child is a
    directory exactly when its key continues past the next delimiter.
    """

    backend_type = "gcs"

    def _connect(self) -> GCSHandle:
        name = self.locator.require_host()
        client = storage.Client(project=self.settings.gcs.project)
        bucket = client.lookup_bucket(name)
        if bucket is None:
            client.close()
            raise ResourceDoesNotExistError(
                f"Bucket '{name}' does not exist for repository {self.repository}",
                backend_type=self.backend_type,
                operation=CONNECT,
            )
        logger.debug("Resolved GCS bucket '%s'", name)
        return GCSHandle(client=client, bucket=bucket)

    def _disconnect(self, handle: GCSHandle) -> None:
        handle.client.close()

    def _object_exists(self, key: str) -> bool:
        return self.connection.handle().bucket.blob(key).exists()

    def _last_modified(self, key: str) -> Optional[int]:
        blob = self.connection.handle().bucket.get_blob(key)
        if blob is None or blob.updated is None:
            return None
        return int(blob.updated.timestamp() * 1000)

    def _download(self, key: str, destination: Path) -> None:
        self.connection.handle().bucket.blob(key).download_to_filename(str(destination))

    def _delete(self, key: str) -> None:
        self.connection.handle().bucket.delete_blob(key)

    def _upload(self, source: Path, key: str, content_type: Optional[str]) -> None:
        chunk_size = self.settings.gcs.chunk_size
        blob = self.connection.handle().bucket.blob(key, chunk_size=chunk_size)

        writer_kwargs: Dict[str, Any] = {"chunk_size": chunk_size}
        if content_type:
            writer_kwargs["content_type"] = content_type

        # Stream in bounded chunks so large artifacts never sit in memory
        with open(source, "rb") as reader, blob.open("wb", **writer_kwargs) as writer:
            for chunk in iter(partial(reader.read, chunk_size), b""):
                writer.write(chunk)

    def _list(self, directory_key: str) -> Iterator[Tuple[str, bool]]:
        handle = self.connection.handle()
        for blob in handle.client.list_blobs(handle.bucket, prefix=directory_key):
            yield blob.name, False
