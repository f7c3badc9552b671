"""S3 transport for ``s3://bucket/basedir`` repositories.

Supports AWS S3 and S3-compatible object stores (MinIO, ...). Transfers go
through an s3transfer ``TransferManager`` owned by the connection.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple

import boto3
from boto3.s3.transfer import TransferConfig, create_transfer_manager
from botocore.exceptions import ClientError

from wagon.error_mapping import CONNECT
from wagon.exceptions import ResourceDoesNotExistError
from wagon.repository import DELIMITER

from .base import Transport
from .registry import register_transport

logger = logging.getLogger(__name__)


def _env_value(name: Optional[str]) -> Optional[str]:
    return os.environ.get(name) if name else None


def _is_not_found(exc: ClientError) -> bool:
    code = str(exc.response.get("Error", {}).get("Code", ""))
    status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
    return code in {"404", "NoSuchKey", "NotFound"} or status == 404


@dataclass
class S3Handle:
    """Bound S3 backend: client, bucket name and transfer manager."""

    client: Any
    bucket: str
    transfer: Any


@register_transport("s3")
class S3Transport(Transport):
    """Repository transport backed by boto3."""

    backend_type = "s3"

    def _connect(self) -> S3Handle:
        bucket = self.locator.require_host()
        s3_cfg = self.settings.s3

        endpoint_url = _env_value(s3_cfg.endpoint_url_env)
        access_key = _env_value(s3_cfg.access_key_env)
        secret_key = _env_value(s3_cfg.secret_key_env)

        # Fall back to the boto3 provider chain unless both keys are supplied
        session_kwargs: Dict[str, Any] = {}
        if access_key and secret_key:
            session_kwargs["aws_access_key_id"] = access_key
            session_kwargs["aws_secret_access_key"] = secret_key

        session = boto3.session.Session(region_name=s3_cfg.region, **session_kwargs)
        client = session.client("s3", endpoint_url=endpoint_url)
        logger.debug(
            "Created S3 client for bucket '%s' (region: %s, endpoint: %s)",
            bucket,
            session.region_name or "default",
            endpoint_url or "default",
        )

        try:
            buckets = client.list_buckets().get("Buckets", [])
        except Exception:
            client.close()
            raise

        if bucket not in {entry["Name"] for entry in buckets}:
            client.close()
            raise ResourceDoesNotExistError(
                f"Bucket '{bucket}' does not exist for repository {self.repository}",
                backend_type=self.backend_type,
                operation=CONNECT,
            )

        config = TransferConfig(
            multipart_threshold=s3_cfg.multipart_threshold,
            multipart_chunksize=s3_cfg.multipart_chunksize,
            max_concurrency=s3_cfg.max_concurrency,
        )
        transfer = create_transfer_manager(client, config)
        return S3Handle(client=client, bucket=bucket, transfer=transfer)

    def _disconnect(self, handle: S3Handle) -> None:
        """Cancel pending transfers and release the client.

        The transfer manager waits for cancelled transfers to wind down, so a
        close racing an in-flight download or upload returns once that transfer
        has stopped.
        """
        handle.transfer.shutdown(cancel=True)
        handle.client.close()

    def _head(self, key: str) -> Optional[Dict[str, Any]]:
        handle = self.connection.handle()
        try:
            return handle.client.head_object(Bucket=handle.bucket, Key=key)
        except ClientError as exc:
            if _is_not_found(exc):
                return None
            raise

    def _object_exists(self, key: str) -> bool:
        return self._head(key) is not None

    def _last_modified(self, key: str) -> Optional[int]:
        metadata = self._head(key)
        if metadata is None or metadata.get("LastModified") is None:
            return None
        return int(metadata["LastModified"].timestamp() * 1000)

    def _download(self, key: str, destination: Path) -> None:
        handle = self.connection.handle()
        handle.transfer.download(handle.bucket, key, str(destination)).result()

    def _delete(self, key: str) -> None:
        handle = self.connection.handle()
        handle.client.delete_object(Bucket=handle.bucket, Key=key)

    def _upload(self, source: Path, key: str, content_type: Optional[str]) -> None:
        handle = self.connection.handle()
        extra_args = {"ContentType": content_type} if content_type else None
        handle.transfer.upload(
            str(source), handle.bucket, key, extra_args=extra_args
        ).result()

    def _list(self, directory_key: str) -> Iterator[Tuple[str, bool]]:
        # Delimiter restricts the listing to the current directory; deeper
        # levels come back as CommonPrefixes, which are directory markers.
        handle = self.connection.handle()
        paginator = handle.client.get_paginator("list_objects_v2")
        for page in paginator.paginate(
            Bucket=handle.bucket, Prefix=directory_key, Delimiter=DELIMITER
        ):
            for entry in page.get("Contents", []):
                yield entry["Key"], False
            for entry in page.get("CommonPrefixes", []):
                yield entry["Prefix"], True
