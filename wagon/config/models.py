"""Typed transport settings.

These dataclasses centralize validation so transports receive checked values
instead of hand-validating nested dicts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from wagon.exceptions import ConfigurationError

MIB = 1024 * 1024
# GCS resumable uploads need chunk sizes in multiples of 256 KiB
GCS_CHUNK_MULTIPLE = 256 * 1024


def _ensure_dict(value: Any, key: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"{key} must be a mapping", key=key)
    return value


def _ensure_optional_str(value: Any, key: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"{key} must be a string", key=key)
    return value


def _ensure_str(value: Any, key: str) -> str:
    if not isinstance(value, str) or not value:
        raise ConfigurationError(f"{key} must be a non-empty string", key=key)
    return value


def _ensure_positive_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigurationError(f"{key} must be a positive integer", key=key)
    return value


def _ensure_str_mapping(value: Any, key: str) -> Dict[str, str]:
    data = _ensure_dict(value, key)
    if any(not isinstance(k, str) or not isinstance(v, str) for k, v in data.items()):
        raise ConfigurationError(f"{key} must be a mapping of strings", key=key)
    return dict(data)


@dataclass
class S3Settings:
    """S3 connection settings.

    Credentials and endpoint are read from the environment variables named
    here; when unset, the boto3 default provider chain applies.
    """

    region: Optional[str] = None
    endpoint_url_env: Optional[str] = None
    access_key_env: str = "AWS_ACCESS_KEY_ID"
    secret_key_env: str = "AWS_SECRET_ACCESS_KEY"
    multipart_threshold: int = 8 * MIB
    multipart_chunksize: int = 8 * MIB
    max_concurrency: int = 10

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "S3Settings":
        data = _ensure_dict(raw, "s3")
        defaults = cls()
        return cls(
            region=_ensure_optional_str(data.get("region"), "s3.region"),
            endpoint_url_env=_ensure_optional_str(
                data.get("endpoint_url_env"), "s3.endpoint_url_env"
            ),
            access_key_env=_ensure_str(
                data.get("access_key_env", defaults.access_key_env), "s3.access_key_env"
            ),
            secret_key_env=_ensure_str(
                data.get("secret_key_env", defaults.secret_key_env), "s3.secret_key_env"
            ),
            multipart_threshold=_ensure_positive_int(
                data.get("multipart_threshold", defaults.multipart_threshold),
                "s3.multipart_threshold",
            ),
            multipart_chunksize=_ensure_positive_int(
                data.get("multipart_chunksize", defaults.multipart_chunksize),
                "s3.multipart_chunksize",
            ),
            max_concurrency=_ensure_positive_int(
                data.get("max_concurrency", defaults.max_concurrency),
                "s3.max_concurrency",
            ),
        )


@dataclass
class GCSSettings:
    project: Optional[str] = None
    chunk_size: int = MIB

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "GCSSettings":
        data = _ensure_dict(raw, "gcs")
        chunk_size = _ensure_positive_int(data.get("chunk_size", MIB), "gcs.chunk_size")
        if chunk_size % GCS_CHUNK_MULTIPLE:
            raise ConfigurationError(
                "gcs.chunk_size must be a multiple of 262144 bytes",
                key="gcs.chunk_size",
            )
        return cls(
            project=_ensure_optional_str(data.get("project"), "gcs.project"),
            chunk_size=chunk_size,
        )


@dataclass
class GSUtilSettings:
    executable: str = "gsutil"

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "GSUtilSettings":
        data = _ensure_dict(raw, "gsutil")
        return cls(
            executable=_ensure_str(data.get("executable", "gsutil"), "gsutil.executable")
        )


@dataclass
class TransportSettings:
    """Root settings object.

    Attributes:
        s3: S3 connection settings
        gcs: Google Cloud Storage settings
        gsutil: gsutil command-line settings
        repositories: Repository id -> URL aliases used by the CLI
        content_types: File suffix -> content type overrides
    """

    s3: S3Settings = field(default_factory=S3Settings)
    gcs: GCSSettings = field(default_factory=GCSSettings)
    gsutil: GSUtilSettings = field(default_factory=GSUtilSettings)
    repositories: Dict[str, str] = field(default_factory=dict)
    content_types: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "TransportSettings":
        data = _ensure_dict(raw, "settings")
        return cls(
            s3=S3Settings.from_dict(data.get("s3")),
            gcs=GCSSettings.from_dict(data.get("gcs")),
            gsutil=GSUtilSettings.from_dict(data.get("gsutil")),
            repositories=_ensure_str_mapping(data.get("repositories"), "repositories"),
            content_types=_ensure_str_mapping(
                data.get("content_types"), "content_types"
            ),
        )

    def resolve_repository(self, name_or_url: str) -> str:
        """Return the URL for a configured repository id, or the input unchanged."""
        return self.repositories.get(name_or_url, name_or_url)
