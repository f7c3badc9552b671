"""Tests for the S3 transport with moto mocking."""

import time
from unittest.mock import MagicMock

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from wagon.config import TransportSettings
from wagon.config.models import S3Settings
from wagon.connection import ConnectionState
from wagon.content_type import MimetypesDetector
from wagon.exceptions import (
    AuthenticationError,
    ResourceDoesNotExistError,
    UnsupportedOperationError,
)
from wagon.transports import S3Transport, get_transport

BUCKET = "test-bucket"


@pytest.fixture
def s3_client(aws_credentials):
    """Create a mocked S3 client with the test bucket."""
    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        client.create_bucket(Bucket=BUCKET)
        yield client


@pytest.fixture
def transport(s3_client, listener):
    """S3 transport rooted at s3://test-bucket/releases."""
    transport = S3Transport(
        f"s3://{BUCKET}/releases", detectors=[MimetypesDetector()]
    )
    transport.add_transfer_listener(listener)
    yield transport
    transport.close_connection()


def _read(client, key):
    return client.get_object(Bucket=BUCKET, Key=key)["Body"].read()


class TestS3Connection:
    """Tests for lazy binding."""

    def test_construction_does_not_connect(self, transport):
        assert transport.connection.state is ConnectionState.UNBOUND

    def test_missing_bucket(self, s3_client):
        transport = S3Transport("s3://no-such-bucket/releases")
        with pytest.raises(ResourceDoesNotExistError, match="no-such-bucket"):
            transport.resource_exists("a.txt")
        assert transport.connection.state is ConnectionState.UNBOUND

    def test_context_manager(self, s3_client):
        with S3Transport(f"s3://{BUCKET}") as transport:
            assert transport.connection.state is ConnectionState.BOUND
        assert transport.connection.state is ConnectionState.CLOSED

    def test_reopen_after_close(self, transport, artifact):
        transport.put(artifact, "a.json")
        transport.close_connection()
        assert transport.resource_exists("a.json")
        assert transport.connection.state is ConnectionState.BOUND

    def test_untyped_binding_failure(self, s3_client, monkeypatch):
        def _broken_session(*args, **kwargs):
            raise ValueError("invalid region")

        monkeypatch.setattr("wagon.transports.s3.boto3.session.Session", _broken_session)
        transport = S3Transport(f"s3://{BUCKET}")
        with pytest.raises(AuthenticationError, match="invalid region"):
            transport.open_connection()

    def test_failed_bucket_listing_closes_client(self, s3_client, monkeypatch):
        session = MagicMock()
        client = session.return_value.client.return_value
        client.list_buckets.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "ListBuckets"
        )
        monkeypatch.setattr("wagon.transports.s3.boto3.session.Session", session)

        transport = S3Transport(f"s3://{BUCKET}")
        with pytest.raises(AuthenticationError):
            transport.open_connection()
        client.close.assert_called_once()
        assert transport.connection.state is ConnectionState.UNBOUND

    def test_close_cancels_pending_transfers(self, s3_client, monkeypatch):
        manager = MagicMock()
        monkeypatch.setattr(
            "wagon.transports.s3.create_transfer_manager",
            lambda client, config: manager,
        )
        transport = S3Transport(f"s3://{BUCKET}")
        transport.open_connection()

        transport.close_connection()
        transport.close_connection()

        manager.shutdown.assert_called_once_with(cancel=True)

    def test_get_transport_resolves_scheme(self, s3_client):
        settings = TransportSettings(
            s3=S3Settings(max_concurrency=2),
            repositories={"releases": f"s3://{BUCKET}/releases"},
        )
        transport = get_transport("releases", settings)
        assert isinstance(transport, S3Transport)
        assert transport.keys.key("a") == "releases/a"


class TestS3Put:
    """Tests for uploads."""

    def test_put_uploads_under_prefix(self, transport, s3_client, artifact, listener):
        transport.put(artifact, "com/acme/app-1.0.json")

        key = "releases/com/acme/app-1.0.json"
        assert _read(s3_client, key) == artifact.read_bytes()
        assert listener.kinds == ["put/initiated", "put/started", "put/completed"]
        assert listener.events[0].resource.content_length == artifact.stat().st_size

    def test_put_sets_content_type(self, transport, s3_client, artifact):
        transport.put(artifact, "app.json")
        head = s3_client.head_object(Bucket=BUCKET, Key="releases/app.json")
        assert head["ContentType"] == "application/json"

    def test_put_replaces_existing_object(self, transport, s3_client, artifact):
        s3_client.put_object(Bucket=BUCKET, Key="releases/app.json", Body=b"old")
        transport.put(artifact, "app.json")
        assert _read(s3_client, "releases/app.json") == artifact.read_bytes()

    def test_missing_source_fails_before_binding(self, transport, tmp_path, listener):
        with pytest.raises(ResourceDoesNotExistError, match="does not exist"):
            transport.put(tmp_path / "missing.jar", "missing.jar")
        assert transport.connection.state is ConnectionState.UNBOUND
        assert listener.events == []

    def test_put_directory_unsupported(self, transport, tmp_path):
        assert not transport.supports_directory_copy()
        with pytest.raises(UnsupportedOperationError):
            transport.put_directory(tmp_path, "dir")


class TestS3Get:
    """Tests for downloads."""

    def test_get_round_trip(self, transport, artifact, tmp_path, listener):
        transport.put(artifact, "com/acme/app.json")
        destination = tmp_path / "download" / "nested" / "app.json"

        transport.get("com/acme/app.json", destination)

        assert destination.read_bytes() == artifact.read_bytes()
        assert listener.kinds[-3:] == ["get/initiated", "get/started", "get/completed"]

    def test_get_missing_resource(self, transport, tmp_path, listener):
        with pytest.raises(ResourceDoesNotExistError, match="releases/missing.jar"):
            transport.get("missing.jar", tmp_path / "missing.jar")
        assert listener.kinds == ["get/initiated", "get/started", "get/error"]
        assert isinstance(listener.events[-1].exception, ResourceDoesNotExistError)

    def test_get_if_newer_downloads_newer(self, transport, artifact, tmp_path):
        transport.put(artifact, "app.json")
        destination = tmp_path / "app.json"

        assert transport.get_if_newer("app.json", destination, 0) is True
        assert destination.exists()

    def test_get_if_newer_skips_older(self, transport, artifact, tmp_path):
        transport.put(artifact, "app.json")
        destination = tmp_path / "app.json"
        tomorrow = int((time.time() + 86400) * 1000)

        assert transport.get_if_newer("app.json", destination, tomorrow) is False
        assert not destination.exists()

    def test_get_if_newer_missing_resource(self, transport, tmp_path):
        destination = tmp_path / "missing.json"
        assert transport.get_if_newer("missing.json", destination, 0) is False
        assert not destination.exists()


class TestS3Listing:
    """Tests for resource_exists and get_file_list."""

    @pytest.fixture
    def populated(self, transport, s3_client):
        for key in [
            "releases/top.txt",
            "releases/a/x",
            "releases/a/y",
            "releases/a/sub/z",
            "other/ignored",
        ]:
            s3_client.put_object(Bucket=BUCKET, Key=key, Body=b"data")
        return transport

    def test_resource_exists(self, populated):
        assert populated.resource_exists("a/x")
        assert not populated.resource_exists("a/missing")
        assert not populated.resource_exists("other/ignored")

    def test_list_directory(self, populated):
        assert populated.get_file_list("a") == ["sub/", "x", "y"]
        assert populated.get_file_list("/a/") == ["sub/", "x", "y"]

    def test_list_root(self, populated):
        assert populated.get_file_list("") == ["a/", "top.txt"]

    def test_list_empty_directory(self, populated):
        assert populated.get_file_list("nothing-here") == []

    def test_list_paginates(self, transport, s3_client):
        for index in range(1005):
            s3_client.put_object(
                Bucket=BUCKET, Key=f"releases/many/f{index:04d}", Body=b""
            )
        listing = transport.get_file_list("many")
        assert len(listing) == 1005
        assert listing[0] == "f0000"
