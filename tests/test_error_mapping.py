"""Tests for backend exception translation."""

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError, NoCredentialsError
from google.api_core import exceptions as gexc
from google.auth.exceptions import DefaultCredentialsError

from wagon.error_mapping import (
    CONNECT,
    EXISTS,
    GET,
    error_boundary,
    list_error_mappers,
    register_error_mapper,
    translate_error,
)
from wagon.exceptions import (
    AuthenticationError,
    AuthorizationError,
    CommandExecutionError,
    ResourceDoesNotExistError,
    TransferFailedError,
    UnsupportedOperationError,
)


def _client_error(code, status):
    return ClientError(
        {
            "Error": {"Code": code, "Message": "test"},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        "HeadObject",
    )


class TestS3Mapping:
    """Tests for botocore exception classification."""

    @pytest.mark.parametrize(
        "code,status",
        [("404", 404), ("NoSuchKey", 404), ("NoSuchBucket", 404), ("Weird", 404)],
    )
    def test_missing(self, code, status):
        error = translate_error(_client_error(code, status), "s3", GET, "releases/a")
        assert isinstance(error, ResourceDoesNotExistError)
        assert "releases/a" in error.message

    @pytest.mark.parametrize(
        "code,status",
        [("AccessDenied", 403), ("InvalidAccessKeyId", 403), ("403", 403), ("X", 401)],
    )
    def test_denied(self, code, status):
        error = translate_error(_client_error(code, status), "s3", GET, "releases/a")
        assert isinstance(error, AuthorizationError)
        assert not isinstance(error, AuthenticationError)

    def test_other_client_errors_fail_transfer(self):
        cause = _client_error("InternalError", 500)
        error = translate_error(cause, "s3", GET, "releases/a")
        assert isinstance(error, TransferFailedError)
        assert error.original_error is cause
        assert error.details["backend_type"] == "s3"
        assert error.details["error_type"] == "ClientError"

    def test_missing_credentials(self):
        error = translate_error(NoCredentialsError(), "s3", GET)
        assert isinstance(error, AuthorizationError)

    def test_botocore_errors_fail_transfer(self):
        cause = EndpointConnectionError(endpoint_url="http://localhost:9")
        assert isinstance(translate_error(cause, "s3", GET), TransferFailedError)


class TestGoogleMapping:
    """Tests for google-cloud-storage exception classification."""

    def test_not_found(self):
        error = translate_error(gexc.NotFound("gone"), "gcs", GET, "k")
        assert isinstance(error, ResourceDoesNotExistError)

    @pytest.mark.parametrize(
        "cause",
        [gexc.Forbidden("no"), gexc.Unauthorized("no"), DefaultCredentialsError("no")],
    )
    def test_denied(self, cause):
        assert isinstance(translate_error(cause, "gcs", GET, "k"), AuthorizationError)

    def test_other_failures(self):
        error = translate_error(gexc.ServiceUnavailable("down"), "gcs", GET, "k")
        assert isinstance(error, TransferFailedError)


class TestTranslateError:
    """Tests for the shared translation rules."""

    def test_typed_errors_returned_unchanged(self):
        error = UnsupportedOperationError("nope")
        assert translate_error(error, "s3", GET) is error

    def test_command_failures_are_translated(self):
        cause = CommandExecutionError("Exit code 1 - boom", exit_code=1)
        error = translate_error(cause, "gsutil", GET, "a -> b")
        assert isinstance(error, TransferFailedError)
        assert error.original_error is cause
        assert "Exit code 1 - boom" in error.message

    def test_command_access_denied(self):
        cause = CommandExecutionError(
            "Exit code 1 - AccessDeniedException: 403",
            exit_code=1,
            stderr="AccessDeniedException: 403 Caller does not have access\n",
        )
        error = translate_error(cause, "gsutil", EXISTS, "gs://b/a.jar")
        assert isinstance(error, AuthorizationError)
        assert error.original_error is cause

    def test_connect_failures_are_authentication_errors(self):
        cause = ValueError("bad region")
        error = translate_error(cause, "gcs", CONNECT, "gs://bucket")
        assert isinstance(error, AuthenticationError)
        assert "gs://bucket" in error.message

    def test_unknown_backend_uses_default_mapper(self):
        assert isinstance(
            translate_error(FileNotFoundError("x"), "ftp", GET),
            ResourceDoesNotExistError,
        )
        assert isinstance(
            translate_error(PermissionError("x"), "ftp", GET), AuthorizationError
        )
        assert isinstance(translate_error(OSError("x"), "ftp", GET), TransferFailedError)

    def test_registered_mappers(self):
        assert {"gcs", "gsutil", "s3"} <= set(list_error_mappers())

    def test_register_custom_mapper(self):
        @register_error_mapper("memory")
        def _mapper(exc, operation, context=None):
            return ResourceDoesNotExistError(f"{operation} {context}")

        error = translate_error(KeyError("k"), "memory", GET, "k")
        assert isinstance(error, ResourceDoesNotExistError)
        assert error.message == "get k"


class TestErrorBoundary:
    """Tests for the error_boundary context manager."""

    def test_translates_and_chains(self):
        cause = _client_error("NoSuchKey", 404)
        with pytest.raises(ResourceDoesNotExistError) as exc_info:
            with error_boundary("s3", GET, "releases/a -> /tmp/a"):
                raise cause
        assert exc_info.value.__cause__ is cause
        assert "releases/a -> /tmp/a" in exc_info.value.message

    def test_typed_errors_pass_through(self):
        error = ResourceDoesNotExistError("missing")
        with pytest.raises(ResourceDoesNotExistError) as exc_info:
            with error_boundary("s3", GET):
                raise error
        assert exc_info.value is error

    def test_no_error(self):
        with error_boundary("s3", GET):
            value = 1
        assert value == 1


class TestErrorFormatting:
    """Tests for WagonError string rendering."""

    def test_code_and_details(self):
        error = TransferFailedError("Upload failed", backend_type="s3", operation="put")
        assert str(error) == "[XFR001] Upload failed (backend_type=s3, operation=put)"

    def test_error_codes(self):
        assert AuthenticationError("x").error_code == "AUTH002"
        assert AuthorizationError("x").error_code == "AUTH001"
        assert CommandExecutionError("x").error_code == "CMD001"
