"""Unit tests for the service error taxonomy."""

import pytest

from dataset_export.core.errors import (
    BlobNotFoundError,
    BlobStoreError,
    ErrorKind,
    ExportNotFoundError,
    ExportNotReadyError,
    ExportServiceError,
    ExportStoreError,
    ImageServiceError,
    MessagingError,
)


class TestErrorKinds:
    @pytest.mark.parametrize(
        ("error", "kind"),
        [
            (ExportNotFoundError(1), ErrorKind.NOT_FOUND),
            (ExportNotReadyError(1), ErrorKind.FAILED_PRECONDITION),
            (ExportStoreError("failed to get export 1"), ErrorKind.INTERNAL),
            (ImageServiceError("get_image_list", "request timed out"), ErrorKind.INTERNAL),
            (BlobStoreError("failed to upload a.zip"), ErrorKind.INTERNAL),
            (BlobNotFoundError("no file named a.zip found"), ErrorKind.NOT_FOUND),
            (MessagingError("failed to create message"), ErrorKind.INTERNAL),
        ],
    )
    def test_kind(self, error: ExportServiceError, kind: ErrorKind) -> None:
        assert error.kind == kind
        assert isinstance(error, ExportServiceError)

    def test_kind_override(self) -> None:
        error = ExportServiceError("bad filter", kind=ErrorKind.INVALID_ARGUMENT)
        assert error.kind == ErrorKind.INVALID_ARGUMENT
        assert ExportServiceError.kind == ErrorKind.INTERNAL

    def test_messages(self) -> None:
        assert str(ExportNotFoundError(3)) == "no export with export_id 3 found"
        assert str(ExportNotReadyError(3)) == "export with export_id 3 has not been done yet"
        assert str(ImageServiceError("get_user", "transport error: boom")) == "get_user: transport error: boom"
