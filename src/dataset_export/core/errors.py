"""Error taxonomy shared by the store, the pipeline, and the API layer.

Domain violations (not found, not ready) are raised as their own types so the
boundary layer can tell them apart from wrapped storage and transport
failures, which all carry ``ErrorKind.INTERNAL``.
"""

from enum import StrEnum


class ErrorKind(StrEnum):
    """Category of a service error, mapped to a response code at the boundary."""

    NOT_FOUND = "not_found"
    FAILED_PRECONDITION = "failed_precondition"
    INVALID_ARGUMENT = "invalid_argument"
    INTERNAL = "internal"


class ExportServiceError(Exception):
    """Base class for all errors raised by the export service.

    Args:
        message: Human-readable error description.
        kind: Error category. Defaults to the class-level ``kind``.
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, *, kind: ErrorKind | None = None) -> None:
        self.message = message
        if kind is not None:
            self.kind = kind
        super().__init__(message)


class ExportNotFoundError(ExportServiceError):
    """Raised when no export with the requested id exists."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, export_id: int) -> None:
        self.export_id = export_id
        super().__init__(f"no export with export_id {export_id} found")


class ExportNotReadyError(ExportServiceError):
    """Raised when an export's file is requested before the export is done."""

    kind = ErrorKind.FAILED_PRECONDITION

    def __init__(self, export_id: int) -> None:
        self.export_id = export_id
        super().__init__(f"export with export_id {export_id} has not been done yet")


class ExportStoreError(ExportServiceError):
    """Raised when the relational store fails underneath an export operation."""


class ImageServiceError(ExportServiceError):
    """Raised when the image or user service fails (timeout, HTTP error, bad payload).

    Args:
        operation: Name of the failing remote call.
        message: Human-readable error description.
        status_code: Optional HTTP status code from the service.
    """

    def __init__(self, operation: str, message: str, status_code: int | None = None) -> None:
        self.operation = operation
        self.status_code = status_code
        super().__init__(f"{operation}: {message}")


class BlobStoreError(ExportServiceError):
    """Raised when the object store rejects or fails a request."""


class BlobNotFoundError(BlobStoreError):
    """Raised when a requested object does not exist in the bucket."""

    kind = ErrorKind.NOT_FOUND


class MessagingError(ExportServiceError):
    """Raised when a trigger event cannot be published."""
