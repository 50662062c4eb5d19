"""Export Pydantic v2 request/response schemas."""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from dataset_export.lib.image_service import decode_filter_options
from dataset_export.models.export import ExportStatus, ExportType


class ExportRequest(BaseModel):
    """Request to create an export."""

    requested_by_user_id: int = Field(..., ge=1, description="ID of the user requesting the export")
    type: ExportType = Field(..., description="Export file kind (0 = dataset archive, 1 = spreadsheet)")
    filter_options: dict[str, Any] = Field(
        default_factory=dict,
        description="Image filter forwarded to the image service as-is",
    )


class ExportResponse(BaseModel):
    """Response for a single export."""

    id: int
    requested_by_user_id: int
    request_time: int = Field(description="Request time in epoch milliseconds")
    type: ExportType
    status: ExportStatus
    expire_time: int = Field(description="Expire time in epoch milliseconds, 0 if not done")
    exported_file_filename: str
    filter_options: dict[str, Any] = Field(default_factory=dict)

    model_config = {"from_attributes": True}

    @field_validator("filter_options", mode="before")
    @classmethod
    def decode_stored_filter(cls, v: Any) -> Any:
        if isinstance(v, bytes | bytearray):
            return decode_filter_options(bytes(v))
        return v


class ExportListResponse(BaseModel):
    """A page of a user's exports."""

    total: int = Field(description="Total number of unexpired exports of the user")
    items: list[ExportResponse]
