"""Export API endpoints for requesting, listing, downloading and deleting exports."""

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import StreamingResponse
from starlette.concurrency import iterate_in_threadpool

from dataset_export.core.config import Settings
from dataset_export.core.dependencies import get_app_settings, get_export_management
from dataset_export.schemas.export import (
    ExportListResponse,
    ExportRequest,
    ExportResponse,
)
from dataset_export.services.export_management import ExportManagement

exports_router = APIRouter(prefix="/exports", tags=["exports"])

_MEDIA_TYPES = {
    "zip": "application/zip",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


@exports_router.post(
    "",
    response_model=ExportResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def create_export(
    request: ExportRequest,
    management: ExportManagement = Depends(get_export_management),
) -> ExportResponse:
    """Queue an export for asynchronous processing and return the REQUESTED record."""
    export = await management.create_export(
        request.requested_by_user_id,
        request.type,
        request.filter_options,
    )
    return ExportResponse.model_validate(export)


@exports_router.get(
    "",
    response_model=ExportListResponse,
)
async def list_exports(
    requested_by_user_id: int = Query(..., ge=1),
    offset: int = Query(0, ge=0),
    limit: int | None = Query(None, ge=1, le=100),
    management: ExportManagement = Depends(get_export_management),
    settings: Settings = Depends(get_app_settings),
) -> ExportListResponse:
    """List a user's unexpired exports, newest first."""
    total, exports = await management.list_exports(
        requested_by_user_id,
        offset,
        limit or settings.default_list_limit,
    )
    return ExportListResponse(
        total=total,
        items=[ExportResponse.model_validate(e) for e in exports],
    )


@exports_router.get(
    "/{export_id}",
    response_model=ExportResponse,
)
async def get_export(
    export_id: int,
    management: ExportManagement = Depends(get_export_management),
) -> ExportResponse:
    """Get an export's status."""
    export = await management.get_export(export_id)
    return ExportResponse.model_validate(export)


@exports_router.get(
    "/{export_id}/file",
)
async def download_export_file(
    export_id: int,
    management: ExportManagement = Depends(get_export_management),
) -> StreamingResponse:
    """Stream the file of a finished export."""
    export, reader = await management.get_export_file(export_id)
    filename = export.exported_file_filename
    extension = filename.rsplit(".", 1)[-1]

    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    if reader.content_length is not None:
        headers["Content-Length"] = str(reader.content_length)

    return StreamingResponse(
        iterate_in_threadpool(reader.iter_chunks()),
        media_type=_MEDIA_TYPES.get(extension, "application/octet-stream"),
        headers=headers,
    )


@exports_router.delete(
    "/{export_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_export(
    export_id: int,
    management: ExportManagement = Depends(get_export_management),
) -> Response:
    """Delete an export record."""
    await management.delete_export(export_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
