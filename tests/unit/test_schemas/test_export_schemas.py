"""Unit tests for export request/response schemas."""

import pytest
from pydantic import ValidationError

from dataset_export.models.export import Export, ExportStatus, ExportType
from dataset_export.schemas.export import ExportRequest, ExportResponse


class TestExportRequest:
    def test_defaults_to_empty_filter(self) -> None:
        request = ExportRequest(requested_by_user_id=1, type=ExportType.DATASET)
        assert request.filter_options == {}

    def test_rejects_non_positive_user(self) -> None:
        with pytest.raises(ValidationError):
            ExportRequest(requested_by_user_id=0, type=ExportType.DATASET)

    def test_rejects_unknown_type(self) -> None:
        with pytest.raises(ValidationError):
            ExportRequest.model_validate({"requested_by_user_id": 1, "type": 5})


class TestExportResponse:
    def test_decodes_stored_filter_options(self) -> None:
        export = Export(
            id=1,
            requested_by_user_id=2,
            request_time=10,
            type=1,
            expire_time=0,
            filter_options=b'{"image_type_id":3}',
            status=0,
            exported_file_filename="",
        )

        response = ExportResponse.model_validate(export)

        assert response.type == ExportType.EXCEL
        assert response.status == ExportStatus.REQUESTED
        assert response.filter_options == {"image_type_id": 3}

    def test_empty_filter_options(self) -> None:
        response = ExportResponse(
            id=1,
            requested_by_user_id=2,
            request_time=10,
            type=ExportType.DATASET,
            status=ExportStatus.DONE,
            expire_time=20,
            exported_file_filename="a.zip",
            filter_options=b"",
        )
        assert response.filter_options == {}
