"""Unit tests for the exports API endpoints."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from dataset_export.core.config import Settings
from dataset_export.core.dependencies import get_app_settings, get_export_management
from dataset_export.core.errors import BlobStoreError, ExportNotFoundError, ExportNotReadyError
from dataset_export.main import create_app
from dataset_export.models.export import Export, ExportStatus, ExportType


def _export(
    export_id: int = 1,
    *,
    status: ExportStatus = ExportStatus.DONE,
    filename: str = "Dataset-1-abc.zip",
) -> Export:
    return Export(
        id=export_id,
        requested_by_user_id=3,
        request_time=1000,
        type=ExportType.DATASET,
        expire_time=2000 if status == ExportStatus.DONE else 0,
        filter_options=b'{"image_type_id":1}',
        status=status,
        exported_file_filename=filename if status == ExportStatus.DONE else "",
    )


@pytest.fixture
def management() -> MagicMock:
    management = MagicMock()
    management.create_export = AsyncMock(return_value=_export(11, status=ExportStatus.REQUESTED))
    management.get_export = AsyncMock(return_value=_export())
    management.list_exports = AsyncMock(return_value=(0, []))
    management.get_export_file = AsyncMock()
    management.delete_export = AsyncMock()
    return management


@pytest.fixture
def client(settings: Settings, management: MagicMock, monkeypatch: pytest.MonkeyPatch) -> AsyncClient:
    monkeypatch.setenv("DATABASE_URL", settings.database_url)
    app = create_app()
    app.dependency_overrides[get_export_management] = lambda: management
    app.dependency_overrides[get_app_settings] = lambda: settings
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


class TestCreateExport:
    async def test_returns_202_with_requested_record(self, client: AsyncClient, management: MagicMock) -> None:
        response = await client.post(
            "/api/v1/exports",
            json={"requested_by_user_id": 3, "type": 1, "filter_options": {"image_type_id": 1}},
        )

        assert response.status_code == 202
        body = response.json()
        assert body["id"] == 11
        assert body["status"] == ExportStatus.REQUESTED
        assert body["expire_time"] == 0
        assert body["exported_file_filename"] == ""
        assert body["filter_options"] == {"image_type_id": 1}
        management.create_export.assert_awaited_once_with(3, ExportType.EXCEL, {"image_type_id": 1})

    async def test_unknown_type_is_rejected(self, client: AsyncClient, management: MagicMock) -> None:
        response = await client.post("/api/v1/exports", json={"requested_by_user_id": 3, "type": 9})

        assert response.status_code == 422
        management.create_export.assert_not_awaited()


class TestListExports:
    async def test_uses_default_limit(self, client: AsyncClient, management: MagicMock, settings: Settings) -> None:
        management.list_exports.return_value = (1, [_export()])

        response = await client.get("/api/v1/exports", params={"requested_by_user_id": 3})

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["items"][0]["id"] == 1
        assert body["items"][0]["filter_options"] == {"image_type_id": 1}
        management.list_exports.assert_awaited_once_with(3, 0, settings.default_list_limit)

    async def test_explicit_offset_and_limit(self, client: AsyncClient, management: MagicMock) -> None:
        await client.get("/api/v1/exports", params={"requested_by_user_id": 3, "offset": 20, "limit": 5})

        management.list_exports.assert_awaited_once_with(3, 20, 5)


class TestGetExport:
    async def test_returns_export(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/exports/1")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == ExportStatus.DONE
        assert body["exported_file_filename"] == "Dataset-1-abc.zip"
        assert body["expire_time"] == 2000

    async def test_missing_export_is_404(self, client: AsyncClient, management: MagicMock) -> None:
        management.get_export.side_effect = ExportNotFoundError(5)

        response = await client.get("/api/v1/exports/5")

        assert response.status_code == 404
        assert response.json() == {"detail": "no export with export_id 5 found", "code": "not_found"}


class TestDownloadExportFile:
    async def test_streams_file(self, client: AsyncClient, management: MagicMock) -> None:
        reader = MagicMock()
        reader.content_length = 6
        reader.iter_chunks.return_value = iter([b"abc", b"def"])
        management.get_export_file.return_value = (_export(), reader)

        response = await client.get("/api/v1/exports/1/file")

        assert response.status_code == 200
        assert response.content == b"abcdef"
        assert response.headers["content-type"] == "application/zip"
        assert 'filename="Dataset-1-abc.zip"' in response.headers["content-disposition"]

    async def test_not_done_is_409(self, client: AsyncClient, management: MagicMock) -> None:
        management.get_export_file.side_effect = ExportNotReadyError(1)

        response = await client.get("/api/v1/exports/1/file")

        assert response.status_code == 409
        assert response.json()["code"] == "failed_precondition"

    async def test_storage_failure_is_500(self, client: AsyncClient, management: MagicMock) -> None:
        management.get_export_file.side_effect = BlobStoreError("failed to get Dataset-1-abc.zip")

        response = await client.get("/api/v1/exports/1/file")

        assert response.status_code == 500
        assert response.json()["code"] == "internal"


class TestDeleteExport:
    async def test_returns_204(self, client: AsyncClient, management: MagicMock) -> None:
        response = await client.delete("/api/v1/exports/4")

        assert response.status_code == 204
        management.delete_export.assert_awaited_once_with(4)

    async def test_missing_is_404(self, client: AsyncClient, management: MagicMock) -> None:
        management.delete_export.side_effect = ExportNotFoundError(4)

        response = await client.delete("/api/v1/exports/4")

        assert response.status_code == 404
