"""Tests for the dataset archive writer."""

import json
import zipfile
from pathlib import Path

import pytest

from dataset_export.core.errors import ImageServiceError
from dataset_export.lib.exporter import DatasetArchiveBuilder, ExportSource, image_entry_name, metadata_entry_name
from dataset_export.lib.image_service.types import ImageInfo, ImageTagInfo, RegionInfo, RegionLabelInfo, UserInfo


class FakeImageFiles:
    def __init__(self, fail_on: int | None = None) -> None:
        self.fail_on = fail_on

    async def fetch_image_file(self, image_id: int) -> bytes:
        if image_id == self.fail_on:
            raise ImageServiceError("get_image_file", "service returned HTTP 500", status_code=500)
        return f"image-{image_id}".encode()


class FakeUsers:
    async def get_user(self, user_id: int) -> UserInfo | None:
        return UserInfo(id=user_id, username=f"user{user_id}", display_name=f"User {user_id}")


def _source(count: int) -> ExportSource:
    ids = range(1, count + 1)
    images = [ImageInfo(id=i, uploaded_by_user_id=1, status="PUBLISHED", published_by_user_id=2) for i in ids]
    return ExportSource(
        image_list=images,
        image_tag_list=[[ImageTagInfo(id=1, display_name="night")] for _ in images],
        region_list=[[RegionInfo(id=i * 10, label=RegionLabelInfo(id=1, display_name="car"))] for i in ids],
        publish_snapshot_list=[[RegionInfo(id=i * 100)] for i in ids],
        verify_snapshot_list=[[] for _ in images],
    )


class TestDatasetArchiveBuilder:
    """Tests for DatasetArchiveBuilder.build."""

    async def test_one_image_and_metadata_entry_per_image(self, tmp_path: Path) -> None:
        builder = DatasetArchiveBuilder(FakeImageFiles(), FakeUsers(), clock=lambda: 1000)

        path = await builder.build(_source(3), tmp_path)

        assert path.parent == tmp_path
        assert path.name.startswith("Dataset-1000-")
        assert path.suffix == ".zip"
        with zipfile.ZipFile(path) as archive:
            names = archive.namelist()
            assert sorted(names) == sorted(
                [image_entry_name(i) for i in (1, 2, 3)] + [metadata_entry_name(i) for i in (1, 2, 3)]
            )
            assert archive.read("images/1.jpeg") == b"image-1"
            assert all(info.compress_type == zipfile.ZIP_DEFLATED for info in archive.infolist())

    async def test_metadata_document(self, tmp_path: Path) -> None:
        builder = DatasetArchiveBuilder(FakeImageFiles(), FakeUsers(), clock=lambda: 1000)

        path = await builder.build(_source(1), tmp_path)

        with zipfile.ZipFile(path) as archive:
            metadata = json.loads(archive.read("metadata/1.json"))
        assert set(metadata) == {
            "image",
            "image_tag_list",
            "region_list",
            "region_snapshot_list_at_publish_time",
            "region_snapshot_list_at_verify_time",
        }
        assert metadata["image"]["uploaded_by_user"] == {"id": 1, "username": "user1", "display_name": "User 1"}
        assert metadata["image"]["published_by_user"]["id"] == 2
        assert metadata["image"]["verified_by_user"] is None
        assert metadata["image_tag_list"] == [{"id": 1, "display_name": "night"}]
        assert metadata["region_list"][0]["label"]["display_name"] == "car"
        assert metadata["region_snapshot_list_at_publish_time"][0]["id"] == 100
        assert metadata["region_snapshot_list_at_verify_time"] == []

    async def test_empty_dataset_gives_valid_empty_archive(self, tmp_path: Path) -> None:
        builder = DatasetArchiveBuilder(FakeImageFiles(), FakeUsers())

        path = await builder.build(ExportSource(), tmp_path)

        with zipfile.ZipFile(path) as archive:
            assert archive.namelist() == []
            assert archive.testzip() is None

    async def test_fetch_error_aborts_build(self, tmp_path: Path) -> None:
        builder = DatasetArchiveBuilder(FakeImageFiles(fail_on=2), FakeUsers())

        with pytest.raises(ImageServiceError):
            await builder.build(_source(3), tmp_path)
