"""Projection models written into export files.

Built fresh for every export run from the image service responses and
discarded once the file is generated. Optional actors are ``None`` when the
service reports user id 0.
"""

import enum
from dataclasses import dataclass, field

from dataset_export.lib.image_service.types import ImageInfo, ImageTagInfo, RegionInfo


@dataclass(frozen=True)
class User:
    id: int
    username: str
    display_name: str


@dataclass(frozen=True)
class ImageType:
    id: int
    display_name: str


class ImageStatus(enum.IntEnum):
    """Lifecycle status of an image in the dataset."""

    UPLOADED = 0
    PUBLISHED = 1
    VERIFIED = 2
    EXCLUDED = 3

    @property
    def display_name(self) -> str:
        return self.name.capitalize()


@dataclass
class Image:
    id: int
    uploaded_by_user: User | None
    upload_time: int
    published_by_user: User | None
    publish_time: int
    verified_by_user: User | None
    verify_time: int
    original_file_name: str
    description: str
    image_type: ImageType | None
    status: ImageStatus


@dataclass(frozen=True)
class ImageTag:
    id: int
    display_name: str


@dataclass(frozen=True)
class Vertex:
    x: float
    y: float


@dataclass
class Polygon:
    vertices: list[Vertex] = field(default_factory=list)


@dataclass(frozen=True)
class RegionLabel:
    id: int
    display_name: str
    color: str


@dataclass
class Region:
    id: int
    drawn_by_user: User | None
    labeled_by_user: User | None
    border: Polygon
    holes: list[Polygon]
    label: RegionLabel | None


@dataclass
class ExportSource:
    """Everything an export file is built from, as fetched from the image service.

    All lists are parallel to ``image_list``.
    """

    image_list: list[ImageInfo] = field(default_factory=list)
    image_tag_list: list[list[ImageTagInfo]] = field(default_factory=list)
    region_list: list[list[RegionInfo]] = field(default_factory=list)
    publish_snapshot_list: list[list[RegionInfo]] = field(default_factory=list)
    verify_snapshot_list: list[list[RegionInfo]] = field(default_factory=list)

    def __post_init__(self) -> None:
        size = len(self.image_list)
        for name in ("image_tag_list", "region_list", "publish_snapshot_list", "verify_snapshot_list"):
            values = getattr(self, name)
            if not values:
                setattr(self, name, [[] for _ in range(size)])
            elif len(values) != size:
                msg = f"{name} has {len(values)} entries, expected {size}"
                raise ValueError(msg)
