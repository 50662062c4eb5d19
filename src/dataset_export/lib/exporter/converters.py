"""Conversion of image service responses into export projection models."""

from typing import Protocol

from loguru import logger

from dataset_export.lib.exporter.models import (
    Image,
    ImageStatus,
    ImageTag,
    ImageType,
    Polygon,
    Region,
    RegionLabel,
    User,
    Vertex,
)
from dataset_export.lib.image_service.types import (
    ImageInfo,
    ImageTagInfo,
    PolygonInfo,
    RegionInfo,
    UserInfo,
)


class UserSource(Protocol):
    """Anything that can look up a user by id."""

    async def get_user(self, user_id: int) -> UserInfo | None: ...


class UserResolver:
    """Resolves user ids to ``User`` projections, caching lookups for one export run.

    A user id of 0 or None means "no such actor" and resolves to None
    without a lookup.
    """

    def __init__(self, source: UserSource) -> None:
        self._source = source
        self._cache: dict[int, User | None] = {}

    async def resolve(self, user_id: int | None) -> User | None:
        if not user_id:
            return None
        if user_id not in self._cache:
            info = await self._source.get_user(user_id)
            self._cache[user_id] = (
                None if info is None else User(id=info.id, username=info.username, display_name=info.display_name)
            )
        return self._cache[user_id]


def to_image_status(status: str | int) -> ImageStatus:
    """Convert an image service status (name or number) to ``ImageStatus``.

    Raises:
        ValueError: If the status is not a known image status.
    """
    try:
        if isinstance(status, int):
            return ImageStatus(status)
        return ImageStatus[status.upper()]
    except (KeyError, ValueError) as e:
        logger.error("Invalid image status {!r}", status)
        msg = f"Invalid image status {status!r}"
        raise ValueError(msg) from e


def to_image_tag(tag: ImageTagInfo) -> ImageTag:
    return ImageTag(id=tag.id, display_name=tag.display_name)


def to_polygon(polygon: PolygonInfo | None) -> Polygon:
    if polygon is None:
        return Polygon()
    return Polygon(vertices=[Vertex(x=v.x, y=v.y) for v in polygon.vertices])


async def to_image(info: ImageInfo, users: UserResolver) -> Image:
    """Build an ``Image`` projection, resolving its uploader, publisher and verifier."""
    return Image(
        id=info.id,
        uploaded_by_user=await users.resolve(info.uploaded_by_user_id),
        upload_time=info.upload_time,
        published_by_user=await users.resolve(info.published_by_user_id),
        publish_time=info.publish_time,
        verified_by_user=await users.resolve(info.verified_by_user_id),
        verify_time=info.verify_time,
        original_file_name=info.original_file_name,
        description=info.description,
        image_type=(
            ImageType(id=info.image_type.id, display_name=info.image_type.display_name) if info.image_type else None
        ),
        status=to_image_status(info.status),
    )


async def to_region(info: RegionInfo, users: UserResolver) -> Region:
    """Build a ``Region`` projection, resolving who drew and labeled it."""
    return Region(
        id=info.id,
        drawn_by_user=await users.resolve(info.drawn_by_user_id),
        labeled_by_user=await users.resolve(info.labeled_by_user_id),
        border=to_polygon(info.border),
        holes=[to_polygon(hole) for hole in info.holes],
        label=(
            RegionLabel(id=info.label.id, display_name=info.label.display_name, color=info.label.color)
            if info.label
            else None
        ),
    )


async def to_region_list(regions: list[RegionInfo], users: UserResolver) -> list[Region]:
    return [await to_region(region, users) for region in regions]
