"""Wire models for the image and user service JSON APIs.

Every field has a default: the services omit zero values, the same way the
fields would be optional in a protobuf message.
"""

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class UserInfo(_WireModel):
    """A user as returned by the user service."""

    id: int = 0
    username: str = ""
    display_name: str = ""


class ImageTypeInfo(_WireModel):
    id: int = 0
    display_name: str = ""


class ImageInfo(_WireModel):
    """An image as returned by the image service."""

    id: int = 0
    uploaded_by_user_id: int = 0
    upload_time: int = 0
    published_by_user_id: int = 0
    publish_time: int = 0
    verified_by_user_id: int = 0
    verify_time: int = 0
    original_file_name: str = ""
    description: str = ""
    image_type: ImageTypeInfo | None = None
    status: str | int = "UPLOADED"


class ImageTagInfo(_WireModel):
    id: int = 0
    display_name: str = ""


class VertexInfo(_WireModel):
    x: float = 0.0
    y: float = 0.0


class PolygonInfo(_WireModel):
    vertices: list[VertexInfo] = Field(default_factory=list)


class RegionLabelInfo(_WireModel):
    id: int = 0
    display_name: str = ""
    color: str = ""


class RegionInfo(_WireModel):
    """An annotated region of an image."""

    id: int = 0
    drawn_by_user_id: int = 0
    labeled_by_user_id: int = 0
    border: PolygonInfo | None = None
    holes: list[PolygonInfo] = Field(default_factory=list)
    label: RegionLabelInfo | None = None


class ImageTagList(_WireModel):
    image_tag_list: list[ImageTagInfo] = Field(default_factory=list)


class RegionList(_WireModel):
    region_list: list[RegionInfo] = Field(default_factory=list)


class ImageListResponse(_WireModel):
    """One page of the image list endpoint.

    ``image_tag_list_of_image_list`` and ``region_list_of_image_list`` are
    parallel to ``image_list``.
    """

    image_list: list[ImageInfo] = Field(default_factory=list)
    image_tag_list_of_image_list: list[ImageTagList] = Field(default_factory=list)
    region_list_of_image_list: list[RegionList] = Field(default_factory=list)


class DatasetMetadata(_WireModel):
    """Every image matching a filter, with parallel tag and region lists."""

    image_list: list[ImageInfo] = Field(default_factory=list)
    image_tag_list: list[list[ImageTagInfo]] = Field(default_factory=list)
    region_list: list[list[RegionInfo]] = Field(default_factory=list)
