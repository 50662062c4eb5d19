"""Image service library — clients and dataset retrieval for exports."""

from dataset_export.lib.image_service.client import ImageServiceClient, UserServiceClient
from dataset_export.lib.image_service.provider import (
    STATUS_PUBLISHED,
    STATUS_VERIFIED,
    DatasetMetadataProvider,
    decode_filter_options,
    encode_filter_options,
)
from dataset_export.lib.image_service.types import (
    DatasetMetadata,
    ImageInfo,
    ImageListResponse,
    ImageTagInfo,
    RegionInfo,
    UserInfo,
)

__all__ = [
    "STATUS_PUBLISHED",
    "STATUS_VERIFIED",
    "DatasetMetadata",
    "DatasetMetadataProvider",
    "ImageInfo",
    "ImageListResponse",
    "ImageServiceClient",
    "ImageTagInfo",
    "RegionInfo",
    "UserInfo",
    "UserServiceClient",
    "decode_filter_options",
    "encode_filter_options",
]
