"""Storage library — S3 object storage for finished export files."""

from dataset_export.lib.storage.s3 import BlobReader, BlobStore, create_s3_client

__all__ = [
    "BlobReader",
    "BlobStore",
    "create_s3_client",
]
