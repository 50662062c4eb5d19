"""S3 storage for finished export files.

Provides boto3 client creation and a bucket-scoped ``BlobStore`` whose async
methods run the blocking boto3 calls in worker threads.
"""

import asyncio
from collections.abc import Iterator
from pathlib import Path
from typing import IO, Any

import boto3
from boto3.exceptions import S3UploadFailedError
from boto3.s3.transfer import TransferConfig
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from dataset_export.core.errors import BlobNotFoundError, BlobStoreError

# Objects above the threshold go through multipart upload, which only
# becomes visible once CompleteMultipartUpload succeeds.
_MULTIPART_THRESHOLD = 25 * 1024 * 1024
_MULTIPART_CHUNKSIZE = 25 * 1024 * 1024

DEFAULT_READ_CHUNK_SIZE = 64 * 1024

_MISSING_OBJECT_CODES = ("NoSuchKey", "404", "NotFound")
_MISSING_BUCKET_CODES = ("NoSuchBucket", "404", "NotFound")


def create_s3_client(
    *,
    endpoint_url: str | None = None,
    access_key_id: str | None = None,
    secret_access_key: str | None = None,
    region_name: str = "us-east-1",
) -> Any:
    """Create a boto3 S3 client.

    Args:
        endpoint_url: Custom endpoint for S3-compatible stores (MinIO, R2).
        access_key_id: Access key; falls back to the default credential chain.
        secret_access_key: Secret key; falls back to the default credential chain.
        region_name: Region name.

    Returns:
        Configured boto3 S3 client.
    """
    config = Config(
        request_checksum_calculation="when_required",
        response_checksum_validation="when_required",
    )
    return boto3.client(
        "s3",
        endpoint_url=endpoint_url,
        aws_access_key_id=access_key_id,
        aws_secret_access_key=secret_access_key,
        region_name=region_name,
        config=config,
    )


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class BlobReader:
    """Pull-style reader over a downloaded object body.

    Reads are bounded by the requested size; the underlying connection is
    released on :meth:`close` or when used as a context manager.
    """

    def __init__(self, body: Any, name: str, content_length: int | None = None) -> None:
        self._body = body
        self.name = name
        self.content_length = content_length

    def read(self, size: int = DEFAULT_READ_CHUNK_SIZE) -> bytes:
        return self._body.read(size)

    def read_all(self) -> bytes:
        return self._body.read()

    def iter_chunks(self, chunk_size: int = DEFAULT_READ_CHUNK_SIZE) -> Iterator[bytes]:
        """Yield the object in chunks of at most ``chunk_size`` bytes, closing at the end."""
        try:
            while chunk := self._body.read(chunk_size):
                yield chunk
        finally:
            self.close()

    def close(self) -> None:
        self._body.close()

    def __enter__(self) -> "BlobReader":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class BlobStore:
    """Durable storage of export files in a single bucket.

    Args:
        client: boto3 S3 client.
        bucket: Bucket name.
    """

    def __init__(self, client: Any, bucket: str) -> None:
        self._client = client
        self.bucket = bucket
        self._transfer_config = TransferConfig(
            multipart_threshold=_MULTIPART_THRESHOLD,
            multipart_chunksize=_MULTIPART_CHUNKSIZE,
            max_concurrency=4,
            use_threads=True,
        )

    async def ensure_bucket(self) -> None:
        """Create the bucket if it does not exist yet."""
        await asyncio.to_thread(self._ensure_bucket)

    def _ensure_bucket(self) -> None:
        try:
            self._client.head_bucket(Bucket=self.bucket)
            logger.debug("Bucket s3://{} exists", self.bucket)
            return
        except ClientError as exc:
            if _error_code(exc) not in _MISSING_BUCKET_CODES:
                logger.error("Failed to check bucket s3://{}: {}", self.bucket, exc)
                raise BlobStoreError(f"failed to check bucket {self.bucket}") from exc
        try:
            self._client.create_bucket(Bucket=self.bucket)
        except ClientError as exc:
            if _error_code(exc) in ("BucketAlreadyOwnedByYou", "BucketAlreadyExists"):
                return
            logger.error("Failed to create bucket s3://{}: {}", self.bucket, exc)
            raise BlobStoreError(f"failed to create bucket {self.bucket}") from exc
        logger.info("Created bucket s3://{}", self.bucket)

    async def upload_file(self, name: str, file_path: Path) -> int:
        """Upload a local file under ``name``.

        Returns:
            File size in bytes.
        """
        file_size = file_path.stat().st_size
        logger.info("Uploading {} ({} bytes) to s3://{}/{}", file_path.name, file_size, self.bucket, name)
        with file_path.open("rb") as stream:
            await self.upload(name, stream)
        return file_size

    async def upload(self, name: str, stream: IO[bytes]) -> None:
        """Upload the contents of a binary stream under ``name``.

        A failed upload leaves no object under ``name``.
        """
        try:
            await asyncio.to_thread(
                self._client.upload_fileobj,
                stream,
                self.bucket,
                name,
                Config=self._transfer_config,
            )
        except (S3UploadFailedError, ClientError, BotoCoreError) as exc:
            logger.error("Failed to upload s3://{}/{}: {}", self.bucket, name, exc)
            raise BlobStoreError(f"failed to upload {name}") from exc

    async def delete(self, name: str) -> None:
        """Delete the object under ``name``. Deleting a missing object is not an error."""
        try:
            await asyncio.to_thread(self._client.delete_object, Bucket=self.bucket, Key=name)
        except (ClientError, BotoCoreError) as exc:
            logger.error("Failed to delete s3://{}/{}: {}", self.bucket, name, exc)
            raise BlobStoreError(f"failed to delete {name}") from exc
        logger.info("Deleted s3://{}/{}", self.bucket, name)

    async def download_stream(self, name: str) -> BlobReader:
        """Open an object for streaming reads.

        Raises:
            BlobNotFoundError: If the object does not exist.
        """
        response = await asyncio.to_thread(self._get_object, name)
        return BlobReader(response["Body"], name, response.get("ContentLength"))

    async def get_bytes(self, name: str) -> bytes:
        """Read a whole object into memory."""
        reader = await self.download_stream(name)
        with reader:
            return await asyncio.to_thread(reader.read_all)

    def _get_object(self, name: str) -> dict[str, Any]:
        try:
            return self._client.get_object(Bucket=self.bucket, Key=name)
        except ClientError as exc:
            if _error_code(exc) in _MISSING_OBJECT_CODES:
                logger.debug("No object at s3://{}/{}", self.bucket, name)
                raise BlobNotFoundError(f"no file named {name} found") from exc
            logger.error("Failed to get s3://{}/{}: {}", self.bucket, name, exc)
            raise BlobStoreError(f"failed to get {name}") from exc
        except BotoCoreError as exc:
            logger.error("Failed to get s3://{}/{}: {}", self.bucket, name, exc)
            raise BlobStoreError(f"failed to get {name}") from exc
