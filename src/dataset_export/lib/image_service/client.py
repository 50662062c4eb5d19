"""HTTP clients for the image service and the user service.

Both wrap a shared ``httpx.AsyncClient`` whose lifecycle is owned by the
caller. Transport and HTTP failures are raised as ``ImageServiceError``.
"""

from collections.abc import Awaitable, Callable
from typing import Any

import httpx
from loguru import logger
from pydantic import ValidationError

from dataset_export.core.errors import ImageServiceError
from dataset_export.lib.image_service.types import ImageListResponse, RegionInfo, UserInfo

ID_ASCENDING = "ID_ASCENDING"


async def _call(operation: str, request: Callable[[], Awaitable[httpx.Response]]) -> httpx.Response:
    """Send a request, translating httpx failures into ImageServiceError."""
    try:
        response = await request()
        response.raise_for_status()
    except httpx.TimeoutException as e:
        logger.warning("{} timed out", operation)
        raise ImageServiceError(operation, "request timed out") from e
    except httpx.HTTPStatusError as e:
        logger.warning("{} failed with HTTP {}", operation, e.response.status_code)
        raise ImageServiceError(
            operation, f"service returned HTTP {e.response.status_code}", status_code=e.response.status_code
        ) from e
    except httpx.HTTPError as e:
        logger.warning("{} transport error: {}", operation, e)
        raise ImageServiceError(operation, f"transport error: {e}") from e
    return response


class ImageServiceClient:
    """Client for the image dataset service."""

    def __init__(self, http_client: httpx.AsyncClient, base_url: str) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")

    async def get_image_list(
        self,
        filter_options: dict[str, Any],
        *,
        offset: int,
        limit: int,
        with_image_tag: bool = True,
        with_region: bool = True,
    ) -> ImageListResponse:
        """Fetch one page of images matching a filter, in ascending id order."""
        body = {
            "filter_options": filter_options,
            "sort_order": ID_ASCENDING,
            "offset": offset,
            "limit": limit,
            "with_image_tag": with_image_tag,
            "with_region": with_region,
        }
        response = await _call(
            "get_image_list",
            lambda: self._http.post(f"{self._base_url}/images/list", json=body),
        )
        try:
            return ImageListResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.warning("Failed to parse image list response: {}", e)
            raise ImageServiceError("get_image_list", f"failed to parse response: {e}") from e

    async def get_region_snapshot_list(self, image_id: int, at_status: str) -> list[RegionInfo]:
        """Fetch the regions of an image as they were when it last reached ``at_status``."""
        response = await _call(
            "get_region_snapshot_list_of_image",
            lambda: self._http.get(
                f"{self._base_url}/images/{image_id}/region-snapshots",
                params={"at_status": at_status},
            ),
        )
        try:
            payload = response.json()
            return [RegionInfo.model_validate(r) for r in payload.get("region_list") or []]
        except (ValueError, AttributeError, ValidationError) as e:
            logger.warning("Failed to parse region snapshot response for image {}: {}", image_id, e)
            raise ImageServiceError("get_region_snapshot_list_of_image", f"failed to parse response: {e}") from e

    async def get_image_file(self, image_id: int) -> bytes:
        """Download the original bytes of an image."""
        response = await _call(
            "get_image_file",
            lambda: self._http.get(f"{self._base_url}/images/{image_id}/file"),
        )
        return response.content


class UserServiceClient:
    """Client for the user service."""

    def __init__(self, http_client: httpx.AsyncClient, base_url: str) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")

    async def get_user(self, user_id: int) -> UserInfo | None:
        """Fetch a user by id.

        Returns:
            The user, or None if the service has no such user.
        """
        try:
            response = await _call(
                "get_user",
                lambda: self._http.get(f"{self._base_url}/users/{user_id}"),
            )
        except ImageServiceError as e:
            if e.status_code == httpx.codes.NOT_FOUND:
                logger.debug("User {} not found", user_id)
                return None
            raise
        try:
            return UserInfo.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise ImageServiceError("get_user", f"failed to parse response: {e}") from e
