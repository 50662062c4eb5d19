"""Root API router with /api/v1 prefix."""

from fastapi import APIRouter

from dataset_export.core.config import Settings


def create_router(settings: Settings) -> APIRouter:
    """Create the root API router with all sub-routers included.

    Args:
        settings: Application settings.

    Returns:
        Configured API router.
    """
    from dataset_export.api.v1.exports import exports_router

    root_router = APIRouter(prefix=settings.api_v1_prefix)
    root_router.include_router(exports_router)

    return root_router
