"""FastAPI application factory.

Creates the FastAPI app with lifespan management, exception handlers,
and OpenAPI metadata.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from loguru import logger

from dataset_export.core.components import build_components
from dataset_export.core.config import get_settings
from dataset_export.core.errors import ErrorKind, ExportServiceError
from dataset_export.core.logging import setup_logging

ERROR_STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.FAILED_PRECONDITION: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_ARGUMENT: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifecycle: build components on startup, release them on shutdown."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_dir, json_logs=settings.log_json)
    async with build_components(settings) as components:
        app.state.settings = settings
        app.state.components = components
        yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Dataset Export Service",
        description="Asynchronous export of image datasets as zip archives and spreadsheets",
        version="0.1.0",
        lifespan=lifespan,
    )

    @app.exception_handler(ExportServiceError)
    async def export_service_error_handler(request: Request, exc: ExportServiceError) -> JSONResponse:
        status_code = ERROR_STATUS_CODES[exc.kind]
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error("{} {} failed: {}", request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=status_code,
            content={"detail": exc.message, "code": str(exc.kind)},
        )

    from dataset_export.api.router import create_router

    app.include_router(create_router(settings))

    return app
