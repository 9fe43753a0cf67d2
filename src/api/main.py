"""FastAPI application entry point."""
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
from pathlib import Path

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from src.api.dependencies import get_asset_manager
from src.api.routes import health, listings
from src.application.errors import (
    ImageUploadError,
    ListingForbiddenError,
    ListingNotFoundError,
    ListingPersistenceError,
    ListingValidationError,
)
from src.config import settings
from src.domain.query.filter_spec import FilterParameterError
from src.domain.state_machine.lifecycle_state_machine import InvalidStateTransitionError
from src.logging_config import configure_logging

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    configure_logging(settings.log_level, settings.log_format)
    logger.info("listing_service_starting", storage_backend=settings.storage_backend)
    yield
    logger.info("listing_service_stopping")
    # Only close storage clients that were actually built
    if get_asset_manager.cache_info().currsize:
        await get_asset_manager().close()


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ListingValidationError)
    async def _validation(request: Request, exc: ListingValidationError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": exc.messages})

    @app.exception_handler(FilterParameterError)
    async def _bad_filter(request: Request, exc: FilterParameterError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @app.exception_handler(ListingNotFoundError)
    async def _not_found(request: Request, exc: ListingNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": "Listing not found."})

    @app.exception_handler(ListingForbiddenError)
    async def _forbidden(request: Request, exc: ListingForbiddenError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"detail": str(exc), "reason": exc.reason.value},
        )

    @app.exception_handler(InvalidStateTransitionError)
    async def _conflict(request: Request, exc: InvalidStateTransitionError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})

    @app.exception_handler(ImageUploadError)
    async def _upload_failed(request: Request, exc: ImageUploadError) -> JSONResponse:
        logger.error("image_upload_rejected", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": "Image storage failed; nothing was saved."},
        )

    @app.exception_handler(ListingPersistenceError)
    async def _store_unavailable(request: Request, exc: ListingPersistenceError) -> JSONResponse:
        logger.error("listing_store_unavailable", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Listing store unavailable."},
        )


def create_app() -> FastAPI:
    app = FastAPI(
        title="Estate Listings",
        description="Property listing service: search, image assets and ownership rules.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)

    app.include_router(health.router)
    app.include_router(listings.router)

    if settings.storage_backend == "local":
        app.mount(
            settings.upload_url_prefix,
            StaticFiles(directory=Path(settings.upload_dir), check_dir=False),
            name="uploads",
        )

    return app


app = create_app()
