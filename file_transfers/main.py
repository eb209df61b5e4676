"""FastAPI application entry point.

This module assembles all components and creates the main application.
"""

import os
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from file_transfers import __version__
from file_transfers.api import health, metrics, transfers
from file_transfers.core.config import CONFIG_FILE_ENV, ConfigService
from file_transfers.core.errors import APIError, SerializationError, global_exception_handler
from file_transfers.core.logging import clear_request_id, configure_logging, set_request_id
from file_transfers.core.metrics import MetricsCollector, initialize_metrics
from file_transfers.core.startup import StartupError, StartupValidator
from file_transfers.services.transfer_service import (
    TransferNotFoundError,
    configure_transfer_service,
    get_transfer_service,
)

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware binding a request_id to logs and echoing it in responses."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = set_request_id(request.headers.get(REQUEST_ID_HEADER))
        try:
            response = await call_next(request)
        finally:
            clear_request_id()
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to track HTTP request metrics.

    Records request count and duration for all endpoints,
    using FastAPI route templates to normalize paths.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Process request and record metrics."""
        start_time = time.time()
        response = await call_next(request)
        duration = time.time() - start_time

        # Use fixed label for unmatched routes to prevent unbounded cardinality
        route = request.scope.get("route")
        endpoint = route.path if route else "/unmatched"

        MetricsCollector.record_request(
            method=request.method,
            endpoint=endpoint,
            status=response.status_code,
            duration=duration,
        )

        return response


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown."""
    logger.info("Application starting", version=__version__)

    initialize_metrics(__version__)

    # Load configuration
    config_service = ConfigService()
    config = config_service.load()

    configure_logging(
        config.logging.level,
        config.logging.format,
        static_fields={"invocation_id": config.transfer.invocation_id},
    )

    logger.info(
        "Configuration loaded",
        config_path=config_service.config_path,
        server_port=config.server.port,
        log_dir=config.transfer.log_dir,
    )

    # Missing settings or a missing porklock are fatal
    try:
        config_service.validate()
    except ValueError as e:
        raise StartupError(str(e)) from e
    StartupValidator(config).validate_or_raise()

    transfer_service = configure_transfer_service(config.transfer)
    logger.info(
        "Transfer service configured",
        user=config.transfer.user,
        upload_destination=config.transfer.upload_destination,
        download_destination=config.transfer.download_destination,
    )

    logger.info("Application startup complete", version=__version__)

    yield

    logger.info("Application shutting down")

    # Let running porklock processes finish
    await transfer_service.wait_idle()

    logger.info("Application shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="VICE File Transfers",
        description="Launches porklock uploads and downloads and tracks their status",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(MetricsMiddleware)

    # Added last so it wraps every other middleware
    app.add_middleware(RequestContextMiddleware)

    # Register global exception handlers
    app.add_exception_handler(Exception, global_exception_handler)
    app.add_exception_handler(APIError, global_exception_handler)
    app.add_exception_handler(TransferNotFoundError, global_exception_handler)
    app.add_exception_handler(SerializationError, global_exception_handler)

    # Override dependency injection for routers
    app.dependency_overrides[transfers.get_transfer_service] = get_transfer_service
    app.dependency_overrides[health.get_transfer_service] = get_transfer_service

    # Register routers
    app.include_router(health.router)
    app.include_router(transfers.router)
    app.include_router(metrics.router)

    return app


# Create the application instance
app = create_app()


def run(config_path: Optional[str] = None) -> None:
    """Run the service with uvicorn on the configured host and port."""
    import uvicorn  # type: ignore[import-not-found]

    if config_path:
        # The lifespan loads its own ConfigService; point it at the same file
        os.environ[CONFIG_FILE_ENV] = config_path

    config = ConfigService(config_path).load()
    uvicorn.run(app, host=config.server.host, port=config.server.port)


if __name__ == "__main__":
    run()
