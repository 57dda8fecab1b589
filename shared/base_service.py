"""
Base service class for DayOrg services.
"""

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry
from contextlib import asynccontextmanager
from typing import Dict, Optional
import time
import os

from shared.config import BaseConfig
from shared.logging import configure_logging, get_logger, get_request_id
from shared.metrics import get_metrics_collector
from shared.observability import get_observability_manager
from shared.errors import ErrorResponse, ServiceException, internal_error

SERVICE_VERSION = "1.0.0"


class BaseService:
    """Base service class with common functionality."""

    def __init__(self, service_name: str, config: BaseConfig,
                 registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.config = config
        self._start_time = time.time()

        # Configure logging
        configure_logging(service_name, self.config.log_level)
        self.logger = get_logger(f"{service_name}.service")

        self.metrics = get_metrics_collector(service_name, registry)
        self.observability = get_observability_manager(service_name, self.metrics)

        # Create FastAPI app
        self.app = self._create_app()

        # Set up middleware
        self._setup_middleware()

        # Set up routes
        self._setup_routes()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application."""
        return FastAPI(
            title=f"{self.service_name.title()} Service",
            description=f"DayOrg - {self.service_name.title()} Service",
            version=SERVICE_VERSION,
            docs_url="/docs" if self.config.env == "local" else None,
            redoc_url="/redoc" if self.config.env == "local" else None,
            lifespan=self._lifespan,
        )

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        """Run startup and shutdown hooks around the serving lifetime."""
        await self.on_startup()
        self.logger.info("Service started", service=self.service_name)
        try:
            yield
        finally:
            await self.on_shutdown()
            self.logger.info("Service stopped", service=self.service_name)

    async def on_startup(self):
        """Acquire external resources. Override in subclasses."""

    async def on_shutdown(self):
        """Release external resources. Override in subclasses."""

    def _setup_middleware(self):
        """Set up middleware."""
        self.observability.instrument(self.app)

    def _setup_routes(self):
        """Set up common routes."""

        @self.app.get("/health")
        async def health_check():
            """Health check endpoint."""
            dependencies = await self._check_dependencies()
            healthy = all(status == "ok" for status in dependencies.values())

            return JSONResponse(
                status_code=200 if healthy else 503,
                content={
                    "service": self.service_name,
                    "status": "ok" if healthy else "error",
                    "uptime_seconds": self._get_uptime(),
                    "dependencies": dependencies,
                    "version": SERVICE_VERSION,
                    "commit": os.getenv("GIT_COMMIT", "unknown")
                }
            )

        @self.app.get("/metrics")
        async def metrics_endpoint():
            """Prometheus metrics endpoint."""
            return Response(
                content=self.metrics.render(),
                media_type=CONTENT_TYPE_LATEST
            )

        # Error handlers
        @self.app.exception_handler(ServiceException)
        async def service_exception_handler(request: Request, exc: ServiceException):
            """Handle ServiceException."""
            self.logger.warning(
                "Request failed",
                code=exc.code,
                message=exc.message,
                path=request.url.path
            )
            message = None
            if exc.status_code >= 500 and not self.config.expose_error_details:
                message = "Internal server error"
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_response(message).model_dump()
            )

        @self.app.exception_handler(StarletteHTTPException)
        async def http_exception_handler(request: Request, exc: StarletteHTTPException):
            """Render routing errors (404, 405) in the standard error format."""
            error = ErrorResponse(
                request_id=get_request_id(),
                code=f"HTTP_{exc.status_code}",
                message=str(exc.detail),
            )
            return JSONResponse(
                status_code=exc.status_code,
                content=error.model_dump(),
                headers=getattr(exc, "headers", None)
            )

        @self.app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception):
            """Handle general exceptions."""
            self.logger.error("Unhandled exception", error=str(exc), exc_info=True)
            return JSONResponse(
                status_code=500,
                content=internal_error(get_request_id()).model_dump()
            )

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check service dependencies. Override in subclasses."""
        return {}

    def _get_uptime(self) -> float:
        """Get service uptime in seconds."""
        return time.time() - self._start_time

    def run(self):
        """Run the service."""
        import uvicorn
        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower(),
            timeout_keep_alive=self.config.keep_alive_timeout
        )
