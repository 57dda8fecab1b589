"""
Request observability for DayOrg services.
Ties together request correlation, structured logging and metrics.
"""

from time import perf_counter
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .errors import internal_error
from .logging import get_logger, set_request_id, clear_context
from .metrics import MetricsCollector

REQUEST_ID_HEADER = "X-Request-ID"


class ObservabilityManager:
    """Centralized observability manager for services."""

    def __init__(self, service_name: str, metrics: MetricsCollector, logger: Optional[Any] = None):
        self.service_name = service_name
        self.metrics = metrics
        self.logger = logger or get_logger(f"{service_name}.observability")

    def instrument(self, app: FastAPI) -> None:
        """Install the request middleware on an application.

        Every request gets a request id (bound to the log context and echoed
        in the X-Request-ID header), a duration observation labelled by path
        and one log line once the handler has produced its response. An
        exception escaping the handler is logged and answered with a 500
        here, inside any middleware registered later.
        """

        @app.middleware("http")
        async def observability_middleware(request: Request, call_next):
            start_time = perf_counter()
            request_id = set_request_id()
            method = request.method
            path = request.url.path

            try:
                response = await call_next(request)
            except Exception as exc:
                duration = perf_counter() - start_time
                self.metrics.record_http_request(method, path, 500, duration)
                self.log_error(
                    "unhandled_exception",
                    str(exc),
                    request_id=request_id,
                    method=method,
                    path=path,
                    duration_ms=round(duration * 1000, 2),
                )
                response = JSONResponse(
                    status_code=500,
                    content=internal_error(request_id).model_dump()
                )
            else:
                duration = perf_counter() - start_time
                self.log_request(request_id, method, path, response.status_code, duration)
            finally:
                clear_context()

            response.headers[REQUEST_ID_HEADER] = request_id
            return response

    def log_request(self, request_id: str, method: str, path: str, status_code: int,
                    duration: float, **kwargs):
        """Log HTTP request and record its metrics."""
        self.metrics.record_http_request(method, path, status_code, duration)

        self.logger.info(
            "HTTP request",
            request_id=request_id,
            method=method,
            path=path,
            status_code=status_code,
            duration_ms=round(duration * 1000, 2),
            **kwargs
        )

    def log_error(self, error_type: str, error_message: str, **kwargs):
        """Log error with full context."""
        self.logger.error(
            "Error occurred",
            error_type=error_type,
            error_message=error_message,
            **kwargs
        )

        self.metrics.record_error(error_type)

    def log_business_event(self, event_type: str, **kwargs):
        """Log business event with full context."""
        self.logger.info(
            "Business event",
            event_type=event_type,
            **kwargs
        )

        self.metrics.record_business_event(event_type)


def get_observability_manager(service_name: str, metrics: MetricsCollector, **kwargs) -> ObservabilityManager:
    """Get an observability manager for a service."""
    return ObservabilityManager(service_name, metrics, **kwargs)
