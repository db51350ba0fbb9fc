"""
Base service class for Music Access Gateway services.
"""

from contextlib import asynccontextmanager
from typing import Any, Dict, Optional
import time
import os

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.config import GatewayConfig, get_config
from shared.logging import clear_context, configure_logging, get_logger, set_request_id
from shared.metrics import get_metrics_collector
from shared.errors import ErrorResponse, GatewayError


def envelope(data: Any = None, **extra: Any) -> Dict[str, Any]:
    """Wrap a successful payload in the gateway's JSON envelope."""
    body: Dict[str, Any] = {"success": True}
    body.update(extra)
    body["data"] = data
    return body


def error_response(status_code: int, message: str, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    """Render a failure in the gateway's JSON envelope."""
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message).model_dump(),
        headers=headers,
    )


class BaseService:
    """Base service class with common functionality."""

    health_path = "/api/health"

    def __init__(self, service_name: str, config: Optional[GatewayConfig] = None):
        self.service_name = service_name
        self.config = config or get_config()
        self.logger = get_logger(service_name)
        self.metrics = get_metrics_collector(service_name)
        self._start_time = time.time()

        configure_logging(service_name, self.config.log_level)

        self.app = self._create_app()
        self._setup_middleware()
        self._setup_routes()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application."""

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            self.logger.info("Service starting", service=self.service_name, env=self.config.env)
            yield
            await self.shutdown()
            self.logger.info("Service stopped", service=self.service_name)

        return FastAPI(
            title=f"{self.service_name.title()} Service",
            description=f"Music Access Gateway - {self.service_name.title()} Service",
            version="1.0.0",
            docs_url="/docs" if self.config.env == "local" else None,
            redoc_url="/redoc" if self.config.env == "local" else None,
            lifespan=lifespan,
        )

    def _setup_middleware(self):
        """Set up middleware."""

        # Request timing middleware
        @self.app.middleware("http")
        async def add_request_timing(request: Request, call_next):
            request_id = set_request_id(request.headers.get("X-Request-ID"))
            start_time = time.time()

            try:
                response = await call_next(request)
            except Exception as exc:
                response = self._internal_error_response(request, exc)
            finally:
                duration = time.time() - start_time

            route = request.scope.get("route")
            endpoint = getattr(route, "path", None) or "unmatched"

            self.metrics.record_http_request(
                method=request.method,
                endpoint=endpoint,
                status_code=response.status_code,
                duration=duration
            )

            self.logger.info(
                "HTTP request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2)
            )

            response.headers["X-Request-ID"] = request_id
            clear_context()
            return response

    def _internal_error_response(self, request: Request, exc: Exception) -> JSONResponse:
        """Render an unhandled exception as a 500 envelope inside the middleware chain."""
        self.logger.error("Unhandled exception", error=str(exc), path=request.url.path, exc_info=exc)
        self.metrics.record_error("INTERNAL_ERROR")
        return error_response(500, "Internal server error")

    def _setup_routes(self):
        """Set up common routes."""

        @self.app.get(self.health_path)
        async def health_check():
            """Health check endpoint."""
            return envelope(
                {
                    "service": self.service_name,
                    "status": "ok",
                    "uptime_seconds": self._get_uptime(),
                    "version": "1.0.0",
                    "commit": os.getenv("GIT_COMMIT", "unknown"),
                },
                message="ok",
            )

        if self.config.enable_metrics:
            @self.app.get("/metrics", include_in_schema=False)
            async def metrics_endpoint():
                """Prometheus metrics endpoint."""
                return Response(content=self.metrics.render(), media_type=CONTENT_TYPE_LATEST)

        # Error handlers
        @self.app.exception_handler(GatewayError)
        async def gateway_exception_handler(request: Request, exc: GatewayError):
            """Handle GatewayError."""
            log = self.logger.error if exc.status_code >= 500 else self.logger.warning
            log(
                "Gateway error",
                code=exc.code,
                message=exc.message,
                details=exc.details,
                path=request.url.path,
            )
            self.metrics.record_error(exc.code)
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_response().model_dump(),
            )

        @self.app.exception_handler(StarletteHTTPException)
        async def http_exception_handler(request: Request, exc: StarletteHTTPException):
            """Render framework HTTP errors (404/405) in the envelope."""
            message = exc.detail if isinstance(exc.detail, str) else "Request failed"
            return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))

        @self.app.exception_handler(RequestValidationError)
        async def validation_exception_handler(request: Request, exc: RequestValidationError):
            """Render request validation failures as 400s."""
            self.logger.warning("Request validation failed", errors=exc.errors(), path=request.url.path)
            return error_response(400, "Invalid request parameters")

        @self.app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception):
            """Handle general exceptions."""
            self.logger.error("Unhandled exception", error=str(exc), exc_info=True)
            self.metrics.record_error("INTERNAL_ERROR")
            return error_response(500, "Internal server error")

    async def shutdown(self) -> None:
        """Release resources held by the service. Override in subclasses."""

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
            log_level=self.config.log_level.lower()
        )
