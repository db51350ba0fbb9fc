"""
API Gateway service for the Music Access Gateway.
"""

from typing import Any, Dict, Optional

from fastapi import Query, Request, Response
from fastapi.routing import APIRoute

from shared.base_service import BaseService, envelope, error_response
from shared.config import GatewayConfig
from shared.errors import MethodNotAllowedError, NotFoundError, RateLimitError, ValidationError
from shared.logging import set_client_context

from service_gateway.app.adapters.tunehub_client import TuneHubClient
from service_gateway.app.adapters.upstream_client import UpstreamClient
from service_gateway.app.assets import AssetServer
from service_gateway.app.domain.dispatch import MethodDispatcher
from service_gateway.app.domain.models import CallVars, Function, Playlist, tag_songs, to_jsonable
from service_gateway.app.domain.search import SearchFallbackOrchestrator
from service_gateway.app.domain.validation import (
    ParseRequest,
    require_function,
    require_source,
    require_text,
    safe_int,
)
from service_gateway.app.ratelimit.sliding_window import SlidingWindowRateLimiter, client_identity

API_PREFIX = "/api/"
ASSET_ROUTE_NAME = "serve_asset"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, X-API-Key",
}

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]


class GatewayService(BaseService):
    """API Gateway service implementation."""

    def __init__(
        self,
        config: Optional[GatewayConfig] = None,
        *,
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
        tunehub_client: Optional[TuneHubClient] = None,
        upstream_client: Optional[UpstreamClient] = None,
    ):
        super().__init__("gateway", config)

        self.rate_limiter = rate_limiter or SlidingWindowRateLimiter(
            limit=self.config.rate_limit_max_per_min,
            cleanup_interval=self.config.rate_limit_cleanup_interval,
            metrics=self.metrics,
        )
        self.tunehub_client = tunehub_client or TuneHubClient(
            self.config.tunehub_base_url,
            self.config.music_parser_key,
            timeout=self.config.provider_timeout_seconds,
        )
        self.upstream_client = upstream_client or UpstreamClient(
            timeout=self.config.upstream_timeout_seconds,
            metrics=self.metrics,
        )
        self.dispatcher = MethodDispatcher(self.tunehub_client, self.upstream_client)
        self.search = SearchFallbackOrchestrator(self.dispatcher, metrics=self.metrics)
        self.assets = AssetServer(self.config.static_dir)

        self._setup_gateway_routes()
        self._setup_asset_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.gateway_service = self

    def _setup_middleware(self):
        """Rate limiting and CORS for /api/*, inside the base timing middleware."""

        @self.app.middleware("http")
        async def guard_api(request: Request, call_next):
            if not request.url.path.startswith(API_PREFIX):
                return await call_next(request)

            if request.method == "OPTIONS":
                return Response(status_code=204, headers=CORS_HEADERS)

            identity = client_identity(request.headers, self.config.trusted_proxy_header)
            set_client_context(identity)
            decision = self.rate_limiter.admit(identity)

            if decision.allowed:
                try:
                    response = await call_next(request)
                except Exception as exc:
                    response = self._internal_error_response(request, exc)
            else:
                response = error_response(429, RateLimitError().message)

            response.headers.update(CORS_HEADERS)
            response.headers.update(decision.headers())
            return response

        super()._setup_middleware()

    def _setup_gateway_routes(self):
        """Set up the music API routes."""

        @self.app.get("/api/search")
        async def search(
            source: Optional[str] = Query(None),
            keyword: Optional[str] = Query(None),
            page: Optional[str] = Query(None),
            limit: Optional[str] = Query(None),
        ) -> Dict[str, Any]:
            """Search songs, falling back to other sources when empty."""
            source = require_source(source)
            keyword = require_text(keyword, "keyword")
            call_vars = CallVars(
                keyword=keyword,
                page=safe_int(page, 1, 1, 1000),
                limit=safe_int(limit, 10, 1, 50),
            )

            outcome = await self.search.search_with_fallback(source, call_vars)
            return envelope(to_jsonable(outcome.results), source=outcome.actual_source)

        @self.app.get("/api/toplists")
        async def toplists(source: Optional[str] = Query(None)) -> Dict[str, Any]:
            """List the charts a source offers."""
            source = require_source(source)
            rows = await self.dispatcher.run(source, Function.TOPLISTS.value, CallVars())
            return envelope(to_jsonable(rows))

        @self.app.get("/api/toplist")
        async def toplist(
            source: Optional[str] = Query(None),
            id: Optional[str] = Query(None),
        ) -> Dict[str, Any]:
            """Songs on one chart."""
            source = require_source(source)
            chart_id = require_text(id, "id")
            rows = await self.dispatcher.run(source, Function.TOPLIST.value, CallVars(id=chart_id))
            return envelope(to_jsonable(tag_songs(rows, source)))

        @self.app.get("/api/playlist")
        async def playlist(
            source: Optional[str] = Query(None),
            id: Optional[str] = Query(None),
        ) -> Dict[str, Any]:
            """Playlist header and songs; data is null when the playlist is missing."""
            source = require_source(source)
            playlist_id = require_text(id, "id")
            result = await self.dispatcher.run(source, Function.PLAYLIST.value, CallVars(id=playlist_id))
            if isinstance(result, Playlist):
                return envelope(result.with_source(source).to_dict())
            return envelope(None)

        @self.app.api_route("/api/parse", methods=["GET", "POST"])
        async def parse(request: Request) -> Dict[str, Any]:
            """Resolve playable links through TuneHub."""
            if request.method == "GET":
                payload = ParseRequest.from_mapping(request.query_params)
            else:
                try:
                    body = await request.json()
                except ValueError as exc:
                    raise ValidationError("Request body must be valid JSON") from exc
                if not isinstance(body, dict):
                    raise ValidationError("Request body must be a JSON object")
                payload = ParseRequest.from_mapping(body)

            payload = payload.validated()
            data = await self.tunehub_client.parse_links(payload.source, payload.ids, payload.quality)
            return envelope(data)

        @self.app.get("/api/methods")
        async def list_methods() -> Dict[str, Any]:
            """All method configs known to TuneHub."""
            return envelope(await self.tunehub_client.list_methods())

        @self.app.get("/api/methods/{source}")
        async def list_source_methods(source: str) -> Dict[str, Any]:
            source = require_source(source)
            return envelope(await self.tunehub_client.list_methods(source))

        @self.app.get("/api/methods/{source}/{function}")
        async def get_method(source: str, function: str) -> Dict[str, Any]:
            source = require_source(source)
            function = require_function(function)
            return envelope(await self.tunehub_client.list_methods(source, function))

    def _setup_asset_routes(self):
        """Catch-all: unknown API paths and static assets. Registered last."""

        @self.app.api_route(
            "/{path:path}",
            methods=ALL_METHODS,
            name=ASSET_ROUTE_NAME,
            include_in_schema=False,
        )
        async def serve_asset(request: Request, path: str):
            if request.url.path.startswith(API_PREFIX):
                if self._is_known_api_path(request.url.path):
                    raise MethodNotAllowedError(f"{request.method} is not supported on this endpoint")
                raise NotFoundError()

            if request.method not in ("GET", "HEAD"):
                raise MethodNotAllowedError(f"{request.method} is not supported on this endpoint")

            response = self.assets.response(path)
            if response is None:
                raise NotFoundError("Asset not found")
            return response

    def _is_known_api_path(self, path: str) -> bool:
        for route in self.app.routes:
            if isinstance(route, APIRoute) and route.name != ASSET_ROUTE_NAME and route.path_regex.match(path):
                return True
        return False

    async def shutdown(self) -> None:
        await self.tunehub_client.close()
        await self.upstream_client.close()


def create_app(config: Optional[GatewayConfig] = None, **components: Any):
    """Create FastAPI application."""
    service = GatewayService(config, **components)
    return service.app


def main() -> None:
    service = GatewayService()
    service.run()


if __name__ == "__main__":
    main()
