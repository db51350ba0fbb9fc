"""
Runs one (source, function) call end to end.
"""

from __future__ import annotations

from typing import Any

from shared.logging import get_logger

from service_gateway.app.adapters.tunehub_client import TuneHubClient
from service_gateway.app.adapters.upstream_client import UpstreamClient

from .models import CallVars
from .request_builder import build_upstream_request
from .transformers import transform


class MethodDispatcher:
    """Fetch config, bind vars, call the backend, normalize the answer."""

    def __init__(self, provider: TuneHubClient, upstream: UpstreamClient):
        self.provider = provider
        self.upstream = upstream
        self.logger = get_logger("gateway.dispatch")

    async def run(self, source: str, function: str, vars: CallVars) -> Any:
        method_config = await self.provider.get_method_config(source, function)
        descriptor = build_upstream_request(method_config, vars)
        self.logger.debug(
            "Dispatching upstream call",
            source=source,
            function=function,
            method=descriptor.method,
            url=descriptor.url,
        )
        payload = await self.upstream.execute(descriptor)
        return transform(source, function, payload)
