"""
TuneHub client: method-config provider and link resolver.

Every call is authenticated by the secret API key from configuration. Calls
are made once; failures surface to the caller without retry.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from shared.errors import ConfigError, UpstreamError
from shared.logging import get_logger

from service_gateway.app.adapters.upstream_client import parse_lenient_json
from service_gateway.app.domain.models import MethodConfig


class TuneHubClient:
    """Client for the TuneHub API."""

    service = "tunehub"

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str],
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.logger = get_logger("gateway.tunehub")
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def get_method_config(self, source: str, function: str) -> MethodConfig:
        """Fetch the declarative upstream description for a (source, function) pair."""
        data = await self._request("GET", f"/v1/methods/{source}/{function}")
        try:
            return MethodConfig.model_validate(data)
        except PydanticValidationError as exc:
            self.logger.error("Malformed method config", source=source, function=function, error=str(exc))
            raise UpstreamError(
                service=self.service,
                message="TuneHub returned an invalid method config",
                details={"source": source, "function": function},
            ) from exc

    async def list_methods(self, source: Optional[str] = None, function: Optional[str] = None) -> Any:
        """Introspect the method configs TuneHub knows about."""
        path = "/v1/methods"
        if source:
            path = f"{path}/{source}"
            if function:
                path = f"{path}/{function}"
        return await self._request("GET", path)

    async def parse_links(self, source: str, ids: str, quality: str) -> Any:
        """Resolve playable links for one or more song ids."""
        body = {"platform": source, "ids": ids, "quality": quality}
        return await self._request("POST", "/v1/parse", json_body=body)

    async def _request(self, method: str, path: str, json_body: Optional[Dict[str, Any]] = None) -> Any:
        if not self.api_key:
            raise ConfigError("MUSIC_PARSER_KEY is not configured")

        headers = {"X-API-Key": self.api_key}
        try:
            response = await self._client.request(method, path, headers=headers, json=json_body)
        except httpx.HTTPError as exc:
            self.logger.error("TuneHub transport error", path=path, error=str(exc))
            raise UpstreamError(
                service=self.service,
                message="TuneHub request failed",
                details={"path": path, "error": str(exc)},
            ) from exc

        payload = parse_lenient_json(response.text)

        if not response.is_success:
            self.logger.error("TuneHub request failed", path=path, status_code=response.status_code)
            raise UpstreamError(
                service=self.service,
                message=f"TuneHub request failed: {response.status_code}",
                details={"status_code": response.status_code, "path": path},
            )

        if not isinstance(payload, dict) or payload.get("success") is False or payload.get("code") != 0:
            message = payload.get("message") if isinstance(payload, dict) else None
            self.logger.error("TuneHub returned an error", path=path, provider_message=message)
            raise UpstreamError(
                service=self.service,
                message=str(message) if message else "TuneHub returned an error",
                details={"path": path},
            )

        self.logger.debug("TuneHub call succeeded", path=path)
        return payload.get("data")
