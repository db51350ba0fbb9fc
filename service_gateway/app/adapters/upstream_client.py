"""
HTTP executor for calls into the music backends.
"""

from __future__ import annotations

import json
from typing import Any, Optional

import httpx

from shared.errors import UpstreamError
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from service_gateway.app.domain.models import RequestDescriptor


def parse_lenient_json(text: Optional[str]) -> Any:
    """Parse JSON, retrying on the outermost ``{...}`` span when the body is wrapped.

    Returns ``None`` when nothing parseable is found.
    """
    if not isinstance(text, str):
        return None
    trimmed = text.strip()
    if not trimmed:
        return None

    try:
        return json.loads(trimmed)
    except ValueError:
        pass

    start = trimmed.find("{")
    end = trimmed.rfind("}")
    if start < 0 or end <= start:
        return None
    try:
        return json.loads(trimmed[start:end + 1])
    except ValueError:
        return None


class UpstreamClient:
    """Executes request descriptors against music backends."""

    service = "music_backend"

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        metrics: Optional[MetricsCollector] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.logger = get_logger("gateway.upstream")
        self.metrics = metrics
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def _record(self, outcome: str) -> None:
        if self.metrics is not None:
            self.metrics.record_upstream_request(outcome)

    async def execute(self, descriptor: RequestDescriptor) -> Any:
        """Perform the call and return the decoded JSON payload."""
        content = None if descriptor.method == "GET" else descriptor.body

        try:
            response = await self._client.request(
                descriptor.method,
                descriptor.url,
                headers=descriptor.headers,
                content=content,
            )
        except httpx.HTTPError as exc:
            self._record("transport_error")
            self.logger.warning("Upstream transport error", url=descriptor.url, error=str(exc))
            raise UpstreamError(
                service=self.service,
                message="Upstream request failed",
                details={"url": descriptor.url, "error": str(exc)},
            ) from exc

        text = response.text
        if not response.is_success:
            self._record("bad_status")
            self.logger.warning(
                "Upstream returned error status",
                url=descriptor.url,
                status_code=response.status_code,
            )
            raise UpstreamError(
                service=self.service,
                message=f"Upstream request failed: {response.status_code}",
                details={"status_code": response.status_code, "url": descriptor.url},
            )

        payload = parse_lenient_json(text)
        if payload is None:
            self._record("unparsable")
            self.logger.warning("Upstream body is not JSON", url=descriptor.url, body=text[:200])
            raise UpstreamError(
                service=self.service,
                message="Upstream response could not be parsed",
                details={"status_code": response.status_code, "url": descriptor.url},
            )

        self._record("ok")
        self.logger.debug("Upstream call succeeded", url=descriptor.url, method=descriptor.method)
        return payload
