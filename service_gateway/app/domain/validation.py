"""
Input validation for the HTTP surface.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from shared.errors import UnsupportedError, ValidationError

from .models import SUPPORTED_FUNCTIONS, SUPPORTED_SOURCES, Source

DEFAULT_SOURCE = Source.NETEASE.value
DEFAULT_QUALITY = "320k"

SOURCE_MESSAGE = "source must be one of netease / qq / kuwo"
FUNCTION_MESSAGE = "function must be one of search / toplists / toplist / playlist"


def safe_int(raw: Any, default: int, minimum: int, maximum: int) -> int:
    """Parse an integer query value, clamping it into range."""
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    return min(maximum, max(minimum, value))


def require_source(raw: Optional[str]) -> str:
    source = (raw or DEFAULT_SOURCE).strip()
    if source not in SUPPORTED_SOURCES:
        raise UnsupportedError(SOURCE_MESSAGE, details={"source": source})
    return source


def require_function(raw: str) -> str:
    function = (raw or "").strip()
    if function not in SUPPORTED_FUNCTIONS:
        raise UnsupportedError(FUNCTION_MESSAGE, details={"function": function})
    return function


def require_text(raw: Optional[str], name: str) -> str:
    value = (raw or "").strip()
    if not value:
        raise ValidationError(f"{name} must not be empty")
    return value


@dataclass(frozen=True)
class ParseRequest:
    """Arguments of a link-resolution call."""

    source: str
    ids: str
    quality: str

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "ParseRequest":
        """Read a GET query or a POST JSON body.

        Accepts ``platform`` as an alias of ``source`` and ``id`` for ``ids``.
        """
        source = str(payload.get("source") or payload.get("platform") or DEFAULT_SOURCE).strip()
        ids = str(payload.get("ids") or payload.get("id") or "").strip()
        quality = str(payload.get("quality") or DEFAULT_QUALITY).strip()
        return cls(source=source, ids=ids, quality=quality)

    def validated(self) -> "ParseRequest":
        if self.source not in SUPPORTED_SOURCES:
            raise UnsupportedError(SOURCE_MESSAGE, details={"source": self.source})
        if not self.ids:
            raise ValidationError("id or ids must not be empty")
        return self
