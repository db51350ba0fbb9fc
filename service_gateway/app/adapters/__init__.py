"""
Adapters package for the Gateway Service.

Contains HTTP client wrappers for external dependencies (TuneHub, music
backends). These adapters encapsulate:

- Base URLs, authentication headers and request shapes
- Tolerant decoding of upstream bodies
- Error handling that maps to shared errors

Keep adapters thin and side-effect free outside of explicit calls.
"""

from .tunehub_client import TuneHubClient
from .upstream_client import UpstreamClient, parse_lenient_json

__all__ = [
    "TuneHubClient",
    "UpstreamClient",
    "parse_lenient_json",
]
