"""
Search across backends, falling back in a fixed order until one has results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from shared.errors import ConfigError
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from .dispatch import MethodDispatcher
from .models import CallVars, Function, Song, Source, tag_songs

FALLBACK_ORDER: Dict[Source, Tuple[Source, ...]] = {
    Source.NETEASE: (Source.NETEASE, Source.KUWO, Source.QQ),
    Source.QQ: (Source.QQ, Source.KUWO, Source.NETEASE),
    Source.KUWO: (Source.KUWO, Source.NETEASE, Source.QQ),
}


@dataclass(frozen=True)
class SearchOutcome:
    """Rows found and the backend that actually produced them."""

    actual_source: str
    results: List[Song] = field(default_factory=list)


class SearchFallbackOrchestrator:
    """Tries candidates strictly one after another."""

    def __init__(self, dispatcher: MethodDispatcher, metrics: Optional[MetricsCollector] = None):
        self.dispatcher = dispatcher
        self.metrics = metrics
        self.logger = get_logger("gateway.search")

    async def search_with_fallback(self, requested: str, vars: CallVars) -> SearchOutcome:
        """Return the first non-empty result set, tagged with its source.

        When every candidate is empty or fails, an empty result tagged with the
        requested source is returned.

        ``ConfigError`` is the one failure that is re-raised: a missing
        provider key breaks every candidate alike, so it surfaces as a 500
        instead of being reported to the caller as "no results".
        """
        for candidate in FALLBACK_ORDER[Source(requested)]:
            try:
                rows = await self.dispatcher.run(candidate.value, Function.SEARCH.value, vars)
            except ConfigError:
                raise
            except Exception as exc:
                self.logger.warning(
                    "Search candidate failed, trying next",
                    requested=requested,
                    candidate=candidate.value,
                    error=str(exc),
                )
                continue

            if isinstance(rows, list) and rows:
                if candidate.value != requested:
                    self.logger.info("Search answered by fallback source", requested=requested, actual=candidate.value)
                    if self.metrics is not None:
                        self.metrics.record_search_fallback(requested, candidate.value)
                return SearchOutcome(actual_source=candidate.value, results=tag_songs(rows, candidate.value))

        self.logger.info("Search found nothing on any source", requested=requested)
        return SearchOutcome(actual_source=requested, results=[])
