"""Composite location view: one location, every category, fetched in parallel.

Resolves the location first (everything else is keyed by its id), then fans
out to the remaining categories with bounded concurrency.  Each category
succeeds or fails on its own; a failing provider shows up as an entry in
``errors`` and never takes the other categories down with it.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import structlog

from city_explorer.models.category import Category
from city_explorer.models.records import Location, LocationRef, Record
from city_explorer.services.cache_aside import CacheAside
from city_explorer.utils.concurrency import throttled_gather
from city_explorer.utils.errors import CityExplorerError, public_message
from city_explorer.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

FAN_OUT_CATEGORIES: tuple[Category, ...] = (
    Category.WEATHER,
    Category.EVENT,
    Category.MOVIE,
    Category.BUSINESS,
)


@dataclass
class ExploreResult:
    location: Location
    records: dict[Category, list[Record]] = field(default_factory=dict)
    errors: dict[Category, str] = field(default_factory=dict)


class ExplorerService:
    """Fan a single search out to every cached category."""

    def __init__(self, cache: CacheAside, max_concurrency: int = 4) -> None:
        self._cache = cache
        self._max_concurrency = max_concurrency

    async def explore(self, search_query: str) -> ExploreResult:
        """Resolve *search_query* and gather all categories for it.

        A failure to resolve the location itself propagates: without an id
        there is nothing to fan out to.
        """
        location = await self._cache.resolve_location(search_query)
        ref = LocationRef.from_location(location)

        semaphore = asyncio.Semaphore(self._max_concurrency)
        outcomes = await throttled_gather(
            [self._cache.resolve(category, ref) for category in FAN_OUT_CATEGORIES],
            semaphore=semaphore,
        )

        result = ExploreResult(location=location)
        for category, outcome in zip(FAN_OUT_CATEGORIES, outcomes):
            if isinstance(outcome, CityExplorerError):
                result.errors[category] = public_message(outcome)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                result.records[category] = outcome

        _logger.info(
            "explore_complete",
            location_id=location.id,
            succeeded=[c.value for c in result.records],
            failed=[c.value for c in result.errors],
        )
        return result
