"""The Movie Database (TMDB) movie-search provider.

Searches movies by the location's original search text, so "seattle" yields
films with Seattle in the title.
"""

from __future__ import annotations

from typing import Any

import structlog

from city_explorer.models.category import Category
from city_explorer.models.records import LocationRef
from city_explorer.providers.http_provider import HTTPDataProvider

logger = structlog.get_logger(logger_name=__name__)


class TMDBMovieProvider(HTTPDataProvider):
    """Movie search via ``/3/search/movie``."""

    category = Category.MOVIE
    _DEFAULT_BASE_URL = "https://api.themoviedb.org"

    async def fetch(self, request: str | LocationRef) -> list[dict[str, Any]]:
        if not isinstance(request, LocationRef):
            raise TypeError("Movie lookups need a LocationRef")
        api_key = self._require_api_key()

        body = await self._get_json(
            "/3/search/movie",
            params={"api_key": api_key, "query": request.search_query},
        )
        entries = self._entries(body, "results")
        logger.info("movies_fetched", location_id=request.id, movies=len(entries))
        return entries

    def get_provider_name(self) -> str:
        return "tmdb"
