"""Yelp Fusion business-search provider."""

from __future__ import annotations

from typing import Any

import structlog

from city_explorer.models.category import Category
from city_explorer.models.records import LocationRef
from city_explorer.providers.http_provider import HTTPDataProvider

logger = structlog.get_logger(logger_name=__name__)


class YelpBusinessProvider(HTTPDataProvider):
    """Businesses around a coordinate pair, via ``/v3/businesses/search``."""

    category = Category.BUSINESS
    _DEFAULT_BASE_URL = "https://api.yelp.com"

    async def fetch(self, request: str | LocationRef) -> list[dict[str, Any]]:
        if not isinstance(request, LocationRef):
            raise TypeError("Business lookups need a LocationRef")
        api_key = self._require_api_key()

        body = await self._get_json(
            "/v3/businesses/search",
            params={"latitude": request.latitude, "longitude": request.longitude},
            headers={"Authorization": f"Bearer {api_key}"},
        )
        entries = self._entries(body, "businesses")
        logger.info("businesses_fetched", location_id=request.id, businesses=len(entries))
        return entries

    def get_provider_name(self) -> str:
        return "yelp"
