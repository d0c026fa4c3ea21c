"""Eventbrite event-search provider."""

from __future__ import annotations

from typing import Any

import structlog

from city_explorer.models.category import Category
from city_explorer.models.records import LocationRef
from city_explorer.providers.http_provider import HTTPDataProvider

logger = structlog.get_logger(logger_name=__name__)


class EventbriteProvider(HTTPDataProvider):
    """Events near a formatted address, via ``/v3/events/search/``."""

    category = Category.EVENT
    _DEFAULT_BASE_URL = "https://www.eventbriteapi.com"

    async def fetch(self, request: str | LocationRef) -> list[dict[str, Any]]:
        if not isinstance(request, LocationRef):
            raise TypeError("Event lookups need a LocationRef")
        token = self._require_api_key()

        body = await self._get_json(
            "/v3/events/search/",
            params={"location.address": request.formatted_query},
            headers={"Authorization": f"Bearer {token}"},
        )
        entries = self._entries(body, "events")
        logger.info("events_fetched", location_id=request.id, events=len(entries))
        return entries

    def get_provider_name(self) -> str:
        return "eventbrite"
