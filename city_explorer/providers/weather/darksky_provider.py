"""Dark Sky compatible forecast provider.

Requests ``/forecast/{key}/{lat},{lng}`` and returns the ``daily.data``
entries, each tagged with the response's ``timezone`` and ``offset`` so the
normalizer can format the day in local time.  The base URL is configurable,
so any API that speaks the Dark Sky response format (for example Pirate
Weather) can be dropped in.
"""

from __future__ import annotations

from typing import Any

import structlog

from city_explorer.models.category import Category
from city_explorer.models.records import LocationRef
from city_explorer.providers.http_provider import HTTPDataProvider

logger = structlog.get_logger(logger_name=__name__)


class DarkSkyWeatherProvider(HTTPDataProvider):
    """Daily forecast for a coordinate pair."""

    category = Category.WEATHER
    _DEFAULT_BASE_URL = "https://api.darksky.net"

    async def fetch(self, request: str | LocationRef) -> list[dict[str, Any]]:
        if not isinstance(request, LocationRef):
            raise TypeError("Weather lookups need a LocationRef")
        api_key = self._require_api_key()

        body = await self._get_json(
            f"/forecast/{api_key}/{request.latitude},{request.longitude}",
        )
        entries = self._entries(body.get("daily"), "data")

        # Day timestamps are local midnight at the forecast location.
        zone = {k: body[k] for k in ("timezone", "offset") if k in body}
        if zone:
            entries = [{**zone, **e} if isinstance(e, dict) else e for e in entries]

        logger.info("weather_fetched", location_id=request.id, days=len(entries))
        return entries

    def get_provider_name(self) -> str:
        return "darksky"
