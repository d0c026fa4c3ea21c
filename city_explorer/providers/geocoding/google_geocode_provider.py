"""Google Geocoding API provider.

Turns free-text search ("seattle", "1600 Amphitheatre Pkwy") into candidate
results with a formatted address and coordinates.  Only the first result is
ever used by the normalizer.
"""

from __future__ import annotations

from typing import Any

import structlog

from city_explorer.models.category import Category
from city_explorer.models.records import LocationRef
from city_explorer.providers.http_provider import HTTPDataProvider
from city_explorer.utils.errors import UpstreamError

logger = structlog.get_logger(logger_name=__name__)

# Statuses that mean the request itself succeeded.
_OK_STATUSES = frozenset({"OK", "ZERO_RESULTS"})


class GoogleGeocodeProvider(HTTPDataProvider):
    """Geocoding via ``/maps/api/geocode/json``."""

    category = Category.LOCATION
    _DEFAULT_BASE_URL = "https://maps.googleapis.com"

    async def fetch(self, request: str | LocationRef) -> list[dict[str, Any]]:
        search_query = request if isinstance(request, str) else request.search_query
        api_key = self._require_api_key()

        body = await self._get_json(
            "/maps/api/geocode/json",
            params={"address": search_query, "key": api_key},
        )

        # Google reports most failures as HTTP 200 with an error status.
        status = body.get("status", "OK")
        if status not in _OK_STATUSES:
            raise UpstreamError(
                message=f"Geocoding status {status}: {body.get('error_message', '')}".strip(),
                provider_name=self.get_provider_name(),
            )

        logger.info("geocode_fetched", search_query=search_query, status=status)
        return self._entries(body, "results")

    def get_provider_name(self) -> str:
        return "google_geocode"
