"""Mapping from raw provider entries to stored record shapes.

Each ``normalize_*`` method is pure: it reads one raw entry and returns a
frozen record, never touching the network or the store.  Missing optional
fields become ``None``.  Fields an entity cannot exist without (a location's
coordinates) raise :class:`ProviderContractError` instead.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from city_explorer.models.category import Category
from city_explorer.models.records import (
    Business,
    Event,
    Location,
    LocationRef,
    Movie,
    Record,
    WeatherDay,
)
from city_explorer.utils.errors import ProviderContractError

DEFAULT_IMAGE_BASE_URL = "https://image.tmdb.org/t/p/w500"

# "Mon Jan 06 2020" -- 15 characters.
_DISPLAY_DATE_FORMAT = "%a %b %d %Y"


def display_date(moment: datetime) -> str:
    return moment.strftime(_DISPLAY_DATE_FORMAT)


def _forecast_zone(entry: dict[str, Any]) -> tzinfo:
    """Zone of a forecast entry: IANA ``timezone``, else hour ``offset``, else UTC."""
    name = entry.get("timezone")
    if isinstance(name, str) and name:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            pass
    offset = entry.get("offset")
    if isinstance(offset, (int, float)) and not isinstance(offset, bool) and abs(offset) < 24:
        return timezone(timedelta(hours=offset))
    return timezone.utc


def _nested(entry: Any, *path: str) -> Any:
    """Walk ``entry[path[0]][path[1]]...``; ``None`` as soon as a level is missing."""
    current = entry
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


class ResultNormalizer:
    """Normalizers for every category, with the movie poster base URL configured."""

    def __init__(self, image_base_url: str = DEFAULT_IMAGE_BASE_URL) -> None:
        self._image_base_url = image_base_url.rstrip("/")

    def normalize(self, category: Category, entry: dict[str, Any], request: str | LocationRef) -> Record:
        """Dispatch *entry* to the normalizer for *category*."""
        if category is Category.LOCATION:
            search_query = request if isinstance(request, str) else request.search_query
            return self.normalize_location(entry, search_query or "")
        if category is Category.WEATHER:
            return self.normalize_weather(entry)
        if category is Category.EVENT:
            return self.normalize_event(entry)
        if category is Category.MOVIE:
            return self.normalize_movie(entry)
        if category is Category.BUSINESS:
            return self.normalize_business(entry)
        raise ValueError(f"No normalizer for category {category!r}")

    def normalize_location(self, entry: dict[str, Any], search_query: str) -> Location:
        """Geocoding result -> Location.  Coordinates are mandatory."""
        lat = _nested(entry, "geometry", "location", "lat")
        lng = _nested(entry, "geometry", "location", "lng")
        if lat is None or lng is None:
            raise ProviderContractError(
                message=f"Geocoding result for {search_query!r} has no coordinates",
                provider_name="google_geocode",
            )
        return Location(
            search_query=search_query,
            formatted_query=entry.get("formatted_address"),
            latitude=lat,
            longitude=lng,
        )

    def normalize_weather(self, entry: dict[str, Any]) -> WeatherDay:
        """Daily forecast entry -> WeatherDay."""
        epoch = entry.get("time")
        day = None
        if isinstance(epoch, (int, float)) and not isinstance(epoch, bool):
            try:
                day = display_date(datetime.fromtimestamp(epoch, tz=_forecast_zone(entry)))
            except (OverflowError, OSError, ValueError):
                day = None
        return WeatherDay(forecast=entry.get("summary"), time=day)

    def normalize_event(self, entry: dict[str, Any]) -> Event:
        """Eventbrite event -> Event."""
        start = _nested(entry, "start", "local")
        event_date = None
        if isinstance(start, str):
            try:
                event_date = display_date(datetime.fromisoformat(start))
            except ValueError:
                event_date = None
        return Event(
            link=entry.get("url"),
            name=_nested(entry, "name", "text"),
            event_date=event_date,
            summary=entry.get("summary"),
        )

    def normalize_movie(self, entry: dict[str, Any]) -> Movie:
        """TMDB search result -> Movie."""
        poster_path = entry.get("poster_path")
        return Movie(
            title=entry.get("original_title"),
            overview=entry.get("overview"),
            average_votes=entry.get("vote_average"),
            total_votes=entry.get("vote_count"),
            image_url=f"{self._image_base_url}{poster_path}" if poster_path else None,
            popularity=entry.get("popularity"),
            released_on=entry.get("release_date"),
        )

    def normalize_business(self, entry: dict[str, Any]) -> Business:
        """Yelp business -> Business."""
        return Business(
            name=entry.get("name"),
            image_url=entry.get("image_url"),
            price=entry.get("price"),
            rating=entry.get("rating"),
            url=entry.get("url"),
        )
