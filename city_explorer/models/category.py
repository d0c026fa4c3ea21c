"""Cached data categories and their static storage declarations.

Every kind of external data the service caches is a member of the closed
:class:`Category` enum.  Each member declares, once and statically, the
table it lives in, its ordered column list, and how it is looked up.  The
record store builds SQL only from these declarations, so no table or column
identifier ever comes from request data.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class LookupMode(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    """Which key a category's rows are read by."""

    BY_SEARCH_QUERY = "search_query"  # geocoding: raw search text
    BY_LOCATION_ID = "location_id"    # everything else: owning location id


class Category(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    """A kind of cached external data with its own table and freshness window."""

    LOCATION = "location"
    WEATHER = "weather"
    EVENT = "event"
    MOVIE = "movie"
    BUSINESS = "business"

    @property
    def table(self) -> str:
        return _STORAGE[self].table

    @property
    def columns(self) -> tuple[str, ...]:
        """Insertable columns, in order.  The generated ``id`` is not included."""
        return _STORAGE[self].columns

    @property
    def lookup_mode(self) -> LookupMode:
        return _STORAGE[self].lookup_mode


@dataclass(frozen=True)
class CategoryStorage:
    """Static storage declaration for one category."""

    table: str
    columns: tuple[str, ...]
    lookup_mode: LookupMode


_STORAGE: dict[Category, CategoryStorage] = {
    Category.LOCATION: CategoryStorage(
        table="locations",
        columns=("search_query", "formatted_query", "latitude", "longitude", "created_at"),
        lookup_mode=LookupMode.BY_SEARCH_QUERY,
    ),
    Category.WEATHER: CategoryStorage(
        table="weathers",
        columns=("forecast", "time", "created_at", "location_id"),
        lookup_mode=LookupMode.BY_LOCATION_ID,
    ),
    Category.EVENT: CategoryStorage(
        table="events",
        columns=("link", "name", "event_date", "summary", "created_at", "location_id"),
        lookup_mode=LookupMode.BY_LOCATION_ID,
    ),
    Category.MOVIE: CategoryStorage(
        table="movies",
        columns=(
            "title",
            "overview",
            "average_votes",
            "total_votes",
            "image_url",
            "popularity",
            "released_on",
            "created_at",
            "location_id",
        ),
        lookup_mode=LookupMode.BY_LOCATION_ID,
    ),
    Category.BUSINESS: CategoryStorage(
        table="yelps",
        columns=("name", "image_url", "price", "rating", "url", "created_at", "location_id"),
        lookup_mode=LookupMode.BY_LOCATION_ID,
    ),
}
