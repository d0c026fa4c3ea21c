"""Pydantic v2 models for the stored record shape of every category.

These are both the storage rows and the API response bodies.  Models are
frozen; the cache-aside layer attaches ``id``, ``location_id`` and
``created_at`` with ``model_copy(update=...)`` rather than mutating.

``LocationRef`` is the client's handle on an already resolved location: the
id returned by ``/location`` plus whichever of its attributes a category's
provider needs (coordinates, formatted address, or the original search).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from city_explorer.models.category import Category


class Location(BaseModel):
    """A geocoded search query.  Root entity; other categories reference its id."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int | None = Field(default=None, description="Generated on first insert.")
    search_query: str
    formatted_query: str | None = Field(
        default=None, description="Formatted address returned by the geocoder."
    )
    latitude: float
    longitude: float
    created_at: float | None = None


class WeatherDay(BaseModel):
    """One forecast day."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    forecast: str | None = None
    time: str | None = Field(default=None, description="Display date, e.g. 'Mon Jan 06 2020'.")
    created_at: float | None = None
    location_id: int | None = None


class Event(BaseModel):
    """One local event."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    link: str | None = None
    name: str | None = None
    event_date: str | None = None
    summary: str | None = None
    created_at: float | None = None
    location_id: int | None = None


class Movie(BaseModel):
    """One movie search result."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    title: str | None = None
    overview: str | None = None
    average_votes: float | None = None
    total_votes: int | None = None
    image_url: str | None = None
    popularity: float | None = None
    released_on: str | None = None
    created_at: float | None = None
    location_id: int | None = None


class Business(BaseModel):
    """One nearby business."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str | None = None
    image_url: str | None = None
    price: str | None = None
    rating: float | None = None
    url: str | None = None
    created_at: float | None = None
    location_id: int | None = None


Record = Location | WeatherDay | Event | Movie | Business

RECORD_TYPES: dict[Category, type[BaseModel]] = {
    Category.LOCATION: Location,
    Category.WEATHER: WeatherDay,
    Category.EVENT: Event,
    Category.MOVIE: Movie,
    Category.BUSINESS: Business,
}


class LocationRef(BaseModel):
    """Reference to a resolved location, as sent back by the client."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    search_query: str | None = None
    formatted_query: str | None = None
    latitude: float | None = None
    longitude: float | None = None

    @classmethod
    def from_location(cls, location: Location) -> LocationRef:
        if location.id is None:
            msg = "Location has not been persisted yet"
            raise ValueError(msg)
        return cls(
            id=location.id,
            search_query=location.search_query,
            formatted_query=location.formatted_query,
            latitude=location.latitude,
            longitude=location.longitude,
        )
