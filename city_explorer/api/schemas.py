"""Pydantic response schemas for the City Explorer API.

The per-category endpoints respond with the record models from
``city_explorer.models.records`` directly; this module holds the envelopes
that only exist at the HTTP boundary.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from city_explorer.models.records import Business, Event, Location, Movie, WeatherDay


class ErrorResponse(BaseModel):
    """Sanitized error body.  Never carries stack traces or query text."""

    error: str = Field(description="Error class name, e.g. 'UpstreamError'.")
    detail: str = Field(description="Generic, user-facing message.")


class ExploreResponse(BaseModel):
    """Composite view of one location.

    A category that failed is ``None`` and has a message in ``errors``.
    """

    location: Location
    weather: list[WeatherDay] | None = None
    events: list[Event] | None = None
    movies: list[Movie] | None = None
    yelp: list[Business] | None = None
    errors: dict[str, str] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    providers: dict[str, bool] = Field(
        default_factory=dict, description="Category -> provider has an API key."
    )
    freshness: dict[str, float | None] = Field(
        default_factory=dict, description="Category -> freshness window in seconds."
    )
