"""City Explorer domain models -- categories and record shapes."""

from __future__ import annotations

from city_explorer.models.category import Category, CategoryStorage, LookupMode
from city_explorer.models.records import (
    RECORD_TYPES,
    Business,
    Event,
    Location,
    LocationRef,
    Movie,
    Record,
    WeatherDay,
)

__all__ = [
    "RECORD_TYPES",
    "Business",
    "Category",
    "CategoryStorage",
    "Event",
    "Location",
    "LocationRef",
    "LookupMode",
    "Movie",
    "Record",
    "WeatherDay",
]
