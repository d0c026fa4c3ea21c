"""Shared pytest fixtures for the City Explorer test suite."""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from city_explorer.interfaces.data_provider import IDataProvider
from city_explorer.models.category import Category
from city_explorer.models.records import LocationRef
from city_explorer.providers.store.sqlite_record_store import SQLiteRecordStore
from city_explorer.services.cache_aside import CacheAside
from city_explorer.services.freshness import FreshnessPolicy

# 2020-01-06 00:00:00 UTC
BASE_TIME = 1578268800.0


# ---------------------------------------------------------------------------
# Sample provider payload entries
# ---------------------------------------------------------------------------

GEOCODE_RESULT: dict[str, Any] = {
    "formatted_address": "Seattle, WA, USA",
    "geometry": {"location": {"lat": 47.6062095, "lng": -122.3320708}},
}

WEATHER_DAY: dict[str, Any] = {
    "time": 1578268800,
    "summary": "Rain throughout the day.",
}

EVENTBRITE_EVENT: dict[str, Any] = {
    "url": "https://www.eventbrite.com/e/seattle-code-night",
    "name": {"text": "Seattle Code Night"},
    "start": {"local": "2020-01-10T19:00:00"},
    "summary": "Bring a laptop.",
}

TMDB_MOVIE: dict[str, Any] = {
    "original_title": "X",
    "overview": "A movie about X.",
    "vote_average": 7.2,
    "vote_count": 100,
    "poster_path": "/a.jpg",
    "popularity": 12.3,
    "release_date": "2020-01-01",
}

YELP_BUSINESS: dict[str, Any] = {
    "name": "Pike Place Chowder",
    "image_url": "https://s3-media.fl.yelpcdn.com/bphoto/chowder.jpg",
    "price": "$$",
    "rating": 4.5,
    "url": "https://www.yelp.com/biz/pike-place-chowder-seattle",
}

SAMPLE_ENTRIES: dict[Category, dict[str, Any]] = {
    Category.LOCATION: GEOCODE_RESULT,
    Category.WEATHER: WEATHER_DAY,
    Category.EVENT: EVENTBRITE_EVENT,
    Category.MOVIE: TMDB_MOVIE,
    Category.BUSINESS: YELP_BUSINESS,
}


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, now: float = BASE_TIME) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_mock_provider(category: Category, entries: list[dict[str, Any]] | None = None) -> MagicMock:
    """Mock IDataProvider returning *entries* (one sample entry by default)."""
    mock = MagicMock(spec=IDataProvider)
    mock.category = category
    mock.get_provider_name.return_value = f"mock-{category.value}"
    mock.is_available.return_value = True
    mock.fetch = AsyncMock(
        return_value=[SAMPLE_ENTRIES[category]] if entries is None else entries
    )
    return mock


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def freshness(clock: FakeClock) -> FreshnessPolicy:
    return FreshnessPolicy(clock=clock)


@pytest.fixture
def mock_providers() -> dict[Category, MagicMock]:
    return {category: make_mock_provider(category) for category in Category}


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "test_city_explorer.db"


@pytest_asyncio.fixture
async def store(db_path: Path) -> SQLiteRecordStore:
    """An initialized store backed by a temp DB."""
    record_store = SQLiteRecordStore(db_path=db_path)
    await record_store.initialize()
    return record_store


@pytest.fixture
def cache(
    store: SQLiteRecordStore,
    mock_providers: dict[Category, MagicMock],
    freshness: FreshnessPolicy,
) -> CacheAside:
    return CacheAside(store=store, providers=mock_providers, freshness=freshness)


@pytest.fixture
def seattle_ref() -> LocationRef:
    """Reference to location id 1, the first location inserted into a fresh store."""
    return LocationRef(
        id=1,
        search_query="seattle",
        formatted_query="Seattle, WA, USA",
        latitude=47.6062095,
        longitude=-122.3320708,
    )
