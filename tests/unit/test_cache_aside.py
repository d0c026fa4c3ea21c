"""Unit tests for the cache-aside orchestrator.

Most tests run against a real SQLiteRecordStore in a temp directory with mock
providers; the store-failure tests swap in a mock IRecordStore.
"""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from city_explorer.interfaces.record_store import IRecordStore
from city_explorer.models.category import Category, LookupMode
from city_explorer.models.records import Event, Location, LocationRef, Movie, WeatherDay
from city_explorer.providers.store.sqlite_record_store import SQLiteRecordStore
from city_explorer.services.cache_aside import CacheAside
from city_explorer.services.freshness import FreshnessPolicy
from city_explorer.utils.errors import (
    ConfigurationError,
    NoDataError,
    ProviderContractError,
    StoreError,
    UpstreamError,
)
from tests.conftest import (
    BASE_TIME,
    GEOCODE_RESULT,
    TMDB_MOVIE,
    WEATHER_DAY,
    FakeClock,
    make_mock_provider,
)


def _mock_store(rows: list[dict[str, Any]] | None = None) -> MagicMock:
    store = MagicMock(spec=IRecordStore)
    store.fetch = AsyncMock(return_value=rows or [])
    store.evict = AsyncMock(return_value=0)

    async def _persist_many(category, columns, rows, lookup_mode):
        records = [dict(zip(columns, values)) for values in rows]
        if lookup_mode is LookupMode.BY_SEARCH_QUERY:
            for record in records:
                record["id"] = 7
        return records

    store.persist_many = AsyncMock(side_effect=_persist_many)
    store.get_provider_name.return_value = "mock-store"
    return store


# ======================================================================
# Locations
# ======================================================================


class TestResolveLocation:
    @pytest.mark.asyncio
    async def test_miss_fetches_and_stores(
        self, cache: CacheAside, mock_providers: dict[Category, MagicMock]
    ) -> None:
        location = await cache.resolve_location("seattle")

        assert location == Location(
            id=1,
            search_query="seattle",
            formatted_query="Seattle, WA, USA",
            latitude=47.6062095,
            longitude=-122.3320708,
            created_at=BASE_TIME,
        )
        mock_providers[Category.LOCATION].fetch.assert_awaited_once_with("seattle")

    @pytest.mark.asyncio
    async def test_second_lookup_is_served_from_store(
        self, cache: CacheAside, mock_providers: dict[Category, MagicMock], clock: FakeClock
    ) -> None:
        first = await cache.resolve_location("seattle")
        clock.advance(10 * 365 * 86400)
        second = await cache.resolve_location("seattle")

        assert second == first
        assert mock_providers[Category.LOCATION].fetch.await_count == 1

    @pytest.mark.asyncio
    async def test_only_best_candidate_is_kept(
        self, store: SQLiteRecordStore, freshness: FreshnessPolicy
    ) -> None:
        other = {"formatted_address": "Seattle, TX", "geometry": {"location": {"lat": 1, "lng": 2}}}
        providers = {Category.LOCATION: make_mock_provider(Category.LOCATION, [GEOCODE_RESULT, other])}
        cache = CacheAside(store=store, providers=providers, freshness=freshness)

        location = await cache.resolve_location("seattle")

        assert location.formatted_query == "Seattle, WA, USA"
        rows = await store.fetch(Category.LOCATION, LookupMode.BY_SEARCH_QUERY, "seattle")
        assert len(rows) == 1

    @pytest.mark.asyncio
    async def test_distinct_queries_get_distinct_ids(self, cache: CacheAside) -> None:
        seattle = await cache.resolve_location("seattle")
        portland = await cache.resolve_location("portland")
        assert seattle.id != portland.id

    @pytest.mark.asyncio
    async def test_zero_results_is_no_data(
        self, cache: CacheAside, mock_providers: dict[Category, MagicMock], store: SQLiteRecordStore
    ) -> None:
        mock_providers[Category.LOCATION].fetch.return_value = []

        with pytest.raises(NoDataError) as exc_info:
            await cache.resolve_location("atlantis")

        assert exc_info.value.provider_name == "mock-location"
        assert await store.fetch(Category.LOCATION, LookupMode.BY_SEARCH_QUERY, "atlantis") == []

    @pytest.mark.asyncio
    async def test_upstream_failure_propagates_and_stores_nothing(
        self, cache: CacheAside, mock_providers: dict[Category, MagicMock], store: SQLiteRecordStore
    ) -> None:
        mock_providers[Category.LOCATION].fetch.side_effect = UpstreamError(
            message="HTTP 503", provider_name="mock-location"
        )

        with pytest.raises(UpstreamError):
            await cache.resolve_location("seattle")

        assert await store.fetch(Category.LOCATION, LookupMode.BY_SEARCH_QUERY, "seattle") == []


# ======================================================================
# Location-keyed categories
# ======================================================================


class TestResolveCategory:
    @pytest_asyncio.fixture(autouse=True)
    async def _seattle(self, cache: CacheAside) -> None:
        await cache.resolve_location("seattle")

    @pytest.mark.asyncio
    async def test_miss_stamps_batch_with_location_and_time(
        self, cache: CacheAside, seattle_ref: LocationRef
    ) -> None:
        records = await cache.resolve(Category.WEATHER, seattle_ref)

        assert records == [
            WeatherDay(
                forecast="Rain throughout the day.",
                time="Mon Jan 06 2020",
                created_at=BASE_TIME,
                location_id=1,
            )
        ]

    @pytest.mark.asyncio
    async def test_provider_receives_location_ref(
        self, cache: CacheAside, mock_providers: dict[Category, MagicMock], seattle_ref: LocationRef
    ) -> None:
        await cache.resolve(Category.EVENT, seattle_ref)
        mock_providers[Category.EVENT].fetch.assert_awaited_once_with(seattle_ref)

    @pytest.mark.asyncio
    async def test_whole_batch_shares_one_timestamp(
        self,
        cache: CacheAside,
        mock_providers: dict[Category, MagicMock],
        seattle_ref: LocationRef,
    ) -> None:
        mock_providers[Category.WEATHER].fetch.return_value = [
            {"summary": f"day {i}", "time": 1578268800 + i * 86400} for i in range(8)
        ]

        records = await cache.resolve(Category.WEATHER, seattle_ref)

        assert len(records) == 8
        assert {r.created_at for r in records} == {BASE_TIME}
        assert [r.time for r in records][:2] == ["Mon Jan 06 2020", "Tue Jan 07 2020"]

    @pytest.mark.asyncio
    async def test_batch_is_written_in_one_call(
        self,
        mock_providers: dict[Category, MagicMock],
        freshness: FreshnessPolicy,
        seattle_ref: LocationRef,
    ) -> None:
        store = _mock_store()
        mock_providers[Category.WEATHER].fetch.return_value = [WEATHER_DAY] * 3
        cache = CacheAside(store=store, providers=mock_providers, freshness=freshness)

        await cache.resolve(Category.WEATHER, seattle_ref)

        store.persist_many.assert_awaited_once()
        category, columns, rows, mode = store.persist_many.await_args.args
        assert (category, columns, mode) == (
            Category.WEATHER,
            Category.WEATHER.columns,
            LookupMode.BY_LOCATION_ID,
        )
        assert len(rows) == 3
        store.persist.assert_not_called()

    @pytest.mark.asyncio
    async def test_fresh_rows_skip_the_provider(
        self,
        cache: CacheAside,
        mock_providers: dict[Category, MagicMock],
        seattle_ref: LocationRef,
        clock: FakeClock,
    ) -> None:
        first = await cache.resolve(Category.WEATHER, seattle_ref)
        clock.advance(5)
        second = await cache.resolve(Category.WEATHER, seattle_ref)

        assert second == first
        assert mock_providers[Category.WEATHER].fetch.await_count == 1

    @pytest.mark.asyncio
    async def test_stale_rows_are_replaced(
        self,
        cache: CacheAside,
        mock_providers: dict[Category, MagicMock],
        store: SQLiteRecordStore,
        seattle_ref: LocationRef,
        clock: FakeClock,
    ) -> None:
        await cache.resolve(Category.WEATHER, seattle_ref)
        clock.advance(20)
        mock_providers[Category.WEATHER].fetch.return_value = [
            {**WEATHER_DAY, "summary": "Clearing later."}
        ]

        records = await cache.resolve(Category.WEATHER, seattle_ref)

        assert mock_providers[Category.WEATHER].fetch.await_count == 2
        assert [r.forecast for r in records] == ["Clearing later."]
        assert records[0].created_at == BASE_TIME + 20
        rows = await store.fetch(Category.WEATHER, LookupMode.BY_LOCATION_ID, 1)
        assert [r["forecast"] for r in rows] == ["Clearing later."]

    @pytest.mark.asyncio
    async def test_stored_movie_round_trips(
        self, cache: CacheAside, seattle_ref: LocationRef, clock: FakeClock
    ) -> None:
        fetched = await cache.resolve(Category.MOVIE, seattle_ref)
        clock.advance(60)
        cached = await cache.resolve(Category.MOVIE, seattle_ref)

        assert cached == fetched
        movie = cached[0]
        assert isinstance(movie, Movie)
        assert (movie.title, movie.average_votes, movie.total_votes) == ("X", 7.2, 100)
        assert movie.location_id == 1

    @pytest.mark.asyncio
    async def test_empty_result_is_no_data(
        self,
        cache: CacheAside,
        mock_providers: dict[Category, MagicMock],
        store: SQLiteRecordStore,
        seattle_ref: LocationRef,
    ) -> None:
        mock_providers[Category.EVENT].fetch.return_value = []

        with pytest.raises(NoDataError) as exc_info:
            await cache.resolve(Category.EVENT, seattle_ref)

        assert exc_info.value.provider_name == "mock-event"
        assert await store.fetch(Category.EVENT, LookupMode.BY_LOCATION_ID, 1) == []

    @pytest.mark.asyncio
    async def test_stale_then_empty_leaves_nothing_behind(
        self,
        cache: CacheAside,
        mock_providers: dict[Category, MagicMock],
        store: SQLiteRecordStore,
        seattle_ref: LocationRef,
        clock: FakeClock,
    ) -> None:
        await cache.resolve(Category.EVENT, seattle_ref)
        clock.advance(7 * 3600)
        mock_providers[Category.EVENT].fetch.return_value = []

        with pytest.raises(NoDataError):
            await cache.resolve(Category.EVENT, seattle_ref)

        assert await store.fetch(Category.EVENT, LookupMode.BY_LOCATION_ID, 1) == []

    @pytest.mark.asyncio
    async def test_categories_are_independent(
        self, cache: CacheAside, seattle_ref: LocationRef
    ) -> None:
        events = await cache.resolve(Category.EVENT, seattle_ref)
        assert isinstance(events[0], Event)
        assert events[0].name == "Seattle Code Night"

    @pytest.mark.asyncio
    async def test_non_object_entry_is_contract_violation(
        self,
        cache: CacheAside,
        mock_providers: dict[Category, MagicMock],
        store: SQLiteRecordStore,
        seattle_ref: LocationRef,
    ) -> None:
        mock_providers[Category.MOVIE].fetch.return_value = [TMDB_MOVIE, None]

        with pytest.raises(ProviderContractError) as exc_info:
            await cache.resolve(Category.MOVIE, seattle_ref)

        assert isinstance(exc_info.value, UpstreamError)
        assert exc_info.value.provider_name == "mock-movie"
        assert await store.fetch(Category.MOVIE, LookupMode.BY_LOCATION_ID, 1) == []

    @pytest.mark.asyncio
    async def test_wrongly_typed_field_is_contract_violation(
        self,
        cache: CacheAside,
        mock_providers: dict[Category, MagicMock],
        store: SQLiteRecordStore,
        seattle_ref: LocationRef,
    ) -> None:
        mock_providers[Category.BUSINESS].fetch.return_value = [{"name": "X", "rating": "great"}]

        with pytest.raises(ProviderContractError, match="Malformed business entry"):
            await cache.resolve(Category.BUSINESS, seattle_ref)

        assert await store.fetch(Category.BUSINESS, LookupMode.BY_LOCATION_ID, 1) == []

    @pytest.mark.asyncio
    async def test_requires_location_ref(self, cache: CacheAside) -> None:
        with pytest.raises(TypeError):
            await cache.resolve(Category.WEATHER, "seattle")

    @pytest.mark.asyncio
    async def test_missing_provider(
        self, store: SQLiteRecordStore, freshness: FreshnessPolicy, seattle_ref: LocationRef
    ) -> None:
        cache = CacheAside(store=store, providers={}, freshness=freshness)
        with pytest.raises(ConfigurationError):
            await cache.resolve(Category.BUSINESS, seattle_ref)


# ======================================================================
# Store failures
# ======================================================================


class TestStoreFailures:
    @pytest.mark.asyncio
    async def test_read_failure_falls_through_to_provider(
        self, mock_providers: dict[Category, MagicMock], freshness: FreshnessPolicy
    ) -> None:
        store = _mock_store()
        store.fetch.side_effect = StoreError(message="disk I/O error", provider_name="mock-store")
        cache = CacheAside(store=store, providers=mock_providers, freshness=freshness)

        location = await cache.resolve_location("seattle")

        assert location.id == 7
        mock_providers[Category.LOCATION].fetch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_strict_reads_fail_the_request(
        self, mock_providers: dict[Category, MagicMock], freshness: FreshnessPolicy
    ) -> None:
        store = _mock_store()
        store.fetch.side_effect = StoreError(message="disk I/O error", provider_name="mock-store")
        cache = CacheAside(
            store=store, providers=mock_providers, freshness=freshness, strict_reads=True
        )

        with pytest.raises(StoreError):
            await cache.resolve_location("seattle")

        mock_providers[Category.LOCATION].fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_write_failure_propagates(
        self, mock_providers: dict[Category, MagicMock], freshness: FreshnessPolicy
    ) -> None:
        store = _mock_store()
        store.persist_many.side_effect = StoreError(message="disk full", provider_name="mock-store")
        cache = CacheAside(store=store, providers=mock_providers, freshness=freshness)

        with pytest.raises(StoreError, match="disk full"):
            await cache.resolve_location("seattle")

    @pytest.mark.asyncio
    async def test_stale_batch_is_evicted_before_persist(
        self,
        mock_providers: dict[Category, MagicMock],
        freshness: FreshnessPolicy,
        seattle_ref: LocationRef,
    ) -> None:
        stale = [{"forecast": "old", "time": None, "created_at": BASE_TIME - 60, "location_id": 1}]
        store = _mock_store(stale)
        cache = CacheAside(store=store, providers=mock_providers, freshness=freshness)

        records = await cache.resolve(Category.WEATHER, seattle_ref)

        assert [name for name, _, _ in store.method_calls] == ["fetch", "evict", "persist_many"]
        store.evict.assert_awaited_once_with(Category.WEATHER, 1)
        assert records[0].forecast == "Rain throughout the day."

    @pytest.mark.asyncio
    async def test_eviction_failure_does_not_fail_the_request(
        self,
        mock_providers: dict[Category, MagicMock],
        freshness: FreshnessPolicy,
        seattle_ref: LocationRef,
    ) -> None:
        stale = [{"forecast": "old", "time": None, "created_at": BASE_TIME - 60, "location_id": 1}]
        store = _mock_store(stale)
        store.evict.side_effect = StoreError(message="locked", provider_name="mock-store")
        cache = CacheAside(store=store, providers=mock_providers, freshness=freshness)

        records = await cache.resolve(Category.WEATHER, seattle_ref)

        assert len(records) == 1
        store.persist_many.assert_awaited_once()


# ======================================================================
# Concurrent refreshes
# ======================================================================


class TestConcurrentRequests:
    @pytest.mark.asyncio
    async def test_concurrent_misses_share_one_fetch(
        self, cache: CacheAside, mock_providers: dict[Category, MagicMock]
    ) -> None:
        results = await asyncio.gather(*(cache.resolve_location("seattle") for _ in range(5)))

        assert mock_providers[Category.LOCATION].fetch.await_count == 1
        assert {loc.id for loc in results} == {1}

    @pytest.mark.asyncio
    async def test_concurrent_stale_refresh_writes_one_batch(
        self,
        cache: CacheAside,
        mock_providers: dict[Category, MagicMock],
        store: SQLiteRecordStore,
        seattle_ref: LocationRef,
        clock: FakeClock,
    ) -> None:
        await cache.resolve_location("seattle")
        await cache.resolve(Category.BUSINESS, seattle_ref)
        clock.advance(2 * 86400)

        await asyncio.gather(*(cache.resolve(Category.BUSINESS, seattle_ref) for _ in range(3)))

        assert mock_providers[Category.BUSINESS].fetch.await_count == 2
        rows = await store.fetch(Category.BUSINESS, LookupMode.BY_LOCATION_ID, 1)
        assert len(rows) == 1
        assert rows[0]["created_at"] == BASE_TIME + 2 * 86400
