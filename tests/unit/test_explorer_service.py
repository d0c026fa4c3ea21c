"""Unit tests for ExplorerService fan-out."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from city_explorer.models.category import Category
from city_explorer.services.cache_aside import CacheAside
from city_explorer.services.explorer_service import FAN_OUT_CATEGORIES, ExplorerService
from city_explorer.utils.errors import (
    GENERIC_FAILURE_MESSAGE,
    NO_DATA_MESSAGE,
    UpstreamError,
)


class TestExplore:
    @pytest.mark.asyncio
    async def test_gathers_every_category(self, cache: CacheAside) -> None:
        result = await ExplorerService(cache).explore("seattle")

        assert result.location.id == 1
        assert set(result.records) == set(FAN_OUT_CATEGORIES)
        assert result.errors == {}
        assert result.records[Category.WEATHER][0].location_id == 1

    @pytest.mark.asyncio
    async def test_failing_provider_does_not_affect_others(
        self, cache: CacheAside, mock_providers: dict[Category, MagicMock]
    ) -> None:
        mock_providers[Category.BUSINESS].fetch.side_effect = UpstreamError(
            message="HTTP 500", provider_name="mock-business"
        )

        result = await ExplorerService(cache).explore("seattle")

        assert result.errors == {Category.BUSINESS: GENERIC_FAILURE_MESSAGE}
        assert Category.BUSINESS not in result.records
        assert result.records[Category.WEATHER][0].forecast == "Rain throughout the day."

    @pytest.mark.parametrize(
        "entries",
        [[{"name": "X", "rating": "great"}], [None]],
    )
    @pytest.mark.asyncio
    async def test_malformed_entries_do_not_affect_others(
        self, cache: CacheAside, mock_providers: dict[Category, MagicMock], entries: list
    ) -> None:
        mock_providers[Category.BUSINESS].fetch.return_value = entries

        result = await ExplorerService(cache).explore("seattle")

        assert result.errors == {Category.BUSINESS: GENERIC_FAILURE_MESSAGE}
        assert set(result.records) == set(FAN_OUT_CATEGORIES) - {Category.BUSINESS}

    @pytest.mark.asyncio
    async def test_empty_category_reports_no_data(
        self, cache: CacheAside, mock_providers: dict[Category, MagicMock]
    ) -> None:
        mock_providers[Category.EVENT].fetch.return_value = []

        result = await ExplorerService(cache, max_concurrency=1).explore("seattle")

        assert result.errors == {Category.EVENT: NO_DATA_MESSAGE}
        assert len(result.records) == 3

    @pytest.mark.asyncio
    async def test_location_failure_propagates(
        self, cache: CacheAside, mock_providers: dict[Category, MagicMock]
    ) -> None:
        mock_providers[Category.LOCATION].fetch.side_effect = UpstreamError(message="down")

        with pytest.raises(UpstreamError):
            await ExplorerService(cache).explore("seattle")

        for category in FAN_OUT_CATEGORIES:
            mock_providers[category].fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unexpected_errors_are_not_swallowed(
        self, cache: CacheAside, mock_providers: dict[Category, MagicMock]
    ) -> None:
        mock_providers[Category.MOVIE].fetch.side_effect = RuntimeError("bug")

        with pytest.raises(RuntimeError):
            await ExplorerService(cache).explore("seattle")
