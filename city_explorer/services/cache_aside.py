"""Cache-aside orchestration over the record store and the upstream providers.

For every lookup the orchestrator walks the same state machine:

    CHECK_STORE --fresh--> return stored rows
        |
        +--empty / stale--> FETCH_PROVIDER --entries--> NORMALIZE_AND_PERSIST --> return
                                 |
                                 +--no entries--> NoDataError

Location rows never expire.  Every other category is keyed by the id of an
already resolved location and gated by :class:`FreshnessPolicy`.  A stale
batch is deleted concurrently with the provider call, is never returned, and
the delete is always finished before the replacement batch is written.

Concurrent lookups of the same ``(category, key)`` share one resolution via
:class:`~city_explorer.utils.concurrency.SingleFlight`, so a burst of
requests for one stale location costs one provider call and one batch.
"""

from __future__ import annotations

import asyncio
from typing import Any, Mapping

import structlog
from pydantic import ValidationError

from city_explorer.interfaces.data_provider import IDataProvider
from city_explorer.interfaces.record_store import IRecordStore
from city_explorer.models.category import Category
from city_explorer.models.records import RECORD_TYPES, Location, LocationRef, Record
from city_explorer.services.freshness import FreshnessPolicy, FreshnessStatus
from city_explorer.services.normalizers import ResultNormalizer
from city_explorer.utils.concurrency import SingleFlight
from city_explorer.utils.errors import (
    CityExplorerError,
    ConfigurationError,
    NoDataError,
    ProviderContractError,
    StoreError,
)
from city_explorer.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


class CacheAside:
    """Serve category data from the store, refreshing from providers when needed.

    Parameters
    ----------
    store:
        The record store shared by every request.
    providers:
        One data provider per category.
    freshness:
        Freshness windows and clock.
    normalizer:
        Raw-entry to record mapping.  Defaults to :class:`ResultNormalizer`.
    strict_reads:
        When ``False`` (default) a ``StoreError`` while reading is logged
        and treated as a miss.  When ``True`` it fails the request.
    """

    def __init__(
        self,
        store: IRecordStore,
        providers: Mapping[Category, IDataProvider],
        freshness: FreshnessPolicy,
        normalizer: ResultNormalizer | None = None,
        strict_reads: bool = False,
    ) -> None:
        self._store = store
        self._providers = dict(providers)
        self._freshness = freshness
        self._normalizer = normalizer or ResultNormalizer()
        self._strict_reads = strict_reads
        self._flights = SingleFlight()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def resolve_location(self, search_query: str) -> Location:
        """Resolve-or-create the Location for *search_query*."""
        records = await self.resolve(Category.LOCATION, search_query)
        return records[0]  # type: ignore[return-value]

    async def resolve(self, category: Category, request: str | LocationRef) -> list[Record]:
        """Return the records of *category* for *request*, from store or provider.

        Raises
        ------
        NoDataError
            The provider answered with zero results.
        UpstreamError
            The provider call failed or its payload broke an entity invariant.
        StoreError
            Writing the fetched batch failed (or reading, with ``strict_reads``).
        """
        key = self._lookup_key(category, request)
        return await self._flights.run(
            (category, key),
            lambda: self._resolve(category, request, key),
        )

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    async def _resolve(
        self,
        category: Category,
        request: str | LocationRef,
        key: Any,
    ) -> list[Record]:
        log = _logger.bind(category=category.value, key=key)

        rows = await self._read(category, key, log)
        verdict = self._freshness.evaluate(category, rows)

        if verdict.status is FreshnessStatus.FRESH:
            log.info("store_hit", rows=len(verdict.rows))
            return [self._to_record(category, row) for row in verdict.rows]

        eviction: asyncio.Task[None] | None = None
        if verdict.status is FreshnessStatus.STALE:
            log.info("store_stale", rows=len(rows), age=verdict.age)
            eviction = asyncio.ensure_future(self._evict(category, key, log))
        else:
            log.info("store_miss")

        try:
            entries = await self._fetch(category, request, log)
        finally:
            if eviction is not None:
                await eviction

        if not entries:
            log.info("provider_no_data")
            raise NoDataError(
                message=f"No {category.value} data for {key!r}",
                provider_name=self._providers[category].get_provider_name(),
            )

        # Geocoding may return several candidates; only the best match is kept.
        if category is Category.LOCATION:
            entries = entries[:1]

        records = self._normalize(category, request, entries)
        stored = await self._persist_batch(category, key, records)
        log.info("provider_fetch_stored", rows=len(stored))
        return stored

    def _normalize(
        self,
        category: Category,
        request: str | LocationRef,
        entries: list[Any],
    ) -> list[Record]:
        """Map raw entries to records; a malformed entry fails the whole batch."""
        try:
            return [self._normalizer.normalize(category, entry, request) for entry in entries]
        except (ValidationError, AttributeError, TypeError) as exc:
            raise ProviderContractError(
                message=f"Malformed {category.value} entry: {exc}",
                provider_name=self._providers[category].get_provider_name(),
            ) from exc

    async def _read(
        self,
        category: Category,
        key: Any,
        log: structlog.BoundLogger,
    ) -> list[dict[str, Any]]:
        try:
            return await self._store.fetch(category, category.lookup_mode, key)
        except StoreError as exc:
            if self._strict_reads:
                raise
            log.warning("store_read_failed", error=str(exc))
            return []

    async def _evict(self, category: Category, location_id: int, log: structlog.BoundLogger) -> None:
        try:
            await self._store.evict(category, location_id)
        except StoreError as exc:
            log.warning("store_evict_failed", error=str(exc))

    async def _fetch(
        self,
        category: Category,
        request: str | LocationRef,
        log: structlog.BoundLogger,
    ) -> list[dict[str, Any]]:
        provider = self._providers.get(category)
        if provider is None:
            raise ConfigurationError(message=f"No provider registered for {category.value}")

        log.info("provider_fetch", provider=provider.get_provider_name())
        try:
            return await provider.fetch(request)
        except CityExplorerError as exc:
            log.warning(
                "provider_fetch_failed",
                provider=provider.get_provider_name(),
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise

    async def _persist_batch(
        self,
        category: Category,
        key: Any,
        records: list[Record],
    ) -> list[Record]:
        """Stamp the batch with one ``created_at`` and write it in one transaction."""
        created_at = self._freshness.now()
        update: dict[str, Any] = {"created_at": created_at}
        if category is not Category.LOCATION:
            update["location_id"] = key

        stamped = [record.model_copy(update=update) for record in records]
        rows = await self._store.persist_many(
            category,
            category.columns,
            [[getattr(record, column) for column in category.columns] for record in stamped],
            category.lookup_mode,
        )
        return [
            record.model_copy(update={"id": row["id"]}) if "id" in row else record
            for record, row in zip(stamped, rows)
        ]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _lookup_key(category: Category, request: str | LocationRef) -> Any:
        if category is Category.LOCATION:
            if isinstance(request, LocationRef):
                return request.search_query
            return request
        if not isinstance(request, LocationRef):
            raise TypeError(f"{category.value} lookups need a LocationRef, got {type(request).__name__}")
        return request.id

    @staticmethod
    def _to_record(category: Category, row: dict[str, Any]) -> Record:
        return RECORD_TYPES[category].model_validate(row)
