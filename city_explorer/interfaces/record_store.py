"""Abstract base class for the keyed record store behind the cache-aside layer.

The store executes parameterized reads, inserts and bulk deletes against one
collection per :class:`~city_explorer.models.category.Category`.  It holds no
business logic: freshness, eviction decisions and provider calls all belong
to :class:`~city_explorer.services.cache_aside.CacheAside`.  Implementations
may use SQLite, PostgreSQL or anything that can filter by key and keep a
creation timestamp.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence

from city_explorer.models.category import Category, LookupMode


class IRecordStore(ABC):
    """Contract for category record persistence.

    All operations are async so that network-backed stores do not block the
    event loop.  Every failure other than "no rows" is raised as
    :class:`~city_explorer.utils.errors.StoreError`.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Create the category collections if they do not exist yet."""

    @abstractmethod
    async def fetch(
        self,
        category: Category,
        lookup_mode: LookupMode,
        key: Any,
    ) -> list[dict[str, Any]]:
        """Return the rows of *category* matching *key*, in insertion order.

        Parameters
        ----------
        category:
            Which collection to read.
        lookup_mode:
            ``BY_SEARCH_QUERY`` filters on ``search_query``;
            ``BY_LOCATION_ID`` filters on ``location_id``.
        key:
            The search text or the location id.

        Returns
        -------
        list[dict]
            Matching rows; an empty list when nothing is stored.
        """

    @abstractmethod
    async def persist(
        self,
        category: Category,
        columns: Sequence[str],
        values: Sequence[Any],
        lookup_mode: LookupMode,
    ) -> dict[str, Any]:
        """Insert one row and return it.

        Parameters
        ----------
        category:
            Target collection.
        columns:
            Column names; must equal ``category.columns`` exactly, in order.
        values:
            One value per column.
        lookup_mode:
            When ``BY_SEARCH_QUERY`` the returned row includes the generated
            ``id``; otherwise it does not.
        """

    @abstractmethod
    async def persist_many(
        self,
        category: Category,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
        lookup_mode: LookupMode,
    ) -> list[dict[str, Any]]:
        """Insert *rows* atomically and return them in order.

        Either every row is written or, on failure, none is.  The
        remaining parameters mean the same as for :meth:`persist`.
        """

    @abstractmethod
    async def evict(self, category: Category, location_id: int) -> int:
        """Delete every *category* row owned by *location_id*.

        Returns
        -------
        int
            Number of rows removed.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""
