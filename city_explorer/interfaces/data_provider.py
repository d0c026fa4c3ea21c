"""Abstract base class for upstream data providers.

One concrete adapter exists per :class:`~city_explorer.models.category.Category`.
An adapter knows its provider's request shape and where the result list
lives in the response body; it does not normalize or persist anything.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from city_explorer.models.category import Category
from city_explorer.models.records import LocationRef


class IDataProvider(ABC):
    """Contract for a single-category upstream provider.

    Implementations issue exactly one outbound request per call, with no
    internal retry, through an injected ``httpx.AsyncClient``.
    """

    category: Category

    @abstractmethod
    async def fetch(self, request: str | LocationRef) -> list[dict[str, Any]]:
        """Fetch raw result entries for *request*.

        Parameters
        ----------
        request:
            The raw search text for geocoding, or a :class:`LocationRef`
            for every other category.

        Returns
        -------
        list[dict]
            The provider's result entries, unmodified.  An empty list means
            the provider answered successfully with no data.

        Raises
        ------
        city_explorer.utils.errors.UpstreamError
            On timeout, non-2xx status, or a malformed response body.
        city_explorer.utils.errors.ConfigurationError
            If the provider's API key is not configured.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured (e.g. has an API key)."""
