"""Shared HTTP plumbing for the upstream data providers.

Every provider makes a single JSON GET through an injected
``httpx.AsyncClient`` and pulls one list out of the response body.  This base
class maps every transport-level failure onto
:class:`~city_explorer.utils.errors.UpstreamError` so the cache-aside layer
only ever sees the application's own exception types.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from city_explorer.interfaces.data_provider import IDataProvider
from city_explorer.utils.errors import ConfigurationError, UpstreamError

logger = structlog.get_logger(logger_name=__name__)


class HTTPDataProvider(IDataProvider):
    """Base for providers that fetch a JSON document over HTTPS.

    Parameters
    ----------
    http_client:
        Shared ``httpx.AsyncClient``, owned and closed by the application
        lifespan.  Its timeout bounds every upstream call.
    api_key:
        Credential for the upstream API.  Empty means "not configured".
    base_url:
        Scheme and host of the upstream API, overridable for tests and
        for API-compatible replacements.
    """

    _DEFAULT_BASE_URL: str = ""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str = "",
        base_url: str | None = None,
    ) -> None:
        self._client = http_client
        self._api_key = api_key
        self._base_url = (base_url or self._DEFAULT_BASE_URL).rstrip("/")

    def is_available(self) -> bool:
        return bool(self._api_key)

    def _require_api_key(self) -> str:
        if not self._api_key:
            raise ConfigurationError(
                message=f"No API key configured for {self.category.value} provider",
                provider_name=self.get_provider_name(),
            )
        return self._api_key

    async def _get_json(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """GET ``base_url + path`` and return the decoded JSON object."""
        url = f"{self._base_url}{path}"
        try:
            response = await self._client.get(url, params=params, headers=headers)
            response.raise_for_status()
            body = response.json()
        except httpx.TimeoutException as exc:
            raise UpstreamError(
                message=f"Timeout calling {self.get_provider_name()}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise UpstreamError(
                message=f"HTTP {exc.response.status_code} from {self.get_provider_name()}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(
                message=f"HTTP error calling {self.get_provider_name()}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except ValueError as exc:
            raise UpstreamError(
                message=f"Invalid JSON from {self.get_provider_name()}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not isinstance(body, dict):
            raise UpstreamError(
                message=f"Unexpected response body from {self.get_provider_name()}",
                provider_name=self.get_provider_name(),
            )
        return body

    def _entries(self, container: Any, key: str) -> list[dict[str, Any]]:
        """Return ``container[key]`` if it is a list, else fail as malformed."""
        entries = container.get(key) if isinstance(container, dict) else None
        if not isinstance(entries, list):
            raise UpstreamError(
                message=f"Response from {self.get_provider_name()} has no '{key}' list",
                provider_name=self.get_provider_name(),
            )
        logger.debug(
            "provider_entries",
            provider=self.get_provider_name(),
            count=len(entries),
        )
        return entries
