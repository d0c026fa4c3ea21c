"""Custom exception hierarchy for City Explorer.

All application exceptions inherit from :class:`CityExplorerError`, which
carries an optional ``provider_name`` so error handlers can identify which
store or upstream service (e.g. "sqlite", "google_geocode", "yelp") caused
the failure.

    CityExplorerError  (base -- catch-all for any City Explorer error)
    +-- StoreError              (record store connectivity / query failure)
    +-- UpstreamError           (provider transport / non-success failure)
    |   +-- ProviderContractError  (payload lacks a field an entity requires)
    +-- NoDataError             (provider succeeded but returned zero results)
    +-- ConfigurationError      (startup / missing config)

The HTTP layer converts every subclass into a generic 500 response, so the
distinction matters for logging and for the cache-aside read path, which
treats a ``StoreError`` during a read as a cache miss.
"""


class CityExplorerError(Exception):
    """Base exception for all City Explorer errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name``.  ``__str__`` prefixes the provider name in brackets,
    e.g. ``[yelp] HTTP 503 from upstream``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

class StoreError(CityExplorerError):
    """Raised when the record store cannot be reached or a query fails."""

    def __init__(
        self,
        message: str = "Record store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Upstream providers
# ---------------------------------------------------------------------------

class UpstreamError(CityExplorerError):
    """Raised when a provider call times out, returns non-2xx, or sends a malformed body."""

    def __init__(
        self,
        message: str = "Upstream provider request failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ProviderContractError(UpstreamError):
    """Raised when a provider payload lacks a field an entity cannot exist without.

    A geocoding result with no coordinates is the canonical case: it must
    fail rather than be stored.
    """

    def __init__(
        self,
        message: str = "Provider payload is missing a required field",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class NoDataError(CityExplorerError):
    """Raised when a provider answers successfully with an empty result set."""

    def __init__(
        self,
        message: str = "Provider returned no data",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class ConfigurationError(CityExplorerError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# User-facing messages
# ---------------------------------------------------------------------------

GENERIC_FAILURE_MESSAGE = "Sorry, something went wrong"
NO_DATA_MESSAGE = "Sorry, no data was found"


def public_message(exc: CityExplorerError) -> str:
    """Return the only text about *exc* that may be shown to a client."""
    if isinstance(exc, NoDataError):
        return NO_DATA_MESSAGE
    return GENERIC_FAILURE_MESSAGE
