"""Application settings loaded from environment variables via pydantic-settings.

Values are read from (highest priority first):

  1. Environment variables, e.g. ``YELP_API_KEY=abc123``
  2. A ``.env`` file in the working directory

Field ``geocode_api_key`` maps to ``GEOCODE_API_KEY`` and so on.  An empty
API key means "not configured": the provider is still registered, and every
call to it fails with a ``ConfigurationError`` that surfaces as a generic
500 for that one category.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """City Explorer application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Upstream providers ===
    geocode_api_key: str = ""
    weather_api_key: str = ""
    eventbrite_api_key: str = ""
    movie_api_key: str = ""
    yelp_api_key: str = ""

    # Outbound request timeout; a provider that does not answer in time
    # fails with UpstreamError.
    provider_timeout_seconds: float = 8.0

    # === Record store ===
    database_path: str = "data/city_explorer.db"
    # When True a store failure during the initial read aborts the request
    # instead of falling through to the provider.
    strict_store_reads: bool = False

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 3000
    app_env: str = "development"
    log_level: str = "INFO"
