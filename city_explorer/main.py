"""City Explorer FastAPI application entry point.

Wires the record store, the upstream providers, the freshness policy and the
cache-aside services together via dependency injection.  Loads configuration
from ``.env`` and ``config/config.yaml`` and configures structured logging.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from city_explorer import __version__
from city_explorer.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from city_explorer.api.routes import router as api_router
from city_explorer.config.loader import load_config
from city_explorer.config.settings import Settings
from city_explorer.interfaces.data_provider import IDataProvider
from city_explorer.models.category import Category
from city_explorer.providers.business.yelp_provider import YelpBusinessProvider
from city_explorer.providers.events.eventbrite_provider import EventbriteProvider
from city_explorer.providers.geocoding.google_geocode_provider import GoogleGeocodeProvider
from city_explorer.providers.movies.tmdb_provider import TMDBMovieProvider
from city_explorer.providers.store.sqlite_record_store import SQLiteRecordStore
from city_explorer.providers.weather.darksky_provider import DarkSkyWeatherProvider
from city_explorer.services.cache_aside import CacheAside
from city_explorer.services.explorer_service import ExplorerService
from city_explorer.services.freshness import FreshnessPolicy
from city_explorer.services.normalizers import DEFAULT_IMAGE_BASE_URL, ResultNormalizer
from city_explorer.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=config["logging"]["level"],
    json_output=(config["app"]["env"] == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# DI assembly
# ---------------------------------------------------------------------------


def _build_providers(
    app_settings: Settings,
    app_config: dict[str, Any],
    http_client: httpx.AsyncClient,
) -> dict[Category, IDataProvider]:
    """One provider per category, all sharing *http_client*."""
    urls = app_config.get("providers", {})
    return {
        Category.LOCATION: GoogleGeocodeProvider(
            http_client=http_client,
            api_key=app_settings.geocode_api_key,
            base_url=urls.get("geocode_base_url"),
        ),
        Category.WEATHER: DarkSkyWeatherProvider(
            http_client=http_client,
            api_key=app_settings.weather_api_key,
            base_url=urls.get("weather_base_url"),
        ),
        Category.EVENT: EventbriteProvider(
            http_client=http_client,
            api_key=app_settings.eventbrite_api_key,
            base_url=urls.get("eventbrite_base_url"),
        ),
        Category.MOVIE: TMDBMovieProvider(
            http_client=http_client,
            api_key=app_settings.movie_api_key,
            base_url=urls.get("movie_base_url"),
        ),
        Category.BUSINESS: YelpBusinessProvider(
            http_client=http_client,
            api_key=app_settings.yelp_api_key,
            base_url=urls.get("yelp_base_url"),
        ),
    }


def _build_all(app_settings: Settings, app_config: dict[str, Any]) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    store_config = app_config["store"]
    http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(app_config["providers"]["timeout_seconds"]),
    )
    store = SQLiteRecordStore(db_path=store_config["database_path"])
    providers = _build_providers(app_settings, app_config, http_client)

    freshness_policy = FreshnessPolicy.from_config(app_config)
    normalizer = ResultNormalizer(
        image_base_url=app_config.get("providers", {}).get(
            "movie_image_base_url", DEFAULT_IMAGE_BASE_URL
        ),
    )
    cache_aside = CacheAside(
        store=store,
        providers=providers,
        freshness=freshness_policy,
        normalizer=normalizer,
        strict_reads=store_config["strict_reads"],
    )
    explorer_service = ExplorerService(
        cache=cache_aside,
        max_concurrency=app_config.get("explore", {}).get("max_concurrency", 4),
    )

    provider_registry = {c.value: p.is_available() for c, p in providers.items()}

    return {
        "http_client": http_client,
        "record_store": store,
        "freshness_policy": freshness_policy,
        "cache_aside": cache_aside,
        "explorer_service": explorer_service,
        "provider_registry": provider_registry,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Build components and create tables on startup, close the HTTP client on shutdown."""
    components = _build_all(settings, config)

    for key, value in components.items():
        setattr(application.state, key, value)

    await components["record_store"].initialize()

    missing = [name for name, ok in components["provider_registry"].items() if not ok]
    if missing:
        _logger.warning("providers_not_configured", categories=missing)

    _logger.info(
        "app_startup",
        version=__version__,
        environment=config["app"]["env"],
        database=config["store"]["database_path"],
    )

    yield

    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="City Explorer API",
        version=__version__,
        description=(
            "Resolve a place name to coordinates and serve its weather, events, "
            "movies and nearby businesses from a freshness-gated record store."
        ),
        lifespan=_lifespan,
    )

    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    application.include_router(api_router)
    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    app_config = config["app"]
    uvicorn.run(
        "city_explorer.main:app",
        host=app_config["host"],
        port=app_config["port"],
        reload=(app_config["env"] == "development"),
    )
