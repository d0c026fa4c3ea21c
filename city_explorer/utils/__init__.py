"""Shared utilities: error hierarchy, structured logging, concurrency helpers."""

from city_explorer.utils.errors import (
    CityExplorerError,
    ConfigurationError,
    NoDataError,
    ProviderContractError,
    StoreError,
    UpstreamError,
)
from city_explorer.utils.logging import configure_logging, get_logger

__all__ = [
    "CityExplorerError",
    "ConfigurationError",
    "NoDataError",
    "ProviderContractError",
    "StoreError",
    "UpstreamError",
    "configure_logging",
    "get_logger",
]
