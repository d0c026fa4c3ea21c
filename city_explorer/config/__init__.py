"""Configuration module -- exports Settings and load_config."""

from city_explorer.config.loader import load_config
from city_explorer.config.settings import Settings

__all__ = ["Settings", "load_config"]
