"""City Explorer -- cache-aside aggregator for location, weather, events, movies and businesses."""

__version__ = "0.1.0"
