"""Interfaces for the record store and the upstream data providers.

Business logic talks only to these abstract classes; concrete adapters live
in ``city_explorer/providers/`` and are injected in ``city_explorer/main.py``.

    Interface        ->  Concrete implementations
    -----------------------------------------------------------------
    IRecordStore     ->  SQLiteRecordStore
    IDataProvider    ->  GoogleGeocodeProvider, DarkSkyWeatherProvider,
                         EventbriteProvider, TMDBMovieProvider,
                         YelpBusinessProvider
"""

from city_explorer.interfaces.data_provider import IDataProvider
from city_explorer.interfaces.record_store import IRecordStore

__all__ = ["IDataProvider", "IRecordStore"]
