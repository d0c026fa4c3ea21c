"""Record store adapters."""

from city_explorer.providers.store.sqlite_record_store import SQLiteRecordStore

__all__ = ["SQLiteRecordStore"]
