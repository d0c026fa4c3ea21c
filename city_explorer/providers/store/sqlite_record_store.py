"""SQLite-backed record store.

Persists every category to its own table in a local SQLite database
(``data/city_explorer.db`` by default).  Uses ``aiosqlite`` for async I/O and
opens one connection per operation, so a single store instance is safe to
share between concurrent requests.

All SQL is rendered once, at import time, from the static declarations on
:class:`~city_explorer.models.category.Category`.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Sequence

import aiosqlite
import structlog

from city_explorer.interfaces.record_store import IRecordStore
from city_explorer.models.category import Category, LookupMode
from city_explorer.utils.errors import StoreError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/city_explorer.db")

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS locations (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    search_query    TEXT    NOT NULL UNIQUE,
    formatted_query TEXT,
    latitude        REAL    NOT NULL,
    longitude       REAL    NOT NULL,
    created_at      REAL    NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS weathers (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    forecast    TEXT,
    time        TEXT,
    created_at  REAL    NOT NULL,
    location_id INTEGER NOT NULL REFERENCES locations(id)
);
""",
    """\
CREATE TABLE IF NOT EXISTS events (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    link        TEXT,
    name        TEXT,
    event_date  TEXT,
    summary     TEXT,
    created_at  REAL    NOT NULL,
    location_id INTEGER NOT NULL REFERENCES locations(id)
);
""",
    """\
CREATE TABLE IF NOT EXISTS movies (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    title         TEXT,
    overview      TEXT,
    average_votes REAL,
    total_votes   INTEGER,
    image_url     TEXT,
    popularity    REAL,
    released_on   TEXT,
    created_at    REAL    NOT NULL,
    location_id   INTEGER NOT NULL REFERENCES locations(id)
);
""",
    """\
CREATE TABLE IF NOT EXISTS yelps (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    name        TEXT,
    image_url   TEXT,
    price       TEXT,
    rating      REAL,
    url         TEXT,
    created_at  REAL    NOT NULL,
    location_id INTEGER NOT NULL REFERENCES locations(id)
);
""",
]

_CREATE_INDICES_SQL = [
    f"CREATE INDEX IF NOT EXISTS idx_{c.table}_location ON {c.table}(location_id);"
    for c in Category
    if c.lookup_mode is LookupMode.BY_LOCATION_ID
]


def _select_columns(category: Category) -> str:
    # Locations are returned with their id; batch rows are not.
    if category.lookup_mode is LookupMode.BY_SEARCH_QUERY:
        return ", ".join(("id", *category.columns))
    return ", ".join(category.columns)


_SELECT_SQL: dict[tuple[Category, LookupMode], str] = {
    (c, mode): (
        f"SELECT {_select_columns(c)} FROM {c.table} "
        f"WHERE {mode.value} = ? ORDER BY id;"
    )
    for c in Category
    for mode in LookupMode
    if mode.value in c.columns
}

_INSERT_SQL: dict[Category, str] = {
    c: (
        f"INSERT INTO {c.table} ({', '.join(c.columns)}) "
        f"VALUES ({', '.join('?' for _ in c.columns)});"
    )
    for c in Category
}

_DELETE_SQL: dict[Category, str] = {
    c: f"DELETE FROM {c.table} WHERE location_id = ?;"
    for c in Category
    if "location_id" in c.columns
}


class SQLiteRecordStore(IRecordStore):
    """SQLite-backed category record persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            await db.execute("PRAGMA foreign_keys = ON;")
            yield db

    async def initialize(self) -> None:
        """Create the five category tables and their indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            async with self._connect() as db:
                for table_sql in _CREATE_TABLES_SQL:
                    await db.execute(table_sql)
                for idx_sql in _CREATE_INDICES_SQL:
                    await db.execute(idx_sql)
                await db.commit()
        except aiosqlite.Error as exc:
            raise StoreError(
                message=f"Could not initialize record store: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("record_store_initialized", path=str(self._db_path))

    async def fetch(
        self,
        category: Category,
        lookup_mode: LookupMode,
        key: Any,
    ) -> list[dict[str, Any]]:
        """Return rows of *category* matching *key*, oldest first."""
        sql = _SELECT_SQL.get((category, lookup_mode))
        if sql is None:
            raise StoreError(
                message=f"{category.value} rows cannot be looked up {lookup_mode.name}",
                provider_name=self.get_provider_name(),
            )

        try:
            async with self._connect() as db:
                cursor = await db.execute(sql, (key,))
                rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise StoreError(
                message=f"Reading {category.table} failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        return [dict(r) for r in rows]

    async def persist(
        self,
        category: Category,
        columns: Sequence[str],
        values: Sequence[Any],
        lookup_mode: LookupMode,
    ) -> dict[str, Any]:
        """Insert one row.  Location inserts come back with their generated id."""
        rows = await self.persist_many(category, columns, [values], lookup_mode)
        return rows[0]

    async def persist_many(
        self,
        category: Category,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
        lookup_mode: LookupMode,
    ) -> list[dict[str, Any]]:
        """Insert a batch in a single transaction; a failed row rolls back the batch."""
        if tuple(columns) != category.columns:
            raise StoreError(
                message=(
                    f"Column list {list(columns)} does not match "
                    f"{category.table} columns {list(category.columns)}"
                ),
                provider_name=self.get_provider_name(),
            )
        for values in rows:
            if len(values) != len(columns):
                raise StoreError(
                    message=f"Expected {len(columns)} values for {category.table}, got {len(values)}",
                    provider_name=self.get_provider_name(),
                )

        row_ids: list[int | None] = []
        try:
            async with self._connect() as db:
                try:
                    for values in rows:
                        cursor = await db.execute(_INSERT_SQL[category], tuple(values))
                        row_ids.append(cursor.lastrowid)
                    await db.commit()
                except aiosqlite.Error:
                    await db.rollback()
                    raise
        except aiosqlite.Error as exc:
            raise StoreError(
                message=f"Writing {category.table} failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        records = []
        for values, row_id in zip(rows, row_ids):
            record = dict(zip(columns, values))
            if lookup_mode is LookupMode.BY_SEARCH_QUERY:
                record["id"] = row_id
            records.append(record)
        return records

    async def evict(self, category: Category, location_id: int) -> int:
        """Bulk-delete every *category* row for *location_id*."""
        sql = _DELETE_SQL.get(category)
        if sql is None:
            raise StoreError(
                message=f"{category.table} rows are never evicted",
                provider_name=self.get_provider_name(),
            )

        try:
            async with self._connect() as db:
                cursor = await db.execute(sql, (location_id,))
                removed = cursor.rowcount
                await db.commit()
        except aiosqlite.Error as exc:
            raise StoreError(
                message=f"Evicting from {category.table} failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info(
            "store_evicted",
            category=category.value,
            location_id=location_id,
            removed=removed,
        )
        return removed

    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""
        return "sqlite"
