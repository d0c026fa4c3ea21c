"""Per-category freshness windows for stored batches.

A batch of rows shares one fetch time, so the age of the whole batch is the
age of its first row.  A batch older than its category's window is stale and
must be evicted and refetched; a category with no window (location) never
goes stale.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping

import structlog

from city_explorer.models.category import Category
from city_explorer.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

DEFAULT_TTLS: dict[Category, float | None] = {
    Category.LOCATION: None,
    Category.WEATHER: 15,
    Category.EVENT: 6 * 60 * 60,
    Category.MOVIE: 30 * 24 * 60 * 60,
    Category.BUSINESS: 24 * 60 * 60,
}


class FreshnessStatus(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    FRESH = "fresh"
    STALE = "stale"
    EMPTY = "empty"


@dataclass(frozen=True)
class FreshnessVerdict:
    status: FreshnessStatus
    rows: list[dict[str, Any]] = field(default_factory=list)
    age: float | None = None


class FreshnessPolicy:
    """Decide whether stored rows may be served.

    Parameters
    ----------
    ttls:
        Seconds per category; ``None`` means the category never expires.
        Categories absent from the mapping fall back to ``DEFAULT_TTLS``.
    clock:
        Returns "now" as epoch seconds.  Injected for tests.
    """

    def __init__(
        self,
        ttls: Mapping[Category, float | None] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._ttls: dict[Category, float | None] = {**DEFAULT_TTLS, **(ttls or {})}
        self._clock = clock

    @classmethod
    def from_config(
        cls,
        config: Mapping[str, Any],
        clock: Callable[[], float] = time.time,
    ) -> FreshnessPolicy:
        """Build from the ``freshness`` section of the loaded config."""
        section = config.get("freshness", {}) or {}
        ttls = {Category(name): value for name, value in section.items()}
        return cls(ttls=ttls, clock=clock)

    def ttl(self, category: Category) -> float | None:
        return self._ttls.get(category)

    def now(self) -> float:
        return self._clock()

    def evaluate(self, category: Category, rows: list[dict[str, Any]]) -> FreshnessVerdict:
        """Classify *rows* of *category* as fresh, stale or empty."""
        if not rows:
            return FreshnessVerdict(FreshnessStatus.EMPTY)

        ttl = self._ttls.get(category)
        if ttl is None:
            return FreshnessVerdict(FreshnessStatus.FRESH, rows)

        created_at = rows[0].get("created_at")
        if created_at is None:
            # A row without a timestamp cannot be trusted.
            return FreshnessVerdict(FreshnessStatus.STALE)

        age = self._clock() - float(created_at)
        _logger.debug("freshness_check", category=category.value, age=round(age, 3), ttl=ttl)
        if age > ttl:
            return FreshnessVerdict(FreshnessStatus.STALE, age=age)
        return FreshnessVerdict(FreshnessStatus.FRESH, rows, age=age)
