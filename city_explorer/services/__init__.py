"""Cache-aside services: freshness, normalization, orchestration, fan-out."""

from city_explorer.services.cache_aside import CacheAside
from city_explorer.services.explorer_service import ExploreResult, ExplorerService
from city_explorer.services.freshness import (
    DEFAULT_TTLS,
    FreshnessPolicy,
    FreshnessStatus,
    FreshnessVerdict,
)
from city_explorer.services.normalizers import ResultNormalizer

__all__ = [
    "DEFAULT_TTLS",
    "CacheAside",
    "ExploreResult",
    "ExplorerService",
    "FreshnessPolicy",
    "FreshnessStatus",
    "FreshnessVerdict",
    "ResultNormalizer",
]
