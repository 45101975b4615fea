"""Read-through cache helper on top of Django's cache framework (django-redis).

Pattern:
- Reads check the cache under a composite key; on miss the loader runs
  against the authoritative store and its result is stored with an
  operation-specific TTL.
- Writes invalidate direct keys and prefix patterns.

Every cache operation is best-effort.  Cache errors degrade to "no cache":
reads fall through to the loader and invalidation failures are logged and
reported as a degraded ``SideEffectResult``.  Nothing here raises into the
request path.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Mapping, Optional, TypeVar

import structlog
from django.core.cache import cache as default_cache

from shared.domain.results import SideEffectResult

logger = structlog.get_logger(__name__)

T = TypeVar("T")

_MISS = object()


def build_key(entity: str, *parts: Any, filters: Optional[Mapping[str, Any]] = None) -> str:
    """Compose ``entity:part1:part2[:{sorted filters json}]``."""
    segments = [entity, *(str(part) for part in parts)]
    if filters is not None:
        clean = {k: v for k, v in filters.items() if v is not None}
        segments.append(json.dumps(clean, sort_keys=True, default=str))
    return ":".join(segments)


class ReadThroughCache:
    """Memoizes store reads; invalidation is prefix-pattern aware."""

    def __init__(self, backend: Any = None) -> None:
        self._cache = backend if backend is not None else default_cache

    def get_or_set(self, key: str, loader: Callable[[], T], ttl: int) -> T:
        cached = self._safe_get(key)
        if cached is not _MISS:
            logger.debug("cache.hit", key=key)
            return cached

        logger.debug("cache.miss", key=key)
        value = loader()
        self._safe_set(key, value, ttl)
        return value

    def set(self, key: str, value: Any, ttl: int) -> SideEffectResult:
        return self._safe_set(key, value, ttl)

    def invalidate(self, *keys: str) -> SideEffectResult:
        if not keys:
            return SideEffectResult.ok("invalidate")
        try:
            self._cache.delete_many(list(keys))
        except Exception as exc:
            logger.warning("cache.invalidate_failed", keys=list(keys), error=str(exc))
            return SideEffectResult.degraded("invalidate", exc)
        return SideEffectResult.ok("invalidate")

    def invalidate_prefix(self, prefix: str) -> SideEffectResult:
        """Delete every key starting with ``prefix`` (SCAN + DEL)."""
        try:
            self._cache.delete_pattern(f"{prefix}*")
        except Exception as exc:
            logger.warning("cache.invalidate_prefix_failed", prefix=prefix, error=str(exc))
            return SideEffectResult.degraded("invalidate_prefix", exc)
        return SideEffectResult.ok("invalidate_prefix")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _safe_get(self, key: str) -> Any:
        try:
            return self._cache.get(key, _MISS)
        except Exception as exc:
            logger.warning("cache.read_failed", key=key, error=str(exc))
            return _MISS

    def _safe_set(self, key: str, value: Any, ttl: int) -> SideEffectResult:
        try:
            self._cache.set(key, value, ttl)
        except Exception as exc:
            logger.warning("cache.write_failed", key=key, error=str(exc))
            return SideEffectResult.degraded("set", exc)
        return SideEffectResult.ok("set")


def log_degraded(*results: SideEffectResult, **context: Any) -> None:
    """Emit one warning per degraded side effect."""
    for result in results:
        if result.is_degraded:
            logger.warning(
                "side_effect.degraded",
                operation=result.operation,
                error=result.error,
                **context,
            )


read_through_cache = ReadThroughCache()
