"""Two-tier cache of the remote model catalogue.

Lookups are served from memory while the in-memory snapshot is younger
than ``memory_ttl_ms``, then from the cache file while it is younger than
``file_ttl_ms``, and otherwise refreshed from the live API. A failed
refresh keeps serving whatever snapshot is already held and only raises
when there is nothing to serve.

Query helpers (``filter_models``, ``search_models``...) never do I/O and
return empty results until a snapshot has been loaded. Cache file reads
and writes run in a worker thread so they do not block the event loop.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Awaitable, Callable
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import ValidationError

from wavespeed_client.cache.popular import FALLBACK_RECOMMENDED, scrape_popular_models
from wavespeed_client.client import fetch_model_catalog
from wavespeed_client.core.config import get_settings
from wavespeed_client.schemas.cache import (
    CACHE_VERSION,
    DEFAULT_FILE_TTL_MS,
    DEFAULT_MEMORY_TTL_MS,
    DESCRIPTION_MAX_LENGTH,
    POPULAR_MODELS_TTL_MS,
    CachedModel,
    CacheStats,
    ModelCacheSnapshot,
    ModelFilterOptions,
    ModelSummary,
    RecommendedModel,
)

logger = logging.getLogger(__name__)

CACHE_FILE_NAME = "models-cache.json"

MIN_RECOMMENDED = 3
MAX_RECOMMENDED = 10

CatalogFetcher = Callable[[str], Awaitable[list[dict[str, Any]]]]
PopularFetcher = Callable[[], Awaitable[list[RecommendedModel]]]


def _now_ms() -> float:
    return time.time() * 1000


class ModelCache:
    """Memory + file cache of the live model catalogue.

    Usage:
        cache = ModelCache(cache_dir=Path("/tmp/wavespeed"))
        models = await cache.get_models(api_key)
        videos = cache.filter_models(type="text-to-video", limit=5)
    """

    def __init__(
        self,
        *,
        fetch_catalog: CatalogFetcher | None = None,
        fetch_popular: PopularFetcher | None = None,
        cache_dir: Path | None = None,
        memory_ttl_ms: int = DEFAULT_MEMORY_TTL_MS,
        file_ttl_ms: int = DEFAULT_FILE_TTL_MS,
        popular_ttl_ms: int = POPULAR_MODELS_TTL_MS,
        clock: Callable[[], float] = _now_ms,
    ) -> None:
        """Initialize the cache.

        Args:
            fetch_catalog: Coroutine returning raw catalogue entries for an API key.
            fetch_popular: Coroutine returning the popular model list.
            cache_dir: Directory for the cache file. Defaults to the settings value.
            memory_ttl_ms: Lifetime of the in-memory snapshot.
            file_ttl_ms: Lifetime of the persisted snapshot.
            popular_ttl_ms: Lifetime of the popular model list.
            clock: Wall clock in epoch milliseconds.
        """
        self._fetch_catalog = fetch_catalog or fetch_model_catalog
        self._fetch_popular = fetch_popular or scrape_popular_models
        self.cache_dir = cache_dir or get_settings().resolved_cache_dir()
        self.cache_file = self.cache_dir / CACHE_FILE_NAME
        self.memory_ttl_ms = memory_ttl_ms
        self.file_ttl_ms = file_ttl_ms
        self.popular_ttl_ms = popular_ttl_ms
        self._clock = clock

        self._snapshot: ModelCacheSnapshot | None = None
        self._memory_loaded_at: float | None = None
        self._popular: list[RecommendedModel] | None = None
        self._popular_fetched_at: float | None = None
        self._stats = CacheStats()

    # ------------------------------------------------------------------
    # Staleness
    # ------------------------------------------------------------------

    def _is_memory_stale(self) -> bool:
        if self._snapshot is None or self._memory_loaded_at is None:
            return True
        return self._clock() - self._memory_loaded_at > self.memory_ttl_ms

    def _is_file_stale(self, snapshot: ModelCacheSnapshot) -> bool:
        return self._clock() - snapshot.fetched_at > self.file_ttl_ms

    def _is_popular_stale(self) -> bool:
        if self._popular is None or self._popular_fetched_at is None:
            return True
        return self._clock() - self._popular_fetched_at > self.popular_ttl_ms

    # ------------------------------------------------------------------
    # File tier
    # ------------------------------------------------------------------

    def _load_from_file(self) -> ModelCacheSnapshot | None:
        if not self.cache_file.is_file():
            return None
        try:
            data = json.loads(self.cache_file.read_text(encoding="utf-8"))
            if not isinstance(data, dict) or data.get("version") != CACHE_VERSION:
                logger.debug("Ignoring cache file %s with incompatible version", self.cache_file)
                return None
            return ModelCacheSnapshot.model_validate(data)
        except (OSError, ValueError, ValidationError) as e:
            logger.debug("Ignoring unreadable cache file %s: %s", self.cache_file, e)
            return None

    def _save_to_file(self, snapshot: ModelCacheSnapshot) -> None:
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            self.cache_file.write_text(snapshot.model_dump_json(by_alias=True), encoding="utf-8")
        except OSError as e:
            logger.debug("Could not write cache file %s: %s", self.cache_file, e)

    def _adopt(self, snapshot: ModelCacheSnapshot) -> None:
        self._snapshot = snapshot
        self._memory_loaded_at = self._clock()

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def _build_snapshot(self, raw_models: list[dict[str, Any]]) -> ModelCacheSnapshot:
        models: list[CachedModel] = []
        for raw in raw_models:
            if not isinstance(raw, dict) or not raw.get("model_id"):
                continue
            description = raw.get("description")
            try:
                models.append(
                    CachedModel(
                        model_id=str(raw["model_id"]),
                        name=raw.get("name") or "",
                        type=raw.get("type") or "",
                        base_price=raw.get("base_price") or 0.0,
                        description=(
                            description[:DESCRIPTION_MAX_LENGTH]
                            if isinstance(description, str)
                            else None
                        ),
                    )
                )
            except ValidationError as e:
                logger.debug("Skipping malformed catalogue entry %s: %s", raw.get("model_id"), e)

        type_index: dict[str, list[str]] = {}
        for model in models:
            type_index.setdefault(model.type, []).append(model.model_id)

        return ModelCacheSnapshot(
            version=CACHE_VERSION,
            fetched_at=int(self._clock()),
            ttl_ms=self.file_ttl_ms,
            model_count=len(models),
            type_index=type_index,
            models=models,
        )

    async def refresh(self, api_key: str) -> None:
        """Replace the snapshot with a live fetch.

        Raises:
            Exception: Whatever the fetch raised, but only when no snapshot is held.
        """
        try:
            raw_models = await self._fetch_catalog(api_key)
        except Exception as e:
            if self._snapshot is not None:
                logger.warning("Model catalogue refresh failed, serving stale data: %s", e)
                return
            raise

        snapshot = self._build_snapshot(raw_models)
        self._adopt(snapshot)
        self._stats.last_fetch_ms = snapshot.fetched_at
        self._stats.source = "api"
        await asyncio.to_thread(self._save_to_file, snapshot)
        logger.info("Cached %d models", snapshot.model_count)

    def _current_models(self) -> list[CachedModel]:
        return list(self._snapshot.models) if self._snapshot is not None else []

    def _record_hit(self, source: Literal["memory", "file"]) -> None:
        self._stats.hit_count += 1
        self._stats.source = source
        if self._snapshot is not None:
            self._stats.cache_age_ms = int(self._clock() - self._snapshot.fetched_at)

    async def get_models(self, api_key: str, *, force_refresh: bool = False) -> list[CachedModel]:
        """Return the catalogue, refreshing it only when both tiers are stale."""
        if force_refresh:
            self._stats.miss_count += 1
            await self.refresh(api_key)
            return self._current_models()

        if self._snapshot is not None and not self._is_memory_stale():
            self._record_hit("memory")
            return self._current_models()

        file_snapshot = await asyncio.to_thread(self._load_from_file)
        if file_snapshot is not None and (
            self._snapshot is None or file_snapshot.fetched_at >= self._snapshot.fetched_at
        ):
            if not self._is_file_stale(file_snapshot):
                self._adopt(file_snapshot)
                self._record_hit("file")
                return self._current_models()
            if self._snapshot is None:
                # Stale, but better than nothing if the refresh below fails.
                self._adopt(file_snapshot)

        self._stats.miss_count += 1
        await self.refresh(api_key)
        return self._current_models()

    def invalidate(self) -> None:
        """Drop the in-memory snapshot and delete the cache file."""
        self._snapshot = None
        self._memory_loaded_at = None
        try:
            self.cache_file.unlink(missing_ok=True)
        except OSError as e:
            logger.debug("Could not delete cache file %s: %s", self.cache_file, e)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_models_by_type(self, model_type: str) -> list[CachedModel]:
        if self._snapshot is None:
            return []
        ids = set(self._snapshot.type_index.get(model_type, []))
        return [m for m in self._snapshot.models if m.model_id in ids]

    def search_models(self, query: str) -> list[CachedModel]:
        """Case-insensitive match on id, name or description."""
        if self._snapshot is None:
            return []
        return [m for m in self._snapshot.models if _matches(m, query.lower())]

    def filter_models(
        self, options: ModelFilterOptions | None = None, **criteria: Any
    ) -> list[CachedModel]:
        """Apply type, search and limit criteria to the current snapshot."""
        if self._snapshot is None:
            return []
        options = options or ModelFilterOptions(**criteria)

        results = self._snapshot.models
        if options.type:
            ids = set(self._snapshot.type_index.get(options.type, []))
            results = [m for m in results if m.model_id in ids]
        if options.search:
            query = options.search.lower()
            results = [m for m in results if _matches(m, query)]
        if options.limit and options.limit > 0:
            results = results[: options.limit]
        return list(results)

    def get_types(self) -> list[str]:
        if self._snapshot is None:
            return []
        return sorted(self._snapshot.type_index)

    def get_type_counts(self) -> dict[str, int]:
        if self._snapshot is None:
            return {}
        return {t: len(ids) for t, ids in self._snapshot.type_index.items()}

    def get_model_count(self) -> int:
        return self._snapshot.model_count if self._snapshot is not None else 0

    def get_summary(self) -> ModelSummary:
        types = self.get_types()
        return ModelSummary(
            total_models=self.get_model_count(),
            types=types,
            type_count=len(types),
            type_counts=self.get_type_counts(),
        )

    def has_data(self) -> bool:
        return self._snapshot is not None

    def get_stats(self) -> CacheStats:
        age = int(self._clock() - self._snapshot.fetched_at) if self._snapshot else 0
        return self._stats.model_copy(update={"cache_age_ms": age})

    # ------------------------------------------------------------------
    # Recommended models
    # ------------------------------------------------------------------

    async def refresh_popular_models(self) -> None:
        self._popular = await self._fetch_popular()
        self._popular_fetched_at = self._clock()

    def get_recommended_models(self) -> list[RecommendedModel]:
        """Popular models present in the catalogue, priced, padded from the fallback list.

        Without a catalogue snapshot the popular (or fallback) list is returned
        whole and unpriced.
        """
        recommended = self._popular if self._popular is not None else list(FALLBACK_RECOMMENDED)

        if self._snapshot is None:
            return [r.model_copy() for r in recommended]

        catalogue = {m.model_id: m for m in self._snapshot.models}
        results = [
            r.model_copy(update={"price": catalogue[r.id].base_price})
            for r in recommended
            if r.id in catalogue
        ]

        if len(results) < MIN_RECOMMENDED:
            seen = {r.id for r in results}
            results.extend(
                r.model_copy(update={"price": catalogue[r.id].base_price})
                for r in FALLBACK_RECOMMENDED
                if r.id in catalogue and r.id not in seen
            )

        return results[:MAX_RECOMMENDED]

    async def get_recommended_models_async(self) -> list[RecommendedModel]:
        """Like ``get_recommended_models`` but refreshes a stale popular list first."""
        if self._is_popular_stale():
            await self.refresh_popular_models()
        return self.get_recommended_models()


def _matches(model: CachedModel, query: str) -> bool:
    return (
        query in model.model_id.lower()
        or query in model.name.lower()
        or (model.description is not None and query in model.description.lower())
    )


@lru_cache
def get_model_cache() -> ModelCache:
    """Process-wide cache, built on first use."""
    return ModelCache()


def reset_model_cache() -> None:
    """Forget the process-wide cache so the next call builds a fresh one."""
    get_model_cache.cache_clear()
