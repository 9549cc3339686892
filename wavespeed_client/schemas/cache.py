"""Pydantic schemas for the model metadata cache."""

from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

# Bump when the persisted layout changes; older files are ignored on load.
CACHE_VERSION = 1

DEFAULT_MEMORY_TTL_MS = 5 * 60 * 1000
DEFAULT_FILE_TTL_MS = 24 * 60 * 60 * 1000
POPULAR_MODELS_TTL_MS = 24 * 60 * 60 * 1000

DESCRIPTION_MAX_LENGTH = 150


class CachedModel(BaseModel):
    """Compact projection of a remote catalogue entry."""

    model_config = ConfigDict(protected_namespaces=())

    model_id: str
    name: str = ""
    type: str = ""
    base_price: float = 0.0
    description: str | None = None


class ModelCacheSnapshot(BaseModel):
    """The unit held in memory and persisted to the cache file."""

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    version: int = CACHE_VERSION
    fetched_at: int = Field(
        ...,
        validation_alias=AliasChoices("fetchedAt", "fetched_at"),
        serialization_alias="fetchedAt",
        description="Epoch milliseconds of the live fetch",
    )
    ttl_ms: int = Field(
        ...,
        validation_alias=AliasChoices("ttlMs", "ttl_ms"),
        serialization_alias="ttlMs",
    )
    model_count: int = Field(
        ...,
        validation_alias=AliasChoices("modelCount", "model_count"),
        serialization_alias="modelCount",
    )
    type_index: dict[str, list[str]] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("typeIndex", "type_index"),
        serialization_alias="typeIndex",
    )
    models: list[CachedModel] = Field(default_factory=list)


class CacheStats(BaseModel):
    """Counters describing how the cache has been served."""

    hit_count: int = 0
    miss_count: int = 0
    last_fetch_ms: int = 0
    cache_age_ms: int = 0
    source: Literal["memory", "file", "api", "none"] = "none"


class ModelFilterOptions(BaseModel):
    """Criteria for ``ModelCache.filter_models``."""

    type: str | None = None
    search: str | None = None
    limit: int | None = None


class ModelSummary(BaseModel):
    """Catalogue overview returned for unfiltered listings."""

    total_models: int
    types: list[str]
    type_count: int
    type_counts: dict[str, int]


class RecommendedModel(BaseModel):
    """Popular model entry, enriched with the catalogue price when known."""

    id: str
    type: str
    desc: str
    price: float | None = None
