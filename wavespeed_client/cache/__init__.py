"""Model metadata cache."""

from wavespeed_client.cache.model_cache import ModelCache, get_model_cache, reset_model_cache
from wavespeed_client.cache.popular import FALLBACK_RECOMMENDED, scrape_popular_models

__all__ = [
    "FALLBACK_RECOMMENDED",
    "ModelCache",
    "get_model_cache",
    "reset_model_cache",
    "scrape_popular_models",
]
