"""Shared fixtures."""

from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest

from wavespeed_client.core.config import get_settings
from wavespeed_client.schemas.config import ModelDescriptor, ProviderType, WavespeedConfig


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached per process; rebuild them for every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def native_model() -> ModelDescriptor:
    return ModelDescriptor(
        id="seedream-v4",
        provider=ProviderType.WAVESPEED,
        base_url="https://api.test",
        api_key="test-key",
        api_key_env="WAVESPEED_API_KEY",
        model_name="bytedance/seedream-v4",
    )


@pytest.fixture
def make_config() -> Callable[..., WavespeedConfig]:
    """Build a config object from camelCase dicts, the way a config file spells them."""

    def _make(models: dict | None = None, defaults: dict | None = None) -> WavespeedConfig:
        data: dict = {"models": {k: {"id": k, **v} for k, v in (models or {}).items()}}
        if defaults is not None:
            data["defaults"] = defaults
        return WavespeedConfig.model_validate(data)

    return _make


@pytest.fixture
def mock_http() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Wrap a request handler in an AsyncClient backed by httpx.MockTransport."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make
