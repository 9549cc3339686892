"""Async HTTP client for the Wavespeed task API."""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any

import httpx
from pydantic import ValidationError

from wavespeed_client.core.config import get_settings
from wavespeed_client.core.resolver import NATIVE_BASE_URL
from wavespeed_client.exceptions import (
    APIConnectionError,
    APITimeoutError,
    NonJSONResponseError,
    TaskSubmissionError,
    UnexpectedResponseError,
)
from wavespeed_client.schemas.config import ModelDescriptor
from wavespeed_client.schemas.task import TaskRecord

logger = logging.getLogger(__name__)

GENERATE_PATH = "/api/v3/bytedance/seedream-v4"
EDIT_PATH = "/api/v3/bytedance/seedream-v4/edit"
GENERATE_SEQUENTIAL_PATH = "/api/v3/bytedance/seedream-v4/sequential"
EDIT_SEQUENTIAL_PATH = "/api/v3/bytedance/seedream-v4/edit-sequential"
MODELS_PATH = "/api/v3/models"


def result_path(task_id: str) -> str:
    return f"/api/v3/predictions/{task_id}/result"


class WavespeedClient:
    """Asynchronous client bound to one resolved model.

    Usage::

        async with WavespeedClient(model) as client:
            task = await client.submit_task(GENERATE_PATH, payload)
            task = await client.get_result(task.id)
    """

    def __init__(
        self,
        model: ModelDescriptor,
        *,
        timeout: float | httpx.Timeout | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.model = model
        self._base_url = model.base_url.rstrip("/")

        if http_client is not None:
            self._client = http_client
            self._owns_client = False
        else:
            self._client = httpx.AsyncClient(
                timeout=timeout if timeout is not None else _default_timeout(model),
            )
            self._owns_client = True

    async def close(self) -> None:
        if self._owns_client and hasattr(self, "_client"):
            await self._client.aclose()

    async def __aenter__(self) -> WavespeedClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Internal request handling
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str, *, json: Any = None) -> TaskRecord:
        url = f"{self._base_url}{path}"
        request = self._client.build_request(
            method,
            url,
            json=json,
            headers={
                "Authorization": f"Bearer {self.model.api_key}",
                "Accept": "application/json",
            },
        )
        logger.debug("HTTP %s %s (model=%s)", method, url, self.model.id)

        try:
            response = await self._client.send(request)
        except httpx.TimeoutException:
            raise APITimeoutError(request)
        except httpx.RequestError as exc:
            raise APIConnectionError(message=str(exc), request=request) from exc

        logger.debug("HTTP %s %s -> %d", method, url, response.status_code)
        body = _decode_json(response)

        if response.is_error:
            raise TaskSubmissionError.from_response(response, body)

        # Both ``{"data": {...}}`` and a bare task object are accepted.
        if isinstance(body, dict) and isinstance(body.get("data"), dict):
            body = body["data"]

        try:
            return TaskRecord.model_validate(body)
        except ValidationError as exc:
            raise UnexpectedResponseError(
                f"Unexpected task payload: {exc}", request=request
            ) from exc

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    async def submit_task(self, path: str, payload: dict[str, Any]) -> TaskRecord:
        """Submit a job payload to ``path`` and return the created task."""
        return await self._request("POST", path, json=payload)

    async def get_result(self, task_id: str) -> TaskRecord:
        """Fetch the current state of a task."""
        return await self._request("GET", result_path(task_id))


async def fetch_model_catalog(
    api_key: str,
    *,
    base_url: str = NATIVE_BASE_URL,
    http_client: httpx.AsyncClient | None = None,
) -> list[dict[str, Any]]:
    """Fetch the live catalogue of remote models.

    The catalogue endpoint is global rather than tied to a configured model,
    so it always targets the native API origin unless told otherwise.

    Returns:
        Raw model entries, or an empty list when the response has an
        unexpected shape.

    Raises:
        APIError: On transport failures or an HTTP error status.
    """
    url = f"{base_url.rstrip('/')}{MODELS_PATH}"
    client = http_client or httpx.AsyncClient(timeout=get_settings().request_timeout)
    request = client.build_request(
        "GET",
        url,
        headers={"Authorization": f"Bearer {api_key}", "Accept": "application/json"},
    )
    logger.debug("Fetching models from %s", url)

    try:
        try:
            response = await client.send(request)
        except httpx.TimeoutException:
            raise APITimeoutError(request)
        except httpx.RequestError as exc:
            raise APIConnectionError(message=str(exc), request=request) from exc
    finally:
        if http_client is None:
            await client.aclose()

    body = _decode_json(response)
    if response.is_error:
        raise TaskSubmissionError.from_response(response, body)

    # The API answers ``{"code": 200, "data": [...]}``.
    if isinstance(body, dict) and isinstance(body.get("data"), list):
        logger.info("Fetched %d models from %s", len(body["data"]), url)
        return body["data"]

    logger.warning("Unexpected model list response from %s, returning empty list", url)
    return []


def _decode_json(response: httpx.Response) -> Any:
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        logger.debug("Failed to parse JSON response: %s", response.text[:200])
        raise NonJSONResponseError(response)


def _default_timeout(model: ModelDescriptor) -> httpx.Timeout:
    timeout_ms = model.request_defaults.timeout_ms
    seconds = timeout_ms / 1000 if timeout_ms else get_settings().request_timeout
    return httpx.Timeout(timeout=seconds, connect=5.0)
