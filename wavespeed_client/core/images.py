"""Saving operation outputs to disk."""

import asyncio
import base64
import logging
from pathlib import Path

import httpx
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class SaveFailure(BaseModel):
    index: int
    reason: str


class SavedImages(BaseModel):
    """Paths written and per-output failures, in output order."""

    saved_paths: list[Path] = Field(default_factory=list)
    failed: list[SaveFailure] = Field(default_factory=list)


def is_url(value: str) -> bool:
    return value.startswith(("http://", "https://"))


def decode_base64_image(data: str) -> bytes:
    """Decode a raw base64 payload or a ``data:`` URI."""
    if data.startswith("data:"):
        marker = data.find("base64,")
        if marker != -1:
            data = data[marker + len("base64,") :]
    return base64.b64decode(data)


async def download_image(url: str, dest: Path, http_client: httpx.AsyncClient) -> None:
    response = await http_client.get(url)
    if response.is_error:
        raise httpx.HTTPStatusError(
            f"Download failed {response.status_code} {response.reason_phrase} for {url}",
            request=response.request,
            response=response,
        )
    dest.write_bytes(response.content)


async def _save_one(output: str, dest: Path, http_client: httpx.AsyncClient) -> Path:
    if is_url(output):
        await download_image(output, dest, http_client)
    else:
        dest.write_bytes(decode_base64_image(output))
    return dest


async def save_images_from_outputs(
    outputs: list[str],
    output_dir: Path | str,
    task_id: str,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> SavedImages:
    """Write every output as ``{task_id}_{n}.png`` under ``output_dir``.

    URL outputs are downloaded, anything else is treated as base64. A
    failing output is recorded in ``failed`` and does not stop the others.
    """
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)

    client = http_client or httpx.AsyncClient(timeout=60.0, follow_redirects=True)
    try:
        results = await asyncio.gather(
            *(
                _save_one(output, directory / f"{task_id}_{i + 1}.png", client)
                for i, output in enumerate(outputs)
            ),
            return_exceptions=True,
        )
    finally:
        if http_client is None:
            await client.aclose()

    saved = SavedImages()
    for i, result in enumerate(results):
        if isinstance(result, BaseException):
            logger.warning("Failed to save output #%d of task %s: %s", i + 1, task_id, result)
            saved.failed.append(SaveFailure(index=i, reason=str(result)))
        else:
            saved.saved_paths.append(result)
    return saved
