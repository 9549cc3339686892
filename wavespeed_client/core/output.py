"""Compact, token-efficient payloads for MCP tool responses."""

from pathlib import Path
from typing import Literal

import httpx
from pydantic import BaseModel

from wavespeed_client.core.images import save_images_from_outputs
from wavespeed_client.exceptions import ConfigErrorKind, ConfigurationError, MissingSecretError
from wavespeed_client.schemas.task import OperationResult

OutputMode = Literal["urls", "paths", "base64"]


class ImageOutput(BaseModel):
    index: int
    url: str | None = None
    path: str | None = None
    data: str | None = None


class MCPToolResponse(BaseModel):
    id: str
    status: Literal["completed", "failed"]
    images: list[ImageOutput]
    timing_ms: float | None = None
    error: str | None = None


class MCPError(BaseModel):
    error: str
    message: str
    fix: str | None = None


async def format_for_mcp(
    result: OperationResult,
    output_mode: OutputMode,
    output_dir: Path | str,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> MCPToolResponse:
    """Shape an operation result for an MCP client.

    Only the fields relevant to ``output_mode`` are filled; serialize with
    ``model_dump(exclude_none=True)``.
    """
    if not result.success:
        return MCPToolResponse(
            id=result.task_id or "unknown",
            status="failed",
            images=[],
            error=result.error,
        )

    if output_mode == "urls":
        images = [ImageOutput(index=i, url=url) for i, url in enumerate(result.outputs)]
    elif output_mode == "paths":
        saved = await save_images_from_outputs(
            result.outputs, output_dir, result.task_id, http_client=http_client
        )
        written = {path.name: path for path in saved.saved_paths}
        images = []
        for i, url in enumerate(result.outputs):
            path = written.get(f"{result.task_id}_{i + 1}.png")
            images.append(ImageOutput(index=i, url=url, path=str(path) if path else None))
    else:
        images = [ImageOutput(index=i, data=data) for i, data in enumerate(result.outputs)]

    return MCPToolResponse(
        id=result.task_id,
        status="completed",
        images=images,
        timing_ms=result.timing_ms,
    )


def create_mcp_error(code: str, message: str, fix: str | None = None) -> MCPError:
    return MCPError(error=code, message=message, fix=fix)


_CONFIG_ERROR_FIXES: dict[ConfigErrorKind, str] = {
    ConfigErrorKind.UNKNOWN_MODEL: "Check available models",
    ConfigErrorKind.INVALID_DEFAULT_COMMAND: "Fix defaults.commands in the config file",
    ConfigErrorKind.INVALID_DEFAULT_GLOBAL: "Fix defaults.globalModel in the config file",
    ConfigErrorKind.MISSING_BASE_URL: "Set apiBaseUrl for the model",
    ConfigErrorKind.MISSING_API_KEY_ENV: "Set apiKeyEnv for the model",
    ConfigErrorKind.MISSING_SECRET: "Set environment variable",
    ConfigErrorKind.INVALID_CONFIG: "Fix the config file",
}


def mcp_error_for(exc: ConfigurationError) -> MCPError:
    """Map a resolution error to its compact MCP error."""
    if isinstance(exc, MissingSecretError):
        return create_mcp_error(
            "no_api_key", f"{exc.env_name} not set", _CONFIG_ERROR_FIXES[exc.kind]
        )
    return create_mcp_error(exc.kind.value, exc.message, _CONFIG_ERROR_FIXES.get(exc.kind))
