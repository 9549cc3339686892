"""Image operations: generate, edit, generate-sequential, edit-sequential.

Each operation builds its payload, submits it, polls it to a terminal
status and reports an :class:`OperationResult`. Task execution failures
(HTTP errors, network errors, timeouts, remote ``failed`` status) come
back as ``success=False`` results. Model resolution errors are raised.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx
from pydantic import BaseModel

from wavespeed_client.client import (
    EDIT_PATH,
    EDIT_SEQUENTIAL_PATH,
    GENERATE_PATH,
    GENERATE_SEQUENTIAL_PATH,
    WavespeedClient,
)
from wavespeed_client.core.polling import PollPolicy, poll_until_done
from wavespeed_client.core.resolver import resolve_model
from wavespeed_client.schemas.config import CommandName, ModelDescriptor, WavespeedConfig
from wavespeed_client.schemas.task import (
    EditRequest,
    GenerateRequest,
    OperationResult,
    SequentialEditRequest,
    SequentialGenerateRequest,
    TaskStatus,
)

logger = logging.getLogger(__name__)

DEFAULT_SIZE = "2048*2048"


@dataclass
class BaseOperationParams:
    """Parameters shared by all operations.

    Pass a resolved ``model``, or leave it unset and let the operation
    resolve one from ``model_id`` and ``config``.
    """

    prompt: str
    size: str = DEFAULT_SIZE
    base64_output: bool = False
    sync_mode: bool = True
    model: ModelDescriptor | None = None
    model_id: str | None = None
    config: WavespeedConfig | None = None
    http_client: httpx.AsyncClient | None = None
    poll_policy: PollPolicy | None = None


@dataclass
class GenerateParams(BaseOperationParams):
    pass


@dataclass
class EditParams(BaseOperationParams):
    images: list[str] = field(default_factory=list)


@dataclass
class GenerateSequentialParams(BaseOperationParams):
    max_images: int = 1


@dataclass
class EditSequentialParams(BaseOperationParams):
    images: list[str] | None = None
    max_images: int = 1


def _ensure_model(params: BaseOperationParams, command: CommandName) -> ModelDescriptor:
    if params.model is not None:
        return params.model
    return resolve_model(command, params.model_id, params.config)


def _payload(request: BaseModel, model: ModelDescriptor) -> dict[str, Any]:
    payload: dict[str, Any] = dict(model.request_defaults.extra_params)
    payload.update(request.model_dump(exclude_none=True))
    return payload


async def _run_task(
    operation: str,
    path: str,
    payload: dict[str, Any],
    model: ModelDescriptor,
    params: BaseOperationParams,
    failure_message: str,
) -> OperationResult:
    task_id = ""
    try:
        async with WavespeedClient(model, http_client=params.http_client) as client:
            created = await client.submit_task(path, payload)
            task_id = created.id
            logger.info(
                "%s: submitted task %s (model=%s, status=%s)",
                operation,
                created.id,
                model.id,
                created.status.value,
            )
            final = await poll_until_done(client, created.id, params.poll_policy)
    except Exception as e:
        logger.error("%s: task %s failed: %s", operation, task_id or "<unsubmitted>", e)
        return OperationResult(
            success=False,
            task_id=task_id,
            status="failed",
            error=str(e),
        )

    if final.status is TaskStatus.FAILED:
        logger.error("%s: task %s failed: %s", operation, final.id, final.error or "Unknown error")
        return OperationResult(
            success=False,
            task_id=final.id,
            status="failed",
            error=final.error or failure_message,
        )

    logger.info("%s: task %s completed, outputs=%d", operation, final.id, len(final.outputs))
    return OperationResult(
        success=True,
        task_id=final.id,
        status="completed",
        outputs=final.outputs,
        timing_ms=final.inference_ms,
        nsfw_flags=final.has_nsfw_contents,
    )


async def generate_image(params: GenerateParams) -> OperationResult:
    """Text-to-image generation."""
    model = _ensure_model(params, "generate")
    request = GenerateRequest(
        prompt=params.prompt,
        size=params.size,
        enable_base64_output=params.base64_output,
        enable_sync_mode=params.sync_mode,
        model=model.model_name or model.id,
    )
    return await _run_task(
        "generate", GENERATE_PATH, _payload(request, model), model, params, "Task failed"
    )


async def edit_image(params: EditParams) -> OperationResult:
    """Image-to-image editing."""
    model = _ensure_model(params, "edit")
    request = EditRequest(
        prompt=params.prompt,
        images=params.images,
        size=params.size,
        enable_base64_output=params.base64_output,
        enable_sync_mode=params.sync_mode,
        model=model.model_name or model.id,
    )
    return await _run_task(
        "edit", EDIT_PATH, _payload(request, model), model, params, "Edit failed"
    )


async def generate_sequential(params: GenerateSequentialParams) -> OperationResult:
    """Generate a set of consistent images."""
    model = _ensure_model(params, "generate-sequential")
    request = SequentialGenerateRequest(
        prompt=params.prompt,
        max_images=params.max_images,
        size=params.size,
        enable_base64_output=params.base64_output,
        enable_sync_mode=params.sync_mode,
        model=model.model_name or model.id,
    )
    return await _run_task(
        "generate-sequential",
        GENERATE_SEQUENTIAL_PATH,
        _payload(request, model),
        model,
        params,
        "Generation failed",
    )


async def edit_sequential(params: EditSequentialParams) -> OperationResult:
    """Edit a set of images while keeping them consistent."""
    model = _ensure_model(params, "edit-sequential")
    request = SequentialEditRequest(
        prompt=params.prompt,
        images=params.images or None,
        max_images=params.max_images,
        size=params.size,
        enable_base64_output=params.base64_output,
        enable_sync_mode=params.sync_mode,
        model=model.model_name or model.id,
    )
    return await _run_task(
        "edit-sequential",
        EDIT_SEQUENTIAL_PATH,
        _payload(request, model),
        model,
        params,
        "Edit failed",
    )
