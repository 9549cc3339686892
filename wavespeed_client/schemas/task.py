"""Pydantic schemas for remote tasks and operation results."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TaskStatus(str, Enum):
    """Remote task status. ``COMPLETED`` and ``SUCCEEDED`` are both terminal successes."""

    CREATED = "created"
    PROCESSING = "processing"
    COMPLETED = "completed"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


TERMINAL_STATUSES: frozenset[TaskStatus] = frozenset(
    {TaskStatus.COMPLETED, TaskStatus.SUCCEEDED, TaskStatus.FAILED}
)


class Timings(BaseModel):
    """Server-side timings for a task."""

    model_config = ConfigDict(extra="ignore")

    inference: float | None = None


class TaskRecord(BaseModel):
    """One remote job, replaced wholesale by every poll response."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Task id")
    status: TaskStatus = Field(..., description="Current task status")
    outputs: list[str] = Field(default_factory=list, description="Image URLs or base64 payloads")
    error: str | None = Field(None, description="Remote error message")
    has_nsfw_contents: list[bool] | None = Field(None, description="Per-output NSFW flags")
    timings: Timings | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def inference_ms(self) -> float | None:
        return self.timings.inference if self.timings else None

    @field_validator("outputs", mode="before")
    @classmethod
    def null_outputs_as_empty(cls, v: object) -> object:
        # The API sends ``null`` until a task has produced anything.
        return [] if v is None else v


class GenerateRequest(BaseModel):
    """Submission payload for text-to-image generation."""

    prompt: str
    size: str = "2048*2048"
    enable_base64_output: bool = False
    enable_sync_mode: bool = True
    model: str


class EditRequest(GenerateRequest):
    """Submission payload for image editing."""

    images: list[str]


class SequentialGenerateRequest(GenerateRequest):
    """Submission payload for sequential generation."""

    max_images: int = Field(1, ge=1, le=15)


class SequentialEditRequest(SequentialGenerateRequest):
    """Submission payload for sequential editing. ``images`` is optional."""

    images: list[str] | None = None


class OperationResult(BaseModel):
    """Uniform outcome of every operation orchestrator."""

    success: bool
    task_id: str
    status: Literal["completed", "failed"]
    outputs: list[str] = Field(default_factory=list)
    timing_ms: float | None = None
    nsfw_flags: list[bool] | None = None
    error: str | None = None
