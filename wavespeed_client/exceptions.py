"""Wavespeed client exceptions."""

from __future__ import annotations

from enum import Enum
from typing import Any

import httpx


class WavespeedError(Exception):
    """Base exception for all Wavespeed client errors."""


class ConfigErrorKind(str, Enum):
    """Why a model could not be resolved or a config file was rejected."""

    UNKNOWN_MODEL = "unknown_model"
    INVALID_DEFAULT_COMMAND = "invalid_default_command"
    INVALID_DEFAULT_GLOBAL = "invalid_default_global"
    MISSING_BASE_URL = "missing_base_url"
    MISSING_API_KEY_ENV = "missing_api_key_env"
    MISSING_SECRET = "missing_secret"
    INVALID_CONFIG = "invalid_config"


class ConfigurationError(WavespeedError):
    """Raised when configuration cannot produce a usable model.

    ``exit_hint`` is the process exit code the outermost CLI/MCP adapter is
    expected to use: 3 for configuration problems, 2 for missing secrets.
    """

    message: str
    kind: ConfigErrorKind
    exit_hint: int

    def __init__(self, message: str, *, kind: ConfigErrorKind, exit_hint: int = 3) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.exit_hint = exit_hint


class MissingSecretError(ConfigurationError):
    """Raised when the configured API key environment variable has no value."""

    env_name: str

    def __init__(self, message: str, *, env_name: str) -> None:
        super().__init__(message, kind=ConfigErrorKind.MISSING_SECRET, exit_hint=2)
        self.env_name = env_name


class APIError(WavespeedError):
    """Raised when an API request fails."""

    message: str
    request: httpx.Request

    def __init__(self, message: str, *, request: httpx.Request) -> None:
        super().__init__(message)
        self.message = message
        self.request = request


class TaskSubmissionError(APIError):
    """Raised when the API returns an HTTP error status (4xx or 5xx)."""

    response: httpx.Response
    status_code: int
    body: Any

    def __init__(self, message: str, *, response: httpx.Response, body: Any = None) -> None:
        super().__init__(message, request=response.request)
        self.response = response
        self.status_code = response.status_code
        self.body = body

    @classmethod
    def from_response(cls, response: httpx.Response, body: Any = None) -> TaskSubmissionError:
        detail: Any = None
        if isinstance(body, dict):
            detail = body.get("error") or body.get("message")
        if not detail:
            detail = response.reason_phrase or response.text

        message = f"HTTP {response.status_code}: {detail}"

        status_to_class: dict[int, type[TaskSubmissionError]] = {
            400: BadRequestError,
            401: AuthenticationError,
            403: PermissionDeniedError,
            404: NotFoundError,
            429: RateLimitError,
        }

        error_cls = status_to_class.get(response.status_code, TaskSubmissionError)
        if error_cls is TaskSubmissionError and response.status_code >= 500:
            error_cls = InternalServerError

        return error_cls(message, response=response, body=body)


class NonJSONResponseError(TaskSubmissionError):
    """Raised when the API answers with a body that is not JSON."""

    def __init__(self, response: httpx.Response) -> None:
        super().__init__(
            f"Non JSON response with status {response.status_code}",
            response=response,
            body=response.text,
        )


class APIConnectionError(APIError):
    """Raised when the client cannot connect to the API."""

    def __init__(self, *, message: str = "Connection error.", request: httpx.Request) -> None:
        super().__init__(message, request=request)


class APITimeoutError(APIConnectionError):
    """Raised when an API request times out."""

    def __init__(self, request: httpx.Request) -> None:
        super().__init__(message="Request timed out.", request=request)


class UnexpectedResponseError(WavespeedError):
    """Raised when a successful response does not match the task schema.

    Not an :class:`APIError`: re-fetching the same task will not fix the
    payload, so polling does not retry it.
    """

    message: str
    request: httpx.Request

    def __init__(self, message: str, *, request: httpx.Request) -> None:
        super().__init__(message)
        self.message = message
        self.request = request


class PollTimeoutError(WavespeedError):
    """Raised when a task does not reach a terminal status in time."""

    task_id: str
    max_duration: float

    def __init__(self, task_id: str, max_duration: float) -> None:
        super().__init__(f"Polling timed out after {max_duration:g}s for request {task_id}")
        self.task_id = task_id
        self.max_duration = max_duration


class BadRequestError(TaskSubmissionError):
    """HTTP 400."""


class AuthenticationError(TaskSubmissionError):
    """HTTP 401."""


class PermissionDeniedError(TaskSubmissionError):
    """HTTP 403."""


class NotFoundError(TaskSubmissionError):
    """HTTP 404."""


class RateLimitError(TaskSubmissionError):
    """HTTP 429."""


class InternalServerError(TaskSubmissionError):
    """HTTP 5xx."""
