"""Wavespeed client: model resolution, task polling and image operations."""

from wavespeed_client.exceptions import (
    APIConnectionError,
    APIError,
    APITimeoutError,
    ConfigErrorKind,
    ConfigurationError,
    MissingSecretError,
    NonJSONResponseError,
    PollTimeoutError,
    TaskSubmissionError,
    UnexpectedResponseError,
    WavespeedError,
)
from wavespeed_client.client import WavespeedClient, fetch_model_catalog
from wavespeed_client.core.loader import load_config
from wavespeed_client.core.resolver import list_models, resolve_model
from wavespeed_client.core.polling import PollPolicy, poll_until_done
from wavespeed_client.core.operations import (
    EditParams,
    EditSequentialParams,
    GenerateParams,
    GenerateSequentialParams,
    edit_image,
    edit_sequential,
    generate_image,
    generate_sequential,
)
from wavespeed_client.cache import ModelCache, get_model_cache, reset_model_cache

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "WavespeedClient",
    "fetch_model_catalog",
    "load_config",
    "resolve_model",
    "list_models",
    "PollPolicy",
    "poll_until_done",
    "GenerateParams",
    "EditParams",
    "GenerateSequentialParams",
    "EditSequentialParams",
    "generate_image",
    "edit_image",
    "generate_sequential",
    "edit_sequential",
    "ModelCache",
    "get_model_cache",
    "reset_model_cache",
    "WavespeedError",
    "ConfigErrorKind",
    "ConfigurationError",
    "MissingSecretError",
    "APIError",
    "APIConnectionError",
    "APITimeoutError",
    "TaskSubmissionError",
    "NonJSONResponseError",
    "PollTimeoutError",
    "UnexpectedResponseError",
]
