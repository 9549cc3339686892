"""Pydantic schemas for the parsed configuration object and resolved models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

CommandName = Literal["generate", "edit", "generate-sequential", "edit-sequential"]

COMMAND_NAMES: tuple[CommandName, ...] = (
    "generate",
    "edit",
    "generate-sequential",
    "edit-sequential",
)


class ProviderType(str, Enum):
    """Provider tag of a model entry. ``WAVESPEED`` is the native provider."""

    WAVESPEED = "wavespeed"
    OPENAI = "openai"
    OPENAI_COMPATIBLE = "openai-compatible"
    CUSTOM = "custom"


class RequestDefaults(BaseModel):
    """Extra request parameters attached to a model alias."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    temperature: float | None = Field(None, description="Sampling temperature")
    max_tokens: int | None = Field(
        None,
        validation_alias=AliasChoices("maxTokens", "max_tokens"),
        description="Maximum tokens for chat/completion providers",
    )
    timeout_ms: int | None = Field(
        None,
        validation_alias=AliasChoices("timeoutMs", "timeout_ms"),
        description="Per-request timeout override in milliseconds",
    )
    extra_params: dict[str, str | int | float | bool] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("extraParams", "extra_params"),
        description="Scalar parameters passed through into the submission payload",
    )


class ModelAlias(BaseModel):
    """User-defined model entry from a config file."""

    model_config = ConfigDict(
        populate_by_name=True, frozen=True, extra="ignore", protected_namespaces=()
    )

    id: str | None = Field(None, description="Alias id, defaults to the mapping key")
    provider: ProviderType = Field(..., description="Provider tag")
    base_url: str | None = Field(
        None,
        validation_alias=AliasChoices("apiBaseUrl", "baseUrl", "base_url"),
        description="Absolute API origin",
    )
    api_key_env: str | None = Field(
        None,
        validation_alias=AliasChoices("apiKeyEnv", "apiKeyEnvName", "api_key_env"),
        description="Name of the environment variable holding the API key",
    )
    model_name: str | None = Field(
        None,
        validation_alias=AliasChoices("modelName", "model_name"),
        description="Remote model identifier passed through to the payload",
    )
    type: Literal["image", "chat", "completion"] = "image"
    request_defaults: RequestDefaults = Field(
        default_factory=RequestDefaults,
        validation_alias=AliasChoices("requestDefaults", "request_defaults"),
    )


class DefaultsConfig(BaseModel):
    """Default model selection rules."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    global_model: str | None = Field(
        None,
        validation_alias=AliasChoices("globalModel", "global_model"),
    )
    commands: dict[str, str] = Field(default_factory=dict)


class WavespeedConfig(BaseModel):
    """Parsed and validated configuration object."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    version: str | int | None = None
    models: dict[str, ModelAlias] = Field(default_factory=dict)
    defaults: DefaultsConfig | None = None
    env: dict[str, str] = Field(default_factory=dict)


class ConfigLoadResult(BaseModel):
    """Outcome of config file discovery."""

    config: WavespeedConfig | None = None
    path: str | None = None


@dataclass(frozen=True)
class ModelDescriptor:
    """Fully resolved, ready-to-use model configuration for one API call."""

    id: str
    provider: ProviderType
    base_url: str
    api_key: str = field(repr=False)
    api_key_env: str
    model_name: str | None = None
    type: str = "image"
    request_defaults: RequestDefaults = field(default_factory=RequestDefaults)
    sourced_from_config: bool = False


class ResolvedModelSummary(BaseModel):
    """Display summary of a configured model. Gaps are empty strings."""

    model_config = ConfigDict(protected_namespaces=())

    id: str
    provider: ProviderType
    base_url: str
    model_name: str | None = None
    api_key_env: str
    is_default_global: bool = False
    default_for_commands: list[str] = Field(default_factory=list)


class RegistryModelSummary(BaseModel):
    """Display summary of a built-in registry entry."""

    model_config = ConfigDict(protected_namespaces=())

    id: str
    name: str
    provider: ProviderType
    model_name: str
    description: str = ""
    docs_url: str | None = None
    capabilities: list[str] = Field(default_factory=list)
    is_recommended: bool = False


class ModelListing(BaseModel):
    """Result of ``list_models``: configured models plus the built-in registry."""

    models: list[ResolvedModelSummary]
    registry: list[RegistryModelSummary] = Field(default_factory=list)
    source: str | None = None
