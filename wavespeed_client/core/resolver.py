"""Model resolution.

Turns a command name, an optional explicit model id and the parsed
configuration into a fully populated :class:`ModelDescriptor`.

Precedence, first match wins:

1. Explicit model id (``--model`` flag or tool argument).
2. ``defaults.commands[<command>]``.
3. ``defaults.globalModel``.
4. The built-in native model.

Levels 1-3 look the id up in the config aliases first and then in the
static registry.
"""

import logging
import os
from collections.abc import Mapping

from wavespeed_client.core.registry import get_all_registry_models, get_registry_model
from wavespeed_client.exceptions import ConfigErrorKind, ConfigurationError, MissingSecretError
from wavespeed_client.schemas.config import (
    COMMAND_NAMES,
    CommandName,
    ModelAlias,
    ModelDescriptor,
    ModelListing,
    ProviderType,
    RegistryModelSummary,
    ResolvedModelSummary,
    WavespeedConfig,
)

logger = logging.getLogger(__name__)

NATIVE_BASE_URL = "https://api.wavespeed.ai"
NATIVE_API_KEY_ENV = "WAVESPEED_API_KEY"

BUILTIN_MODEL_ID = "seedream-v4"
BUILTIN_MODEL_NAME = "bytedance/seedream-v4"

_UNKNOWN_ID_MESSAGES: dict[ConfigErrorKind, str] = {
    ConfigErrorKind.UNKNOWN_MODEL: (
        "Unknown model '{model_id}'. Use --list-models to see available models."
    ),
    ConfigErrorKind.INVALID_DEFAULT_COMMAND: (
        "Invalid config: defaults.commands.{command} refers to unknown model '{model_id}'."
    ),
    ConfigErrorKind.INVALID_DEFAULT_GLOBAL: (
        "Invalid config: defaults.globalModel '{model_id}' does not exist in models."
    ),
}


def resolve_model(
    command_name: CommandName,
    explicit_model_id: str | None = None,
    config: WavespeedConfig | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> ModelDescriptor:
    """Resolve the model a command should run against.

    Args:
        command_name: One of the four operation commands.
        explicit_model_id: Model id given by the caller, if any.
        config: Parsed configuration object, if a config file was found.
        environ: Environment to read secrets from. Defaults to ``os.environ``.

    Returns:
        A fully populated model descriptor.

    Raises:
        MissingSecretError: The API key environment variable has no value.
        ConfigurationError: Unknown model id or incomplete model entry.
    """
    env = os.environ if environ is None else environ

    if explicit_model_id:
        return _lookup(explicit_model_id, config, ConfigErrorKind.UNKNOWN_MODEL, command_name, env)

    defaults = config.defaults if config is not None else None

    command_default = defaults.commands.get(command_name) if defaults is not None else None
    if command_default:
        return _lookup(
            command_default, config, ConfigErrorKind.INVALID_DEFAULT_COMMAND, command_name, env
        )

    global_default = defaults.global_model if defaults is not None else None
    if global_default:
        return _lookup(
            global_default, config, ConfigErrorKind.INVALID_DEFAULT_GLOBAL, command_name, env
        )

    api_key = env.get(NATIVE_API_KEY_ENV)
    if not api_key:
        raise MissingSecretError(
            f"Missing {NATIVE_API_KEY_ENV} for default Wavespeed model.",
            env_name=NATIVE_API_KEY_ENV,
        )

    logger.debug("Using built-in model %s for %s", BUILTIN_MODEL_ID, command_name)
    return ModelDescriptor(
        id=BUILTIN_MODEL_ID,
        provider=ProviderType.WAVESPEED,
        base_url=NATIVE_BASE_URL,
        api_key=api_key,
        api_key_env=NATIVE_API_KEY_ENV,
        model_name=BUILTIN_MODEL_NAME,
        sourced_from_config=False,
    )


def _lookup(
    model_id: str,
    config: WavespeedConfig | None,
    failure_kind: ConfigErrorKind,
    command_name: str,
    env: Mapping[str, str],
) -> ModelDescriptor:
    """Find ``model_id`` in the config aliases, then in the registry."""
    alias = config.models.get(model_id) if config is not None else None
    if alias is not None:
        return _normalize(model_id, alias, env, sourced_from_config=True)

    registry_model = get_registry_model(model_id)
    if registry_model is not None:
        return _normalize(model_id, registry_model.as_alias(), env, sourced_from_config=False)

    message = _UNKNOWN_ID_MESSAGES[failure_kind].format(model_id=model_id, command=command_name)
    raise ConfigurationError(message, kind=failure_kind)


def _normalize(
    model_id: str,
    alias: ModelAlias,
    env: Mapping[str, str],
    *,
    sourced_from_config: bool,
) -> ModelDescriptor:
    native = alias.provider is ProviderType.WAVESPEED

    base_url = alias.base_url
    if not base_url:
        if not native:
            raise ConfigurationError(
                f"Model '{model_id}' is missing apiBaseUrl.",
                kind=ConfigErrorKind.MISSING_BASE_URL,
            )
        base_url = NATIVE_BASE_URL

    api_key_env = alias.api_key_env
    if not api_key_env:
        if not native:
            raise ConfigurationError(
                f"Model '{model_id}' is missing apiKeyEnv.",
                kind=ConfigErrorKind.MISSING_API_KEY_ENV,
            )
        api_key_env = NATIVE_API_KEY_ENV

    api_key = env.get(api_key_env)
    if not api_key:
        raise MissingSecretError(
            f"Environment variable '{api_key_env}' is not set for model '{model_id}'.",
            env_name=api_key_env,
        )

    logger.debug(
        "Resolved model %s (provider=%s, base_url=%s, key_env=%s)",
        model_id,
        alias.provider.value,
        base_url,
        api_key_env,
    )
    return ModelDescriptor(
        id=model_id,
        provider=alias.provider,
        base_url=base_url,
        api_key=api_key,
        api_key_env=api_key_env,
        model_name=alias.model_name,
        type=alias.type,
        request_defaults=alias.request_defaults,
        sourced_from_config=sourced_from_config,
    )


def list_models(config: WavespeedConfig | None = None, source: str | None = None) -> ModelListing:
    """Summarize configured models for display.

    Never raises: native defaults are filled in, other gaps are left as
    empty strings so they stay visible.
    """
    if config is None:
        builtin = ResolvedModelSummary(
            id=BUILTIN_MODEL_ID,
            provider=ProviderType.WAVESPEED,
            base_url=NATIVE_BASE_URL,
            model_name=BUILTIN_MODEL_NAME,
            api_key_env=NATIVE_API_KEY_ENV,
            is_default_global=True,
            default_for_commands=list(COMMAND_NAMES),
        )
        return ModelListing(models=[builtin], registry=_registry_summaries(), source=source)

    global_default = config.defaults.global_model if config.defaults else None
    command_defaults = config.defaults.commands if config.defaults else {}

    summaries: list[ResolvedModelSummary] = []
    for model_id, alias in config.models.items():
        native = alias.provider is ProviderType.WAVESPEED
        base_url = alias.base_url or (NATIVE_BASE_URL if native else "")
        api_key_env = alias.api_key_env or (NATIVE_API_KEY_ENV if native else "")

        summaries.append(
            ResolvedModelSummary(
                id=model_id,
                provider=alias.provider,
                base_url=base_url,
                model_name=alias.model_name,
                api_key_env=api_key_env,
                is_default_global=global_default == model_id,
                default_for_commands=[
                    command for command, target in command_defaults.items() if target == model_id
                ],
            )
        )

    return ModelListing(models=summaries, registry=_registry_summaries(), source=source)


def _registry_summaries() -> list[RegistryModelSummary]:
    return [
        RegistryModelSummary(
            id=model.id,
            name=model.name,
            provider=model.provider,
            model_name=model.model_name,
            description=model.description,
            docs_url=model.docs_url,
            capabilities=sorted(model.capabilities),
            is_recommended=model.is_recommended,
        )
        for model in get_all_registry_models()
    ]
