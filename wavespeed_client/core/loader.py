"""Config file discovery and parsing.

Looks for a project config in the working directory first, then for a
user config in the home directory. JSON and YAML are both accepted, and
string values written as ``${VAR}`` or ``${ENV:VAR}`` are replaced with
the environment value (empty string when unset).
"""

import json
import logging
import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from wavespeed_client.core.registry import get_registry_model
from wavespeed_client.exceptions import ConfigErrorKind, ConfigurationError
from wavespeed_client.schemas.config import ConfigLoadResult, WavespeedConfig

logger = logging.getLogger(__name__)

PROJECT_CONFIG_CANDIDATES: tuple[str, ...] = (
    ".wavespeedrc",
    ".wavespeedrc.json",
    ".wavespeedrc.yaml",
    ".wavespeedrc.yml",
    "wavespeed.config.json",
    "wavespeed.config.yaml",
    "wavespeed.config.yml",
)

HOME_CONFIG_CANDIDATES: tuple[str, ...] = (
    ".wavespeedrc",
    ".wavespeedrc.json",
    ".wavespeedrc.yaml",
    ".wavespeedrc.yml",
)

_ENV_REFERENCE = re.compile(r"^\$\{([^}]*)\}$")


def load_config(
    cwd: Path | None = None,
    home: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> ConfigLoadResult:
    """Find, parse and validate the active config file.

    Args:
        cwd: Project directory. Defaults to the current working directory.
        home: User home directory. Defaults to ``Path.home()``.
        environ: Environment used for ``${VAR}`` interpolation.

    Returns:
        The parsed config and its path, or an empty result when no file exists.

    Raises:
        ConfigurationError: The file cannot be parsed or fails validation.
    """
    env = os.environ if environ is None else environ
    config_path = _find_first_existing(cwd or Path.cwd(), PROJECT_CONFIG_CANDIDATES)
    if config_path is None:
        config_path = _find_first_existing(home or Path.home(), HOME_CONFIG_CANDIDATES)
    if config_path is None:
        return ConfigLoadResult()

    logger.debug("Loading config from %s", config_path)
    raw = config_path.read_text(encoding="utf-8")
    parsed = _parse(raw, config_path)

    if not isinstance(parsed, dict):
        raise _invalid(f"Invalid config structure in '{config_path}': expected an object")

    interpolated = _interpolate_env(parsed, config_path, env)
    config = _normalize(interpolated, config_path)
    _validate_defaults(config, config_path)

    return ConfigLoadResult(config=config, path=str(config_path))


def _find_first_existing(base_dir: Path, candidates: tuple[str, ...]) -> Path | None:
    for name in candidates:
        path = base_dir / name
        if path.is_file():
            return path
    return None


def _invalid(message: str) -> ConfigurationError:
    return ConfigurationError(message, kind=ConfigErrorKind.INVALID_CONFIG)


def _parse(raw: str, path: Path) -> Any:
    suffix = path.suffix
    if suffix in (".yaml", ".yml"):
        return _parse_yaml(raw, path)
    if suffix == ".json":
        return _parse_json(raw, path)

    # No extension (``.wavespeedrc``): JSON first, then YAML.
    try:
        return json.loads(raw)
    except ValueError:
        pass
    try:
        return yaml.safe_load(raw) or {}
    except yaml.YAMLError as e:
        raise _invalid(f"Invalid config file '{path}': not valid JSON or YAML ({e})") from e


def _parse_json(raw: str, path: Path) -> Any:
    try:
        return json.loads(raw)
    except ValueError as e:
        raise _invalid(f"Invalid JSON in config file '{path}': {e}") from e


def _parse_yaml(raw: str, path: Path) -> Any:
    try:
        return yaml.safe_load(raw) or {}
    except yaml.YAMLError as e:
        raise _invalid(f"Invalid YAML in config file '{path}': {e}") from e


def _interpolate_env(value: Any, path: Path, env: Mapping[str, str]) -> Any:
    if isinstance(value, str):
        match = _ENV_REFERENCE.match(value.strip())
        if not match:
            return value

        token = match.group(1)
        var_name = token[len("ENV:") :] if token.startswith("ENV:") else token
        if not var_name:
            raise _invalid(f"Invalid environment variable reference '${{{token}}}' in '{path}'")
        return env.get(var_name, "")

    if isinstance(value, list):
        return [_interpolate_env(item, path, env) for item in value]

    if isinstance(value, dict):
        return {key: _interpolate_env(item, path, env) for key, item in value.items()}

    return value


def _normalize(data: dict[str, Any], path: Path) -> WavespeedConfig:
    models = data.get("models")
    if models is not None and not isinstance(models, dict):
        raise _invalid(f"Invalid 'models' section in '{path}': expected an object")

    normalized_models: dict[str, Any] = {}
    for key, entry in (models or {}).items():
        if not isinstance(entry, dict):
            logger.warning("Skipping model '%s' in %s: expected an object", key, path)
            continue
        normalized_models[key] = {"id": key, **entry}

    try:
        return WavespeedConfig.model_validate({**data, "models": normalized_models})
    except ValidationError as e:
        raise _invalid(f"Invalid config '{path}': {e}") from e


def _is_known(model_id: str, config: WavespeedConfig) -> bool:
    return model_id in config.models or get_registry_model(model_id) is not None


def _validate_defaults(config: WavespeedConfig, path: Path) -> None:
    if config.defaults is None:
        return

    global_model = config.defaults.global_model
    if global_model and not _is_known(global_model, config):
        raise ConfigurationError(
            f"Invalid config '{path}': defaults.globalModel '{global_model}' "
            "does not exist in models",
            kind=ConfigErrorKind.INVALID_DEFAULT_GLOBAL,
        )

    for command, model_id in config.defaults.commands.items():
        if model_id and not _is_known(model_id, config):
            raise ConfigurationError(
                f"Invalid config '{path}': defaults.commands.{command} refers to unknown model "
                f"'{model_id}'",
                kind=ConfigErrorKind.INVALID_DEFAULT_COMMAND,
            )
