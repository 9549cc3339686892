"""Tests for model resolution."""

from __future__ import annotations

import pytest

from wavespeed_client.core.registry import get_all_registry_models, get_registry_model
from wavespeed_client.core.resolver import (
    BUILTIN_MODEL_ID,
    BUILTIN_MODEL_NAME,
    NATIVE_API_KEY_ENV,
    NATIVE_BASE_URL,
    list_models,
    resolve_model,
)
from wavespeed_client.exceptions import ConfigErrorKind, ConfigurationError, MissingSecretError
from wavespeed_client.schemas.config import COMMAND_NAMES, ProviderType


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def layered_config(make_config):
    """Config with a global default and one per-command default."""
    return make_config(
        models={
            "fast": {"provider": "wavespeed", "modelName": "bytedance/seedream-v3.1"},
            "editor": {
                "provider": "custom",
                "apiBaseUrl": "https://edit.test",
                "apiKeyEnv": "EDIT_KEY",
            },
            "other": {
                "provider": "openai-compatible",
                "baseUrl": "https://other.test/v1",
                "apiKeyEnv": "OTHER_KEY",
                "modelName": "gpt-image-1",
            },
        },
        defaults={"globalModel": "fast", "commands": {"edit": "editor"}},
    )


@pytest.fixture
def env():
    return {
        NATIVE_API_KEY_ENV: "native-secret",
        "EDIT_KEY": "edit-secret",
        "OTHER_KEY": "other-secret",
    }


# ============================================================================
# Built-in default
# ============================================================================


class TestBuiltinModel:
    """Tests for resolution without any configuration."""

    def test_builtin_model_with_key(self) -> None:
        """Test the built-in native model is used when nothing is configured."""
        model = resolve_model("generate", environ={NATIVE_API_KEY_ENV: "k"})

        assert model.id == BUILTIN_MODEL_ID
        assert model.provider is ProviderType.WAVESPEED
        assert model.base_url == NATIVE_BASE_URL
        assert model.api_key == "k"
        assert model.api_key_env == NATIVE_API_KEY_ENV
        assert model.model_name == BUILTIN_MODEL_NAME
        assert model.sourced_from_config is False

    def test_builtin_model_without_key(self) -> None:
        """Test a missing native key raises MissingSecretError with exit hint 2."""
        with pytest.raises(MissingSecretError) as exc_info:
            resolve_model("generate", environ={})

        assert exc_info.value.env_name == NATIVE_API_KEY_ENV
        assert exc_info.value.exit_hint == 2
        assert exc_info.value.kind is ConfigErrorKind.MISSING_SECRET

    def test_empty_key_counts_as_missing(self) -> None:
        """Test an empty environment value is treated as unset."""
        with pytest.raises(MissingSecretError):
            resolve_model("edit", environ={NATIVE_API_KEY_ENV: ""})

    def test_config_without_defaults_uses_builtin(self, make_config) -> None:
        """Test declared aliases are not used unless something selects them."""
        config = make_config(models={"x": {"provider": "wavespeed"}})

        model = resolve_model("generate", None, config, environ={NATIVE_API_KEY_ENV: "k"})

        assert model.id == BUILTIN_MODEL_ID

    def test_api_key_is_not_in_repr(self) -> None:
        """Test the secret never shows up in the descriptor repr."""
        model = resolve_model("generate", environ={NATIVE_API_KEY_ENV: "super-secret"})

        assert "super-secret" not in repr(model)


# ============================================================================
# Precedence
# ============================================================================


class TestPrecedence:
    """Tests for explicit > command default > global default > built-in."""

    def test_explicit_id_wins(self, layered_config, env) -> None:
        """Test an explicit model id overrides both defaults."""
        model = resolve_model("edit", "other", layered_config, environ=env)

        assert model.id == "other"
        assert model.base_url == "https://other.test/v1"
        assert model.api_key == "other-secret"
        assert model.model_name == "gpt-image-1"

    def test_command_default_beats_global(self, layered_config, env) -> None:
        """Test defaults.commands wins over defaults.globalModel."""
        model = resolve_model("edit", None, layered_config, environ=env)

        assert model.id == "editor"
        assert model.provider is ProviderType.CUSTOM
        assert model.api_key == "edit-secret"

    def test_global_default_used_without_command_default(self, layered_config, env) -> None:
        """Test commands without their own default use the global default."""
        model = resolve_model("generate", None, layered_config, environ=env)

        assert model.id == "fast"
        assert model.model_name == "bytedance/seedream-v3.1"

    def test_resolution_is_deterministic(self, layered_config, env) -> None:
        """Test the same inputs always produce the same descriptor."""
        first = resolve_model("generate-sequential", None, layered_config, environ=env)
        second = resolve_model("generate-sequential", None, layered_config, environ=env)

        assert first == second

    def test_global_default_scenario(self, make_config) -> None:
        """Test a custom alias selected as global default resolves from config."""
        config = make_config(
            models={
                "alt": {"provider": "custom", "baseUrl": "https://x.test", "apiKeyEnv": "ALT_KEY"}
            },
            defaults={"globalModel": "alt"},
        )

        model = resolve_model("generate", None, config, environ={"ALT_KEY": "secret1"})

        assert model.id == "alt"
        assert model.provider is ProviderType.CUSTOM
        assert model.base_url == "https://x.test"
        assert model.api_key == "secret1"
        assert model.sourced_from_config is True


# ============================================================================
# Unknown ids
# ============================================================================


class TestUnknownIds:
    """Tests for ids that match neither an alias nor a registry entry."""

    def test_unknown_explicit_id(self, layered_config, env) -> None:
        """Test an unknown explicit id is an unknown_model error."""
        with pytest.raises(ConfigurationError) as exc_info:
            resolve_model("generate", "nope", layered_config, environ=env)

        assert exc_info.value.kind is ConfigErrorKind.UNKNOWN_MODEL
        assert exc_info.value.exit_hint == 3
        assert "nope" in exc_info.value.message

    def test_unknown_explicit_id_without_config(self, env) -> None:
        """Test an explicit id is looked up even when no config exists."""
        with pytest.raises(ConfigurationError) as exc_info:
            resolve_model("generate", "nope", None, environ=env)

        assert exc_info.value.kind is ConfigErrorKind.UNKNOWN_MODEL

    def test_invalid_command_default(self, make_config, env) -> None:
        """Test a command default pointing nowhere is reported as such."""
        config = make_config(defaults={"commands": {"edit": "ghost"}})

        with pytest.raises(ConfigurationError) as exc_info:
            resolve_model("edit", None, config, environ=env)

        assert exc_info.value.kind is ConfigErrorKind.INVALID_DEFAULT_COMMAND
        assert "defaults.commands.edit" in exc_info.value.message

    def test_invalid_global_default(self, make_config, env) -> None:
        """Test a global default pointing nowhere is reported as such."""
        config = make_config(defaults={"globalModel": "ghost"})

        with pytest.raises(ConfigurationError) as exc_info:
            resolve_model("generate", None, config, environ=env)

        assert exc_info.value.kind is ConfigErrorKind.INVALID_DEFAULT_GLOBAL
        assert "ghost" in exc_info.value.message


# ============================================================================
# Registry lookup
# ============================================================================


class TestRegistryLookup:
    """Tests for ids resolved from the built-in registry."""

    def test_registry_id_without_config(self, env) -> None:
        """Test a registry id resolves without declaring an alias."""
        model = resolve_model("generate", "seedream-v3.1", None, environ=env)

        assert model.id == "seedream-v3.1"
        assert model.model_name == "bytedance/seedream-v3.1"
        assert model.base_url == NATIVE_BASE_URL
        assert model.api_key == "native-secret"
        assert model.sourced_from_config is False

    def test_alias_shadows_registry(self, make_config, env) -> None:
        """Test a config alias with a registry id takes precedence."""
        config = make_config(
            models={
                "seedream-v4": {
                    "provider": "custom",
                    "apiBaseUrl": "https://proxy.test",
                    "apiKeyEnv": "OTHER_KEY",
                }
            }
        )

        model = resolve_model("generate", "seedream-v4", config, environ=env)

        assert model.base_url == "https://proxy.test"
        assert model.sourced_from_config is True


# ============================================================================
# Normalization
# ============================================================================


class TestNormalization:
    """Tests for filling and checking alias fields."""

    def test_native_alias_gets_defaults(self, make_config) -> None:
        """Test a native alias without URL or key env uses the native ones."""
        config = make_config(models={"mine": {"provider": "wavespeed"}})

        model = resolve_model("generate", "mine", config, environ={NATIVE_API_KEY_ENV: "k"})

        assert model.base_url == NATIVE_BASE_URL
        assert model.api_key_env == NATIVE_API_KEY_ENV
        assert model.api_key == "k"

    def test_custom_alias_missing_base_url(self, make_config) -> None:
        """Test a non-native alias must declare its base URL."""
        config = make_config(models={"mine": {"provider": "custom", "apiKeyEnv": "K"}})

        with pytest.raises(ConfigurationError) as exc_info:
            resolve_model("generate", "mine", config, environ={"K": "v"})

        assert exc_info.value.kind is ConfigErrorKind.MISSING_BASE_URL
        assert exc_info.value.exit_hint == 3

    def test_custom_alias_missing_api_key_env(self, make_config) -> None:
        """Test a non-native alias must declare its key variable."""
        config = make_config(
            models={"mine": {"provider": "openai", "apiBaseUrl": "https://o.test"}}
        )

        with pytest.raises(ConfigurationError) as exc_info:
            resolve_model("generate", "mine", config, environ={NATIVE_API_KEY_ENV: "k"})

        assert exc_info.value.kind is ConfigErrorKind.MISSING_API_KEY_ENV

    def test_base_url_checked_before_secret(self, make_config) -> None:
        """Test structural problems are reported before a missing secret."""
        config = make_config(models={"mine": {"provider": "custom", "apiKeyEnv": "UNSET"}})

        with pytest.raises(ConfigurationError) as exc_info:
            resolve_model("generate", "mine", config, environ={})

        assert exc_info.value.kind is ConfigErrorKind.MISSING_BASE_URL

    def test_alias_secret_missing(self, make_config) -> None:
        """Test the error names the variable the alias points at."""
        config = make_config(
            models={
                "mine": {
                    "provider": "custom",
                    "apiBaseUrl": "https://c.test",
                    "apiKeyEnv": "C_KEY",
                }
            }
        )

        with pytest.raises(MissingSecretError) as exc_info:
            resolve_model("generate", "mine", config, environ={})

        assert exc_info.value.env_name == "C_KEY"
        assert exc_info.value.exit_hint == 2

    def test_request_defaults_carried(self, make_config) -> None:
        """Test request defaults survive resolution."""
        config = make_config(
            models={
                "tuned": {
                    "provider": "wavespeed",
                    "requestDefaults": {"timeoutMs": 5000, "extraParams": {"seed": 42}},
                }
            }
        )

        model = resolve_model("generate", "tuned", config, environ={NATIVE_API_KEY_ENV: "k"})

        assert model.request_defaults.timeout_ms == 5000
        assert model.request_defaults.extra_params == {"seed": 42}


# ============================================================================
# Listing
# ============================================================================


class TestListModels:
    """Tests for list_models."""

    def test_without_config(self) -> None:
        """Test the built-in model is listed as the default for every command."""
        listing = list_models()

        assert len(listing.models) == 1
        builtin = listing.models[0]
        assert builtin.id == BUILTIN_MODEL_ID
        assert builtin.is_default_global is True
        assert builtin.default_for_commands == list(COMMAND_NAMES)

    def test_with_config(self, layered_config) -> None:
        """Test every alias is listed with its default flags."""
        listing = list_models(layered_config, source="/tmp/.wavespeedrc")

        by_id = {m.id: m for m in listing.models}
        assert listing.source == "/tmp/.wavespeedrc"
        assert set(by_id) == {"fast", "editor", "other"}
        assert by_id["fast"].is_default_global is True
        assert by_id["fast"].base_url == NATIVE_BASE_URL
        assert by_id["fast"].api_key_env == NATIVE_API_KEY_ENV
        assert by_id["editor"].default_for_commands == ["edit"]
        assert by_id["other"].is_default_global is False
        assert by_id["other"].default_for_commands == []

    def test_incomplete_alias_does_not_raise(self, make_config) -> None:
        """Test gaps in non-native aliases are shown as empty strings."""
        config = make_config(models={"broken": {"provider": "custom"}})

        listing = list_models(config)

        assert listing.models[0].base_url == ""
        assert listing.models[0].api_key_env == ""

    def test_registry_listed(self, layered_config) -> None:
        """Test registry entries are listed with capabilities and the recommended flag."""
        for listing in (list_models(), list_models(layered_config)):
            by_id = {m.id: m for m in listing.registry}

            assert set(by_id) == {"seedream-v4", "seedream-v3.1"}
            assert listing.registry[0].id == "seedream-v4"
            assert by_id["seedream-v4"].is_recommended is True
            assert by_id["seedream-v4"].capabilities == ["edit", "generate", "sequential"]
            assert by_id["seedream-v3.1"].capabilities == ["generate"]
            assert by_id["seedream-v3.1"].docs_url.endswith("bytedance-seedream-v3.1")


# ============================================================================
# Registry
# ============================================================================


class TestRegistry:
    """Tests for the built-in registry."""

    def test_get_all_registry_models(self) -> None:
        """Test every entry is returned, recommended entries first."""
        models = get_all_registry_models()

        assert [m.id for m in models] == ["seedream-v4", "seedream-v3.1"]
        assert models[0].is_recommended is True
        assert all(m.provider is ProviderType.WAVESPEED for m in models)

    def test_get_registry_model(self) -> None:
        """Test lookup by id, with None for unknown ids."""
        assert get_registry_model("seedream-v4").model_name == "bytedance/seedream-v4"
        assert get_registry_model("ghost") is None
