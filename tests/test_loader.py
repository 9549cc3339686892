"""Tests for config file discovery and parsing."""

from __future__ import annotations

import json

import pytest

from wavespeed_client.core.loader import load_config
from wavespeed_client.exceptions import ConfigErrorKind, ConfigurationError
from wavespeed_client.schemas.config import ProviderType


@pytest.fixture
def project_dir(tmp_path):
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def home_dir(tmp_path):
    path = tmp_path / "home"
    path.mkdir()
    return path


def write_json(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestDiscovery:
    """Tests for locating the active config file."""

    def test_no_config_file(self, project_dir, home_dir) -> None:
        """Test an empty result when no candidate exists."""
        result = load_config(project_dir, home_dir, environ={})

        assert result.config is None
        assert result.path is None

    def test_project_config_wins_over_home(self, project_dir, home_dir) -> None:
        """Test the working directory is searched before the home directory."""
        write_json(project_dir / ".wavespeedrc.json", {"models": {"p": {"provider": "wavespeed"}}})
        write_json(home_dir / ".wavespeedrc.json", {"models": {"h": {"provider": "wavespeed"}}})

        result = load_config(project_dir, home_dir, environ={})

        assert result.path == str(project_dir / ".wavespeedrc.json")
        assert list(result.config.models) == ["p"]

    def test_home_config_used_as_fallback(self, project_dir, home_dir) -> None:
        """Test the home config is read when the project has none."""
        write_json(home_dir / ".wavespeedrc", {"models": {"h": {"provider": "wavespeed"}}})

        result = load_config(project_dir, home_dir, environ={})

        assert result.path == str(home_dir / ".wavespeedrc")
        assert "h" in result.config.models

    def test_candidate_order(self, project_dir, home_dir) -> None:
        """Test the first candidate in order is used."""
        write_json(
            project_dir / "wavespeed.config.json", {"models": {"late": {"provider": "wavespeed"}}}
        )
        write_json(project_dir / ".wavespeedrc", {"models": {"early": {"provider": "wavespeed"}}})

        result = load_config(project_dir, home_dir, environ={})

        assert "early" in result.config.models


class TestParsing:
    """Tests for JSON and YAML parsing."""

    def test_json_config(self, project_dir, home_dir) -> None:
        """Test camelCase JSON fields are mapped onto the config schema."""
        write_json(
            project_dir / ".wavespeedrc.json",
            {
                "version": 1,
                "models": {
                    "alt": {
                        "provider": "custom",
                        "apiBaseUrl": "https://x.test",
                        "apiKeyEnv": "ALT_KEY",
                        "modelName": "remote/alt",
                    }
                },
                "defaults": {"globalModel": "alt", "commands": {"edit": "alt"}},
            },
        )

        config = load_config(project_dir, home_dir, environ={}).config

        alias = config.models["alt"]
        assert alias.id == "alt"
        assert alias.provider is ProviderType.CUSTOM
        assert alias.base_url == "https://x.test"
        assert alias.api_key_env == "ALT_KEY"
        assert alias.model_name == "remote/alt"
        assert config.defaults.global_model == "alt"
        assert config.defaults.commands == {"edit": "alt"}

    def test_yaml_config(self, project_dir, home_dir) -> None:
        """Test YAML files are parsed."""
        (project_dir / ".wavespeedrc.yaml").write_text(
            "models:\n"
            "  fast:\n"
            "    provider: wavespeed\n"
            "    modelName: bytedance/seedream-v3.1\n"
            "defaults:\n"
            "  globalModel: fast\n",
            encoding="utf-8",
        )

        config = load_config(project_dir, home_dir, environ={}).config

        assert config.models["fast"].model_name == "bytedance/seedream-v3.1"
        assert config.defaults.global_model == "fast"

    def test_extensionless_yaml(self, project_dir, home_dir) -> None:
        """Test a file without extension falls back to YAML."""
        (project_dir / ".wavespeedrc").write_text(
            "models:\n  y:\n    provider: wavespeed\n", encoding="utf-8"
        )

        config = load_config(project_dir, home_dir, environ={}).config

        assert "y" in config.models

    def test_invalid_json(self, project_dir, home_dir) -> None:
        """Test malformed JSON is an invalid_config error."""
        (project_dir / ".wavespeedrc.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(project_dir, home_dir, environ={})

        assert exc_info.value.kind is ConfigErrorKind.INVALID_CONFIG
        assert exc_info.value.exit_hint == 3

    def test_non_object_root(self, project_dir, home_dir) -> None:
        """Test a top-level list is rejected."""
        write_json(project_dir / ".wavespeedrc.json", [1, 2, 3])

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(project_dir, home_dir, environ={})

        assert exc_info.value.kind is ConfigErrorKind.INVALID_CONFIG

    def test_unknown_provider(self, project_dir, home_dir) -> None:
        """Test schema violations are reported as invalid_config."""
        write_json(project_dir / ".wavespeedrc.json", {"models": {"m": {"provider": "acme"}}})

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(project_dir, home_dir, environ={})

        assert exc_info.value.kind is ConfigErrorKind.INVALID_CONFIG

    def test_non_object_model_entry_skipped(self, project_dir, home_dir, caplog) -> None:
        """Test a model entry that is not an object is skipped with a warning."""
        write_json(
            project_dir / ".wavespeedrc.json",
            {"models": {"bad": "oops", "good": {"provider": "wavespeed"}}},
        )

        config = load_config(project_dir, home_dir, environ={}).config

        assert list(config.models) == ["good"]
        assert "Skipping model 'bad'" in caplog.text


class TestInterpolation:
    """Tests for ${VAR} substitution."""

    def test_env_references_replaced(self, project_dir, home_dir) -> None:
        """Test both reference spellings are substituted."""
        write_json(
            project_dir / ".wavespeedrc.json",
            {
                "models": {
                    "m": {
                        "provider": "custom",
                        "apiBaseUrl": "${BASE_URL}",
                        "apiKeyEnv": "${ENV:KEY_NAME}",
                    }
                }
            },
        )

        config = load_config(
            project_dir, home_dir, environ={"BASE_URL": "https://env.test", "KEY_NAME": "MY_KEY"}
        ).config

        assert config.models["m"].base_url == "https://env.test"
        assert config.models["m"].api_key_env == "MY_KEY"

    def test_unset_reference_becomes_empty(self, project_dir, home_dir) -> None:
        """Test an unset variable is replaced with an empty string."""
        write_json(
            project_dir / ".wavespeedrc.json",
            {"models": {"m": {"provider": "wavespeed", "modelName": "${NOT_SET}"}}},
        )

        config = load_config(project_dir, home_dir, environ={}).config

        assert config.models["m"].model_name == ""

    def test_partial_reference_left_alone(self, project_dir, home_dir) -> None:
        """Test only whole-value references are substituted."""
        write_json(
            project_dir / ".wavespeedrc.json",
            {"models": {"m": {"provider": "wavespeed", "modelName": "prefix-${X}"}}},
        )

        config = load_config(project_dir, home_dir, environ={"X": "y"}).config

        assert config.models["m"].model_name == "prefix-${X}"

    def test_empty_reference_rejected(self, project_dir, home_dir) -> None:
        """Test ${} is an invalid_config error."""
        write_json(
            project_dir / ".wavespeedrc.json",
            {"models": {"m": {"provider": "wavespeed", "modelName": "${}"}}},
        )

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(project_dir, home_dir, environ={})

        assert exc_info.value.kind is ConfigErrorKind.INVALID_CONFIG


class TestDefaultsValidation:
    """Tests for referential integrity of defaults."""

    def test_unknown_global_default(self, project_dir, home_dir) -> None:
        """Test a global default must name an alias or registry model."""
        write_json(
            project_dir / ".wavespeedrc.json",
            {"models": {}, "defaults": {"globalModel": "ghost"}},
        )

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(project_dir, home_dir, environ={})

        assert exc_info.value.kind is ConfigErrorKind.INVALID_DEFAULT_GLOBAL

    def test_unknown_command_default(self, project_dir, home_dir) -> None:
        """Test a command default must name an alias or registry model."""
        write_json(
            project_dir / ".wavespeedrc.json",
            {"defaults": {"commands": {"generate": "ghost"}}},
        )

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(project_dir, home_dir, environ={})

        assert exc_info.value.kind is ConfigErrorKind.INVALID_DEFAULT_COMMAND

    def test_registry_id_accepted_as_default(self, project_dir, home_dir) -> None:
        """Test registry ids are valid defaults without an alias."""
        write_json(
            project_dir / ".wavespeedrc.json",
            {"defaults": {"globalModel": "seedream-v3.1"}},
        )

        config = load_config(project_dir, home_dir, environ={}).config

        assert config.defaults.global_model == "seedream-v3.1"
