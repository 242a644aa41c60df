"""Tests for settings loading and the environment overrides."""

import pytest
import yaml

from drupal_mcp.config import settings as settings_module
from drupal_mcp.config.settings import (
    DrupalMCPSettings,
    create_default_config,
    flatten_config,
    yaml_settings_source,
)
from drupal_mcp.core.modes import Mode
from drupal_mcp.utils.errors import ConfigurationError

ENV_VARS = (
    "DOCS_ONLY_MODE", "FORCE_LIVE_MODE", "FORCE_HYBRID_MODE",
    "DRUPAL_BASE_URL", "DRUPAL_USERNAME", "DRUPAL_PASSWORD", "DRUPAL_TOKEN", "DRUPAL_API_KEY",
    "DRUPAL_MCP_MODE", "DRUPAL_MCP_FALLBACK_MODE", "DRUPAL_MCP_MAX_RETRIES", "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(settings_module, "_settings", None)


def test_defaults_produce_default_mode_configuration():
    config = DrupalMCPSettings(_env_file=None).to_mode_configuration()

    assert config.preferred_mode is Mode.SMART_FALLBACK
    assert config.fallback_mode is Mode.DOCS_ONLY
    assert config.max_retries == 3


def test_no_override_by_default():
    assert DrupalMCPSettings(_env_file=None).forced_mode() is None


@pytest.mark.parametrize(
    "variables,expected",
    [
        ({"DOCS_ONLY_MODE": "true"}, Mode.DOCS_ONLY),
        ({"FORCE_LIVE_MODE": "true"}, Mode.LIVE_ONLY),
        ({"FORCE_HYBRID_MODE": "1"}, Mode.HYBRID),
        ({"DOCS_ONLY_MODE": "true", "FORCE_LIVE_MODE": "true"}, Mode.DOCS_ONLY),
        ({"FORCE_LIVE_MODE": "true", "FORCE_HYBRID_MODE": "true"}, Mode.LIVE_ONLY),
    ],
)
def test_override_priority(monkeypatch, variables, expected):
    for name, value in variables.items():
        monkeypatch.setenv(name, value)

    assert DrupalMCPSettings(_env_file=None).forced_mode() is expected


def test_live_fallback_mode_is_a_configuration_error(monkeypatch):
    monkeypatch.setenv("DRUPAL_MCP_FALLBACK_MODE", "hybrid")

    with pytest.raises(ConfigurationError, match="requires a live connection"):
        DrupalMCPSettings(_env_file=None).to_mode_configuration()


def test_connection_config_from_environment(monkeypatch):
    monkeypatch.setenv("DRUPAL_BASE_URL", "https://drupal.example.com")
    monkeypatch.setenv("DRUPAL_TOKEN", "abc")

    connection = DrupalMCPSettings(_env_file=None).connection_config()

    assert connection.has_connection_details is True
    assert connection.auth_headers() == {"Authorization": "Bearer abc"}


def test_flatten_config():
    assert flatten_config({"drupal": {"base_url": "x"}, "mode": "hybrid"}) == {
        "drupal_base_url": "x",
        "mode": "hybrid",
    }


def test_yaml_file_supplies_defaults(tmp_path):
    path = tmp_path / "drupal_mcp.yaml"
    path.write_text(yaml.dump({"drupal": {"base_url": "https://yaml.example.com"}, "max_retries": 7}))

    settings = DrupalMCPSettings(_env_file=None, **yaml_settings_source(path))

    assert settings.drupal_base_url == "https://yaml.example.com"
    assert settings.max_retries == 7


def test_environment_beats_yaml(tmp_path, monkeypatch):
    path = tmp_path / "drupal_mcp.yaml"
    path.write_text(yaml.dump({"mode": "hybrid"}))
    monkeypatch.setenv("DRUPAL_MCP_MODE", "docs_only")

    settings = DrupalMCPSettings(_env_file=None, **yaml_settings_source(path))

    assert settings.mode is Mode.DOCS_ONLY


def test_missing_yaml_file_is_empty(tmp_path):
    assert yaml_settings_source(tmp_path / "absent.yaml") == {}


def test_default_config_round_trips(tmp_path):
    path = tmp_path / "conf" / "drupal_mcp.yaml"
    create_default_config(path)

    settings = DrupalMCPSettings(_env_file=None, **yaml_settings_source(path))

    assert settings.drupal_base_url == "https://example.com"
    assert settings.mode is Mode.SMART_FALLBACK
    assert settings.log_level == "INFO"
    assert settings.log_structured is True
