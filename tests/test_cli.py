"""Tests for the drupal-mcp command line."""

import logging

import pytest
import yaml
from click.testing import CliRunner

from drupal_mcp.cli.main import cli
from drupal_mcp.config import settings as settings_module


@pytest.fixture(autouse=True)
def isolated(monkeypatch, tmp_path):
    for name in ("DRUPAL_BASE_URL", "DRUPAL_TOKEN", "DRUPAL_API_KEY", "DRUPAL_USERNAME",
                 "DOCS_ONLY_MODE", "FORCE_LIVE_MODE", "FORCE_HYBRID_MODE", "DRUPAL_MCP_MODE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(settings_module, "_settings", None)

    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


def test_init_writes_default_config(tmp_path):
    target = tmp_path / "drupal_mcp.yaml"

    result = CliRunner().invoke(cli, ["init", "--path", str(target)])

    assert result.exit_code == 0
    assert yaml.safe_load(target.read_text())["mode"] == "smart_fallback"


def test_init_keeps_existing_file_when_declined(tmp_path):
    target = tmp_path / "drupal_mcp.yaml"
    target.write_text("mode: hybrid\n")

    result = CliRunner().invoke(cli, ["init", "--path", str(target)], input="n\n")

    assert result.exit_code == 0
    assert target.read_text() == "mode: hybrid\n"


def test_probe_without_configuration_fails():
    result = CliRunner().invoke(cli, ["probe"])

    assert result.exit_code == 1


def test_status_in_forced_docs_mode(monkeypatch):
    monkeypatch.setenv("DOCS_ONLY_MODE", "true")

    result = CliRunner().invoke(cli, ["status"])

    assert result.exit_code == 0


def test_capabilities_filtered_by_category(monkeypatch):
    monkeypatch.setenv("DOCS_ONLY_MODE", "true")

    result = CliRunner().invoke(cli, ["capabilities", "--category", "hybrid_eligible"])

    assert result.exit_code == 0
