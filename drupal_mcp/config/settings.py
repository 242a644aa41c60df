"""
Configuration Management for the Drupal MCP server.

Loads settings from drupal_mcp.yaml, .env and environment variables. This
is the only module that reads the environment; the mode coordinator is
handed an explicit ModeConfiguration built from these settings.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from drupal_mcp.core.modes.models import Mode, ModeConfiguration
from drupal_mcp.integrations.drupal import DEFAULT_BASE_URL, DrupalConnectionConfig
from drupal_mcp.utils.errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "drupal_mcp.yaml"


class DrupalMCPSettings(BaseSettings):
    """Main server settings."""

    # Live backend
    drupal_base_url: str = Field(DEFAULT_BASE_URL, description="Drupal site URL", alias="DRUPAL_BASE_URL")
    drupal_username: Optional[str] = Field(None, description="Basic auth user", alias="DRUPAL_USERNAME")
    drupal_password: Optional[str] = Field(None, description="Basic auth password", alias="DRUPAL_PASSWORD")
    drupal_token: Optional[str] = Field(None, description="Bearer token", alias="DRUPAL_TOKEN")
    drupal_api_key: Optional[str] = Field(None, description="X-API-Key header value", alias="DRUPAL_API_KEY")
    request_timeout: float = Field(30.0, gt=0, description="Timeout for tool requests in seconds", alias="DRUPAL_REQUEST_TIMEOUT")

    # Mode overrides, mutually exclusive, checked in this order
    docs_only_mode: bool = Field(False, description="Force docs_only", alias="DOCS_ONLY_MODE")
    force_live_mode: bool = Field(False, description="Force live_only", alias="FORCE_LIVE_MODE")
    force_hybrid_mode: bool = Field(False, description="Force hybrid", alias="FORCE_HYBRID_MODE")

    # Mode coordinator
    mode: Mode = Field(Mode.SMART_FALLBACK, description="Preferred mode", alias="DRUPAL_MCP_MODE")
    fallback_mode: Mode = Field(Mode.DOCS_ONLY, description="Mode used when the site is unreachable", alias="DRUPAL_MCP_FALLBACK_MODE")
    max_retries: int = Field(3, ge=0, description="Automatic recovery attempts", alias="DRUPAL_MCP_MAX_RETRIES")
    connection_timeout_ms: int = Field(10_000, gt=0, description="Probe timeout", alias="DRUPAL_MCP_CONNECTION_TIMEOUT_MS")
    health_check_interval_ms: int = Field(60_000, gt=0, description="Probe interval", alias="DRUPAL_MCP_HEALTH_CHECK_INTERVAL_MS")
    recovery_delay_ms: int = Field(5_000, ge=0, description="Delay before a recovery attempt", alias="DRUPAL_MCP_RECOVERY_DELAY_MS")
    enable_auto_recovery: bool = Field(True, description="Reconnect automatically", alias="DRUPAL_MCP_AUTO_RECOVERY")

    # Logging
    log_level: str = Field("INFO", description="Logging level", alias="LOG_LEVEL")
    log_file: Optional[str] = Field(None, description="Log file path", alias="DRUPAL_MCP_LOG_FILE")
    log_structured: bool = Field(True, description="Use structured logging")
    log_file_enabled: bool = Field(False, description="Enable file logging")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore"
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # Values from drupal_mcp.yaml arrive as init kwargs and act as defaults
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    def forced_mode(self) -> Optional[Mode]:
        """First recognised override wins; None means probe as usual."""
        if self.docs_only_mode:
            return Mode.DOCS_ONLY
        if self.force_live_mode:
            return Mode.LIVE_ONLY
        if self.force_hybrid_mode:
            return Mode.HYBRID
        return None

    def to_mode_configuration(self) -> ModeConfiguration:
        try:
            return ModeConfiguration(
                preferred_mode=self.mode,
                fallback_mode=self.fallback_mode,
                max_retries=self.max_retries,
                connection_timeout_ms=self.connection_timeout_ms,
                health_check_interval_ms=self.health_check_interval_ms,
                recovery_delay_ms=self.recovery_delay_ms,
                enable_auto_recovery=self.enable_auto_recovery,
            )
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid mode configuration: {e.errors()[0]['msg']}",
                original_error=e,
            ) from e

    def connection_config(self) -> DrupalConnectionConfig:
        return DrupalConnectionConfig(
            base_url=self.drupal_base_url,
            username=self.drupal_username,
            password=self.drupal_password,
            token=self.drupal_token,
            api_key=self.drupal_api_key,
            timeout=self.request_timeout,
        )


def yaml_settings_source(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load settings from drupal_mcp.yaml."""
    yaml_file = path or Path(CONFIG_FILE_NAME)

    if not yaml_file.exists():
        logger.debug(f"{yaml_file} not found, using defaults")
        return {}

    try:
        with open(yaml_file, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error loading {yaml_file}: {e}")
        return {}

    if yaml_data is None:
        return {}

    logger.info(f"Loaded configuration from {yaml_file}")
    return flatten_config(yaml_data)


def flatten_config(data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Flatten nested configuration for pydantic."""
    result = {}

    for key, value in data.items():
        full_key = f"{prefix}_{key}" if prefix else key

        if isinstance(value, dict):
            result.update(flatten_config(value, full_key))
        else:
            result[full_key] = value

    return result


_settings: Optional[DrupalMCPSettings] = None


def get_settings() -> DrupalMCPSettings:
    """Get global settings instance."""
    global _settings

    if _settings is None:
        yaml_config = yaml_settings_source()
        _settings = DrupalMCPSettings(**yaml_config)
        logger.info("Configuration loaded successfully")

    return _settings


def reload_settings() -> DrupalMCPSettings:
    """Reload settings from configuration sources."""
    global _settings
    _settings = None
    return get_settings()


def create_default_config(path: Optional[Path] = None) -> None:
    """Create a default configuration file."""
    if path is None:
        path = Path(CONFIG_FILE_NAME)

    path.parent.mkdir(parents=True, exist_ok=True)

    default_config = {
        "drupal": {
            "base_url": "https://example.com",
        },
        "mode": Mode.SMART_FALLBACK.value,
        "fallback_mode": Mode.DOCS_ONLY.value,
        "max_retries": 3,
        "connection_timeout_ms": 10_000,
        "health_check_interval_ms": 60_000,
        "recovery_delay_ms": 5_000,
        "enable_auto_recovery": True,
        "log": {
            "level": "INFO",
            "structured": True,
        },
    }

    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(default_config, f, default_flow_style=False, indent=2)

    logger.info(f"Created default configuration at {path}")
