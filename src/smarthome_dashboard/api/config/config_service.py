"""Configuration service implementation."""

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from loguru import logger
from pydantic import ValidationError

from smarthome_dashboard.api.base import BaseService, ConfigError, create_error
from smarthome_dashboard.api.base.base_errors import SERVICE_ERROR
from smarthome_dashboard.api.config.config_models import DashboardConfig

DEFAULT_CONFIG_PATH = Path("config") / "dashboard.yaml"

# Environment variable -> (section, key)
ENV_OVERRIDES = {
    "MQTT_WS_URL": ("mqtt", "url"),
    "MQTT_USERNAME": ("mqtt", "username"),
    "MQTT_PASSWORD": ("mqtt", "password"),
    "API_URL": ("backend", "api_url"),
}


class ConfigService(BaseService):
    """Loads the dashboard configuration from YAML and the environment."""

    def __init__(
        self,
        config_path: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None
    ):
        """Initialize config service.

        Args:
            config_path: YAML file to load (defaults to config/dashboard.yaml)
            environ: Environment mapping used for overrides (defaults to os.environ)
        """
        super().__init__(name="config")
        self._config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self._environ = environ if environ is not None else os.environ
        self._config: Optional[DashboardConfig] = None

    @property
    def config_path(self) -> Path:
        """Path of the YAML configuration file."""
        return self._config_path

    @property
    def config(self) -> DashboardConfig:
        """Get loaded configuration.

        Raises:
            HTTPException: If the configuration has not been loaded (503)
        """
        if self._config is None:
            raise create_error(
                message="Configuration not loaded",
                status_code=SERVICE_ERROR,
                context={"service": self.name}
            )
        return self._config

    async def _start(self) -> None:
        """Load configuration on start."""
        self._config = self.load_config()

    async def _stop(self) -> None:
        """Drop loaded configuration."""
        self._config = None

    def load_config(self) -> DashboardConfig:
        """Read, merge and validate the configuration.

        Returns:
            Validated configuration

        Raises:
            ConfigError: If the file cannot be parsed or fails validation
        """
        data = self._read_file()
        self._apply_env_overrides(data)
        try:
            config = DashboardConfig(**data)
        except ValidationError as e:
            logger.error(f"Invalid dashboard configuration: {e}")
            raise ConfigError(
                "Configuration validation failed",
                {"file": str(self._config_path), "errors": e.errors()}
            ) from e

        logger.info(f"Loaded configuration with {len(config.devices)} devices, broker {config.mqtt.url}")
        return config

    def _read_file(self) -> Dict[str, Any]:
        """Load raw YAML data, empty when the file is absent."""
        if not self._config_path.exists():
            logger.warning(f"Config file not found at {self._config_path}, using defaults")
            return {}

        try:
            with open(self._config_path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Failed to parse YAML in {self._config_path}: {e}")
            raise ConfigError("Invalid YAML format", {"file": str(self._config_path)}) from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError("Configuration root must be a mapping", {"file": str(self._config_path)})
        return data

    def _apply_env_overrides(self, data: Dict[str, Any]) -> None:
        """Overlay connection settings supplied through the environment."""
        for env_name, (section, key) in ENV_OVERRIDES.items():
            value = self._environ.get(env_name)
            if value:
                section_data = data.setdefault(section, {})
                if not isinstance(section_data, dict):
                    raise ConfigError(f"Section '{section}' must be a mapping", {"file": str(self._config_path)})
                section_data[key] = value
                logger.debug(f"Config {section}.{key} overridden by {env_name}")
