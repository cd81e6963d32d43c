"""Configuration settings using Pydantic for validation."""

from typing import Any, Optional
from pydantic import BaseModel, Field, validator
from pydantic_settings import BaseSettings
from logging import Logger
import os
import re

from ..bridge import BridgeConfig, ErrorHandling
from ..errors import ConfigError
from ..gatherer import Gatherer


class SumoConfig(BaseModel):
    """Sumo Logic collector configuration."""
    url: str = Field(default="", description="Sumo Logic HTTP source URL")
    interval_seconds: float = Field(default=15.0, description="Interval between pushes")
    timeout_seconds: float = Field(default=15.0, description="HTTP submission timeout")
    error_handling: str = Field(default="continue_on_error", description="continue_on_error or abort_on_error")

    # Source metadata headers, omitted when empty
    category: str = Field(default="", description="X-Sumo-Category header")
    source_name: str = Field(default="", description="X-Sumo-Name header")
    source_host: str = Field(default="", description="X-Sumo-Host header")
    source_client: str = Field(default="", description="X-Sumo-Client header")

    @validator('error_handling')
    def validate_error_handling(cls, v):
        v = v.strip().lower()
        if v not in [mode.value for mode in ErrorHandling]:
            raise ValueError("Error handling must be 'continue_on_error' or 'abort_on_error'")
        return v

    @validator('interval_seconds', 'timeout_seconds')
    def validate_duration(cls, v):
        if v < 0:
            raise ValueError("Durations must not be negative")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")
    output: str = Field(default="stdout", description="Log output destination")


class DemoConfig(BaseModel):
    """Demo traffic recorded by the entry point."""
    enabled: bool = Field(default=True, description="Record the demo bridge_counter metric")
    record_interval_seconds: float = Field(default=1.0, description="Demo counter increment interval")


class BridgeSettings(BaseSettings):
    """Main bridge service settings."""

    service_name: str = Field(default="sumo-bridge", description="Service name")

    sumo: SumoConfig = Field(default_factory=SumoConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    demo: DemoConfig = Field(default_factory=DemoConfig)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_nested_delimiter = "__"
        case_sensitive = False

    def to_bridge_config(
        self,
        gatherer: Optional[Gatherer] = None,
        logger: Optional[Logger] = None,
    ) -> BridgeConfig:
        """Build the runtime bridge configuration from these settings."""
        if not self.sumo.url:
            raise ConfigError("sumo.url is required")

        return BridgeConfig(
            url=self.sumo.url,
            interval=self.sumo.interval_seconds,
            timeout=self.sumo.timeout_seconds,
            gatherer=gatherer,
            error_handling=ErrorHandling(self.sumo.error_handling),
            logger=logger,
            category=self.sumo.category,
            source_name=self.sumo.source_name,
            source_host=self.sumo.source_host,
            source_client=self.sumo.source_client,
        )


def substitute_env_vars(obj: Any) -> Any:
    """
    Recursively substitute environment variables in configuration objects.

    Supports syntax:
    - ${VAR_NAME} - Required variable (raises error if not found)
    - ${VAR_NAME:-default} - Optional variable with default value

    Args:
        obj: Configuration object (dict, list, string, or other)

    Returns:
        Object with environment variables substituted

    Raises:
        ConfigError: If required environment variable is not found
    """
    if isinstance(obj, dict):
        return {key: substitute_env_vars(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [substitute_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        def replace_env_var(match):
            var_expr = match.group(1)

            if ':-' in var_expr:
                var_name, default_value = var_expr.split(':-', 1)
                return os.getenv(var_name.strip(), default_value)
            else:
                var_name = var_expr.strip()
                value = os.getenv(var_name)
                if value is None:
                    raise ConfigError(f"Required environment variable '{var_name}' is not set")
                return value

        return re.sub(r'\$\{([^}]+)\}', replace_env_var, obj)
    else:
        return obj


def load_settings(config_file: Optional[str] = None) -> BridgeSettings:
    """
    Load settings from config file and environment variables.

    The config file supports environment variable substitution using ${VAR_NAME} syntax.

    Args:
        config_file: Path to YAML configuration file

    Returns:
        BridgeSettings: Validated configuration object

    Raises:
        ConfigError: If required environment variables are missing
        FileNotFoundError: If config file doesn't exist
    """
    if config_file and os.path.exists(config_file):
        import yaml

        with open(config_file, 'r') as f:
            raw_config = yaml.safe_load(f) or {}

        config_data = substitute_env_vars(raw_config)
        return BridgeSettings(**config_data)

    elif config_file:
        raise FileNotFoundError(f"Configuration file not found: {config_file}")

    return BridgeSettings()
