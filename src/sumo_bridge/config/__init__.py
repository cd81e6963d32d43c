"""Settings loading for the bridge service."""

from .settings import BridgeSettings, LoggingConfig, SumoConfig, load_settings

__all__ = ["BridgeSettings", "LoggingConfig", "SumoConfig", "load_settings"]
