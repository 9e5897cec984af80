"""Configuration package for runtime settings and startup validation."""

from .settings import NodeSettings, SettingsLoadError, config_load_database_url, config_load_settings

__all__ = ["NodeSettings", "SettingsLoadError", "config_load_settings", "config_load_database_url"]
