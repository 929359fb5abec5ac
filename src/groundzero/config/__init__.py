"""
Configuration helpers for ground-zero site builds.
"""

from .models import CONFIG_FILENAME, ConfigError, SiteConfig, load_config
from .settings import EnvOverrides, get_overrides

__all__ = ["CONFIG_FILENAME", "ConfigError", "SiteConfig", "load_config", "EnvOverrides", "get_overrides"]
