"""
Utility Modules

Configuration loading.
"""

from warmpath.utils.config import load_config, Config, ConfigError

__all__ = ["load_config", "Config", "ConfigError"]
