"""
Storage Layer.

Persistence of user settings in the INI configuration file.
"""

from .config_manager import ConfigManager, get_config_dir

__all__ = ["ConfigManager", "get_config_dir"]
