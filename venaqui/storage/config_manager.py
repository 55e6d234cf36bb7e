"""
Manages loading, validation, and migration of the INI configuration file.
"""

import configparser
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from rich.markup import escape

from venaqui.exceptions import ConfigurationError
from venaqui.models.config import DEFAULT_RPC_URL, DEFAULT_TORRENT_TIMEOUT, AppConfig

log = logging.getLogger(__name__)

# Environment variables that take precedence over the file
ENV_OVERRIDES = {
    "VENAQUI_API_TOKEN": "api_token",
    "VENAQUI_RPC_URL": "rpc_url",
    "VENAQUI_RPC_SECRET": "rpc_secret",
    "VENAQUI_DOWNLOAD_DIR": "download_dir",
}

DEFAULTS: dict[str, Any] = {
    "api_token": "",
    "rpc_url": DEFAULT_RPC_URL,
    "rpc_secret": "",
    "download_dir": "",
    "torrent_timeout": DEFAULT_TORRENT_TIMEOUT,
    "exit_on_complete": False,
    "auto_start_daemon": True,
}


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "venaqui"


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser(interpolation=None)

    def load_config(self, cli_options: dict[str, Any] | None = None) -> AppConfig:
        """
        Loads configuration from the INI file and the environment, applies CLI
        overrides, and validates it.

        A missing file is only an error when no API token is supplied through
        the environment.

        Args:
            cli_options: A dictionary of options provided via the command line.

        Returns:
            A validated AppConfig object.

        Raises:
            ConfigurationError: If the config file is invalid or validation fails.
        """
        if self.config_file_path.is_file():
            try:
                self._parser.read(self.config_file_path, encoding="utf-8")
            except configparser.Error as e:
                raise ConfigurationError(f"Error parsing configuration file: {e}") from e

            if self._migrate_if_needed():
                log.info(
                    "[yellow]Configuration file was updated with new default values."
                    "[/yellow]"
                )
        elif not os.getenv("VENAQUI_API_TOKEN"):
            raise ConfigurationError(
                f"Configuration file not found at '{self.config_file_path}'. "
                "Please run 'venaqui init <API_TOKEN>' first."
            )

        config_data = self._get_config_as_dict()
        config_data.update(self._get_env_overrides())
        if cli_options:
            config_data.update(cli_options)

        try:
            return AppConfig(
                **config_data, config_path=str(self.config_file_path.parent)
            )
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_new_config(self, settings: dict[str, Any]) -> None:
        """
        Creates and saves a new configuration file, keeping existing values for
        keys that are not in ``settings``.
        """
        config = configparser.ConfigParser(interpolation=None)
        existing = self._get_config_as_dict() if self._read_existing() else {}

        config["DEFAULT"] = {}
        for key in AppConfig.get_ini_keys():
            value = settings.get(key, existing.get(key, DEFAULTS[key]))
            if isinstance(value, bool):
                config["DEFAULT"][key] = "true" if value else "false"
            else:
                config["DEFAULT"][key] = str(value)

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                config.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    def _read_existing(self) -> bool:
        if not self.config_file_path.is_file():
            return False
        try:
            self._parser.read(self.config_file_path, encoding="utf-8")
        except configparser.Error:
            return False
        return True

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads the 'DEFAULT' section of the INI file into a dictionary."""
        section = self._parser["DEFAULT"]
        try:
            return {
                "api_token": section.get("api_token", ""),
                "rpc_url": section.get("rpc_url", DEFAULT_RPC_URL),
                "rpc_secret": section.get("rpc_secret", ""),
                "download_dir": section.get("download_dir", ""),
                "torrent_timeout": section.getint(
                    "torrent_timeout", DEFAULT_TORRENT_TIMEOUT
                ),
                "exit_on_complete": section.getboolean("exit_on_complete", False),
                "auto_start_daemon": section.getboolean("auto_start_daemon", True),
            }
        except ValueError as e:
            raise ConfigurationError(f"Invalid value in configuration file: {e}") from e

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        return {
            key: value
            for env_name, key in ENV_OVERRIDES.items()
            if (value := os.getenv(env_name))
        }

    def _migrate_if_needed(self) -> bool:
        """Adds missing default values to an existing config file."""
        needs_saving = False
        config_section = self._parser["DEFAULT"]

        for key in AppConfig.get_ini_keys():
            if key not in config_section:
                default_value = DEFAULTS[key]
                if isinstance(default_value, bool):
                    config_section[key] = "true" if default_value else "false"
                else:
                    config_section[key] = str(default_value)

                needs_saving = True
                log.debug(
                    f"Migrating config: added missing key '{key}' with "
                    f"value '{config_section[key]}'."
                )

        if needs_saving:
            try:
                with open(self.config_file_path, "w", encoding="utf-8") as f:
                    self._parser.write(f)
            except OSError as e:
                log.error(
                    f"Could not save migrated configuration file: {escape(str(e))}"
                )
                return False

        return needs_saving
