"""
Configuration management for the CoMapeo configuration toolkit.

This module handles loading and accessing runtime settings from config.yaml.
It provides a centralized way to manage archive, normalization, remote
catalog and storage settings without changing code.
"""

import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional
import logging


class ConfigManager:
    """
    Manages configuration loading and access for the toolkit.
    """

    def __init__(self, config_path: str = "config.yaml"):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file
        """
        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        try:
            if not self.config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

            with open(self.config_path, 'r', encoding='utf-8') as f:
                self._config = yaml.safe_load(f) or {}

            logging.info(f"Configuration loaded from {self.config_path}")

        except (OSError, yaml.YAMLError) as e:
            logging.warning(f"Failed to load configuration: {e}")
            # Fall back to default configuration
            self._config = self._get_default_config()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values as fallback."""
        return {
            "archive": {
                "config_extensions": [".json", ".svg", ".png"],
                "version_filename": "VERSION",
            },
            "normalization": {
                "strict": False,
            },
            "conversion": {
                "default_version": "1.0.0",
                "default_name": "converted-mapeo-config",
            },
            "remote": {
                "timeout": 15.0,
                "build_url": "http://localhost:5000/api/build",
                "repositories": [
                    {
                        "name": "mapeo-default-config",
                        "url": "https://api.github.com/repos/digidem/mapeo-default-config/releases/latest",
                        "display_name": "MapeoDefault",
                    },
                    {
                        "name": "comapeo-category-library",
                        "url": "https://api.github.com/repos/digidem/comapeo-category-library/releases/latest",
                        "display_name": "CoMapeoLibrary",
                    },
                ],
            },
            "storage": {
                "filename": "comapeo_configs.db",
                "hash_length": 10,
            },
            "paths": {
                "export_dir": "exports",
                "log_file": "comapeo_config.log",
            },
            "logging": {
                "level": "INFO",
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
        }

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key_path: Dot-separated path to the configuration value (e.g., "remote.timeout")
            default: Default value if key is not found

        Returns:
            The configuration value

        Examples:
            config.get("normalization.strict")  # Returns False
            config.get("storage.filename")  # Returns "comapeo_configs.db"
        """
        keys = key_path.split('.')
        value = self._config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def get_section(self, section: str) -> Dict[str, Any]:
        """
        Get an entire configuration section.

        Args:
            section: Name of the configuration section

        Returns:
            Dictionary containing the section configuration
        """
        return self._config.get(section, {})

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    # Convenience properties for commonly used values

    @property
    def config_extensions(self) -> List[str]:
        """Extensions kept by the legacy tar reader."""
        return self.get("archive.config_extensions", [".json", ".svg", ".png"])

    @property
    def version_filename(self) -> str:
        return self.get("archive.version_filename", "VERSION")

    @property
    def strict_normalization(self) -> bool:
        """Whether shape irregularities raise instead of being recovered."""
        return bool(self.get("normalization.strict", False))

    @property
    def default_version(self) -> str:
        return self.get("conversion.default_version", "1.0.0")

    @property
    def default_config_name(self) -> str:
        return self.get("conversion.default_name", "converted-mapeo-config")

    @property
    def remote_timeout(self) -> float:
        """Get timeout for remote catalog and build requests."""
        return self.get("remote.timeout", 15.0)

    @property
    def build_url(self) -> str:
        return self.get("remote.build_url", "http://localhost:5000/api/build")

    @property
    def catalog_repositories(self) -> List[Dict[str, str]]:
        """Get the release endpoints queried for default configurations."""
        return self.get("remote.repositories", [])

    @property
    def storage_filename(self) -> str:
        """Get shared config store database filename."""
        return self.get("storage.filename", "comapeo_configs.db")

    @property
    def hash_length(self) -> int:
        return self.get("storage.hash_length", 10)

    @property
    def export_directory(self) -> str:
        return self.get("paths.export_dir", "exports")

    @property
    def log_filename(self) -> str:
        """Get log file name."""
        return self.get("paths.log_file", "comapeo_config.log")

    def get_repository(self, name: str) -> Optional[Dict[str, str]]:
        """
        Get a catalog repository definition by name.

        Args:
            name: Repository name

        Returns:
            Repository dictionary or None if not found
        """
        return next((repo for repo in self.catalog_repositories if repo.get("name") == name), None)


# Global configuration instance
config = ConfigManager()


def get_config() -> ConfigManager:
    """
    Get the global configuration instance.

    Returns:
        The global ConfigManager instance
    """
    return config
