"""
Configuration management for lockguard.

Handles loading, merging, and discovery of configuration files.
"""
import os
from pathlib import Path
from typing import List, Optional

import yaml

try:
    # Use modern importlib.resources (Python 3.9+)
    import importlib.resources as importlib_resources
except ImportError:  # pragma: no cover
    importlib_resources = None

from ..utils.exceptions import ConfigurationError

PROJECT_CONFIG_NAME = "lockguard.config.yaml"

# (section, key) pairs holding file paths
PATH_KEYS = (("scan", "lock_file"), ("database", "path"), ("output", "json_file"))


class ConfigManager:
    """Manages lockguard configuration loading and merging operations."""

    def load_config(self, path: str) -> dict:
        """Load configuration from YAML file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigurationError("Could not read configuration file", source=str(path), original_exception=e)
        except yaml.YAMLError as e:
            raise ConfigurationError("Configuration file is not valid YAML", source=str(path), original_exception=e)

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration file must contain a mapping", source=str(path))
        return data

    def deep_merge(self, default: dict, user: dict) -> dict:
        """Deep merge user config into default config."""
        result = default.copy()
        for key, value in user.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self.deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    def load_package_default_config(self) -> dict:
        """Load default config from package."""
        if importlib_resources:
            import lockguard.config
            config_files = importlib_resources.files(lockguard.config)
            default_config_path = config_files / "default.yaml"
            with default_config_path.open("r", encoding="utf-8") as f:
                return yaml.safe_load(f)

        import lockguard
        package_path = os.path.dirname(lockguard.__file__)
        return self.load_config(os.path.join(package_path, "config", "default.yaml"))

    def discover_and_load_config(self, config_arg: Optional[str], project_dir: str = ".") -> dict:
        """
        Discover config file with simple priority order.

        1. ``--config`` argument (must exist)
        2. ``lockguard.config.yaml`` in the project directory
        3. Package default config
        """
        default_config = self.load_package_default_config()

        # Priority 1: --config argument
        if config_arg:
            if not os.path.exists(config_arg):
                raise ConfigurationError(
                    "Configuration file not found",
                    source=config_arg,
                    suggested_action="Check the --config path",
                )
            user_config = self.resolve_relative_paths(self.load_config(config_arg), Path(config_arg).parent)
            return self.deep_merge(default_config, user_config)

        # Priority 2: lockguard.config.yaml in the project directory
        project_config = Path(project_dir) / PROJECT_CONFIG_NAME
        if project_config.is_file():
            user_config = self.resolve_relative_paths(self.load_config(str(project_config)), project_config.parent)
            return self.deep_merge(default_config, user_config)

        # Priority 3: Package default config
        return default_config

    def resolve_relative_paths(self, config: dict, base_dir: Path) -> dict:
        """Make relative paths in a config file relative to the file's directory."""
        for section_name, key in PATH_KEYS:
            section = config.get(section_name)
            if not isinstance(section, dict):
                continue
            value = section.get(key)
            if isinstance(value, str) and value and not Path(value).is_absolute():
                section[key] = str(Path(base_dir) / value)
        return config

    def merge_config_and_args(
        self,
        config: dict,
        deep: Optional[bool] = None,
        severity_threshold: Optional[str] = None,
        lock_file: Optional[str] = None,
        database: Optional[str] = None,
        ignore: Optional[List[str]] = None,
        json_file: Optional[str] = None,
    ) -> dict:
        """Overlay CLI arguments on the loaded configuration."""
        config = self.deep_merge(config, {})
        config["scan"] = dict(config.get("scan") or {})
        config["database"] = dict(config.get("database") or {})
        config["output"] = dict(config.get("output") or {})

        if deep is not None:
            config["scan"]["deep"] = deep
        if severity_threshold is not None:
            config["scan"]["severity_threshold"] = severity_threshold
        if lock_file is not None:
            config["scan"]["lock_file"] = lock_file
        if database is not None:
            config["database"]["path"] = database
        if ignore:
            config["ignore_patterns"] = list(config.get("ignore_patterns") or []) + list(ignore)
        if json_file is not None:
            config["output"]["json_file"] = json_file
        return config
