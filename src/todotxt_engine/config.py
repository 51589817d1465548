"""Configuration management for the todo.txt engine."""

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional, Union

import yaml


logger = logging.getLogger(__name__)


@dataclass
class ConfigModel:
    """Engine configuration."""

    # Filter selected when a task list is first shown (All, Inbox, Today,
    # Upcoming, Archived, Completed or a project name)
    startup_filter: str = "All"

    # Sort used when the filter does not imply one
    default_sort: str = "priority"

    # Fuzzy matching for "did you mean" tag suggestions
    suggestion_score_cutoff: int = 70
    suggestion_limit: int = 3

    # Insert a blank line between new tasks created on different days
    separate_date_groups: bool = True

    def to_yaml(self) -> str:
        """Serialize config to YAML."""
        data = {
            "startup_filter": self.startup_filter,
            "default_sort": self.default_sort,
            "suggestion_score_cutoff": self.suggestion_score_cutoff,
            "suggestion_limit": self.suggestion_limit,
            "separate_date_groups": self.separate_date_groups,
        }
        return yaml.dump(data, default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "ConfigModel":
        """Deserialize config from YAML, ignoring unknown keys."""
        data = yaml.safe_load(yaml_str) or {}
        if not isinstance(data, dict):
            raise ValueError("Configuration must be a mapping")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown configuration keys: {unknown}")

        return cls(**{key: value for key, value in data.items() if key in known})


def load_config(config_path: Optional[Union[str, Path]] = None) -> ConfigModel:
    """Load configuration from a YAML file.

    A missing path or an unreadable file yields the default configuration.
    """
    if config_path is None:
        return ConfigModel()

    config_path = Path(config_path)
    if not config_path.exists():
        logger.debug(f"No config file at {config_path}, using defaults")
        return ConfigModel()

    try:
        config = ConfigModel.from_yaml(config_path.read_text(encoding="utf-8"))
        logger.debug(f"Loaded configuration from {config_path}")
        return config
    except (OSError, yaml.YAMLError, ValueError, TypeError) as e:
        logger.warning(f"Failed to load config from {config_path}: {e}")
        return ConfigModel()
