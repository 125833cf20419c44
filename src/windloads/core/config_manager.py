"""
ConfigManager - Configuration file management

Loads and provides access to 2 YAML configuration files:
1. settings.yaml - Bundle location and corpus preparation (window, decimation,
   sample count, channel selection)
2. tags.yaml - Extra selection keys, mapped to bundle channel names
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Hashable, Optional

import yaml

from .types import DEFAULT_TAG_MAP, LoadKind, build_tag_map

logger = logging.getLogger(__name__)

DATA_REPO_ENV = 'DATA_REPO'


class ConfigManager:
    """Manager for windloads configuration files.

    Args:
        config_path: Path to configuration directory (default: 'config')

    Attributes:
        _settings_config: Configuration from settings.yaml
        _tags_config: Configuration from tags.yaml

    Example:
        >>> cm = ConfigManager('config')
        >>> cm.get_setting('time_window.t_min', 0.0)
        100.0
        >>> cm.bundle_path()
        PosixPath('/fsx/cfd/case/windloads.pkl')
    """

    def __init__(self, config_path: str = 'config'):
        """Initialize ConfigManager and load all config files.

        Args:
            config_path: Path to configuration directory
        """
        self._config_path = Path(config_path)

        self._settings_config = self._load_yaml('settings.yaml')
        self._tags_config = self._load_yaml('tags.yaml')

    def _load_yaml(self, filename: str) -> Dict[str, Any]:
        """Load a YAML file, returning empty dict if not found.

        Args:
            filename: Name of YAML file to load

        Returns:
            Dictionary of configuration values, or empty dict if file not found
        """
        file_path = self._config_path / filename
        if not file_path.exists():
            logger.warning(f"Config file not found: {file_path}. Using empty config.")
            return {}

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Error loading {file_path}: {e}. Using empty config.")
            return {}
        return config if isinstance(config, dict) else {}

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Get a setting from settings.yaml.

        Args:
            key: Setting key (supports nested keys with dot notation)
            default: Default value if setting not found

        Returns:
            Setting value, or default if not found

        Examples:
            >>> cm.get_setting('corpus.reader', 'pickle')
            'parquet'
        """
        value = self._settings_config
        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def data_repo(self) -> Path:
        """Return the directory relative bundle paths are resolved against.

        Resolution order: $DATA_REPO, corpus.data_repo in settings.yaml, then
        the parent of the config directory.
        """
        repo = os.environ.get(DATA_REPO_ENV) or self.get_setting('corpus.data_repo')
        if repo:
            return Path(repo)
        return self._config_path.resolve().parent

    def bundle_path(self) -> Path:
        """Return the bundle file path from settings.yaml.

        Raises:
            KeyError: If corpus.path is not configured
        """
        path = self.get_setting('corpus.path')
        if not path:
            raise KeyError(f"'corpus.path' not set in {self._config_path / 'settings.yaml'}")
        path = Path(path)
        if path.is_absolute():
            return path
        return self.data_repo() / path

    def tag_map(self) -> Dict[Hashable, LoadKind]:
        """Return the selection lookup table extended with tags.yaml entries.

        Each tags.yaml entry maps an external key to a channel name, a tag
        name, or any key already known to the default table. Entries whose
        target cannot be resolved are skipped with a warning.
        """
        extra: Dict[Hashable, LoadKind] = {}
        for key, target in self._tags_config.items():
            kind = DEFAULT_TAG_MAP.get(target) if isinstance(target, str) else None
            if kind is None:
                logger.warning(f"tags.yaml: '{key}' maps to unknown channel '{target}', skipped")
                continue
            extra[key] = kind
        return build_tag_map(extra)

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"ConfigManager("
            f"path={self._config_path}, "
            f"tags={len(self._tags_config)})"
        )
