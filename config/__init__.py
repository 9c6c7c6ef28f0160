"""
Configuration Module for the Customs Document Extraction System.

Settings live in ``settings.yaml`` next to this module. PDF rendering, OCR
engine selection, date formats, amount separators, consistency tolerances
and the repository URL are all read through :func:`get_config`.

Another settings file can be selected with the ``ADUANA_EXTRACTION_CONFIG``
environment variable.

Author: ML Engineering Team
"""

import os
import yaml
from pathlib import Path
from typing import Any, Dict, Optional

CONFIG_ENV_VAR = "ADUANA_EXTRACTION_CONFIG"

PROJECT_ROOT = Path(__file__).parent.parent
DEFAULT_SETTINGS = Path(__file__).parent / "settings.yaml"


def _locate_settings(config_path: Optional[str]) -> Path:
    """Explicit path, then the environment variable, then the bundled file."""
    chosen = config_path or os.environ.get(CONFIG_ENV_VAR)
    return Path(chosen) if chosen else DEFAULT_SETTINGS


def _absolute_paths(paths: Dict[str, Any]) -> Dict[str, Any]:
    """Anchor relative ``paths`` entries at the project root."""
    return {
        key: str(PROJECT_ROOT / value) if value and not Path(value).is_absolute() else value
        for key, value in paths.items()
    }


class ConfigurationManager:
    """
    Process-wide settings, loaded once and read by dot-notation keys.

    Attributes:
        config_path (Path): Settings file in use.

    Example:
        >>> ConfigurationManager().get("ocr.engine")
        'tesseract'
        >>> get_config("extraction.amount.decimal_separator")
        ','
    """

    _instance: Optional['ConfigurationManager'] = None

    def __new__(cls, config_path: Optional[str] = None) -> 'ConfigurationManager':
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._initialized = False
            cls._instance = instance
        return cls._instance

    def __init__(self, config_path: Optional[str] = None) -> None:
        if self._initialized:
            return

        self.config_path = _locate_settings(config_path)
        self._settings: Dict[str, Any] = {}
        self._load_config()
        self._initialized = True

    def _load_config(self) -> None:
        """
        Read the settings file.

        Raises:
            FileNotFoundError: If the settings file does not exist.
            yaml.YAMLError: If it is not valid YAML.
        """
        if not self.config_path.exists():
            # Forget the half-built instance so a corrected path can be retried.
            ConfigurationManager._instance = None
            raise FileNotFoundError(f"Settings file not found: {self.config_path}")

        with open(self.config_path, 'r', encoding='utf-8') as f:
            settings = yaml.safe_load(f) or {}

        if isinstance(settings.get('paths'), dict):
            settings['paths'] = _absolute_paths(settings['paths'])
        self._settings = settings

    def get(self, key: str, default: Any = None) -> Any:
        """
        Look up ``key`` ("section.sub.key").

        Missing keys and explicit nulls both yield ``default``.
        """
        node: Any = self._settings
        for part in key.split('.'):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return default if node is None else node

    def set(self, key: str, value: Any) -> None:
        """Override ``key`` in memory, creating missing sections."""
        *sections, leaf = key.split('.')
        node = self._settings
        for part in sections:
            if not isinstance(node.get(part), dict):
                node[part] = {}
            node = node[part]
        node[leaf] = value

    def get_all(self) -> Dict[str, Any]:
        """Shallow copy of every loaded setting."""
        return dict(self._settings)

    def reload(self) -> None:
        """Re-read the settings file, dropping in-memory overrides."""
        self._load_config()

    @classmethod
    def reset(cls) -> None:
        """Forget the loaded instance; the next access reads the file again."""
        cls._instance = None


def get_config(key: str, default: Any = None) -> Any:
    """Shortcut for ``ConfigurationManager().get(key, default)``."""
    return ConfigurationManager().get(key, default)


__all__ = ['ConfigurationManager', 'get_config', 'CONFIG_ENV_VAR']
