"""
Configuration Management
========================
"""

import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

import yaml

from .bindings import RetryType

logger = logging.getLogger(__name__)

DEFAULT_LIBRARY_NAMES = ["libddcutil.so.4"]


@dataclass
class LibraryConfig:
    """Where to find libddcutil."""
    path: Optional[str] = None
    names: List[str] = field(default_factory=lambda: list(DEFAULT_LIBRARY_NAMES))

    def candidates(self) -> List[str]:
        """Names to try with dlopen, in order."""
        if self.path:
            return [self.path]
        return list(self.names)


@dataclass
class RetryConfig:
    """Library-wide max tries; None leaves the libddcutil default."""
    write_only: Optional[int] = None
    write_read: Optional[int] = None
    multi_part: Optional[int] = None

    def items(self) -> Dict[RetryType, int]:
        """Configured (retry type, count) pairs."""
        return {k: v for k, v in {
            RetryType.WRITE_ONLY: self.write_only,
            RetryType.WRITE_READ: self.write_read,
            RetryType.MULTI_PART: self.multi_part,
        }.items() if v is not None}


@dataclass
class EnumerationConfig:
    include_invalid: bool = False


@dataclass
class SessionConfig:
    wait: bool = True


def _optional_tries(section: Dict[str, Any], key: str) -> Optional[int]:
    value = section.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        logger.warning(f"Ignoring invalid retries.{key}: {value!r}")
        return None
    return value


def _flag(section: Dict[str, Any], key: str, default: bool) -> bool:
    value = section.get(key, default)
    if not isinstance(value, bool):
        logger.warning(f"Ignoring non-boolean {key}: {value!r}")
        return default
    return value


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        logger.warning(f"Ignoring malformed '{key}' section")
        return {}
    return value


class Config:
    """
    Configuration for the libddcutil access layer.

    Handles loading, saving, and accessing configuration settings.
    """

    DEFAULT_CONFIG_PATH = Path.home() / ".config" / "ddcutil-cffi" / "config.yaml"

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration with defaults.

        Args:
            config_path: Path to configuration file, or None for default
        """
        self.config_path = Path(config_path) if config_path else self.DEFAULT_CONFIG_PATH
        self._data: Dict[str, Any] = {}

        self.library = LibraryConfig()
        self.retries = RetryConfig()
        self.enumeration = EnumerationConfig()
        self.session = SessionConfig()

    @classmethod
    def from_dict(cls, data: Dict[str, Any], config_path: Optional[Path] = None) -> 'Config':
        """Build a Config from an already-parsed mapping."""
        config = cls(config_path)
        config._data = dict(data or {})
        config._parse_config()
        return config

    def load(self) -> bool:
        """
        Load configuration from file.

        Returns:
            True if configuration was loaded successfully
        """
        if not self.config_path.exists():
            logger.warning(f"Configuration file not found: {self.config_path}")
            return False

        try:
            with open(self.config_path, 'r') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error(f"Failed to parse configuration: {e}")
            return False
        except OSError as e:
            logger.error(f"Failed to load configuration: {e}")
            return False

        if not isinstance(data, dict):
            logger.error(f"Configuration root must be a mapping: {self.config_path}")
            return False

        self._data = data
        self._parse_config()
        logger.info(f"Loaded configuration from {self.config_path}")
        return True

    def _parse_config(self):
        """Parse loaded configuration data into typed objects."""
        library = _section(self._data, 'library')
        path = library.get('path')
        names = library.get('names', DEFAULT_LIBRARY_NAMES)
        if path is not None and not isinstance(path, str):
            logger.warning(f"Ignoring invalid library.path: {path!r}")
            path = None
        if not isinstance(names, list) or not names or not all(isinstance(n, str) for n in names):
            logger.warning(f"Ignoring invalid library.names: {names!r}")
            names = DEFAULT_LIBRARY_NAMES
        self.library = LibraryConfig(path=path, names=list(names))

        retries = _section(self._data, 'retries')
        self.retries = RetryConfig(
            write_only=_optional_tries(retries, 'write_only'),
            write_read=_optional_tries(retries, 'write_read'),
            multi_part=_optional_tries(retries, 'multi_part'),
        )

        enumeration = _section(self._data, 'enumeration')
        self.enumeration = EnumerationConfig(
            include_invalid=_flag(enumeration, 'include_invalid', False),
        )

        session = _section(self._data, 'session')
        self.session = SessionConfig(wait=_flag(session, 'wait', True))

    def to_dict(self) -> Dict[str, Any]:
        """Current settings as a plain mapping, suitable for YAML."""
        retries = {k: v for k, v in {
            'write_only': self.retries.write_only,
            'write_read': self.retries.write_read,
            'multi_part': self.retries.multi_part,
        }.items() if v is not None}
        return {
            'library': {'path': self.library.path, 'names': list(self.library.names)},
            'retries': retries,
            'enumeration': {'include_invalid': self.enumeration.include_invalid},
            'session': {'wait': self.session.wait},
        }

    def save(self) -> bool:
        """
        Save current configuration to file.

        Returns:
            True if configuration was saved successfully
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, 'w') as f:
                yaml.safe_dump(self.to_dict(), f, default_flow_style=False)
            logger.info(f"Saved configuration to {self.config_path}")
            return True
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to save configuration: {e}")
            return False


_config_lock = threading.Lock()
_config: Optional[Config] = None


def get_config() -> Config:
    """Process-wide configuration; loaded from the default path on first use."""
    global _config
    with _config_lock:
        if _config is None:
            config = Config()
            if config.config_path.exists():
                config.load()
            _config = config
        return _config


def set_config(config: Optional[Config]) -> None:
    """Replace the process-wide configuration (None restores lazy loading)."""
    global _config
    with _config_lock:
        _config = config
