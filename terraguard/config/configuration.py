"""
Layered configuration for terraguard.

Handles loading configuration layers, merging them, and accessing
values with dotted keys and template rendering.
"""

import copy
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List

from ..core.errors import ConfigurationError
from .defaults import DEFAULT_CONFIGURATION

logger = logging.getLogger(__name__)

# ${ configuration('some.key') } or ${ configuration("some.key") }
_REFERENCE_PATTERN = re.compile(
    r"""\$\{\s*configuration\(\s*['"]([^'"]+)['"]\s*\)\s*\}"""
)

_MISSING = object()


class Configuration:
    """
    Read-only view over a merged configuration document.

    Layers are deep-merged in order on top of DEFAULT_CONFIGURATION:
    later layers win, nested dictionaries are merged key by key and any
    other value (lists included) is replaced.
    """

    def __init__(self, *layers: Dict[str, Any]):
        self._document: Dict[str, Any] = copy.deepcopy(DEFAULT_CONFIGURATION)
        for layer in layers:
            self._deep_update(self._document, copy.deepcopy(layer))

    @classmethod
    def from_files(cls, paths: Iterable[str], *layers: Dict[str, Any]) -> "Configuration":
        """
        Build a configuration from JSON files, followed by in-memory layers.

        Args:
            paths: JSON files, lowest priority first
            layers: Additional dictionaries merged after the files

        Raises:
            ConfigurationError: If a file cannot be read or parsed
        """
        file_layers: List[Dict[str, Any]] = [cls.load_file(path) for path in paths]
        return cls(*file_layers, *layers)

    @staticmethod
    def load_file(path: str) -> Dict[str, Any]:
        """Load a single JSON configuration layer."""
        try:
            with open(path, 'r', encoding='utf-8') as f:
                loaded = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise ConfigurationError(f"Failed to load configuration file {path}: {e}")

        if not isinstance(loaded, dict):
            raise ConfigurationError(f"Configuration file {path} must contain an object")

        logger.debug(f"Loaded configuration from {Path(path).resolve()}")
        return loaded

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Supports nested keys with dot notation: "terraform.workspace"

        Args:
            key: Configuration key (use dots for nested values)
            default: Default value if key not found or None

        Returns:
            Configuration value or default
        """
        value = self._lookup(key)
        if value is _MISSING or value is None:
            return default
        return value

    def get_or_throw(self, key: str) -> Any:
        """
        Get a configuration value that must be set.

        Raises:
            ConfigurationError: If the key is missing or None
        """
        value = self._lookup(key)
        if value is _MISSING or value is None:
            raise ConfigurationError(f"Configuration value '{key}' is not set.")
        return value

    def get_and_render(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value with templates expanded.

        Strings may reference other values with
        ${ configuration('dotted.key') }. A string made of a single
        reference is replaced by the referenced value itself, keeping
        its type. The returned value is a copy.

        Raises:
            ConfigurationError: If a reference is missing or circular
        """
        value = self._lookup(key)
        if value is _MISSING or value is None:
            return default
        return self._render(value, [key])

    def _render(self, value: Any, stack: List[str]) -> Any:
        if isinstance(value, dict):
            return {k: self._render(v, stack) for k, v in value.items()}
        if isinstance(value, list):
            return [self._render(v, stack) for v in value]
        if not isinstance(value, str):
            return value

        whole = _REFERENCE_PATTERN.fullmatch(value.strip())
        if whole:
            return self._resolve_reference(whole.group(1), stack)

        return _REFERENCE_PATTERN.sub(
            lambda match: str(self._resolve_reference(match.group(1), stack)),
            value,
        )

    def _resolve_reference(self, key: str, stack: List[str]) -> Any:
        if key in stack:
            raise ConfigurationError(
                f"Circular configuration reference: {' -> '.join(stack + [key])}"
            )
        referenced = self._lookup(key)
        if referenced is _MISSING or referenced is None:
            raise ConfigurationError(f"Referenced configuration value '{key}' is not set.")
        return self._render(referenced, stack + [key])

    def _lookup(self, key: str) -> Any:
        value: Any = self._document
        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return _MISSING
        return value

    def to_dict(self) -> Dict[str, Any]:
        """Return a copy of the merged document."""
        return copy.deepcopy(self._document)

    @staticmethod
    def _deep_update(base: dict, updates: dict):
        """
        Recursively update base dict with values from updates dict.

        Args:
            base: Dictionary to update
            updates: Dictionary with new values
        """
        for key, value in updates.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                Configuration._deep_update(base[key], value)
            else:
                base[key] = value
