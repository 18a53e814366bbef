"""Layered settings: defaults < environment < config file < runtime overrides.

The config file (YAML, or JSON which YAML also reads) is master over the
environment so an operator can pin values for a deployment. Overrides are
applied at runtime (tests, admin tooling) and survive a reload of the file.
"""
import logging
import threading
from pathlib import Path
from typing import Any, Generic, Optional, TypeVar

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=BaseSettings)

_SUFFIXES = (".yaml", ".yml", ".json")


def read_config_file(path: Optional[Path]) -> dict[str, Any]:
    """Flat mapping from the config file. Missing or unreadable files give {} (logged)."""
    if path is None or not path.exists():
        return {}
    if path.suffix.lower() not in _SUFFIXES:
        logger.warning("Ignoring config file %s: expected one of %s", path, ", ".join(_SUFFIXES))
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Could not read config file %s: %s", path, e)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Config file %s must hold a mapping, got %s", path, type(data).__name__)
        return {}
    return data


class ConfigStore(Generic[S]):
    """Thread-safe holder of the current settings snapshot."""

    def __init__(self, settings_cls: type[S], config_file: Optional[str] = None):
        self._settings_cls = settings_cls
        self._path = Path(config_file).expanduser().resolve() if config_file else None
        self._overrides: dict[str, Any] = {}
        self._current: Optional[S] = None
        self._lock = threading.RLock()

    def _build(self) -> S:
        # Instantiating with no arguments resolves defaults and environment.
        layers = self._settings_cls().model_dump()
        from_file = read_config_file(self._path)
        if from_file:
            logger.info("Config file %s applied over environment (%d keys)", self._path, len(from_file))
        layers.update(from_file)
        layers.update(self._overrides)
        return self._settings_cls(**layers)

    def load_initial(self) -> None:
        with self._lock:
            self._current = self._build()

    def get_settings(self) -> S:
        with self._lock:
            if self._current is None:
                self._current = self._build()
            return self._current

    def update(self, overrides: dict[str, Any]) -> None:
        """Apply runtime overrides. Invalid values are rejected and the snapshot is kept."""
        with self._lock:
            candidate = {**self._overrides, **overrides}
            previous = self._overrides
            self._overrides = candidate
            try:
                self._current = self._build()
            except ValidationError as e:
                self._overrides = previous
                logger.warning("Rejected config overrides %s: %s", sorted(overrides), e)

    def reload_from_file(self) -> None:
        """Re-read environment and config file, keeping runtime overrides."""
        with self._lock:
            try:
                self._current = self._build()
            except ValidationError as e:
                logger.warning("Config reload failed; keeping previous settings: %s", e)

    def clear_overrides(self) -> None:
        with self._lock:
            self._overrides = {}
            self._current = self._build()
