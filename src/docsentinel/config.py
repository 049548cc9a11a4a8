"""Configuration resources.

Resources are flat YAML documents of upper-case keys, e.g.::

    ENABLED: true
    POLLING_INTERVAL_MINUTES: 5
    PROTOCOL:
      - agent_protocol.yaml

A resource loaded with ``env_override=True`` (the top level sentinel.yaml)
lets any key be overridden with a ``DOCSENTINEL_<KEY>`` environment variable.
Protocol resources share keys such as ENABLED and PROTOCOL, so they never
read the environment.
"""
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError
import structlog
import yaml

from .errors import ConfigurationError

logger = structlog.get_logger(__name__)

ENV_PREFIX = "DOCSENTINEL_"
DEFAULT_CONFIG_DIR = Path.home() / ".docsentinel"
SENTINEL_RESOURCE = "sentinel.yaml"

_TRUE_VALUES = {"true", "t", "yes", "y", "on", "1"}


def get_config_dir() -> Path:
    """Get the directory configuration resources are resolved against"""
    env_dir = os.environ.get(f"{ENV_PREFIX}CONFIG_DIR")
    return Path(env_dir) if env_dir else DEFAULT_CONFIG_DIR


def resolve_resource(name: Union[str, Path], config_dir: Optional[Path] = None) -> Path:
    """Resolve a resource name, relative names are looked up in the config dir"""
    path = Path(name)
    if path.is_absolute():
        return path
    return (config_dir or get_config_dir()) / path


def load_config(config_path: Path) -> Dict[str, Any]:
    """Load a YAML resource into a dict"""
    if not config_path.exists():
        raise ConfigurationError(f"Configuration resource not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot read {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected a mapping in {config_path}")
    return data


class Configurator:
    """Key/value view over a configuration resource.

    Repeated entries are YAML lists; a scalar is treated as a single entry.
    Environment overrides apply only when env_override is set.
    """

    def __init__(
        self,
        entries: Optional[Dict[str, Any]] = None,
        name: str = "<memory>",
        env_override: bool = False,
    ):
        self.name = name
        self.env_override = env_override
        self._entries: Dict[str, List[Any]] = {}
        for key, value in (entries or {}).items():
            self._entries[str(key)] = list(value) if isinstance(value, (list, tuple)) else [value]

    @classmethod
    def from_resource(
        cls,
        name: Union[str, Path],
        config_dir: Optional[Path] = None,
        env_override: bool = False,
    ) -> "Configurator":
        path = resolve_resource(name, config_dir)
        logger.debug("Loading configuration", path=str(path), env_override=env_override)
        return cls(load_config(path), name=str(path), env_override=env_override)

    def add_entry(self, key: str, value: Any) -> None:
        self._entries.setdefault(key, []).append(value)

    def keys(self) -> List[str]:
        return list(self._entries)

    def _values(self, key: str) -> List[Any]:
        # Check env var first (e.g. DOCSENTINEL_POLLING_INTERVAL_MINUTES)
        if self.env_override:
            env_key = f"{ENV_PREFIX}{key.upper()}"
            if env_key in os.environ:
                return [os.environ[env_key]]
        return self._entries.get(key, [])

    def find_entries(self, key: str) -> List[str]:
        return [str(v) for v in self._values(key) if v is not None]

    def find_string_entry(self, key: str, default: Optional[str] = None) -> Optional[str]:
        values = self.find_entries(key)
        return values[0] if values else default

    def find_boolean_entry(self, key: str, default: bool = False) -> bool:
        values = self._values(key)
        if not values or values[0] is None:
            return default
        value = values[0]
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in _TRUE_VALUES

    def find_int_entry(self, key: str, default: int) -> int:
        value = self.find_string_entry(key)
        if value is None or not value.strip():
            return default
        try:
            return int(value)
        except ValueError:
            logger.warning("Invalid integer entry, using default", key=key, value=value, default=default)
            return default

    def find_string_match_map(self, prefix: str) -> Dict[str, str]:
        """Get the entries whose key starts with prefix, keyed by the remainder"""
        result = {}
        for key in self._entries:
            if key.startswith(prefix) and len(key) > len(prefix):
                value = self.find_string_entry(key)
                if value is not None:
                    result[key[len(prefix):]] = value
        return result

    def __repr__(self) -> str:
        return f"Configurator({self.name!r})"


class SentinelSettings(BaseModel):
    """Top level watchdog settings"""
    enabled: bool = False
    polling_interval_minutes: int = Field(default=5, gt=0)
    protocols: List[str] = Field(default_factory=list)

    @classmethod
    def from_config(cls, config: Configurator) -> "SentinelSettings":
        try:
            return cls(
                enabled=config.find_boolean_entry("ENABLED", False),
                polling_interval_minutes=config.find_string_entry("POLLING_INTERVAL_MINUTES", "5"),
                protocols=config.find_entries("PROTOCOL"),
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid sentinel configuration in {config.name}: {e}") from e
