"""In-process registry used at the host process boundary."""
import threading
from typing import Any, Dict, List

import structlog

from .collaborators import Registry
from .errors import NamespaceError

logger = structlog.get_logger(__name__)


class Namespace(Registry):
    """Thread-safe in-memory name to object mapping."""

    def __init__(self):
        self._bindings: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def keys(self, prefix: str = "") -> List[str]:
        with self._lock:
            return [k for k in self._bindings if k.startswith(prefix)]

    def lookup(self, key: str) -> Any:
        with self._lock:
            if key not in self._bindings:
                raise NamespaceError(f"Not found in namespace: {key}")
            return self._bindings[key]

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self._bindings

    def bind(self, name: str, obj: Any) -> None:
        with self._lock:
            if name in self._bindings:
                logger.debug("Replacing namespace binding", name=name)
            self._bindings[name] = obj

    def unbind(self, name: str) -> None:
        with self._lock:
            self._bindings.pop(name, None)

    def clear(self) -> None:
        with self._lock:
            self._bindings.clear()


# Process-wide namespace for management endpoints and tooling
_default_namespace = Namespace()


def get_namespace() -> Namespace:
    """Get the process-wide namespace."""
    return _default_namespace
