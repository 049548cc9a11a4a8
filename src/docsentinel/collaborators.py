"""Interfaces of the components the Sentinel observes but does not own."""
import os
import signal
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional

from pydantic import BaseModel
import structlog

logger = structlog.get_logger(__name__)


class Registry(ABC):
    """Process-wide naming service mapping string keys to live components"""

    @abstractmethod
    def keys(self, prefix: str = "") -> List[str]:
        """Get the bound keys starting with prefix"""
        pass

    @abstractmethod
    def lookup(self, key: str) -> Any:
        """Get the object bound to key, raises NamespaceError if missing"""
        pass

    @abstractmethod
    def bind(self, name: str, obj: Any) -> None:
        """Bind an object under name"""
        pass

    @abstractmethod
    def unbind(self, name: str) -> None:
        """Remove a binding, missing names are ignored"""
        pass


class AgentHandle(ABC):
    """A pooled mobile agent as seen by the watchdog"""

    @property
    @abstractmethod
    def name(self) -> str:
        """Pool assigned slot name, e.g. MobileAgent-03"""
        pass

    @abstractmethod
    def is_in_use(self) -> bool:
        pass

    @abstractmethod
    def current_work_id(self) -> str:
        """Identifier of the payload currently owned by the agent"""
        pass

    @abstractmethod
    def last_stage_key(self) -> str:
        """Directory key of the place the agent last entered"""
        pass

    @abstractmethod
    def thread_id(self) -> Optional[int]:
        """Ident of the thread running the agent"""
        pass

    @abstractmethod
    def interrupt(self) -> None:
        pass


class AgentPool(ABC):
    """The pool that owns the mobile agents"""

    @abstractmethod
    def current_size(self) -> int:
        """Total number of agents, idle and active"""
        pass


class DirectoryEntry(BaseModel):
    """A place registered in the directory"""
    key: str
    description: Optional[str] = None

    @property
    def place_name(self) -> str:
        return self.key.rsplit("/", 1)[-1] if "/" in self.key else ""


class Directory(ABC):
    """Directory of registered places"""

    @abstractmethod
    def entries(self) -> Iterable[DirectoryEntry]:
        pass


class ShutdownHooks(ABC):
    """Host process shutdown routines"""

    @abstractmethod
    def graceful_shutdown(self) -> None:
        pass

    @abstractmethod
    def forceful_shutdown(self) -> None:
        pass


class ProcessShutdown(ShutdownHooks):
    """Shut down the current process with signals."""

    def graceful_shutdown(self) -> None:
        logger.warning("Requesting graceful shutdown", pid=os.getpid())
        os.kill(os.getpid(), signal.SIGTERM)

    def forceful_shutdown(self) -> None:
        logger.error("Requesting forceful shutdown", pid=os.getpid())
        os.kill(os.getpid(), signal.SIGKILL)


@dataclass
class Collaborators:
    """Everything a protocol, rule or action may need from the host process."""
    registry: Registry
    pool: Optional[AgentPool] = None
    directory: Optional[Directory] = None
    shutdown: ShutdownHooks = field(default_factory=ProcessShutdown)
