"""Shared test doubles for the collaborators the Sentinel observes."""
import threading
from typing import Dict, List, Optional

import pytest

from docsentinel.collaborators import (
    AgentHandle,
    AgentPool,
    Collaborators,
    Directory,
    DirectoryEntry,
    ShutdownHooks,
)
from docsentinel.namespace import Namespace


class FakeAgent(AgentHandle):
    def __init__(self, name: str, in_use: bool = False, work_id: str = "", stage_key: str = "", thread_id: Optional[int] = None):
        self._name = name
        self.in_use = in_use
        self.work_id = work_id
        self.stage_key = stage_key
        self._thread_id = thread_id
        self.interrupted = 0

    @property
    def name(self) -> str:
        return self._name

    def is_in_use(self) -> bool:
        return self.in_use

    def current_work_id(self) -> str:
        return self.work_id

    def last_stage_key(self) -> str:
        return self.stage_key

    def thread_id(self) -> Optional[int]:
        return self._thread_id

    def interrupt(self) -> None:
        self.interrupted += 1

    def work(self, work_id: str, place: str) -> "FakeAgent":
        self.in_use = True
        self.work_id = work_id
        self.stage_key = f"http://host.domain.com:8001/{place}"
        return self

    def idle(self) -> "FakeAgent":
        self.in_use = False
        self.work_id = ""
        self.stage_key = ""
        return self


class FakePool(AgentPool):
    def __init__(self, size: int = 5):
        self.size = size

    def current_size(self) -> int:
        return self.size


class FakeDirectory(Directory):
    def __init__(self, places: List[str]):
        self._entries = [
            DirectoryEntry(key=f"UNKNOWN.{p.upper()}.ID.http://host.domain.com:8001/{p}") for p in places
        ]

    def entries(self) -> List[DirectoryEntry]:
        return self._entries


class RecordingShutdown(ShutdownHooks):
    """Shutdown hooks that block until released"""

    def __init__(self, delay: float = 2.0):
        self.delay = delay
        self.started = threading.Event()
        self.release = threading.Event()
        self.calls: List[str] = []

    def _run(self, kind: str) -> None:
        self.started.set()
        self.release.wait(self.delay)
        self.calls.append(kind)

    def graceful_shutdown(self) -> None:
        self._run("graceful")

    def forceful_shutdown(self) -> None:
        self._run("forceful")


@pytest.fixture
def registry() -> Namespace:
    return Namespace()


@pytest.fixture
def pool() -> FakePool:
    return FakePool(5)


@pytest.fixture
def directory() -> FakeDirectory:
    return FakeDirectory(["ToLowerPlace", "ToUpperPlace", "thePlace"])


@pytest.fixture
def shutdown() -> RecordingShutdown:
    hooks = RecordingShutdown()
    yield hooks
    hooks.release.set()


@pytest.fixture
def collaborators(registry, pool, directory, shutdown) -> Collaborators:
    return Collaborators(registry=registry, pool=pool, directory=directory, shutdown=shutdown)


@pytest.fixture
def bind_agents(registry):
    """Bind fake agents named MobileAgent-01.. into the registry"""
    def _bind(count: int) -> Dict[str, FakeAgent]:
        agents = {}
        for i in range(1, count + 1):
            name = f"MobileAgent-{i:02d}"
            agents[name] = FakeAgent(name)
            registry.bind(name, agents[name])
        return agents
    return _bind
