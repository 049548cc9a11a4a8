"""
Sentinel actions.

An action is the remediation a protocol runs once all of its rules match.
Actions receive the protocol's tracker snapshot; most of them only act on
the trackers the rules flagged.
"""

import json
import os
import sys
import threading
import traceback
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Mapping, Optional, Type

import structlog

from docsentinel.collaborators import Collaborators
from docsentinel.errors import RecoveryError
from docsentinel.sentinel.trackers import AgentTracker

logger = structlog.get_logger(__name__)


class Action(ABC):
    """Remediation triggered when a protocol's rules match"""

    def __init__(self, collaborators: Optional[Collaborators] = None):
        self.collaborators = collaborators

    @abstractmethod
    def trigger(self, trackers: Mapping[str, AgentTracker]) -> None:
        pass

    @staticmethod
    def format(trackers: Mapping[str, AgentTracker]) -> str:
        """Render the trackers sorted by agent name"""
        return json.dumps([t.to_dict() for t in sorted(trackers.values())])

    @staticmethod
    def flagged(trackers: Mapping[str, AgentTracker]) -> Dict[str, AgentTracker]:
        return {name: t for name, t in trackers.items() if t.flagged}

    def __str__(self) -> str:
        return json.dumps(type(self).__name__)

    __repr__ = __str__


class Notify(Action):
    """Log the trackers"""

    def trigger(self, trackers: Mapping[str, AgentTracker]) -> None:
        logger.warning("Sentinel detected possible stuck agents", trackers=self.format(trackers))


def _stack_of(thread_id: int) -> Optional[List[str]]:
    frame = sys._current_frames().get(thread_id)
    if frame is None:
        return None
    return traceback.format_stack(frame)


class LogStackTrace(Action):
    """Log the current stack of each flagged agent's thread"""

    def trigger(self, trackers: Mapping[str, AgentTracker]) -> None:
        for name, tracker in sorted(self.flagged(trackers).items()):
            if tracker.thread_id is None:
                logger.warning("No thread known for agent", agent=name)
                continue
            stack = _stack_of(tracker.thread_id)
            if stack is None:
                logger.warning("Agent thread is not alive", agent=name, thread_id=tracker.thread_id)
                continue
            logger.warning(
                "Stack trace for stuck agent",
                agent=name,
                place=tracker.place_name,
                stack="".join(stack),
            )


class LogThreadDump(Action):
    """Log a thread dump of each flagged agent's thread"""

    def trigger(self, trackers: Mapping[str, AgentTracker]) -> None:
        threads = {t.ident: t for t in threading.enumerate()}
        for name, tracker in sorted(self.flagged(trackers).items()):
            thread = threads.get(tracker.thread_id) if tracker.thread_id is not None else None
            if thread is None:
                logger.warning("Agent thread not found", agent=name, thread_id=tracker.thread_id)
                continue
            stack = _stack_of(thread.ident) or []
            logger.warning(
                "Thread dump for stuck agent",
                agent=name,
                place=tracker.place_name,
                thread_name=thread.name,
                thread_id=thread.ident,
                native_id=thread.native_id,
                daemon=thread.daemon,
                alive=thread.is_alive(),
                stack="".join(stack),
            )


class Recover(Action):
    """Interrupt each flagged agent. Any agent that cannot be signalled fails the whole recovery."""

    def trigger(self, trackers: Mapping[str, AgentTracker]) -> None:
        if self.collaborators is None:
            raise RecoveryError("No registry available to look up agents")
        registry = self.collaborators.registry
        for name in sorted(self.flagged(trackers)):
            try:
                agent = registry.lookup(name)
                agent.interrupt()
            except Exception as e:
                raise RecoveryError(f"Unable to interrupt agent {name}: {e}") from e
            logger.warning("Interrupted stuck agent", agent=name)


class _AsyncShutdown(Action):
    """Runs a shutdown routine on its own thread and returns without waiting.

    The shutdown routine may wait on the agent pool the sentinel is watching,
    so it must never run on the polling thread.
    """

    description = "shutdown"

    @abstractmethod
    def _routine(self) -> Callable[[], None]:
        """The shutdown hook to run"""
        pass

    def trigger(self, trackers: Mapping[str, AgentTracker]) -> None:
        if self.collaborators is None:
            raise RuntimeError(f"{type(self).__name__} requires shutdown hooks")
        logger.error(f"Sentinel initiating {self.description}", trackers=self.format(self.flagged(trackers)))
        routine = self._routine()

        def _run():
            try:
                routine()
            except Exception as e:
                logger.exception(f"Sentinel {self.description} failed", error=str(e))

        thread = threading.Thread(target=_run, name=f"Sentinel-{type(self).__name__}", daemon=True)
        thread.start()


class Stop(_AsyncShutdown):
    """Gracefully shut down the process"""

    description = "graceful shutdown"

    def _routine(self) -> Callable[[], None]:
        return self.collaborators.shutdown.graceful_shutdown


class Kill(_AsyncShutdown):
    """Forcefully shut down the process"""

    description = "forceful shutdown"

    def _routine(self) -> Callable[[], None]:
        return self.collaborators.shutdown.forceful_shutdown


class Exit(Action):
    """Terminate the process immediately"""

    exit_code = 1

    def trigger(self, trackers: Mapping[str, AgentTracker]) -> None:
        logger.critical("Sentinel terminating the process", trackers=self.format(self.flagged(trackers)))
        os._exit(self.exit_code)


_ACTIONS: Dict[str, Type[Action]] = {
    "Notify": Notify,
    "LogStackTrace": LogStackTrace,
    "LogThreadDump": LogThreadDump,
    "Recover": Recover,
    "Stop": Stop,
    "Kill": Kill,
    "Exit": Exit,
}


def register_action(name: str):
    """Decorator to make an action class available to configuration by name"""
    def decorator(cls: Type[Action]) -> Type[Action]:
        _ACTIONS[name] = cls
        return cls
    return decorator


def create_action(name: str, collaborators: Optional[Collaborators] = None) -> Action:
    key = name.rsplit(".", 1)[-1]
    if key not in _ACTIONS:
        raise ValueError(f"Unknown action '{name}', expected one of {sorted(_ACTIONS)}")
    return _ACTIONS[key](collaborators)


def list_actions() -> List[str]:
    return sorted(_ACTIONS)
