"""
Sentinel - tracks mobile agents and acts on suspicious behavior.

The Sentinel owns a set of protocols and runs them on a background thread
every polling interval. It binds itself into the registry while running so
actions, tooling and management endpoints can find it.
"""

import threading
from pathlib import Path
from typing import List, Optional

import structlog

from docsentinel.collaborators import Collaborators
from docsentinel.config import SENTINEL_RESOURCE, Configurator, SentinelSettings
from docsentinel.errors import ConfigurationError, SentinelError
from docsentinel.sentinel.protocols.base import Protocol
from docsentinel.sentinel.protocols.factory import ProtocolFactory

logger = structlog.get_logger(__name__)

DEFAULT_NAMESPACE_NAME = "Sentinel"


class Sentinel:
    """Polling supervisor for the mobile agent pool.

    Args:
        collaborators: registry, pool, directory and shutdown hooks
        config: sentinel configuration, read from sentinel.yaml when omitted
        config_dir: directory configuration resources resolve against
        time_unit: seconds per polling interval unit
    """

    def __init__(
        self,
        collaborators: Collaborators,
        config: Optional[Configurator] = None,
        config_dir: Optional[Path] = None,
        time_unit: float = 60.0,
    ):
        self.collaborators = collaborators
        self.config = config
        self.config_dir = config_dir
        self.time_unit = time_unit

        self.protocols: List[Protocol] = []
        self.polling_interval = 5
        self.enabled = False

        self._quit = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @classmethod
    def lookup(cls, registry) -> "Sentinel":
        """Get the Sentinel bound in the registry"""
        return registry.lookup(DEFAULT_NAMESPACE_NAME)

    def get_polling_interval(self) -> int:
        return self.polling_interval

    def is_enabled(self) -> bool:
        return self.enabled

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def configure(self) -> None:
        """Read the settings and build the protocols"""
        try:
            if self.config is None:
                self.config = Configurator.from_resource(SENTINEL_RESOURCE, self.config_dir, env_override=True)
            settings = SentinelSettings.from_config(self.config)
        except ConfigurationError as e:
            logger.warning("Cannot read Sentinel configuration, staying disabled", error=str(e))
            self.enabled = False
            return

        self.enabled = settings.enabled
        if not self.enabled:
            return

        self.polling_interval = settings.polling_interval_minutes
        factory = ProtocolFactory(self.collaborators, self.polling_interval, self.config_dir)
        self.protocols = []
        for resource in settings.protocols:
            protocol = factory.create(resource)
            if protocol is not None and protocol.is_enabled():
                self.protocols.append(protocol)
            else:
                logger.info("Protocol not enabled", resource=resource)

    def start(self) -> None:
        """Configure and start the monitoring thread if enabled"""
        if self.is_running():
            logger.warning("Sentinel already running")
            return

        self.configure()
        if not self.enabled:
            logger.info("Sentinel is disabled")
            return
        if not self.protocols:
            logger.info("Sentinel has no enabled protocols, polls will be empty")

        self._quit.clear()
        self._thread = threading.Thread(target=self.run, name=DEFAULT_NAMESPACE_NAME, daemon=True)
        self.collaborators.registry.bind(DEFAULT_NAMESPACE_NAME, self)
        self._thread.start()
        logger.info(
            "Sentinel started",
            polling_interval=self.polling_interval,
            protocols=len(self.protocols),
        )

    def quit(self) -> None:
        """Safely stop the monitoring thread, wakes it if it is waiting"""
        if self._quit.is_set():
            return
        logger.info("Stopping Sentinel...")
        self._quit.set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def run(self) -> None:
        """Monitoring loop, runs until quit"""
        logger.debug("Sentinel is starting")
        try:
            while not self._quit.wait(self.polling_interval * self.time_unit):
                self.poll()
        finally:
            self.collaborators.registry.unbind(DEFAULT_NAMESPACE_NAME)
            logger.info("Sentinel stopped.")

    def poll(self) -> None:
        """Run every protocol once, failures are contained to the protocol"""
        for protocol in self.protocols:
            try:
                protocol.run()
            except SentinelError as e:
                logger.error("There was an error running protocol", protocol=type(protocol).__name__, error=str(e))
            except Exception as e:
                logger.exception("Unexpected error running protocol", protocol=type(protocol).__name__, error=str(e))

    def __str__(self) -> str:
        return f"Watching agents with {[str(p) for p in self.protocols]}"
