"""Build protocols from configuration resources."""
from pathlib import Path
from typing import Dict, Optional, Type

import structlog

from docsentinel.collaborators import Collaborators
from docsentinel.config import Configurator
from docsentinel.errors import ConfigurationError
from docsentinel.sentinel.protocols.agent import AgentProtocol
from docsentinel.sentinel.protocols.base import Protocol

logger = structlog.get_logger(__name__)

DEFAULT_PROTOCOL = "AgentProtocol"

_PROTOCOLS: Dict[str, Type[Protocol]] = {
    "AgentProtocol": AgentProtocol,
}


def register_protocol(name: str):
    """Decorator to make a protocol class available to configuration by name"""
    def decorator(cls: Type[Protocol]) -> Type[Protocol]:
        _PROTOCOLS[name] = cls
        return cls
    return decorator


class ProtocolFactory:
    """Creates the protocol named by a configuration resource.

    Args:
        collaborators: handed to every protocol, rule and action
        polling_interval: minutes between polls, used to advance tracker timers
        config_dir: directory relative resource names resolve against
    """

    def __init__(
        self,
        collaborators: Collaborators,
        polling_interval: int = 5,
        config_dir: Optional[Path] = None,
    ):
        self.collaborators = collaborators
        self.polling_interval = polling_interval
        self.config_dir = config_dir

    def create(self, resource: str) -> Optional[Protocol]:
        """Create and configure a protocol, returns None when the resource cannot be read"""
        try:
            config = Configurator.from_resource(resource, self.config_dir)
        except ConfigurationError as e:
            logger.warning("Cannot read protocol configuration, skipping", resource=resource, error=str(e))
            return None
        return self.create_from_config(config)

    def create_from_config(self, config: Configurator) -> Optional[Protocol]:
        name = config.find_string_entry("PROTOCOL", DEFAULT_PROTOCOL)
        protocol_cls = _PROTOCOLS.get(name.rsplit(".", 1)[-1])
        if protocol_cls is None:
            logger.warning("Unknown protocol, skipping", protocol=name, config=config.name)
            return None
        protocol = protocol_cls(self.collaborators, polling_interval=self.polling_interval)
        protocol.configure(config)
        logger.debug("Created protocol", protocol=str(protocol))
        return protocol
