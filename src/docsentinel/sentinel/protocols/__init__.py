"""Sentinel protocols."""
from .base import Protocol
from .agent import AgentProtocol
from .factory import ProtocolFactory, register_protocol

__all__ = [
    "Protocol",
    "AgentProtocol",
    "ProtocolFactory",
    "register_protocol",
]
