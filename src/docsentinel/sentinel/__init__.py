"""
Sentinel - watchdog for the mobile agent pool.

Tracks what every agent is working on across polls, buckets agents by the
place they are in and runs configurable rules over those buckets. When all
of a protocol's rules match, its action runs.
"""

from docsentinel.sentinel.trackers import AgentTracker, PlaceAgentStats
from docsentinel.sentinel.rules import AgentRule, AllMaxTime, AnyMaxTime, Rule
from docsentinel.sentinel.actions import (
    Action,
    Exit,
    Kill,
    LogStackTrace,
    LogThreadDump,
    Notify,
    Recover,
    Stop,
)
from docsentinel.sentinel.protocols import AgentProtocol, Protocol, ProtocolFactory
from docsentinel.sentinel.watchdog import DEFAULT_NAMESPACE_NAME, Sentinel

__all__ = [
    # State
    "AgentTracker",
    "PlaceAgentStats",
    # Rules
    "Rule",
    "AgentRule",
    "AllMaxTime",
    "AnyMaxTime",
    # Actions
    "Action",
    "Notify",
    "LogStackTrace",
    "LogThreadDump",
    "Recover",
    "Stop",
    "Kill",
    "Exit",
    # Protocols
    "Protocol",
    "AgentProtocol",
    "ProtocolFactory",
    # Supervisor
    "Sentinel",
    "DEFAULT_NAMESPACE_NAME",
]
