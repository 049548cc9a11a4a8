"""
Mobile agent protocol.

Buckets the places the mobile agents are running in, then looks at the
min/max time in place and how many agents are parked there. The place stats
are run against the configured rules and, once every rule matches, the
configured action is triggered.
"""

import copy
import re
import threading
from typing import Collection, Dict, List, Optional

import structlog

from docsentinel.collaborators import AgentHandle, Collaborators
from docsentinel.config import Configurator
from docsentinel.errors import ConfigurationError, NamespaceError, ProtocolRunError
from docsentinel.sentinel.protocols.base import Protocol
from docsentinel.sentinel.rules import AgentRule, get_rule_class
from docsentinel.sentinel.trackers import AgentTracker, PlaceAgentStats, get_place_name

logger = structlog.get_logger(__name__)

AGENT_NAME_PREFIX = "MobileAgent"
DEFAULT_RULE = "AllMaxTime"


class AgentProtocol(Protocol[PlaceAgentStats]):
    """Watches the mobile agent pool for agents stuck in a place."""

    def __init__(
        self,
        collaborators: Collaborators,
        config: Optional[Configurator] = None,
        polling_interval: int = 5,
    ):
        # key: agent name, value: how long the mobile agent has been observed
        self.trackers: Dict[str, AgentTracker] = {}
        self._lock = threading.Lock()
        super().__init__(collaborators, config, polling_interval)

    def snapshot(self) -> Dict[str, AgentTracker]:
        """Copies of the trackers, consistent while polling continues"""
        with self._lock:
            return {name: copy.copy(tracker) for name, tracker in self.trackers.items()}

    def get_rule(self, rule_id: str) -> AgentRule:
        settings = self.config.find_string_match_map(f"{rule_id}_")
        rule_cls = get_rule_class(settings.get("RULE") or settings.get("RULE_CLASS") or DEFAULT_RULE)
        place = settings.get("PLACE_MATCHER")
        if not place:
            raise ConfigurationError(f"Rule {rule_id} has no PLACE_MATCHER")
        return rule_cls(
            rule_id,
            self.validate(place),
            settings.get("TIME_LIMIT_MINUTES"),
            settings.get("PLACE_THRESHOLD"),
            pool=self.collaborators.pool,
        )

    def validate(self, place: str) -> str:
        """Check that the place pattern matches at least one place in the directory"""
        directory = self.collaborators.directory
        if directory is None:
            raise ConfigurationError("No directory available to validate places")
        if not any(
            entry.place_name and re.fullmatch(place, entry.place_name)
            for entry in directory.entries()
        ):
            raise ConfigurationError(f"Place not found in the directory: {place}")
        return place

    def run(self) -> None:
        """Check whether the mobile agents are processing the same data since the last poll"""
        try:
            agent_keys = sorted(self.collaborators.registry.keys(AGENT_NAME_PREFIX))
            for agent_key in agent_keys:
                self.update_tracker(agent_key)
        except NamespaceError as e:
            raise ProtocolRunError(f"There was an issue running protocol: {e}") from e
        self.run_rules(self.snapshot())

    def update_tracker(self, agent_key: str) -> None:
        logger.debug("Searching for agent", agent_key=agent_key)
        agent: AgentHandle = self.collaborators.registry.lookup(agent_key)
        in_use = agent.is_in_use()
        if in_use:
            agent_id = agent.current_work_id()
            stage_key = agent.last_stage_key()
            thread_id = agent.thread_id()

        # trackers only change under the lock so snapshots never see half an update
        with self._lock:
            tracker = self.trackers.get(agent.name)
            if tracker is None:
                tracker = self.trackers[agent.name] = AgentTracker(agent.name)

            if not in_use:
                tracker.clear()
                logger.debug("Agent not in use", agent_key=agent_key)
                return

            if agent_id != tracker.agent_id or stage_key != tracker.directory_entry_key:
                tracker.reset(agent_id, stage_key, thread_id)
            if not tracker.agent_id:
                logger.debug("Agent has no work id set", agent_key=agent_key)
                return
            tracker.increment_timer(self.polling_interval)
            logger.debug("Agent acquired", tracker=str(tracker))

    def generate_place_agent_stats(self, trackers: Collection[AgentTracker]) -> Dict[str, PlaceAgentStats]:
        place_agent_stats: Dict[str, PlaceAgentStats] = {}
        for tracker in trackers:
            place = get_place_name(tracker.directory_entry_key)
            if place.strip():
                place_agent_stats.setdefault(place, PlaceAgentStats(place)).update(tracker)
        return place_agent_stats

    def run_rules(self, trackers: Dict[str, AgentTracker]) -> bool:
        """Run the configured rules over the watched mobile agents

        Returns:
            True if the action was triggered
        """
        place_agent_stats = self.generate_place_agent_stats(list(trackers.values()))
        if not place_agent_stats:
            return False

        logger.debug("Running rules on agents", stats=list(place_agent_stats.values()))
        if self.rules_match(list(place_agent_stats.values())):
            logger.warning("Sentinel rules matched", rules=[str(r) for r in self.rules.values()])
            self.action.trigger(trackers)
            return True
        return False

    def get_tracked_agents(self) -> List[AgentTracker]:
        return sorted(self.snapshot().values())
