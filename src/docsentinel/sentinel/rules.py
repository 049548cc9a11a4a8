"""
Sentinel rules.

A rule is a predicate over the place stats gathered by a protocol. Agent
rules match places by pattern, then check how many agents are parked there
relative to the pool size and how long they have been there.
"""

import json
import re
from abc import ABC, abstractmethod
from typing import Callable, Collection, Dict, Generic, List, Optional, Type, TypeVar, Union

import structlog

from docsentinel.collaborators import AgentPool
from docsentinel.sentinel.trackers import PlaceAgentStats

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_TIME_LIMIT_MINUTES = 60
DEFAULT_THRESHOLD = 1.0


class Rule(ABC, Generic[T]):
    """Condition evaluated against the items gathered by a protocol"""

    @abstractmethod
    def condition(self, items: Collection[T]) -> bool:
        pass


def parse_time_limit(value: Union[str, int, None]) -> int:
    """Parse a time limit in minutes, tolerating a trailing L"""
    if value is None or (isinstance(value, str) and not value.strip()):
        return DEFAULT_TIME_LIMIT_MINUTES
    if isinstance(value, int):
        return value
    text = value.strip()
    if text[-1:] in ("L", "l"):
        text = text[:-1]
    try:
        return int(text)
    except ValueError:
        raise ValueError(f"Invalid timeLimit [{value}], not a number") from None


def parse_threshold(value: Union[str, float, None]) -> float:
    if value is None or (isinstance(value, str) and not value.strip()):
        return DEFAULT_THRESHOLD
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Invalid threshold [{value}], not a number") from None


class AgentRule(Rule[PlaceAgentStats]):
    """Base rule for agents that are stuck in places.

    Args:
        name: name of the rule
        place: regular expression matched against place names
        time_limit: minutes before an agent is considered stuck
        threshold: fraction of the pool that must be parked in matching places
        pool: agent pool queried for the current size
    """

    def __init__(
        self,
        name: str,
        place: str,
        time_limit: Union[str, int, None] = None,
        threshold: Union[str, float, None] = None,
        pool: Optional[AgentPool] = None,
    ):
        logger.debug(
            "Creating rule", name=name, place=place, time_limit=time_limit, threshold=threshold
        )
        if not name or not name.strip():
            raise ValueError(f"Invalid name [{name}]")
        if not place or not place.strip():
            raise ValueError(f"Invalid place pattern [{place}]")

        time_limit = parse_time_limit(time_limit)
        threshold = parse_threshold(threshold)
        if time_limit <= 0:
            raise ValueError(f"Invalid timeLimit [{time_limit}], must be greater than 0")
        if not 0.0 < threshold <= 1.0:
            raise ValueError(f"Invalid threshold [{threshold}], expected a value > 0.0 or <= 1.0")

        try:
            self.place = re.compile(place)
        except re.error as e:
            raise ValueError(f"Invalid place pattern [{place}]: {e}") from e

        self.name = name
        self.time_limit = time_limit
        self.threshold = threshold
        self.pool = pool

    def condition(self, items: Collection[PlaceAgentStats]) -> bool:
        filtered = [p for p in items if self.place.fullmatch(p.place)]
        return self.over_threshold(filtered) and self.over_time_limit(filtered)

    def over_threshold(self, place_agent_stats: Collection[PlaceAgentStats]) -> bool:
        """Check the share of the pool parked in the matching places"""
        count = sum(p.count for p in place_agent_stats)
        pool_size = self.get_agent_count()
        logger.debug(
            "Testing threshold",
            place=self.place.pattern,
            count=count,
            pool_size=pool_size,
            threshold=self.threshold,
        )
        if pool_size <= 0:
            return False
        return count / pool_size >= self.threshold

    def get_agent_count(self) -> int:
        """Get the total number of agents, idle and active"""
        if self.pool is None:
            raise RuntimeError(f"Rule {self.name} has no agent pool")
        return self.pool.current_size()

    @abstractmethod
    def over_time_limit(self, place_agent_stats: Collection[PlaceAgentStats]) -> bool:
        pass

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "rule": type(self).__name__,
            "place": self.place.pattern,
            "timeLimitInMinutes": self.time_limit,
            "threshold": self.threshold,
        }

    def __str__(self) -> str:
        return json.dumps(self.to_dict())

    __repr__ = __str__


class AllMaxTime(AgentRule):
    """Matches when every agent in the matching places is over the time limit"""

    def over_time_limit(self, place_agent_stats: Collection[PlaceAgentStats]) -> bool:
        all_over = True
        for stats in place_agent_stats:
            stats.flag(self.time_limit)
            if stats.min_time_in_place < self.time_limit:
                all_over = False
        return all_over


class AnyMaxTime(AgentRule):
    """Matches when at least one agent in the matching places is over the time limit"""

    def over_time_limit(self, place_agent_stats: Collection[PlaceAgentStats]) -> bool:
        any_over = False
        for stats in place_agent_stats:
            if stats.max_time_in_place >= self.time_limit:
                stats.flag(self.time_limit)
                any_over = True
        return any_over


_RULES: Dict[str, Type[AgentRule]] = {}


def register_rule(name: str) -> Callable[[Type[AgentRule]], Type[AgentRule]]:
    """Decorator to make a rule class available to configuration by name"""
    def decorator(cls: Type[AgentRule]) -> Type[AgentRule]:
        _RULES[name] = cls
        return cls
    return decorator


register_rule("AllMaxTime")(AllMaxTime)
register_rule("AnyMaxTime")(AnyMaxTime)


def get_rule_class(name: str) -> Type[AgentRule]:
    # dotted names resolve by their last component
    key = name.rsplit(".", 1)[-1]
    if key not in _RULES:
        raise ValueError(f"Unknown rule '{name}', expected one of {sorted(_RULES)}")
    return _RULES[key]


def list_rules() -> List[str]:
    return sorted(_RULES)
