"""Per-agent state carried across polling cycles."""
import json
from functools import total_ordering
from typing import Any, Dict, List, Optional, Union

NO_AGENT_ID = "No_AgentID_Set"


def get_place_name(directory_entry_key: Optional[str]) -> str:
    """Get the simple place name, i.e. the part of the key after the last slash"""
    if not directory_entry_key or "/" not in directory_entry_key:
        return ""
    return directory_entry_key.rsplit("/", 1)[1]


def get_bundle_file_name(agent_id: Optional[str]) -> str:
    """Agent ids look like Agent-1234-testing.txt, the file name follows the second dash"""
    if not agent_id or "Agent-" not in agent_id:
        return ""
    rest = agent_id.split("Agent-", 1)[1]
    return rest.split("-", 1)[1] if "-" in rest else ""


@total_ordering
class AgentTracker:
    """Tracks how long the watchdog has observed an agent on the same payload and place.

    The timer is in minutes; -1 means unset. It only grows while the agent
    id and directory entry key stay the same.
    """

    def __init__(self, agent_name: str):
        self.agent_name = agent_name
        self.agent_id = ""
        self.bundle_file_name = ""
        self.directory_entry_key = ""
        self.thread_id: Optional[int] = None
        self.timer = -1
        self.flagged = False

    def set_agent_id(self, agent_id: Optional[str]) -> None:
        if agent_id and NO_AGENT_ID in agent_id:
            self.clear()
        else:
            self.agent_id = agent_id or ""
            self.bundle_file_name = get_bundle_file_name(self.agent_id)

    @property
    def place_name(self) -> str:
        return get_place_name(self.directory_entry_key)

    def is_tracking(self) -> bool:
        return self.timer >= 0

    def reset(self, agent_id: str, directory_entry_key: str, thread_id: Optional[int] = None) -> None:
        """Start tracking new work.

        New work replacing work seen at the previous poll started within the
        last interval, so the timer restarts from zero instead of unset.
        """
        was_tracking = self.is_tracking()
        self.clear()
        self.directory_entry_key = directory_entry_key or ""
        self.thread_id = thread_id
        self.set_agent_id(agent_id)
        if was_tracking and self.agent_id:
            self.init_timer()

    def init_timer(self) -> None:
        self.timer = 0

    def reset_timer(self) -> None:
        self.timer = -1

    def increment_timer(self, minutes: int) -> None:
        if self.timer == -1:
            self.init_timer()
        else:
            self.timer += minutes

    def flag(self) -> None:
        self.flagged = True

    def clear(self) -> None:
        self.agent_id = ""
        self.bundle_file_name = ""
        self.directory_entry_key = ""
        self.thread_id = None
        self.flagged = False
        self.reset_timer()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "agentName": self.agent_name,
            "agentId": self.agent_id,
            "directoryEntry": self.directory_entry_key,
            "bundleFileName": self.bundle_file_name,
            "flagged": self.flagged,
            "timeInMinutes": self.timer,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AgentTracker):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __lt__(self, other: "AgentTracker") -> bool:
        return self.agent_name < other.agent_name

    def __hash__(self) -> int:
        return hash(self.agent_name)

    def __str__(self) -> str:
        return json.dumps(self.to_dict())

    __repr__ = __str__


class PlaceAgentStats:
    """Agents currently parked in one place, folded from their trackers."""

    def __init__(self, place: str):
        self.place = place
        self.count = 0
        self.min_time_in_place = -1
        self.max_time_in_place = -1
        self.trackers: List[AgentTracker] = []

    def update(self, tracker: Union[AgentTracker, int]) -> "PlaceAgentStats":
        if isinstance(tracker, AgentTracker):
            self.trackers.append(tracker)
            timer = tracker.timer
        else:
            timer = tracker
        self.count += 1
        self.min_time_in_place = timer if self.min_time_in_place < 0 else min(self.min_time_in_place, timer)
        self.max_time_in_place = max(self.max_time_in_place, timer)
        return self

    def flag(self, time_limit: int) -> None:
        """Flag the trackers that have been in the place at least time_limit minutes"""
        for tracker in self.trackers:
            if tracker.timer >= time_limit:
                tracker.flag()

    def __repr__(self) -> str:
        return (
            f"PlaceAgentStats(place={self.place!r}, count={self.count}, "
            f"min={self.min_time_in_place}, max={self.max_time_in_place})"
        )
