"""Protocol base: a named set of rules and the action run when they all match."""
import json
from abc import ABC, abstractmethod
from typing import Collection, Dict, Generic, Optional, TypeVar

import structlog

from docsentinel.collaborators import Collaborators
from docsentinel.config import Configurator
from docsentinel.sentinel.actions import Action, create_action
from docsentinel.sentinel.rules import Rule

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_ACTION = "Notify"


class Protocol(ABC, Generic[T]):
    """Gathers observations, runs the rules over them and triggers the action.

    A protocol that ends up with no valid rules is disabled, so a bad
    configuration never matches everything.
    """

    def __init__(
        self,
        collaborators: Collaborators,
        config: Optional[Configurator] = None,
        polling_interval: int = 5,
    ):
        self.collaborators = collaborators
        self.polling_interval = polling_interval
        self.config: Optional[Configurator] = None
        self.enabled = False
        self.rules: Dict[str, Rule] = {}
        self.action: Optional[Action] = None
        if config is not None:
            self.configure(config)

    def is_enabled(self) -> bool:
        return self.enabled

    def configure(self, config: Configurator) -> None:
        """Load the action and rules from the configuration"""
        self.config = config
        self.enabled = config.find_boolean_entry("ENABLED", False)
        if not self.enabled:
            logger.info("Protocol is disabled", config=config.name)
            return

        action_name = config.find_string_entry("ACTION", DEFAULT_ACTION)
        try:
            self.action = create_action(action_name, self.collaborators)
        except ValueError as e:
            logger.error("Protocol action is invalid, disabling", config=config.name, error=str(e))
            self.enabled = False
            return

        logger.debug("Loading rules", config=config.name)
        for rule_id in config.find_entries("RULE_ID"):
            if rule_id in self.rules:
                logger.warning(
                    "Sentinel rule already exists, this may result in unexpected behavior",
                    rule_id=rule_id,
                )
            try:
                rule = self.get_rule(rule_id)
            except Exception as e:
                logger.warning("Sentinel rule is invalid", rule_id=rule_id, error=str(e))
                continue
            logger.debug("Sentinel loaded rule", rule_id=rule_id, rule=str(rule))
            self.rules[rule_id] = rule

        if not self.rules:
            logger.warning("Protocol has no valid rules, disabling", config=config.name)
            self.enabled = False

    @abstractmethod
    def get_rule(self, rule_id: str) -> Rule:
        """Build a rule from its configuration block"""
        pass

    @abstractmethod
    def run(self) -> None:
        """Run one polling cycle"""
        pass

    def rules_match(self, items: Collection[T]) -> bool:
        """All rules must match, each one being a necessary condition"""
        results = [rule.condition(items) for rule in self.rules.values()]
        return bool(results) and all(results)

    def to_dict(self) -> Dict[str, object]:
        return {
            "protocol": type(self).__name__,
            "enabled": self.enabled,
            "rules": {rule_id: json.loads(str(rule)) for rule_id, rule in self.rules.items()},
            "action": type(self.action).__name__ if self.action else None,
        }

    def __str__(self) -> str:
        return json.dumps(self.to_dict())

    __repr__ = __str__
