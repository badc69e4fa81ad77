"""
Tool: Reward Ledger
Purpose: Award completion energy exactly once per entity

The "granted" bit lives on each entity (reward_granted) and is sticky:
reopening a step, milestone or task never clears it, so re-completing
never pays out twice. The ledger is the only code that sets the bit.

Usage:
    from syncscript.tasks.rewards import RewardLedger

    ledger = RewardLedger()                   # amounts from args/task_engine.yaml
    event = ledger.grant(step, "step")        # RewardEvent(amount=5) or None
    ledger.total_awarded                      # running balance for this ledger

Dependencies:
    - pyyaml (via config)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from .config import get_reward_amounts
from .errors import ValidationError
from .models import RewardLevel

logger = logging.getLogger(__name__)


class Rewardable(Protocol):
    id: str
    title: str
    reward_granted: bool


@dataclass
class RewardEvent:
    """A newly granted reward. Emitted once per entity lifetime."""

    entity_id: str
    level: RewardLevel
    amount: int
    title: str = ""
    granted_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "entity_id": self.entity_id,
            "level": self.level.value,
            "amount": self.amount,
            "title": self.title,
            "granted_at": self.granted_at.isoformat(),
        }


class RewardLedger:
    """Grants level-dependent rewards and remembers what it paid out.

    Args:
        amounts: Reward per level. Defaults to configured amounts.
    """

    def __init__(self, amounts: dict[str, int] | None = None):
        resolved = get_reward_amounts() if amounts is None else get_reward_amounts(
            {"task_engine": {"rewards": amounts}}
        )
        self._amounts = {RewardLevel(level): value for level, value in resolved.items()}
        self._history: list[RewardEvent] = []

    def amount_for(self, level: RewardLevel | str) -> int:
        try:
            return self._amounts[RewardLevel(level)]
        except ValueError as e:
            raise ValidationError(f"Unknown reward level: {level!r}") from e

    def grant(self, entity: Rewardable, level: RewardLevel | str) -> RewardEvent | None:
        """
        Grant the level reward unless the entity already received it.

        Returns:
            RewardEvent for a new grant, None if the entity was already rewarded
        """
        if entity.reward_granted:
            logger.debug(f"Reward already granted for {level} {entity.id}, skipping")
            return None

        level = RewardLevel(level)
        entity.reward_granted = True
        event = RewardEvent(
            entity_id=entity.id,
            level=level,
            amount=self._amounts[level],
            title=entity.title,
        )
        self._history.append(event)
        logger.info(f"Granted {event.amount} energy for {level.value} {entity.id}")
        return event

    @property
    def history(self) -> list[RewardEvent]:
        return list(self._history)

    @property
    def total_awarded(self) -> int:
        return sum(e.amount for e in self._history)

    def amounts(self) -> dict[str, int]:
        return {level.value: value for level, value in self._amounts.items()}
