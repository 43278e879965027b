"""Publish/subscribe channel for the daily protein goal."""

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from meal_lens.errors import FieldError, ValidationError

logger = logging.getLogger(__name__)

MIN_GOAL_GRAMS = 0.0
MAX_GOAL_GRAMS = 500.0


@dataclass(frozen=True)
class ProteinGoal:
    goal_grams: float
    updated_at: datetime


GoalSubscriber = Callable[[ProteinGoal], None]


@dataclass
class GoalChannel:
    """Delivers the latest goal to registered subscribers.

    Late subscribers receive the current value immediately. Updates older
    than the current value are ignored, so the latest write always wins.
    """

    _current: ProteinGoal | None = field(default=None, init=False)
    _subscribers: list[GoalSubscriber] = field(default_factory=list, init=False)

    @property
    def current(self) -> ProteinGoal | None:
        return self._current

    def subscribe(self, subscriber: GoalSubscriber) -> Callable[[], None]:
        """Register a subscriber and return its unsubscribe handle."""
        self._subscribers.append(subscriber)
        if self._current is not None:
            self._deliver(subscriber, self._current)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def publish(self, goal_grams: float, updated_at: datetime) -> bool:
        """Publish a new goal. Returns False when the update is stale."""
        if (
            not math.isfinite(goal_grams)
            or goal_grams < MIN_GOAL_GRAMS
            or goal_grams > MAX_GOAL_GRAMS
        ):
            raise ValidationError(
                [
                    FieldError(
                        "goalGrams",
                        f"Goal must be between {MIN_GOAL_GRAMS:g} "
                        f"and {MAX_GOAL_GRAMS:g} grams",
                    )
                ]
            )
        if self._current is not None and updated_at <= self._current.updated_at:
            logger.info(
                "Ignoring stale goal update",
                extra={"updated_at": updated_at.isoformat()},
            )
            return False
        self._current = ProteinGoal(goal_grams=goal_grams, updated_at=updated_at)
        for subscriber in list(self._subscribers):
            self._deliver(subscriber, self._current)
        return True

    def _deliver(self, subscriber: GoalSubscriber, goal: ProteinGoal) -> None:
        try:
            subscriber(goal)
        except Exception:
            logger.exception("Goal subscriber failed")
