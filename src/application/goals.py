from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Iterable
from uuid import uuid4

from domain.errors import NotFoundError, ValidationError
from domain.models import Goal
from application.views import LazyView

logger = logging.getLogger(__name__)


class GoalNotFoundError(NotFoundError, ValidationError):
    """Raised for an unknown goal id; catchable as either error kind."""


def _positive_amount(value: object, label: str) -> Decimal:
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"{label} is not a number: {value!r}") from exc
    if not amount.is_finite() or amount <= 0:
        raise ValidationError(f"{label} must be > 0, got {value}")
    return amount


class GoalTracker:
    def __init__(self, goals: Iterable[Goal] | None = None) -> None:
        self._goals: list[Goal] = list(goals or [])
        self._version = 0

    @property
    def version(self) -> int:
        return self._version

    def create_goal(
        self,
        name: str,
        target_amount: Decimal | float | int | str,
        *,
        target_date: date | None = None,
        category: str = "",
        description: str = "",
    ) -> Goal:
        if not name or not name.strip():
            raise ValidationError("Goal name must not be blank")
        target = _positive_amount(target_amount, "Goal target")
        goal = Goal(
            id=uuid4().hex,
            name=name.strip(),
            target_amount=target,
            target_date=target_date,
            category=category,
            description=description,
            created_at=datetime.now(),
        )
        self._goals.append(goal)
        self._version += 1
        logger.debug("Goal created id=%s target=%s", goal.id, target)
        return goal

    def contribute(self, goal_id: str, amount: Decimal | float | int | str) -> Goal:
        value = _positive_amount(amount, "Contribution")
        index = self._index_of(goal_id)
        current = self._goals[index]
        # No upper clamp: over-funding a goal is allowed.
        updated = dataclasses.replace(current, current_amount=current.current_amount + value)
        self._goals[index] = updated
        self._version += 1
        if updated.is_completed and not current.is_completed:
            logger.info("Goal completed id=%s name=%s", updated.id, updated.name)
        return updated

    def remove(self, goal_id: str) -> Goal:
        removed = self._goals.pop(self._index_of(goal_id))
        self._version += 1
        return removed

    def get(self, goal_id: str) -> Goal:
        return self._goals[self._index_of(goal_id)]

    def list(self) -> LazyView[Goal]:
        return LazyView(lambda: self._goals)

    def list_active(self) -> LazyView[Goal]:
        return LazyView(lambda: self._goals, lambda goal: not goal.is_completed)

    def list_completed(self) -> LazyView[Goal]:
        return LazyView(lambda: self._goals, lambda goal: goal.is_completed)

    def checkpoint(self) -> tuple[Goal, ...]:
        return tuple(self._goals)

    def restore(self, checkpoint: tuple[Goal, ...]) -> None:
        self._goals = list(checkpoint)
        self._version += 1

    def _index_of(self, goal_id: str) -> int:
        for index, goal in enumerate(self._goals):
            if goal.id == goal_id:
                return index
        raise GoalNotFoundError(f"Goal not found: {goal_id}")
