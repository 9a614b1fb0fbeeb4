"""Typed in-process event bus.

Subscribers register per event class and are called synchronously, in
subscription order, on ``publish``. Handler exceptions propagate to the
publisher.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from fitkernel.core.models import GoalType

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class OpenCoachRequested:
    goal_type: GoalType
    message: str | None = None


@dataclass(frozen=True, slots=True)
class GoalAdded:
    goal_id: str
    goal_type: GoalType


@dataclass(frozen=True, slots=True)
class GoalDeactivated:
    goal_id: str
    goal_type: GoalType


@dataclass(frozen=True, slots=True)
class DomainConfigured:
    goal_type: GoalType


E = TypeVar("E")
Handler = Callable[[Any], None]


class EventBus:
    def __init__(self) -> None:
        self._handlers: dict[type, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Callable[[E], None]) -> Callable[[], None]:
        """Register ``handler``; the returned callable unsubscribes it."""
        self._handlers[event_type].append(handler)

        def _unsubscribe() -> None:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

        return _unsubscribe

    def publish(self, event: object) -> int:
        """Deliver ``event`` to subscribers of its exact class; returns the count."""
        handlers = list(self._handlers.get(type(event), ()))
        logger.debug("publish %s to %d handlers", type(event).__name__, len(handlers))
        for handler in handlers:
            handler(event)
        return len(handlers)
