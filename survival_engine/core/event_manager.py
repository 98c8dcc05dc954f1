"""
Event bus for the rules engine.

The orchestrator and its helpers publish events here and the log manager
subscribes. Published events wait in the queue until process_events() is
called, so an engine operation has finished mutating state before anyone
observes it.

While delivering, the bus keeps a CombatTally for the combat in progress:
rolls, pushes and the damage they cost, rejected actions, mishaps, broken
combatants and critical injuries. It is reset by every CombatStarted.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, TYPE_CHECKING

from .events import EventType, LogMessage

if TYPE_CHECKING:
    from .events import GameEvent


class EventPriority(Enum):
    """Event processing priorities. Lower values are processed first."""
    CRITICAL = 0
    HIGH = 1
    NORMAL = 2
    LOW = 3


@dataclass
class QueuedEvent:
    """An event waiting in the queue."""
    event: "GameEvent"
    priority: EventPriority = EventPriority.NORMAL
    source: Optional[str] = None
    sequence: int = 0

    def __lt__(self, other: "QueuedEvent") -> bool:
        if self.priority.value != other.priority.value:
            return self.priority.value < other.priority.value
        # Same priority: publication order
        return self.sequence < other.sequence


@dataclass
class CombatTally:
    """Running counts for the combat in progress."""
    rolls: int = 0
    pushes: int = 0
    push_damage: int = 0
    rejections: int = 0
    mishaps: int = 0
    broken: list[str] = field(default_factory=list)
    injuries: int = 0

    def summary(self) -> str:
        text = (
            f"{self.rolls} roll(s), {self.pushes} push(es) costing {self.push_damage} health, "
            f"{self.rejections} rejected action(s), {self.mishaps} mishap(s)"
        )
        if self.broken:
            text += f"; broken: {', '.join(self.broken)}"
        return text

    def to_dict(self) -> dict[str, Any]:
        return {
            "rolls": self.rolls,
            "pushes": self.pushes,
            "push_damage": self.push_damage,
            "rejections": self.rejections,
            "mishaps": self.mishaps,
            "broken": list(self.broken),
            "injuries": self.injuries,
        }


EventSubscriber = Callable[["GameEvent"], None]

# Errors raised while delivering these are counted but not reported as new
# log events, otherwise a failing log subscriber would feed itself.
_UNREPORTED_TYPES = frozenset({EventType.LOG_MESSAGE, EventType.DEBUG_MESSAGE})


class EventManager:
    """Central event bus for engine communication."""

    def __init__(self, report_subscriber_errors: bool = True):
        """Initialize the event manager.

        Args:
            report_subscriber_errors: Queue an ERROR LogMessage when a
                subscriber raises
        """
        self.report_subscriber_errors = report_subscriber_errors
        self.tally = CombatTally()

        self._subscribers: dict[EventType, list[EventSubscriber]] = defaultdict(list)
        self._universal_subscribers: list[EventSubscriber] = []
        self._queue: list[QueuedEvent] = []

        self._events_published = 0
        self._events_processed = 0
        self._subscriber_errors = 0

    def subscribe(self, event_type: EventType, subscriber: EventSubscriber) -> None:
        self._subscribers[event_type].append(subscriber)

    def subscribe_all(self, subscriber: EventSubscriber) -> None:
        """Subscribe to every event type."""
        self._universal_subscribers.append(subscriber)

    def publish(
        self,
        event: "GameEvent",
        priority: EventPriority = EventPriority.NORMAL,
        source: Optional[str] = None
    ) -> None:
        """Queue an event for the next process_events() call."""
        self._events_published += 1
        self._queue.append(QueuedEvent(
            event=event,
            priority=priority,
            source=source or "unknown",
            sequence=self._events_published,
        ))

    def process_events(self, max_events: Optional[int] = None) -> int:
        """Deliver queued events in priority order.

        Events published by subscribers during delivery wait for the next
        call.

        Args:
            max_events: Maximum number of events to deliver (None for all)

        Returns:
            Number of events delivered
        """
        batch = sorted(self._queue)
        self._queue = []
        if max_events is not None and len(batch) > max_events:
            self._queue = batch[max_events:]
            batch = batch[:max_events]

        for queued_event in batch:
            self._deliver(queued_event)
        return len(batch)

    def _deliver(self, queued_event: QueuedEvent) -> None:
        event = queued_event.event
        self._events_processed += 1
        self._update_tally(event)

        subscribers = list(self._subscribers.get(event.event_type, [])) + list(self._universal_subscribers)
        for subscriber in subscribers:
            try:
                subscriber(event)
            except Exception as e:
                self._subscriber_errors += 1
                if self.report_subscriber_errors and event.event_type not in _UNREPORTED_TYPES:
                    name = getattr(subscriber, '__name__', type(subscriber).__name__)
                    self.publish(
                        LogMessage(
                            turn=event.turn,
                            message=f"Subscriber {name} failed on {event.__class__.__name__}: {e}",
                            category="ERROR",
                            level="ERROR",
                            source="EventManager",
                        ),
                        source="EventManager",
                    )

    def _update_tally(self, event: "GameEvent") -> None:
        event_type = event.event_type
        tally = self.tally
        if event_type is EventType.COMBAT_STARTED:
            self.tally = CombatTally()
        elif event_type is EventType.SKILL_ROLLED:
            tally.rolls += 1
        elif event_type is EventType.ROLL_PUSHED:
            tally.pushes += 1
            tally.push_damage += event.damage
        elif event_type is EventType.ACTION_REJECTED:
            tally.rejections += 1
        elif event_type is EventType.MISHAP_ROLLED:
            tally.mishaps += 1
        elif event_type is EventType.COMBATANT_BROKEN:
            tally.broken.append(event.combatant_id)
        elif event_type is EventType.CRITICAL_INJURY_INFLICTED:
            tally.injuries += 1

    def get_statistics(self) -> dict[str, Any]:
        return {
            'events_published': self._events_published,
            'events_processed': self._events_processed,
            'events_queued': len(self._queue),
            'subscriber_errors': self._subscriber_errors,
            'subscribers_count': sum(len(subs) for subs in self._subscribers.values()),
            'universal_subscribers_count': len(self._universal_subscribers),
            'combat': self.tally.to_dict(),
        }

    def shutdown(self) -> None:
        """Drop all subscribers and queued events."""
        self._subscribers.clear()
        self._universal_subscribers.clear()
        self._queue = []
