"""
Duplicate-action suppression.

A rapid second invocation of the same combatant action (a double click on an
action button) is dropped while the first one's guard is still cooling down.
Each (combatant, action) key moves through an explicit Idle -> Cooling -> Idle
cycle driven by an injectable clock, so tests never sleep.
"""
import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Callable, Optional

from ...core.events import DebugMessage

if TYPE_CHECKING:
    from ...core.engine.combat_state import CombatAction
    from ...core.engine.rolls import RollOutcome
    from ..managers.combat_orchestrator import ActionReport, CombatOrchestrator

GuardKey = tuple[str, str]


class GuardState(Enum):
    IDLE = auto()
    COOLING = auto()


@dataclass
class _GuardEntry:
    state: GuardState
    acquired_at: float


class ActionGuard:
    """Per-combatant, per-action cooldown."""

    def __init__(self, cooldown_ms: int = 500, clock: Callable[[], float] = time.monotonic):
        """
        Args:
            cooldown_ms: How long a key stays Cooling after it is acquired
            clock: Seconds source; time.monotonic unless a test injects one
        """
        self.cooldown = max(0, cooldown_ms) / 1000.0
        self.clock = clock
        self._entries: dict[GuardKey, _GuardEntry] = {}

    @staticmethod
    def _key(combatant_id: str, action: object) -> GuardKey:
        return combatant_id, getattr(action, "name", str(action))

    def state_of(self, combatant_id: str, action: object) -> GuardState:
        entry = self._entries.get(self._key(combatant_id, action))
        if entry is None:
            return GuardState.IDLE
        if entry.state is GuardState.COOLING and self.clock() - entry.acquired_at >= self.cooldown:
            entry.state = GuardState.IDLE
        return entry.state

    def try_acquire(self, combatant_id: str, action: object) -> bool:
        """Acquire the guard for a key.

        Returns False, and leaves the running cooldown untouched, while the key
        is still Cooling.
        """
        self._prune()
        key = self._key(combatant_id, action)
        if key in self._entries:
            return False
        self._entries[key] = _GuardEntry(GuardState.COOLING, self.clock())
        return True

    def _prune(self) -> None:
        """Forget every key whose cooldown has run out."""
        now = self.clock()
        expired = [
            key for key, entry in self._entries.items()
            if entry.state is GuardState.IDLE or now - entry.acquired_at >= self.cooldown
        ]
        for key in expired:
            del self._entries[key]

    def reset(self) -> None:
        self._entries.clear()


class GuardedOrchestrator:
    """Routes act and push through an ActionGuard.

    Duplicates are dropped silently: no ActionRejected is published, only a
    debug message.
    """

    def __init__(self, orchestrator: "CombatOrchestrator", guard: Optional[ActionGuard] = None):
        self.orchestrator = orchestrator
        self.guard = guard or ActionGuard(orchestrator.config.guard_cooldown_ms)

    def _dropped(self, combatant_id: str, action: str) -> None:
        self.orchestrator.event_manager.publish(
            DebugMessage(
                turn=self.orchestrator.session.round,
                message=f"Dropped duplicate {action} from {combatant_id}",
                source="GuardedOrchestrator",
            ),
            source="GuardedOrchestrator",
        )

    def act(self, combatant_id: str, action: "CombatAction", *args, **kwargs) -> Optional["ActionReport"]:
        if not self.guard.try_acquire(combatant_id, action):
            self._dropped(combatant_id, action.name)
            return None
        return self.orchestrator.act(combatant_id, action, *args, **kwargs)

    def push(self, combatant_id: str) -> Optional["RollOutcome"]:
        if not self.guard.try_acquire(combatant_id, "PUSH"):
            self._dropped(combatant_id, "PUSH")
            return None
        return self.orchestrator.push(combatant_id)

    def __getattr__(self, name: str):
        return getattr(self.orchestrator, name)
