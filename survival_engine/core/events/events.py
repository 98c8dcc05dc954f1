"""Rules engine events.

This module defines the events the combat orchestrator and its helpers
publish on the EventManager.

Event Design Principles:
- Events are immutable dataclasses
- Every event carries the combat round it happened in
- Events use enums and value objects instead of magic strings
- Events notify; state is only ever changed by the orchestrator
"""

from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING
from abc import ABC
from enum import Enum, auto

if TYPE_CHECKING:
    from ..data.game_enums import BrawlPhase, CombatMode, Skill, SwarmAttackType, SwarmConsequence
    from ..engine.combat_state import SwarmRoundResult
    from ..engine.rolls import RollOutcome
    from ..injuries import CriticalInjuryRecord


class EventType(Enum):
    """Types of events subscribers can listen for."""
    # Combat lifecycle
    COMBAT_STARTED = auto()
    COMBAT_START_REFUSED = auto()
    COMBAT_ENDED = auto()

    # Sequencing
    PHASE_CHANGED = auto()
    TURN_CHANGED = auto()
    ROUND_ADVANCED = auto()

    # Rolls and actions
    SKILL_ROLLED = auto()
    ROLL_PUSHED = auto()
    ACTION_REJECTED = auto()
    MISHAP_ROLLED = auto()

    # Consequences
    COMBATANT_DAMAGED = auto()
    COMBATANT_BROKEN = auto()
    CRITICAL_INJURY_INFLICTED = auto()
    STRESS_CHANGED = auto()

    # Swarm
    SWARM_ROUND_RESOLVED = auto()
    SWARM_CONSEQUENCE_APPLIED = auto()

    # Logging
    LOG_MESSAGE = auto()
    DEBUG_MESSAGE = auto()


@dataclass(frozen=True)
class GameEvent(ABC):
    """Base class for all engine events."""
    turn: int
    event_type: EventType = field(init=False)


@dataclass(frozen=True)
class CombatStarted(GameEvent):
    """Event emitted when a combat session becomes active."""
    mode: "CombatMode"
    combatant_ids: tuple[str, ...]
    team_mode: bool = False

    def __post_init__(self):
        # Set event_type since dataclass frozen=True prevents normal assignment
        object.__setattr__(self, 'event_type', EventType.COMBAT_STARTED)


@dataclass(frozen=True)
class CombatStartRefused(GameEvent):
    """Event emitted when a start request is refused."""
    mode: "CombatMode"
    reason: str

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.COMBAT_START_REFUSED)


@dataclass(frozen=True)
class CombatEnded(GameEvent):
    """Event emitted when combat ends."""
    mode: "CombatMode"
    reason: str = ""

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.COMBAT_ENDED)


@dataclass(frozen=True)
class PhaseChanged(GameEvent):
    """Event emitted when the brawl moves to another phase."""
    old_phase: "BrawlPhase"
    new_phase: "BrawlPhase"

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.PHASE_CHANGED)


@dataclass(frozen=True)
class TurnChanged(GameEvent):
    """Event emitted when a duel turn passes to another combatant."""
    combatant_id: str

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.TURN_CHANGED)


@dataclass(frozen=True)
class RoundAdvanced(GameEvent):
    """Event emitted when a new combat round begins."""
    new_round: int

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ROUND_ADVANCED)


@dataclass(frozen=True)
class SkillRolled(GameEvent):
    """Event emitted for every skill roll made in combat."""
    combatant_id: str
    skill: Optional["Skill"]
    outcome: "RollOutcome"

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.SKILL_ROLLED)


@dataclass(frozen=True)
class RollPushed(GameEvent):
    """Event emitted when a combatant pushes a roll."""
    combatant_id: str
    outcome: "RollOutcome"
    damage: int

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ROLL_PUSHED)


@dataclass(frozen=True)
class ActionRejected(GameEvent):
    """Event emitted when an action is refused without changing state."""
    combatant_id: Optional[str]
    action: str
    reason: str

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ACTION_REJECTED)


@dataclass(frozen=True)
class MishapRolled(GameEvent):
    """Event emitted when a messed-up combat roll rolls on the mishap table."""
    combatant_id: str
    roll: int
    description: str

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.MISHAP_ROLLED)


@dataclass(frozen=True)
class CombatantDamaged(GameEvent):
    """Event emitted when a combatant loses health."""
    combatant_id: str
    damage: int
    remaining_health: int
    source: str = ""

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.COMBATANT_DAMAGED)


@dataclass(frozen=True)
class CombatantBroken(GameEvent):
    """Event emitted when a combatant is reduced to zero health."""
    combatant_id: str

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.COMBATANT_BROKEN)


@dataclass(frozen=True)
class CriticalInjuryInflicted(GameEvent):
    """Event emitted when a character suffers a critical injury."""
    character_id: str
    injury: "CriticalInjuryRecord"

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.CRITICAL_INJURY_INFLICTED)


@dataclass(frozen=True)
class StressChanged(GameEvent):
    """Event emitted when a character's stress changes."""
    character_id: str
    stress: int

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.STRESS_CHANGED)


@dataclass(frozen=True)
class SwarmRoundResolved(GameEvent):
    """Event emitted after a swarm round is classified."""
    result: "SwarmRoundResult"

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.SWARM_ROUND_RESOLVED)


@dataclass(frozen=True)
class SwarmConsequenceApplied(GameEvent):
    """Event emitted when a swarm consequence is applied."""
    consequence: "SwarmConsequence"
    description: str
    attack_type: Optional["SwarmAttackType"] = None
    target_ids: tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.SWARM_CONSEQUENCE_APPLIED)


@dataclass(frozen=True)
class LogMessage(GameEvent):
    """Event for a message destined for the combat log."""
    message: str
    category: str = "SYSTEM"
    level: str = "INFO"
    source: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.LOG_MESSAGE)


@dataclass(frozen=True)
class DebugMessage(GameEvent):
    """Event for debugging output."""
    message: str
    source: str = "unknown"

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.DEBUG_MESSAGE)
