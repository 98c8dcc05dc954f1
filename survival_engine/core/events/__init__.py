"""Event system for decoupled communication between engine components."""

from .events import (
    EventType,
    GameEvent,
    CombatStarted,
    CombatStartRefused,
    CombatEnded,
    PhaseChanged,
    TurnChanged,
    RoundAdvanced,
    SkillRolled,
    RollPushed,
    ActionRejected,
    MishapRolled,
    CombatantDamaged,
    CombatantBroken,
    CriticalInjuryInflicted,
    StressChanged,
    SwarmRoundResolved,
    SwarmConsequenceApplied,
    LogMessage,
    DebugMessage,
)

__all__ = [
    "EventType",
    "GameEvent",
    "CombatStarted",
    "CombatStartRefused",
    "CombatEnded",
    "PhaseChanged",
    "TurnChanged",
    "RoundAdvanced",
    "SkillRolled",
    "RollPushed",
    "ActionRejected",
    "MishapRolled",
    "CombatantDamaged",
    "CombatantBroken",
    "CriticalInjuryInflicted",
    "StressChanged",
    "SwarmRoundResolved",
    "SwarmConsequenceApplied",
    "LogMessage",
    "DebugMessage",
]
