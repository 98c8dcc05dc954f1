"""Core rules components.

This package contains the rules systems that do not depend on combat flow:
- rolls.py: Dice pool specification and roll outcomes
- characters.py: Character and NPC sheets and the registry holding them
- checks.py: Skill checks, fear checks, armor rolls and pushes
- combat_state.py: Combat session data owned by the orchestrator
"""

from .rolls import DicePoolSpec, RollOutcome, MAX_HELP_DICE
from .characters import (
    Bonus,
    PlayerCharacter,
    NonPlayerCharacter,
    CharacterSheet,
    CharacterRegistry,
)
from .checks import SkillCheckResolver, PushResolver, FearCheckResult, push_damage
from .combat_state import (
    Combatant,
    CombatSession,
    SwarmState,
    SwarmRoundResult,
    Declaration,
    RollRecord,
)

__all__ = [
    "DicePoolSpec",
    "RollOutcome",
    "MAX_HELP_DICE",
    "Bonus",
    "PlayerCharacter",
    "NonPlayerCharacter",
    "CharacterSheet",
    "CharacterRegistry",
    "SkillCheckResolver",
    "PushResolver",
    "FearCheckResult",
    "push_damage",
    "Combatant",
    "CombatSession",
    "SwarmState",
    "SwarmRoundResult",
    "Declaration",
    "RollRecord",
]
