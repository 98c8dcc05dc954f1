"""Centralized rules enums and constants.

This module contains the enums shared by the dice, character, combat and
table modules, providing a single source of truth for skill names, phase
order and table keys.
"""

from enum import Enum, auto


class Attribute(Enum):
    """The four character attributes."""
    STRENGTH = auto()
    AGILITY = auto()
    WITS = auto()
    EMPATHY = auto()


class Skill(Enum):
    """Skills a character can roll."""
    CLOSE_COMBAT = auto()
    ENDURE = auto()
    FORCE = auto()
    MOBILITY = auto()
    RANGED_COMBAT = auto()
    STEALTH = auto()
    SCOUT = auto()
    SURVIVAL = auto()
    TECH = auto()
    LEADERSHIP = auto()
    MANIPULATION = auto()
    MEDICINE = auto()


class SkillExpertise(Enum):
    """NPC expertise tiers. Values are the base dice pool for the tier."""
    NONE = 2
    TRAINED = 3
    EXPERT = 4
    MASTER = 5


class CombatantType(Enum):
    """Who controls a combatant."""
    PC = auto()
    NPC = auto()


class CombatMode(Enum):
    """Combat styles selectable at combat start."""
    DUEL = auto()
    BRAWL = auto()
    SWARM = auto()


class BrawlPhase(Enum):
    """The six brawl phases. Values give the fixed order within a round."""
    TAKE_COVER = 0
    RANGED_COMBAT = 1
    CLOSE_COMBAT = 2
    MOVEMENT = 3
    FIRST_AID = 4
    OTHER = 5


class RangeCategory(Enum):
    """Range bands, ordered from nearest to farthest."""
    SHORT = 0
    LONG = 1
    EXTREME = 2


class CoverStatus(Enum):
    """Cover a combatant currently benefits from."""
    NONE = auto()
    PARTIAL = auto()
    FULL = auto()


class Side(Enum):
    """Team sides for team brawls."""
    A = auto()
    B = auto()


class DuelAction(Enum):
    """Actions available during a duel turn."""
    CLOSE_ATTACK = auto()
    RANGED_ATTACK = auto()
    ADVANCE = auto()
    RETREAT = auto()
    OTHER = auto()


class BrawlAction(Enum):
    """Actions available during a brawl, each bound to one phase."""
    TAKE_COVER = auto()
    RANGED_ATTACK = auto()
    OVERWATCH = auto()
    CLOSE_ATTACK = auto()
    MOVE = auto()
    FIRST_AID = auto()
    USE_LEADERSHIP = auto()
    OTHER = auto()


class RecoveryTime(Enum):
    """Healing time of a critical injury."""
    HOURS = "D6 Hours"
    DAYS = "D6 Days"
    WEEKS = "D6 Weeks"
    MONTHS = "D6 Months"
    NEVER = "-"


class TimeLimit(Enum):
    """Time before an untreated lethal injury kills."""
    MINUTES = "Minutes"
    HOURS = "Hours"
    DAYS = "Days"


class GearTier(Enum):
    """Medical gear quality required to treat a lethal injury."""
    A = "A"
    B = "B"


class SwarmConsequence(Enum):
    """Outcomes of losing a swarm round."""
    INCREASE_THREAT = auto()
    INCREASE_SWARM_SIZE = auto()
    SWARM_ATTACK = auto()


class SwarmAttackType(Enum):
    """Kinds of swarm attack."""
    SINGLE_ATTACK = auto()
    BLOCK = auto()
    MASS_ATTACK = auto()


class OverwhelmedEffect(Enum):
    """Results of being overwhelmed by fear."""
    LOSE_DRIVE = auto()
    SHATTERED = auto()
    ISSUE_CHANGES = auto()


# Skill to attribute links
SKILL_ATTRIBUTES = {
    Skill.CLOSE_COMBAT: Attribute.STRENGTH,
    Skill.ENDURE: Attribute.STRENGTH,
    Skill.FORCE: Attribute.STRENGTH,
    Skill.MOBILITY: Attribute.AGILITY,
    Skill.RANGED_COMBAT: Attribute.AGILITY,
    Skill.STEALTH: Attribute.AGILITY,
    Skill.SCOUT: Attribute.WITS,
    Skill.SURVIVAL: Attribute.WITS,
    Skill.TECH: Attribute.WITS,
    Skill.LEADERSHIP: Attribute.EMPATHY,
    Skill.MANIPULATION: Attribute.EMPATHY,
    Skill.MEDICINE: Attribute.EMPATHY,
}

SKILL_NAMES = {
    Skill.CLOSE_COMBAT: "Close Combat",
    Skill.ENDURE: "Endure",
    Skill.FORCE: "Force",
    Skill.MOBILITY: "Mobility",
    Skill.RANGED_COMBAT: "Ranged Combat",
    Skill.STEALTH: "Stealth",
    Skill.SCOUT: "Scout",
    Skill.SURVIVAL: "Survival",
    Skill.TECH: "Tech",
    Skill.LEADERSHIP: "Leadership",
    Skill.MANIPULATION: "Manipulation",
    Skill.MEDICINE: "Medicine",
}

BRAWL_PHASE_NAMES = {
    BrawlPhase.TAKE_COVER: "Taking Cover",
    BrawlPhase.RANGED_COMBAT: "Ranged Combat",
    BrawlPhase.CLOSE_COMBAT: "Close Combat",
    BrawlPhase.MOVEMENT: "Movement",
    BrawlPhase.FIRST_AID: "First Aid",
    BrawlPhase.OTHER: "Other",
}
