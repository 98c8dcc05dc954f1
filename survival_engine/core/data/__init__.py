"""Core data structures and definitions.

This package contains fundamental data types and rules definitions:
- data_structures.py: Vector2 battlemap positions
- game_enums.py: Centralized enums for skills, phases, ranges and table keys
- tables.py: YAML-backed d6/d66 roll tables
"""

from .data_structures import Vector2, require_list, require_mapping
from .game_enums import (
    Attribute,
    Skill,
    SkillExpertise,
    CombatantType,
    CombatMode,
    BrawlPhase,
    RangeCategory,
    CoverStatus,
    Side,
    DuelAction,
    BrawlAction,
    RecoveryTime,
    TimeLimit,
    GearTier,
    SwarmConsequence,
    SwarmAttackType,
    OverwhelmedEffect,
    SKILL_ATTRIBUTES,
    SKILL_NAMES,
    BRAWL_PHASE_NAMES,
)
from .tables import RollTable, TableEntry, RulesTables, load_rules_tables

__all__ = [
    "Vector2",
    "require_list",
    "require_mapping",
    "Attribute",
    "Skill",
    "SkillExpertise",
    "CombatantType",
    "CombatMode",
    "BrawlPhase",
    "RangeCategory",
    "CoverStatus",
    "Side",
    "DuelAction",
    "BrawlAction",
    "RecoveryTime",
    "TimeLimit",
    "GearTier",
    "SwarmConsequence",
    "SwarmAttackType",
    "OverwhelmedEffect",
    "SKILL_ATTRIBUTES",
    "SKILL_NAMES",
    "BRAWL_PHASE_NAMES",
    "RollTable",
    "TableEntry",
    "RulesTables",
    "load_rules_tables",
]
