"""
Configuration loader for engine rules.

This module handles loading and parsing of the YAML configuration that tunes
dice, push, combat, swarm and logging behaviour.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from .data.game_enums import CoverStatus, RangeCategory

PACKAGE_ROOT = Path(__file__).parent.parent
ASSETS_DIR = PACKAGE_ROOT / "assets"
DEFAULT_CONFIG_PATH = "assets/config/engine.yaml"


@dataclass
class PushConfig:
    adds_stress_die: bool = True
    max_stress: int = 10


@dataclass
class CombatConfig:
    team_split_axis: str = "x"
    team_split_threshold: int = 500
    duel_starting_range: RangeCategory = RangeCategory.LONG
    default_weapon_damage: int = 1
    max_help_dice: int = 3
    cover_penalty: dict[CoverStatus, int] = field(
        default_factory=lambda: {CoverStatus.PARTIAL: 1, CoverStatus.FULL: 2}
    )


@dataclass
class SwarmConfig:
    defeat_size: int = 3
    stress_threshold: int = 3


@dataclass
class EngineConfig:
    """Resolved engine configuration with defaults for every value."""
    seed: Optional[int] = None
    push: PushConfig = field(default_factory=PushConfig)
    combat: CombatConfig = field(default_factory=CombatConfig)
    swarm: SwarmConfig = field(default_factory=SwarmConfig)
    guard_cooldown_ms: int = 500
    log_max_messages: int = 1000
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EngineConfig":
        """Build a config from parsed YAML, keeping defaults for missing keys."""
        config = cls()

        dice = data.get("dice") or {}
        config.seed = dice.get("seed")

        push = data.get("push") or {}
        config.push = PushConfig(
            adds_stress_die=bool(push.get("adds_stress_die", config.push.adds_stress_die)),
            max_stress=int(push.get("max_stress", config.push.max_stress)),
        )

        combat = data.get("combat") or {}
        defaults = CombatConfig()
        cover = combat.get("cover_penalty")
        config.combat = CombatConfig(
            team_split_axis=combat.get("team_split_axis", defaults.team_split_axis),
            team_split_threshold=int(combat.get("team_split_threshold", defaults.team_split_threshold)),
            duel_starting_range=RangeCategory[
                combat.get("duel_starting_range", defaults.duel_starting_range.name).upper()
            ],
            default_weapon_damage=int(combat.get("default_weapon_damage", defaults.default_weapon_damage)),
            max_help_dice=int(combat.get("max_help_dice", defaults.max_help_dice)),
            cover_penalty=(
                {CoverStatus[name.upper()]: int(value) for name, value in cover.items()}
                if cover else defaults.cover_penalty
            ),
        )

        swarm = data.get("swarm") or {}
        config.swarm = SwarmConfig(
            defeat_size=int(swarm.get("defeat_size", config.swarm.defeat_size)),
            stress_threshold=int(swarm.get("stress_threshold", config.swarm.stress_threshold)),
        )

        guard = data.get("action_guard") or {}
        config.guard_cooldown_ms = int(guard.get("cooldown_ms", config.guard_cooldown_ms))

        logging_section = data.get("logging") or {}
        config.log_max_messages = int(logging_section.get("max_messages", config.log_max_messages))
        config.log_level = str(logging_section.get("level", config.log_level)).upper()
        return config


def resolve_asset_path(path: str) -> Path:
    """Resolve a path relative to the package directory unless it is absolute."""
    if os.path.isabs(path):
        return Path(path)
    return PACKAGE_ROOT / path


def load_engine_config(config_path: Optional[str] = None) -> EngineConfig:
    """
    Load the engine configuration from YAML.

    Falls back to built-in defaults when the file is missing or cannot be
    parsed.

    Args:
        config_path: Absolute path, or a path relative to the package directory

    Returns:
        EngineConfig
    """
    config_file = resolve_asset_path(config_path or DEFAULT_CONFIG_PATH)

    if not config_file.exists():
        print(f"Warning: Engine config file not found: {config_file}")
        return EngineConfig()

    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
        return EngineConfig.from_dict(data)
    except (yaml.YAMLError, KeyError, TypeError, ValueError, AttributeError) as e:
        print(f"Error loading engine config: {e}")
        return EngineConfig()
