#!/usr/bin/env python3

from survival_engine.core.config import load_engine_config
from survival_engine.core.data.game_enums import (
    Attribute,
    CombatMode,
    DuelAction,
    Skill,
    SkillExpertise,
)
from survival_engine.core.dice import DiceEngine
from survival_engine.core.engine.characters import (
    CharacterRegistry,
    NonPlayerCharacter,
    PlayerCharacter,
)
from survival_engine.core.event_manager import EventManager
from survival_engine.game.managers import CombatantSetup, CombatOrchestrator, LogLevel, LogManager


def build_registry() -> CharacterRegistry:
    survivor = PlayerCharacter(
        id="pc-ana",
        name="Ana",
        attributes={Attribute.STRENGTH: 3, Attribute.AGILITY: 4, Attribute.WITS: 3, Attribute.EMPATHY: 2},
        skills={Skill.CLOSE_COMBAT: 2, Skill.RANGED_COMBAT: 2, Skill.MOBILITY: 1},
        weapon_damage=2,
    )
    raider = NonPlayerCharacter(
        id="npc-raider",
        name="Raider",
        expertise={Skill.RANGED_COMBAT: SkillExpertise.TRAINED, Skill.MOBILITY: SkillExpertise.EXPERT},
    )
    return CharacterRegistry(characters=[survivor], npcs=[raider])


def main():
    config = load_engine_config()
    event_manager = EventManager()
    log_manager = LogManager(
        event_manager,
        max_messages=config.log_max_messages,
        default_level=LogLevel[config.log_level],
    )
    registry = build_registry()
    orchestrator = CombatOrchestrator(
        event_manager, registry, dice=DiceEngine(seed=config.seed), config=config
    )

    orchestrator.start_combat(
        CombatMode.DUEL,
        [CombatantSetup("pc-ana"), CombatantSetup("npc-raider")],
    )
    try:
        for _ in range(6):
            if not orchestrator.is_active:
                break
            current = orchestrator.session.current_turn
            if current.is_broken:
                orchestrator.end_combat(f"{current.name} is broken")
                break
            report = orchestrator.act(current.id, DuelAction.RANGED_ATTACK)
            if report and report.outcome and report.outcome.can_push and current.is_player:
                orchestrator.push(current.id)
            orchestrator.advance()
            event_manager.process_events()
    except KeyboardInterrupt:
        print("\n\nDemo interrupted by user")
    finally:
        orchestrator.end_combat("Demo finished")
        event_manager.process_events()
        for message in log_manager.get_messages():
            print(message.format())
        event_manager.shutdown()


if __name__ == "__main__":
    main()
