"""
Test fixtures for the survival engine test suite.

Provides scripted dice, a small character registry and a fully wired
combat orchestrator so combat can be driven roll by roll.
"""

import sys
import os
import pytest

# Add the project root to the Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from survival_engine.core.config import EngineConfig
from survival_engine.core.data.game_enums import Skill, SkillExpertise
from survival_engine.core.data.tables import load_rules_tables
from survival_engine.core.dice import ScriptedDice
from survival_engine.core.engine.characters import CharacterRegistry
from survival_engine.core.event_manager import EventManager
from survival_engine.core.injuries import CriticalInjuryTable
from survival_engine.game.managers.combat_orchestrator import CombatOrchestrator
from tests.test_utils import CharacterBuilder, make_npc


@pytest.fixture
def event_manager():
    """Create an event manager for testing."""
    return EventManager()


@pytest.fixture
def dice():
    """Empty scripted dice; tests extend them with the faces they need."""
    return ScriptedDice()


@pytest.fixture(scope="session")
def rules_tables():
    """The shipped combat tables."""
    return load_rules_tables()


@pytest.fixture(scope="session")
def injury_table():
    """The shipped critical injury table."""
    return CriticalInjuryTable.load()


@pytest.fixture
def engine_config():
    """Built-in defaults, independent of the shipped YAML."""
    return EngineConfig()


@pytest.fixture
def registry():
    """Two survivors and a walker-like NPC, every pool two dice."""
    return CharacterRegistry(
        characters=[
            CharacterBuilder("ana", "Ana").build(),
            CharacterBuilder("bob", "Bob").build(),
        ],
        npcs=[make_npc("walker", "Walker")],
    )


@pytest.fixture
def orchestrator(event_manager, registry, dice, engine_config, rules_tables, injury_table):
    """Combat orchestrator driven by scripted dice."""
    return CombatOrchestrator(
        event_manager,
        registry,
        dice=dice,
        config=engine_config,
        tables=rules_tables,
        injury_table=injury_table,
    )


@pytest.fixture
def recorded_events(event_manager):
    """Every event processed by the event manager, in order."""
    events = []
    event_manager.subscribe_all(events.append)
    return events


@pytest.fixture
def trained_npc():
    """NPC with trained ranged combat and expert mobility."""
    return make_npc(
        "raider",
        "Raider",
        {Skill.RANGED_COMBAT: SkillExpertise.TRAINED, Skill.MOBILITY: SkillExpertise.EXPERT},
    )
