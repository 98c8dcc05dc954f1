"""
Tests for character sheets, the registry and combat session data.
"""
import pytest

from survival_engine.core.data.data_structures import Vector2
from survival_engine.core.data.game_enums import (
    BrawlAction,
    BrawlPhase,
    CombatantType,
    CombatMode,
    Side,
    Skill,
)
from survival_engine.core.engine.characters import CharacterRegistry, NonPlayerCharacter, PlayerCharacter
from survival_engine.core.engine.combat_state import (
    Combatant,
    CombatSession,
    Declaration,
    SwarmState,
)
from tests.test_utils import CharacterBuilder, make_npc


def make_combatant(combatant_id: str, health: int = 3, side=None) -> Combatant:
    return Combatant(
        id=combatant_id,
        name=combatant_id.title(),
        kind=CombatantType.PC,
        health=health,
        max_health=3,
        position=Vector2(10, 20),
        side=side,
    )


class TestPlayerCharacter:
    """Test sheet bookkeeping."""

    def test_stress_capped(self):
        pc = CharacterBuilder("ana").with_stress(9).build()
        assert pc.add_stress(3, max_stress=10) == 10
        assert pc.add_stress(-20, max_stress=10) == 0

    def test_damage_and_healing_bounded(self):
        pc = CharacterBuilder("ana").build()
        assert pc.take_damage(5) == 0
        assert pc.is_broken
        assert pc.heal(10) == 3

    def test_recover_injury(self, injury_table):
        pc = CharacterBuilder("ana").build()
        pc.add_injury(injury_table.lookup(11))

        assert pc.recover_injury("Winded")
        assert not pc.recover_injury("Winded")

    def test_round_trip(self, injury_table):
        pc = (CharacterBuilder("ana")
              .with_skill(Skill.MEDICINE, 2)
              .with_bonus("Kit", 1, Skill.MEDICINE)
              .with_anchors("Bob")
              .with_stress(2)
              .build())
        pc.add_injury(injury_table.lookup(31))

        assert PlayerCharacter.from_dict(pc.to_dict()) == pc

    def test_npc_never_takes_stress(self):
        npc = make_npc("walker")
        assert npc.stress == 0
        assert NonPlayerCharacter.from_dict(npc.to_dict()) == npc


class TestCharacterRegistry:
    """Test the sheet registry."""

    def test_duplicate_id_rejected(self):
        registry = CharacterRegistry(characters=[CharacterBuilder("ana").build()])
        with pytest.raises(ValueError):
            registry.add(make_npc("ana"))

    def test_players_and_npcs(self, registry):
        assert [pc.id for pc in registry.players()] == ["ana", "bob"]
        assert [npc.id for npc in registry.npcs()] == ["walker"]
        assert "walker" in registry
        assert len(registry) == 3

    def test_replace_with(self, registry):
        other = CharacterRegistry(npcs=[make_npc("rat")])
        registry.replace_with(other)

        assert len(registry) == 1
        assert registry.get("rat") is not None

    def test_round_trip(self, registry):
        rebuilt = CharacterRegistry.from_dict(registry.to_dict())
        assert rebuilt.to_dict() == registry.to_dict()


class TestCombatSession:
    """Test session invariants and serialization."""

    def test_new_session_is_valid(self):
        CombatSession().validate()

    def test_reset_restores_initial_state(self):
        session = CombatSession(mode=CombatMode.BRAWL, round=4, cursor=2,
                                roster=[make_combatant("ana")], is_active=True)
        session.reset()

        assert session == CombatSession()

    def test_current_phase_and_turn(self):
        brawl = CombatSession(mode=CombatMode.BRAWL, cursor=3, roster=[make_combatant("ana")], is_active=True)
        duel = CombatSession(mode=CombatMode.DUEL, cursor=1,
                             roster=[make_combatant("ana"), make_combatant("bob")], is_active=True)

        assert brawl.current_phase is BrawlPhase.MOVEMENT
        assert brawl.current_turn is None
        assert duel.current_turn.id == "bob"

    def test_active_session_needs_roster(self):
        with pytest.raises(ValueError):
            CombatSession(mode=CombatMode.BRAWL, is_active=True).validate()

    def test_brawl_cursor_range(self):
        session = CombatSession(mode=CombatMode.BRAWL, cursor=6, roster=[make_combatant("ana")], is_active=True)
        with pytest.raises(ValueError):
            session.validate()

    def test_duplicate_ids_rejected(self):
        session = CombatSession(mode=CombatMode.BRAWL, roster=[make_combatant("ana"), make_combatant("ana")],
                                is_active=True)
        with pytest.raises(ValueError):
            session.validate()

    def test_members_and_living(self):
        session = CombatSession(roster=[
            make_combatant("ana", side=Side.A),
            make_combatant("bob", health=0, side=Side.B),
        ])

        assert [c.id for c in session.members(Side.B)] == ["bob"]
        assert [c.id for c in session.living()] == ["ana"]

    def test_round_trip(self):
        session = CombatSession(
            mode=CombatMode.BRAWL,
            round=3,
            cursor=1,
            roster=[make_combatant("ana", side=Side.A), make_combatant("bob", side=Side.B)],
            is_active=True,
            team_mode=True,
            declarations=[Declaration("ana", BrawlAction.RANGED_ATTACK, "bob", help_dice=1)],
            leadership_used=True,
        )

        assert CombatSession.from_dict(session.to_dict()) == session

    def test_health_above_max_rejected(self):
        data = make_combatant("ana").to_dict()
        data["health"] = 5
        with pytest.raises(ValueError):
            Combatant.from_dict(data)

    def test_swarm_state_bounds(self):
        with pytest.raises(ValueError):
            SwarmState.from_dict({"size": 7, "threat_level": 0})
        with pytest.raises(ValueError):
            SwarmState.from_dict({"size": 1, "threat_level": -1})
