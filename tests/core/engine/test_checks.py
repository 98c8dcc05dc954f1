"""
Unit tests for dice pools, roll outcomes, skill checks and pushes.
"""
import pytest

from survival_engine.core.data.game_enums import Attribute, OverwhelmedEffect, Skill, SkillExpertise
from survival_engine.core.dice import ScriptedDice
from survival_engine.core.engine.checks import PushResolver, SkillCheckResolver, push_damage
from survival_engine.core.engine.rolls import DicePoolSpec, RollOutcome
from tests.test_utils import CharacterBuilder, make_npc


class TestDicePoolSpec:
    """Test pool clamping."""

    def test_negative_counts_clamp_to_zero(self):
        pool = DicePoolSpec(base_count=-2, stress_count=-1)
        assert pool.base_count == 0
        assert pool.stress_count == 0

    def test_help_dice_capped_at_three(self):
        assert DicePoolSpec(2, help_count=5).help_count == 3
        assert DicePoolSpec(2, help_count=-5).help_count == -3

    def test_hurt_dice_never_make_pool_negative(self):
        assert DicePoolSpec(1, help_count=-3).effective_base == 0

    def test_round_trip(self):
        pool = DicePoolSpec(4, 2, -1)
        assert DicePoolSpec.from_dict(pool.to_dict()) == pool


class TestRollOutcome:
    """Test derived outcome properties."""

    def test_six_six_three_one(self):
        """Base dice [6, 6, 3, 1] give two successes and no mishap."""
        outcome = RollOutcome(base_dice=(6, 6, 3, 1))

        assert outcome.successes == 2
        assert not outcome.messed_up

    def test_stress_sixes_count_as_successes(self):
        assert RollOutcome(base_dice=(2,), stress_dice=(6, 1)).successes == 1

    def test_stress_one_messes_up(self):
        outcome = RollOutcome(base_dice=(1, 1), stress_dice=(1,))

        assert outcome.messed_up
        assert outcome.stress_ones == 1

    def test_base_ones_never_mess_up(self):
        assert not RollOutcome(base_dice=(1, 1, 1)).messed_up

    def test_can_push_only_clean_unpushed_failure(self):
        assert RollOutcome(base_dice=(2, 3)).can_push
        assert not RollOutcome(base_dice=(6,)).can_push
        assert not RollOutcome(base_dice=(2,), stress_dice=(1,)).can_push
        assert not RollOutcome(base_dice=(2,), pushed=True).can_push

    def test_face_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            RollOutcome(base_dice=(0, 6))

    def test_round_trip_keeps_derived_values(self):
        outcome = RollOutcome((6, 2), (1,), pushed=True, skill=Skill.FORCE, pool=DicePoolSpec(2, 1))
        data = outcome.to_dict()

        assert data["successes"] == 1
        assert data["messed_up"] is True
        assert RollOutcome.from_dict(data) == outcome

    def test_contradicting_totals_rejected(self):
        data = RollOutcome((6, 2)).to_dict()
        data["successes"] = 2
        with pytest.raises(ValueError):
            RollOutcome.from_dict(data)


class TestSkillCheckResolver:
    """Test pool building and resolution."""

    def test_pc_pool_is_attribute_skill_and_tagged_bonuses(self, rules_tables):
        pc = (CharacterBuilder("ana")
              .with_attribute(Attribute.AGILITY, 4)
              .with_skill(Skill.RANGED_COMBAT, 2)
              .with_bonus("Rifle", 1, Skill.RANGED_COMBAT)
              .with_bonus("Lucky charm", 2)
              .with_stress(3)
              .build())
        resolver = SkillCheckResolver(ScriptedDice(), rules_tables)

        pool = resolver.build_pool(pc, Skill.RANGED_COMBAT, help_dice=1)

        assert pool.base_count == 7
        assert pool.stress_count == 3
        assert pool.help_count == 1

    def test_npc_pool_is_tier_value(self, rules_tables):
        npc = make_npc("raider", expertise={Skill.FORCE: SkillExpertise.MASTER})
        resolver = SkillCheckResolver(ScriptedDice(), rules_tables)

        assert resolver.build_pool(npc, Skill.FORCE).base_count == 5
        assert resolver.build_pool(npc, Skill.TECH).base_count == 2
        assert resolver.build_pool(npc, Skill.FORCE).stress_count == 0

    def test_check_rolls_base_then_stress(self, rules_tables):
        pc = CharacterBuilder("ana").with_stress(1).build()
        resolver = SkillCheckResolver(ScriptedDice([6, 3, 1]), rules_tables)

        outcome = resolver.check(pc, Skill.FORCE)

        assert outcome.base_dice == (6, 3)
        assert outcome.stress_dice == (1,)
        assert outcome.skill is Skill.FORCE
        assert outcome.messed_up

    def test_armor_roll(self, rules_tables):
        resolver = SkillCheckResolver(ScriptedDice([6, 2, 6]), rules_tables)
        assert resolver.armor_roll(3).successes == 2


class TestFearCheck:
    """Test fear checks against the Overwhelmed table."""

    def test_anchors_add_two_dice_each_and_stress_is_ignored(self, rules_tables):
        pc = CharacterBuilder("ana").with_anchors("Bob", "Old Joe").with_stress(4).build()
        dice = ScriptedDice([2, 3, 4, 5, 2, 6])
        resolver = SkillCheckResolver(dice, rules_tables)

        result = resolver.fear_check(pc)

        assert len(result.outcome.base_dice) == 6
        assert result.outcome.stress_dice == ()
        assert not result.overwhelmed
        assert dice.remaining == 0

    def test_failure_rolls_overwhelmed(self, rules_tables):
        pc = CharacterBuilder("ana").build()
        resolver = SkillCheckResolver(ScriptedDice([2, 3, 4]), rules_tables)

        result = resolver.fear_check(pc, Attribute.EMPATHY)

        assert result.overwhelmed
        assert result.effect is OverwhelmedEffect.SHATTERED


class TestPushResolver:
    """Test the push re-roll."""

    def test_rerolls_every_die_but_sixes(self):
        outcome = RollOutcome((3, 4, 2), (5,), pool=DicePoolSpec(3, 1))
        pusher = PushResolver(ScriptedDice([6, 2, 2, 3, 4]))

        pushed = pusher.push(outcome)

        assert pushed.base_dice == (6, 2, 2)
        assert pushed.stress_dice == (3, 4)
        assert pushed.pushed
        assert pushed.pool.stress_count == 2

    def test_without_extra_stress_die(self):
        outcome = RollOutcome((3, 4), (5,))
        pushed = PushResolver(ScriptedDice([2, 2, 2]), adds_stress_die=False).push(outcome)

        assert len(pushed.stress_dice) == 1

    def test_ineligible_push_is_noop(self):
        dice = ScriptedDice([6, 6, 6])
        success = RollOutcome((6, 2))

        assert PushResolver(dice).push(success) is success
        assert dice.remaining == 3

    def test_pushing_twice_equals_pushing_once(self):
        pusher = PushResolver(ScriptedDice([2, 2, 3, 5, 5, 5]))
        once = pusher.push(RollOutcome((3, 4), (2,)))

        assert pusher.push(once) is once

    def test_push_damage_counts_stress_ones(self):
        """Two stress dice showing one after a push cost two health."""
        pushed = PushResolver(ScriptedDice([2, 3, 1, 1])).push(RollOutcome((4, 5), (2,)))

        assert pushed.stress_dice == (1, 1)
        assert push_damage(pushed) == 2

    def test_unpushed_roll_deals_no_push_damage(self):
        assert push_damage(RollOutcome((2,), (1,))) == 0
