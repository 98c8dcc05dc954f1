"""Skill checks and pushes.

SkillCheckResolver turns a character sheet into a dice pool and rolls it.
PushResolver re-rolls a failed outcome. Neither writes to character state:
the caller persists the stress gained by pushing and the damage it causes.
"""

from dataclasses import dataclass, replace
from typing import Optional

from ..data.game_enums import Attribute, CombatantType, OverwhelmedEffect, Skill
from ..data.tables import RulesTables, TableEntry, load_rules_tables
from ..dice import DiceSource
from .characters import ANCHOR_FEAR_DICE, CharacterSheet, PlayerCharacter
from .rolls import DicePoolSpec, RollOutcome


@dataclass(frozen=True)
class FearCheckResult:
    """Outcome of a fear check and, on failure, the Overwhelmed effect."""
    outcome: RollOutcome
    overwhelmed: bool
    effect: Optional[OverwhelmedEffect] = None
    entry: Optional[TableEntry] = None


class SkillCheckResolver:
    """Builds dice pools from character state and resolves them."""

    def __init__(self, dice: DiceSource, tables: Optional[RulesTables] = None):
        self.dice = dice
        self._tables = tables

    @property
    def tables(self) -> RulesTables:
        if self._tables is None:
            self._tables = load_rules_tables()
        return self._tables

    def build_pool(
        self,
        character: CharacterSheet,
        skill: Skill,
        help_dice: int = 0,
        extra_bonus: int = 0,
    ) -> DicePoolSpec:
        """Assemble the pool for a skill roll.

        PCs roll attribute + skill + matching bonuses with their current stress
        as stress dice. NPCs roll the flat pool of their expertise tier.
        """
        base = character.base_dice_for(skill) + extra_bonus
        stress = character.stress if character.kind is CombatantType.PC else 0
        return DicePoolSpec(base_count=base, stress_count=stress, help_count=help_dice)

    def resolve(self, pool: DicePoolSpec, skill: Optional[Skill] = None) -> RollOutcome:
        base = self.dice.roll_dice(pool.effective_base)
        stress = self.dice.roll_dice(pool.stress_count)
        return RollOutcome(base_dice=tuple(base), stress_dice=tuple(stress), skill=skill, pool=pool)

    def check(
        self,
        character: CharacterSheet,
        skill: Skill,
        help_dice: int = 0,
        extra_bonus: int = 0,
    ) -> RollOutcome:
        """Roll a skill check for a character."""
        pool = self.build_pool(character, skill, help_dice, extra_bonus)
        return self.resolve(pool, skill)

    def fear_check(
        self,
        character: PlayerCharacter,
        attribute: Attribute = Attribute.WITS,
    ) -> FearCheckResult:
        """Roll to handle fear.

        Only base dice are rolled: the attribute plus two dice per anchor.
        Stress never enters a fear check. With no successes the character is
        overwhelmed and rolls on the Overwhelmed table.
        """
        pool = DicePoolSpec(
            base_count=character.attribute(attribute) + ANCHOR_FEAR_DICE * character.anchor_count
        )
        outcome = self.resolve(pool)
        if outcome.successes > 0:
            return FearCheckResult(outcome=outcome, overwhelmed=False)

        entry = self.tables.overwhelmed.roll(self.dice)
        return FearCheckResult(
            outcome=outcome,
            overwhelmed=True,
            effect=OverwhelmedEffect[entry.get("effect")],
            entry=entry,
        )

    def armor_roll(self, armor_level: int) -> RollOutcome:
        """Roll armor dice. Each success stops one point of damage."""
        return self.resolve(DicePoolSpec(base_count=armor_level))


class PushResolver:
    """Applies the push re-roll to a failed outcome."""

    def __init__(self, dice: DiceSource, adds_stress_die: bool = True):
        self.dice = dice
        self.adds_stress_die = adds_stress_die

    def push(self, outcome: RollOutcome) -> RollOutcome:
        """Re-roll every die that is not a six.

        Returns the outcome unchanged unless it is an unpushed failure with no
        stress die showing a one. The stress point gained by pushing is rolled
        as an extra stress die when adds_stress_die is set.
        """
        if not outcome.can_push:
            return outcome

        base = self._reroll(outcome.base_dice)
        stress = self._reroll(outcome.stress_dice)
        pool = outcome.pool
        if self.adds_stress_die:
            stress = stress + tuple(self.dice.roll_dice(1))
            if pool is not None:
                pool = replace(pool, stress_count=pool.stress_count + 1)

        return RollOutcome(
            base_dice=base,
            stress_dice=stress,
            pushed=True,
            skill=outcome.skill,
            pool=pool,
        )

    def _reroll(self, faces: tuple[int, ...]) -> tuple[int, ...]:
        rerolled = iter(self.dice.roll_dice(sum(1 for face in faces if face != 6)))
        return tuple(face if face == 6 else next(rerolled) for face in faces)


def push_damage(outcome: RollOutcome) -> int:
    """Health lost to a pushed roll: one per stress die showing a one."""
    return outcome.stress_ones if outcome.pushed else 0
