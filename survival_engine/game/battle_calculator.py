"""
Opposed attack calculation.

This module compares attack and defense rolls and works out damage, separate
from the orchestrator that applies it, so exchanges can be forecast and
tested without touching combat state.
"""
from dataclasses import dataclass

from ..core.data.game_enums import RangeCategory, Skill
from ..core.dice import success_probability


@dataclass(frozen=True)
class ExchangeResult:
    """Result of comparing two opposed rolls."""
    attacker_successes: int
    defender_successes: int
    damage_to_defender: int = 0
    damage_to_attacker: int = 0

    @property
    def attacker_hit(self) -> bool:
        return self.damage_to_defender > 0

    @property
    def mutual_hit(self) -> bool:
        return self.damage_to_defender > 0 and self.damage_to_attacker > 0

    @property
    def missed(self) -> bool:
        return self.damage_to_defender == 0 and self.damage_to_attacker == 0


@dataclass(frozen=True)
class AttackForecast:
    """Chance of at least one success for each side of an exchange."""
    attacker_chance: float
    defender_chance: float


class BattleCalculator:
    """Opposed roll comparison and damage arithmetic."""

    @staticmethod
    def attack_skill(range_band: RangeCategory) -> Skill:
        """Close Combat at Short range, Ranged Combat beyond."""
        return Skill.CLOSE_COMBAT if range_band is RangeCategory.SHORT else Skill.RANGED_COMBAT

    @staticmethod
    def defense_skill(range_band: RangeCategory) -> Skill:
        """Close Combat to parry at Short range, Mobility to dodge beyond."""
        return Skill.CLOSE_COMBAT if range_band is RangeCategory.SHORT else Skill.MOBILITY

    @staticmethod
    def resolve_exchange(
        attacker_successes: int,
        defender_successes: int,
        attacker_weapon_damage: int = 1,
        defender_weapon_damage: int = 1,
    ) -> ExchangeResult:
        """Compare attack and defense successes.

        The attacker hits when ahead, adding every success beyond the first
        margin point to weapon damage. Equal non-zero results mean both sides
        land a blow. Anything else is a miss.
        """
        if attacker_successes > defender_successes:
            margin = attacker_successes - defender_successes
            return ExchangeResult(
                attacker_successes,
                defender_successes,
                damage_to_defender=attacker_weapon_damage + margin - 1,
            )
        if attacker_successes == defender_successes and attacker_successes > 0:
            return ExchangeResult(
                attacker_successes,
                defender_successes,
                damage_to_defender=attacker_weapon_damage,
                damage_to_attacker=defender_weapon_damage,
            )
        return ExchangeResult(attacker_successes, defender_successes)

    @staticmethod
    def resolve_simultaneous(
        first_successes: int,
        second_successes: int,
        first_weapon_damage: int = 1,
        second_weapon_damage: int = 1,
    ) -> ExchangeResult:
        """Two attacks aimed at each other, compared by success count.

        The side with more successes hits. Equal non-zero results hit both.
        """
        if second_successes > first_successes:
            return ExchangeResult(
                first_successes,
                second_successes,
                damage_to_attacker=second_weapon_damage + second_successes - first_successes - 1,
            )
        return BattleCalculator.resolve_exchange(
            first_successes, second_successes, first_weapon_damage, second_weapon_damage
        )

    @staticmethod
    def apply_armor(damage: int, armor_successes: int) -> int:
        """Damage left after armor; each armor success stops one point."""
        return max(0, damage - max(0, armor_successes))

    @staticmethod
    def forecast(attack_pool: int, attack_stress: int, defense_pool: int, defense_stress: int = 0) -> AttackForecast:
        return AttackForecast(
            attacker_chance=success_probability(attack_pool, attack_stress),
            defender_chance=success_probability(defense_pool, defense_stress),
        )
