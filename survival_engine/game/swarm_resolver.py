"""
Swarm round resolution.

Classification is a pure comparison of pooled successes against the swarm's
target number. Choosing and applying a consequence is a separate step the
orchestrator calls explicitly after a lost round.
"""
from dataclasses import dataclass
from typing import Optional, Sequence

from ..core.data.game_enums import SwarmAttackType, SwarmConsequence
from ..core.data.tables import RulesTables, TableEntry
from ..core.dice import DiceSource
from ..core.engine.combat_state import (
    MAX_SWARM_SIZE,
    MAX_THREAT_LEVEL,
    SwarmRoundResult,
    SwarmState,
)


@dataclass(frozen=True)
class ConsequenceOutcome:
    """What a swarm consequence did."""
    consequence: SwarmConsequence
    description: str
    attack_type: Optional[SwarmAttackType] = None
    walker_attacks: tuple[tuple[str, TableEntry], ...] = ()

    @property
    def target_ids(self) -> tuple[str, ...]:
        return tuple(target_id for target_id, _ in self.walker_attacks)


class SwarmResolver:
    """Classifies swarm rounds and applies their consequences."""

    def __init__(self, dice: DiceSource, tables: RulesTables):
        self.dice = dice
        self.tables = tables

    @staticmethod
    def needed_successes(state: SwarmState) -> int:
        """Successes needed to win a round: swarm size plus threat level."""
        return state.size + state.threat_level

    @staticmethod
    def classify(successes: int, needed: int, messed_up: Sequence[str] = ()) -> SwarmRoundResult:
        is_win = successes >= needed
        return SwarmRoundResult(
            successes=successes,
            needed=needed,
            is_win=is_win,
            almost=not is_win and successes == needed - 1,
            messed_up=tuple(messed_up),
        )

    def choose_consequence(self) -> SwarmConsequence:
        """Roll on the swarm loss table."""
        entry = self.tables.swarm_loss.roll(self.dice)
        return SwarmConsequence[entry.get("consequence")]

    def choose_attack(self, threat_level: int) -> SwarmAttackType:
        """Pick an attack allowed at this threat level, or roll for one."""
        allowed = self.tables.swarm_attacks(threat_level)
        if allowed:
            return allowed[self.dice.pick_index(len(allowed))]
        entry = self.tables.swarm_attack.roll(self.dice)
        return SwarmAttackType[entry.get("attack")]

    def walker_attack(self) -> TableEntry:
        return self.tables.walker_attack.roll(self.dice)

    @staticmethod
    def weaken(state: SwarmState) -> int:
        """Shrink the swarm by one after a won round."""
        state.size = max(1, state.size - 1)
        return state.size

    def apply_consequence(
        self,
        state: SwarmState,
        consequence: SwarmConsequence,
        target_ids: Sequence[str] = (),
        attack_type: Optional[SwarmAttackType] = None,
    ) -> ConsequenceOutcome:
        """Apply one consequence of a lost round to the swarm state.

        Args:
            state: Swarm state, mutated in place
            consequence: The consequence to apply
            target_ids: Combatants still standing, in roster order
            attack_type: Force a swarm attack type instead of choosing one

        Returns:
            ConsequenceOutcome describing the change and any walker attacks
        """
        if consequence is SwarmConsequence.INCREASE_THREAT:
            state.threat_level = min(MAX_THREAT_LEVEL, state.threat_level + 1)
            return ConsequenceOutcome(consequence, f"The Threat Level increases to {state.threat_level}.")

        if consequence is SwarmConsequence.INCREASE_SWARM_SIZE:
            state.size = min(MAX_SWARM_SIZE, state.size + 1)
            return ConsequenceOutcome(consequence, f"The Swarm Size increases to {state.size}.")

        attack = attack_type or self.choose_attack(state.threat_level)
        if attack is SwarmAttackType.BLOCK:
            state.escape_blocked = True
            return ConsequenceOutcome(
                consequence,
                "The swarm blocks all escape routes.",
                attack_type=attack,
            )

        if not target_ids:
            return ConsequenceOutcome(
                consequence,
                "The swarm attacks, but there are no targets left standing.",
                attack_type=attack,
            )

        if attack is SwarmAttackType.MASS_ATTACK:
            victims = list(target_ids)
        else:
            victims = [target_ids[self.dice.pick_index(len(target_ids))]]

        attacks = tuple((victim, self.walker_attack()) for victim in victims)
        return ConsequenceOutcome(
            consequence,
            f"The swarm makes a {attack.name.lower().replace('_', ' ')} on {', '.join(victims)}.",
            attack_type=attack,
            walker_attacks=attacks,
        )
