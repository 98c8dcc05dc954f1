"""
Brawl phase rules.

This module holds the rule tables for the brawl cycle: which phase follows
which, where a round ends, and which actions and skills each phase admits.
The orchestrator consults it whenever the cursor moves or an action is
validated, so no phase order is hard-coded elsewhere.
"""

from dataclasses import dataclass
from typing import Optional

from ...core.data.game_enums import BRAWL_PHASE_NAMES, BrawlAction, BrawlPhase, DuelAction, RangeCategory, Skill


@dataclass(frozen=True)
class BrawlPhaseTransitionRule:
    """Defines the step from one brawl phase to the next."""

    from_phase: BrawlPhase
    to_phase: BrawlPhase
    starts_new_round: bool
    description: str

    def matches(self, current_phase: BrawlPhase) -> bool:
        return self.from_phase == current_phase


@dataclass(frozen=True)
class ActionDefinition:
    """Static description of a combat action.

    A skill of None lets the actor choose any skill, or none at all.
    """

    name: str
    skill: Optional[Skill]
    requires_target: bool = False
    phase: Optional[BrawlPhase] = None
    ranges: tuple[RangeCategory, ...] = (RangeCategory.SHORT, RangeCategory.LONG, RangeCategory.EXTREME)


BRAWL_ACTIONS: dict[BrawlAction, ActionDefinition] = {
    BrawlAction.TAKE_COVER: ActionDefinition("Take Cover", Skill.MOBILITY, phase=BrawlPhase.TAKE_COVER),
    BrawlAction.RANGED_ATTACK: ActionDefinition(
        "Ranged Attack", Skill.RANGED_COMBAT, requires_target=True, phase=BrawlPhase.RANGED_COMBAT,
        ranges=(RangeCategory.SHORT, RangeCategory.LONG),
    ),
    BrawlAction.OVERWATCH: ActionDefinition("Overwatch", Skill.RANGED_COMBAT, phase=BrawlPhase.RANGED_COMBAT),
    BrawlAction.CLOSE_ATTACK: ActionDefinition(
        "Close Attack", Skill.CLOSE_COMBAT, requires_target=True, phase=BrawlPhase.CLOSE_COMBAT,
        ranges=(RangeCategory.SHORT,),
    ),
    BrawlAction.MOVE: ActionDefinition("Move", Skill.MOBILITY, phase=BrawlPhase.MOVEMENT),
    BrawlAction.FIRST_AID: ActionDefinition(
        "First Aid", Skill.MEDICINE, requires_target=True, phase=BrawlPhase.FIRST_AID
    ),
    BrawlAction.USE_LEADERSHIP: ActionDefinition("Use Leadership", Skill.LEADERSHIP, phase=BrawlPhase.OTHER),
    BrawlAction.OTHER: ActionDefinition("Other Action", None, phase=BrawlPhase.OTHER),
}

DUEL_ACTIONS: dict[DuelAction, ActionDefinition] = {
    DuelAction.CLOSE_ATTACK: ActionDefinition(
        "Close Attack", Skill.CLOSE_COMBAT, requires_target=True, ranges=(RangeCategory.SHORT,)
    ),
    DuelAction.RANGED_ATTACK: ActionDefinition(
        "Ranged Attack", Skill.RANGED_COMBAT, requires_target=True,
        ranges=(RangeCategory.SHORT, RangeCategory.LONG),
    ),
    DuelAction.ADVANCE: ActionDefinition(
        "Advance", Skill.MOBILITY, ranges=(RangeCategory.LONG, RangeCategory.EXTREME)
    ),
    DuelAction.RETREAT: ActionDefinition(
        "Retreat", Skill.MOBILITY, ranges=(RangeCategory.SHORT, RangeCategory.LONG)
    ),
    DuelAction.OTHER: ActionDefinition("Other Action", None),
}


class PhaseManager:
    """Rule tables for the six-phase brawl cycle."""

    def __init__(self):
        self.transition_rules: list[BrawlPhaseTransitionRule] = []
        self._setup_brawl_phase_transitions()

    def _setup_brawl_phase_transitions(self) -> None:
        """Define the fixed phase order. Leaving Other starts a new round."""
        phases = list(BrawlPhase)
        self.transition_rules = [
            BrawlPhaseTransitionRule(
                from_phase=phase,
                to_phase=phases[(index + 1) % len(phases)],
                starts_new_round=index == len(phases) - 1,
                description=(
                    f"{BRAWL_PHASE_NAMES[phase]} -> "
                    f"{BRAWL_PHASE_NAMES[phases[(index + 1) % len(phases)]]}"
                ),
            )
            for index, phase in enumerate(phases)
        ]

    def rule_for(self, phase: BrawlPhase) -> BrawlPhaseTransitionRule:
        for rule in self.transition_rules:
            if rule.matches(phase):
                return rule
        raise ValueError(f"No transition rule for {phase}")

    def next_phase(self, phase: BrawlPhase) -> tuple[BrawlPhase, bool]:
        """Phase that follows, and whether moving there starts a new round."""
        rule = self.rule_for(phase)
        return rule.to_phase, rule.starts_new_round

    @staticmethod
    def actions_for(phase: BrawlPhase) -> list[BrawlAction]:
        return [action for action, definition in BRAWL_ACTIONS.items() if definition.phase is phase]

    @staticmethod
    def allowed_skills(phase: BrawlPhase) -> frozenset[Skill]:
        """Skills that may be rolled in a phase. The Other phase admits any skill."""
        skills = set()
        for action in PhaseManager.actions_for(phase):
            skill = BRAWL_ACTIONS[action].skill
            if skill is None:
                return frozenset(Skill)
            skills.add(skill)
        return frozenset(skills)

    @staticmethod
    def admits(phase: BrawlPhase, action: BrawlAction, skill: Optional[Skill] = None) -> bool:
        definition = BRAWL_ACTIONS[action]
        if definition.phase is not phase:
            return False
        return skill is None or skill in PhaseManager.allowed_skills(phase)
