"""
Combat orchestration for duels, brawls and swarms.

The CombatOrchestrator owns the CombatSession and is the only component that
changes it. Callers drive combat through a narrow set of operations (start,
end, advance, act, declare, push, swarm rounds); every refusal is reported
through a return value and an ActionRejected or CombatStartRefused event
instead of an exception.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Mapping, Optional, Sequence

from ...core.config import EngineConfig, load_engine_config
from ...core.data.data_structures import Vector2
from ...core.data.game_enums import (
    BRAWL_PHASE_NAMES,
    SKILL_NAMES,
    BrawlAction,
    BrawlPhase,
    CombatMode,
    CoverStatus,
    DuelAction,
    RangeCategory,
    Side,
    Skill,
    SwarmAttackType,
    SwarmConsequence,
)
from ...core.data.tables import RulesTables, TableEntry, load_rules_tables
from ...core.dice import DiceEngine, DiceSource
from ...core.engine.characters import CharacterRegistry, CharacterSheet, PlayerCharacter
from ...core.engine.checks import PushResolver, SkillCheckResolver, push_damage
from ...core.engine.combat_state import (
    MAX_SWARM_SIZE,
    MAX_THREAT_LEVEL,
    CombatAction,
    Combatant,
    CombatSession,
    Declaration,
    RollRecord,
    SwarmRoundResult,
    SwarmState,
)
from ...core.engine.rolls import DicePoolSpec, RollOutcome
from ...core.events.events import (
    ActionRejected,
    CombatantBroken,
    CombatantDamaged,
    CombatEnded,
    CombatStarted,
    CombatStartRefused,
    CriticalInjuryInflicted,
    GameEvent,
    LogMessage,
    MishapRolled,
    PhaseChanged,
    RollPushed,
    RoundAdvanced,
    SkillRolled,
    StressChanged,
    SwarmConsequenceApplied,
    SwarmRoundResolved,
    TurnChanged,
)
from ...core.injuries import CriticalInjuryTable
from ..battle_calculator import BattleCalculator, ExchangeResult
from ..swarm_resolver import ConsequenceOutcome, SwarmResolver
from .phase_manager import BRAWL_ACTIONS, DUEL_ACTIONS, ActionDefinition, PhaseManager

if TYPE_CHECKING:
    from ...core.event_manager import EventManager

MAX_LEADERSHIP_DICE = 3
ATTACK_ACTIONS = (
    DuelAction.CLOSE_ATTACK,
    DuelAction.RANGED_ATTACK,
    BrawlAction.RANGED_ATTACK,
    BrawlAction.CLOSE_ATTACK,
)
ESCAPE_SKILLS = (Skill.MOBILITY, Skill.STEALTH)


@dataclass(frozen=True)
class CombatantSetup:
    """A character entering combat and where they stand."""
    character_id: str
    position: Vector2 = field(default_factory=lambda: Vector2(0, 0))
    side: Optional[Side] = None
    range_band: Optional[RangeCategory] = None


@dataclass(frozen=True)
class StartResult:
    """Whether a combat start went ahead, and why not if it did not."""
    started: bool
    reason: str = ""

    @classmethod
    def ok(cls) -> "StartResult":
        return cls(started=True)

    @classmethod
    def refused(cls, reason: str) -> "StartResult":
        return cls(started=False, reason=reason)


@dataclass
class ActionReport:
    """Everything that happened when a combatant acted."""
    combatant_id: str
    action: CombatAction
    outcome: Optional[RollOutcome] = None
    target_id: Optional[str] = None
    defense: Optional[RollOutcome] = None
    exchange: Optional[ExchangeResult] = None
    damage_dealt: dict[str, int] = field(default_factory=dict)
    healed: int = 0
    mishap: Optional[TableEntry] = None
    description: str = ""

    def add_damage(self, combatant_id: str, amount: int) -> None:
        if amount > 0:
            self.damage_dealt[combatant_id] = self.damage_dealt.get(combatant_id, 0) + amount


class CombatOrchestrator:
    """Runs the Duel, Brawl and Swarm state machines over one CombatSession."""

    def __init__(
        self,
        event_manager: "EventManager",
        registry: CharacterRegistry,
        dice: Optional[DiceSource] = None,
        config: Optional[EngineConfig] = None,
        tables: Optional[RulesTables] = None,
        injury_table: Optional[CriticalInjuryTable] = None,
        phase_manager: Optional[PhaseManager] = None,
    ):
        self.event_manager = event_manager
        self.registry = registry
        self.config = config or load_engine_config()
        self.dice = dice or DiceEngine(seed=self.config.seed)
        self.tables = tables or load_rules_tables()
        self.injuries = injury_table or CriticalInjuryTable.load(dice=self.dice)
        self.phases = phase_manager or PhaseManager()

        self.checks = SkillCheckResolver(self.dice, self.tables)
        self.pusher = PushResolver(self.dice, adds_stress_die=self.config.push.adds_stress_die)
        self.swarm_resolver = SwarmResolver(self.dice, self.tables)

        self.session = CombatSession()
        self.leadership_dice = 0

    # ------------------------------------------------------------------
    # Event helpers
    # ------------------------------------------------------------------

    def _publish(self, event: GameEvent) -> None:
        self.event_manager.publish(event, source="CombatOrchestrator")

    def _emit_log(self, message: str, category: str = "COMBAT", level: str = "INFO") -> None:
        """Emit a log message event."""
        self._publish(
            LogMessage(
                turn=self.session.round,
                message=message,
                category=category,
                level=level,
                source="CombatOrchestrator",
            )
        )

    def _refuse(self, mode: CombatMode, reason: str) -> StartResult:
        self._publish(CombatStartRefused(turn=self.session.round, mode=mode, reason=reason))
        self._emit_log(f"Cannot start {mode.name.lower()}: {reason}", "WARNING", "WARNING")
        return StartResult.refused(reason)

    def _reject(self, combatant_id: Optional[str], action: str, reason: str) -> None:
        self._publish(ActionRejected(
            turn=self.session.round, combatant_id=combatant_id, action=action, reason=reason
        ))
        self._emit_log(f"Rejected {action}: {reason}", "WARNING", "WARNING")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self.session.is_active

    def start_combat(
        self,
        mode: CombatMode,
        participants: Sequence[CombatantSetup],
        *,
        team_mode: bool = False,
        swarm_size: int = 1,
        threat_level: int = 0,
    ) -> StartResult:
        """Start a combat session.

        Refusals leave the session inactive and return the reason.
        """
        if self.session.is_active:
            return self._refuse(mode, "Combat is already in progress")
        if not participants:
            return self._refuse(mode, "Cannot start combat without combatants")
        if team_mode and mode is not CombatMode.BRAWL:
            return self._refuse(mode, "Only brawls can be fought in teams")

        combatants: list[Combatant] = []
        for setup in participants:
            sheet = self.registry.get(setup.character_id)
            if sheet is None:
                return self._refuse(mode, f"Unknown character: {setup.character_id}")
            if any(c.id == sheet.id for c in combatants):
                return self._refuse(mode, f"{sheet.name} is listed twice")
            combatants.append(self._make_combatant(sheet, setup, mode))

        if mode is CombatMode.DUEL and len(combatants) != 2:
            return self._refuse(mode, "A duel needs exactly two combatants")

        if team_mode:
            for combatant in combatants:
                combatant.side = self._side_for(combatant.position)
            for side in Side:
                if not any(c.side is side for c in combatants):
                    return self._refuse(mode, f"Team {side.name} has no combatants")

        session = self.session
        session.reset()
        session.mode = mode
        session.roster = combatants
        session.is_active = True
        session.team_mode = team_mode
        session.duel_range = self.config.combat.duel_starting_range
        self.leadership_dice = 0

        if mode is CombatMode.SWARM:
            session.swarm = SwarmState(
                size=max(1, min(MAX_SWARM_SIZE, swarm_size)),
                threat_level=max(0, min(MAX_THREAT_LEVEL, threat_level)),
            )

        self._publish(CombatStarted(
            turn=session.round,
            mode=mode,
            combatant_ids=tuple(c.id for c in combatants),
            team_mode=team_mode,
        ))
        self._emit_log(
            f"{mode.name.capitalize()} started with {', '.join(c.name for c in combatants)}"
        )

        if mode is CombatMode.SWARM and session.swarm.threat_level >= self.config.swarm.stress_threshold:
            for combatant in combatants:
                self._add_stress(combatant.id, 1)
            self._emit_log("The swarm is already upon you. Every survivor takes a point of stress.", "SWARM")

        if mode is CombatMode.DUEL:
            self._publish(TurnChanged(turn=session.round, combatant_id=combatants[0].id))

        return StartResult.ok()

    def _make_combatant(self, sheet: CharacterSheet, setup: CombatantSetup, mode: CombatMode) -> Combatant:
        if setup.range_band is not None:
            range_band = setup.range_band
        elif mode is CombatMode.DUEL:
            range_band = self.config.combat.duel_starting_range
        else:
            range_band = RangeCategory.LONG
        return Combatant(
            id=sheet.id,
            name=sheet.name,
            kind=sheet.kind,
            health=sheet.health,
            max_health=sheet.max_health,
            position=setup.position,
            side=setup.side,
            range_band=range_band,
            weapon_damage=sheet.weapon_damage or self.config.combat.default_weapon_damage,
            armor=sheet.armor,
        )

    def _side_for(self, position: Vector2) -> Side:
        coordinate = position.coordinate(self.config.combat.team_split_axis)
        return Side.A if coordinate < self.config.combat.team_split_threshold else Side.B

    def end_combat(self, reason: str = "") -> bool:
        """End the active combat and reset the session."""
        if not self.session.is_active:
            return False
        mode = self.session.mode
        self.session.reset()
        self.leadership_dice = 0
        self._publish(CombatEnded(turn=self.session.round, mode=mode, reason=reason))
        self._emit_log(f"{mode.name.capitalize()} ended. {reason}".strip())
        return True

    # ------------------------------------------------------------------
    # Sequencing
    # ------------------------------------------------------------------

    def advance(self) -> bool:
        """Move to the next duel turn or brawl phase.

        Returns False when there is no combat to advance or the mode has no
        cursor.
        """
        session = self.session
        if not session.is_active:
            return False

        if session.mode is CombatMode.DUEL:
            next_index = (session.cursor + 1) % len(session.roster)
            session.cursor = next_index
            session.last_rolls.clear()
            if next_index == 0:
                self._start_new_round()
            self._publish(TurnChanged(turn=session.round, combatant_id=session.roster[next_index].id))
            return True

        if session.mode is CombatMode.BRAWL:
            self.resolve_declarations()
            if not session.is_active:
                return True
            old_phase = session.current_phase
            new_phase, new_round = self.phases.next_phase(old_phase)
            session.cursor = new_phase.value
            session.last_rolls.clear()
            if new_round:
                self._start_new_round()
            self._publish(PhaseChanged(turn=session.round, old_phase=old_phase, new_phase=new_phase))
            self._emit_log(f"Phase: {BRAWL_PHASE_NAMES[new_phase]}", "COMBAT", "DEBUG")
            return True

        return False

    def _start_new_round(self) -> None:
        session = self.session
        session.round += 1
        for combatant in session.roster:
            combatant.has_acted_this_phase = False
            combatant.on_overwatch = False
            combatant.cover = CoverStatus.NONE
        session.declarations = []
        session.leadership_used = False
        self.leadership_dice = 0
        self._publish(RoundAdvanced(turn=session.round, new_round=session.round))
        self._emit_log(f"Round {session.round} begins")

    # ------------------------------------------------------------------
    # Acting
    # ------------------------------------------------------------------

    def _definition(self, action: CombatAction) -> ActionDefinition:
        if isinstance(action, DuelAction):
            return DUEL_ACTIONS[action]
        return BRAWL_ACTIONS[action]

    def _validate_action(
        self,
        combatant_id: str,
        action: CombatAction,
        target_id: Optional[str],
        skill: Optional[Skill],
    ) -> Optional[str]:
        """Return why an action is not allowed, or None if it is."""
        session = self.session
        if not session.is_active:
            return "No combat in progress"
        if session.mode is CombatMode.SWARM:
            return "Swarm rounds are resolved together"

        actor = session.get(combatant_id)
        if actor is None:
            return f"Unknown combatant: {combatant_id}"
        if actor.is_broken:
            return f"{actor.name} is broken and cannot act"
        if actor.has_acted_this_phase:
            return f"{actor.name} has already acted"

        if session.mode is CombatMode.DUEL:
            if not isinstance(action, DuelAction):
                return f"{action.name} is not a duel action"
            if session.current_turn.id != actor.id:
                return f"It is not {actor.name}'s turn"
            range_band = session.duel_range
        else:
            if not isinstance(action, BrawlAction):
                return f"{action.name} is not a brawl action"
            phase = session.current_phase
            if BRAWL_ACTIONS[action].phase is not phase:
                return f"{BRAWL_ACTIONS[action].name} is not allowed in the {BRAWL_PHASE_NAMES[phase]} phase"
            if skill is not None and skill not in self.phases.allowed_skills(phase):
                return f"{SKILL_NAMES[skill]} cannot be rolled in the {BRAWL_PHASE_NAMES[phase]} phase"
            if action is BrawlAction.USE_LEADERSHIP and session.leadership_used:
                return "Leadership has already been used this round"
            range_band = actor.range_band

        definition = self._definition(action)
        if range_band not in definition.ranges:
            return f"{definition.name} is not possible at {range_band.name.lower()} range"

        if definition.requires_target:
            target = session.get(target_id)
            if target is None:
                return f"{definition.name} needs a target"
            if action is BrawlAction.FIRST_AID:
                if target.id == actor.id:
                    return f"{actor.name} cannot give first aid to themselves"
            else:
                if target.id == actor.id:
                    return f"{actor.name} cannot attack themselves"
                if target.is_broken:
                    return f"{target.name} is already broken"
                if session.team_mode and target.side is actor.side:
                    return f"{target.name} is on {actor.name}'s team"
        return None

    def act(
        self,
        combatant_id: str,
        action: CombatAction,
        target_id: Optional[str] = None,
        *,
        skill: Optional[Skill] = None,
        help_dice: int = 0,
        toward: bool = True,
    ) -> Optional[ActionReport]:
        """Resolve an action immediately.

        Args:
            combatant_id: The acting combatant
            action: A DuelAction in a duel, a BrawlAction in a brawl
            target_id: Target for attacks and first aid; duel attacks default to the opponent
            skill: Skill for the generic Other action
            help_dice: Help (positive) or hurt (negative) dice
            toward: Direction for movement actions

        Returns:
            ActionReport, or None when the action is rejected
        """
        if self.session.mode is CombatMode.DUEL and target_id is None and action in ATTACK_ACTIONS:
            target_id = self._duel_opponent(combatant_id)

        reason = self._validate_action(combatant_id, action, target_id, skill)
        if reason:
            self._reject(combatant_id, action.name, reason)
            return None
        return self._perform(combatant_id, action, target_id, skill, help_dice, toward)

    def _duel_opponent(self, combatant_id: str) -> Optional[str]:
        for combatant in self.session.roster:
            if combatant.id != combatant_id:
                return combatant.id
        return None

    def _perform(
        self,
        combatant_id: str,
        action: CombatAction,
        target_id: Optional[str],
        skill: Optional[Skill],
        help_dice: int,
        toward: bool,
    ) -> ActionReport:
        session = self.session
        actor = session.get(combatant_id)
        target = session.get(target_id)
        definition = self._definition(action)
        report = ActionReport(combatant_id=actor.id, action=action, target_id=target_id)
        actor.has_acted_this_phase = True

        if action is BrawlAction.OVERWATCH:
            actor.on_overwatch = True
            report.description = f"{actor.name} is on overwatch"
            self._emit_log(report.description)
            return report

        if action is BrawlAction.TAKE_COVER and actor.cover is not CoverStatus.NONE:
            actor.cover = CoverStatus.NONE
            report.description = f"{actor.name} leaves cover"
            self._emit_log(report.description)
            return report

        if action is BrawlAction.USE_LEADERSHIP:
            session.leadership_used = True

        roll_skill = definition.skill or skill
        if roll_skill is None:
            report.description = f"{actor.name} acts without rolling"
            self._emit_log(report.description)
            return report

        if action is BrawlAction.RANGED_ATTACK and target is not None:
            help_dice -= self.config.combat.cover_penalty.get(target.cover, 0)
        help_dice = max(-self.config.combat.max_help_dice, min(self.config.combat.max_help_dice, help_dice))

        outcome = self._roll(actor, roll_skill, help_dice)
        record = RollRecord(
            combatant_id=actor.id,
            action=action,
            outcome=outcome,
            target_id=target_id,
            toward=toward,
        )
        session.last_rolls[actor.id] = record
        report.outcome = outcome
        self._apply_effect(record, report)
        if outcome.messed_up:
            self._roll_mishap(actor, report)
        return report

    def _roll(self, combatant: Combatant, skill: Skill, help_dice: int = 0) -> RollOutcome:
        """Roll a skill for a combatant, spending any leadership dice."""
        sheet = self.registry.get(combatant.id)
        extra = combatant.leadership_bonus
        combatant.leadership_bonus = 0
        if sheet is None:
            outcome = self.checks.resolve(DicePoolSpec(base_count=extra + 2, help_count=help_dice), skill)
        else:
            outcome = self.checks.check(sheet, skill, help_dice, extra)
        self._publish(SkillRolled(turn=self.session.round, combatant_id=combatant.id, skill=skill, outcome=outcome))
        self._emit_log(
            f"{combatant.name} rolls {SKILL_NAMES[skill]}: {outcome.successes} success(es)"
            f"{' and messes up' if outcome.messed_up else ''}",
            "DICE",
        )
        return outcome

    def _apply_effect(self, record: RollRecord, report: ActionReport) -> None:
        """Apply the effect of a roll. Called again with the new outcome after a push."""
        session = self.session
        actor = session.get(record.combatant_id)
        target = session.get(record.target_id)
        outcome = record.outcome
        action = record.action

        if action in ATTACK_ACTIONS:
            if target is not None:
                self._resolve_attack(actor, target, record, report)
            return

        if not outcome.is_success:
            report.description = f"{actor.name} fails"
            return

        if action in (DuelAction.ADVANCE, DuelAction.RETREAT):
            session.duel_range = self._shift_range(session.duel_range, action is DuelAction.ADVANCE)
            for combatant in session.roster:
                combatant.range_band = session.duel_range
            report.description = f"Range is now {session.duel_range.name.lower()}"
        elif action is BrawlAction.TAKE_COVER:
            actor.cover = CoverStatus.FULL
            report.description = f"{actor.name} takes cover"
        elif action is BrawlAction.MOVE:
            actor.range_band = self._shift_range(actor.range_band, record.toward)
            report.description = f"{actor.name} moves to {actor.range_band.name.lower()} range"
            self._trigger_overwatch(actor, report)
        elif action is BrawlAction.FIRST_AID and target is not None:
            before = target.health
            if target.is_broken:
                self._set_health(target, 1)
            else:
                self._set_health(target, min(target.max_health, target.health + outcome.successes))
            report.healed = target.health - before
            report.description = f"{actor.name} treats {target.name} (+{report.healed})"
        elif action is BrawlAction.USE_LEADERSHIP:
            self.leadership_dice = outcome.successes
            report.description = f"{actor.name} rallies the group ({outcome.successes} leadership dice)"
        else:
            report.description = f"{actor.name} succeeds"
        self._emit_log(report.description)

    @staticmethod
    def _shift_range(band: RangeCategory, closer: bool) -> RangeCategory:
        value = band.value - 1 if closer else band.value + 1
        return RangeCategory(max(RangeCategory.SHORT.value, min(RangeCategory.EXTREME.value, value)))

    def _attack_range(self, actor: Combatant, action: CombatAction) -> RangeCategory:
        if self.session.mode is CombatMode.DUEL:
            return self.session.duel_range
        return RangeCategory.SHORT if action is BrawlAction.CLOSE_ATTACK else actor.range_band

    def _resolve_attack(
        self,
        actor: Combatant,
        target: Combatant,
        record: RollRecord,
        report: ActionReport,
    ) -> None:
        """Opposed attack: the defender rolls once and the roll is kept for pushes."""
        if record.defense is None and not record.simultaneous:
            defense_skill = BattleCalculator.defense_skill(self._attack_range(actor, record.action))
            record.defense = self._roll(target, defense_skill)
        report.defense = record.defense

        attack = record.outcome.successes
        defense = record.defense.successes
        if record.simultaneous:
            # The partner's hit was already applied when the exchange resolved
            if attack == 0 or attack < defense:
                report.description = f"{actor.name} misses {target.name}"
                return
            exchange = ExchangeResult(
                attack, defense, damage_to_defender=actor.weapon_damage + max(0, attack - defense - 1)
            )
        else:
            exchange = BattleCalculator.resolve_exchange(
                attack, defense, actor.weapon_damage, target.weapon_damage
            )
        report.exchange = exchange
        self._deal_exchange(actor, target, exchange, report)

    def _deal_exchange(
        self,
        attacker: Combatant,
        defender: Combatant,
        exchange: ExchangeResult,
        report: ActionReport,
    ) -> None:
        if exchange.missed:
            report.description = f"{attacker.name} misses {defender.name}"
            self._emit_log(report.description)
            return
        if exchange.damage_to_defender:
            dealt = self._apply_damage(
                defender, self._after_armor(defender, exchange.damage_to_defender), attacker.name
            )
            report.add_damage(defender.id, dealt)
        if exchange.damage_to_attacker:
            dealt = self._apply_damage(
                attacker, self._after_armor(attacker, exchange.damage_to_attacker), defender.name
            )
            report.add_damage(attacker.id, dealt)
        if exchange.mutual_hit:
            report.description = f"{attacker.name} and {defender.name} hit each other"
        elif exchange.attacker_hit:
            report.description = f"{attacker.name} hits {defender.name}"
        else:
            report.description = f"{defender.name} hits {attacker.name}"
        self._emit_log(report.description)

    def _after_armor(self, combatant: Combatant, damage: int) -> int:
        if damage <= 0 or combatant.armor <= 0:
            return damage
        armor = self.checks.armor_roll(combatant.armor)
        return BattleCalculator.apply_armor(damage, armor.successes)

    def _trigger_overwatch(self, mover: Combatant, report: ActionReport) -> None:
        """The first enemy on overwatch fires at a combatant who moves."""
        for watcher in self.session.roster:
            if (
                not watcher.on_overwatch
                or watcher.id == mover.id
                or watcher.is_broken
                or (self.session.team_mode and watcher.side is mover.side)
            ):
                continue
            watcher.on_overwatch = False
            help_dice = -self.config.combat.cover_penalty.get(mover.cover, 0)
            attack = self._roll(watcher, Skill.RANGED_COMBAT, help_dice)
            defense = self._roll(mover, BattleCalculator.defense_skill(watcher.range_band))
            exchange = BattleCalculator.resolve_exchange(
                attack.successes, defense.successes, watcher.weapon_damage, mover.weapon_damage
            )
            self._emit_log(f"{watcher.name} fires from overwatch at {mover.name}")
            self._deal_exchange(watcher, mover, exchange, report)
            return

    def _roll_mishap(self, combatant: Combatant, report: ActionReport) -> None:
        entry = self.tables.messing_up.roll(self.dice)
        report.mishap = entry
        self._publish(MishapRolled(
            turn=self.session.round, combatant_id=combatant.id, roll=entry.roll, description=entry.text
        ))
        self._emit_log(f"{combatant.name} messes up: {entry.text}", "COMBAT", "WARNING")
        self_damage = entry.get("self_damage", 0)
        if self_damage:
            report.add_damage(combatant.id, self._apply_damage(combatant, self_damage, "mishap"))

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def declare_action(
        self,
        combatant_id: str,
        action: BrawlAction,
        target_id: Optional[str] = None,
        *,
        skill: Optional[Skill] = None,
        help_dice: int = 0,
        toward: bool = True,
    ) -> bool:
        """Declare a brawl action to be resolved with the rest of the phase."""
        if self.session.mode is not CombatMode.BRAWL:
            self._reject(combatant_id, action.name, "Only brawl actions can be declared")
            return False
        reason = self._validate_action(combatant_id, action, target_id, skill)
        if reason is None and any(d.combatant_id == combatant_id for d in self.session.declarations):
            reason = "An action is already declared for this combatant"
        if reason:
            self._reject(combatant_id, action.name, reason)
            return False
        self.session.declarations.append(Declaration(
            combatant_id=combatant_id,
            action=action,
            target_id=target_id,
            skill=skill,
            help_dice=help_dice,
            toward=toward,
        ))
        return True

    def resolve_declarations(self) -> list[ActionReport]:
        """Resolve the declared actions of the current phase.

        In the ranged combat phase NPC declarations go before player
        declarations, and two ranged attacks aimed at each other are resolved
        as one simultaneous exchange.
        """
        session = self.session
        if not session.is_active or session.mode is not CombatMode.BRAWL:
            return []

        pending = list(session.declarations)
        session.declarations = []
        if session.current_phase is BrawlPhase.RANGED_COMBAT:
            pending.sort(key=lambda d: 0 if self._is_npc(d.combatant_id) else 1)

        reports: list[ActionReport] = []
        handled: set[str] = set()
        for declaration in pending:
            if declaration.combatant_id in handled:
                continue
            handled.add(declaration.combatant_id)

            partner = self._counter_declaration(declaration, pending, handled)
            if partner is not None:
                handled.add(partner.combatant_id)
                reports.extend(self._resolve_simultaneous(declaration, partner))
                continue

            report = self.act(
                declaration.combatant_id,
                declaration.action,
                declaration.target_id,
                skill=declaration.skill,
                help_dice=declaration.help_dice,
                toward=declaration.toward,
            )
            if report is not None:
                reports.append(report)
        return reports

    def _is_npc(self, combatant_id: str) -> bool:
        combatant = self.session.get(combatant_id)
        return combatant is not None and not combatant.is_player

    @staticmethod
    def _counter_declaration(
        declaration: Declaration,
        pending: list[Declaration],
        handled: set[str],
    ) -> Optional[Declaration]:
        if declaration.action is not BrawlAction.RANGED_ATTACK:
            return None
        for other in pending:
            if (
                other.action is BrawlAction.RANGED_ATTACK
                and other.combatant_id == declaration.target_id
                and other.target_id == declaration.combatant_id
                and other.combatant_id not in handled
            ):
                return other
        return None

    def _resolve_simultaneous(self, first: Declaration, second: Declaration) -> list[ActionReport]:
        """Two ranged attacks aimed at each other: two independent rolls compared by successes."""
        for declaration in (first, second):
            reason = self._validate_action(
                declaration.combatant_id, declaration.action, declaration.target_id, declaration.skill
            )
            if reason:
                self._reject(declaration.combatant_id, declaration.action.name, reason)
                return []

        session = self.session
        a = session.get(first.combatant_id)
        b = session.get(second.combatant_id)
        a.has_acted_this_phase = True
        b.has_acted_this_phase = True
        cap = self.config.combat.max_help_dice
        a_help = max(-cap, min(cap, first.help_dice - self.config.combat.cover_penalty.get(b.cover, 0)))
        b_help = max(-cap, min(cap, second.help_dice - self.config.combat.cover_penalty.get(a.cover, 0)))
        a_roll = self._roll(a, Skill.RANGED_COMBAT, a_help)
        b_roll = self._roll(b, Skill.RANGED_COMBAT, b_help)

        session.last_rolls[a.id] = RollRecord(a.id, first.action, a_roll, b.id, defense=b_roll, simultaneous=True)
        session.last_rolls[b.id] = RollRecord(b.id, second.action, b_roll, a.id, defense=a_roll, simultaneous=True)

        exchange = BattleCalculator.resolve_simultaneous(
            a_roll.successes, b_roll.successes, a.weapon_damage, b.weapon_damage
        )
        a_report = ActionReport(a.id, first.action, a_roll, b.id, defense=b_roll, exchange=exchange)
        b_report = ActionReport(b.id, second.action, b_roll, a.id, defense=a_roll, exchange=exchange)
        self._emit_log(f"{a.name} and {b.name} exchange fire")
        self._deal_exchange(a, b, exchange, a_report)
        b_report.damage_dealt = a_report.damage_dealt
        b_report.description = a_report.description
        for combatant, roll, report in ((a, a_roll, a_report), (b, b_roll, b_report)):
            if roll.messed_up:
                self._roll_mishap(combatant, report)
        return [a_report, b_report]

    # ------------------------------------------------------------------
    # Pushing
    # ------------------------------------------------------------------

    def push(self, combatant_id: str) -> Optional[RollOutcome]:
        """Push the combatant's last roll in this turn or phase.

        The pusher gains a point of stress and loses one health per stress
        die showing a one. The action's effect is then re-evaluated with the
        pushed outcome.
        """
        session = self.session
        record = session.last_rolls.get(combatant_id) if session.is_active else None
        if record is None:
            self._reject(combatant_id, "PUSH", "There is no roll to push")
            return None

        pushed = self.pusher.push(record.outcome)
        if pushed is record.outcome:
            self._reject(combatant_id, "PUSH", "This roll cannot be pushed")
            return None

        actor = session.get(combatant_id)
        record.outcome = pushed
        partner = session.last_rolls.get(record.target_id) if record.simultaneous else None
        if partner is not None and partner.simultaneous and partner.target_id == combatant_id:
            partner.defense = pushed
        self._add_stress(combatant_id, 1)
        damage = push_damage(pushed)
        self._publish(RollPushed(turn=session.round, combatant_id=combatant_id, outcome=pushed, damage=damage))
        self._emit_log(f"{actor.name} pushes the roll: {pushed.successes} success(es)", "DICE")

        report = ActionReport(combatant_id=combatant_id, action=record.action, outcome=pushed,
                              target_id=record.target_id)
        if damage:
            report.add_damage(combatant_id, self._apply_damage(actor, damage, "pushing"))
        if record.action is not None:
            self._apply_effect(record, report)
        if pushed.messed_up:
            self._roll_mishap(actor, report)
        return pushed

    # ------------------------------------------------------------------
    # Roster and positioning
    # ------------------------------------------------------------------

    def set_duel_range(self, range_band: RangeCategory) -> bool:
        session = self.session
        if not session.is_active or session.mode is not CombatMode.DUEL:
            return False
        session.duel_range = range_band
        for combatant in session.roster:
            combatant.range_band = range_band
        return True

    def set_range(self, combatant_id: str, range_band: RangeCategory) -> bool:
        combatant = self.session.get(combatant_id)
        if combatant is None:
            return False
        combatant.range_band = range_band
        return True

    def move_combatant(self, combatant_id: str, position: Vector2) -> bool:
        """Place a combatant on the battlemap. Team sides stay as assigned at start."""
        combatant = self.session.get(combatant_id)
        if combatant is None:
            return False
        combatant.position = position
        return True

    def remove_combatant(self, combatant_id: str) -> bool:
        """Take a combatant out of the fight, ending it if nobody is left to fight."""
        session = self.session
        combatant = session.get(combatant_id)
        if combatant is None:
            return False
        session.roster.remove(combatant)
        session.last_rolls.pop(combatant_id, None)
        session.declarations = [d for d in session.declarations if d.combatant_id != combatant_id]
        self._emit_log(f"{combatant.name} leaves the fight")

        if not session.roster:
            self.end_combat("No combatants remain")
        elif session.mode is CombatMode.DUEL:
            self.end_combat(f"{combatant.name} left the duel")
        elif session.team_mode and not all(session.members(side) for side in Side):
            self.end_combat("One team has no combatants left")
        return True

    def side_finished(self, side: Side) -> bool:
        """Whether every standing member of a team has acted this round."""
        return all(c.has_acted_this_phase for c in self.session.members(side) if not c.is_broken)

    def grant_leadership(self, target_id: str, dice: int) -> int:
        """Hand leadership dice to an ally for their next roll.

        Returns:
            Dice actually granted; at most three are held at once
        """
        target = self.session.get(target_id)
        if target is None or self.leadership_dice <= 0:
            self._reject(target_id, "GRANT_LEADERSHIP", "No leadership dice to grant")
            return 0
        amount = max(0, min(dice, self.leadership_dice, MAX_LEADERSHIP_DICE - target.leadership_bonus))
        target.leadership_bonus += amount
        self.leadership_dice -= amount
        return amount

    # ------------------------------------------------------------------
    # Swarm
    # ------------------------------------------------------------------

    def resolve_swarm_round(
        self,
        choices: Mapping[str, Skill],
        help_dice: Optional[Mapping[str, int]] = None,
    ) -> Optional[SwarmRoundResult]:
        """Roll every engaged combatant against the swarm and classify the round."""
        session = self.session
        if not session.is_active or session.mode is not CombatMode.SWARM:
            self._reject(None, "SWARM_ROUND", "No swarm combat in progress")
            return None
        if session.pending_swarm_consequences:
            self._reject(None, "SWARM_ROUND", "Apply the pending swarm consequence first")
            return None

        swarm = session.swarm
        allowed = self.tables.allowed_swarm_skills(swarm.threat_level)
        help_dice = help_dice or {}
        total = 0
        rolled = 0
        messed_up: list[str] = []
        for combatant_id, skill in choices.items():
            combatant = session.get(combatant_id)
            if combatant is None or combatant.is_broken:
                self._reject(combatant_id, "SWARM_ROUND", "Combatant cannot fight the swarm")
                continue
            if allowed and skill not in allowed:
                self._reject(
                    combatant_id, "SWARM_ROUND",
                    f"{SKILL_NAMES[skill]} is not usable at threat level {swarm.threat_level}",
                )
                continue
            outcome = self._roll(combatant, skill, help_dice.get(combatant_id, 0))
            successes = outcome.successes
            if swarm.escape_blocked and skill in ESCAPE_SKILLS:
                successes = max(0, successes - 1)
            total += successes
            rolled += 1
            if outcome.messed_up:
                messed_up.append(combatant_id)

        if rolled == 0:
            self._reject(None, "SWARM_ROUND", "Nobody engaged the swarm")
            return None

        result = self.swarm_resolver.classify(
            total, self.swarm_resolver.needed_successes(swarm), messed_up
        )
        session.last_swarm_result = result
        self._publish(SwarmRoundResolved(turn=session.round, result=result))

        if result.is_win:
            self._emit_log(f"The group beats the swarm with {total} of {result.needed} successes", "SWARM")
            for combatant_id in messed_up:
                self._apply_walker_attack(combatant_id, self.swarm_resolver.walker_attack())
            if swarm.size <= self.config.swarm.defeat_size:
                self.end_combat("The swarm is defeated or driven off")
            else:
                self.swarm_resolver.weaken(swarm)
                self._emit_log(f"The swarm is weakened to size {swarm.size}", "SWARM")
                self._start_new_round()
        else:
            session.pending_swarm_consequences = 2 if messed_up else 1
            self._emit_log(
                f"The walkers win the round: {total} of {result.needed} successes"
                f"{' (almost)' if result.almost else ''}",
                "SWARM",
                "WARNING",
            )
        return result

    def apply_swarm_consequence(
        self,
        consequence: Optional[SwarmConsequence] = None,
        attack_type: Optional[SwarmAttackType] = None,
    ) -> Optional[ConsequenceOutcome]:
        """Apply one consequence of a lost swarm round, rolling for it if none is given."""
        session = self.session
        if not session.is_active or session.mode is not CombatMode.SWARM or not session.pending_swarm_consequences:
            self._reject(None, "SWARM_CONSEQUENCE", "No swarm consequence is pending")
            return None

        chosen = consequence or self.swarm_resolver.choose_consequence()
        targets = [c.id for c in session.living()]
        outcome = self.swarm_resolver.apply_consequence(session.swarm, chosen, targets, attack_type)
        for target_id, entry in outcome.walker_attacks:
            self._apply_walker_attack(target_id, entry)

        self._publish(SwarmConsequenceApplied(
            turn=session.round,
            consequence=chosen,
            description=outcome.description,
            attack_type=outcome.attack_type,
            target_ids=outcome.target_ids,
        ))
        self._emit_log(outcome.description, "SWARM", "WARNING")

        session.pending_swarm_consequences -= 1
        if session.pending_swarm_consequences == 0:
            self._start_new_round()
        return outcome

    def _apply_walker_attack(self, combatant_id: str, entry: TableEntry) -> None:
        combatant = self.session.get(combatant_id)
        if combatant is None:
            return
        self._emit_log(f"Walker attack on {combatant.name}: {entry.text}", "SWARM", "WARNING")
        stress = entry.get("stress", 0)
        if stress:
            self._add_stress(combatant_id, stress)
        if entry.get("dies"):
            self._apply_damage(combatant, combatant.health, "walker attack", roll_injury=False)
            return
        damage = combatant.weapon_damage if entry.get("weapon_damage") else entry.get("damage", 0)
        if damage:
            self._apply_damage(combatant, damage, "walker attack")

    # ------------------------------------------------------------------
    # Consequences
    # ------------------------------------------------------------------

    def _set_health(self, combatant: Combatant, health: int) -> None:
        combatant.health = health
        sheet = self.registry.get(combatant.id)
        if sheet is not None:
            sheet.health = health

    def _apply_damage(self, combatant: Combatant, amount: int, source: str, roll_injury: bool = True) -> int:
        """Reduce health, breaking the combatant at zero.

        A player character broken here rolls a critical injury.

        Returns:
            Health actually lost
        """
        if amount <= 0 or combatant.is_broken:
            return 0
        before = combatant.health
        self._set_health(combatant, max(0, before - amount))
        lost = before - combatant.health
        self._publish(CombatantDamaged(
            turn=self.session.round,
            combatant_id=combatant.id,
            damage=lost,
            remaining_health=combatant.health,
            source=source,
        ))
        self._emit_log(f"{combatant.name} takes {lost} damage from {source}")

        if combatant.is_broken:
            combatant.cover = CoverStatus.NONE
            combatant.on_overwatch = False
            self._publish(CombatantBroken(turn=self.session.round, combatant_id=combatant.id))
            self._emit_log(f"{combatant.name} is broken", "COMBAT", "WARNING")
            sheet = self.registry.get(combatant.id)
            if roll_injury and isinstance(sheet, PlayerCharacter):
                injury = self.injuries.roll_injury(self.dice)
                sheet.add_injury(injury)
                self._publish(CriticalInjuryInflicted(
                    turn=self.session.round, character_id=sheet.id, injury=injury
                ))
                self._emit_log(f"{sheet.name} suffers a critical injury: {injury.name}", "INJURY", "WARNING")
        return lost

    def _add_stress(self, character_id: str, amount: int) -> None:
        sheet = self.registry.get(character_id)
        if not isinstance(sheet, PlayerCharacter):
            return
        sheet.add_stress(amount, self.config.push.max_stress)
        self._publish(StressChanged(turn=self.session.round, character_id=sheet.id, stress=sheet.stress))

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    def snapshot(self) -> dict:
        """Serializable view of the session for presentation layers."""
        return self.session.to_dict()

    def restore(self, session: CombatSession) -> None:
        """Replace the session wholesale, as on a validated import."""
        self.session = session
        self.leadership_dice = 0
