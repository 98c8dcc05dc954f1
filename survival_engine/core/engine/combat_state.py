"""Combat session state.

The CombatOrchestrator owns a single CombatSession and is the only writer.
Everything here is plain data plus serialization, so a presentation layer can
render from it and the session store can round-trip it.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from ..data.data_structures import Vector2, require_list, require_mapping
from ..data.game_enums import (
    BrawlAction,
    BrawlPhase,
    CombatantType,
    CombatMode,
    CoverStatus,
    DuelAction,
    RangeCategory,
    Side,
    Skill,
)
from .rolls import RollOutcome

MAX_SWARM_SIZE = 6
MAX_THREAT_LEVEL = 6

CombatAction = Union[DuelAction, BrawlAction]


@dataclass
class Combatant:
    """A participant in the current combat."""
    id: str
    name: str
    kind: CombatantType
    health: int
    max_health: int
    position: Vector2 = field(default_factory=lambda: Vector2(0, 0))
    side: Optional[Side] = None
    range_band: RangeCategory = RangeCategory.LONG
    cover: CoverStatus = CoverStatus.NONE
    has_acted_this_phase: bool = False
    on_overwatch: bool = False
    leadership_bonus: int = 0
    weapon_damage: int = 1
    armor: int = 0

    @property
    def is_broken(self) -> bool:
        return self.health <= 0

    @property
    def is_player(self) -> bool:
        return self.kind is CombatantType.PC

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind.name,
            "health": self.health,
            "max_health": self.max_health,
            "position": self.position.to_dict(),
            "side": self.side.name if self.side else None,
            "range_band": self.range_band.name,
            "cover": self.cover.name,
            "has_acted_this_phase": self.has_acted_this_phase,
            "on_overwatch": self.on_overwatch,
            "leadership_bonus": self.leadership_bonus,
            "weapon_damage": self.weapon_damage,
            "armor": self.armor,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Combatant":
        data = require_mapping(data, "combatant")
        health, max_health = data["health"], data["max_health"]
        if not isinstance(health, int) or not isinstance(max_health, int):
            raise TypeError("Combatant health must be an integer")
        if not 0 <= health <= max_health:
            raise ValueError(f"Combatant health out of range: {health}/{max_health}")
        side = data.get("side")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            kind=CombatantType[data["kind"]],
            health=health,
            max_health=max_health,
            position=Vector2.from_dict(data["position"]),
            side=Side[side] if side else None,
            range_band=RangeCategory[data["range_band"]],
            cover=CoverStatus[data["cover"]],
            has_acted_this_phase=bool(data["has_acted_this_phase"]),
            on_overwatch=bool(data.get("on_overwatch", False)),
            leadership_bonus=int(data.get("leadership_bonus", 0)),
            weapon_damage=int(data.get("weapon_damage", 1)),
            armor=int(data.get("armor", 0)),
        )


@dataclass
class SwarmState:
    """Size and threat of the swarm being fought."""
    size: int = 1
    threat_level: int = 0
    escape_blocked: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"size": self.size, "threat_level": self.threat_level, "escape_blocked": self.escape_blocked}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SwarmState":
        data = require_mapping(data, "swarm")
        size, threat = data["size"], data["threat_level"]
        if not isinstance(size, int) or not 1 <= size <= MAX_SWARM_SIZE:
            raise ValueError(f"Swarm size out of range: {size}")
        if not isinstance(threat, int) or not 0 <= threat <= MAX_THREAT_LEVEL:
            raise ValueError(f"Threat level out of range: {threat}")
        return cls(size=size, threat_level=threat, escape_blocked=bool(data.get("escape_blocked", False)))


@dataclass(frozen=True)
class SwarmRoundResult:
    """Classification of one swarm round."""
    successes: int
    needed: int
    is_win: bool
    almost: bool
    messed_up: tuple[str, ...] = ()

    @property
    def is_loss(self) -> bool:
        return not self.is_win

    def to_dict(self) -> dict[str, Any]:
        return {
            "successes": self.successes,
            "needed": self.needed,
            "is_win": self.is_win,
            "almost": self.almost,
            "messed_up": list(self.messed_up),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SwarmRoundResult":
        data = require_mapping(data, "last_swarm_result")
        result = cls(
            successes=int(data["successes"]),
            needed=int(data["needed"]),
            is_win=bool(data["is_win"]),
            almost=bool(data["almost"]),
            messed_up=tuple(str(i) for i in require_list(data.get("messed_up", []), "messed_up")),
        )
        if result.is_win != (result.successes >= result.needed):
            raise ValueError("Stored swarm result does not match its successes")
        if result.almost != (not result.is_win and result.successes == result.needed - 1):
            raise ValueError("Stored almost flag does not match its successes")
        return result


@dataclass(frozen=True)
class Declaration:
    """An action declared for the current brawl phase."""
    combatant_id: str
    action: BrawlAction
    target_id: Optional[str] = None
    skill: Optional[Skill] = None
    help_dice: int = 0
    toward: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "combatant_id": self.combatant_id,
            "action": self.action.name,
            "target_id": self.target_id,
            "skill": self.skill.name if self.skill else None,
            "help_dice": self.help_dice,
            "toward": self.toward,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Declaration":
        data = require_mapping(data, "declaration")
        skill = data.get("skill")
        return cls(
            combatant_id=str(data["combatant_id"]),
            action=BrawlAction[data["action"]],
            target_id=data.get("target_id"),
            skill=Skill[skill] if skill else None,
            help_dice=int(data.get("help_dice", 0)),
            toward=bool(data.get("toward", True)),
        )


@dataclass
class RollRecord:
    """The last roll a combatant made, kept so it can be pushed."""
    combatant_id: str
    action: Optional[CombatAction]
    outcome: RollOutcome
    target_id: Optional[str] = None
    defense: Optional[RollOutcome] = None
    toward: bool = True
    simultaneous: bool = False


@dataclass
class CombatSession:
    """State of the combat currently being run.

    When inactive the roster is empty and the counters are back at their
    initial values.
    """
    mode: Optional[CombatMode] = None
    round: int = 1
    cursor: int = 0
    roster: list[Combatant] = field(default_factory=list)
    is_active: bool = False
    team_mode: bool = False
    duel_range: RangeCategory = RangeCategory.LONG
    swarm: Optional[SwarmState] = None
    declarations: list[Declaration] = field(default_factory=list)
    leadership_used: bool = False
    pending_swarm_consequences: int = 0
    last_swarm_result: Optional[SwarmRoundResult] = None
    last_rolls: dict[str, RollRecord] = field(default_factory=dict)

    def reset(self) -> None:
        self.mode = None
        self.round = 1
        self.cursor = 0
        self.roster = []
        self.is_active = False
        self.team_mode = False
        self.duel_range = RangeCategory.LONG
        self.swarm = None
        self.declarations = []
        self.leadership_used = False
        self.pending_swarm_consequences = 0
        self.last_swarm_result = None
        self.last_rolls = {}

    def get(self, combatant_id: Optional[str]) -> Optional[Combatant]:
        for combatant in self.roster:
            if combatant.id == combatant_id:
                return combatant
        return None

    @property
    def current_phase(self) -> Optional[BrawlPhase]:
        if not self.is_active or self.mode is not CombatMode.BRAWL:
            return None
        return BrawlPhase(self.cursor)

    @property
    def current_turn(self) -> Optional[Combatant]:
        """Combatant whose duel turn it is."""
        if not self.is_active or self.mode is not CombatMode.DUEL or not self.roster:
            return None
        return self.roster[self.cursor % len(self.roster)]

    def living(self) -> list[Combatant]:
        return [c for c in self.roster if not c.is_broken]

    def members(self, side: Side) -> list[Combatant]:
        return [c for c in self.roster if c.side is side]

    def validate(self) -> None:
        """Raise ValueError if the session breaks its invariants."""
        if self.round < 1:
            raise ValueError("Round must be at least 1")
        if not self.is_active:
            if self.roster or self.mode is not None or self.round != 1 or self.cursor != 0:
                raise ValueError("Inactive combat must be empty and reset")
            return
        if self.mode is None or not self.roster:
            raise ValueError("Active combat needs a mode and a roster")
        if self.mode is CombatMode.BRAWL and not 0 <= self.cursor < len(BrawlPhase):
            raise ValueError(f"Brawl phase index out of range: {self.cursor}")
        if self.mode is CombatMode.DUEL and not 0 <= self.cursor < len(self.roster):
            raise ValueError(f"Duel turn index out of range: {self.cursor}")
        if self.mode is CombatMode.SWARM and self.swarm is None:
            raise ValueError("Swarm combat needs swarm state")
        ids = [c.id for c in self.roster]
        if len(ids) != len(set(ids)):
            raise ValueError("Duplicate combatant ids in roster")

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode.name if self.mode else None,
            "round": self.round,
            "cursor": self.cursor,
            "roster": [c.to_dict() for c in self.roster],
            "is_active": self.is_active,
            "team_mode": self.team_mode,
            "duel_range": self.duel_range.name,
            "swarm": self.swarm.to_dict() if self.swarm else None,
            "declarations": [d.to_dict() for d in self.declarations],
            "leadership_used": self.leadership_used,
            "pending_swarm_consequences": self.pending_swarm_consequences,
            "last_swarm_result": self.last_swarm_result.to_dict() if self.last_swarm_result else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CombatSession":
        """Rebuild a session. Pushable rolls are not persisted."""
        data = require_mapping(data, "combat")
        mode = data["mode"]
        roster = require_list(data["roster"], "roster")
        declarations = require_list(data.get("declarations", []), "declarations")
        round_number, cursor = data["round"], data["cursor"]
        if not isinstance(round_number, int) or not isinstance(cursor, int):
            raise TypeError("round and cursor must be integers")
        swarm = data.get("swarm")
        result = data.get("last_swarm_result")
        session = cls(
            mode=CombatMode[mode] if mode else None,
            round=round_number,
            cursor=cursor,
            roster=[Combatant.from_dict(c) for c in roster],
            is_active=bool(data["is_active"]),
            team_mode=bool(data.get("team_mode", False)),
            duel_range=RangeCategory[data.get("duel_range", RangeCategory.LONG.name)],
            swarm=SwarmState.from_dict(swarm) if swarm else None,
            declarations=[Declaration.from_dict(d) for d in declarations],
            leadership_used=bool(data.get("leadership_used", False)),
            pending_swarm_consequences=int(data.get("pending_swarm_consequences", 0)),
            last_swarm_result=SwarmRoundResult.from_dict(result) if result else None,
        )
        session.validate()
        return session
