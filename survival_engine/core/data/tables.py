"""YAML-backed roll tables.

Tables are keyed by die result. A d6 table covers 1-6 and a d66 table covers
the 36 combinations 11-66. Keys in the files may be single results or
inclusive ranges ("1-3"), which are expanded on load.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, TYPE_CHECKING

import yaml

from .game_enums import Skill, SwarmAttackType

if TYPE_CHECKING:
    from ..dice import DiceSource

TABLES_DIR = Path(__file__).parent.parent.parent / "assets" / "tables"
COMBAT_TABLES_FILE = TABLES_DIR / "combat_tables.yaml"

D6_RESULTS = tuple(range(1, 7))
D66_RESULTS = tuple(tens * 10 + units for tens in range(1, 7) for units in range(1, 7))


@dataclass(frozen=True)
class TableEntry:
    """One row of a roll table."""
    roll: int
    text: str
    data: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


def _expand_key(key: Any) -> list[int]:
    if isinstance(key, int):
        return [key]
    text = str(key).strip()
    if "-" in text:
        low, high = text.split("-", 1)
        return list(range(int(low), int(high) + 1))
    return [int(text)]


class RollTable:
    """A d6 or d66 table."""

    def __init__(self, name: str, die: str, entries: dict[int, TableEntry]):
        expected = D6_RESULTS if die == "d6" else D66_RESULTS
        missing = [roll for roll in expected if roll not in entries]
        if die not in ("d6", "d66") or missing:
            raise ValueError(f"Table '{name}' is incomplete for {die}: missing {missing}")
        self.name = name
        self.die = die
        self.entries = entries

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> "RollTable":
        """Create a table from its YAML mapping."""
        die = data.get("die", "d6")
        entries: dict[int, TableEntry] = {}
        for key, raw in data["entries"].items():
            raw = dict(raw)
            text = raw.pop("text", raw.get("name", ""))
            for roll in _expand_key(key):
                entries[roll] = TableEntry(roll=roll, text=text, data=raw)
        return cls(name, die, entries)

    def lookup(self, roll: int) -> TableEntry:
        try:
            return self.entries[roll]
        except KeyError:
            raise ValueError(f"Roll {roll} is not on table '{self.name}'") from None

    def roll(self, dice: "DiceSource") -> TableEntry:
        """Roll the table's die and return the matching entry."""
        result = dice.roll_d6() if self.die == "d6" else dice.roll_d66()
        return self.lookup(result)


@dataclass
class SwarmCombatRow:
    """Skills usable against a swarm and attacks it may make at a threat level."""
    skills: tuple[Skill, ...]
    attacks: tuple[SwarmAttackType, ...]


@dataclass
class RulesTables:
    """All combat tables loaded from the rules data file."""
    messing_up: RollTable
    overwhelmed: RollTable
    swarm_loss: RollTable
    swarm_attack: RollTable
    walker_attack: RollTable
    swarm_combat: dict[int, SwarmCombatRow]
    threat_levels: dict[int, str]
    swarm_sizes: dict[int, str]

    def allowed_swarm_skills(self, threat_level: int) -> tuple[Skill, ...]:
        row = self.swarm_combat.get(threat_level)
        return row.skills if row else ()

    def swarm_attacks(self, threat_level: int) -> tuple[SwarmAttackType, ...]:
        row = self.swarm_combat.get(threat_level)
        return row.attacks if row else ()

    def describe_threat(self, threat_level: int) -> str:
        return self.threat_levels.get(threat_level, "")

    def swarm_headcount(self, size: int) -> str:
        return self.swarm_sizes.get(size, "")


def load_rules_tables(path: Optional[Path] = None) -> RulesTables:
    """Load the combat tables file.

    Raises:
        FileNotFoundError: If the tables file does not exist
        ValueError: If a table is incomplete or names an unknown enum value
    """
    tables_file = Path(path) if path else COMBAT_TABLES_FILE
    with open(tables_file, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    try:
        swarm_combat = {
            int(level): SwarmCombatRow(
                skills=tuple(Skill[name] for name in row.get("skills", [])),
                attacks=tuple(SwarmAttackType[name] for name in row.get("attacks", [])),
            )
            for level, row in data["swarm_combat"].items()
        }
    except KeyError as e:
        raise ValueError(f"Unknown name in swarm combat table: {e}") from e

    return RulesTables(
        messing_up=RollTable.from_dict("messing_up_in_combat", data["messing_up_in_combat"]),
        overwhelmed=RollTable.from_dict("overwhelmed", data["overwhelmed"]),
        swarm_loss=RollTable.from_dict("swarm_loss", data["swarm_loss"]),
        swarm_attack=RollTable.from_dict("swarm_attack", data["swarm_attack"]),
        walker_attack=RollTable.from_dict("walker_attack", data["walker_attack"]),
        swarm_combat=swarm_combat,
        threat_levels={int(k): str(v) for k, v in data["threat_levels"].items()},
        swarm_sizes={int(k): str(v) for k, v in data["swarm_sizes"].items()},
    )
