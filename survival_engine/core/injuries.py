"""Critical injury generation.

A broken character rolls a d66 on the critical injury table. Lethal injuries
carry a time limit and the gear tier needed to treat them; tracking the
deadline belongs to whoever runs the session clock.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from .data.data_structures import require_mapping
from .data.game_enums import GearTier, RecoveryTime, TimeLimit
from .data.tables import RollTable, TABLES_DIR
from .dice import DiceSource

CRITICAL_INJURY_FILE = TABLES_DIR / "critical_injuries.yaml"

Penalty = Union[int, str]


@dataclass(frozen=True)
class CriticalInjuryRecord:
    """An immutable critical injury."""
    roll: int
    name: str
    penalty: Penalty
    recovery_time: RecoveryTime
    lethal: bool
    time_limit: Optional[TimeLimit] = None
    requires: Optional[GearTier] = None

    @property
    def is_instant_death(self) -> bool:
        return self.lethal and self.time_limit is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "roll": self.roll,
            "name": self.name,
            "penalty": self.penalty,
            "recovery_time": self.recovery_time.value,
            "lethal": self.lethal,
            "time_limit": self.time_limit.value if self.time_limit else None,
            "requires": self.requires.value if self.requires else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CriticalInjuryRecord":
        data = require_mapping(data, "critical injury")
        penalty = data["penalty"]
        if not isinstance(penalty, (int, str)) or isinstance(penalty, bool):
            raise TypeError("Injury penalty must be an integer or a tag")
        lethal = data["lethal"]
        if not isinstance(lethal, bool):
            raise TypeError("Injury lethal flag must be a boolean")
        time_limit = data.get("time_limit")
        requires = data.get("requires")
        return cls(
            roll=int(data["roll"]),
            name=str(data["name"]),
            penalty=penalty,
            recovery_time=RecoveryTime(data["recovery_time"]),
            lethal=lethal,
            time_limit=TimeLimit(time_limit) if time_limit else None,
            requires=GearTier(requires) if requires else None,
        )


class CriticalInjuryTable:
    """The d66 critical injury table."""

    def __init__(self, table: RollTable, dice: Optional[DiceSource] = None):
        if table.die != "d66":
            raise ValueError("Critical injuries are rolled on a d66 table")
        self.dice = dice
        self._records = {roll: self._to_record(entry.roll, entry.data, entry.text)
                         for roll, entry in table.entries.items()}

    @staticmethod
    def _to_record(roll: int, data: dict[str, Any], name: str) -> CriticalInjuryRecord:
        time_limit = data.get("time_limit")
        requires = data.get("requires")
        return CriticalInjuryRecord(
            roll=roll,
            name=name,
            penalty=data["penalty"],
            recovery_time=RecoveryTime(data["recovery_time"]),
            lethal=bool(data["lethal"]),
            time_limit=TimeLimit(time_limit) if time_limit else None,
            requires=GearTier(requires) if requires else None,
        )

    @classmethod
    def load(cls, path: Optional[Path] = None, dice: Optional[DiceSource] = None) -> "CriticalInjuryTable":
        """Load the table from YAML."""
        with open(path or CRITICAL_INJURY_FILE, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
        return cls(RollTable.from_dict("critical_injuries", data), dice)

    def __len__(self) -> int:
        return len(self._records)

    def lookup(self, roll: int) -> CriticalInjuryRecord:
        try:
            return self._records[roll]
        except KeyError:
            raise ValueError(f"No critical injury for roll {roll}") from None

    def roll_injury(self, dice: Optional[DiceSource] = None) -> CriticalInjuryRecord:
        """Roll a d66 and return the matching injury."""
        source = dice or self.dice
        if source is None:
            raise ValueError("No dice source available for the injury roll")
        return self.lookup(source.roll_d66())

    def lethal_entries(self) -> list[CriticalInjuryRecord]:
        return [record for record in self._records.values() if record.lethal]
