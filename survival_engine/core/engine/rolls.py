"""Dice pool and roll outcome value types."""

from dataclasses import dataclass
from typing import Any, Optional

from ..data.game_enums import Skill
from ..dice import count_ones, count_successes

MAX_HELP_DICE = 3


@dataclass(frozen=True)
class DicePoolSpec:
    """Dice to roll for a check.

    Counts are clamped on construction: pools are never negative and help or
    hurt dice stay within [-3, 3]. Hurt dice shrink the base pool only.
    """
    base_count: int
    stress_count: int = 0
    help_count: int = 0

    def __post_init__(self):
        object.__setattr__(self, 'base_count', max(0, int(self.base_count)))
        object.__setattr__(self, 'stress_count', max(0, int(self.stress_count)))
        object.__setattr__(
            self, 'help_count', max(-MAX_HELP_DICE, min(MAX_HELP_DICE, int(self.help_count)))
        )

    @property
    def effective_base(self) -> int:
        """Base dice actually rolled."""
        return max(0, self.base_count + self.help_count)

    def to_dict(self) -> dict[str, int]:
        return {
            "base_count": self.base_count,
            "stress_count": self.stress_count,
            "help_count": self.help_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DicePoolSpec":
        return cls(
            base_count=_require_int(data, "base_count"),
            stress_count=_require_int(data, "stress_count"),
            help_count=_require_int(data, "help_count"),
        )


@dataclass(frozen=True)
class RollOutcome:
    """Result of rolling a dice pool.

    Successes and the messed-up flag are derived from the dice, so they can
    never disagree with them.
    """
    base_dice: tuple[int, ...]
    stress_dice: tuple[int, ...] = ()
    pushed: bool = False
    skill: Optional[Skill] = None
    pool: Optional[DicePoolSpec] = None

    def __post_init__(self):
        object.__setattr__(self, 'base_dice', tuple(self.base_dice))
        object.__setattr__(self, 'stress_dice', tuple(self.stress_dice))
        for die in self.base_dice + self.stress_dice:
            if not 1 <= die <= 6:
                raise ValueError(f"Die face out of range: {die}")

    @property
    def successes(self) -> int:
        return count_successes(self.base_dice) + count_successes(self.stress_dice)

    @property
    def messed_up(self) -> bool:
        return count_ones(self.stress_dice) > 0

    @property
    def stress_ones(self) -> int:
        """Stress dice showing a one."""
        return count_ones(self.stress_dice)

    @property
    def is_success(self) -> bool:
        return self.successes > 0

    @property
    def can_push(self) -> bool:
        """A roll may only be pushed after a clean, unpushed failure."""
        return self.successes == 0 and not self.messed_up and not self.pushed

    def to_dict(self) -> dict[str, Any]:
        return {
            "base_dice": list(self.base_dice),
            "stress_dice": list(self.stress_dice),
            "successes": self.successes,
            "messed_up": self.messed_up,
            "pushed": self.pushed,
            "skill": self.skill.name if self.skill else None,
            "pool": self.pool.to_dict() if self.pool else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RollOutcome":
        """Rebuild an outcome, rejecting stored totals that contradict the dice."""
        base = data["base_dice"]
        stress = data["stress_dice"]
        if not isinstance(base, list) or not isinstance(stress, list):
            raise TypeError("Dice must be stored as lists")
        if not all(isinstance(d, int) and not isinstance(d, bool) for d in base + stress):
            raise TypeError("Dice must be integers")
        pushed = data["pushed"]
        if not isinstance(pushed, bool):
            raise TypeError("pushed must be a boolean")
        skill = data.get("skill")
        pool = data.get("pool")
        outcome = cls(
            base_dice=tuple(base),
            stress_dice=tuple(stress),
            pushed=pushed,
            skill=Skill[skill] if skill else None,
            pool=DicePoolSpec.from_dict(pool) if pool else None,
        )
        if "successes" in data and data["successes"] != outcome.successes:
            raise ValueError("Stored successes do not match the dice")
        if "messed_up" in data and data["messed_up"] != outcome.messed_up:
            raise ValueError("Stored messed_up flag does not match the dice")
        return outcome


def _require_int(data: dict[str, Any], key: str) -> int:
    value = data[key]
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{key} must be an integer")
    return value
