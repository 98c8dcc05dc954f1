"""Dice rolling primitives.

Every random draw in the engine goes through a DiceSource. DiceEngine wraps a
numpy Generator for live play; ScriptedDice replays a fixed sequence so the
resolvers and the combat orchestrator can be driven deterministically.
"""

from abc import ABC, abstractmethod
from collections import deque
from typing import Iterable, Optional, Sequence

import numpy as np


class DiceExhaustedError(RuntimeError):
    """Raised when a ScriptedDice sequence has no values left."""


def count_successes(dice: Sequence[int]) -> int:
    """Number of dice showing a six."""
    if len(dice) == 0:
        return 0
    return int(np.count_nonzero(np.asarray(dice) == 6))


def count_ones(dice: Sequence[int]) -> int:
    """Number of dice showing a one."""
    if len(dice) == 0:
        return 0
    return int(np.count_nonzero(np.asarray(dice) == 1))


def success_probability(base: int, stress: int = 0, pushed: bool = False) -> float:
    """Chance of rolling at least one six.

    Args:
        base: Base dice in the pool
        stress: Stress dice in the pool
        pushed: Include the re-roll of a push

    Returns:
        Probability in [0, 1]
    """
    dice = max(0, base) + max(0, stress)
    miss = 5.0 / 6.0
    if pushed:
        miss = miss * miss
    return 1.0 - miss ** dice


class DiceSource(ABC):
    """Interface for anything that produces six-sided die results."""

    @abstractmethod
    def roll_dice(self, count: int) -> list[int]:
        """Roll `count` six-sided dice. Negative counts roll nothing."""

    @abstractmethod
    def pick_index(self, size: int) -> int:
        """Uniformly choose an index in [0, size)."""

    def roll_d6(self) -> int:
        return self.roll_dice(1)[0]

    def roll_d66(self) -> int:
        """Roll a d66: the first die gives tens, the second gives units."""
        tens, units = self.roll_dice(2)
        return tens * 10 + units


class DiceEngine(DiceSource):
    """Random dice backed by numpy."""

    def __init__(self, seed: Optional[int] = None, rng: Optional[np.random.Generator] = None):
        self._rng = rng if rng is not None else np.random.default_rng(seed)

    def roll_dice(self, count: int) -> list[int]:
        count = max(0, int(count))
        if count == 0:
            return []
        return self._rng.integers(1, 7, size=count).tolist()

    def pick_index(self, size: int) -> int:
        if size <= 0:
            raise ValueError("Cannot pick from an empty collection")
        return int(self._rng.integers(0, size))


class ScriptedDice(DiceSource):
    """Deterministic dice that replay a fixed sequence of faces.

    Picks draw from a separate sequence and fall back to the first item once
    it is used up.
    """

    def __init__(self, values: Iterable[int] = (), picks: Iterable[int] = ()):
        self._values: deque[int] = deque()
        self._picks: deque[int] = deque(picks)
        self.extend(values)

    def extend(self, values: Iterable[int]) -> None:
        for value in values:
            if not 1 <= value <= 6:
                raise ValueError(f"Die face out of range: {value}")
            self._values.append(value)

    @property
    def remaining(self) -> int:
        return len(self._values)

    def roll_dice(self, count: int) -> list[int]:
        count = max(0, int(count))
        if count > len(self._values):
            raise DiceExhaustedError(
                f"Requested {count} dice but only {len(self._values)} scripted"
            )
        return [self._values.popleft() for _ in range(count)]

    def pick_index(self, size: int) -> int:
        if size <= 0:
            raise ValueError("Cannot pick from an empty collection")
        if not self._picks:
            return 0
        return self._picks.popleft() % size
