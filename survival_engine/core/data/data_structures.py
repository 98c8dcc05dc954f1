"""Shared value types.

Positions on the battlemap are plain pixel coordinates. The team split and
any distance checks read them through Vector2.
"""

from dataclasses import dataclass
from typing import Any
import math


@dataclass(frozen=True)
class Vector2:
    """2D battlemap position.

    Uses (x, y) ordering to match the battlemap's screen coordinates, where x
    grows to the right and y grows downward.
    """
    x: int
    y: int

    def __add__(self, other: "Vector2") -> "Vector2":
        return Vector2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vector2") -> "Vector2":
        return Vector2(self.x - other.x, self.y - other.y)

    def __iter__(self):
        yield self.x
        yield self.y

    def __repr__(self) -> str:
        return f"Vector2(x={self.x}, y={self.y})"

    def distance_to(self, other: "Vector2") -> float:
        """Euclidean distance to another position."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def coordinate(self, axis: str) -> int:
        """Coordinate along a named axis ('x' or 'y')."""
        if axis == "x":
            return self.x
        if axis == "y":
            return self.y
        raise ValueError(f"Unknown axis: {axis}")

    def to_dict(self) -> dict[str, Any]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Vector2":
        data = require_mapping(data, "position")
        x, y = data["x"], data["y"]
        if not isinstance(x, (int, float)) or not isinstance(y, (int, float)):
            raise TypeError("Position coordinates must be numbers")
        return cls(int(x), int(y))


def require_mapping(value: Any, name: str) -> dict[str, Any]:
    """Return value if it is a JSON object, else raise TypeError."""
    if not isinstance(value, dict):
        raise TypeError(f"{name} must be an object, got {type(value).__name__}")
    return value


def require_list(value: Any, name: str) -> list[Any]:
    """Return value if it is a JSON array, else raise TypeError."""
    if not isinstance(value, list):
        raise TypeError(f"{name} must be a list, got {type(value).__name__}")
    return value
