"""Guards at the boundary with user input and asynchronous collaborators.

- action_guard.py: Drops rapid duplicate combat actions
- narrative_gate.py: Cancels superseded narrative calls and discards their results
"""

from .action_guard import ActionGuard, GuardState, GuardedOrchestrator
from .narrative_gate import NarrativeGate

__all__ = [
    "ActionGuard",
    "GuardState",
    "GuardedOrchestrator",
    "NarrativeGate",
]
