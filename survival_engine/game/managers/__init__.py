"""Manager systems for combat coordination.

This package contains the classes that drive combat and collect its output
through the event-driven architecture.
"""

from .combat_orchestrator import ActionReport, CombatantSetup, CombatOrchestrator, StartResult
from .log_manager import LogCategory, LogLevel, LogManager
from .phase_manager import PhaseManager

__all__ = [
    "ActionReport",
    "CombatantSetup",
    "CombatOrchestrator",
    "StartResult",
    "LogCategory",
    "LogLevel",
    "LogManager",
    "PhaseManager",
]
