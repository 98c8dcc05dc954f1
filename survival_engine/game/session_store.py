"""
JSON boundary for saving and restoring a session.

Export writes character sheets, NPCs and combat state to one JSON document.
Import validates the whole document and builds fresh objects before anything
live is replaced, so a malformed document leaves the session untouched.
"""
import json
from typing import TYPE_CHECKING, Any

from ..core.data.data_structures import require_mapping
from ..core.engine.characters import CharacterRegistry
from ..core.engine.combat_state import CombatSession
from ..core.events import LogMessage

if TYPE_CHECKING:
    from .managers.combat_orchestrator import CombatOrchestrator

FORMAT_VERSION = 1


class SessionStore:
    """Exports and imports the live registry and combat session."""

    def __init__(self, orchestrator: "CombatOrchestrator", registry: CharacterRegistry):
        self.orchestrator = orchestrator
        self.registry = registry

    def _emit_log(self, message: str, level: str = "INFO") -> None:
        self.orchestrator.event_manager.publish(
            LogMessage(
                turn=self.orchestrator.session.round,
                message=message,
                category="SYSTEM" if level == "INFO" else "WARNING",
                level=level,
                source="SessionStore",
            ),
            source="SessionStore",
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"version": FORMAT_VERSION}
        data.update(self.registry.to_dict())
        data["combat"] = self.orchestrator.session.to_dict()
        return data

    def export_state(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    def import_state(self, text: str) -> bool:
        """Replace the live state with the document's contents.

        Returns:
            True on success; False if the document is malformed, in which case
            nothing live was changed
        """
        try:
            data = json.loads(text)
            registry, session = self._parse(data)
        except json.JSONDecodeError as e:
            self._emit_log(f"Import failed, not valid JSON: {e.msg}", "WARNING")
            return False
        except (KeyError, TypeError, ValueError) as e:
            self._emit_log(f"Import failed, invalid session document: {e!r}", "WARNING")
            return False

        self.registry.replace_with(registry)
        self.orchestrator.restore(session)
        self._emit_log(
            f"Imported {len(registry)} character sheet(s)"
            f"{' with combat in progress' if session.is_active else ''}"
        )
        return True

    @staticmethod
    def _parse(data: Any) -> tuple[CharacterRegistry, CombatSession]:
        data = require_mapping(data, "Session document")
        version = data["version"]
        if version != FORMAT_VERSION:
            raise ValueError(f"Unsupported session version: {version}")
        combat = require_mapping(data["combat"], "combat")

        registry = CharacterRegistry.from_dict(data)
        session = CombatSession.from_dict(combat)
        for combatant in session.roster:
            if combatant.id not in registry:
                raise ValueError(f"Combatant {combatant.id} has no character sheet")
        return registry, session
