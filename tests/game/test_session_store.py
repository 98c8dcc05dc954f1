"""
Tests for exporting and importing a session as JSON.
"""
import json

import pytest

from survival_engine.core.data.game_enums import BrawlPhase, CombatMode
from survival_engine.core.events import LogMessage
from survival_engine.game.managers.combat_orchestrator import CombatantSetup
from survival_engine.game.session_store import FORMAT_VERSION, SessionStore
from tests.test_utils import events_of


@pytest.fixture
def store(orchestrator, registry):
    return SessionStore(orchestrator, registry)


@pytest.fixture
def brawl_in_progress(orchestrator, registry):
    registry.get("ana").stress = 2
    orchestrator.start_combat(
        CombatMode.BRAWL, [CombatantSetup("ana"), CombatantSetup("bob"), CombatantSetup("walker")]
    )
    orchestrator.advance()
    orchestrator.session.get("walker").health = 1
    return orchestrator


class TestExport:
    """Test the exported document."""

    def test_document_layout(self, store, brawl_in_progress):
        data = json.loads(store.export_state())

        assert data["version"] == FORMAT_VERSION
        assert [c["id"] for c in data["characters"]] == ["ana", "bob"]
        assert [n["id"] for n in data["npcs"]] == ["walker"]
        assert data["combat"]["mode"] == "BRAWL"
        assert data["combat"]["cursor"] == BrawlPhase.RANGED_COMBAT.value

    def test_idle_session_exports(self, store):
        data = store.to_dict()
        assert data["combat"]["is_active"] is False


class TestImport:
    """Test restoring from a document."""

    def test_round_trip_restores_combat(self, store, brawl_in_progress, registry):
        text = store.export_state()
        brawl_in_progress.end_combat()
        registry.get("ana").stress = 0

        assert store.import_state(text)

        session = brawl_in_progress.session
        assert session.is_active
        assert session.current_phase is BrawlPhase.RANGED_COMBAT
        assert session.get("walker").health == 1
        assert registry.get("ana").stress == 2

    def test_pushable_rolls_not_restored(self, store, brawl_in_progress, dice):
        text = store.export_state()
        assert store.import_state(text)

        assert brawl_in_progress.session.last_rolls == {}
        assert brawl_in_progress.leadership_dice == 0

    @pytest.mark.parametrize("text", [
        "not json",
        "[]",
        '{"version": 99, "characters": [], "npcs": [], "combat": {}}',
        '{"version": 1, "characters": [], "npcs": []}',
        '{"version": 1, "characters": {}, "npcs": [], "combat": {}}',
    ])
    def test_malformed_documents_rejected(self, store, brawl_in_progress, registry, text):
        before = brawl_in_progress.session

        assert not store.import_state(text)

        assert brawl_in_progress.session is before
        assert "ana" in registry

    @pytest.mark.parametrize("corrupt", [
        lambda d: d["characters"][0].update(attributes=[]),
        lambda d: d["characters"][0].update(skills="CLOSE_COMBAT"),
        lambda d: d["characters"][0].update(bonuses={"name": "Knife"}),
        lambda d: d["characters"][0].update(bonuses=[3]),
        lambda d: d["characters"][0].update(critical_injuries=["Broken nose"]),
        lambda d: d["characters"].__setitem__(0, "ana"),
        lambda d: d["npcs"][0].update(expertise=None),
        lambda d: d["combat"].update(declarations=[1]),
        lambda d: d["combat"].update(declarations={}),
        lambda d: d["combat"]["roster"].__setitem__(0, []),
        lambda d: d["combat"]["roster"][0].update(position=[0, 0]),
        lambda d: d["combat"].update(swarm=[2, 1]),
        lambda d: d["combat"].update(last_swarm_result=["win"]),
    ])
    def test_wrong_typed_nested_values_rejected(self, store, brawl_in_progress, registry, corrupt):
        data = store.to_dict()
        corrupt(data)
        before = brawl_in_progress.session

        assert not store.import_state(json.dumps(data))

        assert brawl_in_progress.session is before
        assert registry.get("ana").stress == 2

    def test_inconsistent_roll_rejected(self, store, brawl_in_progress):
        data = store.to_dict()
        data["combat"]["last_swarm_result"] = {
            "successes": 1, "needed": 2, "is_win": True, "almost": False, "messed_up": [],
        }

        assert not store.import_state(json.dumps(data))

    def test_roster_without_sheet_rejected(self, store, brawl_in_progress):
        data = store.to_dict()
        data["npcs"] = []

        assert not store.import_state(json.dumps(data))
        assert brawl_in_progress.session.get("walker") is not None

    def test_failure_logged_as_warning(self, store, event_manager, recorded_events):
        store.import_state("{")
        event_manager.process_events()

        warning = events_of(recorded_events, LogMessage)[-1]
        assert warning.level == "WARNING"
        assert warning.message.startswith("Import failed")
