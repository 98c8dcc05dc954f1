"""
Tests for duplicate-action suppression.
"""
from unittest.mock import Mock

from survival_engine.core.data.game_enums import CombatMode, DuelAction
from survival_engine.core.events import ActionRejected, DebugMessage
from survival_engine.game.managers.combat_orchestrator import CombatantSetup
from survival_engine.game.systems.action_guard import ActionGuard, GuardedOrchestrator, GuardState
from tests.test_utils import events_of


class FakeClock:
    """Manually advanced clock in seconds."""

    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


class TestActionGuard:
    """Test the Idle/Cooling cycle."""

    def test_first_acquire_succeeds(self):
        guard = ActionGuard(500, clock=FakeClock())

        assert guard.state_of("ana", DuelAction.OTHER) is GuardState.IDLE
        assert guard.try_acquire("ana", DuelAction.OTHER)
        assert guard.state_of("ana", DuelAction.OTHER) is GuardState.COOLING

    def test_duplicate_within_cooldown_dropped(self):
        clock = FakeClock()
        guard = ActionGuard(500, clock=clock)
        guard.try_acquire("ana", DuelAction.OTHER)

        clock.now += 0.2
        assert not guard.try_acquire("ana", DuelAction.OTHER)

    def test_cooldown_expires(self):
        clock = FakeClock()
        guard = ActionGuard(500, clock=clock)
        guard.try_acquire("ana", DuelAction.OTHER)

        clock.now += 0.5
        assert guard.state_of("ana", DuelAction.OTHER) is GuardState.IDLE
        assert guard.try_acquire("ana", DuelAction.OTHER)

    def test_dropped_attempt_does_not_extend_cooldown(self):
        clock = FakeClock()
        guard = ActionGuard(500, clock=clock)
        guard.try_acquire("ana", DuelAction.OTHER)
        clock.now += 0.4
        guard.try_acquire("ana", DuelAction.OTHER)

        clock.now += 0.1
        assert guard.try_acquire("ana", DuelAction.OTHER)

    def test_keys_are_independent(self):
        guard = ActionGuard(500, clock=FakeClock())
        guard.try_acquire("ana", DuelAction.OTHER)

        assert guard.try_acquire("ana", DuelAction.ADVANCE)
        assert guard.try_acquire("bob", DuelAction.OTHER)
        assert guard.try_acquire("ana", "PUSH")

    def test_reset(self):
        guard = ActionGuard(500, clock=FakeClock())
        guard.try_acquire("ana", DuelAction.OTHER)
        guard.reset()

        assert guard.try_acquire("ana", DuelAction.OTHER)

    def test_expired_keys_are_forgotten(self):
        clock = FakeClock()
        guard = ActionGuard(500, clock=clock)
        guard.try_acquire("ana", DuelAction.OTHER)
        guard.try_acquire("bob", DuelAction.ADVANCE)

        clock.now += 0.3
        guard.try_acquire("walker", DuelAction.OTHER)
        assert len(guard._entries) == 3

        clock.now += 0.3
        guard.try_acquire("walker", DuelAction.RETREAT)

        assert set(guard._entries) == {("walker", "OTHER"), ("walker", "RETREAT")}


class TestGuardedOrchestrator:
    """Test routing actions through the guard."""

    def test_duplicate_act_dropped_silently(self, orchestrator, event_manager, recorded_events):
        guarded = GuardedOrchestrator(orchestrator, ActionGuard(500, clock=FakeClock()))
        guarded.start_combat(CombatMode.DUEL, [CombatantSetup("ana"), CombatantSetup("walker")])

        first = guarded.act("ana", DuelAction.OTHER)
        second = guarded.act("ana", DuelAction.OTHER)
        event_manager.process_events()

        assert first is not None
        assert second is None
        assert events_of(recorded_events, ActionRejected) == []
        assert "Dropped duplicate OTHER" in events_of(recorded_events, DebugMessage)[0].message

    def test_push_guarded(self):
        orchestrator = Mock()
        orchestrator.session.round = 1
        guarded = GuardedOrchestrator(orchestrator, ActionGuard(500, clock=FakeClock()))

        guarded.push("ana")
        guarded.push("ana")

        orchestrator.push.assert_called_once_with("ana")
        orchestrator.event_manager.publish.assert_called_once()

    def test_default_guard_uses_config(self, orchestrator):
        orchestrator.config.guard_cooldown_ms = 250

        guarded = GuardedOrchestrator(orchestrator)

        assert guarded.guard.cooldown == 0.25

    def test_delegates_other_attributes(self, orchestrator):
        guarded = GuardedOrchestrator(orchestrator)
        assert guarded.session is orchestrator.session
