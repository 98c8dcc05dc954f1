"""
Tests for the critical injury table.
"""
import pytest

from survival_engine.core.data.game_enums import GearTier, RecoveryTime, TimeLimit
from survival_engine.core.dice import ScriptedDice
from survival_engine.core.injuries import CriticalInjuryRecord, CriticalInjuryTable


class TestCriticalInjuryTable:
    """Test loading, lookup and rolling of critical injuries."""

    def test_has_36_entries(self, injury_table):
        assert len(injury_table) == 36

    def test_lookup_minor_injury(self, injury_table):
        injury = injury_table.lookup(11)

        assert injury.name == "Winded"
        assert not injury.lethal
        assert injury.penalty == -1
        assert injury.recovery_time is RecoveryTime.HOURS
        assert injury.time_limit is None

    def test_lethal_entries_carry_time_limit_and_gear(self, injury_table):
        injury = injury_table.lookup(31)

        assert injury.lethal
        assert injury.time_limit is TimeLimit.DAYS
        assert injury.requires is GearTier.B
        assert not injury.is_instant_death

    @pytest.mark.parametrize("roll", [63, 64, 65, 66])
    def test_instant_death_entries(self, injury_table, roll):
        injury = injury_table.lookup(roll)

        assert injury.is_instant_death
        assert injury.time_limit is None

    def test_roll_injury_reads_d66(self, injury_table):
        injury = injury_table.roll_injury(ScriptedDice([2, 5]))
        assert injury.roll == 25

    def test_roll_without_dice_raises(self, injury_table):
        with pytest.raises(ValueError):
            CriticalInjuryTable.load().roll_injury()

    def test_unknown_roll(self, injury_table):
        with pytest.raises(ValueError):
            injury_table.lookup(17)

    def test_lethal_entries(self, injury_table):
        lethal = injury_table.lethal_entries()
        assert all(record.lethal for record in lethal)
        assert {63, 64, 65, 66} <= {record.roll for record in lethal}


class TestCriticalInjuryRecord:
    """Test record serialization."""

    def test_round_trip(self, injury_table):
        injury = injury_table.lookup(32)
        assert CriticalInjuryRecord.from_dict(injury.to_dict()) == injury

    def test_rejects_non_boolean_lethal(self, injury_table):
        data = injury_table.lookup(11).to_dict()
        data["lethal"] = "yes"
        with pytest.raises(TypeError):
            CriticalInjuryRecord.from_dict(data)

