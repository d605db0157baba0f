"""Tests for busy-agent classification and the stats line format."""

from datetime import datetime

import pytest

from agent_stats.models import FleetSnapshot
from agent_stats.stats import build_record, count_busy, parse_line, to_line
from tests.helpers import make_agent


class TestCountBusy:
    """count_busy counts agents that are enabled, connected and building."""

    def test_all_flag_combinations(self):
        combos = [
            (e, c, b)
            for e in (True, False)
            for c in (True, False)
            for b in (True, False)
        ]
        fleet = FleetSnapshot(total_count=8, agents=tuple(make_agent(*c) for c in combos))
        assert count_busy(fleet) == 1

    def test_scenario_mix(self):
        agents = [make_agent(True, True, True)] * 3 + [
            make_agent(False, True, True),
            make_agent(True, False, True),
            make_agent(True, True, False),
        ]
        assert count_busy(FleetSnapshot(total_count=10, agents=tuple(agents))) == 3

    def test_empty_agent_list(self):
        assert count_busy(FleetSnapshot(total_count=5, agents=())) == 0

    def test_default_agent_list(self):
        assert count_busy(FleetSnapshot(total_count=5)) == 0

    def test_busy_may_exceed_total(self):
        """Counts come from independent server fields and are not clamped."""
        fleet = FleetSnapshot(total_count=1, agents=(make_agent(True, True, True),) * 2)
        assert count_busy(fleet) == 2


class TestFormatting:
    """build_record / to_line / parse_line."""

    def test_line_fields(self):
        record = build_record(datetime(2026, 2, 14, 10, 30, 45, 123456), 5, 10, 3)
        assert to_line(record) == "2026-02-14T10:30:45.123456,5,10,3"

    def test_timestamp_has_no_commas(self):
        record = build_record(datetime.now(), 1, 2, 3)
        line = to_line(record)
        assert len(line.split(",")) == 4

    def test_same_counts_same_fields_across_timestamps(self):
        first = to_line(build_record(datetime(2026, 1, 1, 0, 0, 0), 2, 5, 0))
        second = to_line(build_record(datetime(2026, 1, 1, 0, 0, 7), 2, 5, 0))
        assert first.split(",")[1:] == second.split(",")[1:] == ["2", "5", "0"]

    def test_parse_line_recovers_counts(self):
        record = build_record(datetime(2026, 3, 1, 8, 0, 0, 5), 7, 12, 4)
        parsed = parse_line(to_line(record) + "\n")
        assert parsed == record

    @pytest.mark.parametrize("line", ["", "2026-01-01T00:00:00,1,2", "x,1,2,3", "2026-01-01T00:00:00,a,2,3"])
    def test_parse_line_rejects_malformed(self, line):
        with pytest.raises(ValueError):
            parse_line(line)
