"""Busy-agent classification and the stats line format.

Line format:
    <local ISO-8601 timestamp>,<queued builds>,<total agents>,<busy agents>

Example:
    2026-02-14T10:30:45.123456,5,10,3

The separator is a literal comma with no escaping, so the timestamp must
never contain one. ``datetime.isoformat()`` satisfies that.
"""

from datetime import datetime

from .models import FleetSnapshot, StatsRecord

FIELD_SEPARATOR = ","


def count_busy(fleet: FleetSnapshot) -> int:
    """Count agents that are enabled, connected and attached to a build."""
    if not fleet.agents:
        return 0
    return sum(
        1 for agent in fleet.agents
        if agent.enabled and agent.connected and agent.has_active_build
    )


def build_record(timestamp: datetime, queued: int, total: int, busy: int) -> StatsRecord:
    """Build the record written to every sink for one poll."""
    return StatsRecord(
        timestamp=timestamp,
        queued_count=queued,
        total_agents=total,
        busy_agents=busy,
    )


def to_line(record: StatsRecord) -> str:
    """Serialize a record to a single CSV line (no trailing newline)."""
    return FIELD_SEPARATOR.join([
        record.timestamp.isoformat(),
        str(record.queued_count),
        str(record.total_agents),
        str(record.busy_agents),
    ])


def parse_line(line: str) -> StatsRecord:
    """Parse a line produced by to_line().

    Raises:
        ValueError: If the line does not have four well-formed fields
    """
    parts = line.strip().split(FIELD_SEPARATOR)
    if len(parts) != 4:
        raise ValueError(f"Expected 4 fields, got {len(parts)}: {line!r}")

    timestamp = datetime.fromisoformat(parts[0])
    queued, total, busy = (int(p) for p in parts[1:])
    return build_record(timestamp, queued, total, busy)
