"""Snapshot and record types passed through a single poll cycle.

Snapshots are decoded fresh on every poll and dropped once the stats record
has been built. The server-reported agent count and the decoded agent list
come from independent fields and are never reconciled.
"""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class AgentSnapshot:
    """State of one build agent as seen in a single poll."""
    enabled: bool
    connected: bool
    has_active_build: bool


@dataclass(frozen=True)
class FleetSnapshot:
    """Agent list response: server count plus the projected agent entries."""
    total_count: int
    agents: tuple[AgentSnapshot, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class QueueSnapshot:
    """Build queue response."""
    queued_count: int


@dataclass(frozen=True)
class StatsRecord:
    """One line of monitor output."""
    timestamp: datetime
    queued_count: int
    total_agents: int
    busy_agents: int
