"""Test doubles shared by the agent_stats tests."""

import io
import threading
from unittest.mock import MagicMock

from agent_stats.models import AgentSnapshot
from agent_stats.sinks import ConsoleSink


def make_agent(enabled: bool, connected: bool, has_build: bool) -> AgentSnapshot:
    return AgentSnapshot(enabled=enabled, connected=connected, has_active_build=has_build)


class FakeClient:
    """Stand-in for TeamCityClient returning canned snapshots.

    ``queue`` and ``fleet`` may be a snapshot, an exception instance, or a
    list of either (consumed one per call, last entry repeats).
    """

    def __init__(self, queue, fleet):
        self.queue = queue
        self.fleet = fleet
        self.calls: list[str] = []
        self.closed = False
        self._lock = threading.Lock()

    def _next(self, source):
        with self._lock:
            if isinstance(source, list):
                value = source.pop(0) if len(source) > 1 else source[0]
            else:
                value = source
        if isinstance(value, Exception):
            raise value
        return value

    def fetch_queue_count(self):
        self.calls.append("queue")
        return self._next(self.queue)

    def fetch_fleet_snapshot(self):
        self.calls.append("fleet")
        return self._next(self.fleet)

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class RecordingSink(ConsoleSink):
    """Console sink that keeps lines in memory and counts stats lines."""

    def __init__(self):
        super().__init__(io.StringIO())
        self.lines: list[str] = []
        self._stats_cond = threading.Condition()

    def write_line(self, line: str) -> None:
        super().write_line(line)
        with self._stats_cond:
            self.lines.append(line)
            self._stats_cond.notify_all()

    @property
    def stats_lines(self) -> list[str]:
        with self._stats_cond:
            return [line for line in self.lines if line.count(",") == 3]

    def wait_for_stats(self, count: int = 1, timeout: float = 5.0) -> bool:
        """Block until at least ``count`` stats lines were written."""
        with self._stats_cond:
            return self._stats_cond.wait_for(
                lambda: sum(1 for line in self.lines if line.count(",") == 3) >= count,
                timeout=timeout,
            )


def http_response(status_code: int = 200, text: str = "") -> MagicMock:
    """Build a mock requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.content = text.encode("utf-8")
    return response
