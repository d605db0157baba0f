"""Shared test fixtures for agent_stats tests."""

import shutil
import tempfile
from pathlib import Path

import pytest

from agent_stats.config import MonitorConfig, MonitorSettings
from agent_stats.exceptions import UnexpectedStatusError
from agent_stats.models import FleetSnapshot, QueueSnapshot
from tests.helpers import FakeClient, RecordingSink, make_agent


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    tmp = tempfile.mkdtemp()
    yield Path(tmp)
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def config():
    return MonitorConfig(
        interval_seconds=1,
        server_url="http://test-teamcity",
        auth_token="test-token",
    )


@pytest.fixture
def quiet_settings():
    """Settings without the stdin stop listener."""
    return MonitorSettings(stop_on_input=False)


@pytest.fixture
def console():
    return RecordingSink()


@pytest.fixture
def scenario_a_client():
    """queued=5, total=10, three busy agents among six."""
    agents = (
        [make_agent(True, True, True)] * 3
        + [make_agent(False, True, True), make_agent(True, False, True), make_agent(True, True, False)]
    )
    return FakeClient(
        QueueSnapshot(queued_count=5),
        FleetSnapshot(total_count=10, agents=tuple(agents)),
    )


@pytest.fixture
def failing_then_ok_client():
    """Agents endpoint answers HTTP 500 once, then succeeds."""
    return FakeClient(
        QueueSnapshot(queued_count=1),
        [
            UnexpectedStatusError("Failed to get agents", 500),
            FleetSnapshot(total_count=4, agents=(make_agent(True, True, True),)),
        ],
    )
