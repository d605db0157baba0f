"""
TeamCity Agent Stats

Polls a TeamCity server at a fixed interval and reports the number of queued
builds, registered agents and busy agents as one CSV line per poll.

Example:
    >>> from agent_stats import MonitorConfig, MonitorRunner
    >>>
    >>> config = MonitorConfig.from_args('60', 'https://teamcity.example.com', 'token')
    >>> runner = MonitorRunner(config)
    >>> runner.run_until_stopped()
"""

from .config import MonitorConfig, MonitorSettings, load_settings
from .exceptions import (
    AgentStatsError,
    ConfigError,
    DecodeError,
    SinkWriteError,
    TransportError,
    UnexpectedStatusError,
)
from .runner import MonitorRunner, RunnerState

__version__ = "0.1.0"
__all__ = [
    "MonitorConfig",
    "MonitorSettings",
    "MonitorRunner",
    "RunnerState",
    "load_settings",
    "AgentStatsError",
    "ConfigError",
    "DecodeError",
    "SinkWriteError",
    "TransportError",
    "UnexpectedStatusError",
]
