"""A single poll cycle: fetch, classify, format, emit.

The cycle never raises. Any failure ends the cycle early with a one-line
error on the log, and the scheduler goes on to the next tick.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from .client import TeamCityClient
from .config import MonitorConfig
from .exceptions import AgentStatsError, SinkWriteError
from .models import StatsRecord
from .sinks import ConsoleSink, FileSink
from .stats import build_record, count_busy, to_line

logger = logging.getLogger(__name__)

ClientFactory = Callable[[MonitorConfig], TeamCityClient]


def default_client_factory(
    request_timeout: float = 30,
    response_format: str = "xml",
) -> ClientFactory:
    """Return a factory that opens a fresh client for every cycle."""

    def factory(config: MonitorConfig) -> TeamCityClient:
        return TeamCityClient(
            config.server_url,
            timeout=request_timeout,
            response_format=response_format,
            auth_header=config.auth_header,
        )

    return factory


def run_once(
    config: MonitorConfig,
    client_factory: ClientFactory,
    console: ConsoleSink,
    file_sink: FileSink | None = None,
    now: Callable[[], datetime] = datetime.now,
) -> StatsRecord | None:
    """Run one poll cycle.

    Args:
        config: Monitor configuration (read-only)
        client_factory: Creates the API client used for this cycle
        console: Console sink for the stats line
        file_sink: Optional file sink the line is appended to
        now: Clock for the record timestamp

    Returns:
        The record that was emitted, or None if the fetch failed
    """
    try:
        record = _collect(config, client_factory, now)
    except AgentStatsError as e:
        logger.error("Error fetching statistics: %s", e)
        return None
    except Exception as e:
        logger.error("Unexpected error fetching statistics: %s: %s", type(e).__name__, e)
        logger.debug("Poll cycle failure", exc_info=True)
        return None

    line = to_line(record)
    logger.debug("Poll result: %s", line)

    # A failing sink must not keep the line from reaching the other one
    for sink in (console, file_sink):
        if sink is None:
            continue
        try:
            sink.write_line(line)
        except SinkWriteError as e:
            logger.error("%s", e)

    return record


def _collect(
    config: MonitorConfig,
    client_factory: ClientFactory,
    now: Callable[[], datetime],
) -> StatsRecord:
    with client_factory(config) as client:
        queue = client.fetch_queue_count()
        fleet = client.fetch_fleet_snapshot()

    busy = count_busy(fleet)
    return build_record(now(), queue.queued_count, fleet.total_count, busy)
