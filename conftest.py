"""Root-level conftest.py - keeps the repository root importable for tests
and resets the package logger between tests.

cli.setup_logging() attaches handlers to the ``agent_stats`` logger and turns
off propagation, which would hide records from caplog in later tests.
"""

import logging

import pytest


@pytest.fixture(autouse=True)
def reset_agent_stats_logger():
    log = logging.getLogger("agent_stats")
    saved = (list(log.handlers), log.level, log.propagate)
    yield
    for handler in list(log.handlers):
        if handler not in saved[0]:
            log.removeHandler(handler)
            handler.close()
    log.setLevel(saved[1])
    log.propagate = saved[2]
