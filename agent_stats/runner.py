"""Monitor runner - owns the repeating timer, the sinks and the stop trigger.

State machine: IDLE -> RUNNING -> STOPPED

The timer fires tick 0 immediately and then every ``interval_seconds``
measured from the start. Each tick runs a poll cycle on its own thread, so
a slow server never delays the next tick. Stopping halts the timer and then
waits for cycles already in flight.
"""

import logging
import sys
import threading
import time
from enum import Enum
from typing import TextIO

from .config import MonitorConfig, MonitorSettings
from .exceptions import SinkWriteError
from .poll import ClientFactory, default_client_factory, run_once
from .sinks import ConsoleSink, FileSink, initialize_output_file

logger = logging.getLogger(__name__)

BANNER_TITLE = "TeamCity Agent Statistics Monitor"
BANNER_SEPARATOR = "-" * 40


class RunnerState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class MonitorRunner:
    """Runs poll cycles on a fixed schedule until asked to stop.

    Args:
        config: Monitor configuration, shared read-only with every cycle
        settings: Optional tunables (timeout, response format, stdin trigger)
        console: Console sink for banner and stats lines (stdout by default)
        client_factory: Creates the API client for each cycle. Allows
            injection for testing.
        stdin: Stream watched for the stop keypress (sys.stdin by default)
    """

    def __init__(
        self,
        config: MonitorConfig,
        settings: MonitorSettings | None = None,
        console: ConsoleSink | None = None,
        client_factory: ClientFactory | None = None,
        stdin: TextIO | None = None,
    ):
        self.config = config
        self.settings = settings or MonitorSettings()
        self.console = console or ConsoleSink()
        self.client_factory = client_factory or default_client_factory(
            request_timeout=self.settings.request_timeout,
            response_format=self.settings.response_format,
        )
        self.stdin = stdin
        self.file_sink: FileSink | None = None

        self._state = RunnerState.IDLE
        self._lock = threading.Lock()
        self._stop_evt = threading.Event()
        self._finished_evt = threading.Event()
        self._timer_thread: threading.Thread | None = None
        self._cycles: set[threading.Thread] = set()
        self._cycles_lock = threading.Lock()
        self._tick = 0

    @property
    def state(self) -> RunnerState:
        with self._lock:
            return self._state

    @property
    def ticks(self) -> int:
        """Number of poll cycles launched so far."""
        with self._cycles_lock:
            return self._tick

    def start(self) -> None:
        """Validate config, prepare the output file and start the timer.

        Raises:
            ConfigError: If the config is invalid
            SinkWriteError: If the output file cannot be created
            RuntimeError: If the runner was already started
        """
        with self._lock:
            if self._state is not RunnerState.IDLE:
                raise RuntimeError(f"Cannot start a runner that is {self._state.value}")

            self.config.validate()
            if self.config.output_file:
                self.file_sink = initialize_output_file(self.config.output_file)

            self._print_banner()

            self._state = RunnerState.RUNNING
            self._timer_thread = threading.Thread(
                target=self._run_timer, name="agent-stats-timer", daemon=True
            )
            self._timer_thread.start()

        self._print("Started monitoring")
        logger.debug(
            "Runner started: url=%s interval=%ss output=%s",
            self.config.server_url, self.config.interval_seconds, self.config.output_file,
        )

        if self.settings.stop_on_input:
            self._start_input_listener()

    def request_stop(self) -> None:
        """Signal the timer to stop without waiting. Safe from signal handlers."""
        self._stop_evt.set()

    def stop(self) -> None:
        """Stop the timer and wait for in-flight cycles. Idempotent."""
        with self._lock:
            previous = self._state
            self._state = RunnerState.STOPPED
            self._stop_evt.set()

        if previous is RunnerState.IDLE:
            self._finished_evt.set()
            return
        if previous is RunnerState.STOPPED:
            # Another caller is already shutting down; let it finish first
            if not self._is_runner_thread():
                self._finished_evt.wait()
            return

        current = threading.current_thread()
        if self._timer_thread is not None and self._timer_thread is not current:
            self._timer_thread.join()

        with self._cycles_lock:
            in_flight = [t for t in self._cycles if t is not current]
        if in_flight:
            logger.debug("Waiting for %d in-flight poll cycle(s)", len(in_flight))
        for thread in in_flight:
            thread.join()

        self._print("Finished monitoring")
        self._finished_evt.set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until a stop is requested. Returns False on timeout."""
        return self._stop_evt.wait(timeout)

    def run_until_stopped(self) -> None:
        """Start, block until a stop trigger fires, then stop."""
        self.start()
        try:
            while not self.wait(1.0):
                pass
        except KeyboardInterrupt:
            logger.info("Interrupted, stopping monitor")
        finally:
            self.stop()

    def _run_timer(self) -> None:
        interval = self.config.interval_seconds
        next_run = time.monotonic()

        while not self._stop_evt.is_set():
            self._launch_cycle()
            next_run += interval
            delay = max(0.0, next_run - time.monotonic())
            if self._stop_evt.wait(delay):
                break

        logger.debug("Timer stopped after %d tick(s)", self.ticks)

    def _launch_cycle(self) -> None:
        with self._cycles_lock:
            self._tick += 1
            thread = threading.Thread(
                target=self._run_cycle,
                name=f"agent-stats-poll-{self._tick}",
                daemon=True,
            )
            self._cycles.add(thread)
        thread.start()

    def _run_cycle(self) -> None:
        try:
            run_once(self.config, self.client_factory, self.console, self.file_sink)
        finally:
            with self._cycles_lock:
                self._cycles.discard(threading.current_thread())

    def _start_input_listener(self) -> None:
        listener = threading.Thread(
            target=self._listen_for_input, name="agent-stats-stdin", daemon=True
        )
        listener.start()

    def _listen_for_input(self) -> None:
        stream = self.stdin if self.stdin is not None else sys.stdin
        try:
            data = stream.readline()
        except (OSError, ValueError) as e:
            logger.error("Error reading keyboard input: %s", e)
            return

        if not data:
            # EOF: no terminal attached, rely on signals instead
            logger.debug("stdin closed, keypress stop disabled")
            return

        logger.debug("Input received, stopping monitor")
        self.stop()

    def _is_runner_thread(self) -> bool:
        current = threading.current_thread()
        if current is self._timer_thread:
            return True
        with self._cycles_lock:
            return current in self._cycles

    def _print_banner(self) -> None:
        self._print(BANNER_TITLE)
        self._print(f"Monitoring server: {self.config.server_url}")
        self._print(f"Update interval: {self.config.interval_seconds} seconds")
        if self.file_sink is not None:
            self._print(f"Writing statistics to: {self.file_sink.path}")
        if self.settings.stop_on_input:
            self._print("Press Enter to exit")
        self._print(BANNER_SEPARATOR)

    def _print(self, line: str) -> None:
        try:
            self.console.write_line(line)
        except SinkWriteError as e:
            logger.error("%s", e)
