#!/usr/bin/env python3
"""Command-line entry point.

Usage:
    agent-stats <interval_seconds> <teamcity_url> <teamcity_token> [output_file_path]
                [--config PATH] [--debug]
"""

import argparse
import logging
import signal
import sys
import threading
from datetime import datetime
from pathlib import Path

from .config import MonitorConfig, load_settings
from .exceptions import ConfigError, SinkWriteError
from .runner import MonitorRunner

logger = logging.getLogger("agent_stats")

USAGE = (
    "Usage: agent-stats <interval_seconds> <teamcity_url> <teamcity_token> "
    "[output_file_path] [--config PATH] [--debug]"
)

_OPTIONS_WITH_VALUE = {"--config"}

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser that reports errors with exit code 1."""

    def error(self, message: str):
        print(USAGE, file=sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="agent-stats",
        usage=USAGE.removeprefix("Usage: "),
        description="Periodically print TeamCity queue and agent statistics as CSV",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML settings file (request_timeout, response_format, stop_on_input, logs_dir)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging (also to <logs_dir>/agent-stats-<date>.log when logs_dir is set)",
    )
    return parser


def split_argv(argv: list[str]) -> tuple[list[str], list[str]]:
    """Separate long options from positional arguments.

    Only ``--``-prefixed words (and ``-h``) are treated as options, so a token
    or output path starting with a single dash stays positional. Everything
    after a bare ``--`` is positional.

    Returns:
        (option_args, positional_args)
    """
    options: list[str] = []
    positionals: list[str] = []
    args = iter(argv)
    for arg in args:
        if arg == "--":
            positionals.extend(args)
            break
        if arg.startswith("--") or arg == "-h":
            options.append(arg)
            if arg in _OPTIONS_WITH_VALUE:
                value = next(args, None)
                if value is not None:
                    options.append(value)
            continue
        positionals.append(arg)
    return options, positionals


def setup_logging(debug: bool = False, logs_dir: Path | None = None) -> None:
    """Send log records to stderr as one line each.

    With debug enabled and a logs directory configured, records are also
    written to a dated log file.
    """
    level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(level)
    logger.propagate = False

    if logger.handlers:
        return

    fmt = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(fmt)
    logger.addHandler(handler)

    if debug and logs_dir is not None:
        logs_dir.mkdir(parents=True, exist_ok=True)
        date_str = datetime.now().strftime("%Y-%m-%d")
        fh = logging.FileHandler(logs_dir / f"agent-stats-{date_str}.log", encoding="utf-8")
        fh.setFormatter(fmt)
        logger.addHandler(fh)


def _install_signal_handlers(runner: MonitorRunner) -> None:
    if threading.current_thread() is not threading.main_thread():
        return

    def _handle(signum, frame):
        logger.info("Received %s, stopping monitor", signal.Signals(signum).name)
        runner.request_stop()

    signal.signal(signal.SIGTERM, _handle)


def main(argv: list[str] | None = None) -> int:
    """Entry point for the monitor."""
    parser = build_parser()
    option_args, positional = split_argv(sys.argv[1:] if argv is None else argv)
    args = parser.parse_args(option_args)

    if not 3 <= len(positional) <= 4:
        print(USAGE, file=sys.stderr)
        return 1

    try:
        settings = load_settings(args.config)
        config = MonitorConfig.from_args(*positional)
    except ConfigError as e:
        print(str(e), file=sys.stderr)
        return 1

    try:
        setup_logging(debug=args.debug, logs_dir=settings.logs_dir)
    except OSError as e:
        print(f"Error initializing log file: {e}", file=sys.stderr)
        return 1

    runner = MonitorRunner(config, settings=settings)
    _install_signal_handlers(runner)

    try:
        runner.run_until_stopped()
    except SinkWriteError as e:
        print(f"Error initializing output file: {e}", file=sys.stderr)
        return 1
    except ConfigError as e:
        print(str(e), file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
