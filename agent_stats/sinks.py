"""Output sinks for stats lines.

Overlapping poll cycles may write at the same time, so each sink serializes
its writes with a lock and flushes after every line.
"""

import sys
import threading
from pathlib import Path
from typing import TextIO

from .exceptions import SinkWriteError


class ConsoleSink:
    """Writes lines to a text stream (stdout by default)."""

    def __init__(self, stream: TextIO | None = None):
        self.stream = stream if stream is not None else sys.stdout
        self._lock = threading.Lock()

    def write_line(self, line: str) -> None:
        with self._lock:
            try:
                self.stream.write(line + "\n")
                self.stream.flush()
            except (OSError, ValueError) as e:
                # ValueError: write to a closed stream
                raise SinkWriteError(f"Error writing to console: {e}") from e


class FileSink:
    """Appends lines to a file, opening it in append mode for every write."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._lock = threading.Lock()

    def write_line(self, line: str) -> None:
        with self._lock:
            try:
                with open(self.path, "a", encoding="utf-8") as f:
                    f.write(line + "\n")
            except OSError as e:
                raise SinkWriteError(f"Error writing to {self.path}: {e}") from e


def initialize_output_file(path: Path | str) -> FileSink:
    """Create (or truncate) the output file and return a sink for it.

    Missing parent directories are created. Any data left from a previous
    session is discarded.

    Raises:
        SinkWriteError: If the directories or the file cannot be created
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8"):
            pass
    except OSError as e:
        raise SinkWriteError(str(e)) from e
    return FileSink(path)
