"""
Tap Log Format

The tap log is the durable record of a proxy session and the only input to
replay. It is append-only, UTF-8, one physical line per protocol line:

    >> 2026-10-16T21:58:00.123456+00:00 position startpos moves e2e4
    << 2026-10-16T21:58:00.131002+00:00 info depth 1 score cp 30 pv e7e5

    >>  GUI → Engine
    <<  Engine → GUI

Timestamps are UTC ISO-8601 with microseconds and never go backwards within
one writer. Lines without a marker (logs written by older tools that copied
raw bytes) are read back with direction=None.
"""

import enum
import logging
import re
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Iterable, Iterator, Optional, Union

from ucitap.errors import IoFailure

logger = logging.getLogger(__name__)


class Direction(enum.Enum):
    GUI_TO_ENGINE = ">>"
    ENGINE_TO_GUI = "<<"

    @property
    def marker(self) -> str:
        return self.value


LOG_LINE_RE = re.compile(r"^(>>|<<) (\d{4}-\d{2}-\d{2}T\S+)(?: (.*))?$")


@dataclass(frozen=True)
class LogLine:
    """One logged protocol line. direction and timestamp are None for unprefixed legacy lines."""

    direction: Optional[Direction]
    timestamp: Optional[datetime]
    text: str

    def format(self) -> str:
        """Render as a log file line (newline-terminated)."""
        if self.direction is None or self.timestamp is None:
            return self.text + "\n"
        return f"{self.direction.marker} {self.timestamp.isoformat(timespec='microseconds')} {self.text}\n"


def parse_log_line(line: str) -> LogLine:
    """
    Parse one line of a tap log.

    Args:
        line: Physical log line, with or without its newline

    Returns:
        LogLine; direction/timestamp are None when the line has no valid prefix
    """
    text = line.rstrip("\r\n")
    match = LOG_LINE_RE.match(text)
    if match:
        marker, stamp, payload = match.groups()
        try:
            timestamp = datetime.fromisoformat(stamp)
        except ValueError:
            timestamp = None
        if timestamp is not None:
            return LogLine(Direction(marker), timestamp, payload or "")

    return LogLine(None, None, text)


def read_log(source: Union[str, Path, Iterable[str]]) -> Iterator[LogLine]:
    """
    Stream LogLines from a log file path or any iterable of lines.

    Undecodable bytes are replaced rather than aborting the read.
    """
    if isinstance(source, (str, Path)):
        with open(source, "r", encoding="utf-8", errors="replace", newline="\n") as log_file:
            for line in log_file:
                yield parse_log_line(line)
    else:
        for line in source:
            yield parse_log_line(line)


class TapLog:
    """
    Append-locked log sink shared by the two relay threads.

    Every append happens under one lock, so lines from the two directions
    never interleave within a physical line, and each direction's own order
    is the order in which it called append().
    """

    def __init__(self, stream: IO[str]):
        """
        Args:
            stream: Text stream opened for appending
        """
        self._stream = stream
        self._lock = threading.Lock()
        self._last_timestamp: Optional[datetime] = None
        self.lines_written = 0

    @classmethod
    def open(cls, path: Union[str, Path]) -> "TapLog":
        """
        Open (or create) a log file for appending.

        Raises:
            IoFailure: If the file cannot be opened
        """
        path = Path(path)
        try:
            if path.parent != Path("."):
                path.parent.mkdir(parents=True, exist_ok=True)
            stream = open(path, "a", encoding="utf-8", newline="\n")
        except OSError as e:
            raise IoFailure(f"Cannot open log file {path}: {e}") from e

        logger.info(f"Tap log: {path}")
        return cls(stream)

    def _now(self) -> datetime:
        now = datetime.now(timezone.utc)
        if self._last_timestamp is not None and now < self._last_timestamp:
            now = self._last_timestamp
        self._last_timestamp = now
        return now

    def append(self, direction: Direction, text: str) -> LogLine:
        """
        Timestamp and append one protocol line, flushing immediately.

        Args:
            direction: Which way the line travelled
            text: Protocol text without its line terminator

        Returns:
            The LogLine that was written

        Raises:
            IoFailure: If the write or flush fails
        """
        with self._lock:
            entry = LogLine(direction, self._now(), text)
            try:
                self._stream.write(entry.format())
                self._stream.flush()
            except (OSError, ValueError) as e:
                raise IoFailure(f"Log write failed: {e}") from e
            self.lines_written += 1
            return entry

    def close(self):
        with self._lock:
            try:
                self._stream.close()
            except OSError as e:
                logger.warning(f"Error closing tap log: {e}")

    def __enter__(self) -> "TapLog":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
