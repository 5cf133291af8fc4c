"""
UCI Proxy/Tee

Spawns the real engine and sits between it and the GUI, relaying every byte
unchanged while copying each line, tagged and timestamped, into the tap log.

Threading:
    - GUI → Engine thread: stdin line → engine stdin, then log
    - Engine → GUI thread: engine stdout line → stdout, then log
    - Main thread: waits on the shared shutdown event, then tears down
    - The two relay threads share only the append-locked TapLog and the
      shutdown event

Shutdown:
    - GUI closes stdin: engine stdin is closed, the engine gets a grace
      period to exit on its own, then it is terminated
    - Engine closes stdout (exit or crash): the proxy waits for the engine
      and exits with its exit code
    - Any relay or log write failure: the engine is terminated and
      IoFailure is raised, since transparency can no longer be guaranteed

Nothing is ever written to the relayed streams except relayed data.
"""

import io
import logging
import os
import subprocess
import sys
import threading
from typing import BinaryIO, Iterator, List, Optional, Sequence

from ucitap.errors import IoFailure, SpawnError
from ucitap.tap.logfile import Direction, TapLog

logger = logging.getLogger(__name__)


READ_CHUNK = 65536


def _log_text(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace").rstrip("\r\n")


def _read_lines(source: BinaryIO) -> Iterator[bytes]:
    """
    Yield lines from source, terminators included, until EOF.

    Streams backed by a file descriptor are read with os.read, so a relay
    thread blocked on a silent GUI holds no lock of the buffered stream
    object and cannot stall interpreter shutdown. In-memory streams fall
    back to readline().
    """
    try:
        fd = source.fileno()
    except (io.UnsupportedOperation, AttributeError):
        yield from iter(source.readline, b"")
        return

    pending = b""
    while True:
        chunk = os.read(fd, READ_CHUNK)
        if not chunk:
            break
        pending += chunk

        start = 0
        end = pending.find(b"\n")
        while end >= 0:
            yield pending[start:end + 1]
            start = end + 1
            end = pending.find(b"\n", start)
        pending = pending[start:]

    # Final line without a terminator
    if pending:
        yield pending


class UciTap:
    """
    Transparent UCI proxy with a tee into a TapLog.

    Attributes:
        engine_cmd: Engine command line
        tap_log: Shared log sink
        process: Engine subprocess (after start())
        exit_code: Engine exit code (after run())
    """

    def __init__(
        self,
        engine_cmd: Sequence[str],
        tap_log: TapLog,
        gui_in: Optional[BinaryIO] = None,
        gui_out: Optional[BinaryIO] = None,
        shutdown_grace: float = 5.0,
    ):
        """
        Initialize the proxy.

        Args:
            engine_cmd: Engine executable and arguments
            tap_log: Log sink shared by both relay threads
            gui_in: GUI-facing input (default: process stdin, binary)
            gui_out: GUI-facing output (default: process stdout, binary)
            shutdown_grace: Seconds the engine gets to exit before it is terminated
        """
        self.engine_cmd: List[str] = [str(part) for part in engine_cmd]
        self.tap_log = tap_log
        self.gui_in = gui_in if gui_in is not None else sys.stdin.buffer
        self.gui_out = gui_out if gui_out is not None else sys.stdout.buffer
        self.shutdown_grace = shutdown_grace

        self.process: Optional[subprocess.Popen] = None
        self.exit_code: Optional[int] = None

        # Shutdown signal shared by both relay threads
        self._shutdown = threading.Event()
        self._shutdown_lock = threading.Lock()
        self._closed_first: Optional[Direction] = None
        self._failure: Optional[IoFailure] = None

        self._threads: List[threading.Thread] = []

    def start(self):
        """
        Spawn the engine and start both relay threads.

        Raises:
            SpawnError: If the engine executable cannot be started
        """
        kwargs = {}
        if sys.platform == "win32":
            # No console window for the engine
            kwargs["creationflags"] = subprocess.CREATE_NO_WINDOW

        try:
            self.process = subprocess.Popen(
                self.engine_cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                **kwargs,
            )
        except OSError as e:
            raise SpawnError(f"Failed to spawn engine {self.engine_cmd[0]}: {e}") from e

        logger.info(f"Engine started: {' '.join(self.engine_cmd)} (pid={self.process.pid})")

        self._threads = [
            threading.Thread(
                target=self._relay,
                args=(Direction.GUI_TO_ENGINE, self.gui_in, self.process.stdin),
                name="ucitap-gui-to-engine",
                daemon=True,
            ),
            threading.Thread(
                target=self._relay,
                args=(Direction.ENGINE_TO_GUI, self.process.stdout, self.gui_out),
                name="ucitap-engine-to-gui",
                daemon=True,
            ),
        ]
        for thread in self._threads:
            thread.start()

    def run(self) -> int:
        """
        Relay until either side closes, then shut everything down.

        Returns:
            Engine exit code

        Raises:
            SpawnError: If the engine cannot be started
            IoFailure: If relaying or logging failed mid-session
        """
        if self.process is None:
            self.start()

        self._shutdown.wait()

        if self._failure is not None:
            logger.error(f"Relay failed, terminating engine: {self._failure}")
            self._terminate()
            raise self._failure

        if self._closed_first is Direction.GUI_TO_ENGINE:
            logger.info("GUI closed its input, closing engine stdin")
            self._close_engine_stdin()
        else:
            logger.info("Engine closed its output")

        self.exit_code = self._wait_for_engine()

        # Deliver whatever the engine printed before exiting
        engine_thread = self._threads[1]
        engine_thread.join(timeout=self.shutdown_grace)

        if self._failure is not None:
            # The session was already over; the engine's exit code still stands
            logger.warning(f"Relay error during shutdown: {self._failure}")

        logger.info(f"Engine exited with code {self.exit_code}")
        return self.exit_code

    def _relay(self, direction: Direction, source: BinaryIO, sink: BinaryIO):
        """Copy lines from source to sink, logging each one, until EOF or failure."""
        try:
            for raw in _read_lines(source):
                try:
                    sink.write(raw)
                    sink.flush()
                except (OSError, ValueError) as e:
                    raise IoFailure(f"{direction.name} write failed: {e}") from e

                self.tap_log.append(direction, _log_text(raw))

        except IoFailure as e:
            self._fail(e)
        except (OSError, ValueError) as e:
            # Read side failed
            self._fail(IoFailure(f"{direction.name} read failed: {e}"))
        finally:
            logger.debug(f"{direction.name} relay finished")
            self._signal_shutdown(direction)

    def _fail(self, failure: IoFailure):
        with self._shutdown_lock:
            if self._failure is None:
                self._failure = failure

    def _signal_shutdown(self, direction: Direction):
        with self._shutdown_lock:
            if self._closed_first is None:
                self._closed_first = direction
            self._shutdown.set()

    def _close_engine_stdin(self):
        try:
            self.process.stdin.close()
        except OSError as e:
            logger.debug(f"Closing engine stdin: {e}")

    def _wait_for_engine(self) -> int:
        try:
            return self.process.wait(timeout=self.shutdown_grace)
        except subprocess.TimeoutExpired:
            logger.warning(f"Engine still running after {self.shutdown_grace}s, terminating")
            return self._terminate()

    def _terminate(self) -> int:
        if self.process.poll() is None:
            self.process.terminate()
            try:
                self.process.wait(timeout=self.shutdown_grace)
            except subprocess.TimeoutExpired:
                logger.warning("Engine ignored terminate, killing")
                self.process.kill()
        return self.process.wait()
