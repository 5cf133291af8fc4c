"""
Error types shared by the proxy and the converter.

Fatal for the live proxy:
    ConfigError  - config file missing or invalid (nothing is spawned)
    SpawnError   - engine executable missing or not runnable
    IoFailure    - broken pipe or log write failure during relay

Non-fatal for replay:
    PositionDesync - a coordinate move is not legal in the tracked position

Unparseable protocol lines are not errors at all: the parser turns them into
Unrecognized events.
"""


class UciTapError(Exception):
    """Base class for all ucitap errors."""


class ConfigError(UciTapError):
    """Missing or invalid configuration."""


class SpawnError(UciTapError):
    """The engine process could not be started."""


class IoFailure(UciTapError):
    """A relayed stream or the log file failed mid-session."""


class PositionDesync(UciTapError):
    """A coordinate move does not match any legal move of the position."""

    def __init__(self, move_text: str, fen: str):
        super().__init__(f"Move {move_text!r} is not legal in position {fen}")
        self.move_text = move_text
        self.fen = fen
