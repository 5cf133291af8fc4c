"""
Tap Log Replayer

Replays a tap log in a single forward pass and turns the engine's search
output into OutputRecords.

State:
    The only thing carried from line to line is a ReplayState value: the
    current position (what the next search is about), the engine name and
    the statistics of the current search. step() takes a state and one log
    line and returns the next state plus any records; nothing is global, so
    replaying the same lines always yields the same records. The counters in
    LogReplayer.stats are the one side effect: step() adds to them, and
    replay() starts them from zero.

Per Event:
    SetPosition (GUI)     → new current position (FEN/startpos + moves)
    Go (GUI)              → statistics cleared for the new search
    NewGame / uci (GUI)   → back to the start position, statistics cleared
    Identify name (engine)→ engine display name
    Info (engine)         → statistics merged; a record when it carries a pv
                            (EmitPolicy.EVERY_PV)
    BestMove (engine)     → one record per search (EmitPolicy.BESTMOVE),
                            statistics cleared
    anything else         → ignored

Failures are local to one line: an unparseable FEN or an illegal move keeps
the last good position, and a pv that does not fit the position gives a
record with pv=None. Both are counted as desyncs.
"""

import enum
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from ucitap.board.position import FenParseError, Position, apply_move
from ucitap.errors import PositionDesync
from ucitap.notation.san import convert_pv, find_legal_move
from ucitap.tap.logfile import Direction, LogLine, read_log
from ucitap.uci.protocol import (
    BestMove,
    Command,
    Go,
    Identify,
    Info,
    NewGame,
    SetPosition,
    Unrecognized,
    parse,
)

logger = logging.getLogger(__name__)

# Directions each event kind is accepted from (None = unprefixed legacy log line)
GUI_SIDE = (Direction.GUI_TO_ENGINE, None)
ENGINE_SIDE = (Direction.ENGINE_TO_GUI, None)


class EmitPolicy(enum.Enum):
    """Which info lines become records."""

    EVERY_PV = "every-pv"
    """One record per info line that carries a pv"""

    BESTMOVE = "bestmove"
    """One record per search, at bestmove, with the latest statistics"""


@dataclass
class ReplayConfig:
    """Configuration for log replay."""

    emit: EmitPolicy = EmitPolicy.EVERY_PV
    """Record emission policy"""

    short_fen: bool = False
    """Emit only the first four FEN fields"""

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not isinstance(self.emit, EmitPolicy):
            try:
                self.emit = EmitPolicy(self.emit)
            except ValueError:
                choices = ", ".join(policy.value for policy in EmitPolicy)
                raise ValueError(f"emit must be one of {choices}, got {self.emit!r}") from None


@dataclass(frozen=True)
class OutputRecord:
    """One analysed position, as written to the JSON output."""

    engine: str
    fen: str
    ply: int
    score: Optional[int]
    mate: Optional[int]
    nodes: int
    nps: int
    time: int
    pv: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "engine": self.engine,
            "fen": self.fen,
            "ply": self.ply,
            "score": self.score,
            "mate": self.mate,
            "nodes": self.nodes,
            "nps": self.nps,
            "time": self.time,
            "pv": self.pv,
        }


@dataclass(frozen=True)
class ReplayState:
    """Everything replay carries from one log line to the next."""

    position: Position
    engine: str = ""
    positioned: bool = False
    search: Dict[str, Any] = field(default_factory=dict)
    # Last position command that was fully applied, for incremental replay
    last_command: Optional[Tuple[Optional[str], Tuple[str, ...]]] = None


@dataclass
class ReplayStats:
    """Counters reported at the end of a replay."""

    lines: int = 0
    records: int = 0
    unrecognized: int = 0
    desyncs: int = 0
    unprefixed: int = 0

    @property
    def skipped(self) -> int:
        return self.unrecognized + self.desyncs


def _merge_search(search: Dict[str, Any], fields: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(search)
    # Score and mate are mutually exclusive
    if "score_cp" in fields:
        merged.pop("score_mate", None)
    if "score_mate" in fields:
        merged.pop("score_cp", None)
    merged.pop("bound", None)
    merged.update(fields)
    return merged


class LogReplayer:
    """
    Replay tap logs into OutputRecords.

    Attributes:
        config: Replay configuration
        stats: Counters for the most recent replay() call, updated by step()
    """

    def __init__(self, config: Optional[ReplayConfig] = None):
        self.config = config or ReplayConfig()
        self.stats = ReplayStats()

    def initial_state(self) -> ReplayState:
        return ReplayState(position=Position.initial())

    def replay(self, lines: Iterable[LogLine]) -> Iterator[OutputRecord]:
        """
        Replay log lines in order.

        Args:
            lines: LogLines, e.g. from read_log()

        Yields:
            OutputRecords in log order
        """
        self.stats = ReplayStats()
        state = self.initial_state()

        for log_line in lines:
            state, records = self.step(state, log_line)
            yield from records

        if self.stats.skipped:
            logger.info(
                f"Replay skipped {self.stats.unrecognized} unrecognized line(s), "
                f"{self.stats.desyncs} desync(s)"
            )

    def replay_file(self, path: Union[str, Path]) -> List[OutputRecord]:
        """Replay a log file and return all records."""
        return list(self.replay(read_log(path)))

    def step(self, state: ReplayState, log_line: LogLine) -> Tuple[ReplayState, List[OutputRecord]]:
        """
        Advance the replay by one log line.

        The returned state and records depend only on the arguments; the
        line is also counted into self.stats.

        Args:
            state: State before the line
            log_line: The line to process

        Returns:
            Tuple of (state after the line, records emitted by it)
        """
        self.stats.lines += 1
        if log_line.direction is None:
            self.stats.unprefixed += 1

        event = parse(log_line.text)
        direction = log_line.direction

        if isinstance(event, Unrecognized):
            if event.raw.strip():
                self.stats.unrecognized += 1
                logger.debug(f"Unrecognized line: {event.raw}")
            return state, []

        if direction in GUI_SIDE:
            if isinstance(event, SetPosition):
                return self._set_position(state, event), []
            if isinstance(event, Go):
                return replace(state, search={}), []
            if isinstance(event, NewGame) or (isinstance(event, Command) and event.name == "uci"):
                return replace(
                    state,
                    position=Position.initial(),
                    positioned=False,
                    search={},
                    last_command=None,
                ), []

        if direction in ENGINE_SIDE:
            if isinstance(event, Identify):
                if event.key == "name":
                    return replace(state, engine=event.value), []
                return state, []
            if isinstance(event, Info):
                return self._info(state, event)
            if isinstance(event, BestMove):
                return self._bestmove(state)

        return state, []

    def _set_position(self, state: ReplayState, event: SetPosition) -> ReplayState:
        command = (event.fen, event.moves)

        # Incremental case: same start, previous move list is a prefix
        last = state.last_command
        if last is not None and last[0] == event.fen and event.moves[:len(last[1])] == last[1]:
            position = state.position
            pending = event.moves[len(last[1]):]
        else:
            if event.fen is None:
                position = Position.initial()
            else:
                try:
                    position = Position.from_fen(event.fen)
                except FenParseError as e:
                    logger.warning(f"Position desync: {e}")
                    self.stats.desyncs += 1
                    return replace(state, search={}, last_command=None)
            pending = event.moves

        for text in pending:
            move = find_legal_move(position, text)
            if move is None:
                logger.warning(f"Position desync: move {text!r} is not legal in {position.fen()}")
                self.stats.desyncs += 1
                return replace(state, position=position, positioned=True, search={}, last_command=None)
            position = apply_move(position, move)

        return replace(state, position=position, positioned=True, search={}, last_command=command)

    def _info(self, state: ReplayState, event: Info) -> Tuple[ReplayState, List[OutputRecord]]:
        search = _merge_search(state.search, event.fields)
        state = replace(state, search=search)

        if self.config.emit is EmitPolicy.EVERY_PV and event.pv:
            return state, [self._record(state)]
        return state, []

    def _bestmove(self, state: ReplayState) -> Tuple[ReplayState, List[OutputRecord]]:
        records = []
        if self.config.emit is EmitPolicy.BESTMOVE and state.positioned:
            records.append(self._record(state))
        return replace(state, search={}), records

    def _record(self, state: ReplayState) -> OutputRecord:
        search = state.search
        position = state.position

        pv = None
        pv_moves = search.get("pv")
        if pv_moves:
            try:
                pv = " ".join(convert_pv(position, pv_moves))
            except PositionDesync as e:
                logger.warning(f"PV desync: {e}")
                self.stats.desyncs += 1

        self.stats.records += 1
        return OutputRecord(
            engine=state.engine,
            fen=position.epd() if self.config.short_fen else position.fen(),
            ply=position.ply,
            score=search.get("score_cp"),
            mate=search.get("score_mate"),
            nodes=search.get("nodes", 0),
            nps=search.get("nps", 0),
            time=search.get("time", 0),
            pv=pv,
        )
