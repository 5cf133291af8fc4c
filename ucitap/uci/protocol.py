"""
UCI Protocol Line Parser

Turns one raw protocol line (either direction) into a tagged event.

Parsing is best-effort pattern matching, not a strict grammar: engines and
GUIs ship plenty of non-standard extensions, so anything that does not fit
becomes Unrecognized(raw) instead of raising.

Event Kinds:
    GUI → Engine:   SetPosition, Go, NewGame, Command (uci, isready, setoption, debug, ...)
    Engine → GUI:   Identify, UciOk, Info, BestMove, Command (readyok, option, copyprotection, ...)
    Either:         Unrecognized

Examples:
    position startpos moves e2e4 e7e5   → SetPosition(fen=None, moves=('e2e4', 'e7e5'))
    go wtime 300000 btime 300000        → Go(params={'wtime': 300000, 'btime': 300000})
    info depth 5 score cp 25 pv e2e4    → Info(fields={'depth': 5, 'score_cp': 25, 'pv': ('e2e4',)})
    bestmove e2e4 ponder e7e5           → BestMove(move='e2e4', ponder='e7e5')
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

# Commands that are recognized but carry nothing replay needs; their
# arguments, if any, are kept as tokens
SIMPLE_COMMANDS = {"uci", "isready", "readyok", "stop", "quit", "ponderhit"}
ARGUMENT_COMMANDS = {"setoption", "debug", "register", "option", "copyprotection", "registration"}

# info keys followed by a single integer
INFO_INT_KEYS = {
    "depth",
    "seldepth",
    "multipv",
    "nodes",
    "nps",
    "time",
    "hashfull",
    "tbhits",
    "sbhits",
    "cpuload",
    "currmovenumber",
}

# info keys followed by a list of moves (pv always runs to end of line)
INFO_MOVE_LIST_KEYS = {"refutation", "currline"}

INFO_KEYWORDS = INFO_INT_KEYS | INFO_MOVE_LIST_KEYS | {"score", "currmove", "pv", "string", "wdl"}

GO_INT_KEYS = {"wtime", "btime", "winc", "binc", "movestogo", "depth", "nodes", "mate", "movetime"}
GO_FLAGS = {"infinite", "ponder"}
GO_KEYWORDS = GO_INT_KEYS | GO_FLAGS | {"searchmoves"}


class _Malformed(ValueError):
    """Internal: the line starts with a known keyword but its arguments do not fit."""


@dataclass(frozen=True)
class SetPosition:
    """position [startpos | fen <FEN>] [moves <m1> ...]; fen is None for startpos."""

    fen: Optional[str]
    moves: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Go:
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Info:
    """
    Engine search information.

    fields holds the recognized keys: depth, seldepth, multipv, score_cp,
    score_mate, bound ('lowerbound'/'upperbound'), nodes, nps, time,
    hashfull, tbhits, currmove, currmovenumber, wdl, pv, string, ...
    extra holds unknown keys and the token that followed them, if any.
    """

    fields: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Optional[str]] = field(default_factory=dict)

    @property
    def pv(self) -> Optional[Tuple[str, ...]]:
        return self.fields.get("pv")


@dataclass(frozen=True)
class BestMove:
    move: str
    ponder: Optional[str] = None


@dataclass(frozen=True)
class NewGame:
    pass


@dataclass(frozen=True)
class UciOk:
    pass


@dataclass(frozen=True)
class Identify:
    """id name <text> / id author <text>."""

    key: str
    value: str


@dataclass(frozen=True)
class Command:
    """
    Recognized command that replay only passes through.

    name is the lowercased command word (uci, isready, setoption, option,
    debug, ...) and args the remaining tokens, e.g. setoption name Hash
    value 256 → Command("setoption", ("name", "Hash", "value", "256")).
    """

    name: str
    args: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Unrecognized:
    raw: str


ProtocolEvent = Union[
    SetPosition, Go, Info, BestMove, NewGame, UciOk, Identify, Command, Unrecognized
]


def _parse_int(tokens: List[str], index: int) -> int:
    if index >= len(tokens):
        raise _Malformed(f"missing value after {tokens[index - 1]!r}")
    try:
        return int(tokens[index])
    except ValueError:
        raise _Malformed(f"expected integer, got {tokens[index]!r}") from None


def _parse_position(tokens: List[str], raw: str) -> SetPosition:
    if len(tokens) < 2:
        raise _Malformed("position without arguments")

    if "moves" in tokens:
        moves_index = tokens.index("moves")
        moves = tuple(tokens[moves_index + 1:])
    else:
        moves_index = len(tokens)
        moves = ()

    if tokens[1] == "startpos":
        if moves_index != 2:
            raise _Malformed("unexpected tokens after startpos")
        return SetPosition(fen=None, moves=moves)

    if tokens[1] == "fen":
        fen_fields = tokens[2:moves_index]
        if not 1 <= len(fen_fields) <= 6:
            raise _Malformed(f"FEN must have 1 to 6 fields, got {len(fen_fields)}")
        return SetPosition(fen=" ".join(fen_fields), moves=moves)

    raise _Malformed(f"unknown position type {tokens[1]!r}")


def _parse_go(tokens: List[str], raw: str) -> Go:
    params: Dict[str, Any] = {}

    i = 1
    while i < len(tokens):
        token = tokens[i]
        if token in GO_INT_KEYS:
            params[token] = _parse_int(tokens, i + 1)
            i += 2
        elif token in GO_FLAGS:
            params[token] = True
            i += 1
        elif token == "searchmoves":
            i += 1
            moves = []
            while i < len(tokens) and tokens[i] not in GO_KEYWORDS:
                moves.append(tokens[i])
                i += 1
            params["searchmoves"] = tuple(moves)
        else:
            # Unknown go parameter - ignored, as engines do
            i += 1

    return Go(params=params)


def _parse_info(tokens: List[str], raw: str) -> Info:
    fields: Dict[str, Any] = {}
    extra: Dict[str, Optional[str]] = {}

    i = 1
    while i < len(tokens):
        token = tokens[i]

        if token in INFO_INT_KEYS:
            fields[token] = _parse_int(tokens, i + 1)
            i += 2

        elif token == "score":
            if i + 1 >= len(tokens) or tokens[i + 1] not in ("cp", "mate"):
                raise _Malformed("score must be followed by cp or mate")
            value = _parse_int(tokens, i + 2)
            if tokens[i + 1] == "cp":
                fields["score_cp"] = value
                fields.pop("score_mate", None)
            else:
                fields["score_mate"] = value
                fields.pop("score_cp", None)
            i += 3
            if i < len(tokens) and tokens[i] in ("lowerbound", "upperbound"):
                fields["bound"] = tokens[i]
                i += 1

        elif token == "wdl":
            fields["wdl"] = tuple(_parse_int(tokens, i + k) for k in (1, 2, 3))
            i += 4

        elif token == "currmove":
            if i + 1 >= len(tokens):
                raise _Malformed("currmove without a move")
            fields["currmove"] = tokens[i + 1]
            i += 2

        elif token == "pv":
            # pv is always the final field
            fields["pv"] = tuple(tokens[i + 1:])
            break

        elif token == "string":
            fields["string"] = " ".join(tokens[i + 1:])
            break

        elif token in INFO_MOVE_LIST_KEYS:
            i += 1
            moves = []
            while i < len(tokens) and tokens[i] not in INFO_KEYWORDS:
                moves.append(tokens[i])
                i += 1
            fields[token] = tuple(moves)

        else:
            if i + 1 < len(tokens) and tokens[i + 1] not in INFO_KEYWORDS:
                extra[token] = tokens[i + 1]
                i += 2
            else:
                extra[token] = None
                i += 1

    return Info(fields=fields, extra=extra)


def _parse_bestmove(tokens: List[str], raw: str) -> BestMove:
    if len(tokens) < 2:
        raise _Malformed("bestmove without a move")

    ponder = None
    if len(tokens) >= 4 and tokens[2] == "ponder":
        ponder = tokens[3]
    elif len(tokens) > 2:
        raise _Malformed("unexpected tokens after bestmove")

    return BestMove(move=tokens[1], ponder=ponder)


def _parse_id(tokens: List[str], raw: str) -> Identify:
    parts = raw.strip().split(None, 2)
    if len(parts) < 3 or parts[1] not in ("name", "author"):
        raise _Malformed("id must be followed by name or author and a value")
    return Identify(key=parts[1], value=parts[2].strip())


_HANDLERS = {
    "position": _parse_position,
    "go": _parse_go,
    "info": _parse_info,
    "bestmove": _parse_bestmove,
    "id": _parse_id,
}


def parse(raw_line: str) -> ProtocolEvent:
    """
    Parse one protocol line.

    Never raises: unknown commands and malformed argument lists are
    returned as Unrecognized(raw_line).

    Args:
        raw_line: Line text, with or without the trailing newline

    Returns:
        A ProtocolEvent
    """
    raw = raw_line.rstrip("\r\n")
    tokens = raw.split()

    if not tokens:
        return Unrecognized(raw)

    cmd = tokens[0].lower()

    if cmd == "ucinewgame":
        return NewGame()
    if cmd == "uciok":
        return UciOk()
    if cmd in SIMPLE_COMMANDS or cmd in ARGUMENT_COMMANDS:
        return Command(cmd, tuple(tokens[1:]))

    handler = _HANDLERS.get(cmd)
    if handler is None:
        return Unrecognized(raw)

    try:
        return handler(tokens, raw)
    except _Malformed:
        return Unrecognized(raw)
