"""
UCI Protocol Parsing

The Universal Chess Interface is the line-based text protocol between chess
GUIs and engines. ucitap never speaks it itself; it only reads what went past.

Protocol Flow:
    GUI → "uci"
    Engine → "id name Stockfish 16"
    Engine → "uciok"
    GUI → "isready"
    Engine → "readyok"
    GUI → "position startpos moves e2e4"
    GUI → "go wtime 300000 btime 300000"
    Engine → "info depth 5 score cp 25 nodes 12345 pv e7e5 g1f3"
    Engine → "bestmove e7e5"

Reference:
    UCI Protocol: https://www.chessprogramming.org/UCI
"""

from ucitap.uci.protocol import (
    BestMove,
    Command,
    Go,
    Identify,
    Info,
    NewGame,
    ProtocolEvent,
    SetPosition,
    UciOk,
    Unrecognized,
    parse,
)

__all__ = [
    'BestMove',
    'Command',
    'Go',
    'Identify',
    'Info',
    'NewGame',
    'ProtocolEvent',
    'SetPosition',
    'UciOk',
    'Unrecognized',
    'parse',
]
