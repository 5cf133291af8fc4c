"""
Board Model

Immutable positions and the legality rules needed to print a move.

Key Components:
    - Position: one ply of a game, built from FEN or by applying a move
    - Move: from/to/promotion plus a castling/en-passant classification
    - legal_moves / apply_move / is_square_attacked: the move contract

Data Flow:
    FEN text → Position.from_fen() → legal_moves() → apply_move() → Position
"""

from ucitap.board.position import (
    STARTING_FEN,
    FenParseError,
    Move,
    MoveKind,
    Position,
    apply_move,
    is_check,
    is_checkmate,
    is_square_attacked,
    legal_moves,
)

__all__ = [
    'STARTING_FEN',
    'FenParseError',
    'Move',
    'MoveKind',
    'Position',
    'apply_move',
    'is_check',
    'is_checkmate',
    'is_square_attacked',
    'legal_moves',
]
