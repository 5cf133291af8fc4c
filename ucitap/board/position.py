"""
Immutable Position Model

A Position is one ply of a game: piece placement, side to move, castling
rights, en-passant target and the two move clocks. Positions are never
mutated. Applying a move returns a new Position.

python-chess does the bitboard work underneath (pseudo-legal generation,
attack maps, move application); this module adds the immutable value
semantics and the legality filter used by the notation converter and the
log replayer.

Legality:
    legal_moves() takes every pseudo-legal move, plays it on a scratch
    board and keeps it only if the mover's king is not attacked afterwards.
    Castling additionally requires that the king's start and transit
    squares are not attacked.

Lifecycle:
    Position.from_fen(...) / Position.initial()
        -> legal_moves(position)
        -> apply_move(position, move) -> new Position
"""

import enum
from dataclasses import dataclass, field
from typing import FrozenSet, Optional

import chess

from ucitap.board.representation import (
    promotion_suffix,
    square_name,
    square_to_coordinates,
)

STARTING_FEN = chess.STARTING_FEN


class FenParseError(ValueError):
    """Raised when a FEN string cannot be turned into a Position."""


class MoveKind(enum.Enum):
    """Special-move classification, derived when the move is generated."""

    NORMAL = "normal"
    CASTLING = "castling"
    EN_PASSANT = "en_passant"


@dataclass(frozen=True)
class Move:
    """
    A move authorized by a specific Position.

    Equality and hashing use from/to/promotion only, so a Move built from
    coordinate text compares equal to the generated legal Move it names.
    """

    from_square: int
    to_square: int
    promotion: Optional[int] = None
    kind: MoveKind = field(default=MoveKind.NORMAL, compare=False)

    @property
    def is_castling(self) -> bool:
        return self.kind is MoveKind.CASTLING

    @property
    def is_en_passant(self) -> bool:
        return self.kind is MoveKind.EN_PASSANT

    def uci(self) -> str:
        """Coordinate notation, e.g. 'e2e4' or 'e7e8q'."""
        return square_name(self.from_square) + square_name(self.to_square) + promotion_suffix(self.promotion)

    def __str__(self) -> str:
        return self.uci()


class Position:
    """
    Immutable chess position.

    Attributes:
        turn: Side to move (chess.WHITE or chess.BLACK)
        ep_square: En-passant target square or None
        halfmove_clock: Plies since last capture or pawn move
        fullmove_number: Starts at 1, incremented after Black moves
    """

    __slots__ = ("_board", "_legal")

    def __init__(self, board: chess.Board):
        # Private: use from_fen() / initial() / apply_move()
        self._board = board
        # Filled on first legal_moves() call
        self._legal: Optional[FrozenSet[Move]] = None

    @classmethod
    def from_fen(cls, fen: str) -> "Position":
        """
        Parse a FEN string.

        Missing trailing fields (turn, castling, en passant, clocks) take
        their usual defaults, as lax GUIs sometimes send them that way.

        Raises:
            FenParseError: If the FEN is malformed or either side does not
                have exactly one king
        """
        try:
            board = chess.Board(fen.strip())
        except ValueError as e:
            raise FenParseError(f"Invalid FEN {fen!r}: {e}") from e

        for color in chess.COLORS:
            kings = len(board.pieces(chess.KING, color))
            if kings != 1:
                side = chess.COLOR_NAMES[color]
                raise FenParseError(f"Invalid FEN {fen!r}: {side} has {kings} kings")

        return cls(board)

    @classmethod
    def initial(cls) -> "Position":
        """The standard starting position."""
        return cls(chess.Board())

    @property
    def turn(self) -> bool:
        return self._board.turn

    @property
    def ep_square(self) -> Optional[int]:
        return self._board.ep_square

    @property
    def halfmove_clock(self) -> int:
        return self._board.halfmove_clock

    @property
    def fullmove_number(self) -> int:
        return self._board.fullmove_number

    @property
    def ply(self) -> int:
        """Plies played since the start of the game, derived from the fullmove number."""
        return 2 * (self.fullmove_number - 1) + (0 if self.turn == chess.WHITE else 1)

    def has_kingside_castling_rights(self, color: bool) -> bool:
        return self._board.has_kingside_castling_rights(color)

    def has_queenside_castling_rights(self, color: bool) -> bool:
        return self._board.has_queenside_castling_rights(color)

    def piece_at(self, square: int) -> Optional[chess.Piece]:
        return self._board.piece_at(square)

    def king(self, color: bool) -> int:
        """Square of the king of the given color."""
        return self._board.king(color)

    def fen(self) -> str:
        """Full six-field FEN. The en-passant field is only set when an en-passant capture is legal."""
        return self._board.fen(en_passant="legal")

    def epd(self) -> str:
        """The first four FEN fields (placement, turn, castling, en passant)."""
        return " ".join(self.fen().split()[:4])

    def to_board(self) -> chess.Board:
        """A mutable python-chess copy of this position."""
        return self._board.copy(stack=False)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Position):
            return NotImplemented
        return self.fen() == other.fen()

    def __hash__(self) -> int:
        return hash(self.fen())

    def __repr__(self) -> str:
        return f"Position({self.fen()!r})"


def is_square_attacked(position: Position, square: int, by_color: bool) -> bool:
    """True if any piece of by_color attacks square."""
    return position._board.is_attacked_by(by_color, square)


def is_check(position: Position) -> bool:
    """True if the side to move is in check."""
    king = position.king(position.turn)
    return is_square_attacked(position, king, not position.turn)


def _classify(board: chess.Board, move: chess.Move) -> MoveKind:
    if board.is_castling(move):
        return MoveKind.CASTLING
    if board.is_en_passant(move):
        return MoveKind.EN_PASSANT
    return MoveKind.NORMAL


def _castling_path_safe(board: chess.Board, move: chess.Move) -> bool:
    """King start and transit squares must not be attacked."""
    enemy = not board.turn
    from_file, rank = square_to_coordinates(move.from_square)
    to_file, _ = square_to_coordinates(move.to_square)
    step = 1 if to_file > from_file else -1
    for file in range(from_file, to_file, step):
        if board.is_attacked_by(enemy, chess.square(file, rank)):
            return False
    return True


def _generate_legal_moves(board: chess.Board) -> FrozenSet[Move]:
    mover = board.turn
    scratch = board.copy(stack=False)
    moves = set()

    for candidate in board.generate_pseudo_legal_moves():
        kind = _classify(board, candidate)
        if kind is MoveKind.CASTLING and not _castling_path_safe(board, candidate):
            continue

        scratch.push(candidate)
        king_attacked = scratch.is_attacked_by(not mover, scratch.king(mover))
        scratch.pop()

        if not king_attacked:
            moves.add(Move(candidate.from_square, candidate.to_square, candidate.promotion, kind))

    return frozenset(moves)


def legal_moves(position: Position) -> FrozenSet[Move]:
    """
    All legal moves of a position.

    Every pseudo-legal move is simulated on a scratch board and kept only if
    it does not leave the mover's king attacked. Positions are immutable, so
    the result is computed once and kept on the Position.

    Args:
        position: Position to generate moves for

    Returns:
        frozenset of Move
    """
    if position._legal is None:
        position._legal = _generate_legal_moves(position._board)
    return position._legal


def apply_move(position: Position, move: Move) -> Position:
    """
    Play a move and return the resulting Position.

    The move must come from legal_moves(position); it is not re-validated.
    """
    board = position._board.copy(stack=False)
    board.push(chess.Move(move.from_square, move.to_square, promotion=move.promotion))
    return Position(board)


def is_checkmate(position: Position) -> bool:
    """Side to move is in check and has no legal move."""
    return is_check(position) and not legal_moves(position)
