"""
Square and Piece Naming

Thin helpers over python-chess naming for the letters used by SAN and UCI.
Square names and coordinates come straight from python-chess; this module
only adds the SAN piece-letter conventions and the promotion suffix lookup.

Square Indexing:
    0 = a1, 7 = h1, 56 = a8, 63 = h8
    file = chess.square_file(square) (0 = a-file)
    rank = chess.square_rank(square) (0 = rank 1)
"""

import chess
from typing import Optional, Tuple

FILE_NAMES = chess.FILE_NAMES
RANK_NAMES = chess.RANK_NAMES

# SAN piece letters are uppercase; pawns have none
LETTER_TO_PIECE = {chess.piece_symbol(piece).upper(): piece for piece in chess.PIECE_TYPES if piece != chess.PAWN}

# UCI promotion suffixes are lowercase
PROMOTION_SUFFIXES = {
    chess.piece_symbol(piece): piece for piece in (chess.QUEEN, chess.ROOK, chess.BISHOP, chess.KNIGHT)
}

square_name = chess.square_name

# Raises ValueError for anything that is not a square name
parse_square = chess.parse_square


def square_to_coordinates(square: int) -> Tuple[int, int]:
    """
    Convert a square index to (file, rank) coordinates.

    Args:
        square: Square index (0-63) where 0=A1, 63=H8

    Returns:
        Tuple of (file, rank), both 0-7
    """
    return chess.square_file(square), chess.square_rank(square)


def coordinates_to_square(file: int, rank: int) -> int:
    """
    Convert (file, rank) coordinates to a square index.

    Raises:
        ValueError: If either coordinate is off the board
    """
    if not (0 <= file < 8 and 0 <= rank < 8):
        raise ValueError(f"Coordinates off the board: ({file}, {rank})")
    return chess.square(file, rank)


def piece_letter(piece_type: int) -> str:
    """SAN letter for a piece type, empty for pawns."""
    if piece_type == chess.PAWN:
        return ""
    return chess.piece_symbol(piece_type).upper()


def promotion_suffix(piece_type: Optional[int]) -> str:
    """UCI promotion suffix ('q', 'n', ...) or empty string."""
    if piece_type is None:
        return ""
    return chess.piece_symbol(piece_type)
