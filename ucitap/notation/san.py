"""
Standard Algebraic Notation (SAN)

Converts engine coordinate moves (e2e4, e7e8q) into SAN (e4, e8=Q) against a
Position, and resolves SAN back into a legal Move.

SAN Rules (applied in order):
    1. Castling          → O-O / O-O-O
    2. Piece letter      → N, B, R, Q, K (nothing for pawns)
    3. Disambiguation    → source file, else source rank, else both, only when
                           another piece of the same kind can legally reach
                           the same square. Pawn captures always carry the
                           source file.
    4. Capture marker    → x (including en passant)
    5. Destination       → e.g. d5
    6. Promotion         → =Q, =R, =B, =N
    7. Check suffix      → + or # (best effort)
"""

import re
from typing import Iterable, List, Optional, Tuple

import chess

from ucitap.board.position import (
    Move,
    Position,
    apply_move,
    is_check,
    legal_moves,
)
from ucitap.board.representation import (
    FILE_NAMES,
    LETTER_TO_PIECE,
    PROMOTION_SUFFIXES,
    RANK_NAMES,
    parse_square,
    piece_letter,
    square_name,
    square_to_coordinates,
)
from ucitap.errors import PositionDesync

COORDINATE_RE = re.compile(r"^([a-h][1-8])([a-h][1-8])([qrbn])?$")

SAN_RE = re.compile(
    r"^(?P<piece>[NBRQK])?(?P<from_file>[a-h])?(?P<from_rank>[1-8])?"
    r"(?P<capture>x)?(?P<to>[a-h][1-8])(?:=?(?P<promotion>[NBRQ]))?$"
)


def parse_coordinate_move(text: str) -> Tuple[int, int, Optional[int]]:
    """
    Split a coordinate move into its squares and promotion piece.

    Args:
        text: Move such as 'g1f3' or 'a7a8q'

    Returns:
        Tuple of (from_square, to_square, promotion piece type or None)

    Raises:
        ValueError: If text is not a coordinate move (including the null move '0000')
    """
    match = COORDINATE_RE.match(text.strip())
    if not match:
        raise ValueError(f"Invalid coordinate move: {text!r}")

    from_text, to_text, promo_text = match.groups()
    promotion = PROMOTION_SUFFIXES[promo_text] if promo_text else None
    return parse_square(from_text), parse_square(to_text), promotion


def find_legal_move(position: Position, text: str) -> Optional[Move]:
    """
    Match a coordinate move against the legal moves of a position.

    Returns:
        The legal Move (with its castling/en-passant classification), or
        None if the text is malformed or names no legal move
    """
    try:
        wanted = Move(*parse_coordinate_move(text))
    except ValueError:
        return None

    for move in legal_moves(position):
        if move == wanted:
            return move
    return None


def _disambiguator(position: Position, move: Move, piece_type: int) -> str:
    """Minimal source-square prefix that makes a piece move unique."""
    rivals = []
    for other in legal_moves(position):
        if other.to_square != move.to_square or other.from_square == move.from_square:
            continue
        piece = position.piece_at(other.from_square)
        if piece is not None and piece.piece_type == piece_type:
            rivals.append(other)

    if not rivals:
        return ""

    file, rank = square_to_coordinates(move.from_square)
    same_file = any(square_to_coordinates(r.from_square)[0] == file for r in rivals)
    same_rank = any(square_to_coordinates(r.from_square)[1] == rank for r in rivals)

    if not same_file:
        return FILE_NAMES[file]
    if not same_rank:
        return RANK_NAMES[rank]
    return square_name(move.from_square)


def _check_suffix(after: Position) -> str:
    if not is_check(after):
        return ""
    return "#" if not legal_moves(after) else "+"


def to_algebraic(
    position: Position,
    move: Move,
    annotate_checks: bool = True,
    after: Optional[Position] = None,
) -> str:
    """
    Render a legal move in SAN.

    Args:
        position: Position the move is played from
        move: A move from legal_moves(position)
        annotate_checks: Append +/# when the move gives check or mate
        after: apply_move(position, move), if the caller already has it

    Returns:
        SAN text, e.g. 'Nbd7', 'exd5', 'O-O', 'e8=Q+'

    Raises:
        ValueError: If there is no piece on the move's source square
    """
    if move.is_castling:
        from_file, _ = square_to_coordinates(move.from_square)
        to_file, _ = square_to_coordinates(move.to_square)
        san = "O-O" if to_file > from_file else "O-O-O"
    else:
        piece = position.piece_at(move.from_square)
        if piece is None:
            raise ValueError(f"No piece on {square_name(move.from_square)} in {position.fen()}")

        is_capture = move.is_en_passant or position.piece_at(move.to_square) is not None
        parts = [piece_letter(piece.piece_type)]

        if piece.piece_type == chess.PAWN:
            if is_capture:
                parts.append(FILE_NAMES[square_to_coordinates(move.from_square)[0]])
        else:
            parts.append(_disambiguator(position, move, piece.piece_type))

        if is_capture:
            parts.append("x")
        parts.append(square_name(move.to_square))

        if move.promotion is not None:
            parts.append("=" + piece_letter(move.promotion))

        san = "".join(parts)

    if annotate_checks:
        san += _check_suffix(after if after is not None else apply_move(position, move))
    return san


def convert_pv(position: Position, coordinate_moves: Iterable[str]) -> List[str]:
    """
    Convert a principal variation from coordinate moves to SAN.

    Each move is matched against the legal moves of the running position,
    rendered with the position before the move, then applied. Every
    position along the line has its legal moves generated at most once.

    Args:
        position: Position the variation starts from
        coordinate_moves: Moves in order, e.g. ['g1f3', 'b8c6']

    Returns:
        List of SAN moves, same length as the input

    Raises:
        PositionDesync: If any move is not legal where it is played. The whole
            variation is rejected; no partial result is returned.
    """
    san_moves = []
    current = position

    for text in coordinate_moves:
        move = find_legal_move(current, text)
        if move is None:
            raise PositionDesync(text, current.fen())

        after = apply_move(current, move)
        san_moves.append(to_algebraic(current, move, after=after))
        current = after

    return san_moves


def resolve_algebraic(position: Position, san: str) -> Move:
    """
    Resolve SAN text to the unique legal move it denotes.

    Check/mate suffixes and annotation glyphs are ignored. Castling may be
    written with letter O or digit zero.

    Raises:
        ValueError: If the text is malformed, matches no legal move, or is ambiguous
    """
    text = re.sub(r"[+#!?]+$", "", san.strip())
    moves = legal_moves(position)

    castle = text.replace("0", "O")
    if castle in ("O-O", "O-O-O"):
        kingside = castle == "O-O"
        for move in moves:
            if move.is_castling:
                from_file, _ = square_to_coordinates(move.from_square)
                to_file, _ = square_to_coordinates(move.to_square)
                if (to_file > from_file) == kingside:
                    return move
        raise ValueError(f"Castling {san!r} is not legal in {position.fen()}")

    match = SAN_RE.match(text)
    if not match:
        raise ValueError(f"Invalid SAN: {san!r}")

    piece_type = LETTER_TO_PIECE[match.group("piece")] if match.group("piece") else chess.PAWN
    to_square = parse_square(match.group("to"))
    from_file = match.group("from_file")
    from_rank = match.group("from_rank")
    promotion = LETTER_TO_PIECE[match.group("promotion")] if match.group("promotion") else None

    candidates = []
    for move in moves:
        if move.to_square != to_square or move.promotion != promotion or move.is_castling:
            continue
        piece = position.piece_at(move.from_square)
        if piece is None or piece.piece_type != piece_type:
            continue
        file, rank = square_to_coordinates(move.from_square)
        if from_file is not None and FILE_NAMES[file] != from_file:
            continue
        if from_rank is not None and RANK_NAMES[rank] != from_rank:
            continue
        candidates.append(move)

    if not candidates:
        raise ValueError(f"SAN {san!r} matches no legal move in {position.fen()}")
    if len(candidates) > 1:
        raise ValueError(f"SAN {san!r} is ambiguous in {position.fen()}")
    return candidates[0]
