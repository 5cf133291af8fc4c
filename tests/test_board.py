"""
Unit Tests for the Board Model

Tests for the immutable Position, focusing on:
    - FEN parsing: valid, lax, malformed, king-count violations
    - Legal move generation: agreement with python-chess, castling, en passant, promotion
    - Move application: immutability, clocks, ply
    - Attack detection
"""

import chess
import pytest

from ucitap.board import (
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
from ucitap.board.representation import (
    LETTER_TO_PIECE,
    PROMOTION_SUFFIXES,
    coordinates_to_square,
    parse_square,
    piece_letter,
    promotion_suffix,
    square_name,
    square_to_coordinates,
)

KIWIPETE = "r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1"

ORACLE_FENS = [
    STARTING_FEN,
    KIWIPETE,
    "8/2p5/3p4/KP5r/1R3p1k/8/4P1P1/8 w - - 0 1",
    "r3k2r/Pppp1ppp/1b3nbN/nP6/BBP1P3/q4N2/Pp1P2PP/R2Q1RK1 w kq - 0 1",
    "rnbq1k1r/pp1Pbppp/2p5/8/2B5/8/PPP1NnPP/RNBQK2R w KQ - 1 8",
    "rnbqkbnr/ppp1p1pp/8/3pPp2/8/8/PPPP1PPP/RNBQKBNR w KQkq f6 0 3",
]


def move(uci: str) -> Move:
    """Build a Move from coordinate text for comparisons."""
    promotion = {"q": chess.QUEEN, "r": chess.ROOK, "b": chess.BISHOP, "n": chess.KNIGHT}.get(uci[4:5])
    return Move(parse_square(uci[:2]), parse_square(uci[2:4]), promotion)


class TestSquareNames:
    """Tests for square naming helpers."""

    def test_square_name_round_trip(self):
        for square in chess.SQUARES:
            assert parse_square(square_name(square)) == square

    def test_san_piece_letters(self):
        assert [piece_letter(piece) for piece in chess.PIECE_TYPES] == ["", "N", "B", "R", "Q", "K"]
        assert LETTER_TO_PIECE == {"N": chess.KNIGHT, "B": chess.BISHOP, "R": chess.ROOK, "Q": chess.QUEEN, "K": chess.KING}

    def test_promotion_suffixes(self):
        assert promotion_suffix(None) == ""
        assert promotion_suffix(chess.KNIGHT) == "n"
        assert PROMOTION_SUFFIXES == {"q": chess.QUEEN, "r": chess.ROOK, "b": chess.BISHOP, "n": chess.KNIGHT}

    def test_coordinates(self):
        assert square_to_coordinates(chess.E4) == (4, 3)
        assert coordinates_to_square(4, 3) == chess.E4

    def test_invalid_square(self):
        with pytest.raises(ValueError):
            parse_square("i9")
        with pytest.raises(ValueError):
            coordinates_to_square(8, 0)


class TestFenParsing:
    """Tests for Position.from_fen."""

    def test_initial_position(self):
        position = Position.initial()

        assert position.fen() == STARTING_FEN
        assert position.turn == chess.WHITE
        assert position.ply == 0
        assert position.fullmove_number == 1
        assert position.halfmove_clock == 0

    def test_from_fen_round_trip(self):
        position = Position.from_fen(KIWIPETE)

        assert position.fen() == KIWIPETE
        assert position.has_kingside_castling_rights(chess.WHITE)
        assert position.has_queenside_castling_rights(chess.BLACK)

    def test_lax_fen_without_clocks(self):
        position = Position.from_fen("4k3/8/8/8/8/8/8/4K3 b")

        assert position.turn == chess.BLACK
        assert position.fullmove_number == 1

    def test_malformed_fen(self):
        with pytest.raises(FenParseError):
            Position.from_fen("not a fen")

    def test_fen_parse_error_is_value_error(self):
        with pytest.raises(ValueError):
            Position.from_fen("rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP w KQkq - 0 1")

    def test_missing_king(self):
        with pytest.raises(FenParseError, match="kings"):
            Position.from_fen("8/8/8/8/8/8/8/4K3 w - - 0 1")

    def test_two_kings(self):
        with pytest.raises(FenParseError, match="kings"):
            Position.from_fen("4k3/8/8/8/8/8/8/3KK3 w - - 0 1")

    def test_epd_has_four_fields(self):
        assert Position.initial().epd() == "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq -"

    def test_en_passant_field_only_when_capture_is_legal(self):
        # After 1.e4 no black pawn can capture on e3
        position = apply_move(Position.initial(), move("e2e4"))
        assert position.fen().split()[3] == "-"

        ep = Position.from_fen(ORACLE_FENS[-1])
        assert ep.fen().split()[3] == "f6"


class TestLegalMoves:
    """Tests for legal move generation."""

    def test_starting_position_has_20_moves(self):
        assert len(legal_moves(Position.initial())) == 20

    def test_kiwipete_has_48_moves(self):
        assert len(legal_moves(Position.from_fen(KIWIPETE))) == 48

    @pytest.mark.parametrize("fen", ORACLE_FENS)
    def test_matches_python_chess(self, fen):
        """Legal move sets agree with python-chess."""
        ours = {(m.from_square, m.to_square, m.promotion) for m in legal_moves(Position.from_fen(fen))}
        board = chess.Board(fen)
        theirs = {(m.from_square, m.to_square, m.promotion) for m in board.legal_moves}

        assert ours == theirs

    def test_moves_leaving_king_in_check_are_excluded(self):
        # Bishop e2 is pinned against the king by the rook on e8
        position = Position.from_fen("4r1k1/8/8/8/8/8/4B3/4K3 w - - 0 1")
        moves = legal_moves(position)

        assert not any(m.from_square == chess.E2 for m in moves)

    def test_castling_both_sides(self):
        position = Position.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
        moves = legal_moves(position)

        kingside = next(m for m in moves if m == move("e1g1"))
        queenside = next(m for m in moves if m == move("e1c1"))
        assert kingside.kind is MoveKind.CASTLING
        assert queenside.is_castling

    def test_no_castling_through_attacked_square(self):
        # Rook on f8 covers f1
        position = Position.from_fen("4kr2/8/8/8/8/8/8/R3K2R w KQ - 0 1")
        moves = legal_moves(position)

        assert move("e1g1") not in moves
        assert move("e1c1") in moves

    def test_no_castling_out_of_check(self):
        position = Position.from_fen("4k3/4r3/8/8/8/8/8/R3K2R w KQ - 0 1")
        moves = legal_moves(position)

        assert move("e1g1") not in moves
        assert move("e1c1") not in moves

    def test_no_castling_without_rights(self):
        position = Position.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w - - 0 1")

        assert not any(m.is_castling for m in legal_moves(position))

    def test_no_castling_through_pieces(self):
        position = Position.from_fen("r3k2r/8/8/8/8/8/8/RN2K1NR w KQkq - 0 1")
        moves = legal_moves(position)

        assert move("e1g1") not in moves
        assert move("e1c1") not in moves

    def test_en_passant(self):
        position = Position.from_fen("rnbqkbnr/ppp1p1pp/8/3pPp2/8/8/PPPP1PPP/RNBQKBNR w KQkq f6 0 3")
        ep = next(m for m in legal_moves(position) if m == move("e5f6"))

        assert ep.is_en_passant
        assert move("e5d6") not in legal_moves(position)

    def test_promotions(self):
        position = Position.from_fen("8/P7/8/8/8/8/8/k6K w - - 0 1")
        promotions = {m.promotion for m in legal_moves(position) if m.from_square == chess.A7}

        assert promotions == {chess.QUEEN, chess.ROOK, chess.BISHOP, chess.KNIGHT}

    def test_move_equality_ignores_kind(self):
        assert Move(chess.E1, chess.G1, kind=MoveKind.CASTLING) == Move(chess.E1, chess.G1)
        assert move("e7e8q").uci() == "e7e8q"

    def test_legal_moves_are_computed_once(self):
        position = Position.from_fen(KIWIPETE)

        assert legal_moves(position) is legal_moves(position)


class TestApplyMove:
    """Tests for move application."""

    def test_apply_returns_new_position(self):
        start = Position.initial()
        after = apply_move(start, move("e2e4"))

        assert start.fen() == STARTING_FEN
        assert after.piece_at(chess.E4) == chess.Piece(chess.PAWN, chess.WHITE)
        assert after.piece_at(chess.E2) is None
        assert after.turn == chess.BLACK

    def test_ply_and_clocks(self):
        position = Position.initial()
        for uci in ["e2e4", "e7e5", "g1f3"]:
            position = apply_move(position, move(uci))

        assert position.ply == 3
        assert position.fullmove_number == 2
        assert position.halfmove_clock == 1

    def test_castling_moves_rook(self):
        position = Position.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
        after = apply_move(position, move("e1g1"))

        assert after.piece_at(chess.F1) == chess.Piece(chess.ROOK, chess.WHITE)
        assert after.piece_at(chess.H1) is None
        assert not after.has_kingside_castling_rights(chess.WHITE)

    def test_en_passant_removes_pawn(self):
        position = Position.from_fen("rnbqkbnr/ppp1p1pp/8/3pPp2/8/8/PPPP1PPP/RNBQKBNR w KQkq f6 0 3")
        after = apply_move(position, move("e5f6"))

        assert after.piece_at(chess.F5) is None
        assert after.piece_at(chess.F6) == chess.Piece(chess.PAWN, chess.WHITE)

    def test_promotion(self):
        position = Position.from_fen("8/P7/8/8/8/8/8/k6K w - - 0 1")
        after = apply_move(position, move("a7a8n"))

        assert after.piece_at(chess.A8) == chess.Piece(chess.KNIGHT, chess.WHITE)

    def test_positions_compare_by_fen(self):
        a = apply_move(Position.initial(), move("g1f3"))
        b = Position.from_fen(a.fen())

        assert a == b
        assert hash(a) == hash(b)


class TestAttacks:
    """Tests for attack and check detection."""

    def test_is_square_attacked(self):
        position = Position.initial()

        assert is_square_attacked(position, chess.E3, chess.WHITE)
        assert is_square_attacked(position, chess.F3, chess.WHITE)
        assert not is_square_attacked(position, chess.E4, chess.WHITE)
        assert is_square_attacked(position, chess.F6, chess.BLACK)

    def test_is_check(self):
        position = Position.from_fen("4k3/4r3/8/8/8/8/8/4K3 w - - 0 1")

        assert is_check(position)
        assert not is_check(Position.initial())

    def test_fools_mate(self):
        position = Position.initial()
        for uci in ["f2f3", "e7e5", "g2g4", "d8h4"]:
            position = apply_move(position, move(uci))

        assert is_checkmate(position)
        assert legal_moves(position) == frozenset()

    def test_stalemate_is_not_checkmate(self):
        position = Position.from_fen("7k/5Q2/6K1/8/8/8/8/8 b - - 0 1")

        assert not legal_moves(position)
        assert not is_checkmate(position)
