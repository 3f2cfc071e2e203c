"""Tests for the PGN reader: headers, movetext structure, annotations and errors."""

import logging

import chess
import pytest

from pgntree import (
    AmbiguousMoveError,
    CastlingSide,
    EnPassantMove,
    IllegalMoveError,
    NormalMove,
    NullMove,
    ParseError,
    Role,
    Settings,
    read_pgn,
)

CASTLING_FEN = "r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1"
PROMOTION_FEN = "8/P3k3/8/8/8/8/8/4K3 w - - 0 1"
TWO_KNIGHTS_FEN = "4k3/8/8/8/8/8/8/1N2KN2 w - - 0 1"

SCHOLARS_MATE = "1. e4 e5 2. Qh5 Nc6 3. Bc4 Nf6 4. Qxf7# 1-0"


def _with_fen(fen: str, movetext: str) -> str:
    return f'[SetUp "1"]\n[FEN "{fen}"]\n\n{movetext}'


def _mainline_san(game) -> list[str]:
    sans = []
    for node in game.mainline_nodes():
        sans.append(game.rules.san(game.board_before(node), game.move(node)))
    return sans


class TestMainline:
    def test_simple_game(self):
        game = read_pgn("1. e4 e5 2. Nf3 Nc6 *")
        assert _mainline_san(game) == ["e4", "e5", "Nf3", "Nc6"]
        assert game.result == "*"

    def test_checkmate(self):
        game = read_pgn(SCHOLARS_MATE)
        assert game.board_at(game.end()).is_checkmate()
        assert game.headers["Result"] == "1-0"

    def test_missing_result(self):
        """A game without a result token is accepted and leaves the tags empty."""
        game = read_pgn("1. e4 e5")
        assert "Result" not in game.headers
        assert game.result == "*"

    def test_empty_movetext(self):
        game = read_pgn('[Event "Nothing"]\n\n*')
        assert game.children(game.root) == []
        assert game.headers["Event"] == "Nothing"

    def test_glued_move_numbers(self):
        game = read_pgn("1.e4 e5 2.Nf3 2...Nc6")
        assert _mainline_san(game) == ["e4", "e5", "Nf3", "Nc6"]

    def test_move_numbers_not_checked(self):
        """Move numbers are skipped, not validated."""
        game = read_pgn("7. e4 3... e5")
        assert _mainline_san(game) == ["e4", "e5"]

    def test_en_passant(self):
        game = read_pgn("1. e4 Nf6 2. e5 d5 3. exd6")
        assert game.move(game.end()) == EnPassantMove(chess.E5, chess.D6)

    def test_null_move(self):
        game = read_pgn("1. e4 -- 2. d4 Z0")
        moves = [game.move(n) for n in game.mainline_nodes()]
        assert moves[1] == NullMove()
        assert moves[3] == NullMove()

    def test_byte_order_mark(self):
        game = read_pgn("\ufeff1. e4 c5 *")
        assert _mainline_san(game) == ["e4", "c5"]

    def test_escape_lines_skipped(self):
        game = read_pgn("%produced by some tool\n1. e4 e5")
        assert len(list(game.mainline_nodes())) == 2


class TestHeaders:
    def test_tags_and_escapes(self):
        game = read_pgn('[Event "Casual"]\n[White "A \\"B\\" C"]\n\n1. e4 1-0')
        assert list(game.headers) == ["Event", "White", "Result"]
        assert game.headers["White"] == 'A "B" C'
        assert game.result == "1-0"

    def test_result_tag_kept_on_disagreement(self, caplog):
        """The Result tag wins over the movetext result, with a warning."""
        with caplog.at_level(logging.WARNING, logger="pgntree.reader"):
            game = read_pgn('[Result "0-1"]\n\n1. e4 1-0')
        assert game.result == "0-1"
        assert "disagrees" in caplog.text

    def test_control_character_in_tag(self):
        """A tag value the store refuses is a ParseError at its tag."""
        with pytest.raises(ParseError, match="control character") as exc:
            read_pgn('[Event "x"]\n[Site "a\rb"]\n\n*')
        assert exc.value.line == 2

    def test_repeated_tag_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="pgntree.reader"):
            game = read_pgn('[Event "a"]\n[Event "b"]\n\n*')
        assert game.headers["Event"] == "b"
        assert "Repeated tag Event" in caplog.text

    def test_fen_sets_root(self):
        game = read_pgn(_with_fen(CASTLING_FEN, "1. O-O O-O-O"))
        assert game.initial_position().fen() == CASTLING_FEN
        _, black_castles = game.mainline_nodes()
        board = game.board_at(black_castles)
        assert board.king(chess.WHITE) == chess.G1
        assert board.king(chess.BLACK) == chess.C8

    def test_castles_with_zeros(self):
        game = read_pgn(_with_fen(CASTLING_FEN, "1. 0-0-0 0-0"))
        moves = [game.move(n) for n in game.mainline_nodes()]
        assert [m.side for m in moves] == [CastlingSide.QUEEN_SIDE, CastlingSide.KING_SIDE]

    def test_bad_fen(self):
        """An unusable FEN is reported at its tag."""
        with pytest.raises(ParseError) as exc:
            read_pgn('[Event "x"]\n[FEN "garbage"]\n\n1. e4')
        assert exc.value.line == 2

    def test_chess960_variant(self):
        fen = chess.Board.from_chess960_pos(0).fen()
        game = read_pgn(f'[Variant "Chess960"]\n[FEN "{fen}"]\n\n*')
        assert game.initial_position().chess960

    def test_promotion(self):
        game = read_pgn(_with_fen(PROMOTION_FEN, "1. a8=Q"))
        move = game.move(game.end())
        assert move == NormalMove(Role.PAWN, chess.A7, chess.A8, promotion=Role.QUEEN)


class TestComments:
    def test_comment_after_move(self):
        game = read_pgn("1. e4 {best by test} e5")
        e4 = game.mainline(game.root)
        assert game.comment(e4) == "best by test"

    def test_comments_joined(self):
        """Several comments on one move are joined with a space."""
        game = read_pgn("1. e4 {first} ; second\ne5")
        assert game.comment(game.mainline(game.root)) == "first second"

    def test_game_comment(self):
        """A comment before the first move belongs to the root."""
        game = read_pgn("{Club championship} 1. e4")
        assert game.comment(game.root) == "Club championship"

    def test_starting_comment(self):
        """A comment right after '(' belongs before the variation's first move."""
        game = read_pgn("1. e4 ({Or} 1. d4) 1... e5")
        d4 = game.variations(game.root)[0]
        assert game.starting_comment(d4) == "Or"
        assert game.comment(game.root) is None

    def test_comment_after_variation(self):
        """A comment after ')' annotates the move the variation hangs off."""
        game = read_pgn("1. e4 (1. d4) {main} 1... e5")
        assert game.comment(game.mainline(game.root)) == "main"

    def test_empty_comment_ignored(self):
        game = read_pgn("1. e4 {} e5")
        assert game.comment(game.mainline(game.root)) is None

    def test_comment_at_end_of_variation(self):
        game = read_pgn("1. e4 (1. d4 {closed}) e5")
        d4 = game.variations(game.root)[0]
        assert game.comment(d4) == "closed"


class TestNags:
    def test_numeric_and_symbolic(self):
        game = read_pgn("1. e4! $14 e5?!")
        e4, e5 = game.mainline_nodes()
        assert game.nags(e4) == (1, 14)
        assert game.nags(e5) == (6,)

    def test_duplicate_nags_collapse(self):
        game = read_pgn("1. e4 $1 ! $1")
        assert game.nags(game.mainline(game.root)) == (1,)

    def test_nag_before_move(self):
        with pytest.raises(ParseError, match="NAG"):
            read_pgn("$1 1. e4")

    def test_nag_at_variation_start(self):
        with pytest.raises(ParseError, match="NAG"):
            read_pgn("1. e4 ($1 1. d4)")


class TestVariations:
    def test_siblings_in_order(self):
        game = read_pgn("1. e4 (1. d4 d5) (1. c4) 1... e5")
        sans = [game.rules.san(game.initial_position(), game.move(n))
                for n in game.children(game.root)]
        assert sans == ["e4", "d4", "c4"]

    def test_variation_for_black(self):
        game = read_pgn("1. e4 e5 (1... c5 2. Nf3) 2. Nf3")
        e4 = game.mainline(game.root)
        assert len(game.children(e4)) == 2
        c5 = game.variations(e4)[0]
        assert len(list(game.mainline_nodes(c5))) == 1

    def test_nested(self):
        game = read_pgn("1. e4 (1. d4 d5 (1... Nf6 2. c4) 2. c4) 1... e5")
        d4 = game.variations(game.root)[0]
        assert len(game.children(d4)) == 2
        nf6 = game.variations(d4)[0]
        assert game.children(nf6) != []

    def test_variation_at_game_start(self):
        with pytest.raises(ParseError, match="variation before any move"):
            read_pgn("(1. d4) 1. e4")

    def test_empty_variation(self):
        with pytest.raises(ParseError, match="empty variation") as exc:
            read_pgn("1. e4 () e5")
        assert exc.value.offset == 6

    def test_depth_limit(self):
        text = "1. e4 (1. d4 (1. c4 (1. Nf3))) 1... e5"
        with pytest.raises(ParseError, match="nested deeper"):
            read_pgn(text, settings=Settings(_env_file=None, max_variation_depth=2))
        game = read_pgn(text, settings=Settings(_env_file=None, max_variation_depth=3))
        assert len(game.children(game.root)) == 4

    def test_deep_nesting_within_default_limit(self):
        """Nesting up to the default limit parses without recursion."""
        depth = 120
        text = "1. e4 " + "(1. d4 " * depth + ")" * depth
        game = read_pgn(text)
        assert len(game.children(game.root)) == depth + 1


class TestStructuralErrors:
    def test_unclosed_variation(self):
        """An unclosed '(' is a ParseError even when the moves inside are fine."""
        with pytest.raises(ParseError) as exc:
            read_pgn("1. e4\n(c5")
        assert (exc.value.offset, exc.value.line) == (6, 2)

    def test_unclosed_before_illegal_move(self):
        """Structure is checked before any move is resolved."""
        with pytest.raises(ParseError):
            read_pgn("1. e4 (1. Ke2")

    def test_unbalanced_close(self):
        with pytest.raises(ParseError, match=r"unbalanced '\)'"):
            read_pgn("1. e4 ) e5")

    def test_token_after_result(self):
        with pytest.raises(ParseError, match="after result"):
            read_pgn("1. e4 e5 1-0 2. Nf3")

    def test_result_inside_variation(self):
        with pytest.raises(ParseError, match="result inside"):
            read_pgn("1. e4 (1. d4 1-0) e5")

    def test_tag_inside_movetext(self):
        with pytest.raises(ParseError, match="tag pair"):
            read_pgn('1. e4 [Event "x"] e5')


class TestMoveErrors:
    def test_illegal_move_offset(self):
        with pytest.raises(IllegalMoveError) as exc:
            read_pgn("1. e4 e6 2. Ke3")
        assert exc.value.offset == 12
        assert exc.value.move == "Ke3"

    def test_illegal_move_in_variation(self):
        with pytest.raises(IllegalMoveError):
            read_pgn("1. e4 (1. e5) 1... e5")

    def test_capture_marker_without_capture(self):
        with pytest.raises(IllegalMoveError):
            read_pgn("1. e4 e5 2. Nxf3")

    def test_ambiguous(self):
        with pytest.raises(AmbiguousMoveError) as exc:
            read_pgn(_with_fen(TWO_KNIGHTS_FEN, "1. Nd2"))
        assert len(exc.value.candidates) == 2

    def test_disambiguated(self):
        game = read_pgn(_with_fen(TWO_KNIGHTS_FEN, "1. Nfd2"))
        assert game.move(game.end()).from_square == chess.F1

    def test_check_marker_not_validated(self):
        game = read_pgn("1. e4+ e5 2. Qh5 Nc6 3. Bc4 Nf6 4. Qxf7")
        assert game.board_at(game.end()).is_checkmate()
