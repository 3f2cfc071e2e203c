"""Rules engine capability used by the game tree, reader and writer.

The tree never looks inside a position; it asks a RulesEngine to list legal
moves, apply a move, or render SAN. PythonChessRules is the python-chess
backed implementation and the default everywhere.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import chess

from pgntree.errors import IllegalMoveError
from pgntree.moves import (
    CastleMove,
    CastlingSide,
    EnPassantMove,
    Move,
    NormalMove,
    NullMove,
    Role,
)


class RulesEngine(ABC):
    """Narrow contract the core relies on. Boards are never mutated in place."""

    @abstractmethod
    def initial_position(self, fen: str | None = None, chess960: bool = False) -> chess.Board:
        ...

    @abstractmethod
    def legal_moves(self, board: chess.Board) -> list[Move]:
        ...

    @abstractmethod
    def is_legal(self, board: chess.Board, move: Move) -> bool:
        ...

    @abstractmethod
    def play(self, board: chess.Board, move: Move) -> chess.Board:
        ...

    @abstractmethod
    def san(self, board: chess.Board, move: Move) -> str:
        ...

    @abstractmethod
    def is_check(self, board: chess.Board) -> bool:
        ...


def from_chess_move(board: chess.Board, move: chess.Move) -> Move:
    """Classify a python-chess move played from `board`."""
    if not move:
        return NullMove()
    if board.is_castling(move):
        if board.is_kingside_castling(move):
            return CastleMove(CastlingSide.KING_SIDE)
        return CastleMove(CastlingSide.QUEEN_SIDE)
    if board.is_en_passant(move):
        return EnPassantMove(move.from_square, move.to_square)
    piece_type = board.piece_type_at(move.from_square)
    if piece_type is None:
        raise ValueError(f"No piece on {chess.square_name(move.from_square)}")
    captured = board.piece_type_at(move.to_square)
    return NormalMove(
        role=Role(piece_type),
        from_square=move.from_square,
        to_square=move.to_square,
        capture=Role(captured) if captured is not None else None,
        promotion=Role(move.promotion) if move.promotion else None,
    )


def _on_board(sq) -> bool:
    return isinstance(sq, int) and not isinstance(sq, bool) and 0 <= sq < 64


def to_chess_move(board: chess.Board, move: Move) -> chess.Move | None:
    """python-chess equivalent of `move` on `board`, or None for an
    impossible castle or a square off the board."""
    if isinstance(move, (NormalMove, EnPassantMove)) and not (
        _on_board(move.from_square) and _on_board(move.to_square)
    ):
        return None
    if isinstance(move, NormalMove):
        promotion = int(move.promotion) if move.promotion is not None else None
        return chess.Move(move.from_square, move.to_square, promotion=promotion)
    if isinstance(move, EnPassantMove):
        return chess.Move(move.from_square, move.to_square)
    if isinstance(move, CastleMove):
        # Chess960 encodes castling as king-takes-rook, so look it up.
        for candidate in board.generate_castling_moves():
            kingside = board.is_kingside_castling(candidate)
            if kingside == (move.side is CastlingSide.KING_SIDE):
                return candidate
        return None
    return chess.Move.null()


class PythonChessRules(RulesEngine):
    def initial_position(self, fen: str | None = None, chess960: bool = False) -> chess.Board:
        if fen is None:
            return chess.Board(chess960=chess960)
        try:
            board = chess.Board(fen, chess960=chess960)
        except ValueError as e:
            raise ValueError(f"Invalid FEN: {fen}") from e
        if not board.is_valid():
            raise ValueError(f"Illegal position: {fen}")
        return board

    def legal_moves(self, board: chess.Board) -> list[Move]:
        moves = [from_chess_move(board, m) for m in board.legal_moves]
        if not board.is_check():
            moves.append(NullMove())
        return moves

    def is_legal(self, board: chess.Board, move: Move) -> bool:
        if isinstance(move, NullMove):
            return not board.is_check()
        cm = to_chess_move(board, move)
        if cm is None or not board.is_legal(cm):
            return False
        # Role and capture fields must agree with the board.
        return from_chess_move(board, cm) == move

    def play(self, board: chess.Board, move: Move) -> chess.Board:
        if not self.is_legal(board, move):
            raise IllegalMoveError(move, board.fen())
        child = board.copy(stack=False)
        child.push(to_chess_move(board, move))
        return child

    def san(self, board: chess.Board, move: Move) -> str:
        cm = to_chess_move(board, move)
        if cm is None:
            raise IllegalMoveError(move, board.fen())
        return board.san(cm)

    def is_check(self, board: chess.Board) -> bool:
        return board.is_check()


DEFAULT_RULES = PythonChessRules()
