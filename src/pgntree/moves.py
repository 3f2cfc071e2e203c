"""Move model: a closed set of move shapes plus square/role helpers.

A move is one of four frozen dataclasses (NormalMove, CastleMove,
EnPassantMove, NullMove). Squares are python-chess square indices
(file + 8 * rank), roles mirror python-chess piece types.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Union

import chess


class Role(enum.IntEnum):
    PAWN = chess.PAWN
    KNIGHT = chess.KNIGHT
    BISHOP = chess.BISHOP
    ROOK = chess.ROOK
    QUEEN = chess.QUEEN
    KING = chess.KING

    @property
    def letter(self) -> str:
        """Upper-case SAN letter ("P" for pawns)."""
        return chess.piece_symbol(self).upper()

    @classmethod
    def from_letter(cls, letter: str) -> Role:
        return cls(chess.PIECE_SYMBOLS.index(letter.lower()))


class CastlingSide(enum.Enum):
    KING_SIDE = "king"
    QUEEN_SIDE = "queen"


@dataclass(frozen=True)
class NormalMove:
    role: Role
    from_square: int
    to_square: int
    capture: Role | None = None
    promotion: Role | None = None


@dataclass(frozen=True)
class CastleMove:
    side: CastlingSide


@dataclass(frozen=True)
class EnPassantMove:
    from_square: int
    to_square: int


@dataclass(frozen=True)
class NullMove:
    pass


Move = Union[NormalMove, CastleMove, EnPassantMove, NullMove]


def square(file: int, rank: int) -> int:
    """Square index for file 0..7 (a..h) and rank 0..7 (1..8)."""
    if not (0 <= file < 8 and 0 <= rank < 8):
        raise ValueError(f"Square out of range: file={file} rank={rank}")
    return chess.square(file, rank)


def square_name(sq: int) -> str:
    return chess.square_name(sq)


def parse_square(name: str) -> int:
    try:
        return chess.parse_square(name)
    except ValueError as e:
        raise ValueError(f"Invalid square name: {name}") from e


def _label(sq) -> str:
    if isinstance(sq, int) and 0 <= sq < 64:
        return chess.square_name(sq)
    return f"<{sq!r}>"


def describe(move: Move) -> str:
    """Short human-readable form used in error messages and reprs."""
    if isinstance(move, NormalMove):
        text = f"{move.role.letter}{_label(move.from_square)}"
        text += "x" if move.capture is not None else "-"
        text += _label(move.to_square)
        if move.promotion is not None:
            text += f"={move.promotion.letter}"
        return text
    if isinstance(move, CastleMove):
        return "O-O" if move.side is CastlingSide.KING_SIDE else "O-O-O"
    if isinstance(move, EnPassantMove):
        return f"P{_label(move.from_square)}x{_label(move.to_square)} e.p."
    return "--"
