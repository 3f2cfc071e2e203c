"""SAN token grammar and resolution against legal moves.

parse_san_token() splits a SAN word into its markers (role, source
file/rank, capture, destination, promotion). resolve_san() keeps the legal
moves of a position that agree with every marker present: exactly one must
survive.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import chess

from pgntree.errors import AmbiguousMoveError, IllegalMoveError
from pgntree.moves import (
    CastleMove,
    CastlingSide,
    EnPassantMove,
    Move,
    NormalMove,
    NullMove,
    Role,
)
from pgntree.rules import RulesEngine

SAN_RE = re.compile(
    r"^(?P<role>[KQRBNP])?"
    r"(?P<from_file>[a-h])?(?P<from_rank>[1-8])?"
    r"(?P<capture>x)?"
    r"(?P<to>[a-h][1-8])"
    r"(?:=?(?P<promotion>[QRBNqrbn]))?"
    r"[+#]?$"
)
CASTLE_RE = re.compile(r"^(?P<long>[O0]-[O0]-[O0]|[O0]-[O0])[+#]?$")
NULL_TOKENS = ("--", "Z0")


@dataclass(frozen=True)
class SanToken:
    text: str
    role: Role = Role.PAWN
    from_file: int | None = None
    from_rank: int | None = None
    capture: bool = False
    to_square: int | None = None
    promotion: Role | None = None
    castle: CastlingSide | None = None
    null: bool = False


def parse_san_token(text: str) -> SanToken | None:
    """Parse one SAN word, or return None if it matches no SAN form."""
    if text in NULL_TOKENS:
        return SanToken(text=text, null=True)
    m = CASTLE_RE.match(text)
    if m:
        side = CastlingSide.QUEEN_SIDE if len(m.group("long")) == 5 else CastlingSide.KING_SIDE
        return SanToken(text=text, castle=side)
    m = SAN_RE.match(text)
    if m is None:
        return None
    role = Role.from_letter(m.group("role")) if m.group("role") else Role.PAWN
    promotion = Role.from_letter(m.group("promotion")) if m.group("promotion") else None
    if promotion is not None and role is not Role.PAWN:
        return None
    return SanToken(
        text=text,
        role=role,
        from_file=chess.FILE_NAMES.index(m.group("from_file")) if m.group("from_file") else None,
        from_rank=int(m.group("from_rank")) - 1 if m.group("from_rank") else None,
        capture=m.group("capture") is not None,
        to_square=chess.parse_square(m.group("to")),
        promotion=promotion,
    )


def matches(token: SanToken, move: Move) -> bool:
    """Does `move` agree with every marker the token carries?"""
    if token.null:
        return isinstance(move, NullMove)
    if token.castle is not None:
        return isinstance(move, CastleMove) and move.side is token.castle
    if isinstance(move, NormalMove):
        role, from_sq, to_sq = move.role, move.from_square, move.to_square
        is_capture = move.capture is not None
        promotion = move.promotion
    elif isinstance(move, EnPassantMove):
        role, from_sq, to_sq = Role.PAWN, move.from_square, move.to_square
        is_capture = True
        promotion = None
    else:
        return False

    if role is not token.role or to_sq != token.to_square:
        return False
    if token.from_file is not None and chess.square_file(from_sq) != token.from_file:
        return False
    if token.from_rank is not None and chess.square_rank(from_sq) != token.from_rank:
        return False
    if token.capture and not is_capture:
        return False
    return promotion == token.promotion


def resolve_san(
    rules: RulesEngine,
    board: chess.Board,
    token: SanToken,
    offset: int | None = None,
) -> Move:
    candidates = [m for m in rules.legal_moves(board) if matches(token, m)]
    if not candidates:
        raise IllegalMoveError(token.text, board.fen(), offset)
    if len(candidates) > 1:
        raise AmbiguousMoveError(token.text, candidates, offset)
    return candidates[0]
