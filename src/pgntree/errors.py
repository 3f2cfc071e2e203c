"""Exception types raised by the game tree, the reader and the rules adapter."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from pgntree.moves import Move, describe

if TYPE_CHECKING:
    from pgntree.tree import NodeId


class PgnError(Exception):
    """Base class for every error raised by pgntree."""


class ParseError(PgnError):
    """Malformed PGN syntax at a known location."""

    def __init__(self, message: str, offset: int, line: int):
        self.message = message
        self.offset = offset
        self.line = line
        super().__init__(f"line {line}, offset {offset}: {message}")


class IllegalMoveError(PgnError):
    """A move (SAN token or Move value) is not legal in the given position."""

    def __init__(self, move: str | Move, fen: str, offset: int | None = None):
        self.move = move
        self.fen = fen
        self.offset = offset
        text = move if isinstance(move, str) else describe(move)
        where = f" at offset {offset}" if offset is not None else ""
        super().__init__(f"Illegal move {text}{where} in position {fen}")


class AmbiguousMoveError(PgnError):
    """A SAN token matches more than one legal move."""

    def __init__(self, token: str, candidates: Sequence[Move], offset: int | None = None):
        self.token = token
        self.candidates = list(candidates)
        self.offset = offset
        names = ", ".join(describe(m) for m in self.candidates)
        where = f" at offset {offset}" if offset is not None else ""
        super().__init__(f"Ambiguous move {token}{where}: matches {names}")


class InvalidHandleError(PgnError):
    """A node handle is removed, foreign to the game, or not allowed here."""

    def __init__(self, handle: NodeId | None, reason: str = "no such node"):
        self.handle = handle
        self.reason = reason
        super().__init__(f"Invalid node handle {handle!r}: {reason}")
