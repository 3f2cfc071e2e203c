"""pgntree: a mutable chess game tree with a PGN reader and writer."""

from pgntree.annotations import SYMBOLIC_NAGS, Annotations
from pgntree.config import Settings, get_settings
from pgntree.errors import (
    AmbiguousMoveError,
    IllegalMoveError,
    InvalidHandleError,
    ParseError,
    PgnError,
)
from pgntree.headers import Headers
from pgntree.moves import (
    CastleMove,
    CastlingSide,
    EnPassantMove,
    Move,
    NormalMove,
    NullMove,
    Role,
    parse_square,
    square,
    square_name,
)
from pgntree.reader import read_pgn
from pgntree.rules import PythonChessRules, RulesEngine
from pgntree.tree import Game, NodeId
from pgntree.writer import write_game

__all__ = [
    "AmbiguousMoveError",
    "Annotations",
    "CastleMove",
    "CastlingSide",
    "EnPassantMove",
    "Game",
    "Headers",
    "IllegalMoveError",
    "InvalidHandleError",
    "Move",
    "NodeId",
    "NormalMove",
    "NullMove",
    "ParseError",
    "PgnError",
    "PythonChessRules",
    "Role",
    "RulesEngine",
    "SYMBOLIC_NAGS",
    "Settings",
    "get_settings",
    "parse_square",
    "read_pgn",
    "square",
    "square_name",
    "write_game",
]
