"""PGN writer.

Walks a Game mainline-first and produces export-style PGN: header block,
movetext wrapped at the configured width, result token. The walk uses an
explicit work stack, so long games and deeply nested variations never touch
the interpreter's recursion limit.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import chess

from pgntree.config import Settings, get_settings
from pgntree.headers import format_tag

if TYPE_CHECKING:
    from pgntree.tree import Game, NodeId


# Work-stack operations
_MOVE = "move"          # write a node's move with its annotations
_CHILDREN = "children"  # expand a node's continuation
_OPEN = "open"
_CLOSE = "close"


class _MovetextWriter:
    """Token sink that handles line wrapping and move-number re-anchoring."""

    def __init__(self, max_width: int | None):
        self._max_width = max_width
        self._lines: list[str] = []
        self._line = ""
        # Black's move needs "N..." after a comment, a variation boundary,
        # or at the very start.
        self.force_move_number = True

    def token(self, text: str) -> None:
        if (
            self._max_width is not None
            and self._line
            and len(self._line) + 1 + len(text) > self._max_width
        ):
            self._flush()
        self._line = f"{self._line} {text}" if self._line else text

    def comment(self, text: str) -> None:
        self.token("{ " + text.replace("}", "").strip() + " }")
        self.force_move_number = True

    def move(self, board: chess.Board, san: str) -> None:
        if board.turn == chess.WHITE:
            self.token(f"{board.fullmove_number}. {san}")
        elif self.force_move_number:
            self.token(f"{board.fullmove_number}... {san}")
        else:
            self.token(san)
        self.force_move_number = False

    def open_variation(self) -> None:
        self.token("(")
        self.force_move_number = True

    def close_variation(self) -> None:
        self.token(")")
        self.force_move_number = True

    def _flush(self) -> None:
        if self._line:
            self._lines.append(self._line)
        self._line = ""

    def lines(self) -> list[str]:
        self._flush()
        return self._lines


def _write_node(game: Game, handle: NodeId, out: _MovetextWriter) -> None:
    starting = game.starting_comment(handle)
    if starting:
        out.comment(starting)
    board = game.board_before(handle)
    out.move(board, game.rules.san(board, game.move(handle)))
    comment = game.comment(handle)
    if comment:
        out.comment(comment)
    for nag in game.nags(handle):
        out.token(f"${nag}")


def _write_movetext(game: Game, out: _MovetextWriter) -> None:
    stack: list[tuple[str, NodeId | None]] = [(_CHILDREN, game.root)]
    while stack:
        op, handle = stack.pop()
        if op == _MOVE:
            _write_node(game, handle, out)
        elif op == _OPEN:
            out.open_variation()
        elif op == _CLOSE:
            out.close_variation()
        else:
            children = game.children(handle)
            if not children:
                continue
            main, others = children[0], children[1:]
            ops: list[tuple[str, NodeId | None]] = [(_MOVE, main)]
            for variation in others:
                ops += [(_OPEN, None), (_MOVE, variation), (_CHILDREN, variation), (_CLOSE, None)]
            ops.append((_CHILDREN, main))
            stack.extend(reversed(ops))


def _header_lines(game: Game, settings: Settings) -> list[str]:
    pairs = game.headers.items_for_output(settings.seven_tag_roster)
    names = {name for name, _ in pairs}
    root_board = game.initial_position()
    if root_board.chess960 and "Variant" not in names:
        pairs.append(("Variant", "Chess960"))
    if "FEN" not in names and root_board.fen() != chess.STARTING_FEN:
        if "SetUp" not in names:
            pairs.append(("SetUp", "1"))
        pairs.append(("FEN", root_board.fen()))
    return [format_tag(name, value) for name, value in pairs]


def write_game(game: Game, settings: Settings | None = None) -> str:
    """Serialize a game to PGN text, ending with a newline."""
    settings = settings or get_settings()
    out = _MovetextWriter(settings.wrap_width)

    game_comment = game.comment(game.root)
    if game_comment:
        out.comment(game_comment)
    _write_movetext(game, out)
    out.token(game.headers.result)

    header = _header_lines(game, settings)
    movetext = "\n".join(out.lines())
    if header:
        return "\n".join(header) + "\n\n" + movetext + "\n"
    return movetext + "\n"
