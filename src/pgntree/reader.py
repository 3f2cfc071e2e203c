"""PGN reader: tag pairs + movetext into a Game.

Two passes over the token list. The structural pass checks everything that
does not need chess knowledge (tag placement, parenthesis balance, nesting
depth, result placement), so malformed text is rejected with a ParseError
before any move is resolved. The build pass walks the tokens with an
explicit stack of variation frames, resolving each SAN token against the
legal moves of the frame's current node.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pgntree.annotations import join_comments
from pgntree.config import Settings, get_settings
from pgntree.errors import ParseError
from pgntree.headers import Headers
from pgntree.rules import DEFAULT_RULES, RulesEngine
from pgntree.san import resolve_san
from pgntree.tokenizer import Token, TokenKind, tokenize
from pgntree.tree import Game, NodeId

logger = logging.getLogger(__name__)

CHESS960_VARIANTS = {"chess960", "chess 960", "fischerandom", "fischer random"}


@dataclass
class _Frame:
    """Parser state for one variation level."""
    cursor: NodeId                       # node the next move is played from
    has_move: bool = False               # cursor is a move of this variation
    starting_comment: str | None = None  # comment seen before the first move
    opened_by: Token | None = None       # the "(" that opened this frame


def _error(token: Token, message: str) -> ParseError:
    return ParseError(message, token.offset, token.line)


def _split_header(tokens: list[Token]) -> tuple[list[Token], list[Token]]:
    """Leading TAG tokens, then the movetext tokens."""
    split = 0
    while split < len(tokens) and tokens[split].kind is TokenKind.TAG:
        split += 1
    return tokens[:split], tokens[split:]


def _check_structure(movetext: list[Token], max_depth: int) -> None:
    open_stack: list[Token] = []
    result_seen: Token | None = None
    for token in movetext:
        if result_seen is not None:
            raise _error(token, f"unexpected {token.text!r} after result {result_seen.text!r}")
        if token.kind is TokenKind.TAG:
            raise _error(token, "tag pair inside movetext")
        if token.kind is TokenKind.OPEN:
            open_stack.append(token)
            if len(open_stack) > max_depth:
                raise _error(token, f"variations nested deeper than {max_depth}")
        elif token.kind is TokenKind.CLOSE:
            if not open_stack:
                raise _error(token, "unbalanced ')'")
            open_stack.pop()
        elif token.kind is TokenKind.RESULT:
            if open_stack:
                raise _error(token, "result inside an open variation")
            result_seen = token
    if open_stack:
        raise _error(open_stack[-1], "unbalanced '(': variation never closed")


def _read_headers(tag_tokens: list[Token]) -> Headers:
    headers = Headers()
    for token in tag_tokens:
        name, value = token.value
        if name in headers:
            logger.warning("Repeated tag %s at line %d; keeping the last value", name, token.line)
        try:
            headers[name] = value
        except ValueError as e:
            raise _error(token, str(e)) from e
    return headers


def _initial_position(rules: RulesEngine, headers: Headers, tag_tokens: list[Token]):
    fen = headers.get("FEN")
    if fen is None:
        return None
    chess960 = headers.get("Variant", "").lower() in CHESS960_VARIANTS
    try:
        return rules.initial_position(fen, chess960=chess960)
    except ValueError as e:
        fen_token = next(t for t in reversed(tag_tokens) if t.value[0] == "FEN")
        raise _error(fen_token, str(e)) from e


def _build(game: Game, movetext: list[Token]) -> str | None:
    """Apply movetext tokens to `game`; returns the result token if any."""
    stack = [_Frame(cursor=game.root)]
    result = None

    for token in movetext:
        frame = stack[-1]
        kind = token.kind

        if kind is TokenKind.SAN:
            board = game.board_at(frame.cursor)
            move = resolve_san(game.rules, board, token.value, token.offset)
            node = game.add_node(frame.cursor, move)
            if frame.starting_comment is not None:
                game.set_starting_comment(node, frame.starting_comment)
                frame.starting_comment = None
            frame.cursor = node
            frame.has_move = True
        elif kind is TokenKind.COMMENT:
            if not token.value:
                continue
            if frame.has_move or len(stack) == 1:
                # After a move, or the game comment before the first move.
                game.set_comment(frame.cursor, join_comments(game.comment(frame.cursor), token.value))
            else:
                frame.starting_comment = join_comments(frame.starting_comment, token.value)
        elif kind is TokenKind.NAG:
            if not frame.has_move:
                raise _error(token, f"NAG {token.text!r} before any move")
            game.add_nag(frame.cursor, token.value)
        elif kind is TokenKind.OPEN:
            if not frame.has_move:
                raise _error(token, "variation before any move")
            stack.append(_Frame(cursor=game.parent(frame.cursor), opened_by=token))
        elif kind is TokenKind.CLOSE:
            if not frame.has_move:
                raise _error(frame.opened_by or token, "empty variation")
            stack.pop()
        elif kind is TokenKind.RESULT:
            result = token.value
        # Move numbers carry no information the positions don't already have.

    return result


def read_pgn(
    text: str,
    settings: Settings | None = None,
    rules: RulesEngine | None = None,
) -> Game:
    """Parse one PGN game.

    Raises ParseError for malformed text, IllegalMoveError when a SAN token
    matches no legal move, and AmbiguousMoveError when it matches several.
    No Game is returned on failure.
    """
    settings = settings or get_settings()
    rules = rules or DEFAULT_RULES

    tag_tokens, movetext = _split_header(tokenize(text))
    _check_structure(movetext, settings.max_variation_depth)

    headers = _read_headers(tag_tokens)
    game = Game(
        initial_position=_initial_position(rules, headers, tag_tokens),
        headers=headers,
        rules=rules,
    )
    result = _build(game, movetext)

    if result is not None:
        if "Result" not in game.headers:
            game.headers["Result"] = result
        elif game.headers["Result"] != result:
            logger.warning(
                "Movetext result %s disagrees with Result tag %s; keeping the tag",
                result, game.headers["Result"],
            )

    variations = sum(1 for _, _, is_main in game.walk() if not is_main)
    logger.debug("Parsed game: %d node(s), %d variation(s)", len(game), variations)
    return game
