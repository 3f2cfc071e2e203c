"""PGN lexer.

Turns PGN text into a flat list of Tokens, each carrying its character
offset and 1-based line number. Lexical problems (malformed tag pair,
unterminated comment, bad NAG, unknown word) raise ParseError here; the
reader only deals with structure and move resolution.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Any

from pgntree.annotations import MAX_NAG, SYMBOLIC_NAGS
from pgntree.errors import ParseError
from pgntree.san import parse_san_token


class TokenKind(enum.Enum):
    TAG = "tag"                   # value: (name, value)
    COMMENT = "comment"           # value: stripped text
    MOVE_NUMBER = "move_number"   # value: int
    SAN = "san"                   # value: SanToken
    NAG = "nag"                   # value: int
    OPEN = "open"
    CLOSE = "close"
    RESULT = "result"             # value: result string


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    offset: int
    line: int
    value: Any = None


BOM = "\ufeff"
_WHITESPACE_RE = re.compile(r"\s+")
_TAG_RE = re.compile(r'\[\s*(?P<name>[A-Za-z0-9_]+)\s+"(?P<value>(?:[^"\\\n]|\\.)*)"\s*\]')
_TAG_UNESCAPE_RE = re.compile(r"\\(.)")
_RESULT_RE = re.compile(r'(?:1-0|0-1|1/2-1/2|\*)(?=[\s(){};\[]|$)')
_MOVE_NUMBER_RE = re.compile(r"(?P<number>\d+)(?:\.+|(?=[\s(){};]|$))")
_NAG_RE = re.compile(r"\$(?P<number>\d*)")
_GLYPH_RE = re.compile(r"[!?]+")
_WORD_RE = re.compile(r"--|[A-Za-z0-9][A-Za-z0-9+#=\-]*")


class _Scanner:
    """Cursor over the text that keeps the line number current."""

    def __init__(self, text: str):
        self.text = text
        # A leading byte order mark is skipped; offsets still count it.
        self.origin = 1 if text.startswith(BOM) else 0
        self.pos = self.origin
        self.line = 1

    def advance(self, end: int) -> None:
        self.line += self.text.count("\n", self.pos, end)
        self.pos = end

    def error(self, message: str) -> ParseError:
        return ParseError(message, self.pos, self.line)

    def at_line_start(self) -> bool:
        return self.pos == self.origin or self.text[self.pos - 1] == "\n"

    def emit(self, tokens: list[Token], kind: TokenKind, end: int, value: Any = None) -> None:
        """Record a token spanning the cursor up to `end` and move past it."""
        tokens.append(Token(kind, self.text[self.pos:end], self.pos, self.line, value))
        self.advance(end)


def tokenize(text: str) -> list[Token]:
    scanner = _Scanner(text)
    tokens: list[Token] = []
    length = len(text)

    while True:
        m = _WHITESPACE_RE.match(text, scanner.pos)
        if m:
            scanner.advance(m.end())
        if scanner.pos >= length:
            break

        start = scanner.pos
        ch = text[start]

        if ch == "%" and scanner.at_line_start():
            end = text.find("\n", start)
            scanner.advance(length if end == -1 else end)
        elif ch == "[":
            m = _TAG_RE.match(text, start)
            if m is None:
                raise scanner.error("malformed tag pair")
            value = _TAG_UNESCAPE_RE.sub(r"\1", m.group("value"))
            scanner.emit(tokens, TokenKind.TAG, m.end(), (m.group("name"), value))
        elif ch == "{":
            end = text.find("}", start + 1)
            if end == -1:
                raise scanner.error("unterminated comment")
            scanner.emit(tokens, TokenKind.COMMENT, end + 1, text[start + 1:end].strip())
        elif ch == ";":
            end = text.find("\n", start)
            end = length if end == -1 else end
            scanner.emit(tokens, TokenKind.COMMENT, end, text[start + 1:end].strip())
        elif ch == "(":
            scanner.emit(tokens, TokenKind.OPEN, start + 1)
        elif ch == ")":
            scanner.emit(tokens, TokenKind.CLOSE, start + 1)
        elif ch == "$":
            m = _NAG_RE.match(text, start)
            digits = m.group("number")
            if not digits or int(digits) > MAX_NAG:
                raise scanner.error(f"malformed NAG {m.group(0)!r}")
            scanner.emit(tokens, TokenKind.NAG, m.end(), int(digits))
        elif ch in "!?":
            m = _GLYPH_RE.match(text, start)
            glyph = m.group(0)
            if glyph not in SYMBOLIC_NAGS:
                raise scanner.error(f"malformed NAG {glyph!r}")
            scanner.emit(tokens, TokenKind.NAG, m.end(), SYMBOLIC_NAGS[glyph])
        elif (m := _RESULT_RE.match(text, start)) is not None:
            scanner.emit(tokens, TokenKind.RESULT, m.end(), m.group(0))
        elif (m := _MOVE_NUMBER_RE.match(text, start)) is not None:
            scanner.emit(tokens, TokenKind.MOVE_NUMBER, m.end(), int(m.group("number")))
        elif (m := _WORD_RE.match(text, start)) is not None:
            san = parse_san_token(m.group(0))
            if san is None:
                raise scanner.error(f"unrecognized token {m.group(0)!r}")
            scanner.emit(tokens, TokenKind.SAN, m.end(), san)
        else:
            raise scanner.error(f"unexpected character {ch!r}")

    return tokens
