"""Per-node annotations: comments and Numeric Annotation Glyphs.

NAGs are kept as an ordered set: duplicates are dropped, first insertion
order wins.
"""

from __future__ import annotations

from dataclasses import dataclass, field

NAG_NULL = 0
NAG_GOOD_MOVE = 1
NAG_MISTAKE = 2
NAG_BRILLIANT_MOVE = 3
NAG_BLUNDER = 4
NAG_SPECULATIVE_MOVE = 5
NAG_DUBIOUS_MOVE = 6

MAX_NAG = 255

# Move-suffix glyphs accepted by the reader.
SYMBOLIC_NAGS: dict[str, int] = {
    "!": NAG_GOOD_MOVE,
    "?": NAG_MISTAKE,
    "!!": NAG_BRILLIANT_MOVE,
    "??": NAG_BLUNDER,
    "!?": NAG_SPECULATIVE_MOVE,
    "?!": NAG_DUBIOUS_MOVE,
}


def check_nag(nag: int) -> int:
    if isinstance(nag, bool) or not isinstance(nag, int):
        raise ValueError(f"NAG must be an integer, got {nag!r}")
    if not 0 <= nag <= MAX_NAG:
        raise ValueError(f"NAG out of range 0..{MAX_NAG}: {nag}")
    return nag


def normalize_comment(text: str | None) -> str | None:
    """Comment text as it survives a write and read: no `}`, no outer
    whitespace, None when nothing is left."""
    if text is None:
        return None
    return text.replace("}", "").strip() or None


def join_comments(existing: str | None, extra: str) -> str:
    """Append a comment to an existing one, space separated."""
    if not existing:
        return extra
    if not extra:
        return existing
    return f"{existing} {extra}"


@dataclass
class Annotations:
    """Comment, starting comment and NAG set for one node.

    `starting_comment` is the text written before the node's move when the
    node opens a variation; `comment` follows the move.
    """
    comment: str | None = None
    starting_comment: str | None = None
    _nags: list[int] = field(default_factory=list, repr=False)

    @property
    def nags(self) -> tuple[int, ...]:
        return tuple(self._nags)

    def set_comment(self, comment: str | None) -> None:
        self.comment = normalize_comment(comment)

    def set_starting_comment(self, comment: str | None) -> None:
        self.starting_comment = normalize_comment(comment)

    def add_nag(self, nag: int) -> bool:
        """Add a NAG; returns False if it was already present."""
        check_nag(nag)
        if nag in self._nags:
            return False
        self._nags.append(nag)
        return True

    def set_nags(self, nags) -> None:
        checked = [check_nag(n) for n in nags]
        self._nags.clear()
        for nag in checked:
            if nag not in self._nags:
                self._nags.append(nag)

    def clear_nags(self) -> None:
        self._nags.clear()
