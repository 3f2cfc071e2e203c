"""Tag-pair store for the PGN header block.

A flat, insertion-ordered mapping of tag name to string value. The Seven
Tag Roster and its placeholder values are only consulted when writing with
the roster option enabled.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, MutableMapping

RESULTS = ("1-0", "0-1", "1/2-1/2", "*")

SEVEN_TAG_ROSTER: dict[str, str] = {
    "Event": "?",
    "Site": "?",
    "Date": "????.??.??",
    "Round": "?",
    "White": "?",
    "Black": "?",
    "Result": "*",
}

TAG_NAME_RE = re.compile(r"^[A-Za-z0-9_]+$")
# Tab is the only control character a tag value may carry.
TAG_VALUE_FORBIDDEN_RE = re.compile(r"[\x00-\x08\x0a-\x1f\x7f]")


def escape_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def format_tag(name: str, value: str) -> str:
    return f'[{name} "{escape_value(value)}"]'


class Headers(MutableMapping[str, str]):
    def __init__(self, tags=None):
        self._tags: dict[str, str] = {}
        if tags:
            for key, value in dict(tags).items():
                self[key] = value

    def __getitem__(self, key: str) -> str:
        return self._tags[key]

    def __setitem__(self, key: str, value: str) -> None:
        if not isinstance(key, str) or not TAG_NAME_RE.fullmatch(key):
            raise ValueError(f"Invalid tag name: {key!r}")
        if not isinstance(value, str):
            raise ValueError(f"Tag value must be a string, got {value!r}")
        if TAG_VALUE_FORBIDDEN_RE.search(value):
            raise ValueError(f"Tag value for {key} contains a line break or control character: {value!r}")
        self._tags[key] = value

    def __delitem__(self, key: str) -> None:
        del self._tags[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tags)

    def __len__(self) -> int:
        return len(self._tags)

    def __repr__(self) -> str:
        return f"Headers({self._tags!r})"

    def copy(self) -> Headers:
        return Headers(self._tags)

    @property
    def result(self) -> str:
        value = self._tags.get("Result", "*")
        return value if value in RESULTS else "*"

    def items_for_output(self, seven_tag_roster: bool = False) -> list[tuple[str, str]]:
        """(name, value) pairs in write order.

        Without the roster option this is plain insertion order. With it the
        seven roster tags come first, filled with placeholders when absent.
        """
        if not seven_tag_roster:
            return list(self._tags.items())
        pairs = [(name, self._tags.get(name, default))
                 for name, default in SEVEN_TAG_ROSTER.items()]
        pairs.extend((k, v) for k, v in self._tags.items() if k not in SEVEN_TAG_ROSTER)
        return pairs
