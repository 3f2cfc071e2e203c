"""Game tree data structures.

A Game owns every node in an arena (a list of slots). Nodes are addressed by
NodeId handles that carry the owning game's key, the slot index and the
slot's generation. Freeing a slot bumps its generation, so a handle to a
removed node keeps failing with InvalidHandleError even after the slot is
reused for a new node.

children[0] of a node is its mainline continuation; children[1:] are side
variations, written in that order.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import chess

from pgntree.annotations import Annotations
from pgntree.errors import InvalidHandleError
from pgntree.headers import Headers
from pgntree.moves import Move
from pgntree.rules import DEFAULT_RULES, RulesEngine
from pgntree.san import parse_san_token, resolve_san
from pgntree.writer import write_game

if TYPE_CHECKING:
    from pgntree.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NodeId:
    """Stable handle to a node, valid until the node is removed."""
    game: uuid.UUID = field(repr=False)
    index: int
    generation: int


@dataclass
class GameNode:
    """A single position in the game tree."""
    board: chess.Board
    move: Move | None = None          # None for root
    parent: NodeId | None = None
    children: list[NodeId] = field(default_factory=list)
    annotations: Annotations = field(default_factory=Annotations)


@dataclass
class _Slot:
    generation: int = 0
    node: GameNode | None = None


class Game:
    """A chess game with variations, its tag pairs and its starting position.

    The root node holds the starting position and carries no move; its
    comment is the game comment written before the movetext.
    """

    def __init__(
        self,
        initial_position: chess.Board | None = None,
        headers: Iterable | None = None,
        rules: RulesEngine | None = None,
    ):
        self._rules = rules or DEFAULT_RULES
        self._key = uuid.uuid4()
        self._slots: list[_Slot] = []
        self._free: list[int] = []
        self.headers = Headers(headers)
        if initial_position is None:
            board = self._rules.initial_position()
        else:
            board = initial_position.copy(stack=False)
        self._root = self._allocate(GameNode(board=board))

    # ------------------------------------------------------------------
    # Arena
    # ------------------------------------------------------------------

    def _allocate(self, node: GameNode) -> NodeId:
        if self._free:
            index = self._free.pop()
            slot = self._slots[index]
        else:
            index = len(self._slots)
            slot = _Slot()
            self._slots.append(slot)
        slot.node = node
        return NodeId(self._key, index, slot.generation)

    def _release(self, handle: NodeId) -> None:
        slot = self._slots[handle.index]
        slot.node = None
        slot.generation += 1
        self._free.append(handle.index)

    def _node(self, handle: NodeId) -> GameNode:
        if not isinstance(handle, NodeId):
            raise InvalidHandleError(handle, "not a node handle")
        if handle.game != self._key:
            raise InvalidHandleError(handle, "handle belongs to another game")
        if not 0 <= handle.index < len(self._slots):
            raise InvalidHandleError(handle)
        slot = self._slots[handle.index]
        if slot.node is None or slot.generation != handle.generation:
            raise InvalidHandleError(handle, "node was removed")
        return slot.node

    def _non_root(self, handle: NodeId, action: str) -> GameNode:
        node = self._node(handle)
        if node.parent is None:
            raise InvalidHandleError(handle, f"cannot {action} the root node")
        return node

    def __len__(self) -> int:
        """Number of live nodes, root included."""
        return sum(1 for slot in self._slots if slot.node is not None)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def rules(self) -> RulesEngine:
        return self._rules

    @property
    def root(self) -> NodeId:
        return self._root

    @property
    def result(self) -> str:
        return self.headers.result

    @result.setter
    def result(self, value: str) -> None:
        self.headers["Result"] = value

    def exists(self, handle: NodeId) -> bool:
        try:
            self._node(handle)
        except InvalidHandleError:
            return False
        return True

    def parent(self, handle: NodeId) -> NodeId | None:
        return self._node(handle).parent

    def move(self, handle: NodeId) -> Move | None:
        """The move that produced this node (None for the root)."""
        return self._node(handle).move

    def children(self, handle: NodeId) -> list[NodeId]:
        return list(self._node(handle).children)

    def mainline(self, handle: NodeId) -> NodeId | None:
        """Index-0 child, or None at the end of a line."""
        children = self._node(handle).children
        return children[0] if children else None

    def variations(self, handle: NodeId) -> list[NodeId]:
        """Children other than the mainline continuation."""
        return list(self._node(handle).children[1:])

    def siblings(self, handle: NodeId) -> list[NodeId]:
        node = self._node(handle)
        if node.parent is None:
            return []
        return [h for h in self._node(node.parent).children if h != handle]

    def initial_position(self) -> chess.Board:
        return self._node(self._root).board.copy()

    def board_at(self, handle: NodeId) -> chess.Board:
        """Position after this node's move (a copy)."""
        return self._node(handle).board.copy()

    def board_before(self, handle: NodeId) -> chess.Board:
        """Position this node's move was played from (the root's own
        position for the root)."""
        node = self._node(handle)
        if node.parent is None:
            return node.board.copy()
        return self._node(node.parent).board.copy()

    def path(self, handle: NodeId) -> list[NodeId]:
        """Handles from the root down to `handle` (inclusive)."""
        path: list[NodeId] = []
        current: NodeId | None = handle
        while current is not None:
            path.append(current)
            current = self._node(current).parent
        path.reverse()
        return path

    def moves_before(self, handle: NodeId) -> list[Move]:
        """Moves leading from the root to `handle`, in play order."""
        return [self._node(h).move for h in self.path(handle)[1:]]

    def ply(self, handle: NodeId) -> int:
        """Half-moves from the root to this node."""
        return len(self.path(handle)) - 1

    def is_mainline(self, handle: NodeId) -> bool:
        """True if every edge from the root to `handle` is an index-0 edge."""
        current = handle
        node = self._node(current)
        while node.parent is not None:
            parent = self._node(node.parent)
            if parent.children[0] != current:
                return False
            current, node = node.parent, parent
        return True

    def mainline_nodes(self, start: NodeId | None = None) -> Iterator[NodeId]:
        """Follow index-0 children from `start` (exclusive)."""
        current = self._root if start is None else start
        children = self._node(current).children
        while children:
            current = children[0]
            yield current
            children = self._node(current).children

    def end(self, start: NodeId | None = None) -> NodeId:
        """Last node of the mainline below `start`."""
        last = self._root if start is None else start
        self._node(last)
        for last in self.mainline_nodes(last):
            pass
        return last

    def walk(self, start: NodeId | None = None) -> Iterator[tuple[NodeId, int, bool]]:
        """Pre-order walk yielding (handle, depth, is_mainline_edge).

        Children are visited in index order, so the mainline continuation of
        a node comes before its side variations. Depth is counted from
        `start`; the start node itself reports is_mainline_edge=True.
        """
        first = self._root if start is None else start
        self._node(first)
        stack: list[tuple[NodeId, int, bool]] = [(first, 0, True)]
        while stack:
            handle, depth, is_main = stack.pop()
            yield handle, depth, is_main
            children = self._node(handle).children
            for i in range(len(children) - 1, -1, -1):
                stack.append((children[i], depth + 1, i == 0))

    # ------------------------------------------------------------------
    # Annotations
    # ------------------------------------------------------------------

    def comment(self, handle: NodeId) -> str | None:
        return self._node(handle).annotations.comment

    def set_comment(self, handle: NodeId, comment: str | None) -> None:
        self._node(handle).annotations.set_comment(comment)

    def starting_comment(self, handle: NodeId) -> str | None:
        return self._node(handle).annotations.starting_comment

    def set_starting_comment(self, handle: NodeId, comment: str | None) -> None:
        self._non_root(handle, "set a starting comment on").annotations.set_starting_comment(comment)

    def nags(self, handle: NodeId) -> tuple[int, ...]:
        return self._node(handle).annotations.nags

    def add_nag(self, handle: NodeId, nag: int) -> bool:
        return self._non_root(handle, "annotate").annotations.add_nag(nag)

    def set_nags(self, handle: NodeId, nags: Iterable[int]) -> None:
        self._non_root(handle, "annotate").annotations.set_nags(nags)

    def clear_nags(self, handle: NodeId) -> None:
        self._node(handle).annotations.clear_nags()

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    def add_node(self, parent: NodeId, move: Move) -> NodeId:
        """Play `move` from `parent` and append the new node to its children.

        Raises InvalidHandleError for a dead or foreign parent and
        IllegalMoveError if the move cannot be played there.
        """
        parent_node = self._node(parent)
        board = self._rules.play(parent_node.board, move)
        child = self._allocate(GameNode(board=board, move=move, parent=parent))
        parent_node.children.append(child)
        return child

    new_variation = add_node

    def add_san(self, parent: NodeId, san: str) -> NodeId:
        """Resolve a SAN string against the parent's position and add it."""
        parent_node = self._node(parent)
        token = parse_san_token(san)
        if token is None:
            raise ValueError(f"Invalid SAN: {san}")
        move = resolve_san(self._rules, parent_node.board, token)
        return self.add_node(parent, move)

    def remove_node(self, handle: NodeId) -> None:
        """Detach `handle` from its parent and invalidate its whole subtree."""
        node = self._non_root(handle, "remove")
        doomed: list[NodeId] = []
        pending = [handle]
        while pending:
            current = pending.pop()
            doomed.append(current)
            pending.extend(self._node(current).children)
        self._node(node.parent).children.remove(handle)
        for h in doomed:
            self._release(h)
        logger.debug("Removed subtree of %d node(s) at index %d", len(doomed), handle.index)

    def promote_variation(self, handle: NodeId) -> None:
        """Move `handle` to index 0 among its siblings; others keep their
        relative order. Only the parent's children list changes."""
        node = self._non_root(handle, "promote")
        siblings = self._node(node.parent).children
        index = siblings.index(handle)
        if index == 0:
            return
        del siblings[index]
        siblings.insert(0, handle)
        logger.debug("Promoted variation %d of node index %d", index, node.parent.index)

    # ------------------------------------------------------------------
    # PGN
    # ------------------------------------------------------------------

    def to_pgn(self, settings: Settings | None = None) -> str:
        return write_game(self, settings)

    def __str__(self) -> str:
        return self.to_pgn()
