"""Todo records, tree nodes and display rows shared by the parser, tree and sync code."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class TodoState(str, Enum):
    INCOMPLETE = "incomplete"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    PUSHED = "pushed"


@dataclass
class TodoRecord:
    id: int
    text: str
    state: TodoState = TodoState.INCOMPLETE
    indent_level: int = 0
    highlighted: bool = False
    line_number: int = 0

    def __post_init__(self) -> None:
        if self.state != TodoState.INCOMPLETE:
            self.highlighted = False


@dataclass(eq=False)
class TreeNode:
    """A record plus its place in the forest.

    ``children`` is owned by the node; ``parent`` is a lookup aid only and is
    left out of the repr so printing a node does not walk back up the tree.
    """

    record: TodoRecord
    children: list[TreeNode] = field(default_factory=list)
    parent: TreeNode | None = field(default=None, repr=False)
    collapsed: bool = False

    @property
    def id(self) -> int:
        return self.record.id

    @property
    def text(self) -> str:
        return self.record.text

    @property
    def state(self) -> TodoState:
        return self.record.state

    def has_children(self) -> bool:
        return bool(self.children)


Forest = list[TreeNode]


@dataclass(frozen=True)
class DisplayRow:
    node: TreeNode
    depth: int
