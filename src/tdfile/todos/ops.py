"""Structural edits on a forest.

None of these touch the file. Callers persist a change by flattening the
forest with :func:`tdfile.todos.tree.flatten_for_persistence` and handing
the snapshot to the synchronizer.
"""

from __future__ import annotations

from collections.abc import Iterable, MutableMapping

from tdfile.config import INDENT_STEP
from tdfile.todos.model import Forest, TodoRecord, TodoState, TreeNode
from tdfile.todos.tree import iter_nodes


def set_state(node: TreeNode, state: TodoState) -> None:
    node.record.state = state
    if state != TodoState.INCOMPLETE:
        node.record.highlighted = False


def set_highlight(node: TreeNode, on: bool) -> None:
    """Highlight or unhighlight *node*; ignored unless the node is incomplete."""
    if node.record.state == TodoState.INCOMPLETE:
        node.record.highlighted = on


def check_text(text: str) -> str:
    """Return *text* if it fits on one todo line, else raise ValueError."""
    if "\n" in text or "\r" in text:
        raise ValueError(f"todo text must be a single line: {text!r}")
    return text


def set_text(node: TreeNode, text: str) -> None:
    node.record.text = check_text(text)


def siblings_of(forest: Forest, node: TreeNode) -> list[TreeNode]:
    return node.parent.children if node.parent is not None else forest


def locate(forest: Forest, node: TreeNode) -> tuple[list[TreeNode], int]:
    """Return the list holding *node* and its index there, or ``(forest, -1)``."""
    siblings = siblings_of(forest, node)
    for i, candidate in enumerate(siblings):
        if candidate is node:
            return siblings, i
    return forest, -1


def find_node(forest: Forest, node_id: int) -> TreeNode | None:
    for node in iter_nodes(forest):
        if node.id == node_id:
            return node
    return None


def add_sibling(forest: Forest, after: TreeNode, record: TodoRecord) -> TreeNode:
    """Insert *record* right after *after* under the same parent.

    In display order the new node follows the last descendant of *after*,
    whose children stay where they are.
    """
    check_text(record.text)
    siblings, idx = locate(forest, after)
    if idx < 0:
        raise ValueError(f"node {after.id} is not part of this forest")
    record.indent_level = after.record.indent_level
    node = TreeNode(record=record, parent=after.parent)
    siblings.insert(idx + 1, node)
    return node


def add_child(parent: TreeNode, record: TodoRecord) -> TreeNode:
    check_text(record.text)
    record.indent_level = parent.record.indent_level + INDENT_STEP
    node = TreeNode(record=record, parent=parent)
    parent.children.append(node)
    return node


def delete_node(parent: TreeNode | Forest, index: int) -> TreeNode | None:
    """Drop the child at *index* together with its subtree.

    *parent* is a node or the root list. An index outside the list is
    ignored and ``None`` is returned.
    """
    children = parent.children if isinstance(parent, TreeNode) else parent
    if index < 0 or index >= len(children):
        return None
    removed = children.pop(index)
    removed.parent = None
    return removed


def set_collapsed(collapsed: MutableMapping[int, bool], node_id: int, value: bool) -> None:
    if value:
        collapsed[node_id] = True
    else:
        collapsed.pop(node_id, None)


def toggle_collapsed(collapsed: MutableMapping[int, bool], node_id: int) -> bool:
    value = not collapsed.get(node_id, False)
    set_collapsed(collapsed, node_id, value)
    return value


def next_id_after(records: Iterable[TodoRecord]) -> int:
    return max((r.id for r in records), default=0) + 1
