"""Indent-stack tree building and the two flatteners (display and persistence)."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Iterator, Mapping

from tdfile.config import INDENT_STEP
from tdfile.todos.model import DisplayRow, Forest, TodoRecord, TreeNode


def build_tree(
    records: Iterable[TodoRecord],
    collapsed: Mapping[int, bool] | None = None,
) -> Forest:
    """Nest *records* by comparing indents against a stack of open ancestors.

    Any indent strictly greater than the open ancestor's makes a child, so
    irregular steps are accepted as-is. Every call creates fresh nodes from
    copies of the records.
    """
    collapsed = collapsed or {}
    roots: Forest = []
    stack: list[TreeNode] = []

    for record in records:
        node = TreeNode(
            record=dataclasses.replace(record),
            collapsed=collapsed.get(record.id, False),
        )
        while stack and stack[-1].record.indent_level >= record.indent_level:
            stack.pop()
        if stack:
            node.parent = stack[-1]
            stack[-1].children.append(node)
        else:
            roots.append(node)
        stack.append(node)

    return roots


def flatten(forest: Forest, collapsed: Mapping[int, bool] | None = None) -> list[DisplayRow]:
    """Pre-order rows for display; a collapsed node hides its whole subtree.

    With *collapsed* given, it decides by node id; otherwise each node's own
    ``collapsed`` flag is used.
    """
    rows: list[DisplayRow] = []

    def is_collapsed(node: TreeNode) -> bool:
        if collapsed is None:
            return node.collapsed
        return collapsed.get(node.id, False)

    def walk(nodes: list[TreeNode], depth: int) -> None:
        for node in nodes:
            rows.append(DisplayRow(node=node, depth=depth))
            if node.children and not is_collapsed(node):
                walk(node.children, depth + 1)

    walk(forest, 0)
    return rows


def flatten_for_persistence(forest: Forest, step: int = INDENT_STEP) -> list[TodoRecord]:
    """Every record in pre-order, re-indented to ``depth * step``.

    Collapse state is ignored. The returned records are copies, so the
    snapshot can be handed to another thread while the forest keeps changing.
    """
    out: list[TodoRecord] = []

    def walk(nodes: list[TreeNode], depth: int) -> None:
        for node in nodes:
            out.append(dataclasses.replace(node.record, indent_level=depth * step))
            walk(node.children, depth + 1)

    walk(forest, 0)
    return out


def iter_nodes(forest: Forest) -> Iterator[TreeNode]:
    """Yield every node in pre-order, collapsed or not."""
    for node in forest:
        yield node
        yield from iter_nodes(node.children)
