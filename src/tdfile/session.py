"""Session: the in-memory todo state a front end works against.

A session owns the flat record list (its source of truth), the forest
rebuilt from it, the collapse map, the id counter, and the warnings and
error from the last read. Every mutation goes forest -> persisted snapshot
-> ``saver`` -> fresh forest, so node objects never outlive one change.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

from tdfile import log
from tdfile.errors import EditingBlockedError
from tdfile.todos import ops
from tdfile.todos.blocks import parse_records, read_blocks
from tdfile.todos.model import DisplayRow, Forest, TodoRecord, TodoState, TreeNode
from tdfile.todos.tree import build_tree, flatten, flatten_for_persistence

Saver = Callable[[Sequence[TodoRecord]], object]

NEW_TODO_TEXT = "New todo"
NEW_CHILD_TEXT = "New child todo"


class Session:
    """Foreground view of one todo file.

    Usage::

        session = Session(path, saver=sync.request_save)
        session.load()                  # raises if the file cannot be read
        for row in session.rows():
            ...
        session.toggle_state(row.node.id, TodoState.COMPLETED)
    """

    def __init__(self, path: Path | str, saver: Saver | None = None) -> None:
        self.path = Path(path)
        self.saver = saver
        self.records: list[TodoRecord] = []
        self.forest: Forest = []
        self.collapsed: dict[int, bool] = {}
        self.warnings: list[str] = []
        self.error: str = ""
        self.block_count = 0
        self.next_id = 1

    # ── loading ──────────────────────────────────────────────────

    def load(self) -> None:
        """Initial read. Errors propagate; there is nothing to fall back to yet."""
        self._read()
        self.next_id = ops.next_id_after(self.records)

    def reload(self) -> bool:
        """Re-read the file, replacing records and warnings.

        A failed read keeps the previous records, records the error and
        blocks editing until a later reload succeeds.
        """
        try:
            self._read()
        except (OSError, ValueError) as e:
            self.error = str(e)
            log.error(f"Reload of {self.path} failed: {e}")
            return False
        self.next_id = max(self.next_id, ops.next_id_after(self.records))
        return True

    def _read(self) -> None:
        blocks, warnings = read_blocks(self.path)
        records, parse_warnings = parse_records(blocks)
        self.block_count = len(blocks)
        self.records = records
        self.warnings = warnings + parse_warnings
        self.error = ""
        for w in self.warnings:
            log.debug(f"{self.path}: {w}")
        self._refresh()

    def _refresh(self) -> None:
        self.forest = build_tree(self.records, self.collapsed)

    # ── views ────────────────────────────────────────────────────

    def rows(self) -> list[DisplayRow]:
        return flatten(self.forest, self.collapsed)

    def node(self, node_id: int) -> TreeNode:
        found = ops.find_node(self.forest, node_id)
        if found is None:
            raise KeyError(f"no todo with id {node_id}")
        return found

    # ── mutations ────────────────────────────────────────────────

    def _check_editable(self) -> None:
        if self.error:
            raise EditingBlockedError(f"editing is blocked: {self.error}")

    def _commit(self) -> None:
        self.records = flatten_for_persistence(self.forest)
        if self.saver is not None:
            self.saver(list(self.records))
        self._refresh()

    def _new_record(self, text: str) -> TodoRecord:
        record = TodoRecord(id=self.next_id, text=ops.check_text(text))
        self.next_id += 1
        return record

    def set_state(self, node_id: int, state: TodoState) -> None:
        self._check_editable()
        ops.set_state(self.node(node_id), state)
        self._commit()

    def toggle_state(self, node_id: int, state: TodoState) -> TodoState:
        """Switch to *state*, or back to incomplete if already there."""
        self._check_editable()
        node = self.node(node_id)
        new_state = TodoState.INCOMPLETE if node.state == state else state
        ops.set_state(node, new_state)
        self._commit()
        return new_state

    def toggle_highlight(self, node_id: int) -> bool:
        """Flip the highlight of an incomplete todo. Other states are left alone."""
        self._check_editable()
        node = self.node(node_id)
        if node.state != TodoState.INCOMPLETE:
            return False
        ops.set_highlight(node, not node.record.highlighted)
        self._commit()
        return node.record.highlighted

    def edit_text(self, node_id: int, text: str) -> None:
        self._check_editable()
        ops.set_text(self.node(node_id), text)
        self._commit()

    def add_sibling(self, after_id: int | None = None, text: str = NEW_TODO_TEXT) -> int:
        """Add a todo after *after_id* (after the last root when ``None``)."""
        self._check_editable()
        record = self._new_record(text)
        if after_id is None and not self.forest:
            self.forest.append(TreeNode(record=record))
        else:
            after = self.node(after_id) if after_id is not None else self.forest[-1]
            ops.add_sibling(self.forest, after, record)
        self._commit()
        return record.id

    def add_child(self, parent_id: int, text: str = NEW_CHILD_TEXT) -> int:
        self._check_editable()
        record = self._new_record(text)
        ops.add_child(self.node(parent_id), record)
        self._commit()
        return record.id

    def delete(self, node_id: int) -> None:
        """Remove a todo and everything under it."""
        self._check_editable()
        node = self.node(node_id)
        siblings, idx = ops.locate(self.forest, node)
        parent: TreeNode | Forest = node.parent if node.parent is not None else siblings
        ops.delete_node(parent, idx)
        self.collapsed.pop(node_id, None)
        self._commit()

    def toggle_collapsed(self, node_id: int) -> bool:
        """Collapse or expand a node with children. Display only; nothing is saved."""
        self._check_editable()
        node = self.node(node_id)
        if not node.has_children():
            return False
        value = ops.toggle_collapsed(self.collapsed, node_id)
        self._refresh()
        return value
