"""Todo model, line codec, block extraction, tree building and mutations."""

from tdfile.todos.model import DisplayRow, Forest, TodoRecord, TodoState, TreeNode

__all__ = ["DisplayRow", "Forest", "TodoRecord", "TodoState", "TreeNode"]
