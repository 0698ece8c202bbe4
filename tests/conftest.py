"""Shared fixtures for td-file tests.

File handling in tests:
- Use tmp_path for any file creation so tests are isolated and cleaned up.
- Use tdfile.io_utils read_text/write_text for consistent UTF-8 I/O.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from tdfile.io_utils import write_text
from tdfile.todos.model import TodoRecord, TodoState

SAMPLE = """# Notes

Some prose before the list.

:td
- [ ] Parent
  - [ ] Child 1
    - [ ] Grandchild 1.1
  - [ ] Child 2
:td

Trailing notes stay put.
"""


def _make_record(
    id: int,
    text: str = "",
    state: TodoState = TodoState.INCOMPLETE,
    indent: int = 0,
    highlighted: bool = False,
) -> TodoRecord:
    return TodoRecord(
        id=id,
        text=text or f"Todo {id}",
        state=state,
        indent_level=indent,
        highlighted=highlighted,
    )


@pytest.fixture
def make_record():
    """Factory fixture that creates TodoRecord instances."""
    return _make_record


@pytest.fixture
def write_todo_file(tmp_path: Path):
    """Write *text* to a todo file under tmp_path and return its path."""

    def _write(text: str = SAMPLE, name: str = "todos.md") -> Path:
        path = tmp_path / name
        write_text(path, text)
        return path

    return _write


@pytest.fixture
def todo_file(write_todo_file) -> Path:
    """A todo file holding the Parent / Child / Grandchild sample block."""
    return write_todo_file()
